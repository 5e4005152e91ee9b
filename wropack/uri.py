import enum
import re

CLASSPATH_PREFIX = "classpath:"
CONTEXT_PREFIX = "/"
PROTECTED_PREFIX = "/WEB-INF/"

ABSOLUTE_URL_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://[^/?#\s]+", re.IGNORECASE)


class UriCategory(enum.Enum):
    CONTEXT_RELATIVE = "context"
    PROTECTED_CONTEXT_RELATIVE = "protected"
    CLASSPATH_RESOURCE = "classpath"
    ABSOLUTE_URL = "url"
    UNRECOGNIZED = "unrecognized"


def is_classpath(uri):
    return uri.strip().startswith(CLASSPATH_PREFIX)


def is_context_relative(uri):
    return uri.strip().startswith(CONTEXT_PREFIX)


def is_protected(uri):
    return uri.strip()[: len(PROTECTED_PREFIX)].upper() == PROTECTED_PREFIX


def is_absolute_url(uri):
    return ABSOLUTE_URL_RE.match(uri.strip()) is not None


def classify(uri):
    """
    Returns the UriCategory of a stylesheet or resource location. Never raises;
    anything that is not understood comes back as UNRECOGNIZED.
    """
    if not uri:
        return UriCategory.UNRECOGNIZED
    if is_classpath(uri):
        return UriCategory.CLASSPATH_RESOURCE
    if is_context_relative(uri):
        if is_protected(uri):
            return UriCategory.PROTECTED_CONTEXT_RELATIVE
        return UriCategory.CONTEXT_RELATIVE
    if is_absolute_url(uri):
        return UriCategory.ABSOLUTE_URL
    return UriCategory.UNRECOGNIZED
