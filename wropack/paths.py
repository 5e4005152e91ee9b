import functools
import logging
import posixpath
import re

from .exceptions import InvalidUriError
from .uri import CLASSPATH_PREFIX, is_classpath

logger = logging.getLogger("wropack")

SCHEME_AUTHORITY = re.compile(
    r"^([a-z][a-z0-9+.\-]*://[^/?#]*)(.*)$", re.IGNORECASE | re.S
)


def clean_url(url):
    """
    Strips surrounding whitespace and quotes from a raw url(...) argument.
    """
    url = url.strip()
    if len(url) >= 2 and url[0] == url[-1] and url[0] in "'\"":
        url = url[1:-1].strip()
    return url


def clean_path(path):
    """
    Lexically collapses "." and ".." segments. The scheme and authority of an
    absolute URL are left alone, leading ".." segments of relative paths are kept,
    and any query string or fragment is carried over verbatim.
    """
    if not path:
        return path
    split = min(
        (idx for idx in (path.find("?"), path.find("#")) if idx >= 0),
        default=len(path),
    )
    path, suffix = path[:split], path[split:]
    origin = ""
    match = SCHEME_AUTHORITY.match(path)
    if match:
        origin, path = match.groups()
    if not path:
        return origin + suffix
    cleaned = posixpath.normpath(path)
    if cleaned == ".":
        cleaned = ""
    elif path.endswith("/") and not cleaned.endswith("/"):
        cleaned += "/"
    return origin + cleaned + suffix


def resolve(base, reference):
    """
    Joins reference onto the folder of the base location and normalizes the result.

        /css/main.css + ../img/a.png       --> /img/a.png
        classpath:pkg/main.css + a.png     --> pkg/a.png
        http://cdn/css/x.css + /img/a.png  --> http://cdn/css/img/a.png
    """
    reference = clean_url(reference)
    if is_classpath(base):
        base = base.strip()[len(CLASSPATH_PREFIX) :]
        # Without a "/", the end of the classpath marker is the split point.
        folder = base[: base.rfind("/") + 1]
    else:
        idx = base.rfind("/")
        if idx < 0:
            raise InvalidUriError(
                "Invalid location: {}. Should contain at least one '/' character!".format(
                    base
                )
            )
        folder = base[: idx + 1]
    if reference.startswith("/"):
        reference = reference[1:]
    location = clean_path(folder + reference)
    logger.debug("Resolved {} against {} --> {}".format(reference, base, location))
    return location


@functools.lru_cache(maxsize=64)
def aggregation_prefix(folder_path):
    """
    Returns the relative path leading from the aggregation folder back up to the
    context root, e.g. "a/b" --> "../..". Empty or missing folders give "".
    """
    if not folder_path:
        return ""
    depth = sum(1 for part in folder_path.split("/") if part)
    prefix = ("/.." * depth)[1:]
    logger.debug("Computed aggregation prefix {!r} for {!r}".format(prefix, folder_path))
    return prefix
