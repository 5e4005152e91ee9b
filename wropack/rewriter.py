import logging
from urllib.parse import quote

from .allowlist import AllowList
from .exceptions import UnresolvableReferenceError
from .paths import aggregation_prefix, resolve
from .uri import UriCategory, classify, is_context_relative

logger = logging.getLogger("wropack")

# Path segment and query parameter the resource endpoint answers to.
PATH_RESOURCES = "wroResources"
PARAM_RESOURCE_ID = "id"


class RewriteContext:
    """
    Describes where the aggregated stylesheet is being served from.

    folder_path is the folder of the bundle relative to the context root (used to
    walk back up to the root), and request_path is the path of the request that
    triggered packing, whose parent folder hosts the wroResources endpoint.
    """

    def __init__(self, folder_path=None, request_path=""):
        self.folder_path = folder_path
        self.request_path = request_path or ""

    def __repr__(self):
        return "<RewriteContext folder={!r} request={!r}>".format(
            self.folder_path, self.request_path
        )

    def indirection_prefix(self):
        parent = self.request_path[: self.request_path.rfind("/") + 1]
        return "{}{}?{}=".format(parent, PATH_RESOURCES, PARAM_RESOURCE_ID)


class ImageUrlRewriter:
    """
    Rewrites url(...) references of a stylesheet so they still resolve once the
    stylesheet is moved into an aggregated bundle:

        css location           image url    result
        /1.css                 /a/1.jpg     /a/1.jpg
        /1.css                 1.jpg        ../1.jpg (bundle folder "")
        /WEB-INF/1.css         1.jpg        [prefix]/WEB-INF/1.jpg
        classpath:pkg/1.css    1.jpg        [prefix]pkg/1.jpg
        http://host/1.css      1.jpg        http://host/1.jpg

    where [prefix] is RewriteContext.indirection_prefix(). Locations that can't be
    served directly (protected or packaged) are recorded in the allow list.
    """

    def __init__(self, allow_list=None, on_url_replaced=None, on_complete=None):
        self.allow_list = AllowList() if allow_list is None else allow_list
        self.on_url_replaced = on_url_replaced
        self.on_complete = on_complete

    def rewrite(self, css_location, image_url, context):
        category = classify(css_location)
        logger.debug(
            "Rewriting {} in {} ({})".format(image_url, css_location, category.name)
        )
        if category is UriCategory.CONTEXT_RELATIVE:
            if is_context_relative(image_url):
                return image_url
            # A bundle with no folder still sits one level below the root.
            prefix = aggregation_prefix(context.folder_path) or ".."
            return resolve(prefix + css_location.strip(), image_url)
        if category in (
            UriCategory.PROTECTED_CONTEXT_RELATIVE,
            UriCategory.CLASSPATH_RESOURCE,
        ):
            return self.indirect(css_location, image_url, context)
        if category is UriCategory.ABSOLUTE_URL:
            return resolve(css_location, image_url)
        raise UnresolvableReferenceError(css_location, image_url)

    def indirect(self, css_location, image_url, context):
        location = resolve(css_location, image_url)
        self.allow_list.add(location)
        if self.on_url_replaced:
            self.on_url_replaced(location)
        return context.indirection_prefix() + quote(location, safe="/")

    def is_allowed(self, uri):
        return self.allow_list.contains(uri)

    def process_completed(self, css_location):
        logger.debug("Allowed urls after {}: {}".format(css_location, self.allow_list))
        if self.on_complete:
            self.on_complete(css_location, self.allow_list)
