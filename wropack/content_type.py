DEFAULT_CONTENT_TYPE = "application/octet-stream"

DEFAULT_MIMETYPES = {
    "css": "text/css",
    "eot": "application/vnd.ms-fontobject",
    "gif": "image/gif",
    "htm": "text/html",
    "html": "text/html",
    "ico": "image/x-icon",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "js": "application/javascript",
    "json": "application/json",
    "png": "image/png",
    "svg": "image/svg+xml",
    "ttf": "font/ttf",
    "txt": "text/plain",
    "webp": "image/webp",
    "woff": "font/woff",
    "woff2": "font/woff2",
}


class ContentTypeResolver:
    """
    Maps a path to a content type using the text after its last dot. Extensions are
    matched case-insensitively; unknown or missing extensions map to default.
    """

    def __init__(self, mimetypes=None, default=DEFAULT_CONTENT_TYPE):
        self.default = default
        self.mimetypes = dict(DEFAULT_MIMETYPES)
        for ext, content_type in (mimetypes or {}).items():
            self.mimetypes[ext.lstrip(".").lower()] = content_type

    def get(self, path):
        idx = path.rfind(".")
        if idx < 0:
            return self.default
        return self.mimetypes.get(path[idx + 1 :].lower(), self.default)


_default_resolver = ContentTypeResolver()


def get(path):
    return _default_resolver.get(path)
