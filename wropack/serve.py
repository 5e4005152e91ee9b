import logging
import os
import posixpath
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, unquote

from .base import classpath_resource
from .rewriter import PARAM_RESOURCE_ID, PATH_RESOURCES
from .uri import is_protected

logger = logging.getLogger("wropack")


def load_resource(packer, resource_id):
    """
    Returns (status, content_type, body) for a wroResources request. Only ids that
    the url rewriter has allow-listed are ever read.
    """
    if not resource_id or not packer.allow_list.contains(resource_id):
        logger.error("Resource not allowed: {}".format(resource_id))
        return HTTPStatus.FORBIDDEN, None, b""
    if resource_id.startswith("/"):
        root = os.path.realpath(packer.root_path)
        path = os.path.realpath(os.path.join(root, resource_id.lstrip("/")))
        if not path.startswith(root + os.sep) or not os.path.isfile(path):
            return HTTPStatus.NOT_FOUND, None, b""
        with open(path, "rb") as f:
            body = f.read()
    else:
        resource = classpath_resource(resource_id)
        if resource is None:
            return HTTPStatus.NOT_FOUND, None, b""
        body = resource.read_bytes()
    return HTTPStatus.OK, packer.content_types.get(resource_id), body


class RequestHandler(SimpleHTTPRequestHandler):
    def __init__(self, *args, **kwargs):
        self.packer = kwargs.pop("packer")
        super().__init__(*args, **kwargs)

    def do_GET(self):
        # Split by hand; urlsplit would read "//WEB-INF/..." as a host name.
        request_path, _, query = self.path.split("#", 1)[0].partition("?")
        if request_path.rsplit("/", 1)[-1] == PATH_RESOURCES:
            self.send_resource(parse_qs(query).get(PARAM_RESOURCE_ID, [""])[0])
            return
        path = request_path
        if path.startswith(self.packer.prefix):
            chop = len(self.packer.prefix)
            path = path[chop:]
        path = path.lstrip("/")
        if path in self.packer.assets:
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", self.packer.content_types.get(path))
            self.end_headers()
            self.packer.pack_to(path, self.wfile, request_path=request_path)
        elif is_protected(
            "/" + posixpath.normpath(unquote(request_path)).lstrip("/") + "/"
        ):
            self.send_error(HTTPStatus.NOT_FOUND)
        else:
            super().do_GET()

    def send_resource(self, resource_id):
        status, content_type, body = load_resource(self.packer, resource_id)
        if status != HTTPStatus.OK:
            self.send_error(status)
            return
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def serve(packer_class, config_file, overrides, address="localhost", port=8000):
    # One packer for the whole server, so resources allow-listed while packing a
    # stylesheet can be fetched by subsequent requests.
    packer = packer_class(config_file, **overrides)

    def handler(*args, **kwargs):
        kwargs["packer"] = packer
        kwargs.setdefault("directory", packer.root_path)
        return RequestHandler(*args, **kwargs)

    httpd = ThreadingHTTPServer((address, port), handler)
    logger.info("Serving on http://{}:{}/".format(address, port))
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        pass
