import glob
import importlib
import importlib.resources
import logging
import os
import posixpath
import tempfile

import yaml

from .allowlist import AllowList
from .content_type import ContentTypeResolver
from .exceptions import ConfigurationError
from .processors import __all__ as builtin_processors
from .rewriter import ImageUrlRewriter, RewriteContext
from .uri import CLASSPATH_PREFIX, UriCategory, classify

logger = logging.getLogger("wropack")


def classpath_resource(location):
    """
    Returns the package resource for a classpath location (or resource id), such as
    classpath:pkg/css/main.css or pkg/css/main.css, or None if there is none.
    """
    location = location.strip()
    if location.startswith(CLASSPATH_PREFIX):
        location = location[len(CLASSPATH_PREFIX) :]
    package, _, name = location.lstrip("/").partition("/")
    if not package or not name:
        return None
    try:
        resource = importlib.resources.files(package).joinpath(name)
    except (ModuleNotFoundError, TypeError):
        return None
    return resource if resource.is_file() else None


class Input:
    def __init__(self, name, path, processors=None, depends=None):
        self.name = name
        self.path = path
        self.processors = processors or []
        self.depends = depends or []

    def __str__(self):
        return self.name

    @property
    def packaged(self):
        return not isinstance(self.path, str)

    def check_paths(self):
        if self.packaged:
            return
        yield self.path
        root = os.path.dirname(self.path)
        for dep in self.depends:
            yield from glob.iglob(os.path.join(root, dep))

    def modified(self, mtime):
        for path in self.check_paths():
            if os.path.getmtime(path) > mtime:
                return True
        return False

    def read(self):
        if self.packaged:
            return self.path.read_text(encoding="utf-8")
        with open(self.path, "r", encoding="utf-8") as f:
            return f.read()

    def process(self, packer, context):
        text = self.read()
        for proc in self.processors:
            module_name, method_name = proc.rsplit(".", 1)
            module = importlib.import_module(module_name)
            method = getattr(module, method_name)
            text = method(text, self, packer, context)
        return text


class Packer:
    def __init__(self, config=None, base_dir=None, **options):
        self.base_dir = base_dir
        config_opts = self.load_config(
            config or "wropack.yaml", raise_if_missing=bool(config)
        )
        config_opts.update(options)
        self.configure(config_opts)

    def resolve(self, path):
        path = str(path)
        if path.startswith("/") or not self.base_dir:
            return path
        return os.path.abspath(os.path.normpath(os.path.join(self.base_dir, path)))

    def load_config(self, config_file, raise_if_missing=False):
        try:
            with open(self.resolve(config_file), "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            if raise_if_missing:
                raise e
        return {}

    def dump_config(self):
        defaults = self.defaults.copy()
        if defaults.get("css") == ["rewrite"]:
            defaults.pop("css")
        concat = self.concat.copy()
        if concat.get("js") == "\n;\n":
            concat.pop("js")
        register = {
            name: method
            for name, method in self.processors.items()
            if name not in builtin_processors
        }
        config = {
            "assets": self.assets,
        }
        if not self.ephemeral:
            config["output"] = self.location
        if self.root != ".":
            config["root"] = self.root
        if self.folder is not None:
            config["folder"] = self.folder
        if self.prefix:
            config["prefix"] = self.prefix
        if register:
            config["register"] = register
        if defaults:
            config["defaults"] = defaults
        if concat:
            config["concat"] = concat
        if self.mimetypes:
            config["mimetypes"] = self.mimetypes
        return config

    def configure(self, config):
        self.location = config.get("output") or tempfile.mkdtemp(prefix="wropack-")
        self.ephemeral = not config.get("output")
        self.root = config.get("root", ".")
        self.folder = config.get("folder")
        self.prefix = config.get("prefix", "")
        self.processors = {
            name: "wropack.processors.{}.process".format(name)
            for name in builtin_processors
        }
        self.processors.update(config.get("register", {}))
        self.defaults = {"css": ["rewrite"]}
        for name, procs in config.get("defaults", {}).items():
            if isinstance(procs, str):
                procs = [procs]
            for proc in procs:
                if proc not in self.processors:
                    raise ConfigurationError("Unknown processor: {}".format(proc))
            self.defaults[name] = procs
        self.concat = {"js": "\n;\n"}
        self.concat.update(config.get("concat", {}))
        self.assets = config.get("assets", {})
        self.mimetypes = config.get("mimetypes", {})
        self.content_types = ContentTypeResolver(self.mimetypes)
        self.allow_list = AllowList()
        self.rewriter = ImageUrlRewriter(self.allow_list)

    @property
    def storage_path(self):
        return self.resolve(self.location)

    @property
    def root_path(self):
        return self.resolve(self.root)

    def find_input(self, name):
        """
        Returns the full path of the specified input location, if it exists. Context
        locations (/css/main.css, /WEB-INF/main.css) are looked up under the root
        directory, classpath locations are returned as package resources.
        """
        category = classify(name)
        if category is UriCategory.CLASSPATH_RESOURCE:
            return classpath_resource(name)
        if category in (
            UriCategory.CONTEXT_RELATIVE,
            UriCategory.PROTECTED_CONTEXT_RELATIVE,
        ):
            path = os.path.join(self.root_path, name.strip().lstrip("/"))
            if os.path.exists(path):
                return path
        return None

    def split_spec(self, spec):
        """
        Splits "cssmin:rewrite:/css/main.css" into (["cssmin", "rewrite"], location).
        Only known processor names are split off, so classpath: and URL locations
        survive intact.
        """
        processors = []
        while ":" in spec:
            head, rest = spec.split(":", 1)
            if head not in self.processors:
                break
            processors.append(head)
            spec = rest
        return processors, spec

    def iter_assets(self):
        """
        Yields (asset_name, inputs) pairs, where inputs is a list of Input objects.
        """
        for name, specs in self.assets.items():
            if isinstance(specs, str):
                specs = [specs]
            inputs = []
            for spec in specs:
                if isinstance(spec, str):
                    depends = []
                elif isinstance(spec, dict):
                    spec, depends = list(spec.items())[0]
                else:
                    raise ConfigurationError("Unknown input type: {}".format(spec))
                processors, input_name = self.split_spec(spec)
                if processors:
                    # cssmin:rewrite:/main.css --> cssmin(rewrite(/main.css))
                    processors = list(reversed(processors))
                else:
                    ext = posixpath.splitext(input_name)[1].replace(".", "").lower()
                    processors = self.defaults.get(ext, [])
                # Resolved processors into dotted method paths.
                processors = [self.processors[proc] for proc in processors]
                path = self.find_input(input_name)
                if path:
                    inputs.append(Input(input_name, path, processors, depends))
                else:
                    logger.error("Input not found: {}".format(input_name))
            yield name, inputs

    def context_for(self, asset, request_path=None):
        """
        Returns the RewriteContext for packing an asset. Unless a request path is
        given, the asset is assumed to be requested at prefix + asset name. Without
        a configured folder, the bundle folder is the parent of the request path.
        """
        if request_path is None:
            request_path = posixpath.join("/", self.prefix.lstrip("/"), asset)
        folder = self.folder
        if folder is None:
            folder = posixpath.dirname(request_path).strip("/")
        return RewriteContext(folder, request_path)

    def modified(self, inputs, mtime=0):
        """
        Returns (quickly) if any of the inputs were modified since mtime.
        """
        for i in inputs:
            if i.modified(mtime):
                return True
        return False

    def pack_to(self, asset, output, encoding="utf-8", request_path=None):
        """
        Packs a single asset directly into an output buffer with the specified encoding.
        Used when serving assets directly for development.
        """
        for name, inputs in self.iter_assets():
            if asset != name:
                continue
            context = self.context_for(name, request_path)
            ext = posixpath.splitext(name)[1].replace(".", "").lower()
            sep = self.concat.get(ext, "\n").encode(encoding)
            logger.debug(
                "Packing {} <<< {}".format(name, " | ".join(str(i) for i in inputs))
            )
            for idx, i in enumerate(inputs):
                if idx > 0:
                    output.write(sep)
                output.write(i.process(self, context).encode(encoding))

    def pack(self, asset=None, force=False):
        """
        Packs one or all assets. By default, assets will only be packed if they have not
        been previously packed, or if any of the inputs to an asset have changed since
        the last time it was packed. To force packing, set force=True. To pack only a
        single asset, specify a path.
        """
        for name, inputs in self.iter_assets():
            if asset and asset != name:
                continue
            path = self.resolve(os.path.join(self.location, name))
            mtime = os.path.getmtime(path) if os.path.exists(path) else 0
            if force or mtime == 0 or self.modified(inputs, mtime):
                context = self.context_for(name)
                ext = posixpath.splitext(name)[1].replace(".", "").lower()
                sep = self.concat.get(ext, "\n")
                os.makedirs(os.path.dirname(path), exist_ok=True)
                logger.debug(
                    "Packing {} <<< {}".format(name, " | ".join(str(i) for i in inputs))
                )
                # A failed build must not leave a partial bundle behind.
                tmp_path = path + ".tmp"
                try:
                    with open(tmp_path, "w", encoding="utf-8") as output:
                        for idx, i in enumerate(inputs):
                            if idx > 0:
                                output.write(sep)
                            output.write(i.process(self, context))
                    os.replace(tmp_path, path)
                except BaseException:
                    os.remove(tmp_path)
                    raise
