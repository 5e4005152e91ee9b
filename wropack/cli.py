import argparse
import logging
import sys

import yaml

from .base import Packer
from .serve import serve


def main(*args):
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="config file to use (wropack.yaml by default)",
    )
    parser.add_argument(
        "-o", "--output", default=None, help="override output directory"
    )
    parser.add_argument(
        "-r", "--root", default=None, help="override context root directory"
    )
    parser.add_argument(
        "-f", "--folder", default=None, help="override aggregation folder path"
    )
    parser.add_argument(
        "-p", "--port", type=int, default=8000, help="port for the serve command"
    )
    parser.add_argument(
        "-y", "--yaml", action="store_true", default=False, help="print YAML config"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=False, help="debug logging"
    )
    parser.add_argument("command", nargs="*")
    options = parser.parse_args(args=args or None)
    if options.verbose:
        logging.basicConfig(level=logging.DEBUG)
    overrides = {}
    for key in ("output", "root", "folder"):
        if getattr(options, key) is not None:
            overrides[key] = getattr(options, key)
    packer = Packer(options.config, **overrides)
    if options.yaml:
        print(yaml.safe_dump(packer.dump_config()))
        sys.exit(1)
    if not options.command:
        packer.pack()
    elif options.command[0] == "serve":
        serve(packer.__class__, options.config, overrides, port=options.port)
    else:
        print("Unknown command: {}".format(options.command[0]), file=sys.stderr)
        sys.exit(1)
