"""Command-line entry point."""
import argparse
import logging
import sys

import uvicorn
from pydantic import ValidationError

from . import __version__
from .config import ServeConfig
from .main import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webserve",
        description="A simple static file server with live reload.",
    )
    parser.add_argument("-d", "--dir", dest="root", help="directory to serve (default: current directory)")
    parser.add_argument("-p", "--port", type=int, help="port to listen on (default: 8080)")
    parser.add_argument("-H", "--host", help="address to bind to (default: 127.0.0.1)")
    parser.add_argument("--spa", action="store_true", default=None,
                        help="fall back to index.html for unknown routes")
    parser.add_argument("-w", "--watch", action="store_true", default=None,
                        help="reload connected browsers when files change")
    parser.add_argument("--debounce-ms", type=int, help="quiet period before a reload (default: 200)")
    parser.add_argument("--log-level", help="logging level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(argv=None) -> ServeConfig:
    """Build settings from CLI flags; unset flags fall back to the environment."""
    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    return ServeConfig(**overrides)


def main(argv=None):
    try:
        config = config_from_args(argv)
    except ValidationError as e:
        print(f"webserve: invalid configuration\n{e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
