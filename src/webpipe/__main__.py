"""
Command line entry point: ``python -m webpipe`` or ``webpipe``.

Settings start from the HTTP_* environment variables (ServerConfig.from_env)
and command line flags override them.

    webpipe --static ./public                      # /static/* → ./public/*
    webpipe --static ./site --prefix / --index index.html --index index.htm
    webpipe --url-root /shop --static-root /srv/shop/ --static public
"""

import argparse
import logging
import sys

from . import __version__
from .config import ServerConfig
from .server import create_app


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webpipe",
        description="Threaded HTTP server with a two-phase interceptor pipeline "
                    "and chunked static file serving",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("--host", "-H", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Minimum worker threads; the maximum is twice this",
    )

    static = parser.add_argument_group("static files")
    static.add_argument("--static", "-s", dest="static_dir", help="Directory to serve")
    static.add_argument("--prefix", dest="static_url_prefix", help="URL prefix (default: /static)")
    static.add_argument("--url-root", help="URL path the application is mounted at")
    static.add_argument("--static-root", help="Directory relative static dirs hang off")
    static.add_argument("--max-age", type=int, dest="static_cache_max_age",
                        help="Cache-Control max-age in seconds (default: 300)")
    static.add_argument("--index", action="append", dest="index_files", metavar="NAME",
                        help="Default filename for directory URLs; repeat for fallbacks")

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-format", choices=["text", "json"], help="Access log format")
    parser.add_argument("--version", "-v", action="version", version=f"webpipe {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    config = ServerConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "url_root": args.url_root,
        "static_root": args.static_root,
        "static_dir": args.static_dir,
        "static_url_prefix": args.static_url_prefix,
        "static_cache_max_age": args.static_cache_max_age,
        "index_files": args.index_files,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    if args.workers is not None:
        config.min_workers = args.workers
        config.max_workers = args.workers * 2

    return config


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = create_app(config)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    if config.static_dir is not None:
        logger.info(f"Serving {config.static_dir!r} under {config.url_root + config.static_url_prefix!r}")

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
