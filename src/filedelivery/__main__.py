"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

    python -m filedelivery --root ./files
    python -m filedelivery --folder media=/srv/media --folder docs=/srv/docs
    python -m filedelivery --root ./files --sendfile nginx --internal-path /internal/

Flags override FILEDELIVERY_* environment variables, which override the
ServerConfig defaults.

=============================================================================
"""

import argparse
import sys
from typing import Dict, List, Optional

from . import __version__
from .config import ServerConfig
from .server import FileServer


def parse_folders(values: List[str]) -> Dict[str, str]:
    """["media=/srv/media", ...] → {"media": "/srv/media", ...}"""
    folders = {}
    for value in values:
        folder_id, sep, path = value.partition("=")
        if not sep or not folder_id or not path:
            raise argparse.ArgumentTypeError(f"Expected ID=PATH, got {value!r}")
        folders[folder_id] = path
    return folders


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filedelivery",
        description="Serve files with byte-range support or front-end sendfile delegation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m filedelivery --root ./files                 # GET /files/<path>
  python -m filedelivery --folder media=/srv/media      # GET /media/<path>
  python -m filedelivery --root ./files --sendfile nginx
  python -m filedelivery --root ./files --chunk-size 65536
        """
    )

    parser.add_argument("--host", "-H", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument("--workers", "-w", type=int, help="Worker threads (default: 16)")
    parser.add_argument("--root", "-r", help="Directory served under /files/")
    parser.add_argument(
        "--folder", "-f",
        action="append",
        default=[],
        metavar="ID=PATH",
        help="Register a folder served under /ID/ (repeatable)",
    )
    parser.add_argument(
        "--sendfile",
        help="Delegate transfers: off, x-sendfile (apache, litespeed), x-accel-redirect (nginx)",
    )
    parser.add_argument("--internal-path", help="X-Accel-Redirect location prefix (default: /protected/)")
    parser.add_argument("--chunk-size", type=int, help="Fixed read size in bytes for every file type")
    parser.add_argument("--no-ranges", action="store_true", help="Ignore Range headers")
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-format", choices=["text", "json"], help="Access log format")
    parser.add_argument("--version", "-v", action="version", version=f"filedelivery {__version__}")

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then every flag that was given."""
    config = ServerConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "max_workers": args.workers,
        "root_dir": args.root,
        "sendfile": args.sendfile,
        "internal_path": args.internal_path,
        "chunk_size": args.chunk_size,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    if args.folder:
        config.folders.update(parse_folders(args.folder))
    if args.no_ranges:
        config.enable_range = False

    return config


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        server = FileServer(config)
    except (ValueError, argparse.ArgumentTypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if not server.registry.all():
        print("Warning: no folders registered, every request will be a 404", file=sys.stderr)

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
