"""Command-line interface for elabmath."""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

from .config import settings
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="elabmath - Evaluate {{ expression }} placeholders in lab notebook documents"
    )
    parser.add_argument(
        "--log-level", default=settings.log_level, help="Log level for stderr (default: WARNING)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Evaluate command
    evaluate_parser = subparsers.add_parser(
        "evaluate", help="Transform a UTF-8 HTML file and print the result to stdout"
    )
    evaluate_parser.add_argument("file", type=Path, help="File to transform")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help="Host to bind to (default: 127.0.0.1)"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help="Port to bind to (default: 8000)"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "evaluate":
        sys.exit(run_evaluate(args.file))
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    else:
        parser.print_help()
        sys.exit(1)


def run_evaluate(path: Path) -> int:
    """Transform a file and write the result to stdout. Returns the exit code."""
    from .placeholders import PlaceholderScanner
    from .units import UnitConfigurationError

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"Error: {path} is not valid UTF-8: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: cannot read {path}: {e}", file=sys.stderr)
        return 1

    try:
        scanner = PlaceholderScanner(settings=settings)
    except UnitConfigurationError as e:
        print(f"Error: unit configuration failed: {e}", file=sys.stderr)
        return 1

    result = scanner.scan(content)
    if result.failures:
        logger.info(f"{len(result.failures)} of {len(result.outcomes)} placeholders left as written")

    sys.stdout.buffer.write(result.content.encode("utf-8"))
    sys.stdout.buffer.flush()
    return 0


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "elabmath.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":
    main()
