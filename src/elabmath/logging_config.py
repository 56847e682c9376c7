"""Logging setup for the command line and the server."""

import logging
import sys


def setup_logging(level: str = "WARNING") -> None:
    """
    Send log records to stderr.

    stdout is reserved for transformed document content when running the
    evaluator from the command line.
    """
    formatter = logging.Formatter("%(levelname)-8s | %(name)-30s | %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # pint logs every redefinition at warning level
    logging.getLogger("pint").setLevel(logging.ERROR)
