"""Operator log setup for both processes."""
import logging
import sys


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def configure_logging(level: int = logging.INFO) -> None:
    """Route informational records to stdout and problems to stderr.

    Records are written as bare messages so readiness lines read exactly as
    the operator expects them, e.g. ``Backend is running on port 5000``.
    """
    formatter = logging.Formatter("%(message)s")

    out = logging.StreamHandler(sys.stdout)
    out.setFormatter(formatter)
    out.addFilter(_BelowWarning())

    err = logging.StreamHandler(sys.stderr)
    err.setFormatter(formatter)
    err.setLevel(logging.WARNING)

    root = logging.getLogger()
    root.handlers = [out, err]
    root.setLevel(level)
