"""Logging setup for the CLI.

Records go to stderr so listings on stdout stay pipeable. Every handler gets
a :class:`RedactingFilter`, which masks long hex and base64 runs before they
are written. Salts, IVs and ciphertext are hex in the vault record, so a
record that ends up in an error message is not echoed to the terminal.
"""

import logging
import re
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

REDACTED = "<redacted>"
SECRET_RUN = re.compile(r"\b[0-9a-fA-F]{32,}\b|[A-Za-z0-9+/]{40,}={0,2}")


class RedactingFilter(logging.Filter):
    """Masks anything in a record's message that looks like key material."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = SECRET_RUN.sub(REDACTED, message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def level_for(verbose: bool, quiet: bool, default: int) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.INFO
    return default


def configure_logging(level: int = logging.WARNING) -> None:
    # root logger only; basicConfig is a no-op if handlers already exist
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT, stream=sys.stderr)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RedactingFilter) for f in handler.filters):
            handler.addFilter(RedactingFilter())
