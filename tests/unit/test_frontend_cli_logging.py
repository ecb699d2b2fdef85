"""Unit tests for CLI logging setup and secret redaction."""

import logging

import pytest
from unittest.mock import patch

from vaultbox.frontend.cli.logging_config import (
    REDACTED,
    RedactingFilter,
    configure_logging,
    level_for,
)


def _record(msg, *args):
    return logging.LogRecord("vaultbox.test", logging.ERROR, __file__, 1, msg, args, None)


# --- RedactingFilter ---

def test_hex_run_is_masked():
    record = _record("Cannot decode salt %s", "ab" * 32)
    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == f"Cannot decode salt {REDACTED}"


def test_base64_run_is_masked():
    record = _record("payload " + "QUJD" * 12 + "==")
    RedactingFilter().filter(record)
    assert record.getMessage() == f"payload {REDACTED}"


def test_ordinary_message_untouched():
    record = _record("Vault %s after %d attempts", "unlocked", 3)
    RedactingFilter().filter(record)
    assert record.args == ("unlocked", 3)
    assert record.getMessage() == "Vault unlocked after 3 attempts"


def test_short_hex_ids_are_kept():
    record = _record("Block blk_%s deleted", "deadbeef")
    RedactingFilter().filter(record)
    assert "deadbeef" in record.getMessage()


# --- level_for ---

@pytest.mark.parametrize("verbose, quiet, expected", [
    (False, False, logging.WARNING),
    (True, False, logging.INFO),
    (False, True, logging.ERROR),
])
def test_level_for(verbose, quiet, expected):
    assert level_for(verbose, quiet, logging.WARNING) == expected


# --- configure_logging ---

def test_configure_logging_installs_filter_once():
    handler = logging.StreamHandler()
    root = logging.getLogger()
    root.addHandler(handler)
    try:
        with patch("vaultbox.frontend.cli.logging_config.logging.basicConfig") as basic:
            configure_logging(logging.INFO)
            configure_logging(logging.INFO)
        assert basic.call_count == 2
        assert sum(isinstance(f, RedactingFilter) for f in handler.filters) == 1
    finally:
        root.removeHandler(handler)
