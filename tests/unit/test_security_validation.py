"""Unit tests for the input denylist."""

import re

import pytest

from vaultbox.security.validation import InputValidator


@pytest.fixture
def validator():
    return InputValidator()


@pytest.mark.parametrize("value", [
    "example.org",
    "john.doe@example.org",
    "Sup3r$ecret!",
    "",
    "plain note with\nseveral lines",
])
def test_accepts_ordinary_values(validator, value):
    assert validator.validate(value) is True


@pytest.mark.parametrize("value", [
    "<b>bold</b>",
    "<script>alert(1)</script>",
    "javascript:alert(1)",
    "JavaScript:void(0)",
    "x onclick=steal()",
    "onerror = x",
    "data:text/javascript,alert(1)",
    "<iframe src=x",
    "<img src=x",
    "<svg",
    "eval(code)",
    "expression (x)",
    "import os",
    "require('fs')",
])
def test_rejects_denylisted_patterns(validator, value):
    assert validator.validate(value) is False


def test_rejects_non_strings(validator):
    assert validator.validate(None) is False
    assert validator.validate(123) is False
    assert validator.validate(b"bytes") is False


def test_length_limit_is_inclusive(validator):
    assert validator.validate("a" * 50, max_len=50) is True
    assert validator.validate("a" * 51, max_len=50) is False


def test_default_length_limit(validator):
    assert validator.validate("a" * 1000) is True
    assert validator.validate("a" * 1001) is False


def test_custom_patterns():
    validator = InputValidator(patterns=[re.compile("forbidden")])
    assert validator.validate("<b>fine here</b>") is True
    assert validator.validate("forbidden") is False
