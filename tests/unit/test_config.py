"""Unit tests for environment driven settings."""

import logging
from pathlib import Path

import pytest

from vaultbox.core.config import Settings
from vaultbox.core.exceptions import InvalidInputError
from vaultbox.security.kdf import ARGON2ID, PBKDF2_ITERATIONS, PBKDF2_SHA256


def test_defaults():
    settings = Settings.from_env({})
    assert settings.db_path == Path.home() / ".vaultbox" / "vault.db"
    assert settings.kdf_algorithm == PBKDF2_SHA256
    assert settings.kdf_iterations == PBKDF2_ITERATIONS
    assert settings.log_level == logging.WARNING


def test_overrides(tmp_path):
    settings = Settings.from_env({
        "VAULTBOX_DB_PATH": str(tmp_path / "v.db"),
        "VAULTBOX_KDF": " Argon2ID ",
        "VAULTBOX_KDF_ITERATIONS": "1000",
        "VAULTBOX_LOG_LEVEL": "debug",
    })
    assert settings.db_path == tmp_path / "v.db"
    assert settings.kdf_algorithm == ARGON2ID
    assert settings.kdf_iterations == 1000
    assert settings.log_level == logging.DEBUG


def test_bad_iterations_raise():
    with pytest.raises(InvalidInputError):
        Settings.from_env({"VAULTBOX_KDF_ITERATIONS": "many"})


def test_unknown_log_level_keeps_default():
    assert Settings.from_env({"VAULTBOX_LOG_LEVEL": "chatty"}).log_level == logging.WARNING


def test_build_kdf():
    kdf = Settings(kdf_iterations=1000).build_kdf()
    assert kdf.params() == {"algo": PBKDF2_SHA256, "iterations": 1000}


def test_build_kdf_rejects_unknown_algorithm():
    with pytest.raises(InvalidInputError):
        Settings(kdf_algorithm="rot13").build_kdf()


def test_reads_process_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("VAULTBOX_DB_PATH", str(tmp_path / "env.db"))
    assert Settings.from_env().db_path == tmp_path / "env.db"
