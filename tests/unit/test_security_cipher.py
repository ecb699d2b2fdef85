"""Unit tests for the AES-GCM vault envelope."""

import pytest

from vaultbox.core.exceptions import InvalidInputError
from vaultbox.security.cipher import (
    FORMAT_TAG,
    IV_LENGTH,
    TAG_LENGTH,
    AuthenticatedCipher,
    EncryptedEnvelope,
)
from vaultbox.security.kdf import SecretKey


@pytest.fixture
def key():
    return SecretKey(b"k" * 32)


@pytest.fixture
def cipher(clock):
    return AuthenticatedCipher(clock=clock)


PAYLOAD = {"version": 1, "blocks": [{"id": "default", "name": "General"}], "passwords": [], "note": "héllo"}


# --- Encrypt ---

def test_encrypt_decrypt_round_trip(cipher, key):
    env = cipher.encrypt(PAYLOAD, key, salt=b"s" * 32)
    assert cipher.decrypt(env, key) == PAYLOAD


def test_envelope_layout(cipher, key, clock):
    env = cipher.encrypt(PAYLOAD, key)
    assert len(env.iv) == IV_LENGTH
    assert env.aad == FORMAT_TAG + str(clock.now).encode()
    assert env.timestamp == clock.now
    # ciphertext carries the 16-byte tag
    assert len(env.ciphertext) >= TAG_LENGTH


def test_fresh_iv_every_time(cipher, key):
    a = cipher.encrypt(PAYLOAD, key)
    b = cipher.encrypt(PAYLOAD, key)
    assert a.iv != b.iv
    assert a.ciphertext != b.ciphertext


def test_plain_bytes_key_accepted(cipher):
    raw = b"r" * 32
    env = cipher.encrypt(PAYLOAD, raw)
    assert cipher.decrypt(env, bytearray(raw)) == PAYLOAD


# --- Decrypt failures all collapse to None ---

def test_wrong_key_returns_none(cipher, key):
    env = cipher.encrypt(PAYLOAD, key)
    assert cipher.decrypt(env, SecretKey(b"x" * 32)) is None


@pytest.mark.parametrize("field", ["iv", "aad", "ciphertext"])
def test_tampered_field_returns_none(cipher, key, field):
    env = cipher.encrypt(PAYLOAD, key)
    value = bytearray(getattr(env, field))
    value[0] ^= 0x01
    tampered = EncryptedEnvelope(**{**env.__dict__, field: bytes(value)})
    assert cipher.decrypt(tampered, key) is None


def test_tampered_tag_returns_none(cipher, key):
    env = cipher.encrypt(PAYLOAD, key)
    ct = bytearray(env.ciphertext)
    ct[-1] ^= 0xFF
    tampered = EncryptedEnvelope(env.salt, env.iv, env.aad, bytes(ct), env.timestamp)
    assert cipher.decrypt(tampered, key) is None


def test_short_iv_returns_none(cipher, key):
    env = cipher.encrypt(PAYLOAD, key)
    bad = EncryptedEnvelope(env.salt, env.iv[:12], env.aad, env.ciphertext)
    assert cipher.decrypt(bad, key) is None


def test_truncated_ciphertext_returns_none(cipher, key):
    env = cipher.encrypt(PAYLOAD, key)
    bad = EncryptedEnvelope(env.salt, env.iv, env.aad, env.ciphertext[:TAG_LENGTH - 1])
    assert cipher.decrypt(bad, key) is None


def test_wiped_key_returns_none(cipher, key):
    env = cipher.encrypt(PAYLOAD, key)
    key.wipe()
    assert cipher.decrypt(env, key) is None


def test_malformed_record_returns_none(cipher, key):
    assert cipher.decrypt({"salt": "zz", "data": {}}, key) is None
    assert cipher.decrypt({}, key) is None


def test_non_json_plaintext_returns_none(cipher, key):
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM

    iv = b"i" * IV_LENGTH
    aad = FORMAT_TAG + b"1"
    ct = AESGCM(bytes(key.material)).encrypt(iv, b"\xff not json", aad)
    assert cipher.decrypt(EncryptedEnvelope(b"", iv, aad, ct), key) is None


# --- Record form ---

def test_record_round_trip(cipher, key):
    env = cipher.encrypt(PAYLOAD, key, salt=b"s" * 32)
    record = env.to_record()
    assert set(record) == {"salt", "data", "timestamp"}
    assert set(record["data"]) == {"iv", "aad", "data"}
    assert EncryptedEnvelope.from_record(record) == env
    assert cipher.decrypt(record, key) == PAYLOAD


def test_from_record_rejects_bad_hex():
    with pytest.raises(InvalidInputError):
        EncryptedEnvelope.from_record({"salt": "not-hex", "data": {"iv": "", "data": ""}})


def test_from_record_rejects_non_dict():
    with pytest.raises(InvalidInputError):
        EncryptedEnvelope.from_record({"salt": "00", "data": "oops"})
