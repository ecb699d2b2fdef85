"""AEAD envelope encryption for a whole vault snapshot.

Envelope layout (one JSON record, all binary fields hex encoded):

- ``salt``: 32-byte KDF salt the key was derived with
- ``data.iv``: 16 random bytes, fresh for every encryption
- ``data.aad``: ``b"VAULT_V1_" + <epoch ms>``, authenticated but not encrypted
- ``data.data``: AES-256-GCM ciphertext with the 128-bit tag appended
- ``timestamp``: epoch ms of the write, informational only

Decryption never raises. Wrong key, tampered bytes, a malformed record and a
plaintext that is not JSON all collapse into one ``None`` result so callers
cannot tell them apart.
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from vaultbox.core.exceptions import InvalidInputError
from .kdf import SecretKey

FORMAT_TAG = b"VAULT_V1_"
IV_LENGTH = 16
TAG_LENGTH = 16  # 128-bit GCM tag


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class EncryptedEnvelope:
    """Everything needed to attempt decryption of one vault snapshot."""

    salt: bytes
    iv: bytes
    aad: bytes
    ciphertext: bytes
    timestamp: int = 0

    def to_record(self) -> Dict[str, Any]:
        return {
            "salt": self.salt.hex(),
            "data": {
                "iv": self.iv.hex(),
                "aad": self.aad.hex(),
                "data": self.ciphertext.hex(),
            },
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "EncryptedEnvelope":
        """Parse a persisted record; raise InvalidInputError if malformed."""
        try:
            data = record["data"]
            return cls(
                salt=bytes.fromhex(record["salt"]),
                iv=bytes.fromhex(data["iv"]),
                aad=bytes.fromhex(data.get("aad", "")),
                ciphertext=bytes.fromhex(data["data"]),
                timestamp=int(record.get("timestamp", 0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise InvalidInputError(f"Malformed vault envelope: {e}")


def _key_material(key: SecretKey | bytes | bytearray):
    if isinstance(key, SecretKey):
        return key.material
    return key


class AuthenticatedCipher:
    """Encrypts arbitrary JSON-compatible payloads under a 256-bit key."""

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or now_ms

    def encrypt(self, payload: Any, key: SecretKey | bytes | bytearray, salt: bytes = b"") -> EncryptedEnvelope:
        plaintext = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        stamp = self._clock()
        iv = os.urandom(IV_LENGTH)
        aad = FORMAT_TAG + str(stamp).encode("ascii")

        aead = AESGCM(_key_material(key))
        ciphertext = aead.encrypt(iv, plaintext, aad)
        return EncryptedEnvelope(salt=salt, iv=iv, aad=aad, ciphertext=ciphertext, timestamp=stamp)

    def decrypt(self, envelope: EncryptedEnvelope | Dict[str, Any], key: SecretKey | bytes | bytearray) -> Optional[Any]:
        try:
            if not isinstance(envelope, EncryptedEnvelope):
                envelope = EncryptedEnvelope.from_record(envelope)
            if len(envelope.iv) != IV_LENGTH or len(envelope.ciphertext) < TAG_LENGTH:
                return None
            aead = AESGCM(_key_material(key))
            plaintext = aead.decrypt(envelope.iv, envelope.ciphertext, envelope.aad)
            return json.loads(plaintext.decode("utf-8"))
        except (InvalidTag, InvalidInputError, ValueError, TypeError, RuntimeError):
            # one outcome for every failure mode; do not log which one
            return None
