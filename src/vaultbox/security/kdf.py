"""Password-based key derivation for the vault master key.

Two deliberately slow KDFs are supported:

- ``pbkdf2-sha256`` (default): PBKDF2-HMAC-SHA256, 300,000 iterations
- ``argon2id``: Argon2id with a tunable time/memory cost

Both produce a 256-bit key. The algorithm and its parameters are stored in
clear next to the salt so the same key can be re-derived later; the key itself
is never persisted.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from vaultbox.core.exceptions import InvalidInputError
from .memory import to_buffer, zeroize

PBKDF2_SHA256 = "pbkdf2-sha256"
ARGON2ID = "argon2id"

PBKDF2_ITERATIONS = 300_000
SALT_LENGTH = 32
KEY_LENGTH = 32  # AES-256

# Bounds for parameters read back from a record; the kdf field is not authenticated
MAX_PBKDF2_ITERATIONS = 10_000_000
MAX_ARGON2_TIME_COST = 64
MAX_ARGON2_MEMORY_COST = 1024 * 1024  # KiB, 1 GiB
MAX_ARGON2_PARALLELISM = 64


def generate_salt(length: int = SALT_LENGTH) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


class SecretKey:
    """Derived key material held in a zeroable buffer.

    The repr never shows the bytes, so a key that ends up in a log line or a
    traceback does not leak.
    """

    __slots__ = ("_material",)

    def __init__(self, material: bytes | bytearray):
        self._material = bytearray(material)

    @property
    def material(self) -> bytearray:
        if not self._material:
            raise RuntimeError("Key has been wiped")
        return self._material

    def wipe(self) -> None:
        zeroize(self._material)
        del self._material[:]

    def __len__(self) -> int:
        return len(self._material)

    def __eq__(self, other):
        if not isinstance(other, SecretKey):
            return NotImplemented
        return bytes(self._material) == bytes(other._material)

    def __hash__(self):
        return id(self)

    def __repr__(self):
        return f"SecretKey(<{len(self._material)} bytes redacted>)"


def derive_pbkdf2(password: bytes | bytearray, salt: bytes, iterations: int = PBKDF2_ITERATIONS,
                  key_len: int = KEY_LENGTH) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=key_len,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password)


def derive_argon2id(
    password: bytes | bytearray,
    salt: bytes,
    time_cost: int = 3,
    memory_cost: int = 65536,
    parallelism: int = 1,
    key_len: int = KEY_LENGTH,
) -> bytes:
    """
    Derive a key from a password using Argon2id.
    Returns raw derived key bytes.
    """
    # argon2-cffi wants an immutable bytes object here
    return hash_secret_raw(
        secret=bytes(password),
        salt=salt,
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=key_len,
        type=Type.ID,
    )


def _as_int(value) -> int:
    # bool is an int subclass; a stored true/false is never a valid cost
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"expected an integer, got {type(value).__name__}")
    return int(value)


def kdf_params_to_dict(algorithm: str, **params) -> Dict[str, Any]:
    return {"algo": algorithm, **params}


class KeyDerivationService:
    """Turns a master password and a salt into a :class:`SecretKey`.

    ``derive`` fails with :class:`InvalidInputError` when the password is empty
    or the salt is shorter than :data:`SALT_LENGTH` bytes. The password is
    copied into a ``bytearray`` that is zeroed as soon as derivation returns,
    whether it succeeded or not.
    """

    def __init__(
        self,
        algorithm: str = PBKDF2_SHA256,
        iterations: int = PBKDF2_ITERATIONS,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 1,
    ):
        if algorithm not in (PBKDF2_SHA256, ARGON2ID):
            raise InvalidInputError(f"Unsupported KDF algorithm: {algorithm}")
        if not 1 <= iterations <= MAX_PBKDF2_ITERATIONS:
            raise InvalidInputError(f"iterations must be between 1 and {MAX_PBKDF2_ITERATIONS}")
        if not 1 <= time_cost <= MAX_ARGON2_TIME_COST:
            raise InvalidInputError(f"time_cost must be between 1 and {MAX_ARGON2_TIME_COST}")
        if not 1 <= parallelism <= MAX_ARGON2_PARALLELISM:
            raise InvalidInputError(f"parallelism must be between 1 and {MAX_ARGON2_PARALLELISM}")
        # argon2 needs at least 8 KiB per lane
        if not 8 * parallelism <= memory_cost <= MAX_ARGON2_MEMORY_COST:
            raise InvalidInputError(
                f"memory_cost must be between {8 * parallelism} and {MAX_ARGON2_MEMORY_COST} KiB"
            )
        self.algorithm = algorithm
        self.iterations = iterations
        self.time_cost = time_cost
        self.memory_cost = memory_cost
        self.parallelism = parallelism

    @classmethod
    def from_params(cls, params: Optional[Dict[str, Any]]) -> "KeyDerivationService":
        """Rebuild a service from the ``kdf`` field of a stored vault record.

        A missing field means the record predates KDF tagging and was written
        with PBKDF2-SHA256 at the default iteration count. Anything else that
        is not a well formed parameter set raises :class:`InvalidInputError`.
        """
        if params is None:
            return cls()
        if not isinstance(params, dict):
            raise InvalidInputError("KDF parameters must be an object")
        if not params:
            return cls()
        try:
            algorithm = params.get("algo", PBKDF2_SHA256)
            if algorithm == ARGON2ID:
                return cls(
                    algorithm=ARGON2ID,
                    time_cost=_as_int(params.get("time", 3)),
                    memory_cost=_as_int(params.get("memory", 65536)),
                    parallelism=_as_int(params.get("parallelism", 1)),
                )
            return cls(algorithm=algorithm, iterations=_as_int(params.get("iterations", PBKDF2_ITERATIONS)))
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Malformed KDF parameters: {e}")

    def params(self) -> Dict[str, Any]:
        if self.algorithm == ARGON2ID:
            return kdf_params_to_dict(
                ARGON2ID,
                time=self.time_cost,
                memory=self.memory_cost,
                parallelism=self.parallelism,
            )
        return kdf_params_to_dict(PBKDF2_SHA256, iterations=self.iterations)

    def derive(self, password: str | bytes | bytearray, salt: bytes) -> SecretKey:
        if password is None or len(password) == 0:
            raise InvalidInputError("Password must not be empty")
        if salt is None or len(salt) < SALT_LENGTH:
            raise InvalidInputError(f"Salt must be at least {SALT_LENGTH} bytes")

        buffer = to_buffer(password)
        try:
            if self.algorithm == ARGON2ID:
                raw = derive_argon2id(
                    buffer,
                    salt,
                    time_cost=self.time_cost,
                    memory_cost=self.memory_cost,
                    parallelism=self.parallelism,
                )
            else:
                raw = derive_pbkdf2(buffer, salt, iterations=self.iterations)
            return SecretKey(raw)
        except HashingError as e:
            raise InvalidInputError(f"Key derivation rejected its parameters: {e}")
        finally:
            zeroize(buffer)
            # the caller's own buffer can be scrubbed too
            if isinstance(password, bytearray):
                zeroize(password)
