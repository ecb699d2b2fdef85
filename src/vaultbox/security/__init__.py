"""Security helpers: KDF, AEAD envelope, session clock and input gates for VaultBox.

This package provides:
- PBKDF2-SHA256 (default) or Argon2id master key derivation
- AES-256-GCM envelope encryption of a whole vault snapshot
- pure session expiry arithmetic plus a polling auto-lock watcher
- rate limiting and denylist validation for user input
- random password generation
"""

from .kdf import generate_salt, KeyDerivationService, SecretKey
from .cipher import AuthenticatedCipher, EncryptedEnvelope
from .session import SessionClock, ExpiryWatcher
from .ratelimit import RateLimiter
from .validation import InputValidator
from .memory import zeroize
from .generator import generate_password, generate_quick_password

__all__ = [
    "generate_salt",
    "KeyDerivationService",
    "SecretKey",
    "AuthenticatedCipher",
    "EncryptedEnvelope",
    "SessionClock",
    "ExpiryWatcher",
    "RateLimiter",
    "InputValidator",
    "zeroize",
    "generate_password",
    "generate_quick_password",
]
