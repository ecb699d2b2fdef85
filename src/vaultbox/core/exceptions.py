"""
Exceptions for VaultBox core module
This is placed such that there is a general error catcher
"""


class VaultBoxError(Exception):
    # general container for errors
    pass


class InvalidInputError(VaultBoxError):
    # raised on malformed passwords, salts or user supplied fields
    pass


class StorageError(VaultBoxError):
    # raised if the persistence backend fails to read or write a record
    pass


class RateLimitedError(VaultBoxError):
    # raised when too many auth attempts happened inside one window
    pass


class NotAuthenticatedError(VaultBoxError):
    # raised when a content operation runs without a live session
    pass


class PasswordMismatchError(InvalidInputError):
    # raised when the confirmation does not match on first setup
    pass


class BlockNotFoundError(VaultBoxError):
    # raised when block DNE in the vault
    pass


class ProtectedBlockError(VaultBoxError):
    # raised when deleting the default block
    pass


class EntryNotFoundError(VaultBoxError):
    # raised when a password, note or person id DNE
    pass
