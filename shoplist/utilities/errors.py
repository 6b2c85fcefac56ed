"""Error taxonomy shared by the storage layer, the managers and the API.

StorageError        underlying I/O failure, surfaced as-is (no retry)
NotFound            id has no matching record; callers treat it as recoverable
ValidationError     rejected before any mutation
  DuplicateItem     catalog item already on the list
  LastVariant       deleting the only brand variant of an item
  SessionConflict   another list already has the active session
InvalidFormat       import file is not a valid .shoplist payload
UnsupportedVersion  import file was written by a newer format version
"""
from typing import Optional


class ShoplistError(Exception):
    """Base class for every error raised by the core."""


class StorageError(ShoplistError):
    pass


class NotFound(ShoplistError):
    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier


class ValidationError(ShoplistError):
    pass


class DuplicateItem(ValidationError):
    pass


class LastVariant(ValidationError):
    pass


class SessionConflict(ValidationError):
    def __init__(self, message: str, active_list_id: Optional[str] = None):
        super().__init__(message)
        self.active_list_id = active_list_id


class InvalidFormat(ShoplistError):
    pass


class UnsupportedVersion(ShoplistError):
    def __init__(self, version: int, supported: int):
        super().__init__(
            f"List file version {version} is newer than supported version {supported}; "
            "please update to import it."
        )
        self.version = version
        self.supported = supported


__all__ = [
    'ShoplistError', 'StorageError', 'NotFound', 'ValidationError', 'DuplicateItem',
    'LastVariant', 'SessionConflict', 'InvalidFormat', 'UnsupportedVersion',
]
