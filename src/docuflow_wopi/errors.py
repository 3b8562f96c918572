# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""WOPI error taxonomy.

Every protocol failure is a WopiError subclass carrying the HTTP status
code it maps to. Lock-related errors also carry the value the host must
return in the X-WOPI-Lock response header (the current holder's token,
or an empty string when the file is unlocked).

Hierarchy:
    WopiError
        CallerError           400  missing header/param, empty body
        AuthError             401  missing access token
        NotFound              404  unknown file_id or missing blob
        LockError             409  base for lock conflicts
            ConflictingLock        lock held by a different token
            LockMismatch           PutFile presented wrong/absent token
            NotLocked              Unlock/RefreshLock on unlocked file
        PayloadTooLarge       413  PutFile body above max_upload_bytes
        BackendError          500  blob/metadata store failure
        NotImplementedOperation 501  unsupported override code

Storage backends raise their own StoreError family; WopiHost translates
them into NotFound / BackendError.
"""

from __future__ import annotations


class WopiError(Exception):
    """Base class for all WOPI protocol errors.

    Attributes:
        status_code: HTTP status code for the response.
        lock: Value for X-WOPI-Lock header, or None to omit the header.
    """

    status_code: int = 500

    def __init__(self, message: str = "", lock: str | None = None):
        super().__init__(message)
        self.message = message
        self.lock = lock


class CallerError(WopiError):
    status_code = 400


class AuthError(WopiError):
    status_code = 401


class NotFound(WopiError):
    status_code = 404


class LockError(WopiError):
    """Base for 409 lock outcomes. Always carries an X-WOPI-Lock value."""

    status_code = 409

    def __init__(self, message: str = "", lock: str | None = None):
        super().__init__(message, lock=lock or "")


class ConflictingLock(LockError):
    """The file is locked with a different token (the current holder's)."""

    def __init__(self, current_token: str):
        super().__init__("Conflict", lock=current_token)

    @property
    def current_token(self) -> str:
        return self.lock or ""


class LockMismatch(LockError):
    """PutFile presented a token that is not the current lock."""

    def __init__(self, current_token: str | None):
        super().__init__("Lock mismatch", lock=current_token or "")


class NotLocked(LockError):
    """Unlock or RefreshLock on a file that holds no lock."""

    def __init__(self) -> None:
        super().__init__("File not locked", lock="")


class PayloadTooLarge(WopiError):
    status_code = 413


class BackendError(WopiError):
    status_code = 500


class NotImplementedOperation(WopiError):
    status_code = 501


# -----------------------------------------------------------------------------
# Storage backend errors
# -----------------------------------------------------------------------------


class StoreError(Exception):
    """I/O failure in a blob or metadata store."""


class BlobNotFound(StoreError):
    """No blob stored under the requested key."""


class DocumentNotFound(StoreError):
    """No metadata row for the requested file_id."""


__all__ = [
    "AuthError",
    "BackendError",
    "BlobNotFound",
    "CallerError",
    "ConflictingLock",
    "DocumentNotFound",
    "LockError",
    "LockMismatch",
    "NotFound",
    "NotImplementedOperation",
    "NotLocked",
    "PayloadTooLarge",
    "StoreError",
    "WopiError",
]
