# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Main WopiHost class: WOPI protocol implementation.

WopiHost extends WopiHostBase with the WOPI protocol handlers used by
office editors (Collabora Online, OnlyOffice, Microsoft 365 for the web).

Operations:
    CheckFileInfo  check_file_info(file_id, access_token)
    GetFile        get_file(file_id)
    PutFile        put_file(file_id, lock, content)
    Lock           lock(file_id, lock)            X-WOPI-Override: LOCK
    Unlock         unlock(file_id, lock)          X-WOPI-Override: UNLOCK
    RefreshLock    refresh_lock(file_id, lock)    X-WOPI-Override: REFRESH_LOCK
    GetLock        get_lock(file_id)              X-WOPI-Override: GET_LOCK

POST /files/{file_id} carries the operation in the X-WOPI-Override header.
The header is parsed into the closed WopiOverride enum and dispatched to
the matching handler by handle_override(); codes without a handler raise
NotImplementedOperation (501).

Failures are raised as WopiError subclasses (see errors.py); the HTTP
layer turns them into status codes and the X-WOPI-Lock header.

Usage:
    host = WopiHost(config=wopi_config_from_env())

    # As FastAPI app
    app = host.api

    # Or directly
    await host.start()
    current = await host.lock("doc1", "abc")
    await host.stop()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .errors import (
    AuthError,
    BackendError,
    BlobNotFound,
    CallerError,
    DocumentNotFound,
    NotFound,
    NotImplementedOperation,
    PayloadTooLarge,
    StoreError,
)
from .wopi_base import WopiHostBase

logger = logging.getLogger(__name__)


class WopiOverride(str, Enum):
    """X-WOPI-Override values on POST /files/{file_id}."""

    LOCK = "LOCK"
    UNLOCK = "UNLOCK"
    REFRESH_LOCK = "REFRESH_LOCK"
    GET_LOCK = "GET_LOCK"
    PUT = "PUT"
    PUT_RELATIVE = "PUT_RELATIVE"
    RENAME_FILE = "RENAME_FILE"
    DELETE = "DELETE"
    PUT_USER_INFO = "PUT_USER_INFO"
    GET_SHARE_URL = "GET_SHARE_URL"

    @classmethod
    def parse(cls, value: str | None) -> WopiOverride:
        """Parse a header value.

        Raises:
            CallerError: Header missing or empty.
            NotImplementedOperation: Unknown override code.
        """
        if not value:
            raise CallerError("Missing X-WOPI-Override header")
        try:
            return cls(value)
        except ValueError:
            raise NotImplementedOperation(f"Not Implemented: {value}") from None


@dataclass
class OverrideResult:
    """Outcome of a successful override operation.

    Attributes:
        lock: Value for the X-WOPI-Lock response header (None to omit).
    """

    lock: str | None = None


def _utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with offset."""
    return datetime.now(timezone.utc).isoformat()


class WopiHost(WopiHostBase):
    """WOPI protocol host.

    Mediates every step between the editing client and the storage
    collaborators; holds no document content, only lock state.

    Attributes:
        config: WopiConfig instance
        blobs: BlobStore with document content
        metadata: MetadataStore with document metadata
        locks: LockManager with the lock table
        endpoints: Dict of admin endpoint instances
    """

    def __init__(self, *args: Any, **kwargs: Any):
        """Initialize WopiHost. Accepts the WopiHostBase arguments."""
        super().__init__(*args, **kwargs)
        self._active = False
        self._override_handlers = {
            WopiOverride.LOCK: self._override_lock,
            WopiOverride.UNLOCK: self._override_unlock,
            WopiOverride.REFRESH_LOCK: self._override_refresh_lock,
            WopiOverride.GET_LOCK: self._override_get_lock,
        }

    @property
    def active(self) -> bool:
        return self._active

    async def start(self) -> None:
        """Start the WOPI host service."""
        self._active = True
        logger.info(
            f"WopiHost '{self.config.instance_name}' started "
            f"(backend={self.config.backend}, lock_store={self.config.lock_store})"
        )

    async def stop(self) -> None:
        """Stop the WOPI host service and close collaborator connections."""
        self._active = False
        await self.close()
        logger.info(f"WopiHost '{self.config.instance_name}' stopped")

    # -------------------------------------------------------------------------
    # CheckFileInfo / GetFile
    # -------------------------------------------------------------------------

    async def check_file_info(self, file_id: str, access_token: str | None) -> dict[str, Any]:
        """WOPI CheckFileInfo: return file properties and capabilities.

        Any non-empty access token is accepted; it is a presence check only.

        Args:
            file_id: Document identifier.
            access_token: WOPI access token from the query string.

        Returns:
            CheckFileInfo dict (BaseFileName, OwnerId, Size, UserId, Version,
            capability flags).

        Raises:
            AuthError: Missing access token.
            NotFound: Unknown file_id.
            BackendError: Metadata store failure.
        """
        if not access_token:
            raise AuthError("Unauthorized: Missing access_token")

        logger.info(f"WOPI CheckFileInfo: file_id={file_id}")
        try:
            meta = await self.metadata.get(file_id)
        except DocumentNotFound:
            logger.warning(f"WOPI CheckFileInfo: file not found: {file_id}")
            raise NotFound("File not found") from None
        except StoreError as e:
            raise self._backend_failure(file_id, "CheckFileInfo", e) from e

        size = await self._content_size_or_zero(file_id)

        return {
            "BaseFileName": f"{meta.title or 'Document'}{self.config.file_extension}",
            "OwnerId": meta.owner_id or "",
            "Size": size,
            "UserId": self.config.editor_user_id,
            "UserFriendlyName": self.config.editor_user_id,
            "Version": meta.updated_at or "",
            "UserCanWrite": True,
            "SupportsLocks": True,
            "SupportsGetLock": True,
            "SupportsUpdate": True,
            "UserCanNotWriteRelative": True,
        }

    async def _content_size_or_zero(self, file_id: str) -> int:
        """Best-effort blob size for CheckFileInfo.

        WOPI clients accept Size=0 when the host cannot tell, so any blob
        store failure (missing blob included) reports 0 instead of failing.
        """
        try:
            return await self.blobs.size(self.config.blob_key(file_id))
        except StoreError as e:
            logger.debug(f"WOPI CheckFileInfo: size unavailable for {file_id}, reporting 0 ({e})")
            return 0

    async def get_file(self, file_id: str) -> bytes:
        """WOPI GetFile: return the document bytes.

        Raises:
            NotFound: No blob for file_id.
            BackendError: Blob store failure.
        """
        logger.info(f"WOPI GetFile: file_id={file_id}")
        try:
            content = await self.blobs.download(self.config.blob_key(file_id))
        except BlobNotFound:
            logger.warning(f"WOPI GetFile: blob not found for {file_id}")
            raise NotFound("File blob not found") from None
        except StoreError as e:
            raise self._backend_failure(file_id, "GetFile", e) from e
        logger.info(f"WOPI GetFile: read {len(content)} bytes for {file_id}")
        return content

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    async def lock(self, file_id: str, lock: str | None) -> str:
        """WOPI Lock: acquire, or refresh when the same lock is presented.

        Returns:
            The now-current lock (echoed in X-WOPI-Lock).

        Raises:
            CallerError: Missing X-WOPI-Lock.
            ConflictingLock: Locked with another lock (carries the holder's).
        """
        token = self._require_lock(lock)
        try:
            acquired = await self.locks.acquire(file_id, token)
        except StoreError as e:
            raise self._backend_failure(file_id, "Lock", e) from e
        return acquired.token

    async def unlock(self, file_id: str, lock: str | None) -> None:
        """WOPI Unlock: release the lock held by lock.

        Raises:
            CallerError: Missing X-WOPI-Lock.
            NotLocked: File is not locked.
            ConflictingLock: Locked with another lock.
        """
        token = self._require_lock(lock)
        try:
            await self.locks.release(file_id, token)
        except StoreError as e:
            raise self._backend_failure(file_id, "Unlock", e) from e

    async def refresh_lock(self, file_id: str, lock: str | None) -> str:
        """WOPI RefreshLock: extend the lock held by lock.

        Raises:
            CallerError: Missing X-WOPI-Lock.
            NotLocked: File is not locked.
            ConflictingLock: Locked with another lock.
        """
        token = self._require_lock(lock)
        try:
            refreshed = await self.locks.refresh(file_id, token)
        except StoreError as e:
            raise self._backend_failure(file_id, "RefreshLock", e) from e
        return refreshed.token

    async def get_lock(self, file_id: str) -> str:
        """WOPI GetLock: current lock, empty string when unlocked."""
        try:
            return await self.locks.current_token(file_id) or ""
        except StoreError as e:
            raise self._backend_failure(file_id, "GetLock", e) from e

    def _require_lock(self, lock: str | None) -> str:
        if not lock:
            raise CallerError("Missing X-WOPI-Lock header")
        return lock

    # -------------------------------------------------------------------------
    # Override dispatch
    # -------------------------------------------------------------------------

    async def handle_override(
        self,
        file_id: str,
        override: str | None,
        lock: str | None = None,
        old_lock: str | None = None,
    ) -> OverrideResult:
        """Dispatch a POST /files/{file_id} request by its X-WOPI-Override.

        Args:
            file_id: Document identifier.
            override: Raw X-WOPI-Override header value.
            lock: X-WOPI-Lock header value.
            old_lock: X-WOPI-OldLock header value (not used by this host).

        Raises:
            CallerError: Missing override header.
            NotImplementedOperation: Override without a handler here.
        """
        operation = WopiOverride.parse(override)
        logger.info(f"WOPI POST Operation: {operation.value} for file: {file_id}")
        if old_lock:
            logger.debug(f"WOPI {operation.value}: ignoring X-WOPI-OldLock for {file_id}")

        handler = self._override_handlers.get(operation)
        if handler is None:
            if operation is WopiOverride.PUT:
                raise NotImplementedOperation("Not Implemented - Use /contents endpoint")
            raise NotImplementedOperation(f"Not Implemented: {operation.value}")
        return await handler(file_id, lock)

    async def _override_lock(self, file_id: str, lock: str | None) -> OverrideResult:
        return OverrideResult(lock=await self.lock(file_id, lock))

    async def _override_unlock(self, file_id: str, lock: str | None) -> OverrideResult:
        await self.unlock(file_id, lock)
        return OverrideResult(lock="")

    async def _override_refresh_lock(self, file_id: str, lock: str | None) -> OverrideResult:
        return OverrideResult(lock=await self.refresh_lock(file_id, lock))

    async def _override_get_lock(self, file_id: str, lock: str | None) -> OverrideResult:
        return OverrideResult(lock=await self.get_lock(file_id))

    # -------------------------------------------------------------------------
    # PutFile
    # -------------------------------------------------------------------------

    async def put_file(self, file_id: str, lock: str | None, content: bytes) -> str:
        """WOPI PutFile: replace the document content under the current lock.

        The presented lock must equal the current lock; otherwise storage is
        not touched. The body replaces the whole document. Metadata
        updated_at is written only after the blob upload succeeded.

        Args:
            file_id: Document identifier.
            lock: X-WOPI-Lock header value.
            content: Complete new document bytes.

        Returns:
            New version marker (the metadata updated_at as stored).

        Raises:
            PayloadTooLarge: Body above config.max_upload_bytes.
            LockMismatch: No lock, or a different lock (carries the current).
            CallerError: Empty body.
            BackendError: Blob upload or metadata update failed.
        """
        logger.info(f"WOPI PutFile: file_id={file_id}, {len(content)} bytes")
        if len(content) > self.config.max_upload_bytes:
            raise PayloadTooLarge(
                f"File exceeds {self.config.max_upload_bytes} bytes upload limit"
            )

        try:
            async with self.locks.write_guard(file_id, lock or ""):
                if not content:
                    raise CallerError("Empty file body")

                try:
                    await self.blobs.upload(
                        self.config.blob_key(file_id), content, overwrite=True
                    )
                except StoreError as e:
                    raise self._backend_failure(file_id, "PutFile upload", e) from e

                try:
                    version = await self.metadata.update(file_id, _utc_timestamp())
                except StoreError as e:
                    raise self._backend_failure(file_id, "PutFile metadata update", e) from e
        except StoreError as e:
            raise self._backend_failure(file_id, "PutFile lock check", e) from e

        logger.info(f"WOPI PutFile: saved {len(content)} bytes for {file_id}")
        return version

    def _backend_failure(self, file_id: str, operation: str, error: Exception) -> BackendError:
        logger.error(f"WOPI {operation} failed for file_id={file_id}: {error}", exc_info=error)
        return BackendError("Internal Server Error")


__all__ = ["OverrideResult", "WopiHost", "WopiOverride"]
