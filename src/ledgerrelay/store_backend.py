"""Abstract interface for the remote versioned-document store.

Defines the DocumentStore Protocol that LedgerSync and the upload relay
depend on, plus the exception hierarchy every store implementation raises.
Concrete implementations (e.g., GitHubContentsClient) live elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class RemoteStoreError(Exception):
    """Base exception for remote store operations."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreAuthError(RemoteStoreError):
    """401/403 — bad or under-scoped credentials."""


class StaleVersionError(RemoteStoreError):
    """The version token no longer matches the document (retry from fetch)."""


class StoreValidationError(RemoteStoreError):
    """422 — request rejected by the store."""


class StoreServerError(RemoteStoreError):
    """5xx — server-side error."""


class StoreConnectionError(RemoteStoreError):
    """Network/DNS failure."""


class StoreTimeoutError(RemoteStoreError):
    """Request timeout."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoredDocument:
    """A document as fetched from the store, with its version token."""

    content: bytes
    token: str | None = None
    location: str | None = None


@runtime_checkable
class DocumentStore(Protocol):
    """Async versioned-document store.

    ``get_document`` returns None when the path does not exist.
    ``put_document`` writes ``content`` at ``path``; when ``token`` is given
    the write only succeeds if the document is still at that version,
    otherwise it raises StaleVersionError. Returns the document location.
    """

    async def get_document(self, path: str) -> StoredDocument | None: ...

    async def put_document(
        self,
        path: str,
        content: bytes,
        message: str,
        token: str | None = None,
    ) -> str: ...
