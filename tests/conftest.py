"""Shared fixtures: an in-memory DocumentStore with sha-style versioning."""

from __future__ import annotations

import pytest

from ledgerrelay.store_backend import StaleVersionError, StoredDocument


class FakeStore:
    """In-memory DocumentStore.

    Each write bumps the document's token; a write carrying a token that
    no longer matches raises StaleVersionError, as does a create over an
    existing document. ``before_put`` runs between a caller's fetch and
    its write, to simulate a concurrent writer.
    """

    def __init__(self) -> None:
        self.documents: dict[str, tuple[bytes, str]] = {}
        self.gets: list[str] = []
        self.puts: list[tuple[str, bytes, str, str | None]] = []
        self.before_put = None
        self._version = 0

    def seed(self, path: str, content: bytes) -> str:
        self._version += 1
        token = f"sha-{self._version}"
        self.documents[path] = (content, token)
        return token

    async def get_document(self, path: str) -> StoredDocument | None:
        self.gets.append(path)
        if path not in self.documents:
            return None
        content, token = self.documents[path]
        return StoredDocument(content=content, token=token, location=self.location(path))

    async def put_document(
        self,
        path: str,
        content: bytes,
        message: str,
        token: str | None = None,
    ) -> str:
        if self.before_put is not None:
            hook, self.before_put = self.before_put, None
            hook(self)
        self.puts.append((path, content, message, token))
        current = self.documents.get(path)
        if current is None and token is not None:
            raise StaleVersionError(f"{path} does not exist", status_code=409)
        if current is not None and current[1] != token:
            raise StaleVersionError(f"{path} does not match {token}", status_code=409)
        self.seed(path, content)
        return self.location(path)

    @staticmethod
    def location(path: str) -> str:
        return f"https://github.com/octo/relay-data/blob/main/{path}"


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
