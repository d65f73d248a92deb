"""Async HTTP client for the GitHub repository contents API.

Implements the ``DocumentStore`` protocol on top of a single file path
per document. The blob ``sha`` GitHub returns with each file is the
version token; passing it back on PUT makes the write conditional.
"""

from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import quote

import httpx

from ledgerrelay.constants import DEFAULT_BRANCH, GITHUB_API_BASE
from ledgerrelay.store_backend import (
    RemoteStoreError,
    StaleVersionError,
    StoreAuthError,
    StoreConnectionError,
    StoredDocument,
    StoreServerError,
    StoreTimeoutError,
    StoreValidationError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Status code → exception mapping
# ---------------------------------------------------------------------------

_STATUS_MAP: dict[int, type[RemoteStoreError]] = {
    401: StoreAuthError,
    403: StoreAuthError,
    409: StaleVersionError,
    412: StaleVersionError,
    422: StoreValidationError,
}


def _error_message(response: httpx.Response) -> str:
    """Pull GitHub's ``message`` field out of an error body, if any."""
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GitHubContentsClient:
    """Async client for ``/repos/{owner}/{repo}/contents/{path}``.

    Constructor accepts explicit params — no env-var loading.
    All documents are read from and written to ``branch``.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        branch: str = DEFAULT_BRANCH,
        api_base: str = GITHUB_API_BASE,
    ) -> None:
        self._owner = owner
        self._repo = repo
        self._branch = branch
        self._client = httpx.AsyncClient(
            base_url=api_base.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "ledgerrelay",
            },
            timeout=httpx.Timeout(connect=5.0, read=15.0, write=15.0, pool=5.0),
        )

    def _contents_url(self, path: str) -> str:
        # Client-supplied names may contain "#" or "?", which would end the path.
        return f"/repos/{self._owner}/{self._repo}/contents/{quote(path.lstrip('/'), safe='/')}"

    # -- internal request dispatcher -----------------------------------------

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request, mapping transport failures to store exceptions."""
        try:
            return await self._client.request(
                method, endpoint, json=json_data, params=params
            )
        except httpx.TimeoutException as exc:
            raise StoreTimeoutError(str(exc) or "request timed out") from exc
        except httpx.HTTPError as exc:
            raise StoreConnectionError(str(exc)) from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        """Map GitHub error responses to the store exception hierarchy."""
        if response.status_code < 400:
            return
        message = _error_message(response)
        exc_cls = _STATUS_MAP.get(response.status_code)
        if exc_cls is not None:
            raise exc_cls(message, status_code=response.status_code)
        if response.status_code >= 500:
            raise StoreServerError(message, status_code=response.status_code)
        raise RemoteStoreError(message, status_code=response.status_code)

    # -- DocumentStore protocol -----------------------------------------------

    async def get_document(self, path: str) -> StoredDocument | None:
        """GET contents/{path} — decoded content plus its blob sha.

        Returns None on 404 (document or branch does not exist yet).
        """
        response = await self._request(
            "GET", self._contents_url(path), params={"ref": self._branch}
        )
        if response.status_code == 404:
            return None
        self._raise_for_status(response)

        data = response.json()
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise RemoteStoreError(f"{path} is not a file")

        sha = data.get("sha")
        encoded = data.get("content") or ""
        size = int(data.get("size") or 0)
        if data.get("encoding", "base64") != "base64" or (not encoded and size > 0):
            # Files over 1 MB come back with ``encoding: none`` and no content.
            content = await self._get_blob(path, sha)
        else:
            # GitHub wraps base64 at 60 columns; b64decode discards the newlines.
            content = base64.b64decode(encoded) if encoded else b""
        return StoredDocument(
            content=content,
            token=sha,
            location=data.get("html_url"),
        )

    async def _get_blob(self, path: str, sha: str | None) -> bytes:
        """GET git/blobs/{sha} — full content of a file too large for contents/."""
        if not sha:
            raise RemoteStoreError(f"{path} has no inline content and no blob sha")
        response = await self._request(
            "GET", f"/repos/{self._owner}/{self._repo}/git/blobs/{sha}"
        )
        self._raise_for_status(response)

        data = response.json()
        if not isinstance(data, dict) or data.get("encoding") != "base64":
            raise RemoteStoreError(f"Blob {sha} for {path} is not base64-encoded")
        content = base64.b64decode(data.get("content") or "")
        if data.get("size") is not None and len(content) != int(data["size"]):
            raise RemoteStoreError(
                f"Blob {sha} for {path} is truncated ({len(content)} of {data['size']} bytes)"
            )
        return content

    async def put_document(
        self,
        path: str,
        content: bytes,
        message: str,
        token: str | None = None,
    ) -> str:
        """PUT contents/{path} — create or update the file on the branch.

        With ``token`` the update only applies if the file's sha still
        matches. Without it GitHub creates the file and answers 422 if the
        file already exists, which means another writer created it first.
        Returns the file's ``html_url``.
        """
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self._branch,
        }
        if token is not None:
            payload["sha"] = token

        response = await self._request(
            "PUT", self._contents_url(path), json_data=payload
        )
        if response.status_code == 422 and token is None:
            raise StaleVersionError(
                _error_message(response), status_code=response.status_code
            )
        self._raise_for_status(response)

        data = response.json()
        location = (data.get("content") or {}).get("html_url", "")
        logger.info("Wrote %s to %s/%s@%s.", path, self._owner, self._repo, self._branch)
        return location

    # -- lifecycle ------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> GitHubContentsClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
