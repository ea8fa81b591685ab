"""Figma REST API client for design-file extraction.

Fetches file documents, published styles and local variables using
Personal Access Token (PAT) authentication, and parses them into the
models in designsync.models.

Environment:
    FIGMA_TOKEN - Figma Personal Access Token (required)

Usage:
    client = FigmaClient()
    document = await client.fetch_file("6kGd851qaAX4TiL44vpIrO")
    styles = await client.fetch_styles("6kGd851qaAX4TiL44vpIrO")
    variables, collections = await client.fetch_variables("6kGd851qaAX4TiL44vpIrO")
"""

import logging
import os
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx

from ..config import FIGMA_API_BASE, FIGMA_TOKEN
from ..models import DesignDocument, StyleRecord, Variable, VariableCollection
from ..settings import (
    FIGMA_HTTP_MAX_CONNECTIONS,
    FIGMA_HTTP_MAX_KEEPALIVE,
    FIGMA_HTTP_TIMEOUT,
)

logger = logging.getLogger("designsync.integrations.figma")


class FigmaClientError(Exception):
    """Raised when the client is misconfigured."""


class FigmaApiError(Exception):
    """Raised when a Figma API call fails.

    Attributes:
        status: HTTP status code, or None when no response was received.
        message: Human-readable reason (Figma's ``message``/``err`` when present).
        err: Raw ``err`` field of the error body, if any.
    """

    def __init__(self, status: Optional[int], message: str, err: Optional[str] = None):
        self.status = status
        self.message = message
        self.err = err
        super().__init__(f"Figma API error {status}: {message}" if status else message)


class DesignFileFetcher(Protocol):
    """The fetch surface the extractors depend on. FigmaClient implements it."""

    async def fetch_file(self, file_id: str) -> DesignDocument: ...

    async def fetch_styles(self, file_id: str) -> List[StyleRecord]: ...

    async def fetch_variables(
        self, file_id: str
    ) -> Tuple[List[Variable], List[VariableCollection]]: ...


def _as_list(value: Any) -> List[Dict[str, Any]]:
    """Figma returns variables/collections as id-keyed maps; accept lists too."""
    if isinstance(value, dict):
        return list(value.values())
    return list(value or [])


class FigmaClient:
    """Async Figma REST API client.

    Args:
        token: Figma PAT. Falls back to FIGMA_TOKEN env var.
        timeout: HTTP request timeout in seconds.
        base_url: API root, mainly for tests and proxies.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = FIGMA_HTTP_TIMEOUT,
        base_url: str = FIGMA_API_BASE,
    ):
        self._token = token or os.getenv("FIGMA_TOKEN") or FIGMA_TOKEN
        if not self._token:
            raise FigmaClientError(
                "Figma token not configured. Set FIGMA_TOKEN environment variable "
                "or pass token= to FigmaClient()."
            )
        self._client: Optional[httpx.AsyncClient] = None
        self._timeout = timeout
        self._base_url = base_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"X-FIGMA-TOKEN": self._token},
                timeout=self._timeout,
                limits=httpx.Limits(
                    max_connections=FIGMA_HTTP_MAX_CONNECTIONS,
                    max_keepalive_connections=FIGMA_HTTP_MAX_KEEPALIVE,
                ),
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: Optional[Dict] = None) -> Dict[str, Any]:
        """Make a GET request to the Figma API."""
        client = await self._get_client()
        try:
            resp = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise FigmaApiError(None, f"Figma API timeout: {path}") from e
        except httpx.ConnectError as e:
            raise FigmaApiError(None, f"Figma API connection error: {path}") from e
        except httpx.HTTPError as e:
            raise FigmaApiError(None, f"Figma API transport error: {path} ({e})") from e

        if resp.status_code != 200:
            raise self._error_from_response(resp, path)

        try:
            return resp.json()
        except ValueError as e:
            raise FigmaApiError(None, f"Figma API returned invalid JSON: {path}") from e

    @staticmethod
    def _error_from_response(resp: httpx.Response, path: str) -> FigmaApiError:
        """Build a FigmaApiError, preferring the JSON error body when present."""
        err: Optional[str] = None
        message = ""
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            err = body.get("err")
            message = body.get("message") or err or ""
        if not message:
            message = (resp.text or "")[:200] or "Unknown error"

        if resp.status_code == 404:
            message = f"Figma resource not found: {path} ({message})"
        elif resp.status_code == 429:
            message = f"Figma API rate limit exceeded. Retry later. ({message})"

        logger.warning(f"Figma API {resp.status_code} for {path}: {message}")
        return FigmaApiError(resp.status_code, message, err)

    # ------------------------------------------------------------------
    # Core API methods
    # ------------------------------------------------------------------

    async def fetch_file(self, file_id: str) -> DesignDocument:
        """Fetch a whole file document.

        GET /v1/files/:key
        """
        data = await self._get(f"/v1/files/{file_id}")
        document = DesignDocument.model_validate(data)
        logger.info(
            f"fetch_file: file={file_id}, name={document.name!r}, "
            f"last_modified={document.last_modified.isoformat()}"
        )
        return document

    async def fetch_styles(self, file_id: str) -> List[StyleRecord]:
        """Fetch published styles of a file.

        GET /v1/files/:key/styles
        """
        data = await self._get(f"/v1/files/{file_id}/styles")
        styles = [
            StyleRecord.model_validate(style)
            for style in data.get("meta", {}).get("styles", [])
        ]
        logger.info(f"fetch_styles: file={file_id}, styles_count={len(styles)}")
        return styles

    async def fetch_variables(
        self,
        file_id: str,
    ) -> Tuple[List[Variable], List[VariableCollection]]:
        """Fetch local variables and their collections.

        GET /v1/files/:key/variables/local - needs the file_variables:read
        scope, which fails with 403 on plans without variables API access.
        """
        data = await self._get(f"/v1/files/{file_id}/variables/local")
        meta = data.get("meta", {})
        variables = [Variable.model_validate(v) for v in _as_list(meta.get("variables"))]
        collections = [
            VariableCollection.model_validate(c)
            for c in _as_list(meta.get("variableCollections"))
        ]
        logger.info(
            f"fetch_variables: file={file_id}, variables={len(variables)}, "
            f"collections={len(collections)}"
        )
        return variables, collections
