"""Figma URL parsing and building.

Supports:
    https://www.figma.com/design/{fileKey}/{name}?node-id={nodeId}
    https://www.figma.com/file/{fileKey}/{name}?node-id={nodeId}
    https://figma.com/design/{fileKey}/{name}

Node ID format: URLs use '16650-538' (or '16650%3A538'), the API uses '16650:538'.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, quote, unquote, urlsplit

from ..errors import InvalidArgumentError

_FIGMA_URL_RE = re.compile(
    r"^https://(?:www\.)?figma\.com/(?:file|design)/([A-Za-z0-9_-]+)/([^/?#]*)"
)

_EXPECTED = (
    "Invalid Figma URL format. Expected: https://www.figma.com/file/FILE_ID/File-Name "
    "or https://www.figma.com/design/FILE_ID/File-Name"
)


@dataclass(frozen=True)
class ParsedFigmaUrl:
    file_id: str
    url: str
    file_name: Optional[str] = None
    node_id: Optional[str] = None


def parse_figma_url(url: str) -> ParsedFigmaUrl:
    """Parse a Figma file/design URL.

    Raises:
        InvalidArgumentError: if the URL is empty or not a Figma file URL.
    """
    if not url or not isinstance(url, str):
        raise InvalidArgumentError("Invalid URL: URL must be a non-empty string")

    url = url.strip()
    match = _FIGMA_URL_RE.match(url)
    if not match:
        raise InvalidArgumentError(_EXPECTED)

    file_id, raw_name = match.group(1), match.group(2)
    file_name = unquote(raw_name) if raw_name else None

    node_id: Optional[str] = None
    query = parse_qs(urlsplit(url).query)
    if query.get("node-id"):
        node_id = query["node-id"][0].replace("-", ":")

    return ParsedFigmaUrl(file_id=file_id, url=url, file_name=file_name, node_id=node_id)


def is_valid_figma_url(url: str) -> bool:
    try:
        parse_figma_url(url)
    except InvalidArgumentError:
        return False
    return True


def build_figma_url(
    file_id: str,
    file_name: Optional[str] = None,
    node_id: Optional[str] = None,
) -> str:
    """Build a canonical ``/design/`` URL; name and node id are percent-encoded."""
    url = f"https://www.figma.com/design/{file_id}"
    if file_name:
        url += f"/{quote(file_name, safe='')}"
    if node_id:
        url += f"?node-id={quote(node_id, safe='')}"
    return url
