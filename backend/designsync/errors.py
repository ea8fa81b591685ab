"""Error taxonomy for design-file extraction.

- NotFoundError: a requested component/node is absent from the document
- InvalidArgumentError: malformed arguments (schema-level or URL shape)
- UpstreamUnavailableError: a document/style fetch failed; carries the
  upstream status and message

Variables being inaccessible is not an error: it is reported through
TokenCollection.metadata (see designsync.tokens).
"""

from __future__ import annotations

from typing import Optional


class DesignSyncError(Exception):
    """Base class for errors raised by the extraction core."""


class NotFoundError(DesignSyncError):
    """Raised when a requested node or record does not exist."""


class ComponentNotFoundError(NotFoundError):
    def __init__(self, file_id: str, component_id: str):
        self.file_id = file_id
        self.component_id = component_id
        super().__init__(f"Component {component_id} not found in file {file_id}")


class InvalidArgumentError(DesignSyncError):
    """Raised when operation arguments fail validation."""


class NoWorkingFileError(InvalidArgumentError):
    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__("No working file set. Use set-working-file first.")


class UpstreamUnavailableError(DesignSyncError):
    """Raised when the design-file API could not serve a request."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        prefix = f"Figma API error {status}" if status is not None else "Figma API error"
        super().__init__(f"{prefix}: {message}")
