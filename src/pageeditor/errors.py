"""Error types for the page editor.

Handlers raise these instead of building error responses themselves; the
router converts a ``StatusError`` into a response using its status and body.
"""

from pageeditor.core.types import ResponseInfo


class PageEditorError(Exception):
    """Base class for page editor errors."""


class StatusError(PageEditorError):
    """Error carrying an explicit HTTP status and response body."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(body)
        self.status = status
        self.body = body

    def to_response(self) -> ResponseInfo:
        return ResponseInfo(status=self.status, body=self.body)


class ForbiddenError(StatusError):
    """Requested path resolves outside the allowed root."""

    def __init__(self, body: str = "Forbidden") -> None:
        super().__init__(403, body)


class ConfigError(PageEditorError, ValueError):
    """Invalid startup configuration."""
