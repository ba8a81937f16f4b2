"""Shared types for handlers and the response emitter."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class FileType(Enum):
    """File types making up a page. The value is the file extension."""

    HTML = "html"
    CSS = "css"
    JS = "js"

    def __str__(self) -> str:
        return self.value


class Verb(Enum):
    """HTTP methods the server handles."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    MKCOL = "MKCOL"

    @classmethod
    def parse(cls, method: str) -> Verb | None:
        """Return the verb for an HTTP method name, or None if unsupported."""
        try:
            return cls(method)
        except ValueError:
            return None


@dataclass(frozen=True)
class ResponseInfo:
    """Transport-independent description of a response.

    A ``Path`` body is streamed from disk; ``str`` and ``bytes`` bodies are
    written as-is; ``None`` means an empty body. A missing content type is
    sent as ``text/plain``.
    """

    status: int = 200
    body: str | bytes | Path | None = None
    content_type: str | None = None


def guess_type(path: Path) -> str | None:
    """Infer a MIME type from the file extension."""
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type
