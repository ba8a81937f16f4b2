"""HTTP client for a running page editor server.

Mirrors what the browser editor does: load and save the three files of a
page, list pages, create, delete and restore pages, and remember the
currently selected page between invocations.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx

from pageeditor.core.types import FileType

logger = logging.getLogger(__name__)

DEFAULT_PAGE = "start"
STATE_KEY = "state.currentPage"


@dataclass(frozen=True)
class PageSources:
    """Contents of a page's three files."""

    html: str
    css: str
    js: str

    def get(self, file_type: FileType) -> str:
        return getattr(self, file_type.name.lower())


@dataclass(frozen=True)
class SessionState:
    """Client-side state: the currently selected page."""

    current_page: str = DEFAULT_PAGE

    @classmethod
    def load(cls, path: Path) -> SessionState:
        """Load state from a JSON file, falling back to defaults when absent."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls()

        current_page = data.get(STATE_KEY) if isinstance(data, dict) else None
        if not isinstance(current_page, str) or not current_page:
            return cls()
        return cls(current_page=current_page)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({STATE_KEY: self.current_page}), encoding="utf-8")


def strip_extension(filename: str) -> str:
    """Remove the last extension, keeping names without one (or dotfiles) intact."""
    stem, dot, extension = filename.rpartition(".")
    if not dot or not stem or not extension:
        return filename
    return stem


class PageEditorClient:
    """Async client for the page editor HTTP API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        pages_url: str = "/page_editor/user_pages",
        *,
        restore_command: str = "pageEditor_restore",
        create_command: str = "pageEditor_create",
        template_name: str = DEFAULT_PAGE,
    ):
        """Initialize page editor client.

        Args:
            client: httpx AsyncClient with ``base_url`` set to the server
            pages_url: URL path of the user pages directory
            restore_command: POST body that restores the start page
            create_command: POST body prefix that creates a page
            template_name: Name of the page restored by ``restore``
        """
        self.client = client
        self.pages_url = pages_url.rstrip("/")
        self.restore_command = restore_command
        self.create_command = create_command
        self.template_name = template_name

    def page_url(self, page_name: str, file_type: FileType) -> str:
        return f"{self.pages_url}/{page_name}.{file_type}"

    async def list_pages(self) -> list[str]:
        """List page names, one per page regardless of how many files it has.

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        response = await self.client.get(self.pages_url)
        response.raise_for_status()

        pages: list[str] = []
        for entry in response.text.split("\n"):
            if not entry:
                continue
            name = strip_extension(entry)
            if name not in pages:
                pages.append(name)
        return pages

    async def load_page(self, page_name: str) -> PageSources:
        """Fetch the HTML, CSS and JS of a page.

        Raises:
            httpx.HTTPStatusError: If any of the files cannot be fetched
        """
        logger.info(f"Loading page {page_name}")
        responses = await asyncio.gather(
            *(self.client.get(self.page_url(page_name, file_type)) for file_type in FileType)
        )
        for response in responses:
            response.raise_for_status()
        html, css, js = (response.text for response in responses)
        return PageSources(html=html, css=css, js=js)

    async def save_page(self, page_name: str, sources: PageSources) -> None:
        """Upload the three files of a page.

        The three PUT requests run concurrently and complete independently;
        one failing does not cancel the others.

        Raises:
            httpx.HTTPStatusError: If any upload fails (after all have finished)
        """
        logger.info(f"Saving page {page_name}")
        results = await asyncio.gather(
            *(
                self.client.put(
                    self.page_url(page_name, file_type),
                    content=sources.get(file_type).encode("utf-8"),
                    headers={"Content-Type": "text/plain"},
                )
                for file_type in FileType
            ),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
            result.raise_for_status()

    async def create_page(self, page_name: str) -> str:
        """Create a page from the template.

        Returns:
            HTML of the new page

        Raises:
            httpx.HTTPStatusError: If the page exists (409) or creation fails
        """
        logger.info(f"Creating page {page_name}")
        response = await self.client.post(
            self.page_url(page_name, FileType.HTML),
            content=f"{self.create_command}={page_name}".encode("utf-8"),
            headers={"Content-Type": "text/plain", "Cache-Control": "no-cache"},
        )
        if response.status_code >= 400:
            logger.error(f"Create error response: {response.text}")
        response.raise_for_status()
        return response.text

    async def restore(self) -> str:
        """Reset the start page to the template.

        Returns:
            HTML of the restored start page

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        logger.info(f"Restoring page {self.template_name}")
        response = await self.client.post(
            self.page_url(self.template_name, FileType.HTML),
            content=self.restore_command.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        response.raise_for_status()
        return response.text

    async def delete_page(self, page_name: str) -> None:
        """Delete the three files of a page, one request per file.

        There is no atomicity: if one deletion fails, the others may
        already have happened.

        Raises:
            httpx.HTTPStatusError: If a deletion fails
        """
        logger.info(f"Deleting page {page_name}")
        for file_type in FileType:
            response = await self.client.delete(self.page_url(page_name, file_type))
            response.raise_for_status()
