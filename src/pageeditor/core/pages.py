"""Page lifecycle: restoring the start page and creating pages from the template.

A page is three sibling files, ``<name>.html``, ``<name>.css`` and
``<name>.js``, in the user pages directory. Both operations copy the three
template files concurrently and wait for all of them. A failed copy fails
the whole operation without rolling back the other two.
"""

import asyncio
import logging
import shutil
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path

from pageeditor.config import Config
from pageeditor.core.sandbox import ensure_within
from pageeditor.core.types import FileType

logger = logging.getLogger(__name__)

BUNDLED_TEMPLATE_NAME = "start"


@dataclass(frozen=True)
class RestoreCommand:
    """Reset the start page to the template."""


@dataclass(frozen=True)
class CreateCommand:
    """Clone the template under a new page name."""

    page_name: str


PageCommand = RestoreCommand | CreateCommand


class PageManager:
    """Creates and restores pages under the write root."""

    def __init__(self, config: Config) -> None:
        self._pages = config.pages
        self._read_root = config.roots.read_root
        self._write_root = config.roots.write_root

    @property
    def user_pages_dir(self) -> Path:
        return self._pages.user_pages_path(self._read_root)

    def parse_command(self, body: str) -> PageCommand | None:
        """Parse a POST body into a page command.

        Accepts exactly ``<restore_command>`` or ``<create_command>=<name>``,
        where the name is everything after the first ``=`` and must be
        non-empty. Returns None for anything else.
        """
        if body == self._pages.restore_command:
            return RestoreCommand()

        prefix = f"{self._pages.create_command}="
        if body.startswith(prefix) and len(body) > len(prefix):
            return CreateCommand(page_name=body[len(prefix) :])

        return None

    def template_files(self) -> dict[FileType, Path]:
        return {
            file_type: self._pages.template_path(self._read_root, file_type)
            for file_type in FileType
        }

    def page_files(self, page_name: str) -> dict[FileType, Path]:
        """Return the three file paths of a page, each checked against the write root.

        Raises:
            ForbiddenError: If the page name places a file outside the write root
        """
        return {
            file_type: ensure_within(
                self._pages.page_path(self._read_root, page_name, file_type),
                self._write_root,
            )
            for file_type in FileType
        }

    async def restore(self) -> None:
        """Overwrite the start page files with the template files."""
        await self._copy_template(self._pages.template_name)
        logger.info(f"Restored page {self._pages.template_name} from template")

    async def create(self, page_name: str) -> Path | None:
        """Create a page by cloning the template.

        Args:
            page_name: Name of the new page, without extension

        Returns:
            Path of the new HTML file, or None if the page already exists

        Raises:
            ForbiddenError: If the page would be created outside the write root
            OSError: If checking for the page or copying fails
        """
        targets = self.page_files(page_name)
        html_path = targets[FileType.HTML]

        if await asyncio.to_thread(_exists, html_path):
            logger.info(f"Page {page_name} already exists")
            return None

        await self._copy_template(page_name)
        await asyncio.to_thread(self._rewrite_references, html_path, page_name)
        logger.info(f"Created page {page_name}")
        return html_path

    async def _copy_template(self, page_name: str) -> None:
        sources = self.template_files()
        targets = self.page_files(page_name)
        await asyncio.gather(
            *(
                asyncio.to_thread(_copy_file, sources[file_type], targets[file_type])
                for file_type in FileType
            )
        )

    def _rewrite_references(self, html_path: Path, page_name: str) -> None:
        """Point the new HTML file at its own stylesheet and script.

        Only the first reference to each template file is replaced unless
        ``rewrite_all_references`` is set. The replacement works on raw bytes,
        so line endings and non-UTF-8 content are left as they are.
        """
        count = -1 if self._pages.rewrite_all_references else 1
        content = html_path.read_bytes()
        for file_type in (FileType.CSS, FileType.JS):
            content = content.replace(
                self._pages.template_filename(file_type).encode("utf-8"),
                f"{page_name}.{file_type}".encode("utf-8"),
                count,
            )
        html_path.write_bytes(content)

    def scaffold(self, *, force: bool = False) -> list[Path]:
        """Install the bundled template page and create the user pages directory.

        Existing template files are kept unless ``force`` is set.

        Returns:
            Template files that were written
        """
        self.user_pages_dir.mkdir(parents=True, exist_ok=True)

        written: list[Path] = []
        bundled = files("pageeditor").joinpath("templates")
        for file_type, target in self.template_files().items():
            if target.exists() and not force:
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            content = bundled.joinpath(f"{BUNDLED_TEMPLATE_NAME}.{file_type}").read_text(
                encoding="utf-8"
            )
            if file_type is FileType.HTML:
                for linked in (FileType.CSS, FileType.JS):
                    content = content.replace(
                        f"{BUNDLED_TEMPLATE_NAME}.{linked}",
                        self._pages.template_filename(linked),
                    )
            target.write_text(content, encoding="utf-8")
            written.append(target)
            logger.info(f"Wrote template file {target}")
        return written


def _exists(path: Path) -> bool:
    """Return whether ``path`` exists. Errors other than absence propagate."""
    try:
        path.stat()
    except FileNotFoundError:
        return False
    return True


def _copy_file(source: Path, target: Path) -> None:
    logger.debug(f"Copying {source} to {target}")
    shutil.copyfile(source, target)
