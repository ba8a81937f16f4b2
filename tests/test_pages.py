"""Tests for the page lifecycle manager."""

from dataclasses import replace
from pathlib import Path

import pytest

from pageeditor.config import Config, PagesConfig
from pageeditor.core.pages import CreateCommand, PageManager, RestoreCommand
from pageeditor.core.types import FileType
from pageeditor.errors import ForbiddenError

from tests.conftest import TEMPLATE_CSS, TEMPLATE_HTML, TEMPLATE_JS


@pytest.fixture
def manager(test_config: Config) -> PageManager:
    return PageManager(test_config)


class TestParseCommand:
    """Tests for PageManager.parse_command()."""

    def test__restore_token__returns_restore(self, manager: PageManager) -> None:
        assert manager.parse_command("pageEditor_restore") == RestoreCommand()

    def test__create_token__returns_page_name(self, manager: PageManager) -> None:
        assert manager.parse_command("pageEditor_create=foo") == CreateCommand("foo")

    def test__create_name_with_equals__kept_verbatim(self, manager: PageManager) -> None:
        """Everything after the first '=' is the page name."""
        assert manager.parse_command("pageEditor_create=a=b c") == CreateCommand("a=b c")

    @pytest.mark.parametrize(
        "body",
        ["garbage", "", "pageEditor_restore ", "xpageEditor_restore", "pageEditor_create=",
         "pageEditor_create", "pageEditor_createfoo"],
    )
    def test__other_bodies__return_none(self, manager: PageManager, body: str) -> None:
        assert manager.parse_command(body) is None


class TestCreate:
    """Tests for PageManager.create()."""

    async def test__fresh_name__clones_template(
        self, manager: PageManager, user_pages: Path
    ) -> None:
        """Copy the template and point the HTML at the new page's files."""
        html_path = await manager.create("foo")

        assert html_path == user_pages / "foo.html"
        assert (user_pages / "foo.html").read_text() == (
            '<link rel="stylesheet" href="foo.css">\n'
            '<script src="foo.js"></script>\n'
            "<!-- start.css start.js -->\n"
        )
        assert (user_pages / "foo.css").read_text() == TEMPLATE_CSS
        assert (user_pages / "foo.js").read_text() == TEMPLATE_JS

    async def test__existing_html__returns_none_and_leaves_files(
        self, manager: PageManager, user_pages: Path
    ) -> None:
        (user_pages / "foo.html").write_text("mine")

        result = await manager.create("foo")

        assert result is None
        assert (user_pages / "foo.html").read_text() == "mine"
        assert not (user_pages / "foo.css").exists()
        assert not (user_pages / "foo.js").exists()

    async def test__rewrite_all_references__replaces_every_occurrence(
        self, test_config: Config, user_pages: Path
    ) -> None:
        config = replace(test_config, pages=PagesConfig(rewrite_all_references=True))
        manager = PageManager(config)

        await manager.create("bar")

        content = (user_pages / "bar.html").read_text()
        assert "start." not in content
        assert content.count("bar.css") == 2
        assert content.count("bar.js") == 2

    async def test__crlf_template__keeps_line_endings(
        self, manager: PageManager, site_root: Path, user_pages: Path
    ) -> None:
        """Only the two references change; CRLF line endings survive."""
        template = site_root / "page_editor" / "template_page" / "start.html"
        template.write_bytes(b'<link href="start.css">\r\n<script src="start.js"></script>\r\n')

        await manager.create("foo")

        assert (user_pages / "foo.html").read_bytes() == (
            b'<link href="foo.css">\r\n<script src="foo.js"></script>\r\n'
        )

    async def test__non_utf8_template__bytes_preserved(
        self, manager: PageManager, site_root: Path, user_pages: Path
    ) -> None:
        template = site_root / "page_editor" / "template_page" / "start.html"
        template.write_bytes(b'<p>caf\xe9</p>\n<link href="start.css">\n')

        await manager.create("foo")

        assert (user_pages / "foo.html").read_bytes() == (
            b'<p>caf\xe9</p>\n<link href="foo.css">\n'
        )

    async def test__name_escaping_write_root__raises_forbidden(
        self, manager: PageManager, site_root: Path
    ) -> None:
        with pytest.raises(ForbiddenError):
            await manager.create("../../../evil")

        assert not (site_root.parent / "evil.html").exists()

    async def test__missing_template__raises(
        self, manager: PageManager, site_root: Path, user_pages: Path
    ) -> None:
        """A failed copy fails the whole operation."""
        (site_root / "page_editor" / "template_page" / "start.js").unlink()

        with pytest.raises(FileNotFoundError):
            await manager.create("broken")

        assert not (user_pages / "broken.js").exists()


class TestRestore:
    """Tests for PageManager.restore()."""

    async def test__edited_start_page__reset_to_template(
        self, manager: PageManager, user_pages: Path
    ) -> None:
        (user_pages / "start.html").write_text("edited")
        (user_pages / "start.css").write_text("edited")

        await manager.restore()

        assert (user_pages / "start.html").read_text() == TEMPLATE_HTML
        assert (user_pages / "start.css").read_text() == TEMPLATE_CSS
        assert (user_pages / "start.js").read_text() == TEMPLATE_JS


class TestPageFiles:
    def test__returns_three_siblings(self, manager: PageManager, user_pages: Path) -> None:
        files = manager.page_files("foo")

        assert files == {
            FileType.HTML: user_pages / "foo.html",
            FileType.CSS: user_pages / "foo.css",
            FileType.JS: user_pages / "foo.js",
        }


class TestScaffold:
    """Tests for PageManager.scaffold()."""

    def test__empty_root__writes_bundled_template(self, tmp_path: Path) -> None:
        manager = PageManager(Config.default(read_root=tmp_path))

        written = manager.scaffold()

        template_dir = tmp_path / "page_editor" / "template_page"
        assert sorted(written) == sorted(template_dir / f"start.{t}" for t in FileType)
        assert "start.css" in (template_dir / "start.html").read_text()
        assert (tmp_path / "page_editor" / "user_pages").is_dir()

    def test__existing_template__kept_unless_forced(self, site_root: Path) -> None:
        manager = PageManager(Config.default(read_root=site_root))
        template_html = site_root / "page_editor" / "template_page" / "start.html"

        assert manager.scaffold() == []
        assert template_html.read_text() == TEMPLATE_HTML

        written = manager.scaffold(force=True)

        assert template_html in written
        assert template_html.read_text() != TEMPLATE_HTML

    def test__custom_template_name__links_renamed_files(self, tmp_path: Path) -> None:
        config = replace(Config.default(read_root=tmp_path), pages=PagesConfig(template_name="base"))

        PageManager(config).scaffold()

        html = (tmp_path / "page_editor" / "template_page" / "base.html").read_text()
        assert "base.css" in html
        assert "base.js" in html
        assert "start." not in html
