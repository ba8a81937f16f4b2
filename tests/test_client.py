"""Tests for the HTTP client against a live test server."""

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from aiohttp import web

from pageeditor.client import PageEditorClient, PageSources, SessionState, strip_extension

from tests.conftest import TEMPLATE_CSS, TEMPLATE_HTML, TEMPLATE_JS


@pytest.fixture
async def editor(aiohttp_server: Any, app: web.Application) -> AsyncIterator[PageEditorClient]:
    server = await aiohttp_server(app)
    async with httpx.AsyncClient(base_url=str(server.make_url("/"))) as http:
        yield PageEditorClient(http)


class TestPageEditorClient:
    """Tests for PageEditorClient."""

    async def test__create_then_load__returns_cloned_sources(
        self, editor: PageEditorClient
    ) -> None:
        html = await editor.create_page("about")
        sources = await editor.load_page("about")

        assert html == sources.html
        assert 'href="about.css"' in sources.html
        assert sources.css == TEMPLATE_CSS
        assert sources.js == TEMPLATE_JS

    async def test__create_existing__raises_409(self, editor: PageEditorClient) -> None:
        await editor.create_page("about")

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await editor.create_page("about")

        assert exc_info.value.response.status_code == 409

    async def test__save_page__writes_three_files(
        self, editor: PageEditorClient, user_pages: Path
    ) -> None:
        await editor.save_page("notes", PageSources(html="<p/>", css="p {}", js="1;"))

        assert (user_pages / "notes.html").read_text() == "<p/>"
        assert (user_pages / "notes.css").read_text() == "p {}"
        assert (user_pages / "notes.js").read_text() == "1;"

    async def test__list_pages__one_entry_per_page(self, editor: PageEditorClient) -> None:
        await editor.restore()
        await editor.create_page("about")

        assert sorted(await editor.list_pages()) == ["about", "start"]

    async def test__delete_page__removes_all_files(
        self, editor: PageEditorClient, user_pages: Path
    ) -> None:
        await editor.create_page("about")

        await editor.delete_page("about")

        assert list(user_pages.iterdir()) == []

    async def test__restore__returns_template_html(
        self, editor: PageEditorClient, user_pages: Path
    ) -> None:
        (user_pages / "start.html").write_text("edited")

        html = await editor.restore()

        assert html == TEMPLATE_HTML
        assert (user_pages / "start.html").read_text() == TEMPLATE_HTML

    async def test__load_missing_page__raises_404(self, editor: PageEditorClient) -> None:
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await editor.load_page("ghost")

        assert exc_info.value.response.status_code == 404


class TestSessionState:
    """Tests for SessionState persistence."""

    def test__missing_file__defaults_to_start(self, tmp_path: Path) -> None:
        assert SessionState.load(tmp_path / "state.json").current_page == "start"

    def test__save_then_load__keeps_page(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "state.json"

        SessionState(current_page="about").save(path)

        assert SessionState.load(path).current_page == "about"
        assert '"state.currentPage"' in path.read_text()

    def test__empty_value__defaults_to_start(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        path.write_text('{"state.currentPage": ""}')

        assert SessionState.load(path).current_page == "start"


@pytest.mark.parametrize(
    ("filename", "expected"),
    [("a.html", "a"), ("a.b.css", "a.b"), ("README", "README"), (".hidden", ".hidden")],
)
def test__strip_extension(filename: str, expected: str) -> None:
    assert strip_extension(filename) == expected
