"""Shared test fixtures."""

from pathlib import Path
from typing import Any

import pytest
from aiohttp import web

from pageeditor.config import Config
from pageeditor.server import create_app

TEMPLATE_HTML = (
    '<link rel="stylesheet" href="start.css">\n'
    '<script src="start.js"></script>\n'
    "<!-- start.css start.js -->\n"
)
TEMPLATE_CSS = "body { color: red; }\n"
TEMPLATE_JS = 'console.log("start");\n'

USER_PAGES_URL = "/page_editor/user_pages"


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Create a read root with the template page and an empty user pages directory.

    The root is a subdirectory of tmp_path so tests can place files just
    outside of it.
    """
    root = tmp_path / "site"
    template_dir = root / "page_editor" / "template_page"
    template_dir.mkdir(parents=True)
    (root / "page_editor" / "user_pages").mkdir()

    (template_dir / "start.html").write_text(TEMPLATE_HTML)
    (template_dir / "start.css").write_text(TEMPLATE_CSS)
    (template_dir / "start.js").write_text(TEMPLATE_JS)
    return root


@pytest.fixture
def user_pages(site_root: Path) -> Path:
    return site_root / "page_editor" / "user_pages"


@pytest.fixture
def test_config(site_root: Path) -> Config:
    return Config.default(read_root=site_root)


@pytest.fixture
def app(test_config: Config) -> web.Application:
    return create_app(test_config)


@pytest.fixture
async def client(aiohttp_client: Any, app: web.Application) -> Any:
    return await aiohttp_client(app)
