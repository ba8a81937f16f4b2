"""Application keys for type-safe app configuration access."""

from aiohttp import web

from pageeditor.config import Config
from pageeditor.core.pages import PageManager

config_key = web.AppKey("config", Config)
page_manager_key = web.AppKey("page_manager", PageManager)
