"""Verb handlers.

Each handler resolves the request path through the sandbox, performs one
filesystem operation and describes the outcome as a ``ResponseInfo``.
Expected conditions (missing file, directory, conflict, bad command) become
responses here. Anything else is raised and turned into a response by the
router.
"""

import asyncio
import logging
import os
import stat
from pathlib import Path

from aiohttp import web

from pageeditor.app_keys import config_key, page_manager_key
from pageeditor.core.pages import CreateCommand, RestoreCommand
from pageeditor.core.sandbox import resolve_request_path
from pageeditor.core.types import ResponseInfo, guess_type

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _read_path(request: web.Request) -> Path:
    roots = request.app[config_key].roots
    return resolve_request_path(request.rel_url.raw_path, roots.read_root, roots.read_root)


def _write_path(request: web.Request) -> Path:
    roots = request.app[config_key].roots
    return resolve_request_path(request.rel_url.raw_path, roots.read_root, roots.write_root)


async def _stat(path: Path) -> os.stat_result | None:
    """Stat ``path``, returning None if it does not exist."""
    try:
        return await asyncio.to_thread(path.stat)
    except FileNotFoundError:
        return None


def _file_body(path: Path) -> ResponseInfo:
    return ResponseInfo(body=path, content_type=guess_type(path))


async def handle_get(request: web.Request) -> ResponseInfo:
    """Serve a file, or a newline-separated listing for a directory."""
    path = _read_path(request)
    stats = await _stat(path)
    if stats is None:
        return ResponseInfo(status=404, body="File not found")

    if stat.S_ISDIR(stats.st_mode):
        entries = await asyncio.to_thread(os.listdir, path)
        return ResponseInfo(body="\n".join(entries))

    return _file_body(path)


async def handle_delete(request: web.Request) -> ResponseInfo:
    """Delete a file. Deleting a missing file succeeds; directories are refused."""
    path = _write_path(request)
    stats = await _stat(path)
    if stats is None:
        return ResponseInfo(status=204)

    if stat.S_ISDIR(stats.st_mode):
        return ResponseInfo(status=403, body=f"Forbidden to delete {path}")

    await asyncio.to_thread(path.unlink)
    logger.debug(f"Deleted {path}")
    return ResponseInfo(status=204)


async def handle_mkcol(request: web.Request) -> ResponseInfo:
    """Create a directory. The parent must already exist."""
    path = _write_path(request)
    stats = await _stat(path)
    if stats is not None:
        if stat.S_ISDIR(stats.st_mode):
            return ResponseInfo(status=204)
        return ResponseInfo(
            status=409,
            body=f"Resource {request.rel_url.raw_path} exists but is a file",
        )

    await asyncio.to_thread(path.mkdir)
    logger.debug(f"Created directory {path}")
    return ResponseInfo(status=204)


async def handle_put(request: web.Request) -> ResponseInfo:
    """Replace (or create) a file with the request body, streamed chunk by chunk.

    File calls run in worker threads so a slow disk does not stall the loop.
    """
    path = _write_path(request)
    f = await asyncio.to_thread(path.open, "wb")
    try:
        async for chunk in request.content.iter_chunked(CHUNK_SIZE):
            await asyncio.to_thread(f.write, chunk)
    finally:
        await asyncio.to_thread(f.close)
    logger.debug(f"Wrote {path}")
    return ResponseInfo(status=204)


async def handle_post(request: web.Request) -> ResponseInfo:
    """Run a page command: restore the start page or create a new page."""
    path = _write_path(request)
    # Undecodable bytes are echoed back as U+FFFD in the 400 body.
    body = (await request.read()).decode("utf-8", errors="replace")

    manager = request.app[page_manager_key]
    command = manager.parse_command(body)

    if isinstance(command, RestoreCommand):
        await manager.restore()
        return _file_body(path)

    if isinstance(command, CreateCommand):
        html_path = await manager.create(command.page_name)
        if html_path is None:
            return ResponseInfo(
                status=409,
                body=f"conflict, the page {command.page_name} already exists",
            )
        return _file_body(html_path)

    return ResponseInfo(status=400, body=f"bad request {body}")


async def handle_not_allowed(request: web.Request) -> ResponseInfo:
    return ResponseInfo(status=405, body=f"Method {request.method} not allowed.")
