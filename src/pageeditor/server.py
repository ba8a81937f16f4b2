"""aiohttp server for the page editor.

Application factory, verb dispatch and response emission. Every request,
whatever its method or path, goes through ``dispatch``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from aiohttp import hdrs, web

from pageeditor.api.handlers import (
    handle_delete,
    handle_get,
    handle_mkcol,
    handle_not_allowed,
    handle_post,
    handle_put,
)
from pageeditor.app_keys import config_key, page_manager_key
from pageeditor.config import Config
from pageeditor.core.pages import PageManager
from pageeditor.core.types import ResponseInfo, Verb
from pageeditor.errors import StatusError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"
STREAM_CHUNK_SIZE = 64 * 1024

Handler = Callable[[web.Request], Awaitable[ResponseInfo]]

HANDLERS: dict[Verb, Handler] = {
    Verb.GET: handle_get,
    Verb.PUT: handle_put,
    Verb.POST: handle_post,
    Verb.DELETE: handle_delete,
    Verb.MKCOL: handle_mkcol,
}


def select_handler(method: str) -> Handler:
    """Return the handler for an HTTP method; unknown methods get the 405 handler."""
    verb = Verb.parse(method)
    if verb is None:
        return handle_not_allowed
    return HANDLERS[verb]


async def dispatch(request: web.Request) -> web.StreamResponse:
    """Run the handler for the request method and emit its response.

    This is the only place errors become responses: a ``StatusError`` keeps
    its status and body, any other exception becomes a 500 with the error
    text as body.
    """
    logger.debug(f"{request.method} {request.rel_url}")
    handler = select_handler(request.method)
    try:
        info = await handler(request)
    except StatusError as error:
        info = error.to_response()
    except web.HTTPException:
        raise
    except Exception as error:
        logger.exception(f"Error handling {request.method} {request.rel_url}")
        info = ResponseInfo(status=500, body=str(error))
    return await emit(request, info)


async def emit(request: web.Request, info: ResponseInfo) -> web.StreamResponse:
    """Turn a response description into an aiohttp response.

    ``Path`` bodies are streamed from disk exactly as stored. Precompressed
    siblings (``.gz``, ``.br``) are never substituted. A file that has
    disappeared since the handler ran gives 404.
    """
    if not isinstance(info.body, Path):
        return buffered_response(info)

    path = info.body
    try:
        f = await asyncio.to_thread(path.open, "rb")
    except FileNotFoundError:
        return buffered_response(ResponseInfo(status=404, body="File not found"))

    try:
        response = web.StreamResponse(
            status=info.status,
            headers={hdrs.CONTENT_TYPE: info.content_type or DEFAULT_CONTENT_TYPE},
        )
        await response.prepare(request)
        while chunk := await asyncio.to_thread(f.read, STREAM_CHUNK_SIZE):
            await response.write(chunk)
        await response.write_eof()
    finally:
        await asyncio.to_thread(f.close)
    return response


def buffered_response(info: ResponseInfo) -> web.Response:
    """Build a response for an in-memory body; text bodies are sent as UTF-8."""
    content_type = info.content_type or DEFAULT_CONTENT_TYPE
    body = info.body
    if isinstance(body, str):
        body = body.encode("utf-8")
        if "charset" not in content_type:
            content_type = f"{content_type}; charset=utf-8"

    return web.Response(
        status=info.status,
        body=body,
        headers={hdrs.CONTENT_TYPE: content_type},
    )


def create_app(config: Config) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration

    Returns:
        Configured aiohttp application
    """
    app = web.Application(client_max_size=config.server.client_max_size)

    app[config_key] = config
    app[page_manager_key] = PageManager(config)

    app.router.add_route(hdrs.METH_ANY, "/{path:.*}", dispatch)

    return app


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    logger.info(f"Read root: {config.roots.read_root}")
    logger.info(f"Write root: {config.roots.write_root}")
    web.run_app(app, host=config.server.host, port=config.server.port)
