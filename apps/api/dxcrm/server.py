"""Process entry point: HTTPS when key material is present, otherwise plain HTTP."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import RedirectResponse
from starlette.routing import Route

from dxcrm.core.config import Settings, get_settings


logger = logging.getLogger("dxcrm.server")

_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def ssl_files_present(settings: Settings) -> bool:
    return Path(settings.ssl_key_path).is_file() and Path(settings.ssl_cert_path).is_file()


def https_url(request: Request, port: int) -> str:
    host = request.url.hostname or "localhost"
    target = f"https://{host}:{port}{request.url.path}"
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return target


def build_redirect_app(settings: Settings) -> Starlette:
    async def redirect(request: Request) -> RedirectResponse:
        return RedirectResponse(https_url(request, settings.port), status_code=301)

    return Starlette(
        routes=[
            Route("/", redirect, methods=_METHODS),
            Route("/{path:path}", redirect, methods=_METHODS),
        ]
    )


def _server(app, *, host: str, port: int, **options) -> uvicorn.Server:  # type: ignore[no-untyped-def]
    # uvicorn would otherwise replace the JSON logging set up by the app
    config = uvicorn.Config(app, host=host, port=port, log_config=None, **options)
    return uvicorn.Server(config)


async def serve(settings: Settings) -> None:
    from dxcrm.main import app

    if not ssl_files_present(settings):
        logger.info("server.starting scheme=http port=%s", settings.port)
        await _server(app, host=settings.host, port=settings.port).serve()
        return

    https = _server(
        app,
        host=settings.host,
        port=settings.port,
        ssl_keyfile=settings.ssl_key_path,
        ssl_certfile=settings.ssl_cert_path,
    )
    redirect = _server(build_redirect_app(settings), host=settings.host, port=settings.http_port)
    logger.info("server.starting scheme=https port=%s redirect_port=%s", settings.port, settings.http_port)
    await asyncio.gather(https.serve(), redirect.serve())


def main() -> None:
    asyncio.run(serve(get_settings()))
