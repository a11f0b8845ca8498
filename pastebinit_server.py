#!/usr/bin/env python3
"""
pastebinit server - a single-tenant pastebin

Pastes are stored as files under one directory and served back by their
random identifier as highlighted HTML, raw text, HTML or ANSI-colored HTML.
Only the operator may upload pastes or list them.
"""

import argparse
import logging
import sys
from functools import partial
from pathlib import Path
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from paste_auth import require_operator
from paste_config import ServerConfig, load_config, setup_logging
from paste_errors import AuthError, ConfigError, InvalidEndpoint, PasteError, PasteTooLarge, StorageError
from paste_ids import generate_id
from paste_render import build_index_html, parse_paste_path, render_paste
from paste_store import PasteStore

logger = logging.getLogger("pastebinit")


def create_app(config: ServerConfig, store: Optional[PasteStore] = None) -> FastAPI:
    """Build the FastAPI application around one configuration and store"""
    if store is None:
        store = PasteStore(config.storage)

    app = FastAPI(title="pastebinit", version="1.0.0", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.config = config
    app.state.store = store

    @app.exception_handler(PasteError)
    async def paste_error_handler(request: Request, exc: PasteError):
        if isinstance(exc, AuthError):
            return PlainTextResponse("401 Unauthorized\n", status_code=exc.status_code, headers=exc.headers)
        logger.warning(f"writing error for {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    # Static assets must be mounted before the catch-all paste route
    asset_path = Path(config.asset_path)
    if asset_path.is_dir():
        app.mount("/static", StaticFiles(directory=str(asset_path)), name="static")
    else:
        logger.info(f"Asset path {asset_path} not found, /static disabled")

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok"}

    @app.post("/paste", dependencies=[Depends(require_operator)])
    async def upload_paste(request: Request):
        """Store the request body as a new paste and return its uri"""
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > config.max_paste_size:
            raise PasteTooLarge(f"paste exceeds max size of {config.max_paste_size} bytes")

        content = await request.body()
        if len(content) > config.max_paste_size:
            raise PasteTooLarge(f"paste exceeds max size of {config.max_paste_size} bytes")

        generate = partial(generate_id, config.id_length)
        paste_id = await run_in_threadpool(store.save, content, generate, config.id_retries)

        logger.info(f"paste {paste_id!r} posted successfully ({len(content)} bytes)")
        return {"uri": config.base_uri + paste_id}

    @app.api_route("/paste", methods=["GET", "PUT", "PATCH", "DELETE"], dependencies=[Depends(require_operator)])
    async def paste_other_methods():
        """Only POST uploads a paste"""
        raise InvalidEndpoint("not a valid endpoint")

    @app.get("/", response_class=HTMLResponse, dependencies=[Depends(require_operator)])
    def index():
        """List every stored paste"""
        html = build_index_html(store.list(), config.base_uri)
        logger.info("index file rendered")
        return html

    @app.get("/{paste_path:path}")
    def show_paste(paste_path: str):
        """Serve a paste in the variant named by its path suffix"""
        render_request = parse_paste_path(paste_path)
        data = store.read(render_request.paste_id)
        rendered = render_paste(data, render_request.variant, config.highlight_style)
        logger.debug(f"served {render_request.paste_id} as {render_request.variant.value}")
        return Response(content=rendered.body, media_type=rendered.media_type)

    return app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pastebinit server", description="Run the server.")
    parser.add_argument("--config", type=Path, default=None, help="path to config.yaml")
    parser.add_argument("-b", "--uri", dest="base_uri", default=None, help="pastebin base uri")
    parser.add_argument("-u", "--username", default=None, help="username (or env var PASTEBINIT_USERNAME)")
    parser.add_argument("-p", "--password", default=None, help="password (or env var PASTEBINIT_PASSWORD)")
    parser.add_argument("-d", "--debug", action="store_true", default=None, help="enable debug logging")
    parser.add_argument("--host", default=None, help="address to bind")
    parser.add_argument("--port", type=int, default=None, help="port for server to run on")
    parser.add_argument("-s", "--storage", default=None, help="directory to store pastes")
    parser.add_argument("--asset-path", dest="asset_path", default=None, help="path to static assets")
    parser.add_argument("--cert", default=None, help="path to ssl cert")
    parser.add_argument("--key", default=None, help="path to ssl key")
    parser.add_argument("--log-file", dest="log_file", default=None, help="also write logs to this file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if k != "config"}

    try:
        config = load_config(args.config, overrides)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_file, config.debug)

    try:
        store = PasteStore(config.storage)
    except StorageError as e:
        logger.critical(e.message)
        return 1

    app = create_app(config, store)

    logger.info("=" * 60)
    logger.info("pastebinit server starting")
    logger.info(f"Storage: {store.root}")
    logger.info(f"Base uri: {config.base_uri}")
    logger.info(f"Max paste size: {config.max_paste_size_mb}MB")
    logger.info(f"Starting server on port {config.port}")
    logger.info("=" * 60)

    ssl_options = {}
    if config.use_tls:
        ssl_options = {"ssl_certfile": config.cert, "ssl_keyfile": config.key}

    uvicorn.run(app, host=config.host, port=config.port, **ssl_options)
    return 0


if __name__ == "__main__":
    sys.exit(main())
