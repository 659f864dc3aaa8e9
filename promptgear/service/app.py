"""PromptGear Transform Service - HTTP surface.

Routes:
    OPTIONS *          CORS preflight (204 allowed / 403 denied)
    GET  /health       Liveness signal (200 ok / 503 degraded)
    POST /transform    Restructure a raw prompt
    *    /transform    405 Method not allowed
    *    anything else 404 Not found

Every response, errors included, carries the CORS headers resolved for the
request's Origin.

Usage:
    promptgear serve --port 8787

    curl -X POST http://127.0.0.1:8787/transform \\
        -H 'content-type: application/json' \\
        -d '{"prompt": "Summarize this paper", "mode": "research"}'
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import ServiceConfig
from ..cors import cors_headers, resolve_cors
from ..exceptions import RequestValidationError
from ..models import TransformRequest
from .transform import TransformService

logger = logging.getLogger("promptgear.service")

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]
TRANSFORM_PATH = "/transform"


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app(
    config: ServiceConfig | None = None,
    service: TransformService | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: Service configuration. Read from the environment when omitted.
        service: Pre-built service (tests inject one with a scripted upstream).
    """
    if service is not None:
        config = service.config
    config = config or ServiceConfig.from_env()
    service = service or TransformService(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await service.startup()
        try:
            yield
        finally:
            await service.shutdown()

    app = FastAPI(
        title="PromptGear Transform Service",
        description="Restructures raw prompts through an upstream LLM",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service

    @app.exception_handler(StarletteHTTPException)
    async def routing_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Methods outside ALL_METHODS never reach a route handler
        if exc.status_code == 405 and request.url.path == TRANSFORM_PATH:
            return _error("Method not allowed", 405)
        if exc.status_code in (404, 405):
            return _error("Not found", 404)
        return _error(str(exc.detail), exc.status_code)

    @app.middleware("http")
    async def apply_origin_policy(request: Request, call_next):
        decision = resolve_cors(request.headers.get("origin"), config.allowed_origins)
        request.state.cors = decision
        headers = cors_headers(decision)

        if request.method == "OPTIONS":
            status_code = 204 if decision.allowed else 403
            return Response(status_code=status_code, headers=headers)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled error for {request.method} {request.url.path}: {e}")
            response = _error("Internal server error", 500)

        response.headers.update(headers)
        return response

    @app.get("/health")
    async def health() -> JSONResponse:
        payload, status_code = service.health_report()
        return JSONResponse(payload, status_code=status_code)

    @app.api_route(TRANSFORM_PATH, methods=ALL_METHODS)
    async def transform(request: Request) -> JSONResponse:
        if request.method != "POST":
            return _error("Method not allowed", 405)

        if not request.state.cors.allowed:
            logger.warning(
                f"Blocked request from origin {request.headers.get('origin') or '<no-origin>'}"
            )
            return _error("Origin not allowed", 403)

        try:
            payload = await request.json()
        except ValueError:
            return _error("Invalid JSON body", 400)

        try:
            transform_request = TransformRequest.from_payload(payload)
        except RequestValidationError as e:
            return _error(e.message, 400)

        outcome = await service.transform(transform_request)
        return JSONResponse(outcome.body, status_code=outcome.status_code)

    @app.api_route("/{path:path}", methods=ALL_METHODS)
    async def not_found(path: str) -> JSONResponse:
        return _error("Not found", 404)

    return app


def run_server(config: ServiceConfig | None = None) -> None:
    """Run the service with uvicorn."""
    config = config or ServiceConfig.from_env()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
