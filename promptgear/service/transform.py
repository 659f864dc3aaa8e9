"""Transform orchestration: mock engine, cache, upstream caller, health.

``TransformService`` holds everything one process instance needs and is
shared by all concurrent requests. It never raises: every path returns a
``TransformOutcome`` carrying the HTTP status and JSON body to send.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..cache import TransformCache, build_cache_key, create_cache
from ..config import ServiceConfig
from ..health import HealthMonitor
from ..mock import build_mock_structured_prompt
from ..models import CachedTransformRecord, TransformRequest, UpstreamFailure, now_ms
from ..upstream import UpstreamClient
from .errors import ErrorPayload, normalize_exception, normalize_upstream_failure

logger = logging.getLogger("promptgear.service")


@dataclass(frozen=True)
class TransformOutcome:
    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class TransformService:
    """Per-instance transform service.

    Health state is owned here and is therefore per process: it resets on
    restart and is not coordinated across instances.
    """

    def __init__(
        self,
        config: ServiceConfig,
        cache: TransformCache | None = None,
        upstream: UpstreamClient | None = None,
        health: HealthMonitor | None = None,
    ):
        self.config = config
        self.cache = cache if cache is not None else create_cache(config)
        self.upstream = upstream if upstream is not None else UpstreamClient(config.upstream)
        self.health = health if health is not None else HealthMonitor()

    @property
    def mock_mode(self) -> bool:
        return self.config.mock_mode

    async def startup(self) -> None:
        if not self.mock_mode:
            await self.upstream.startup()
        logger.info("PromptGear transform service started")
        logger.info(f"Mock mode: {'ENABLED' if self.mock_mode else 'DISABLED'}")
        logger.info(f"Default model: {self.config.default_model}")
        if not self.config.allowed_origins:
            logger.warning("ALLOWED_ORIGINS is empty: every cross-origin request will be denied")

    async def shutdown(self) -> None:
        await self.upstream.shutdown()

    def health_report(self) -> tuple[dict[str, Any], int]:
        return self.health.report(mock_mode=self.mock_mode)

    async def transform(self, request: TransformRequest) -> TransformOutcome:
        model = request.model or self.config.default_model

        if self.mock_mode:
            structured_prompt = build_mock_structured_prompt(request.prompt, request.mode)
            self.health.record_success()
            return TransformOutcome(
                200,
                {
                    "structuredPrompt": structured_prompt,
                    "model": model,
                    "usage": {"totalTokens": None},
                    "mocked": True,
                },
            )

        try:
            key = build_cache_key(request.prompt, request.mode, model)
            cached = await asyncio.to_thread(self.cache.get, key)
            if cached is not None:
                logger.debug(f"Cache hit for {key[:12]}")
                self.health.record_success()
                return TransformOutcome(
                    200,
                    {
                        "structuredPrompt": cached.structured_prompt,
                        "model": cached.model or model,
                        "usage": {"totalTokens": cached.usage},
                        "cached": True,
                    },
                )

            result = await self.upstream.transform(request.prompt, request.mode, model)
            if isinstance(result, UpstreamFailure):
                logger.error(
                    f"Transform failed after {result.attempts} attempt(s): "
                    f"status={result.status} kind={result.kind.value} {result.message}"
                )
                return self._failure(normalize_upstream_failure(result))

            record = CachedTransformRecord(
                structured_prompt=result.structured_prompt,
                model=model,
                usage=result.usage,
                cached_at=now_ms(),
            )
            await asyncio.to_thread(self.cache.put, key, record)
            self.health.record_success()
            return TransformOutcome(
                200,
                {
                    "structuredPrompt": result.structured_prompt,
                    "model": model,
                    "usage": {"totalTokens": result.usage},
                },
            )
        except Exception as e:
            logger.exception(f"Transform failed: {e}")
            return self._failure(normalize_exception(e))

    def _failure(self, error: ErrorPayload) -> TransformOutcome:
        self.health.record_failure(error.error, error.status)
        return TransformOutcome(error.status, error.to_dict())
