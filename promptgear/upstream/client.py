"""Upstream LLM caller with bounded retries.

One ``transform`` call issues up to ``1 + max_retries`` attempts against
the provider's Responses endpoint:

- Each attempt is cancelled after its own timeout, which grows by
  ``timeout_step_seconds`` per attempt so later retries get more time.
- Connection errors (status 0), timeouts (408) and statuses in
  ``RETRYABLE_STATUS`` are retried after an exponential backoff with
  jitter, honouring ``Retry-After`` up to ``max_backoff_seconds``.
- Any other status ends the sequence immediately.

Failures are returned as ``UpstreamFailure`` values, never raised, so the
service can map them to the outward error shape without exception
plumbing.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import httpx

from ..config import UpstreamConfig
from ..exceptions import ConfigurationError
from ..models import FailureKind, UpstreamFailure, UpstreamResult, UpstreamSuccess
from .extraction import extract_structured_prompt, extract_usage
from .prompts import build_payload

logger = logging.getLogger("promptgear.upstream")


def retry_after_seconds(response: httpx.Response | None) -> float | None:
    """Parse a Retry-After header given in seconds or as an HTTP date."""
    if response is None:
        return None
    value = (response.headers.get("Retry-After") or "").strip()
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return max((parsed - datetime.now(timezone.utc)).total_seconds(), 0.0)


class UpstreamClient:
    """Calls the upstream provider for one structured prompt at a time."""

    def __init__(
        self,
        config: UpstreamConfig,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self._http_client = http_client
        self._owns_client = http_client is None
        self._sleep = sleep
        self._rng = rng
        self._clock = clock

    async def startup(self) -> None:
        """Open the pooled HTTP client."""
        self._client()

    async def shutdown(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    connect=self.config.connect_timeout_seconds,
                    read=self.config.attempt_timeout(self.config.max_retries),
                    write=self.config.timeout_seconds,
                    pool=self.config.connect_timeout_seconds,
                )
            )
        return self._http_client

    def backoff_delay(self, backoff: float, retry_after: float | None) -> float:
        """Seconds to wait before the next attempt."""
        cap = self.config.max_backoff_seconds
        delay = min(backoff, cap)
        if retry_after is not None:
            delay = max(delay, retry_after)
        return min(delay + self._rng() * self.config.jitter_seconds, cap)

    async def transform(self, prompt: str, mode: str | None, model: str) -> UpstreamResult:
        """Obtain a structured prompt for ``prompt``.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        if not self.config.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set in the service environment")

        payload = build_payload(prompt, mode, model)
        max_attempts = 1 + self.config.max_retries
        deadline = self.config.deadline_seconds
        started = self._clock()
        backoff = self.config.initial_backoff_seconds
        failure: UpstreamFailure | None = None

        for attempt in range(max_attempts):
            timeout = self.config.attempt_timeout(attempt)
            if deadline is not None:
                remaining = deadline - (self._clock() - started)
                if remaining <= 0:
                    break
                timeout = min(timeout, remaining)

            response, failure = await self._attempt(payload, timeout)
            if response is not None and response.is_success:
                return self._parse_success(response, attempt + 1)

            if failure is None:
                failure = UpstreamFailure(
                    status=response.status_code,
                    body=response.text,
                    kind=FailureKind.HTTP,
                    message=f"Upstream request failed ({response.status_code})",
                )
            failure = replace(failure, attempts=attempt + 1)

            if not failure.retryable or attempt == max_attempts - 1:
                return failure

            delay = self.backoff_delay(backoff, retry_after_seconds(response))
            if deadline is not None and (self._clock() - started) + delay >= deadline:
                logger.warning(
                    f"Upstream attempt {attempt + 1} failed ({failure.status}), "
                    f"no time left before the {deadline}s deadline"
                )
                return failure

            logger.warning(
                f"Upstream attempt {attempt + 1} failed ({failure.status}), "
                f"retrying in {delay * 1000:.0f}ms"
            )
            await self._sleep(delay)
            backoff = min(backoff * 2, self.config.max_backoff_seconds)

        if failure is not None:
            return failure
        return UpstreamFailure(
            status=408,
            body="",
            kind=FailureKind.TIMEOUT,
            message=f"Upstream deadline of {deadline}s exhausted",
        )

    async def _attempt(
        self, payload: dict, timeout: float
    ) -> tuple[httpx.Response | None, UpstreamFailure | None]:
        """Run one attempt; exactly one of the returned pair is set."""
        try:
            response = await asyncio.wait_for(
                self._client().post(
                    self.config.endpoint,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.config.api_key}"},
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            message = f"Upstream request timed out after {timeout * 1000:.0f}ms"
            return None, UpstreamFailure(
                status=408, body=message, kind=FailureKind.TIMEOUT, message=message
            )
        except httpx.TransportError as e:
            message = str(e) or "Network error"
            return None, UpstreamFailure(
                status=0, body=message, kind=FailureKind.TRANSPORT, message=message
            )
        return response, None

    def _parse_success(self, response: httpx.Response, attempts: int) -> UpstreamResult:
        try:
            data = response.json()
        except ValueError:
            data = None

        structured_prompt = extract_structured_prompt(data)
        if not structured_prompt:
            return UpstreamFailure(
                status=502,
                body=response.text,
                kind=FailureKind.NO_CONTENT,
                message="Upstream response did not include any content",
                attempts=attempts,
            )
        return UpstreamSuccess(
            structured_prompt=structured_prompt,
            usage=extract_usage(data),
            attempts=attempts,
        )
