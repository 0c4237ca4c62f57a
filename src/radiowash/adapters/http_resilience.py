"""Async httpx client with retries, rate limiting and an optional response cache."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Coroutine
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheTransport
from httpx_retries import Retry, RetryTransport

from radiowash.config.storage import get_http_cache_path

if TYPE_CHECKING:
    from types import TracebackType

    from radiowash.config.http_resilience import (
        CacheConfig,
        ResilienceConfig,
        RetryPolicy,
        ShouldCacheHook,
    )

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
    )


class ResilientClient:
    """``httpx.AsyncClient`` with retries, an optional limiter and cache.

    Connection errors and the statuses in ``RetryPolicy.status_forcelist`` are
    retried by the transport; the final response is handed back unchanged, so
    adapters still decide what a 404 or a 503 means for them. The limiter and
    the cache live as long as the client does.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        client_transport: httpx.AsyncBaseTransport = RetryTransport(
            transport=transport, retry=build_retry(config.retry)
        )
        if config.cache is not None:
            # Cache outside the retries: a hit never reaches the network.
            client_transport = AsyncCacheTransport(
                next_transport=client_transport,
                storage=AsyncSqliteStorage(
                    database_path=config.cache.path or get_http_cache_path(),
                    default_ttl=config.cache.ttl_seconds,
                ),
                policy=_build_policy(config.cache),
            )
        self._client = httpx.AsyncClient(timeout=config.timeout_seconds, transport=client_transport)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, headers: dict[str, str] | None = None) -> httpx.Response:
        return await self._request("GET", url, headers=headers)

    async def post(
        self,
        url: str,
        *,
        json: Any = None,  # noqa: ANN401
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._request("POST", url, json=json, headers=headers)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,  # noqa: ANN401
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        if self._limiter is not None:
            async with self._limiter:
                response = await self._client.request(method, url, json=json, headers=headers)
        else:
            response = await self._client.request(method, url, json=json, headers=headers)
        log.debug("%s %s %s -> %d", self.config.name, method, url, response.status_code)
        return response


type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


class BlockingResilientClient:
    """Run ``ResilientClient`` calls from synchronous adapters.

    One client and one event loop are kept until ``close``, so the rate
    limiter and the response cache see every call the adapter makes.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        client_factory: ClientFactory = ResilientClient,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._runner: asyncio.Runner | None = None
        self._client: ResilientClient | None = None

    def run[T](self, call: Callable[[ResilientClient], Coroutine[Any, Any, T]]) -> T:
        if self._runner is None:
            self._runner = asyncio.Runner()
        if self._client is None:
            self._client = self._runner.run(self._open())
        return self._runner.run(call(self._client))

    async def _open(self) -> ResilientClient:
        return self._client_factory(self.config)

    def close(self) -> None:
        if self._runner is None:
            return
        if self._client is not None:
            self._runner.run(self._client.aclose())
            self._client = None
        self._runner.close()
        self._runner = None

    def __enter__(self) -> BlockingResilientClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class _JsonPredicateFilter(BaseFilter[HishelCacheResponse]):
    """Only store responses whose JSON body passes ``predicate``."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return False
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return False
        return bool(self._predicate(payload))


def _build_policy(config: CacheConfig) -> FilterPolicy | None:
    if config.should_cache is None:
        return None
    return FilterPolicy(response_filters=[_JsonPredicateFilter(config.should_cache)])
