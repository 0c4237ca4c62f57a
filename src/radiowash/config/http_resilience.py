"""Settings for the outbound HTTP clients (webhook, entitlement service)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003

ShouldCacheHook = Callable[[object], bool]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    allowed_methods: frozenset[str] = field(default_factory=lambda: frozenset({"GET", "POST"}))
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({429, 500, 502, 503, 504})
    )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """SQLite-backed response cache; ``should_cache`` sees the decoded JSON body.

    ``path`` defaults to the shared cache file in the data directory.
    """

    ttl_seconds: float | None = None
    should_cache: ShouldCacheHook | None = None
    path: Path | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
