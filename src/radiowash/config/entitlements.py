"""Entitlement service configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var
from .http_resilience import CacheConfig, ResilienceConfig, RetryPolicy

ENTITLEMENT_CACHE_TTL_SECONDS = 300.0


def _cache_entitled_only(payload: object) -> bool:
    return isinstance(payload, dict) and payload.get("entitled") is True  # pyright: ignore[reportUnknownMemberType]


def default_entitlement_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="entitlements",
        timeout_seconds=10.0,
        retry=RetryPolicy(total=3),
        cache=CacheConfig(
            ttl_seconds=ENTITLEMENT_CACHE_TTL_SECONDS,
            should_cache=_cache_entitled_only,
        ),
    )


@dataclass(frozen=True, slots=True)
class EntitlementConfig:
    service_url: str | None = None
    api_token: str | None = None
    resilience: ResilienceConfig = field(default_factory=default_entitlement_resilience)


def get_entitlement_config() -> EntitlementConfig:
    return EntitlementConfig(
        service_url=optional_env_var("RADIOWASH_ENTITLEMENT_URL"),
        api_token=optional_env_var("RADIOWASH_ENTITLEMENT_TOKEN"),
    )
