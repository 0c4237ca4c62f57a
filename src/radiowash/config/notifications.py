"""Progress notification sink configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy


def default_webhook_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="progress-webhook",
        timeout_seconds=5.0,
        retry=RetryPolicy(total=2, backoff_factor=0.25),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        cache=None,
    )


@dataclass(frozen=True, slots=True)
class NotificationConfig:
    webhook_url: str | None = None
    resilience: ResilienceConfig = field(default_factory=default_webhook_resilience)


def get_notification_config() -> NotificationConfig:
    return NotificationConfig(webhook_url=optional_env_var("RADIOWASH_PROGRESS_WEBHOOK_URL"))
