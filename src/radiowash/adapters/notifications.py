"""Progress notifier adapters: log lines and an optional JSON webhook."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal
from uuid import UUID  # noqa: TC003

import httpx
from pydantic import BaseModel, ConfigDict

from radiowash.adapters.http_resilience import BlockingResilientClient, ResilientClient
from radiowash.config.notifications import default_webhook_resilience
from radiowash.domain.ports.notifications import JobCompleted, JobFailed, ProgressUpdate

if TYPE_CHECKING:
    from radiowash.adapters.http_resilience import ClientFactory
    from radiowash.config import ResilienceConfig
    from radiowash.domain.ports import JobEvent

log = getLogger(__name__)

type EventKind = Literal["progress", "completed", "failed"]


class NotificationPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_id: UUID
    event: EventKind
    data: dict[str, Any]


def event_kind(event: JobEvent) -> EventKind:
    match event:
        case ProgressUpdate():
            return "progress"
        case JobCompleted():
            return "completed"
        case JobFailed():
            return "failed"


def build_payload(job_id: UUID, event: JobEvent) -> NotificationPayload:
    return NotificationPayload(job_id=job_id, event=event_kind(event), data=asdict(event))


class NotificationDeliveryError(RuntimeError):
    """Raised when the webhook rejects a notification."""


class LoggingNotifier:
    """Write job events to the application log."""

    def publish(self, job_id: UUID, event: JobEvent) -> None:
        match event:
            case ProgressUpdate(percent=percent, batch_label=label, message=message):
                log.info("Job %s %3d%% %s (%s)", job_id, percent, message, label)
            case JobCompleted(message=message):
                log.info("Job %s completed: %s", job_id, message)
            case JobFailed(error=error):
                log.error("Job %s failed: %s", job_id, error)


@dataclass(slots=True)
class WebhookNotifier:
    """POST each event as JSON to a configured URL.

    Every event goes through one long-lived client, so the configured rate
    limit applies across a whole job.
    """

    url: str
    resilience: ResilienceConfig = field(default_factory=default_webhook_resilience)
    client_factory: ClientFactory = field(default=ResilientClient)
    _http: BlockingResilientClient = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._http = BlockingResilientClient(self.resilience, self.client_factory)

    def publish(self, job_id: UUID, event: JobEvent) -> None:
        payload = build_payload(job_id, event)
        self._http.run(lambda client: self._deliver(client, payload))

    def close(self) -> None:
        self._http.close()

    async def _deliver(self, client: ResilientClient, payload: NotificationPayload) -> None:
        try:
            response = await client.post(self.url, json=payload.model_dump(mode="json"))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationDeliveryError(
                f"Webhook delivery of {payload.event} failed: {exc}"
            ) from exc


@dataclass(slots=True)
class CompositeNotifier:
    """Fan an event out to several notifiers; one failing does not stop the rest."""

    notifiers: tuple[LoggingNotifier | WebhookNotifier, ...]

    def publish(self, job_id: UUID, event: JobEvent) -> None:
        errors: list[Exception] = []
        for notifier in self.notifiers:
            try:
                notifier.publish(job_id, event)
            except Exception as exc:  # noqa: BLE001 - collected and re-raised below
                errors.append(exc)
        if errors:
            raise NotificationDeliveryError("; ".join(str(error) for error in errors))

    def close(self) -> None:
        for notifier in self.notifiers:
            if isinstance(notifier, WebhookNotifier):
                notifier.close()


if TYPE_CHECKING:
    from radiowash.domain.ports import ProgressNotifier

    _logging_check: ProgressNotifier = LoggingNotifier()
    _webhook_check: ProgressNotifier = WebhookNotifier(url="")
    _composite_check: ProgressNotifier = CompositeNotifier(notifiers=())
