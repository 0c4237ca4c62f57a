"""Entitlement checks: a fixed answer, or a lookup against an HTTP service."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from radiowash.adapters.http_resilience import BlockingResilientClient, ResilientClient
from radiowash.domain.errors import UpstreamPermanentError, UpstreamTransientError

if TYPE_CHECKING:
    from radiowash.adapters.http_resilience import ClientFactory
    from radiowash.config import EntitlementConfig

log = getLogger(__name__)


class EntitlementResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entitled: bool = False


@dataclass(frozen=True, slots=True)
class StaticEntitlementChecker:
    """Grant (or deny) everyone; used when no entitlement service is configured."""

    entitled: bool = True

    def is_entitled(self, user_id: str) -> bool:  # noqa: ARG002
        return self.entitled


@dataclass(slots=True)
class HttpEntitlementChecker:
    """Ask ``GET {service_url}/users/{user_id}/entitlement`` for ``{"entitled": bool}``.

    Unknown users (404) are not entitled. Other failures raise, leaving the
    decision to the caller. Positive answers are cached by the shared client
    for as long as the checker lives.
    """

    config: EntitlementConfig
    client_factory: ClientFactory = field(default=ResilientClient)
    _http: BlockingResilientClient = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.config.service_url:
            raise ValueError("HttpEntitlementChecker needs a service URL")
        self._http = BlockingResilientClient(self.config.resilience, self.client_factory)

    def entitlement_url(self, user_id: str) -> str:
        base = (self.config.service_url or "").rstrip("/")
        return f"{base}/users/{quote(user_id, safe='')}/entitlement"

    def is_entitled(self, user_id: str) -> bool:
        return self._http.run(lambda client: self._lookup(client, user_id))

    def close(self) -> None:
        self._http.close()

    async def _lookup(self, client: ResilientClient, user_id: str) -> bool:
        token = self.config.api_token
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = await client.get(self.entitlement_url(user_id), headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamTransientError(f"Entitlement lookup failed: {exc}") from exc
        return _interpret(user_id, response)


def _interpret(user_id: str, response: httpx.Response) -> bool:
    if response.status_code == 404:
        log.info("Entitlement service does not know user %s", user_id)
        return False
    if response.status_code >= 500 or response.status_code == 429:
        raise UpstreamTransientError(f"Entitlement service returned {response.status_code}")
    if response.is_error:
        raise UpstreamPermanentError(f"Entitlement service returned {response.status_code}")
    try:
        return EntitlementResponse.model_validate_json(response.content).entitled
    except ValidationError as exc:
        raise UpstreamPermanentError(f"Malformed entitlement response: {exc}") from exc


if TYPE_CHECKING:
    from radiowash.config import EntitlementConfig as _EntitlementConfig
    from radiowash.domain.ports import EntitlementChecker

    _static_check: EntitlementChecker = StaticEntitlementChecker()
    _http_check: EntitlementChecker = HttpEntitlementChecker(config=_EntitlementConfig())
