"""Port answering whether a user may use sync features."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EntitlementChecker(Protocol):
    def is_entitled(self, user_id: str) -> bool: ...
