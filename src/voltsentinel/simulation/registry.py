"""Per-appliance health records with a single partial-update entry point."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from voltsentinel.domain.models import ApplianceId, ApplianceState

logger = logging.getLogger(__name__)

StateListener = Callable[[ApplianceId, ApplianceState], None]


class ApplianceRegistry:
    """Owns one ApplianceState per monitored appliance.

    Updates replace only the fields they name, so an age edit and a health
    score update for the same appliance never clobber each other.
    """

    def __init__(self, appliances: Iterable[ApplianceId] = tuple(ApplianceId)) -> None:
        self._states: dict[ApplianceId, ApplianceState] = {
            ApplianceId(appliance): ApplianceState() for appliance in appliances
        }
        if not self._states:
            raise ValueError("appliances must not be empty")
        self._listeners: list[StateListener] = []

    def __contains__(self, appliance: object) -> bool:
        return appliance in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, appliance: ApplianceId | str) -> ApplianceState:
        """Return the current state of one appliance."""
        return self._states[self._resolve(appliance)]

    def snapshot(self) -> dict[ApplianceId, ApplianceState]:
        return dict(self._states)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(
        self,
        appliance: ApplianceId | str,
        *,
        age: float | None = None,
        health_score: float | None = None,
    ) -> ApplianceState:
        """Replace the named fields of one appliance's state."""
        appliance_id = self._resolve(appliance)
        changes: dict[str, float] = {}
        if age is not None:
            changes["age"] = float(age)
        if health_score is not None:
            changes["health_score"] = float(health_score)
        if not changes:
            return self._states[appliance_id]

        updated = replace(self._states[appliance_id], **changes)
        self._states[appliance_id] = updated
        logger.debug("state of %s updated: %s", appliance_id.value, changes)
        for listener in tuple(self._listeners):
            listener(appliance_id, updated)
        return updated

    def set_age(self, appliance: ApplianceId | str, age: float) -> ApplianceState:
        """Set the user-controlled age, clamped to [0, 100]."""
        return self.update(appliance, age=min(max(float(age), 0.0), 100.0))

    def set_health_score(self, appliance: ApplianceId | str, score: float) -> ApplianceState:
        return self.update(appliance, health_score=score)

    def _resolve(self, appliance: ApplianceId | str) -> ApplianceId:
        appliance_id = ApplianceId(appliance)
        if appliance_id not in self._states:
            raise KeyError(f"appliance not registered: {appliance_id.value}")
        return appliance_id
