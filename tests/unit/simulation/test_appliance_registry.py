from __future__ import annotations

import pytest

from voltsentinel.domain import ApplianceId, ApplianceState, HealthStatus
from voltsentinel.simulation import ApplianceRegistry


def test_registry_starts_every_appliance_new_and_healthy() -> None:
    registry = ApplianceRegistry()
    assert len(registry) == 4
    for appliance in ApplianceId:
        assert registry.get(appliance) == ApplianceState(age=0.0, health_score=1.0)


def test_age_and_score_updates_do_not_clobber_each_other() -> None:
    registry = ApplianceRegistry()
    registry.set_age("fan", 70)
    registry.set_health_score(ApplianceId.FAN, 0.3)
    registry.set_age(ApplianceId.FAN, 80)

    state = registry.get(ApplianceId.FAN)
    assert state.age == 80.0
    assert state.health_score == pytest.approx(0.3)
    assert state.status == HealthStatus.CRITICAL
    assert registry.get(ApplianceId.BULB) == ApplianceState()


def test_set_age_clamps_to_slider_range() -> None:
    registry = ApplianceRegistry()
    assert registry.set_age(ApplianceId.LAPTOP, 150).age == 100.0
    assert registry.set_age(ApplianceId.LAPTOP, -3).age == 0.0


def test_listeners_see_each_update() -> None:
    registry = ApplianceRegistry()
    seen: list[tuple[ApplianceId, ApplianceState]] = []
    unsubscribe = registry.subscribe(lambda appliance, state: seen.append((appliance, state)))

    registry.set_health_score(ApplianceId.MONITOR, 0.6)
    registry.update(ApplianceId.MONITOR)
    unsubscribe()
    registry.set_age(ApplianceId.MONITOR, 10)

    assert seen == [(ApplianceId.MONITOR, ApplianceState(age=0.0, health_score=0.6))]


def test_unregistered_appliance_is_rejected() -> None:
    registry = ApplianceRegistry([ApplianceId.BULB])
    assert ApplianceId.FAN not in registry
    with pytest.raises(KeyError, match="not registered"):
        registry.get(ApplianceId.FAN)
    with pytest.raises(ValueError):
        registry.get("toaster")
    with pytest.raises(ValueError, match="health_score"):
        registry.set_health_score(ApplianceId.BULB, 1.2)
