"""Scan/lock state machine resolving the identity of the observed appliance."""

from __future__ import annotations

import logging
from collections.abc import Callable

from voltsentinel.domain.models import ApplianceId, DetectionMode, DetectionState

logger = logging.getLogger(__name__)

DetectionListener = Callable[[DetectionState], None]

REFERENCE_LOCK_CONFIDENCE = 0.984
FAST_LOCK_AFTER_TICKS = 10

# Free-roam scan: open tick windows (low, high) mapped to candidate identities.
FREE_ROAM_WINDOWS: tuple[tuple[int, int, ApplianceId], ...] = (
    (40, 80, ApplianceId.LAPTOP),
    (100, 140, ApplianceId.FAN),
    (160, 200, ApplianceId.MONITOR),
)
FREE_ROAM_RESET_PERIOD = 80


class DetectionStateMachine:
    """IDLE -> SCANNING -> LOCKED, advanced one scan tick at a time.

    With a target hint the machine locks onto the hint once more than
    ``fast_lock_after`` ticks have elapsed. Without one it walks the
    free-roam windows, dropping the candidate on every 80th tick.
    """

    def __init__(
        self,
        *,
        fast_lock_after: int = FAST_LOCK_AFTER_TICKS,
        default_confidence: float = REFERENCE_LOCK_CONFIDENCE,
    ) -> None:
        if fast_lock_after < 0:
            raise ValueError("fast_lock_after must be >= 0")
        if not 0.0 <= default_confidence <= 1.0:
            raise ValueError("default_confidence must be in [0, 1]")
        self._fast_lock_after = fast_lock_after
        self._default_confidence = default_confidence
        self._mode = DetectionMode.IDLE
        self._locked_id: ApplianceId | None = None
        self._hint: ApplianceId | None = None
        self._scan_ticks = 0
        self._confidence: float | None = None
        self._listeners: list[DetectionListener] = []

    @property
    def state(self) -> DetectionState:
        return DetectionState(
            mode=self._mode,
            locked_id=self._locked_id,
            scan_ticks=self._scan_ticks,
            confidence=self._confidence,
        )

    @property
    def hint(self) -> ApplianceId | None:
        return self._hint

    @property
    def is_active(self) -> bool:
        return self._mode != DetectionMode.IDLE

    def subscribe(self, listener: DetectionListener) -> Callable[[], None]:
        """Register a listener for mode/identity transitions; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start_scan(self, hint: ApplianceId | str | None = None) -> DetectionState:
        """Enter scan mode, resetting the tick counter and any previous lock."""
        self._hint = ApplianceId(hint) if hint is not None else None
        self._scan_ticks = 0
        self._locked_id = None
        self._confidence = None
        self._mode = DetectionMode.SCANNING
        logger.info("scan started (hint=%s)", self._hint.value if self._hint else None)
        return self._publish()

    def stop_scan(self) -> DetectionState:
        """Return to IDLE and forget the lock, hint and counter."""
        self._mode = DetectionMode.IDLE
        self._locked_id = None
        self._hint = None
        self._scan_ticks = 0
        self._confidence = None
        logger.info("scan stopped")
        return self._publish()

    def tick(self, confidence: float | None = None) -> DetectionState:
        """Advance one scan tick; ``confidence`` overrides the default lock confidence."""
        if self._mode == DetectionMode.IDLE:
            return self.state
        if confidence is not None and not 0.0 <= confidence <= 1.0:
            raise ValueError("confidence must be in [0, 1]")

        previous = (self._mode, self._locked_id)
        self._scan_ticks += 1
        if self._hint is not None:
            self._locked_id = self._hint if self._scan_ticks > self._fast_lock_after else None
        else:
            self._locked_id = _free_roam_candidate(self._scan_ticks, self._locked_id)

        if self._locked_id is None:
            self._mode = DetectionMode.SCANNING
            self._confidence = None
        else:
            self._mode = DetectionMode.LOCKED
            self._confidence = confidence if confidence is not None else self._default_confidence

        if (self._mode, self._locked_id) != previous:
            if self._locked_id is not None:
                logger.info("locked on %s after %d ticks", self._locked_id.value, self._scan_ticks)
            return self._publish()
        return self.state

    def display_target(self) -> ApplianceId | None:
        """Appliance whose signature should be rendered for the current tick."""
        if self._locked_id is not None:
            return self._locked_id
        if self._hint is not None and self._scan_ticks > self._fast_lock_after:
            return self._hint
        return None

    def _publish(self) -> DetectionState:
        snapshot = self.state
        for listener in tuple(self._listeners):
            listener(snapshot)
        return snapshot


def _free_roam_candidate(scan_ticks: int, current: ApplianceId | None) -> ApplianceId | None:
    for low, high, appliance in FREE_ROAM_WINDOWS:
        if low < scan_ticks < high:
            return appliance
    if scan_ticks % FREE_ROAM_RESET_PERIOD == 0:
        return None
    return current
