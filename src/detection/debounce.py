"""
Event debouncer shared by both detection strategies.

Turns one "strong signal" boolean per frame into rate-limited events:

    Idle -> Accumulating -> Triggered -> Idle

A hit increments a saturating counter. A miss either decrements it
("decay", so single-frame dropouts don't cancel a build-up) or clears it
("immediate"). A frame with nothing to follow clears it under both
policies. An event fires when the counter has reached the hit threshold and
more than the cooldown has passed since the previous event; the counter is
left as is afterwards and falls naturally as the ball leaves the frame.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.status import DetectorState, TriggerPhase

POLICY_DECAY = "decay"
POLICY_IMMEDIATE = "immediate"
POLICIES = (POLICY_DECAY, POLICY_IMMEDIATE)


class EventDebouncer:
    """
    Hysteresis + cooldown trigger.

    Args:
        hit_threshold: Consecutive hits required before an event can fire.
        cooldown_seconds: Minimum gap between two events.
        warmup_seconds: Interval after stream start during which signals are
            discarded while exposure and focus settle.
        policy: "decay" or "immediate" handling of a missed frame.
    """

    def __init__(
        self,
        hit_threshold: int = 3,
        cooldown_seconds: float = 1.5,
        warmup_seconds: float = 2.0,
        policy: str = POLICY_DECAY,
    ):
        if not isinstance(hit_threshold, int) or hit_threshold < 1:
            raise ValueError("hit_threshold must be a positive integer")
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be non-negative")
        if warmup_seconds < 0:
            raise ValueError("warmup_seconds must be non-negative")
        if policy not in POLICIES:
            raise ValueError(f"policy must be one of: {', '.join(POLICIES)}")
        self.hit_threshold = hit_threshold
        self.cooldown_seconds = cooldown_seconds
        self.warmup_seconds = warmup_seconds
        self.policy = policy
        self.state = DetectorState()

    def reset(self) -> None:
        self.state = DetectorState()

    def in_cooldown(self, timestamp: float) -> bool:
        last = self.state.last_trigger_timestamp
        return last is not None and (timestamp - last) <= self.cooldown_seconds

    def _update_warmup(self, timestamp: float) -> bool:
        state = self.state
        if state.stream_start is None:
            state.stream_start = timestamp
        state.warmup_active = (timestamp - state.stream_start) < self.warmup_seconds
        return state.warmup_active

    def clear_hits(self) -> None:
        self.state.consecutive_hits = 0
        self.state.phase = TriggerPhase.IDLE

    def update(
        self,
        strong: bool,
        timestamp: float,
        present: bool = True,
        armed: bool = True,
    ) -> bool:
        """
        Feed one frame's signal; returns True when this frame emits an event.

        present=False (nothing to follow this frame) clears the counter.
        armed=False runs the warmup clock but clears the counter and never
        fires (preview or calibration).
        """
        state = self.state
        if self._update_warmup(timestamp):
            return False
        if not armed:
            self.clear_hits()
            return False

        if not present:
            state.consecutive_hits = 0
        elif strong:
            state.consecutive_hits = min(state.consecutive_hits + 1, self.hit_threshold)
        elif self.policy == POLICY_DECAY:
            state.consecutive_hits = max(0, state.consecutive_hits - 1)
        else:
            state.consecutive_hits = 0

        if state.consecutive_hits >= self.hit_threshold and not self.in_cooldown(timestamp):
            state.last_trigger_timestamp = timestamp
            state.phase = TriggerPhase.TRIGGERED
            logging.debug(f"Debouncer triggered at t={timestamp:.3f}")
            return True

        state.phase = TriggerPhase.ACCUMULATING if state.consecutive_hits > 0 else TriggerPhase.IDLE
        return False

    @property
    def last_trigger_timestamp(self) -> Optional[float]:
        return self.state.last_trigger_timestamp
