# tracking/attention_state_machine.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from detection.object_stabilizer import StabilizedDistraction
from detection.temporal_smoother import SmoothedSignal
from tracking.config import AttentionConfig
from tracking.i_attention_classifier import AttentionState, IAttentionClassifier

logger = logging.getLogger(__name__)


class Reason:
    NO_FACE = "no_face"
    EYES_CLOSED = "eyes_closed"
    HEAD_TURNED = "head_turned"
    GAZE_AWAY = "gaze_away"
    OBJECT = "object"
    FOCUSED = "focused"


@dataclass(frozen=True)
class Alert:
    type: str      # "error" | "warning" | "phone"
    message: str


@dataclass(frozen=True)
class AttentionReading:
    """
    Full result of one tick: the state plus why it was chosen.
    `distraction` is forwarded for display even when a face rule won.
    """
    state: AttentionState
    reason: str
    distraction: Optional[StabilizedDistraction] = None
    alerts: Tuple[Alert, ...] = ()


def classify_attention(
    face_detected: bool,
    seconds_without_face: float,
    distraction: Optional[StabilizedDistraction],
    smoothed: SmoothedSignal,
    config: AttentionConfig,
) -> AttentionReading:
    """
    Pure rule table, highest priority first:

      1. no face for longer than absence_timeout  -> AWAY
      2. eyes closed                              -> AWAY
      3. head turned or gaze away                 -> DISTRACTED
      4. stabilized object distraction            -> DISTRACTED
      5. otherwise                                -> FOCUSED

    A missing face inside the timeout falls through to the remaining
    rules, which then work on the last smoothed averages.
    """
    alerts: List[Alert] = []
    object_alert = _object_alert(distraction)

    if not face_detected and seconds_without_face > config.absence_timeout:
        alerts.append(Alert("error", "No face detected"))
        state, reason = AttentionState.AWAY, Reason.NO_FACE
    elif smoothed.eyes_closed(config.eyes_closed_limit):
        alerts.append(Alert("error", "Eyes closed - stay alert"))
        state, reason = AttentionState.AWAY, Reason.EYES_CLOSED
    elif smoothed.head_away(config.head_angle_limit):
        alerts.append(Alert("warning", "Face the screen"))
        state, reason = AttentionState.DISTRACTED, Reason.HEAD_TURNED
    elif smoothed.gaze_away(config.gaze_away_limit):
        alerts.append(Alert("warning", "Focus on your work"))
        state, reason = AttentionState.DISTRACTED, Reason.GAZE_AWAY
    elif distraction is not None:
        state, reason = AttentionState.DISTRACTED, Reason.OBJECT
    else:
        state, reason = AttentionState.FOCUSED, Reason.FOCUSED

    if object_alert is not None:
        alerts.append(object_alert)

    return AttentionReading(state=state, reason=reason, distraction=distraction, alerts=tuple(alerts))


def _object_alert(distraction: Optional[StabilizedDistraction]) -> Optional[Alert]:
    if distraction is None:
        return None
    kind = "phone" if distraction.is_critical else "warning"
    percent = round(distraction.confidence * 100)
    return Alert(kind, f"{distraction.label.upper()} DETECTED ({percent}%)")


class AttentionStateMachine(IAttentionClassifier):
    """
    Focused / Distracted / Away, starting in Focused.

    The only clock it keeps is the last time a face was seen. Until
    reset(now) or the first tick sets it, the absence timer is at zero.
    Leaving FOCUSED counts one transition event.
    """

    def __init__(self, config: Optional[AttentionConfig] = None) -> None:
        self.config = config or AttentionConfig()
        self.state: AttentionState = AttentionState.FOCUSED
        self.transition_events: int = 0
        self.last_reading: Optional[AttentionReading] = None
        self.last_transition_at: Optional[float] = None
        self._last_face_at: Optional[float] = None

    def tick(
        self,
        face_detected: bool,
        distraction: Optional[StabilizedDistraction],
        smoothed: SmoothedSignal,
        now: float,
    ) -> AttentionState:
        return self.evaluate(face_detected, distraction, smoothed, now).state

    def evaluate(
        self,
        face_detected: bool,
        distraction: Optional[StabilizedDistraction],
        smoothed: SmoothedSignal,
        now: float,
    ) -> AttentionReading:
        if self._last_face_at is None or face_detected:
            self._last_face_at = now

        reading = classify_attention(
            face_detected,
            self.seconds_without_face(now),
            distraction,
            smoothed,
            self.config,
        )
        self._transition(reading.state, now)
        self.last_reading = reading
        return reading

    def seconds_without_face(self, now: float) -> float:
        if self._last_face_at is None:
            return 0.0
        return max(0.0, now - self._last_face_at)

    def reset(self, now: Optional[float] = None) -> None:
        """Back to FOCUSED; `now` restarts the absence timer."""
        self.state = AttentionState.FOCUSED
        self.transition_events = 0
        self.last_reading = None
        self.last_transition_at = None
        self._last_face_at = now

    # ------------------------------------------------------------------ #
    # Internal
    # ------------------------------------------------------------------ #

    def _transition(self, new_state: AttentionState, now: float) -> None:
        if new_state == self.state:
            return
        if self.state == AttentionState.FOCUSED:
            self.transition_events += 1
        logger.debug("attention %s -> %s at %.2fs", self.state.value, new_state.value, now)
        self.state = new_state
        self.last_transition_at = now
