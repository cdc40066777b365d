# tracking/focus_score_engine.py

from __future__ import annotations

import math
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from tracking.base_focus_score_engine import BaseFocusScoreEngine
from tracking.config import ScoreConfig
from tracking.i_attention_classifier import AttentionState


@dataclass
class ScoreAccumulator:
    focused_seconds: float = 0.0
    distracted_seconds: float = 0.0
    away_seconds: float = 0.0
    object_hit_count: int = 0
    transition_event_count: int = 0

    @property
    def total_seconds(self) -> float:
        return self.focused_seconds + self.distracted_seconds + self.away_seconds


@dataclass(frozen=True)
class SessionHistoryEntry:
    timestamp: float
    state: AttentionState
    duration_seconds: float


@dataclass(frozen=True)
class Achievement:
    type: str
    title: str
    description: str
    category: str = "focus"

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def deep_work_streak(window: int) -> Achievement:
    return Achievement(
        type="streak",
        title="Deep Work Streak",
        description=f"{window} focused ticks in a row. You're in the zone!",
        category="focus",
    )


def distraction_free(minutes: int) -> Achievement:
    return Achievement(
        type="distraction-free",
        title="Distraction-Free Session",
        description=f"Over {minutes} focused minutes without a phone. Great digital discipline!",
        category="prevention",
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class FocusScoreEngine(BaseFocusScoreEngine):
    """
    Accumulates time per attention state and turns it into a 0..100 score.

    - record_tick(state, seconds): adds the tick to its state bucket and
      appends it to the history log. Leaving FOCUSED counts one
      transition event (the session starts FOCUSED).
    - record_object_hit(): one object distraction episode (e.g. phone).
    - score(): see ScoreConfig for the formula; constant until the next
      record_* call.
    - check_streaks(): achievements whose condition holds right now.
      Polling twice returns the same list; de-duplication is the
      caller's job.
    """

    def __init__(self, config: Optional[ScoreConfig] = None) -> None:
        self.config = config or ScoreConfig()
        self.accumulator = ScoreAccumulator()
        self.history: List[SessionHistoryEntry] = []
        self.started_at: Optional[float] = None
        self._previous_state = AttentionState.FOCUSED

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self, now: Optional[float] = None) -> None:
        """Reset every counter and the history log."""
        self.accumulator = ScoreAccumulator()
        self.history = []
        self.started_at = time.time() if now is None else now
        self._previous_state = AttentionState.FOCUSED

    # ------------------------------------------------------------------ #
    # Recording
    # ------------------------------------------------------------------ #

    def record_tick(
        self,
        state: AttentionState,
        tick_duration_seconds: float,
        timestamp: Optional[float] = None,
    ) -> None:
        state = AttentionState(state)
        duration = max(0.0, float(tick_duration_seconds))
        acc = self.accumulator

        if self._previous_state == AttentionState.FOCUSED and state != AttentionState.FOCUSED:
            acc.transition_event_count += 1
        self._previous_state = state

        if state == AttentionState.FOCUSED:
            acc.focused_seconds += duration
        elif state == AttentionState.DISTRACTED:
            acc.distracted_seconds += duration
        else:
            acc.away_seconds += duration

        if timestamp is None:
            timestamp = time.time()
        if self.started_at is None:
            self.started_at = timestamp
        self.history.append(SessionHistoryEntry(timestamp, state, duration))

    def record_object_hit(self) -> None:
        self.accumulator.object_hit_count += 1

    # ------------------------------------------------------------------ #
    # Score
    # ------------------------------------------------------------------ #

    def score(self) -> int:
        cfg = self.config
        acc = self.accumulator

        total = acc.total_seconds
        if total <= 0:
            return cfg.empty_score

        effective = (
            total
            + acc.distracted_seconds * cfg.distracted_weight
            + acc.away_seconds * cfg.away_weight
        )
        raw = 100.0 * acc.focused_seconds / effective

        hit_penalty = acc.object_hit_count * cfg.hit_penalty
        if cfg.hit_penalty_cap is not None:
            hit_penalty = min(hit_penalty, cfg.hit_penalty_cap)

        event_penalty = acc.transition_event_count * cfg.event_penalty
        if cfg.event_penalty_cap is not None:
            event_penalty = min(event_penalty, cfg.event_penalty_cap)

        value = max(0.0, min(100.0, raw - hit_penalty - event_penalty))
        return _round_half_up(value)

    # ------------------------------------------------------------------ #
    # Achievements
    # ------------------------------------------------------------------ #

    def check_streaks(self) -> List[Achievement]:
        cfg = self.config
        achievements: List[Achievement] = []

        window = cfg.streak_window
        recent = self.history[-window:]
        if len(recent) >= window and all(e.state == AttentionState.FOCUSED for e in recent):
            achievements.append(deep_work_streak(window))

        acc = self.accumulator
        if acc.object_hit_count == 0 and acc.focused_seconds > cfg.distraction_free_seconds:
            achievements.append(distraction_free(int(cfg.distraction_free_seconds // 60)))

        return achievements

    # ------------------------------------------------------------------ #
    # Reporting
    # ------------------------------------------------------------------ #

    def stats(self) -> Dict[str, Any]:
        acc = self.accumulator
        total = acc.total_seconds

        def percent(part: float) -> int:
            return _round_half_up(part / total * 100) if total > 0 else 0

        score = self.score()
        return {
            "score": score,
            "category": self.categorize(score).value,
            "focused_seconds": _round_half_up(acc.focused_seconds),
            "distracted_seconds": _round_half_up(acc.distracted_seconds),
            "away_seconds": _round_half_up(acc.away_seconds),
            "object_hits": acc.object_hit_count,
            "transition_events": acc.transition_event_count,
            "total_seconds": _round_half_up(total),
            "focused_percent": percent(acc.focused_seconds),
            "distracted_percent": percent(acc.distracted_seconds),
            "away_percent": percent(acc.away_seconds),
        }

    def timeline(self, bucket_seconds: float = 60.0) -> List[Dict[str, float]]:
        """
        Group the history into consecutive buckets of `bucket_seconds`:
        [{"timestamp": start, "focused": s, "distracted": s, "away": s}, ...]
        """
        if not self.history:
            return []

        buckets: List[Dict[str, float]] = []
        bucket_start = self.started_at if self.started_at is not None else self.history[0].timestamp
        current = _empty_bucket(bucket_start)

        for entry in self.history:
            if entry.timestamp - bucket_start >= bucket_seconds:
                buckets.append(current)
                bucket_start = entry.timestamp
                current = _empty_bucket(bucket_start)
            current[entry.state.value] += entry.duration_seconds

        if current["focused"] + current["distracted"] + current["away"] > 0:
            buckets.append(current)
        return buckets


def _empty_bucket(start: float) -> Dict[str, float]:
    return {"timestamp": start, "focused": 0.0, "distracted": 0.0, "away": 0.0}
