# tracking/session_summary.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from itertools import groupby
from typing import Any, Dict, List, Sequence, Tuple

from tracking.focus_score_engine import Achievement, FocusScoreEngine, SessionHistoryEntry
from tracking.i_attention_classifier import AttentionState


PHONE_RESISTANCE_PENALTY = 5


@dataclass(frozen=True)
class SessionSummary:
    """
    Final, immutable record of one study session, handed to persistence.

    detections: phone (object hits) and ticks spent per state
    analytics:  hourly_focus[24] (% focused per hour of day),
                recovery_rate (0..1), distraction_resistance (0..100)
    """
    subject: str
    duration_minutes: int
    focus_score: int
    category: str
    detections: Dict[str, int]
    hourly_focus: Tuple[int, ...]
    recovery_rate: float
    distraction_resistance: float
    focused_seconds: float
    distracted_seconds: float
    away_seconds: float
    transition_events: int
    started_at: float
    ended_at: float
    achievements: Tuple[Achievement, ...] = field(default_factory=tuple)

    @property
    def analytics(self) -> Dict[str, Any]:
        return {
            "hourly_focus": list(self.hourly_focus),
            "recovery_rate": self.recovery_rate,
            "distraction_resistance": self.distraction_resistance,
        }

    def to_record(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "duration_minutes": self.duration_minutes,
            "focus_score": self.focus_score,
            "detections": dict(self.detections),
            "analytics": self.analytics,
        }


def build_summary(
    engine: FocusScoreEngine,
    subject: str,
    started_at: float,
    ended_at: float,
    achievements: Sequence[Achievement] = (),
) -> SessionSummary:
    acc = engine.accumulator
    score = engine.score()

    return SessionSummary(
        subject=subject,
        duration_minutes=int(round(acc.total_seconds / 60.0)),
        focus_score=score,
        category=engine.categorize(score).value,
        detections=detection_counts(engine),
        hourly_focus=tuple(hourly_focus(engine.history)),
        recovery_rate=recovery_rate(engine.history),
        distraction_resistance=float(max(0, 100 - acc.object_hit_count * PHONE_RESISTANCE_PENALTY)),
        focused_seconds=acc.focused_seconds,
        distracted_seconds=acc.distracted_seconds,
        away_seconds=acc.away_seconds,
        transition_events=acc.transition_event_count,
        started_at=started_at,
        ended_at=ended_at,
        achievements=tuple(achievements),
    )


def detection_counts(engine: FocusScoreEngine) -> Dict[str, int]:
    counts = {state.value: 0 for state in AttentionState}
    for entry in engine.history:
        counts[entry.state.value] += 1
    counts["phone"] = engine.accumulator.object_hit_count
    return counts


def hourly_focus(history: Sequence[SessionHistoryEntry]) -> List[int]:
    """Focused share of tracked time (0..100) for each hour of the day."""
    focused = [0.0] * 24
    total = [0.0] * 24
    for entry in history:
        hour = datetime.fromtimestamp(entry.timestamp).hour
        total[hour] += entry.duration_seconds
        if entry.state == AttentionState.FOCUSED:
            focused[hour] += entry.duration_seconds
    return [int(round(f / t * 100)) if t > 0 else 0 for f, t in zip(focused, total)]


def recovery_rate(history: Sequence[SessionHistoryEntry]) -> float:
    """
    Share of distracted/away episodes that ended back in FOCUSED.
    An episode still running at session end did not recover.
    """
    episodes = [state for state, _ in groupby(entry.state for entry in history)]
    lapses = 0
    recovered = 0
    for i, state in enumerate(episodes):
        if state == AttentionState.FOCUSED:
            continue
        lapses += 1
        if i + 1 < len(episodes) and episodes[i + 1] == AttentionState.FOCUSED:
            recovered += 1
    if lapses == 0:
        return 1.0
    return round(recovered / lapses, 2)
