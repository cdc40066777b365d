# tracking/config.py

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from typing import Mapping, Optional


class ConfigurationError(ValueError):
    """Invalid threshold / capacity / weight. Raised at construction time."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


@dataclass(frozen=True)
class StabilizerConfig:
    """
    Object detection stabilizer:
      - acceptance_threshold: min model confidence for a detection to count
      - buffer_size:          how many recent object ticks are remembered
      - min_consistency:      how many of them must agree on a label
    """
    acceptance_threshold: float = 0.3
    buffer_size: int = 5
    min_consistency: int = 2

    def __post_init__(self) -> None:
        _require(0.0 <= self.acceptance_threshold <= 1.0,
                 f"acceptance_threshold must be within [0, 1], got {self.acceptance_threshold}")
        _require(self.buffer_size >= 1, f"buffer_size must be >= 1, got {self.buffer_size}")
        _require(self.min_consistency >= 1,
                 f"min_consistency must be >= 1, got {self.min_consistency}")
        _require(self.min_consistency <= self.buffer_size,
                 "min_consistency cannot exceed buffer_size "
                 f"({self.min_consistency} > {self.buffer_size})")


@dataclass(frozen=True)
class SmootherConfig:
    buffer_size: int = 10

    def __post_init__(self) -> None:
        _require(self.buffer_size >= 1, f"buffer_size must be >= 1, got {self.buffer_size}")


@dataclass(frozen=True)
class AttentionConfig:
    """
    Thresholds used by the attention state machine.
    Angles are in the head pose estimator's degree-like units.
    """
    absence_timeout: float = 2.0
    head_angle_limit: float = 25.0
    eyes_closed_limit: float = 0.6
    gaze_away_limit: float = 0.3

    def __post_init__(self) -> None:
        _require(self.absence_timeout >= 0.0,
                 f"absence_timeout must be >= 0, got {self.absence_timeout}")
        _require(self.head_angle_limit > 0.0,
                 f"head_angle_limit must be > 0, got {self.head_angle_limit}")
        _require(0.0 <= self.eyes_closed_limit <= 1.0,
                 f"eyes_closed_limit must be within [0, 1], got {self.eyes_closed_limit}")
        _require(0.0 <= self.gaze_away_limit <= 1.0,
                 f"gaze_away_limit must be within [0, 1], got {self.gaze_away_limit}")


@dataclass(frozen=True)
class ScoreConfig:
    """
    Focus score constants.

        effective = total + distracted * distracted_weight + away * away_weight
        raw       = 100 * focused / effective
        penalty   = min(hits * hit_penalty, hit_penalty_cap)
                  + min(events * event_penalty, event_penalty_cap)
        score     = clamp(raw - penalty, 0, 100)

    A cap of None means "no cap". empty_score is returned before any time
    has been recorded.
    """
    distracted_weight: float = 2.0
    away_weight: float = 3.0
    hit_penalty: float = 15.0
    hit_penalty_cap: Optional[float] = 50.0
    event_penalty: float = 5.0
    event_penalty_cap: Optional[float] = 30.0
    empty_score: int = 0
    streak_window: int = 15
    distraction_free_seconds: float = 1800.0

    def __post_init__(self) -> None:
        for name in ("distracted_weight", "away_weight", "hit_penalty", "event_penalty"):
            value = getattr(self, name)
            _require(value >= 0.0, f"{name} must be >= 0, got {value}")
        for name in ("hit_penalty_cap", "event_penalty_cap"):
            value = getattr(self, name)
            _require(value is None or value >= 0.0, f"{name} must be >= 0 or None, got {value}")
        _require(0 <= self.empty_score <= 100,
                 f"empty_score must be within [0, 100], got {self.empty_score}")
        _require(self.streak_window >= 1, f"streak_window must be >= 1, got {self.streak_window}")
        _require(self.distraction_free_seconds >= 0.0,
                 f"distraction_free_seconds must be >= 0, got {self.distraction_free_seconds}")

    @classmethod
    def legacy(cls) -> "ScoreConfig":
        """
        The gentler constant set: lighter time weights, a flat uncapped
        5-point phone penalty, no transition penalty, and 100 before any
        time has been recorded.
        """
        return cls(
            distracted_weight=1.5,
            away_weight=2.0,
            hit_penalty=5.0,
            hit_penalty_cap=None,
            event_penalty=0.0,
            event_penalty_cap=None,
            empty_score=100,
        )


SCORE_PROFILES = {
    "default": ScoreConfig,
    "legacy": ScoreConfig.legacy,
}


@dataclass(frozen=True)
class TrackerConfig:
    """
    Everything one study session needs, plus the frame loop cadence:
      - object_every_n_ticks: object model runs on every Nth tick only
      - tick_seconds:         sleep between ticks in the camera loop
      - model_timeout:        max seconds to wait for a model result
    """
    stabilizer: StabilizerConfig = field(default_factory=StabilizerConfig)
    smoother: SmootherConfig = field(default_factory=SmootherConfig)
    attention: AttentionConfig = field(default_factory=AttentionConfig)
    score: ScoreConfig = field(default_factory=ScoreConfig)
    object_every_n_ticks: int = 2
    tick_seconds: float = 0.03
    model_timeout: float = 0.5

    def __post_init__(self) -> None:
        _require(self.object_every_n_ticks >= 1,
                 f"object_every_n_ticks must be >= 1, got {self.object_every_n_ticks}")
        _require(self.tick_seconds >= 0.0, f"tick_seconds must be >= 0, got {self.tick_seconds}")
        _require(self.model_timeout > 0.0, f"model_timeout must be > 0, got {self.model_timeout}")

    # ------------------------------------------------------------------ #
    # Environment overrides
    # ------------------------------------------------------------------ #

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, prefix: str = "STUDYFOCUS_") -> "TrackerConfig":
        """
        Build a config from environment variables, e.g.

            STUDYFOCUS_ABSENCE_TIMEOUT=3
            STUDYFOCUS_MIN_CONSISTENCY=3
            STUDYFOCUS_SCORE_PROFILE=legacy

        Variable names are the upper-cased field names of the component
        configs. Unknown variables are ignored.
        """
        environ = os.environ if environ is None else environ

        profile = environ.get(prefix + "SCORE_PROFILE", "default").strip().lower()
        if profile not in SCORE_PROFILES:
            raise ConfigurationError(
                f"unknown score profile {profile!r} (expected one of {sorted(SCORE_PROFILES)})"
            )

        stabilizer = _apply_env(StabilizerConfig(), environ, prefix)
        smoother = _apply_env(SmootherConfig(), environ, prefix, name_prefix="SMOOTHER_")
        attention = _apply_env(AttentionConfig(), environ, prefix)
        score = _apply_env(SCORE_PROFILES[profile](), environ, prefix)

        top = _apply_env(
            cls(stabilizer=stabilizer, smoother=smoother, attention=attention, score=score),
            environ,
            prefix,
        )
        return top


def _apply_env(config, environ: Mapping[str, str], prefix: str, name_prefix: str = ""):
    changes = {}
    for f in fields(config):
        if f.name in ("stabilizer", "smoother", "attention", "score"):
            continue
        key = prefix + name_prefix + f.name.upper()
        if key not in environ:
            continue
        optional = f.name.endswith("_cap")
        changes[f.name] = _parse_value(key, environ[key], getattr(config, f.name), optional)
    if not changes:
        return config
    return replace(config, **changes)


def _parse_value(key: str, raw: str, current, optional: bool):
    text = raw.strip().lower()
    if optional and text in ("", "none"):
        return None
    try:
        if isinstance(current, int):
            return int(text)
        return float(text)
    except ValueError:
        raise ConfigurationError(f"{key}={raw!r} is not a valid number") from None
