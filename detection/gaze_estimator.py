# detection/gaze_estimator.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional


GAZE_AWAY_SHAPES = (
    "eyeLookUpLeft",
    "eyeLookDownLeft",
    "eyeLookOutLeft",
    "eyeLookInLeft",
)
EYE_CLOSED_SHAPE = "eyeBlinkLeft"


@dataclass(frozen=True)
class GazeSample:
    away_score: float
    closed_score: float


def _score(blendshapes: Mapping[str, float], name: str) -> float:
    value = blendshapes.get(name) or 0.0
    return max(0.0, min(1.0, float(value)))


def estimate_gaze(blendshapes: Optional[Mapping[str, float]]) -> Optional[GazeSample]:
    """
    Gaze offset = strongest eye-look blendshape, eye closure = blink.
    Returns None when the model gave no blendshapes for this frame.
    """
    if not blendshapes:
        return None

    away = max(_score(blendshapes, name) for name in GAZE_AWAY_SHAPES)
    closed = _score(blendshapes, EYE_CLOSED_SHAPE)
    return GazeSample(away_score=away, closed_score=closed)
