# tracking/i_attention_classifier.py

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from detection.object_stabilizer import StabilizedDistraction
from detection.temporal_smoother import SmoothedSignal


class AttentionState(str, Enum):
    FOCUSED = "focused"
    DISTRACTED = "distracted"
    AWAY = "away"


class IAttentionClassifier(ABC):
    """
    Interface for anything that turns one tick of fused signals into an
    attention state.
    """

    @abstractmethod
    def tick(
        self,
        face_detected: bool,
        distraction: Optional[StabilizedDistraction],
        smoothed: SmoothedSignal,
        now: float,
    ) -> AttentionState:
        """
        `now` is a monotonic session clock in seconds.
        Always returns one of the three states.
        """
        raise NotImplementedError
