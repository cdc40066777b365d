# detection/i_landmark_detector.py

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional


class Landmark(NamedTuple):
    """Normalized face landmark (x, y in 0..1 of the frame)."""
    x: float
    y: float
    z: float = 0.0


@dataclass
class FaceObservation:
    """
    Result of the face landmark model for one frame:
      - landmarks:   478-point face mesh (normalized)
      - blendshapes: category name -> score (eyeBlinkLeft, eyeLookUpLeft, ...)
    """
    landmarks: List[Landmark]
    blendshapes: Dict[str, float] = field(default_factory=dict)


class ILandmarkDetector(ABC):
    """
    Interface for the face landmark / pose model.
    """

    @abstractmethod
    def detect_for_frame(self, frame: Any, timestamp_ms: int) -> Optional[FaceObservation]:
        """
        Analyze one video frame.
        Returns None when no face is visible.
        """
        raise NotImplementedError
