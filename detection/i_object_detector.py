# detection/i_object_detector.py

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Tuple


BBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class RawDetection:
    """
    One object returned by the object model for a single frame.
    bbox is (x, y, w, h) in frame pixels.
    """
    label: str
    confidence: float
    bbox: BBox = (0.0, 0.0, 0.0, 0.0)


class IObjectDetector(ABC):
    """
    Interface for anything that can find objects in a camera frame
    (YOLO, a remote service, a fake in tests, ...).
    """

    @abstractmethod
    def detect(self, frame: Any) -> List[RawDetection]:
        """
        Return all objects found in the frame.
        An empty list means nothing was found.
        """
        raise NotImplementedError
