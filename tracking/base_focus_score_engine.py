# tracking/base_focus_score_engine.py

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class FocusCategory(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


def categorize(score: float) -> FocusCategory:
    if score >= 90:
        return FocusCategory.EXCELLENT
    if score >= 70:
        return FocusCategory.GOOD
    if score >= 50:
        return FocusCategory.FAIR
    return FocusCategory.POOR


class BaseFocusScoreEngine(ABC):
    """
    Base class for session focus scoring.
    """

    @abstractmethod
    def score(self) -> int:
        """
        Must return a value between 0 and 100.
        """
        raise NotImplementedError

    def categorize(self, score: float) -> FocusCategory:
        """
        Convert numeric score into a category.
        """
        return categorize(score)
