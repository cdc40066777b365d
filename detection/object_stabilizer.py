# detection/object_stabilizer.py

from __future__ import annotations

import math
from collections import Counter, deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional

from detection.i_object_detector import BBox, RawDetection
from detection.object_taxonomy import DEFAULT_TAXONOMY, DistractionTaxonomy, PriorityTier, normalize_label
from tracking.config import StabilizerConfig


@dataclass(frozen=True)
class _Candidate:
    label: str
    tier: PriorityTier
    severity: float
    confidence: float
    bbox: BBox


@dataclass(frozen=True)
class StabilizedDistraction:
    """
    An object distraction that survived debouncing.
    confidence / bbox come from the most recent frame that saw it.
    """
    label: str
    tier: PriorityTier
    severity: float
    confidence: float
    bbox: BBox
    consistency_count: int

    @property
    def is_critical(self) -> bool:
        return self.tier is PriorityTier.CRITICAL


class ObjectDetectionStabilizer:
    """
    Debounces the object model:

    1) keep detections whose label is in the taxonomy and whose
       (clamped) confidence >= acceptance_threshold; NaN counts as
       no detection
    2) pick the one with the highest tier, ties broken by confidence
    3) push it (or an empty slot) into a FIFO of `buffer_size` ticks
    4) report a label only once it fills at least `min_consistency`
       slots of that FIFO

    The stabilizer is fed only on ticks where the object model actually
    ran, so a throttled object path does not dilute the buffer.
    """

    def __init__(
        self,
        config: Optional[StabilizerConfig] = None,
        taxonomy: Optional[DistractionTaxonomy] = None,
    ) -> None:
        self.config = config or StabilizerConfig()
        self.taxonomy = taxonomy or DEFAULT_TAXONOMY
        self._buffer: Deque[Optional[_Candidate]] = deque(maxlen=self.config.buffer_size)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def ingest(self, detections: Iterable[RawDetection]) -> Optional[StabilizedDistraction]:
        self._buffer.append(self._select(detections))
        return self.current()

    def current(self) -> Optional[StabilizedDistraction]:
        """Stabilized distraction for the current buffer contents, if any."""
        counts = Counter(c.label for c in self._buffer if c is not None)
        eligible = [label for label, n in counts.items() if n >= self.config.min_consistency]
        if not eligible:
            return None

        latest = {}
        for position, candidate in enumerate(self._buffer):
            if candidate is not None:
                latest[candidate.label] = (position, candidate)

        def rank(label: str):
            position, candidate = latest[label]
            return candidate.tier, counts[label], position

        winner = max(eligible, key=rank)
        _, candidate = latest[winner]
        return StabilizedDistraction(
            label=candidate.label,
            tier=candidate.tier,
            severity=candidate.severity,
            confidence=candidate.confidence,
            bbox=candidate.bbox,
            consistency_count=counts[winner],
        )

    def clear(self) -> None:
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)

    # ------------------------------------------------------------------ #
    # Internal
    # ------------------------------------------------------------------ #

    def _select(self, detections: Iterable[RawDetection]) -> Optional[_Candidate]:
        best: Optional[_Candidate] = None
        for detection in detections:
            entry = self.taxonomy.classify(detection.label)
            if entry is None:
                continue

            confidence = float(detection.confidence)
            if math.isnan(confidence):
                continue
            confidence = max(0.0, min(1.0, confidence))
            if confidence < self.config.acceptance_threshold:
                continue

            candidate = _Candidate(
                label=normalize_label(detection.label),
                tier=entry.tier,
                severity=entry.severity,
                confidence=confidence,
                bbox=tuple(detection.bbox),
            )
            if best is None or (candidate.tier, candidate.confidence) > (best.tier, best.confidence):
                best = candidate
        return best
