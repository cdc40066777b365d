# detection/object_taxonomy.py

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Mapping, Optional, Tuple

from tracking.config import ConfigurationError


class PriorityTier(IntEnum):
    """
    Coarse severity of a distracting object.
    Higher value wins when several objects compete in one frame.
    """
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class TaxonomyEntry:
    tier: PriorityTier
    severity: float


# label -> (tier, severity); labels follow the COCO class names
DEFAULT_DISTRACTIONS: Dict[str, Tuple[PriorityTier, float]] = {
    "cell phone": (PriorityTier.CRITICAL, 1.0),
    "phone": (PriorityTier.CRITICAL, 1.0),
    "tablet": (PriorityTier.CRITICAL, 1.0),
    "laptop": (PriorityTier.HIGH, 0.8),
    "tv": (PriorityTier.HIGH, 0.8),
    "monitor": (PriorityTier.HIGH, 0.8),
    "screen": (PriorityTier.HIGH, 0.8),
    "remote": (PriorityTier.HIGH, 0.7),
    "keyboard": (PriorityTier.HIGH, 0.7),
    "mouse": (PriorityTier.HIGH, 0.7),
    "book": (PriorityTier.MEDIUM, 0.6),
    "cup": (PriorityTier.MEDIUM, 0.5),
    "bottle": (PriorityTier.MEDIUM, 0.5),
    "scissors": (PriorityTier.MEDIUM, 0.5),
}


def normalize_label(label: str) -> str:
    return " ".join(label.lower().split())


class DistractionTaxonomy:
    """
    Immutable lookup table: object label -> TaxonomyEntry.

    Built and validated once; lookups are exact on the normalized label
    ("Cell  Phone" == "cell phone"). Unknown labels return None and are
    ignored by the stabilizer.
    """

    def __init__(self, entries: Optional[Mapping[str, Tuple[PriorityTier, float]]] = None) -> None:
        entries = DEFAULT_DISTRACTIONS if entries is None else entries
        if not entries:
            raise ConfigurationError("distraction taxonomy must not be empty")

        table: Dict[str, TaxonomyEntry] = {}
        for raw_label, (tier, severity) in entries.items():
            label = normalize_label(raw_label)
            if not label:
                raise ConfigurationError("taxonomy label must not be blank")
            if not 0.0 <= float(severity) <= 1.0:
                raise ConfigurationError(
                    f"severity for {raw_label!r} must be within [0, 1], got {severity}"
                )
            table[label] = TaxonomyEntry(tier=PriorityTier(tier), severity=float(severity))

        self._table = table

    def classify(self, label: str) -> Optional[TaxonomyEntry]:
        return self._table.get(normalize_label(label))

    def __contains__(self, label: str) -> bool:
        return self.classify(label) is not None

    def __len__(self) -> int:
        return len(self._table)

    def labels(self) -> Tuple[str, ...]:
        return tuple(sorted(self._table))


DEFAULT_TAXONOMY = DistractionTaxonomy()
