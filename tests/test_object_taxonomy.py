import pytest

from detection.object_taxonomy import (
    DEFAULT_TAXONOMY,
    DistractionTaxonomy,
    PriorityTier,
    normalize_label,
)
from tracking.config import ConfigurationError


def test_default_tiers():
    assert DEFAULT_TAXONOMY.classify("cell phone").tier is PriorityTier.CRITICAL
    assert DEFAULT_TAXONOMY.classify("laptop").tier is PriorityTier.HIGH
    assert DEFAULT_TAXONOMY.classify("book").tier is PriorityTier.MEDIUM
    assert DEFAULT_TAXONOMY.classify("person") is None


def test_lookup_is_normalized():
    assert normalize_label("  Cell   PHONE ") == "cell phone"
    assert "Cell Phone" in DEFAULT_TAXONOMY
    assert "dog" not in DEFAULT_TAXONOMY


def test_tier_ordering():
    assert PriorityTier.CRITICAL > PriorityTier.HIGH > PriorityTier.MEDIUM
    assert PriorityTier.HIGH.label == "high"


def test_custom_taxonomy():
    taxonomy = DistractionTaxonomy({"Guitar": (PriorityTier.HIGH, 0.9)})
    assert len(taxonomy) == 1
    assert taxonomy.labels() == ("guitar",)
    assert taxonomy.classify("guitar").severity == 0.9


@pytest.mark.parametrize(
    "entries",
    [
        {},
        {"   ": (PriorityTier.HIGH, 0.5)},
        {"phone": (PriorityTier.CRITICAL, 1.5)},
    ],
)
def test_invalid_taxonomy(entries):
    with pytest.raises(ConfigurationError):
        DistractionTaxonomy(entries)
