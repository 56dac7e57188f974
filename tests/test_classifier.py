import pytest

from search_sets.classifier import (
    DISCIPLINE_PATTERNS,
    PatternClassifier,
    discipline_name,
    discipline_query,
)
from search_sets.errors import NoDisciplinesFound
from search_sets.model import ConditionOperator, Element, SearchLocations


def roots(*names):
    return [Element(f"r{i}", name) for i, name in enumerate(names)]


def test_classify_scenario():
    definitions = PatternClassifier().classify(roots("Tower_ARCH_01", "Tower_STRC_01", "Annex_MEP_02"))
    assert [d.name for d in definitions] == ["ARCH", "STRC", "MEP"]


def test_classify_is_case_insensitive_and_deduplicates():
    definitions = PatternClassifier().classify(roots("tower_arch_01.ifc", "Podium_Arch_02.ifc"))
    assert [d.name for d in definitions] == ["ARCH"]


def test_first_matching_pattern_wins():
    classifier = PatternClassifier()
    assert classifier.match("Combined_ARCH_STRC_01") == "ARCH"
    assert classifier.match("Combined_STRC_ARCH_01") == "ARCH"
    assert classifier.match("Plant_HVAC_MECH_") == "MECH"


def test_tokens_require_delimiters():
    classifier = PatternClassifier()
    assert classifier.match("TowerARCH01") is None
    assert classifier.match("ARCH_01") is None
    assert classifier.match("") is None
    assert classifier.match(None) is None


@pytest.mark.parametrize("pattern", DISCIPLINE_PATTERNS)
def test_every_pattern_produces_its_discipline(pattern):
    name = discipline_name(pattern)
    classifier = PatternClassifier(patterns=[pattern])

    assert [d.name for d in classifier.classify(roots(f"Block{pattern}01".lower()))] == [name]
    with pytest.raises(NoDisciplinesFound):
        classifier.classify(roots(f"Block{name}01", "Block-" + name))


def test_no_match_raises():
    with pytest.raises(NoDisciplinesFound):
        PatternClassifier().classify(roots("Coordination", "Survey points"))
    with pytest.raises(NoDisciplinesFound):
        PatternClassifier().classify([])


def test_custom_patterns():
    classifier = PatternClassifier(patterns=["_ARC_", "_STR_"])
    assert classifier.match("T1_ARC_R01") == "ARC"
    assert classifier.match("T1_ARCH_R01") is None


def test_discipline_query_selects_names_containing_token():
    query = discipline_query("ARCH")

    assert query.selects_all
    assert query.locations is SearchLocations.DESCENDANTS_AND_SELF
    (condition,) = query.conditions
    assert (condition.category, condition.attribute) == ("Item", "Name")
    assert condition.value == "*_ARCH_*"
    assert condition.operator is ConditionOperator.WILDCARD
