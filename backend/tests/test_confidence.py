"""
Unit tests for confidence scoring: base table, adjustments, clamping, levels.
Run from backend: python -m pytest tests/test_confidence.py -v
"""
import pytest


def test_base_table_haram_is_zero():
    """Haram scores 0 for every type."""
    from halal_core.classification.taxonomy import IngredientType
    from halal_core.evaluation.confidence import base_confidence
    for t in IngredientType:
        assert base_confidence(t, "haram") == 0


@pytest.mark.parametrize("type_,ruling,expected", [
    ("natural_plant", "halal", 95),
    ("processed_plant", "halal", 70),
    ("animal", "conditional", 50),
    ("fermentation_derived", "unknown", 60),
    ("synthetic", "questionable", 55),
])
def test_base_confidence(type_, ruling, expected):
    """Table lookups accept plain strings and the legacy ruling name."""
    from halal_core.evaluation.confidence import base_confidence
    assert base_confidence(type_, ruling) == expected


def test_score_adjustments():
    """Each toggled adjustment moves the score by its fixed amount."""
    from halal_core.evaluation.confidence import ScoreAdjustments, SourceKind, score
    assert score("natural_plant", "halal") == 95
    assert score("natural_plant", "halal", ScoreAdjustments(is_processed=True)) == 80
    # Uncertified animal products lose 20; certification adds 10 instead
    assert score("animal", "halal") == 40
    assert score("animal", "halal", ScoreAdjustments(is_certified=True)) == 70
    assert score("processed_plant", "halal", ScoreAdjustments(has_additives=True)) == 60
    assert score("processed_plant", "halal", ScoreAdjustments(source=SourceKind.VERIFIED)) == 75
    assert score("processed_plant", "unknown", ScoreAdjustments(source=SourceKind.UNKNOWN)) == 25
    assert score(
        "processed_plant", "conditional",
        ScoreAdjustments(has_conditional_modifier=True, conditional_modifier_penalty=20),
    ) == 40
    assert score("processed_plant", "conditional", ScoreAdjustments(has_processing_modifier=True)) == 50


def test_score_clamped():
    """Scores stay within [0, 100]."""
    from halal_core.evaluation.confidence import ScoreAdjustments, SourceKind, score
    assert score("natural_plant", "halal", ScoreAdjustments(
        is_certified=True, source=SourceKind.VERIFIED,
    )) == 100
    assert score("animal_byproduct", "conditional", ScoreAdjustments(
        inherited_from_haram=True, has_additives=True, source=SourceKind.UNKNOWN,
    )) == 0


def test_haram_ignores_record_base():
    """A record-supplied base replaces the table value except for haram."""
    from halal_core.evaluation.confidence import ScoreAdjustments, SourceKind, score
    assert score("processed_plant", "conditional", ScoreAdjustments(base_score=40)) == 40
    assert score("processed_plant", "haram", ScoreAdjustments(base_score=90, source=SourceKind.NON_HALAL)) == 0


def test_penalties_are_monotone():
    """Adding a penalty never raises the score."""
    from dataclasses import replace
    from halal_core.evaluation.confidence import ScoreAdjustments, SourceKind, score
    base = ScoreAdjustments()
    for t in ("natural_plant", "processed_plant", "animal", "synthetic"):
        plain = score(t, "halal", base)
        for penalty in (
            replace(base, is_processed=True),
            replace(base, has_additives=True),
            replace(base, inherited_from_haram=True),
            replace(base, has_conditional_modifier=True),
            replace(base, has_processing_modifier=True),
            replace(base, source=SourceKind.UNKNOWN),
        ):
            assert score(t, "halal", penalty) <= plain


@pytest.mark.parametrize("value,level", [(100, "high"), (80, "high"), (79, "medium"), (50, "medium"), (49, "low"), (0, "low")])
def test_map_score_to_level(value, level):
    """Thresholds are 80 and 50."""
    from halal_core.evaluation.confidence import map_score_to_level
    assert map_score_to_level(value) == level


def test_should_mark_as_unknown():
    """Unknown only when no source gave an opinion and the ruling is not haram."""
    from halal_core.evaluation.confidence import should_mark_as_unknown
    assert should_mark_as_unknown() is True
    assert should_mark_as_unknown(has_taxonomy_data=True) is False
    assert should_mark_as_unknown(natural_default_applied=True) is False
    assert should_mark_as_unknown(ruling="haram") is False


def test_confidence_description():
    """Descriptions embed the score."""
    from halal_core.evaluation.confidence import confidence_description
    assert confidence_description("high", 92).startswith("High confidence (92%)")
    assert "Low confidence (10%)" in confidence_description("low", 10)
