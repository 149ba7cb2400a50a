"""
Unit tests for caller-side preference rules (strictness, madhab).
Run from backend: python -m pytest tests/test_preferences.py -v
"""
import pytest


def _result(identifier, ruling="conditional", **kwargs):
    from halal_core.evaluation.confidence import map_score_to_level
    from halal_core.models.evaluation_result import EvaluationResult
    from halal_core.models.ingredient_record import Ruling
    score = kwargs.pop("confidence_score", 50)
    return EvaluationResult(
        identifier=identifier,
        display_name=identifier,
        ruling=Ruling(ruling),
        confidence_score=score,
        confidence_level=map_score_to_level(score),
        ingredient_type="processed_plant",
        explanation="",
        simple_explanation="",
        trace=("Normalized input: " + identifier,),
        **kwargs,
    )


def test_validate_preferences():
    """Values are case-folded; no-preference means no madhab; unknown values raise."""
    from halal_core.preferences import validate_preferences
    assert validate_preferences("Strict", "Hanafi") == ("strict", "hanafi")
    assert validate_preferences("", None) == ("standard", None)
    assert validate_preferences("flexible", "no-preference") == ("flexible", None)
    with pytest.raises(ValueError):
        validate_preferences("lenient", None)
    with pytest.raises(ValueError):
        validate_preferences("standard", "zahiri")


def test_infer_tags():
    """Tags come from the result, the record and the identifier."""
    from halal_core.models.modifier_match import ModifierCategory, ModifierMatch
    from halal_core.preferences import infer_tags
    enzyme = ModifierMatch("enzyme", ModifierCategory.CONDITIONAL, "enzyme")
    fried = ModifierMatch("fried", ModifierCategory.PROCESSING, "fried")
    r = _result(
        "fried_shrimp_enzyme_mix",
        conditional_modifiers=(enzyme,),
        processing_modifiers=(fried,),
        tags=("custom",),
    )
    tags = infer_tags(r)
    assert tags[0] == "custom"
    assert set(tags) == {"custom", "enzymes_unknown", "seafood_shellfish", "cross_contamination"}
    assert "gelatin_unknown" in infer_tags(_result("gummy", inheritance_chain=("gelatin", "pork")))
    assert "alcohol_trace" in infer_tags(_result("vanilla_extract"))


def test_sourced_enzyme_is_not_unknown():
    """An enzyme with a declared microbial source does not raise the enzymes_unknown tag."""
    from halal_core.models.modifier_match import ModifierCategory, ModifierMatch
    from halal_core.preferences import infer_tags
    enzyme = ModifierMatch("enzyme", ModifierCategory.CONDITIONAL, "microbial_enzyme", source="microbial")
    assert "enzymes_unknown" not in infer_tags(_result("microbial_enzyme", conditional_modifiers=(enzyme,)))


def test_madhab_shellfish():
    """Hanafi forbids shellfish; Shafi'i permits it."""
    from halal_core.models.ingredient_record import Ruling
    from halal_core.preferences import ENFORCED_BY, apply_preferences
    shrimp = _result("shrimp", confidence_score=30)
    hanafi = apply_preferences(shrimp, "standard", "hanafi")
    assert hanafi.ruling == Ruling.HARAM
    assert hanafi.enforced_by == ENFORCED_BY
    assert hanafi.confidence_score == 0
    assert hanafi.trace[-1] == (
        "Preference rules applied (strictness=standard, madhab=hanafi): seafood_shellfish -> haram"
    )
    shafii = apply_preferences(shrimp, "standard", "shafii")
    assert shafii.ruling == Ruling.HALAL
    assert shafii.requires_verification is False
    # No madhab: no shellfish rule
    assert apply_preferences(shrimp, "standard", None) is shrimp


def test_strictness_levels_on_gelatin():
    """Strict turns unknown-source gelatin haram; standard leaves it conditional."""
    from halal_core.models.ingredient_record import Ruling
    from halal_core.preferences import apply_preferences
    gummy = _result("gummy", inheritance_chain=("gelatin",))
    assert apply_preferences(gummy, "strict").ruling == Ruling.HARAM
    unchanged = apply_preferences(gummy, "standard")
    assert unchanged is gummy
    assert unchanged.enforced_by is None


def test_flexible_relaxes_enzymes():
    """Flexible treats unknown-source enzymes as halal."""
    from halal_core.models.ingredient_record import Ruling
    from halal_core.models.modifier_match import ModifierCategory, ModifierMatch
    from halal_core.preferences import apply_preferences
    enzyme = ModifierMatch("enzyme", ModifierCategory.CONDITIONAL, "enzyme")
    r = _result("bread_enzyme", conditional_modifiers=(enzyme,), confidence_score=60)
    relaxed = apply_preferences(r, "flexible")
    assert relaxed.ruling == Ruling.HALAL
    assert relaxed.confidence_score == 54
    assert relaxed.confidence_level == "medium"


def test_strictest_fired_rule_wins():
    """When several rules fire, the highest-precedence ruling wins."""
    from halal_core.models.ingredient_record import Ruling
    from halal_core.preferences import apply_preferences
    r = _result("vanilla_shrimp")
    out = apply_preferences(r, "flexible", "hanafi")
    assert out.ruling == Ruling.HARAM
    assert "alcohol_trace -> conditional" not in out.trace[-1]
    assert "seafood_shellfish -> haram" in out.trace[-1]


def test_unknown_results_are_adjusted():
    """Unknown results are in scope; a change clears is_unknown."""
    from halal_core.models.ingredient_record import Ruling
    from halal_core.preferences import apply_preferences
    r = _result("vanilla_essence", ruling="unknown", is_unknown=True)
    out = apply_preferences(r, "flexible")
    assert out.ruling == Ruling.CONDITIONAL
    assert out.is_unknown is False
    assert out.requires_verification is True


def test_halal_and_haram_pass_through():
    """Only conditional and unknown results are adjusted."""
    from halal_core.preferences import apply_preferences
    haram = _result("gummy", ruling="haram", inheritance_chain=("gelatin", "pork"))
    halal = _result("shrimp", ruling="halal")
    assert apply_preferences(haram, "flexible", "shafii") is haram
    assert apply_preferences(halal, "strict", "hanafi") is halal


def test_invalid_preferences_raise_even_for_pass_through():
    """Validation happens before the ruling check."""
    from halal_core.preferences import apply_preferences
    with pytest.raises(ValueError):
        apply_preferences(_result("apple", ruling="halal"), "ultra")


def test_preference_haram_zeroes_confidence():
    """A preference that makes a result haram scores it like an engine haram result."""
    from halal_core.models.ingredient_record import Ruling
    from halal_core.preferences import apply_preferences
    gummy = _result("gummy", inheritance_chain=("gelatin",), confidence_score=50)
    strict = apply_preferences(gummy, "strict")
    assert strict.ruling == Ruling.HARAM
    assert strict.confidence_score == 0
    assert strict.confidence_level == "low"
    assert strict.requires_verification is False
