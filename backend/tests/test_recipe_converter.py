"""
Unit tests for recipe conversion: detection in free text, replacement, recipe confidence.
Run from backend: python -m pytest tests/test_recipe_converter.py -v
"""
import pytest


def _engine():
    from halal_core.evaluation.halal_engine import HalalEngine
    from halal_core.knowledge.knowledge_base import KnowledgeBase
    return HalalEngine(KnowledgeBase({
        "pork": {"ruling": "haram", "references": ["Qur'an 2:173"], "base_confidence": 0},
        "lard": {"ruling": "haram", "derives_from": ["pork"], "alternatives": ["butter"], "base_confidence": 0},
        "gelatin": {"ruling": "haram", "derives_from": ["pork"], "alternatives": ["agar agar"], "base_confidence": 5},
        "marshmallow": {"ruling": "conditional", "derives_from": ["gelatin"], "base_confidence": 10},
        "vanilla_extract": {
            "ruling": "conditional",
            "alternatives": ["alcohol-free vanilla"],
            "base_confidence": 60,
        },
        "rum": {"ruling": "haram", "base_confidence": 0},
        "flour": {"ruling": "halal"},
    }))


def _issue(**kwargs):
    from halal_core.models.ingredient_record import Ruling
    from halal_core.recipe_converter import RecipeIssue
    fields = dict(
        ingredient="x", identifier="x", ruling=Ruling.HARAM, replacement="y", alternatives=("y",),
        notes="", severity="low", confidence_score=0, validation_state="explicit_haram",
    )
    fields.update(kwargs)
    return RecipeIssue(**fields)


def test_convert_recipe_detects_and_replaces():
    """Haram and conditional ingredients are found and swapped for their first alternative."""
    from halal_core.models.ingredient_record import Ruling
    from halal_core.recipe_converter import MISSING_REPLACEMENT, convert_recipe
    text = "  Cream the Lard with sugar. Add 2 tsp vanilla extract and 1 cup marshmallow. Fold in flour.  "
    conv = convert_recipe(text, _engine())
    assert conv.original_text == text.strip()
    by_id = {i.identifier: i for i in conv.issues}
    assert [i.identifier for i in conv.issues] == ["vanilla_extract", "marshmallow", "lard"]
    assert "flour" not in by_id

    lard = by_id["lard"]
    assert lard.ruling == Ruling.HARAM
    assert lard.replacement == "butter"
    assert lard.severity == "high"

    marsh = by_id["marshmallow"]
    assert marsh.ruling == Ruling.HARAM
    assert marsh.inherited_from == "pork"
    assert marsh.validation_state == "derived_haram"
    assert marsh.replacement == MISSING_REPLACEMENT
    assert marsh.has_replacement is False
    assert marsh.quran_reference == "Qur'an 2:173"

    vanilla = by_id["vanilla_extract"]
    assert vanilla.ruling == Ruling.CONDITIONAL
    assert vanilla.ingredient == "vanilla extract"
    assert vanilla.severity == "low"

    assert "Cream the Butter with sugar." in conv.converted_text
    assert "2 tsp alcohol-free vanilla" in conv.converted_text
    assert "Fold in flour." in conv.converted_text
    assert 0 < conv.confidence_score < 100


def test_word_boundaries():
    """'rum' does not match inside 'crumble'."""
    from halal_core.recipe_converter import convert_recipe
    conv = convert_recipe("Apple crumble with flour", _engine())
    assert conv.issues == ()
    assert conv.converted_text == "Apple crumble with flour"
    assert conv.confidence_score == 100


def test_empty_text():
    """Empty or non-text input yields an empty conversion scored 0."""
    from halal_core.recipe_converter import convert_recipe
    for text in ("", "   ", None):
        conv = convert_recipe(text, _engine())
        assert conv.issues == ()
        assert conv.converted_text == ""
        assert conv.confidence_score == 0


def test_invalid_strictness_raises():
    """Unknown preference values are rejected."""
    from halal_core.recipe_converter import convert_recipe
    with pytest.raises(ValueError):
        convert_recipe("lard", _engine(), strictness="lenient")


def test_recipe_confidence():
    """Share of replaced issues, reduced for inheritance, missing replacements and strictness."""
    from halal_core.recipe_converter import MISSING_REPLACEMENT, recipe_confidence
    assert recipe_confidence([]) == 100
    assert recipe_confidence([_issue(), _issue()]) == 100
    assert recipe_confidence([_issue(), _issue()], "strict") == 98
    assert recipe_confidence([_issue(), _issue(inherited_from="pork")]) == 95
    # Half replaced (50), then the unreplaced medium issue costs 20%
    assert recipe_confidence([_issue(), _issue(replacement=MISSING_REPLACEMENT, severity="medium")]) == 40


def test_match_case_on_replace():
    """Replacements follow the case of the matched text."""
    from halal_core.recipe_converter import replace_ingredients
    issues = [_issue(ingredient="lard", replacement="butter")]
    assert replace_ingredients("LARD, Lard and lard", issues) == "BUTTER, Butter and butter"


def test_conversion_to_dict():
    """Serialized form uses plain values."""
    from halal_core.recipe_converter import convert_recipe
    d = convert_recipe("Two spoons of rum", _engine()).to_dict()
    assert d["issues"][0]["identifier"] == "rum"
    assert d["issues"][0]["ruling"] == "haram"
    assert d["issues"][0]["replacement"] == "Halal alternative needed"
    assert d["converted_text"] == "Two spoons of Halal alternative needed"


def test_underscored_ingredient_is_replaced():
    """An ingredient written with underscores is replaced, not only reported."""
    from halal_core.evaluation.halal_engine import HalalEngine
    from halal_core.knowledge.knowledge_base import KnowledgeBase
    from halal_core.recipe_converter import convert_recipe
    engine = HalalEngine(KnowledgeBase({
        "pork_belly": {"ruling": "haram", "alternatives": ["beef brisket"]},
    }))
    conv = convert_recipe("Braise the pork_belly for 2 hours, then slice the Pork Belly thin", engine)
    assert [(i.ingredient, i.replacement) for i in conv.issues] == [("pork belly", "beef brisket")]
    assert conv.converted_text == "Braise the beef brisket for 2 hours, then slice the Beef brisket thin"
