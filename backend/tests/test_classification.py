"""
Unit tests for ingredient type classification and the natural-plant default.
Run from backend: python -m pytest tests/test_classification.py -v
"""
import pytest


@pytest.mark.parametrize("identifier,expected,basis", [
    ("apple", "natural_plant", "taxonomy"),
    ("olive_oil", "processed_plant", "taxonomy"),
    ("pork", "animal", "taxonomy"),
    ("cheese", "animal_byproduct", "taxonomy"),
    ("soy_sauce", "fermentation_derived", "taxonomy"),
    ("artificial_coloring", "synthetic", "taxonomy"),
    ("whiskey", "alcohol", "taxonomy"),
    ("smoked_salmon_fillet", "animal", "animal_terms"),
    ("goat_milk", "animal", "animal_terms"),
    ("ghee_blend", "animal_byproduct", "animal_byproduct_terms"),
    ("kimchi_base", "fermentation_derived", "fermentation_terms"),
    ("hazelnut_spread", "natural_plant", "plant_terms"),
])
def test_classify_ingredient_type(identifier, expected, basis):
    """Taxonomy first, then heuristics in fixed order."""
    from halal_core.classification.taxonomy import classify_ingredient_type
    c = classify_ingredient_type(identifier)
    assert c.type.value == expected
    assert c.matched is True
    assert c.basis == basis


def test_classify_uses_record_category():
    """A record's category beats the lexical heuristics."""
    from halal_core.classification.taxonomy import IngredientType, classify_ingredient_type
    from halal_core.models.ingredient_record import IngredientRecord
    rec = IngredientRecord.from_dict("carmine", {"ruling": "conditional", "category": "Colorant"})
    c = classify_ingredient_type("carmine", rec)
    assert c.type == IngredientType.SYNTHETIC
    assert c.basis == "category:colorant"


def test_classify_unmatched_defaults_to_processed_plant():
    """Unmatched identifiers default to processed_plant and say so."""
    from halal_core.classification.taxonomy import IngredientType, classify_ingredient_type
    c = classify_ingredient_type("xyznonexistent123")
    assert c.type == IngredientType.PROCESSED_PLANT
    assert c.matched is False
    assert c.to_dict() == {"type": "processed_plant", "matched": False, "basis": "default"}


def test_taxonomy_entry_explanation():
    """Entries fill the category template and append their note."""
    from halal_core.classification.taxonomy import taxonomy_lookup
    entry = taxonomy_lookup("Soy Sauce")
    assert entry is not None
    assert entry.ruling.value == "conditional"
    text = entry.explanation("Soy Sauce")
    assert "Soy Sauce" in text
    assert "alcohol" in text.lower()
    assert taxonomy_lookup("unobtainium") is None


@pytest.mark.parametrize("identifier,base,category", [
    ("rice", "rice", "grain"),
    ("lentils", "lentil", "legume"),
    ("rice_grain", "rice", "grain"),
    ("mangoes", "mango", "fruit"),
    ("salt", "salt", "plant-based ingredient"),
])
def test_natural_plant_default_applies(identifier, base, category):
    """Plain plants, plurals and natural suffixes get the halal default."""
    from halal_core.classification.taxonomy import natural_plant_default
    d = natural_plant_default(identifier)
    assert d is not None
    assert d.base_ingredient == base
    assert d.category == category
    assert d.simple_explanation == f"Plain {category} is halal."


@pytest.mark.parametrize("identifier", ["rice_flour", "dried_apple", "coconut_oil", "maple_syrup", "spinach_pie", ""])
def test_natural_plant_default_blocked(identifier):
    """Any processed indicator (or an unknown word) disables the default."""
    from halal_core.classification.taxonomy import natural_plant_default
    assert natural_plant_default(identifier) is None
