"""
Ingredient type classification and the natural-plant default.
"""
from .taxonomy import (
    INGREDIENT_TAXONOMY,
    TAXONOMY_CATEGORIES,
    Classification,
    IngredientType,
    NaturalDefault,
    TaxonomyEntry,
    classify_ingredient_type,
    natural_plant_default,
    taxonomy_lookup,
)

__all__ = [
    "INGREDIENT_TAXONOMY",
    "TAXONOMY_CATEGORIES",
    "Classification",
    "IngredientType",
    "NaturalDefault",
    "TaxonomyEntry",
    "classify_ingredient_type",
    "natural_plant_default",
    "taxonomy_lookup",
]
