"""
Ingredient taxonomy: type categories, a fixed table of common ingredients, and the
lexical heuristics used to classify identifiers the knowledge base does not hold.
All matching is by whole token or token run, never by substring.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from halal_core.models.ingredient_record import IngredientRecord, Ruling
from halal_core.normalization.normalizer import SEPARATOR, display_name, normalize_identifier, tokenize_identifier

logger = logging.getLogger(__name__)


class IngredientType(str, Enum):
    NATURAL_PLANT = "natural_plant"
    PROCESSED_PLANT = "processed_plant"
    ANIMAL = "animal"
    ANIMAL_BYPRODUCT = "animal_byproduct"
    ALCOHOL = "alcohol"
    FERMENTATION_DERIVED = "fermentation_derived"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class TaxonomyCategory:
    label: str
    description: str
    default_ruling: Ruling
    default_confidence: int
    explanation_template: str
    requires_verification: bool

    def explain(self, ingredient: str) -> str:
        return self.explanation_template.format(ingredient=ingredient)


TAXONOMY_CATEGORIES: dict[IngredientType, TaxonomyCategory] = {
    IngredientType.NATURAL_PLANT: TaxonomyCategory(
        "Natural Plant", "Unprocessed plant-based ingredients", Ruling.HALAL, 100,
        "{ingredient} is a natural, plant-based ingredient. Plant-based ingredients in their natural, "
        "unprocessed form are generally halal unless specifically prohibited in Islamic law.",
        False,
    ),
    IngredientType.PROCESSED_PLANT: TaxonomyCategory(
        "Processed Plant", "Processed or manufactured plant-based ingredients", Ruling.HALAL, 75,
        "{ingredient} is a processed plant-based ingredient. While the base ingredient is halal, processing "
        "may introduce additives or cross-contamination. Check the ingredient list for non-halal additives.",
        True,
    ),
    IngredientType.ANIMAL: TaxonomyCategory(
        "Animal", "Animal meat and flesh", Ruling.CONDITIONAL, 60,
        "{ingredient} is halal when slaughtered according to Islamic guidelines (zabiha). Ensure the meat "
        "comes from a halal-certified source and has been properly slaughtered.",
        True,
    ),
    IngredientType.ANIMAL_BYPRODUCT: TaxonomyCategory(
        "Animal Byproduct", "Products derived from animals", Ruling.CONDITIONAL, 50,
        "{ingredient} is derived from animals and requires halal certification. The source animal must be "
        "halal, and the product must be processed according to Islamic guidelines.",
        True,
    ),
    IngredientType.ALCOHOL: TaxonomyCategory(
        "Alcohol", "Alcoholic beverages and alcohol-containing ingredients", Ruling.HARAM, 0,
        "{ingredient} contains alcohol, which is haram (prohibited) in Islam. The Qur'an explicitly "
        "prohibits intoxicants (Qur'an 5:90).",
        False,
    ),
    IngredientType.FERMENTATION_DERIVED: TaxonomyCategory(
        "Fermentation Derived", "Products created through fermentation", Ruling.CONDITIONAL, 70,
        "{ingredient} is produced through fermentation. Most scholars consider fully fermented products "
        "(where alcohol has been transformed) to be halal, but some require verification.",
        True,
    ),
    IngredientType.SYNTHETIC: TaxonomyCategory(
        "Synthetic", "Artificially created ingredients", Ruling.CONDITIONAL, 65,
        "{ingredient} is a synthetic or artificially created ingredient. Synthetic ingredients are generally "
        "halal unless they contain haram substances or are derived from haram sources.",
        True,
    ),
}


@dataclass(frozen=True)
class TaxonomyEntry:
    identifier: str
    type: IngredientType
    ruling: Ruling
    note: Optional[str] = None

    @property
    def category(self) -> TaxonomyCategory:
        return TAXONOMY_CATEGORIES[self.type]

    def explanation(self, name: Optional[str] = None) -> str:
        text = self.category.explain(name or display_name(self.identifier))
        return f"{text} {self.note}" if self.note else text


# --- Plain plant ingredients by category (halal by default) ---
PLANT_CATEGORIES: dict[str, tuple[str, ...]] = {
    "grain": (
        "rice", "wheat", "barley", "oats", "quinoa", "millet", "buckwheat", "rye", "corn",
        "sorghum", "amaranth", "teff", "spelt", "farro", "freekeh",
    ),
    "legume": (
        "lentil", "chickpea", "black_bean", "kidney_bean", "pinto_bean", "navy_bean", "lima_bean",
        "soybean", "mung_bean", "fava_bean", "split_pea", "black_eyed_pea", "adzuki_bean",
        "cannellini_bean", "garbanzo_bean", "edamame",
    ),
    "vegetable": (
        "onion", "garlic", "tomato", "potato", "carrot", "celery", "bell_pepper", "cucumber",
        "lettuce", "spinach", "kale", "broccoli", "cauliflower", "cabbage", "zucchini", "eggplant",
        "mushroom", "peas", "green_beans", "asparagus", "artichoke", "beet", "radish", "turnip",
        "sweet_potato", "yam", "pumpkin", "squash", "okra", "brussels_sprouts", "bok_choy", "chard",
        "collard_greens", "arugula", "watercress", "endive", "leek", "shallot", "scallion",
    ),
    "fruit": (
        "apple", "banana", "orange", "lemon", "lime", "grape", "strawberry", "blueberry",
        "raspberry", "blackberry", "cherry", "peach", "pear", "plum", "apricot", "mango",
        "pineapple", "coconut", "date", "fig", "pomegranate", "watermelon", "cantaloupe",
        "honeydew", "kiwi", "papaya", "guava", "passion_fruit", "dragon_fruit", "cranberry",
        "gooseberry", "currant", "elderberry", "mulberry", "persimmon", "avocado",
    ),
    "nut": (
        "almond", "walnut", "cashew", "pistachio", "hazelnut", "pecan", "macadamia", "brazil_nut",
        "pine_nut", "peanut", "sunflower_seed", "pumpkin_seed", "sesame_seed", "chia_seed",
        "flax_seed", "hemp_seed", "poppy_seed",
    ),
    "herb": (
        "basil", "oregano", "thyme", "rosemary", "sage", "parsley", "cilantro", "dill", "mint",
        "chive", "tarragon", "marjoram", "bay_leaf", "lemongrass", "curry_leaf",
    ),
    "spice": (
        "cumin", "coriander", "turmeric", "ginger", "paprika", "cayenne", "black_pepper",
        "white_pepper", "cardamom", "cinnamon", "nutmeg", "clove", "allspice", "star_anise",
        "fennel", "caraway", "mustard_seed", "fenugreek", "sumac", "zaatar", "saffron",
        "vanilla_bean", "vanilla_pod",
    ),
    "sweetener": ("honey", "maple_syrup", "agave", "date_syrup", "molasses", "coconut_sugar"),
    "mineral": ("salt", "sea_salt", "himalayan_salt", "black_salt", "water", "coconut_water"),
}

_PLANT_CATEGORY_OF: dict[str, str] = {
    name: category for category, names in PLANT_CATEGORIES.items() for name in names
}

# Tokens that mark a processed form; a plain-plant default never applies with one present
PROCESSED_INDICATORS: frozenset[str] = frozenset({
    "flour", "starch", "meal", "paste", "sauce", "juice", "extract", "powder", "flakes", "chips",
    "crisps", "canned", "frozen", "dried", "dehydrated", "fermented", "pickled", "preserved",
    "smoked", "cured", "processed", "refined", "enriched", "fortified", "hydrogenated", "modified",
    "artificial", "synthetic", "flavoring", "essence", "emulsifier", "stabilizer", "preservative",
    "additive", "thickener", "oil", "syrup",
})

_NATURAL_SUFFIXES = ("grain", "berry", "seed", "bean", "pea", "nut")

# --- Lexical heuristics for the type classification ---
ALCOHOL_TERMS: frozenset[str] = frozenset({
    "wine", "beer", "whiskey", "rum", "vodka", "brandy", "cognac", "sherry", "port", "vermouth",
    "liqueur", "alcohol", "ethanol", "sake", "mirin", "champagne",
})
ANIMAL_MEAT_TERMS: frozenset[str] = frozenset({
    "pork", "bacon", "ham", "sausage", "pepperoni", "prosciutto", "pancetta", "beef", "lamb",
    "mutton", "chicken", "turkey", "duck", "goat", "veal", "venison", "meat", "fish", "salmon",
    "tuna", "shrimp", "prawn", "crab", "lobster", "anchovy",
})
ANIMAL_BYPRODUCT_TERMS: frozenset[str] = frozenset({
    "milk", "cheese", "butter", "yogurt", "cream", "gelatin", "lard", "egg", "eggs", "egg_whites",
    "egg_yolks", "whey", "casein", "tallow", "ghee", "collagen", "carmine", "shellac", "rennet",
})
FERMENTATION_TERMS: frozenset[str] = frozenset({
    "vinegar", "soy_sauce", "miso", "tempeh", "kombucha", "yeast", "kefir", "kimchi", "natto",
    "sauerkraut", "fermented",
})
SYNTHETIC_TERMS: frozenset[str] = frozenset({
    "artificial", "synthetic", "preservative", "preservatives", "stabilizer", "emulsifier",
    "coloring", "colouring", "sweetener", "additive", "modified",
})
PROCESSED_TERMS: frozenset[str] = frozenset({
    "extract", "essence", "flavoring", "hydrogenated", "processed", "refined", "enriched",
    "fortified", "flour", "starch", "oil", "paste", "sauce", "juice", "powder",
})

# Record categories (source data) -> type
CATEGORY_TYPES: dict[str, IngredientType] = {
    "meat": IngredientType.ANIMAL,
    "poultry": IngredientType.ANIMAL,
    "seafood": IngredientType.ANIMAL,
    "dairy": IngredientType.ANIMAL_BYPRODUCT,
    "gelatin": IngredientType.ANIMAL_BYPRODUCT,
    "fat": IngredientType.ANIMAL_BYPRODUCT,
    "egg": IngredientType.ANIMAL_BYPRODUCT,
    "alcohol": IngredientType.ALCOHOL,
    "fermented": IngredientType.FERMENTATION_DERIVED,
    "additive": IngredientType.SYNTHETIC,
    "preservative": IngredientType.SYNTHETIC,
    "colorant": IngredientType.SYNTHETIC,
    "flavoring": IngredientType.PROCESSED_PLANT,
    "grain": IngredientType.NATURAL_PLANT,
    "vegetable": IngredientType.NATURAL_PLANT,
    "fruit": IngredientType.NATURAL_PLANT,
    "legume": IngredientType.NATURAL_PLANT,
    "nut": IngredientType.NATURAL_PLANT,
    "herb": IngredientType.NATURAL_PLANT,
    "spice": IngredientType.NATURAL_PLANT,
    "oil": IngredientType.PROCESSED_PLANT,
    "sweetener": IngredientType.PROCESSED_PLANT,
}


def _entries(type_: IngredientType, ruling: Ruling, names: tuple[str, ...], note: Optional[str] = None) -> dict:
    return {n: TaxonomyEntry(n, type_, ruling, note) for n in names}


_ALCOHOL_CHECK = "Check for alcohol content."

INGREDIENT_TAXONOMY: dict[str, TaxonomyEntry] = {
    **_entries(
        IngredientType.NATURAL_PLANT, Ruling.HALAL,
        tuple(n for names in PLANT_CATEGORIES.values() for n in names),
    ),
    **_entries(IngredientType.PROCESSED_PLANT, Ruling.HALAL, (
        "rice_flour", "wheat_flour", "cornstarch", "olive_oil", "coconut_oil", "vegetable_oil",
        "canola_oil", "sunflower_oil", "sesame_oil", "tomato_paste", "tomato_sauce",
    )),
    **_entries(IngredientType.PROCESSED_PLANT, Ruling.CONDITIONAL, ("vanilla_extract", "almond_extract"), _ALCOHOL_CHECK),
    **_entries(IngredientType.ANIMAL, Ruling.CONDITIONAL, ("beef", "lamb", "chicken", "turkey", "duck", "goat", "veal")),
    **_entries(IngredientType.ANIMAL, Ruling.HARAM, ("pork",)),
    **_entries(IngredientType.ANIMAL_BYPRODUCT, Ruling.CONDITIONAL, (
        "milk", "butter", "yogurt", "cream", "eggs", "egg_whites", "egg_yolks", "whey", "casein",
    )),
    "cheese": TaxonomyEntry("cheese", IngredientType.ANIMAL_BYPRODUCT, Ruling.CONDITIONAL, "Check for rennet source."),
    "gelatin": TaxonomyEntry("gelatin", IngredientType.ANIMAL_BYPRODUCT, Ruling.CONDITIONAL, "Check source - must be halal-certified."),
    **_entries(IngredientType.ANIMAL_BYPRODUCT, Ruling.HARAM, ("lard",)),
    **_entries(IngredientType.ALCOHOL, Ruling.HARAM, (
        "wine", "beer", "whiskey", "rum", "vodka", "brandy", "sherry", "port", "vermouth", "liqueur",
    )),
    **_entries(IngredientType.FERMENTATION_DERIVED, Ruling.HALAL, (
        "vinegar", "apple_cider_vinegar", "balsamic_vinegar", "miso", "tempeh",
    )),
    "wine_vinegar": TaxonomyEntry(
        "wine_vinegar", IngredientType.FERMENTATION_DERIVED, Ruling.HALAL, "Fully fermented - alcohol transformed.",
    ),
    "soy_sauce": TaxonomyEntry("soy_sauce", IngredientType.FERMENTATION_DERIVED, Ruling.CONDITIONAL, _ALCOHOL_CHECK),
    "artificial_vanilla": TaxonomyEntry("artificial_vanilla", IngredientType.SYNTHETIC, Ruling.HALAL),
    "artificial_flavoring": TaxonomyEntry(
        "artificial_flavoring", IngredientType.SYNTHETIC, Ruling.CONDITIONAL, "Check source and ingredients.",
    ),
    "artificial_coloring": TaxonomyEntry(
        "artificial_coloring", IngredientType.SYNTHETIC, Ruling.CONDITIONAL,
        "Check source - some may be derived from insects.",
    ),
    "preservatives": TaxonomyEntry(
        "preservatives", IngredientType.SYNTHETIC, Ruling.CONDITIONAL, "Check specific preservative type.",
    ),
    "emulsifier": TaxonomyEntry(
        "emulsifier", IngredientType.SYNTHETIC, Ruling.CONDITIONAL, "Check source - may be animal-derived.",
    ),
    "stabilizer": TaxonomyEntry("stabilizer", IngredientType.SYNTHETIC, Ruling.CONDITIONAL, "Check source."),
}


def taxonomy_lookup(identifier: str) -> Optional[TaxonomyEntry]:
    return INGREDIENT_TAXONOMY.get(normalize_identifier(identifier))


def _phrases(tokens: list[str], max_len: int = 3) -> set[str]:
    """Every contiguous token run up to max_len tokens."""
    out: set[str] = set()
    for i in range(len(tokens)):
        for n in range(1, max_len + 1):
            if i + n <= len(tokens):
                out.add(SEPARATOR.join(tokens[i:i + n]))
    return out


@dataclass(frozen=True)
class Classification:
    type: IngredientType
    matched: bool
    basis: str

    def to_dict(self) -> dict:
        return {"type": self.type.value, "matched": self.matched, "basis": self.basis}


_HEURISTICS: tuple[tuple[frozenset[str], IngredientType, str], ...] = (
    (ALCOHOL_TERMS, IngredientType.ALCOHOL, "alcohol_terms"),
    (ANIMAL_MEAT_TERMS, IngredientType.ANIMAL, "animal_terms"),
    (ANIMAL_BYPRODUCT_TERMS, IngredientType.ANIMAL_BYPRODUCT, "animal_byproduct_terms"),
    (FERMENTATION_TERMS, IngredientType.FERMENTATION_DERIVED, "fermentation_terms"),
    (SYNTHETIC_TERMS, IngredientType.SYNTHETIC, "synthetic_terms"),
    (PROCESSED_TERMS, IngredientType.PROCESSED_PLANT, "processed_terms"),
)


def classify_ingredient_type(identifier: str, record: Optional[IngredientRecord] = None) -> Classification:
    """
    Type classification: taxonomy table, then the record's source category, then
    lexical heuristics. Unmatched identifiers default to processed_plant (matched=False).
    """
    key = normalize_identifier(identifier)
    entry = INGREDIENT_TAXONOMY.get(key)
    if entry is not None:
        return Classification(entry.type, True, "taxonomy")
    if record is not None and record.category in CATEGORY_TYPES:
        return Classification(CATEGORY_TYPES[record.category], True, f"category:{record.category}")

    phrases = _phrases(tokenize_identifier(key))
    for terms, type_, basis in _HEURISTICS:
        if phrases & terms:
            return Classification(type_, True, basis)
    if phrases & set(_PLANT_CATEGORY_OF):
        return Classification(IngredientType.NATURAL_PLANT, True, "plant_terms")
    logger.debug("CLASSIFY no match identifier=%s default=processed_plant", key)
    return Classification(IngredientType.PROCESSED_PLANT, False, "default")


@dataclass(frozen=True)
class NaturalDefault:
    base_ingredient: str
    category: str
    explanation: str
    simple_explanation: str


def _plain_plant_base(key: str) -> Optional[str]:
    if key in _PLANT_CATEGORY_OF:
        return key
    for suffix in ("es", "s"):
        if key.endswith(suffix) and key[: -len(suffix)] in _PLANT_CATEGORY_OF:
            return key[: -len(suffix)]
    for suffix in _NATURAL_SUFFIXES:
        tail = SEPARATOR + suffix
        if key.endswith(tail) and key[: -len(tail)] in _PLANT_CATEGORY_OF:
            return key[: -len(tail)]
    return None


def natural_plant_default(identifier: str) -> Optional[NaturalDefault]:
    """
    Plain plant ingredients (rice, tomatoes, rice_grain) are halal by default.
    Any processed indicator token (flour, oil, dried, ...) disables the default.
    """
    key = normalize_identifier(identifier)
    if not key or PROCESSED_INDICATORS.intersection(tokenize_identifier(key)):
        return None
    base = _plain_plant_base(key)
    if base is None:
        return None
    category = _PLANT_CATEGORY_OF[base]
    label = category if category in ("grain", "legume", "vegetable", "fruit", "nut", "herb", "spice") \
        else "plant-based ingredient"
    return NaturalDefault(
        base_ingredient=base,
        category=label,
        explanation=(
            f"Plain {label} is halal. Plant-based ingredients in their natural, unprocessed form "
            "are generally halal unless specifically prohibited."
        ),
        simple_explanation=f"Plain {label} is halal.",
    )
