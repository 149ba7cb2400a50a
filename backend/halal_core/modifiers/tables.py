"""
Fixed modifier tables. Keys are normalized identifiers (single or `_`-joined tokens).
"""
import re
from typing import Optional

# --- Overriding (forces haram) ---
ALCOHOL_MODIFIERS: tuple[str, ...] = (
    "wine", "alcohol", "alcoholic", "beer", "whiskey", "rum", "vodka", "brandy",
    "sherry", "port", "vermouth", "liqueur", "cognac", "champagne", "ethanol",
    "sake", "mirin", "ethyl_alcohol", "grain_alcohol",
)
PORK_MODIFIERS: tuple[str, ...] = (
    "pork", "bacon", "lard", "ham", "prosciutto", "pancetta", "pepperoni",
    "sausage_pork", "pork_fat", "rendered_pork", "pork_belly",
)
NON_HALAL_MEAT_MODIFIERS: tuple[str, ...] = (
    "non_halal", "non_halal_meat", "unslaughtered", "carrion", "blood",
)
GELATIN_MODIFIERS: tuple[str, ...] = (
    "gelatin", "gelatin_pork", "pork_gelatin", "animal_gelatin",
)

OVERRIDING_FAMILIES: dict[str, tuple[str, ...]] = {
    "alcohol": ALCOHOL_MODIFIERS,
    "pork": PORK_MODIFIERS,
    "non_halal_meat": NON_HALAL_MEAT_MODIFIERS,
    "gelatin": GELATIN_MODIFIERS,
}

OVERRIDING_MODIFIERS: tuple[str, ...] = (
    ALCOHOL_MODIFIERS + PORK_MODIFIERS + NON_HALAL_MEAT_MODIFIERS + GELATIN_MODIFIERS
)

# A bare gelatin token alongside one of these is a qualified (non-overriding) gelatin
GELATIN_QUALIFIERS: frozenset[str] = frozenset({
    "halal", "fish", "plant", "vegan", "agar", "vegetable", "bovine_halal",
})

# Phrases whose tokens look like overriding cues but name something else
EXEMPT_PHRASES: frozenset[str] = frozenset({
    "blood_orange", "root_beer", "ginger_beer",
})

# --- Conditional (requires verification, reduces confidence) ---
CONDITIONAL_MODIFIERS: dict[str, dict] = {
    "enzyme": {
        "explanation": "Enzymes may be derived from animal or microbial sources. Animal-derived enzymes require halal certification. Check the enzyme source.",
        "confidence_reduction": 15,
    },
    "rennet": {
        "explanation": "Rennet is used in cheese making and may be animal-derived (requires halal certification) or microbial (generally halal). Check the rennet source.",
        "confidence_reduction": 20,
    },
    "emulsifier": {
        "explanation": "Emulsifiers may be derived from animal or plant sources. Animal-derived emulsifiers require halal certification. Check the emulsifier source and type.",
        "confidence_reduction": 15,
    },
    "flavoring": {
        "explanation": "Flavorings may contain alcohol-based extracts or animal-derived ingredients. Check the flavoring source and ingredients.",
        "confidence_reduction": 15,
    },
    "flavor": {
        "explanation": "Flavors may contain alcohol-based extracts or animal-derived ingredients. Check the flavor source and ingredients.",
        "confidence_reduction": 15,
    },
    "natural_flavor": {
        "explanation": "Natural flavors may be derived from animal or plant sources. Check the flavor source.",
        "confidence_reduction": 10,
    },
    "artificial_flavor": {
        "explanation": "Artificial flavors are generally halal but may contain alcohol-based solvents. Check the ingredient list.",
        "confidence_reduction": 10,
    },
    "lecithin": {
        "explanation": "Lecithin may be derived from soy (halal) or eggs (requires halal certification). Check the lecithin source.",
        "confidence_reduction": 10,
    },
    "mono_glyceride": {
        "explanation": "Mono- and diglycerides may be derived from animal or plant sources. Check the source.",
        "confidence_reduction": 15,
    },
    "monoglyceride": {
        "explanation": "Mono- and diglycerides may be derived from animal or plant sources. Check the source.",
        "confidence_reduction": 15,
    },
    "diglyceride": {
        "explanation": "Mono- and diglycerides may be derived from animal or plant sources. Check the source.",
        "confidence_reduction": 15,
    },
    "whey": {
        "explanation": "Whey is derived from milk and requires halal certification. Check that the source milk is halal.",
        "confidence_reduction": 15,
    },
    "casein": {
        "explanation": "Casein is derived from milk and requires halal certification. Check that the source milk is halal.",
        "confidence_reduction": 15,
    },
}

# Source-qualified gelatin (plant_gelatin, microbial_gelatin) has no plain-token entry
SOURCE_QUALIFIED_GELATIN: dict = {
    "explanation": "Gelatin substitutes from plant or microbial sources are generally halal. Verify the source on the label.",
    "confidence_reduction": 10,
}

# --- Processing (cooking-method caveat, single fixed penalty) ---
PROCESSING_PENALTY = 10

PROCESSING_MODIFIERS: dict[str, str] = {
    "fried": "Fried items may use non-halal oils or cross-contamination. Verify cooking method and oil source.",
    "flavored": "Flavored items may contain alcohol-based flavorings or non-halal additives. Check ingredient list.",
    "fermented": "Fermented items may contain alcohol. Verify fermentation process and alcohol content.",
    "marinated": "Marinated items may contain wine, alcohol, or non-halal ingredients. Check marinade ingredients.",
    "smoked": "Smoked items may use non-halal smoking agents. Verify smoking method.",
    "cured": "Cured items may contain non-halal curing agents. Check curing ingredients.",
    "brined": "Brined items may contain non-halal brine ingredients. Verify brine composition.",
    "glazed": "Glazed items may contain alcohol or non-halal ingredients. Check glaze ingredients.",
    "seasoned": "Seasoned items may contain non-halal seasonings. Check seasoning blend ingredients.",
    "spiced": "Spiced items may contain non-halal spice blends. Verify spice ingredients.",
    "braised": "Braised items may use wine or alcohol in cooking liquid. Verify braising liquid.",
    "sauteed": "Sauteed items may use wine or non-halal oils. Verify cooking method and ingredients.",
    "pickled": "Pickled items may contain alcohol in pickling solution. Check pickling ingredients.",
    "preserved": "Preserved items may contain non-halal preservatives. Verify preservation method.",
}

# --- Neutral (descriptive, never affects scoring) ---
NEUTRAL_MODIFIERS: tuple[str, ...] = (
    "fresh", "dried", "frozen", "canned", "organic", "raw", "cooked", "boiled",
    "steamed", "baked", "roasted", "grilled", "whole", "chopped", "sliced",
    "diced", "minced", "ground", "pureed", "mashed", "crushed", "whole_grain",
    "brown", "white", "red", "green", "yellow", "black", "wild", "cultivated",
)

# --- Compound patterns over the whole identifier ---
def _compound(body: str) -> re.Pattern:
    return re.compile(rf"(?<![a-z0-9]){body}(?![a-z0-9])")


FORCED_OVERRIDING_PATTERNS: tuple[re.Pattern, ...] = (
    _compound(r"wine_(braised|marinated|glazed|sauce|reduction|infused)"),
    _compound(r"alcohol_(based|flavored|infused|extract)"),
    _compound(r"pork_(flavored|seasoned|based|fat|gelatin)"),
    _compound(r"bacon_(flavored|seasoned|bits|fat)"),
    _compound(r"lard_(based|rendered)"),
    _compound(r"gelatin_(pork|animal|non_halal)"),
)

SOURCE_QUALIFIED_PATTERN: re.Pattern = _compound(r"(animal|pork|microbial|plant)_(enzyme|rennet|gelatin)")
OVERRIDING_SOURCES: frozenset[str] = frozenset({"animal", "pork"})

# --- Processed-variant suffixes (rice_flour is a variant of rice) ---
VARIANT_SUFFIXES: tuple[str, ...] = (
    "flour", "starch", "oil", "paste", "sauce", "juice", "extract", "powder", "meal", "flakes",
)


def overriding_family(name: str) -> Optional[str]:
    """Family of an overriding match name: alcohol, pork, gelatin or non_halal_meat."""
    tokens = name.split("_")
    if any(t in ALCOHOL_MODIFIERS for t in tokens) or name in ALCOHOL_MODIFIERS:
        return "alcohol"
    if any(t in ("pork", "bacon", "lard", "ham") for t in tokens) or name in PORK_MODIFIERS:
        return "pork"
    if "gelatin" in tokens:
        return "gelatin"
    if name in NON_HALAL_MEAT_MODIFIERS or "animal" in tokens or "non" in tokens:
        return "non_halal_meat"
    return None
