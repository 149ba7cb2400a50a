"""
Confidence score (0-100) from ingredient type, ruling and additive adjustments.
The numeric score is authoritative; the high/medium/low level is for display.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from halal_core.classification.taxonomy import IngredientType
from halal_core.models.ingredient_record import Ruling


class SourceKind(str, Enum):
    NONE = "none"
    UNKNOWN = "unknown"
    NON_HALAL = "non_halal"
    VERIFIED = "verified"


# (type x ruling) -> base score. Haram is 0 for every type.
BASE_CONFIDENCE_BY_TYPE: dict[IngredientType, dict[Ruling, int]] = {
    IngredientType.NATURAL_PLANT: {Ruling.HALAL: 95, Ruling.CONDITIONAL: 70, Ruling.HARAM: 0, Ruling.UNKNOWN: 90},
    IngredientType.PROCESSED_PLANT: {Ruling.HALAL: 70, Ruling.CONDITIONAL: 60, Ruling.HARAM: 0, Ruling.UNKNOWN: 50},
    IngredientType.ANIMAL: {Ruling.HALAL: 60, Ruling.CONDITIONAL: 50, Ruling.HARAM: 0, Ruling.UNKNOWN: 50},
    IngredientType.ANIMAL_BYPRODUCT: {Ruling.HALAL: 50, Ruling.CONDITIONAL: 40, Ruling.HARAM: 0, Ruling.UNKNOWN: 40},
    IngredientType.ALCOHOL: {Ruling.HALAL: 0, Ruling.CONDITIONAL: 0, Ruling.HARAM: 0, Ruling.UNKNOWN: 0},
    IngredientType.FERMENTATION_DERIVED: {Ruling.HALAL: 75, Ruling.CONDITIONAL: 65, Ruling.HARAM: 0, Ruling.UNKNOWN: 60},
    IngredientType.SYNTHETIC: {Ruling.HALAL: 65, Ruling.CONDITIONAL: 55, Ruling.HARAM: 0, Ruling.UNKNOWN: 50},
}

PROCESSED_PENALTY = -15
UNCERTIFIED_ANIMAL_PENALTY = -20
ADDITIVES_PENALTY = -10
INHERITED_FROM_HARAM_PENALTY = -30
DEFAULT_CONDITIONAL_MODIFIER_PENALTY = 15
PROCESSING_MODIFIER_PENALTY = -10
UNKNOWN_SOURCE_PENALTY = -25
NON_HALAL_SOURCE_PENALTY = -100
CERTIFIED_BOOST = 10
VERIFIED_SOURCE_BOOST = 5

HIGH_THRESHOLD = 80
MEDIUM_THRESHOLD = 50


@dataclass(frozen=True)
class ScoreAdjustments:
    is_processed: bool = False
    is_certified: bool = False
    has_additives: bool = False
    inherited_from_haram: bool = False
    has_conditional_modifier: bool = False
    # Weight of the primary conditional modifier (subtracted as-is)
    conditional_modifier_penalty: int = DEFAULT_CONDITIONAL_MODIFIER_PENALTY
    has_processing_modifier: bool = False
    source: SourceKind = SourceKind.NONE
    # Record-supplied base confidence; replaces the table base except for haram
    base_score: Optional[int] = None


def base_confidence(ingredient_type: Union[IngredientType, str], ruling: Union[Ruling, str]) -> int:
    t = IngredientType(ingredient_type)
    r = Ruling.parse(ruling)
    return BASE_CONFIDENCE_BY_TYPE[t][r]


def score(
    ingredient_type: Union[IngredientType, str],
    ruling: Union[Ruling, str],
    adjustments: Optional[ScoreAdjustments] = None,
) -> int:
    """
    base(type, ruling) plus each toggled adjustment, clamped to [0, 100] and rounded.
    """
    adj = adjustments or ScoreAdjustments()
    t = IngredientType(ingredient_type)
    r = Ruling.parse(ruling)
    value = float(BASE_CONFIDENCE_BY_TYPE[t][r])
    if adj.base_score is not None and r != Ruling.HARAM:
        value = float(adj.base_score)

    if adj.is_processed and t == IngredientType.NATURAL_PLANT:
        value += PROCESSED_PENALTY
    if not adj.is_certified and t in (IngredientType.ANIMAL, IngredientType.ANIMAL_BYPRODUCT):
        value += UNCERTIFIED_ANIMAL_PENALTY
    if adj.has_additives:
        value += ADDITIVES_PENALTY
    if adj.inherited_from_haram:
        value += INHERITED_FROM_HARAM_PENALTY
    if adj.has_conditional_modifier:
        value -= abs(adj.conditional_modifier_penalty)
    if adj.has_processing_modifier:
        value += PROCESSING_MODIFIER_PENALTY
    if adj.source == SourceKind.UNKNOWN:
        value += UNKNOWN_SOURCE_PENALTY
    elif adj.source == SourceKind.NON_HALAL:
        value += NON_HALAL_SOURCE_PENALTY
    if adj.is_certified:
        value += CERTIFIED_BOOST
    if adj.source == SourceKind.VERIFIED:
        value += VERIFIED_SOURCE_BOOST

    return int(round(max(0.0, min(100.0, value))))


def map_score_to_level(value: int) -> str:
    if value >= HIGH_THRESHOLD:
        return "high"
    if value >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def should_mark_as_unknown(
    *,
    has_taxonomy_data: bool = False,
    has_knowledge_base_data: bool = False,
    natural_default_applied: bool = False,
    ruling: Union[Ruling, str, None] = None,
) -> bool:
    """Unknown only when nothing at all gave the system an opinion."""
    if has_taxonomy_data or has_knowledge_base_data or natural_default_applied:
        return False
    if Ruling.parse(ruling) == Ruling.HARAM:
        return False
    return True


_DESCRIPTIONS = {
    "high": "High confidence ({score}%) - This determination is based on clear Islamic guidelines and reliable sources.",
    "medium": "Medium confidence ({score}%) - This ingredient may be halal but requires verification of source or preparation method.",
    "low": "Low confidence ({score}%) - Insufficient data or significant uncertainty. Please verify with a qualified Islamic scholar.",
}


def confidence_description(level: str, value: int) -> str:
    return _DESCRIPTIONS.get(level, _DESCRIPTIONS["medium"]).format(score=value)
