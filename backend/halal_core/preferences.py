"""
Caller-side preference rules (strictness level, school of thought).

Applied to an EvaluationResult after evaluation; the engine itself never reads
preferences. Only conditional and unknown results are adjusted.
"""
from dataclasses import replace
from typing import Optional
import logging

from halal_core.evaluation.confidence import map_score_to_level
from halal_core.models.evaluation_result import EvaluationResult
from halal_core.models.ingredient_record import RULING_PRECEDENCE, IngredientRecord, Ruling
from halal_core.normalization.normalizer import tokenize_identifier

logger = logging.getLogger(__name__)

HALAL_RULES: dict[str, dict[str, dict[str, str]]] = {
    "strictness": {
        "strict": {
            "alcohol": "haram",
            "alcohol_trace": "haram",
            "gelatin_unknown": "haram",
            "enzymes_unknown": "haram",
            "cross_contamination": "haram",
        },
        "standard": {
            "alcohol": "haram",
            "gelatin_unknown": "questionable",
            "enzymes_unknown": "questionable",
            "cross_contamination": "questionable",
        },
        "flexible": {
            "alcohol_trace": "questionable",
            "gelatin_unknown": "questionable",
            "enzymes_unknown": "halal",
            "cross_contamination": "halal",
        },
    },
    "madhab": {
        "hanafi": {"seafood_shellfish": "haram"},
        "shafii": {"seafood_shellfish": "halal"},
        "maliki": {"seafood_shellfish": "halal"},
        "hanbali": {"seafood_shellfish": "halal"},
    },
}

STRICTNESS_LEVELS = tuple(HALAL_RULES["strictness"])
MADHABS = tuple(HALAL_RULES["madhab"])
NO_PREFERENCE = "no-preference"

PREFERENCE_CONFIDENCE_FACTOR = 0.9
ENFORCED_BY = "user_preferences"

_ALCOHOL_TRACE_TOKENS = frozenset({"vanilla", "extract", "essence"})
_SHELLFISH_TOKENS = frozenset({
    "shellfish", "shrimp", "prawn", "lobster", "crab", "clam", "mussel", "oyster", "scallop",
    "shrimps", "prawns", "clams", "mussels", "oysters", "scallops",
})
_ENZYME_NAMES = frozenset({"enzyme", "rennet"})


def infer_tags(result: EvaluationResult, record: Optional[IngredientRecord] = None) -> tuple[str, ...]:
    """Result tags plus record tags plus the rule tags implied by the identifier."""
    tags: list[str] = []
    for t in tuple(result.tags) + (record.tags if record else ()):
        if t not in tags:
            tags.append(t)

    tokens = set(tokenize_identifier(result.identifier))
    category = record.category if record else None

    def add(tag: str) -> None:
        if tag not in tags:
            tags.append(tag)

    if "gelatin" in tokens or "gelatin" in result.inheritance_chain or category in ("gelatin", "animal-derived"):
        add("gelatin_unknown")
    if tokens & _ALCOHOL_TRACE_TOKENS:
        add("alcohol_trace")
    if any(m.name in _ENZYME_NAMES and m.source is None for m in result.conditional_modifiers):
        add("enzymes_unknown")
    if tokens & _SHELLFISH_TOKENS:
        add("seafood_shellfish")
    if any(m.name == "fried" for m in result.processing_modifiers):
        add("cross_contamination")
    return tuple(tags)


def validate_preferences(strictness: str, madhab: Optional[str]) -> tuple[str, Optional[str]]:
    level = (strictness or "standard").strip().lower()
    if level not in HALAL_RULES["strictness"]:
        raise ValueError(f"unknown strictness level: {strictness!r} (expected one of {', '.join(STRICTNESS_LEVELS)})")
    school = (madhab or "").strip().lower() or None
    if school == NO_PREFERENCE:
        school = None
    if school is not None and school not in HALAL_RULES["madhab"]:
        raise ValueError(f"unknown madhab: {madhab!r} (expected one of {', '.join(MADHABS)})")
    return level, school


def apply_preferences(
    result: EvaluationResult,
    strictness: str = "standard",
    madhab: Optional[str] = None,
    record: Optional[IngredientRecord] = None,
) -> EvaluationResult:
    """
    Adjust a conditional/unknown result by the user's strictness and madhab.
    A rule fires when it would change the ruling; the strictest fired rule wins,
    enforced_by is set and the score is scaled by 0.9, or zeroed when the ruling
    becomes haram (matching engine haram results). Other results pass through.
    Raises ValueError for an unknown strictness level or madhab.
    """
    level, school = validate_preferences(strictness, madhab)
    if result.ruling not in (Ruling.CONDITIONAL, Ruling.UNKNOWN):
        return result

    tags = infer_tags(result, record)
    rules = dict(HALAL_RULES["strictness"][level])
    if school is not None:
        rules.update(HALAL_RULES["madhab"][school])

    fired: list[tuple[str, Ruling]] = []
    for tag in tags:
        if tag not in rules:
            continue
        target = Ruling.parse(rules[tag])
        if target != result.ruling:
            fired.append((tag, target))
    if not fired:
        return result

    ruling = max((t for _, t in fired), key=lambda r: RULING_PRECEDENCE[r])
    if ruling == Ruling.HARAM:
        confidence = 0
    else:
        confidence = int(round(result.confidence_score * PREFERENCE_CONFIDENCE_FACTOR))
    applied = ", ".join(f"{tag} -> {target.value}" for tag, target in fired)
    line = f"Preference rules applied (strictness={level}, madhab={school or NO_PREFERENCE}): {applied}"
    logger.info("PREFERENCES identifier=%s %s -> %s (%s)", result.identifier, result.ruling.value, ruling.value, applied)
    return replace(
        result,
        ruling=ruling,
        confidence_score=confidence,
        confidence_level=map_score_to_level(confidence),
        enforced_by=ENFORCED_BY,
        requires_verification=ruling in (Ruling.CONDITIONAL, Ruling.UNKNOWN),
        is_unknown=result.is_unknown and ruling == Ruling.UNKNOWN,
        trace=result.trace + (line,),
        tags=tags,
    )
