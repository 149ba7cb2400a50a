"""
Recipe conversion: find knowledge-base ingredients in free recipe text, evaluate
each one, and replace haram/conditional ones with their first halal alternative.
"""
from dataclasses import dataclass, field
from typing import Any, Optional
import logging
import re

from halal_core.evaluation.halal_engine import HalalEngine
from halal_core.models.evaluation_result import EvaluationResult
from halal_core.models.ingredient_record import IngredientRecord, Ruling
from halal_core.preferences import apply_preferences, validate_preferences

logger = logging.getLogger(__name__)

MISSING_REPLACEMENT = "Halal alternative needed"

# Severity -> share of the score lost for an issue with no replacement
MISSING_REPLACEMENT_PENALTY = {"high": 0.25, "medium": 0.20, "low": 0.15}
STRICTNESS_FACTOR = {"strict": 0.98, "standard": 1.0, "flexible": 1.01}


@dataclass(frozen=True)
class RecipeIssue:
    ingredient: str
    identifier: str
    ruling: Ruling
    replacement: str
    alternatives: tuple[str, ...]
    notes: str
    severity: str
    confidence_score: int
    validation_state: str
    inherited_from: Optional[str] = None
    simple_explanation: str = ""
    quran_reference: Optional[str] = None
    hadith_reference: Optional[str] = None
    references: tuple[str, ...] = ()
    trace: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    @property
    def has_replacement(self) -> bool:
        return bool(self.replacement.strip()) and self.replacement != MISSING_REPLACEMENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "ingredient": self.ingredient,
            "identifier": self.identifier,
            "ruling": self.ruling.value,
            "replacement": self.replacement,
            "alternatives": list(self.alternatives),
            "notes": self.notes,
            "severity": self.severity,
            "confidence_score": self.confidence_score,
            "validation_state": self.validation_state,
            "inherited_from": self.inherited_from,
            "simple_explanation": self.simple_explanation,
            "quran_reference": self.quran_reference,
            "hadith_reference": self.hadith_reference,
            "references": list(self.references),
            "trace": list(self.trace),
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class RecipeConversion:
    original_text: str
    converted_text: str
    issues: tuple[RecipeIssue, ...] = field(default=())
    confidence_score: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_text": self.original_text,
            "converted_text": self.converted_text,
            "issues": [i.to_dict() for i in self.issues],
            "confidence_score": self.confidence_score,
        }


def _term_pattern(term: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)


def _severity(record: Optional[IngredientRecord]) -> str:
    """Low base confidence means the substitution matters most."""
    if record is None or record.base_confidence is None:
        return "low"
    if record.base_confidence <= 10:
        return "high"
    if record.base_confidence <= 50:
        return "medium"
    return "low"


def _validation_state(result: EvaluationResult) -> str:
    if result.enforced_by == "user_preferences":
        return "preference_based"
    if result.inherited_from:
        return "derived_haram"
    return "explicit_haram"


def _match_case(matched: str, replacement: str) -> str:
    if matched.isupper():
        return replacement.upper()
    if matched[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _search_terms(engine: HalalEngine) -> list[tuple[str, str]]:
    """(term, identifier) pairs for every identifier and alias, longest term first."""
    kb = engine.knowledge_base
    pairs: dict[str, str] = {}
    keys = [(i, i) for i in kb.identifiers()] + list(kb.aliases().items())
    for key, identifier in keys:
        for term in (key, key.replace("_", " ")):
            pairs.setdefault(term, identifier)
    return sorted(pairs.items(), key=lambda p: (-len(p[0]), p[0]))


def detect_ingredients(
    text: str,
    engine: HalalEngine,
    strictness: str = "standard",
    madhab: Optional[str] = None,
) -> list[RecipeIssue]:
    """Haram and conditional knowledge-base ingredients mentioned in `text`, one per identifier."""
    kb = engine.knowledge_base
    issues: list[RecipeIssue] = []
    seen: set[str] = set()
    for term, identifier in _search_terms(engine):
        if identifier in seen or not _term_pattern(term).search(text):
            continue
        seen.add(identifier)
        record = kb.get(identifier)
        result = apply_preferences(engine.evaluate(identifier), strictness, madhab, record=record)
        if result.ruling not in (Ruling.HARAM, Ruling.CONDITIONAL):
            continue
        alternatives = (record.alternatives if record else ()) or result.alternatives
        issues.append(RecipeIssue(
            ingredient=term.replace("_", " "),
            identifier=identifier,
            ruling=result.ruling,
            replacement=alternatives[0] if alternatives else MISSING_REPLACEMENT,
            alternatives=tuple(alternatives),
            notes=record.notes if record else "",
            severity=_severity(record),
            confidence_score=result.confidence_score,
            validation_state=_validation_state(result),
            inherited_from=result.inherited_from,
            simple_explanation=result.simple_explanation,
            quran_reference=result.quran_reference,
            hadith_reference=result.hadith_reference,
            references=tuple(r for r in (result.quran_reference, result.hadith_reference) if r),
            trace=result.trace,
            tags=result.tags,
        ))
    return issues


def replace_ingredients(text: str, issues: list[RecipeIssue]) -> str:
    converted = text
    for issue in issues:
        replacement = issue.replacement or "Halal alternative"
        # Detection matches "pork belly" and "pork_belly" alike; replace both spellings
        for form in dict.fromkeys((issue.ingredient, issue.ingredient.replace(" ", "_"))):
            converted = _term_pattern(form).sub(lambda m: _match_case(m.group(0), replacement), converted)
    return converted


def recipe_confidence(issues: list[RecipeIssue], strictness: str = "standard") -> int:
    """
    100 when nothing was detected. Otherwise the share of issues with a replacement,
    reduced for inherited rulings and for each issue left without a replacement.
    """
    if not issues:
        return 100
    total = len(issues)
    with_replacement = sum(1 for i in issues if i.has_replacement)
    value = 100.0 if with_replacement == total else with_replacement / total * 100

    inherited = sum(1 for i in issues if i.inherited_from)
    if inherited:
        value *= 1 - (0.05 if inherited == 1 else 0.10)
    for issue in issues:
        if not issue.has_replacement:
            value -= value * MISSING_REPLACEMENT_PENALTY.get(issue.severity, 0.15)
    value *= STRICTNESS_FACTOR.get((strictness or "standard").lower(), 1.0)
    return int(round(max(0.0, min(100.0, value))))


def convert_recipe(
    text: Any,
    engine: HalalEngine,
    strictness: str = "standard",
    madhab: Optional[str] = None,
) -> RecipeConversion:
    level, _ = validate_preferences(strictness, madhab)
    if not isinstance(text, str) or not text.strip():
        return RecipeConversion("", "", (), 0)
    trimmed = text.strip()
    issues = detect_ingredients(trimmed, engine, strictness, madhab)
    converted = replace_ingredients(trimmed, issues)
    confidence = recipe_confidence(issues, level)
    logger.info(
        "RECIPE_CONVERT issues=%d replaced=%d confidence=%s",
        len(issues), sum(1 for i in issues if i.has_replacement), confidence,
    )
    return RecipeConversion(trimmed, converted, tuple(issues), confidence)
