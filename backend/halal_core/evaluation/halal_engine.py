"""
Halal evaluation engine. Single entry point: HalalEngine.evaluate(identifier).

Pipeline (strict order): normalize -> detect modifiers -> overriding short-circuit ->
record / base ingredient / taxonomy / natural default / unknown -> inheritance ->
non-overriding modifiers -> confidence -> explanations and references.
No I/O; reads only the immutable knowledge base.
"""
from typing import Callable, Iterable, List, Optional, TypeVar
import logging

from halal_core.classification.taxonomy import (
    IngredientType,
    TaxonomyEntry,
    classify_ingredient_type,
    natural_plant_default,
    taxonomy_lookup,
)
from halal_core.evaluation.confidence import (
    DEFAULT_CONDITIONAL_MODIFIER_PENALTY,
    ScoreAdjustments,
    SourceKind,
    map_score_to_level,
    score,
    should_mark_as_unknown,
)
from halal_core.evaluation.inheritance import InheritanceResolver
from halal_core.exceptions import KnowledgeBaseUnavailableError
from halal_core.knowledge.field_resolution import resolve_field
from halal_core.knowledge.knowledge_base import KnowledgeBase, load_default_knowledge_base
from halal_core.models.evaluation_result import EvaluationResult
from halal_core.models.ingredient_record import IngredientRecord, Ruling
from halal_core.models.modifier_match import ModifierMatchSet
from halal_core.modifiers.detector import base_candidates, detect_modifiers, detect_variant
from halal_core.modifiers.tables import overriding_family
from halal_core.normalization.normalizer import display_name, normalize_identifier, tokenize_identifier

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNKNOWN_EXPLANATION = "Insufficient data - please verify"

QURAN_MARKERS = ("qur'an", "quran", "surah")
HADITH_MARKERS = ("hadith", "bukhari", "muslim", "tirmidhi", "abu dawud")

ADDITIVE_MARKERS = frozenset({
    "additive", "additives", "preservative", "preservatives", "stabilizer", "stabilizers",
    "coloring", "colouring", "thickener", "antioxidant",
})

# Overriding family -> citation added when the record itself carries none
FAMILY_CITATIONS = {
    "alcohol": "Qur'an 5:90",
    "pork": "Qur'an 2:173",
}


def _label(name: str) -> str:
    return name.replace("_", " ")


def _overriding_explanation(name: str) -> str:
    family = overriding_family(name)
    if family == "alcohol":
        return (
            f"This ingredient contains alcohol ({_label(name)}), which is haram according to Islamic law. "
            "The Qur'an explicitly prohibits intoxicants (Qur'an 5:90)."
        )
    if family == "pork":
        return (
            f"This ingredient contains pork or pork-derived products ({_label(name)}), which is haram. "
            "Pork is explicitly prohibited in the Qur'an (Qur'an 2:173)."
        )
    if family == "gelatin":
        return (
            "This ingredient contains gelatin, which is typically derived from pork or non-halal animals. "
            "Unless specifically halal-certified, gelatin is considered haram."
        )
    return (
        f"This ingredient contains {_label(name)}, which is haram. Meat must come from a permissible "
        "animal slaughtered according to Islamic guidelines."
    )


def _ruling_sentence(name: str, ruling: Ruling) -> str:
    if ruling == Ruling.HALAL:
        return f"{name} is halal."
    if ruling == Ruling.HARAM:
        return f"{name} is haram."
    if ruling == Ruling.CONDITIONAL:
        return f"{name} is conditionally halal: its status depends on the source or preparation."
    return f"{UNKNOWN_EXPLANATION}: there is not enough information about {name}."


def _first_with_marker(references: Iterable[str], markers: Iterable[str]) -> Optional[str]:
    for ref in references:
        low = ref.lower()
        if any(m in low for m in markers):
            return ref
    return None


def _lowercase_first(text: str) -> str:
    return text[:1].lower() + text[1:] if text else text


def _first_hit(lookup: Callable[[str], Optional[T]], keys: Iterable[str]) -> tuple[Optional[str], Optional[T]]:
    for k in keys:
        hit = lookup(k)
        if hit is not None:
            return k, hit
    return None, None


class HalalEngine:
    """
    Evaluates one identifier at a time against a read-only KnowledgeBase.
    Results are built fresh per call; the engine holds no per-call state.
    """

    def __init__(self, kb: Optional[KnowledgeBase]):
        if kb is None:
            raise KnowledgeBaseUnavailableError("HalalEngine requires a knowledge base")
        self._kb = kb
        self._resolver = InheritanceResolver(kb)

    @property
    def knowledge_base(self) -> KnowledgeBase:
        return self._kb

    def evaluate_many(self, identifiers: Iterable[str]) -> List[EvaluationResult]:
        return [self.evaluate(i) for i in identifiers]

    def evaluate(self, raw_identifier: str) -> EvaluationResult:
        key = normalize_identifier(raw_identifier)
        trace: list[str] = [f"Normalized input: {key or '(empty)'}"]
        modifiers = detect_modifiers(key)

        if modifiers.has_overriding:
            return self._overriding_result(key, modifiers, trace)

        record = self._kb.get(key) if key else None
        fallback_keys = base_candidates(key) if key else []
        matched_key: Optional[str] = key if record is not None else None
        base_record: Optional[IngredientRecord] = None
        if record is not None:
            trace.append(f"Knowledge base record found: {record.identifier} ({record.ruling.value})")
        else:
            matched_key, base_record = _first_hit(self._kb.get, fallback_keys)
            if base_record is not None:
                trace.append(f"Base ingredient {base_record.identifier} found in knowledge base")

        effective = record or base_record
        variant = detect_variant(key)
        if variant.is_variant:
            trace.append(f"Processed variant of {variant.base_ingredient} ({variant.variant_type})")

        taxonomy: Optional[TaxonomyEntry] = None
        inherited_from: Optional[str] = None
        chain: tuple[str, ...] = ()
        natural = None
        name = display_name(key)
        notes = ""
        generated_simple = ""

        if effective is not None:
            ingredient_type = classify_ingredient_type(effective.identifier, effective).type
            resolved = self._resolver.resolve(effective.identifier)
            if resolved is not None:
                chain = resolved.chain
                if chain:
                    trace.append(f"Inheritance chain: {' -> '.join((effective.identifier,) + chain)}")
                for missing in resolved.missing_ancestors:
                    trace.append(f"Ancestor not in knowledge base: {missing}")
            if resolved is not None and resolved.inherited_haram_source:
                inherited_from = resolved.inherited_haram_source
                ruling = Ruling.HARAM
                explanation = (
                    f"{name} is haram because it derives from {display_name(inherited_from)}, "
                    "which is haram."
                )
                generated_simple = f"Derived from {_label(inherited_from)}, which is haram."
                trace.append(f"Haram inherited from {inherited_from}")
            else:
                ruling = resolved.ruling if resolved is not None else effective.ruling
                explanation = _ruling_sentence(name, ruling)
                generated_simple = explanation
                trace.append(f"Resolved ruling: {ruling.value}")
            notes = effective.notes
        else:
            matched_key, taxonomy = _first_hit(taxonomy_lookup, [key] + fallback_keys)
            if taxonomy is not None:
                ingredient_type = taxonomy.type
                ruling = taxonomy.ruling
                explanation = taxonomy.explanation(name)
                generated_simple = _ruling_sentence(name, ruling)
                trace.append(f"Taxonomy classification: {taxonomy.identifier} -> {taxonomy.type.value} ({ruling.value})")
            else:
                matched_key, natural = _first_hit(natural_plant_default, [key] + fallback_keys)
                if natural is not None:
                    ingredient_type = IngredientType.NATURAL_PLANT
                    ruling = Ruling.HALAL
                    explanation = natural.explanation
                    generated_simple = natural.simple_explanation
                    trace.append(f"Natural plant default applied: {natural.base_ingredient} ({natural.category})")
                else:
                    ingredient_type = classify_ingredient_type(key).type
                    ruling = Ruling.UNKNOWN
                    explanation = f"{UNKNOWN_EXPLANATION}: {name or 'this ingredient'} is not in the knowledge base."
                    generated_simple = UNKNOWN_EXPLANATION + "."
                    trace.append("No record, taxonomy entry or natural default: marked unknown")
                    logger.info("UNKNOWN_INGREDIENT raw=%s normalized_key=%s", str(raw_identifier)[:50], key)

        is_unknown = should_mark_as_unknown(
            has_knowledge_base_data=effective is not None,
            has_taxonomy_data=taxonomy is not None,
            natural_default_applied=natural is not None,
            ruling=ruling,
        )
        requires_verification = ruling in (Ruling.CONDITIONAL, Ruling.UNKNOWN)
        primary = modifiers.primary_conditional or modifiers.primary_processing
        if primary is not None:
            kind = "Conditional" if modifiers.has_conditional else "Processing"
            if ruling == Ruling.HALAL:
                ruling = Ruling.CONDITIONAL
                explanation = f"{explanation} However, {_lowercase_first(primary.explanation or '')}"
                generated_simple = f"Base ingredient is halal, but {_lowercase_first(primary.explanation or '')}"
                requires_verification = True
                trace.append(f"{kind} modifier detected: {primary.name} (halal downgraded to conditional)")
            else:
                trace.append(f"{kind} modifier detected: {primary.name} (ruling {ruling.value} kept)")
                requires_verification = requires_verification or ruling != Ruling.HARAM

        tokens = tokenize_identifier(key)
        certified = bool(effective and effective.certified) or "halal" in tokens
        has_additives = bool(ADDITIVE_MARKERS.intersection(tokens)) or bool(
            effective and effective.category == "additive"
        )
        if ruling == Ruling.HARAM:
            source = SourceKind.NON_HALAL
        elif ruling == Ruling.UNKNOWN:
            source = SourceKind.UNKNOWN
        elif effective is not None and effective.references:
            source = SourceKind.VERIFIED
        else:
            source = SourceKind.NONE

        adjustments = ScoreAdjustments(
            is_processed=variant.is_variant or bool(
                matched_key and matched_key != key and detect_variant(matched_key).is_variant
            ),
            is_certified=certified,
            has_additives=has_additives,
            inherited_from_haram=inherited_from is not None,
            has_conditional_modifier=modifiers.has_conditional,
            # Heaviest conditional weight applies
            conditional_modifier_penalty=max(
                (m.confidence_reduction or DEFAULT_CONDITIONAL_MODIFIER_PENALTY for m in modifiers.conditional),
                default=DEFAULT_CONDITIONAL_MODIFIER_PENALTY,
            ),
            has_processing_modifier=modifiers.has_processing,
            source=source,
            base_score=effective.base_confidence if effective is not None else None,
        )
        confidence = score(ingredient_type, ruling, adjustments)
        trace.append(f"Confidence: {confidence} ({ingredient_type.value}, {ruling.value})")

        haram_record = self._kb.get(inherited_from) if inherited_from else None
        if notes:
            explanation = f"{explanation} {notes}"
        alternatives = resolve_field(
            "alternatives",
            [
                effective.alternatives if effective else None,
                haram_record.alternatives if haram_record else None,
                base_record.alternatives if base_record and base_record is not effective else None,
            ],
            (),
        )
        references = resolve_field(
            "references",
            [
                effective.references if effective else None,
                haram_record.references if haram_record else None,
            ],
            (),
        )
        simple = resolve_field(
            "simple_explanation",
            [record.simple_explanation if record else None, generated_simple],
            "",
        )
        shown_name = resolve_field("display_name", [record.display_name if record else None, name], key)

        logger.debug(
            "HALAL_ENGINE identifier=%s ruling=%s confidence=%s type=%s",
            key, ruling.value, confidence, ingredient_type.value,
        )
        return EvaluationResult(
            identifier=key,
            display_name=shown_name,
            ruling=ruling,
            confidence_score=confidence,
            confidence_level=map_score_to_level(confidence),
            ingredient_type=ingredient_type.value,
            explanation=explanation,
            simple_explanation=simple,
            alternatives=tuple(alternatives),
            inheritance_chain=chain,
            inherited_from=inherited_from,
            overriding_modifiers=(),
            conditional_modifiers=tuple(modifiers.conditional),
            processing_modifiers=tuple(modifiers.processing),
            trace=tuple(trace),
            references=tuple(references),
            quran_reference=_first_with_marker(references, QURAN_MARKERS),
            hadith_reference=_first_with_marker(references, HADITH_MARKERS),
            requires_verification=requires_verification,
            is_unknown=is_unknown,
            tags=effective.tags if effective else (),
        )

    def _overriding_result(self, key: str, modifiers: ModifierMatchSet, trace: list[str]) -> EvaluationResult:
        primary = modifiers.primary_overriding
        family = overriding_family(primary.name)
        record = self._kb.get(key)
        trace.append(f"Overriding modifier detected: {primary.name} (base ingredient bypassed)")
        logger.info("HALAL_ENGINE overriding identifier=%s modifier=%s family=%s", key, primary.name, family)

        ingredient_type = (
            IngredientType.ALCOHOL if family == "alcohol"
            else classify_ingredient_type(key, record).type
        )
        confidence = score(ingredient_type, Ruling.HARAM, ScoreAdjustments(source=SourceKind.NON_HALAL))
        trace.append(f"Confidence: {confidence} ({ingredient_type.value}, haram)")

        citation = FAMILY_CITATIONS.get(family)
        references = resolve_field(
            "references",
            [record.references if record else None, (citation,) if citation else None],
            (),
        )
        alternatives = resolve_field("alternatives", [record.alternatives if record else None], ())
        return EvaluationResult(
            identifier=key,
            display_name=resolve_field("display_name", [record.display_name if record else None, display_name(key)], key),
            ruling=Ruling.HARAM,
            confidence_score=confidence,
            confidence_level=map_score_to_level(confidence),
            ingredient_type=ingredient_type.value,
            explanation=_overriding_explanation(primary.name),
            simple_explanation=f"Contains {_label(primary.name)}, which is haram.",
            alternatives=tuple(alternatives),
            overriding_modifiers=tuple(modifiers.overriding),
            conditional_modifiers=tuple(modifiers.conditional),
            processing_modifiers=tuple(modifiers.processing),
            trace=tuple(trace),
            references=tuple(references),
            quran_reference=_first_with_marker(references, QURAN_MARKERS),
            hadith_reference=_first_with_marker(references, HADITH_MARKERS),
            requires_verification=False,
            is_unknown=False,
            tags=record.tags if record else (),
        )


_default_engine: Optional[HalalEngine] = None


def get_default_engine() -> HalalEngine:
    """Engine over the default knowledge base, loaded on first use."""
    global _default_engine
    if _default_engine is None:
        _default_engine = HalalEngine(load_default_knowledge_base())
    return _default_engine


def evaluate(identifier: str, kb: Optional[KnowledgeBase] = None) -> EvaluationResult:
    engine = HalalEngine(kb) if kb is not None else get_default_engine()
    return engine.evaluate(identifier)
