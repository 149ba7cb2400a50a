"""
Lexical modifier detection over normalized identifiers.

Tokens are matched exactly against the tables (never by substring), longest
phrase first, so `natural_flavor` wins over `flavor` and `important` never
matches `port`. Compound patterns then run over the whole identifier.
Detection never raises; no match yields an empty ModifierMatchSet.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from halal_core.models.modifier_match import ModifierCategory, ModifierMatch, ModifierMatchSet
from halal_core.modifiers.tables import (
    CONDITIONAL_MODIFIERS,
    EXEMPT_PHRASES,
    FORCED_OVERRIDING_PATTERNS,
    GELATIN_QUALIFIERS,
    NEUTRAL_MODIFIERS,
    OVERRIDING_FAMILIES,
    OVERRIDING_MODIFIERS,
    OVERRIDING_SOURCES,
    PROCESSING_MODIFIERS,
    PROCESSING_PENALTY,
    SOURCE_QUALIFIED_GELATIN,
    SOURCE_QUALIFIED_PATTERN,
    VARIANT_SUFFIXES,
)
from halal_core.normalization.normalizer import SEPARATOR, normalize_identifier, tokenize_identifier

logger = logging.getLogger(__name__)

_MAX_PHRASE_TOKENS = 3

_OVERRIDING = frozenset(OVERRIDING_MODIFIERS)
_NEUTRAL = frozenset(NEUTRAL_MODIFIERS)


def _category_of(phrase: str) -> Optional[ModifierCategory]:
    if phrase in _OVERRIDING:
        return ModifierCategory.OVERRIDING
    if phrase in CONDITIONAL_MODIFIERS:
        return ModifierCategory.CONDITIONAL
    if phrase in PROCESSING_MODIFIERS:
        return ModifierCategory.PROCESSING
    if phrase in _NEUTRAL:
        return ModifierCategory.NEUTRAL
    return None


def _lookup(phrase: str) -> Optional[tuple[ModifierCategory, str]]:
    """Exact table lookup, tolerating a trailing plural `s` (enzymes, diglycerides)."""
    category = _category_of(phrase)
    if category is not None:
        return category, phrase
    last = phrase.rsplit(SEPARATOR, 1)[-1]
    if phrase.endswith("s") and len(last) > 3:
        singular = phrase[:-1]
        category = _category_of(singular)
        if category is not None:
            return category, singular
    return None


def _build_match(category: ModifierCategory, name: str, pattern: str) -> ModifierMatch:
    if category == ModifierCategory.CONDITIONAL:
        details = CONDITIONAL_MODIFIERS[name]
        return ModifierMatch(
            name=name, category=category, pattern=pattern,
            explanation=details["explanation"],
            confidence_reduction=details["confidence_reduction"],
        )
    if category == ModifierCategory.PROCESSING:
        return ModifierMatch(
            name=name, category=category, pattern=pattern,
            explanation=PROCESSING_MODIFIERS[name],
            confidence_reduction=PROCESSING_PENALTY,
        )
    return ModifierMatch(name=name, category=category, pattern=pattern)


def _gelatin_is_qualified(normalized: str, tokens: list[str]) -> bool:
    if GELATIN_QUALIFIERS.intersection(tokens) or "bovine_halal" in normalized:
        return True
    for m in SOURCE_QUALIFIED_PATTERN.finditer(normalized):
        if m.group(2) == "gelatin" and m.group(1) not in OVERRIDING_SOURCES:
            return True
    return False


def _scan_phrases(tokens: list[str]):
    """Yield (category, table_name, matched_text, start, length) for each phrase hit."""
    i = 0
    while i < len(tokens):
        if SEPARATOR.join(tokens[i:i + 2]) in EXEMPT_PHRASES:
            i += 2
            continue
        hit = None
        for n in range(min(_MAX_PHRASE_TOKENS, len(tokens) - i), 0, -1):
            text = SEPARATOR.join(tokens[i:i + n])
            found = _lookup(text)
            if found:
                hit = (found[0], found[1], text, i, n)
                break
        if hit is None:
            i += 1
            continue
        yield hit
        i += hit[4]


def detect_modifiers(identifier: str) -> ModifierMatchSet:
    normalized = normalize_identifier(identifier)
    tokens = tokenize_identifier(normalized)
    result = ModifierMatchSet()
    if not tokens:
        return result

    gelatin_qualified = _gelatin_is_qualified(normalized, tokens)
    for category, name, text, _, _ in _scan_phrases(tokens):
        if category == ModifierCategory.OVERRIDING and name == "gelatin" and gelatin_qualified:
            logger.debug("MODIFIER gelatin qualified identifier=%s", normalized)
            continue
        result.add(_build_match(category, name, text))

    for pattern in FORCED_OVERRIDING_PATTERNS:
        for m in pattern.finditer(normalized):
            result.add(ModifierMatch(name=m.group(0), category=ModifierCategory.OVERRIDING, pattern=m.group(0)))

    for m in SOURCE_QUALIFIED_PATTERN.finditer(normalized):
        source, base = m.group(1), m.group(2)
        if source in OVERRIDING_SOURCES:
            result.add(ModifierMatch(name=m.group(0), category=ModifierCategory.OVERRIDING, pattern=m.group(0)))
            continue
        details = CONDITIONAL_MODIFIERS.get(base, SOURCE_QUALIFIED_GELATIN)
        result.upsert(ModifierMatch(
            name=base,
            category=ModifierCategory.CONDITIONAL,
            pattern=m.group(0),
            explanation=details["explanation"],
            confidence_reduction=details["confidence_reduction"],
            source=source,
        ))

    if not result.is_empty:
        logger.debug(
            "MODIFIER detected identifier=%s overriding=%s conditional=%s processing=%s neutral=%s",
            normalized,
            result.names(ModifierCategory.OVERRIDING),
            result.names(ModifierCategory.CONDITIONAL),
            result.names(ModifierCategory.PROCESSING),
            result.names(ModifierCategory.NEUTRAL),
        )
    return result


def extract_base_ingredient(identifier: str, strip_conditional: bool = False) -> str:
    """
    Strip overriding, processing and neutral modifier tokens and return the core
    (fried_apple -> apple). With strip_conditional, conditional tokens go too
    (marshmallow_flavoring -> marshmallow). Returns the normalized input if nothing is left.
    """
    normalized = normalize_identifier(identifier)
    tokens = tokenize_identifier(normalized)
    stripped: set[int] = set()
    for category, _, _, start, length in _scan_phrases(tokens):
        if strip_conditional or category != ModifierCategory.CONDITIONAL:
            stripped.update(range(start, start + length))
    core = [t for i, t in enumerate(tokens) if i not in stripped]
    return SEPARATOR.join(core) or normalized


def _peel_conditional_edges(tokens: list[str]) -> list[list[str]]:
    """Token lists left after dropping one conditional phrase from the end, then from the start."""
    hits = [h for h in _scan_phrases(tokens) if h[0] == ModifierCategory.CONDITIONAL]
    peeled = [tokens[:start] for _, _, _, start, length in hits if start + length == len(tokens)]
    peeled += [tokens[length:] for _, _, _, start, length in hits if start == 0]
    return [p for p in peeled if p]


def base_candidates(identifier: str) -> list[str]:
    """
    Keys to try, in order, when `identifier` itself has no record:
    the base ingredient, then that base with conditional phrases peeled off either
    edge, one phrase per round (mono_and_diglycerides_flavoring -> mono_and_diglycerides,
    enzyme_whey -> enzyme, whey), then the base with every conditional token gone.
    Never includes the input key.
    """
    normalized = normalize_identifier(identifier)
    base = extract_base_ingredient(normalized)
    found = [base]
    layer = [tokenize_identifier(base)]
    while layer:
        layer = [p for tokens in layer for p in _peel_conditional_edges(tokens)]
        found.extend(SEPARATOR.join(p) for p in layer)
    found.append(extract_base_ingredient(normalized, strip_conditional=True))
    out: list[str] = []
    for key in found:
        if key and key != normalized and key not in out:
            out.append(key)
    return out


@dataclass(frozen=True)
class Variant:
    is_variant: bool
    base_ingredient: Optional[str] = None
    variant_type: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "is_variant": self.is_variant,
            "base_ingredient": self.base_ingredient,
            "variant_type": self.variant_type,
        }


def detect_variant(identifier: str) -> Variant:
    """rice_flour -> Variant(True, 'rice', 'flour')."""
    normalized = normalize_identifier(identifier)
    for suffix in VARIANT_SUFFIXES:
        tail = SEPARATOR + suffix
        if normalized.endswith(tail) and len(normalized) > len(tail):
            return Variant(True, normalized[: -len(tail)], suffix)
    return Variant(False)


def modifier_taxonomy() -> dict:
    """The modifier tables as plain data, for diagnostic tooling."""
    return {
        "overriding": {family: list(names) for family, names in OVERRIDING_FAMILIES.items()},
        "gelatin_qualifiers": sorted(GELATIN_QUALIFIERS),
        "conditional": {k: dict(v) for k, v in CONDITIONAL_MODIFIERS.items()},
        "processing": dict(PROCESSING_MODIFIERS),
        "processing_penalty": PROCESSING_PENALTY,
        "neutral": list(NEUTRAL_MODIFIERS),
        "compound_overriding": [p.pattern for p in FORCED_OVERRIDING_PATTERNS],
        "source_qualified": SOURCE_QUALIFIED_PATTERN.pattern,
        "variant_suffixes": list(VARIANT_SUFFIXES),
    }
