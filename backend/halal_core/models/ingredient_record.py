"""
Strict contract for knowledge-base ingredient records.
Records are immutable once loaded; every optional field has an explicit empty value.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional
import logging

from halal_core.normalization.normalizer import normalize_identifier

logger = logging.getLogger(__name__)


class Ruling(str, Enum):
    HALAL = "halal"
    HARAM = "haram"
    CONDITIONAL = "conditional"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "Ruling":
        """Map a source value to a Ruling. 'questionable' is the legacy name for conditional."""
        if isinstance(value, Ruling):
            return value
        if not value or not isinstance(value, str):
            return cls.UNKNOWN
        v = value.strip().lower()
        if v == "questionable":
            return cls.CONDITIONAL
        try:
            return cls(v)
        except ValueError:
            logger.warning("RULING unrecognised value=%s mapped to unknown", value)
            return cls.UNKNOWN


# haram > conditional > halal > unknown
RULING_PRECEDENCE: dict[Ruling, int] = {
    Ruling.HARAM: 3,
    Ruling.CONDITIONAL: 2,
    Ruling.HALAL: 1,
    Ruling.UNKNOWN: 0,
}


def _as_list(values: Any) -> list:
    """A lone string (or other scalar) is one value, not a sequence of characters."""
    if values is None:
        return []
    if isinstance(values, (list, tuple, set, frozenset)):
        return list(values)
    return [values]


def _identifiers(values: Optional[Iterable[Any]]) -> tuple[str, ...]:
    """Normalize and dedupe a list of identifiers, preserving order."""
    out: list[str] = []
    for v in _as_list(values):
        key = normalize_identifier(str(v))
        if key and key not in out:
            out.append(key)
    return tuple(out)


def _strings(values: Optional[Iterable[Any]]) -> tuple[str, ...]:
    out: list[str] = []
    for v in _as_list(values):
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return tuple(out)


def _base_confidence(value: Any) -> Optional[int]:
    """0-100 figure; a fraction strictly between 0 and 1 (legacy data) is scaled up."""
    if value is None or isinstance(value, bool):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if 0.0 < v < 1.0:
        v *= 100
    return int(round(max(0.0, min(100.0, v))))


@dataclass(frozen=True)
class IngredientRecord:
    identifier: str
    ruling: Ruling = Ruling.UNKNOWN
    derives_from: tuple[str, ...] = ()
    alternatives: tuple[str, ...] = ()
    notes: str = ""
    references: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    base_confidence: Optional[int] = None
    display_name: Optional[str] = None
    simple_explanation: str = ""
    category: Optional[str] = None
    tags: tuple[str, ...] = ()
    certified: bool = False
    # Ancestors removed because they named the record itself
    stripped_self_references: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.identifier in self.derives_from:
            cleaned = tuple(d for d in self.derives_from if d != self.identifier)
            object.__setattr__(self, "stripped_self_references", len(self.derives_from) - len(cleaned))
            object.__setattr__(self, "derives_from", cleaned)

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "ruling": self.ruling.value,
            "derives_from": list(self.derives_from),
            "alternatives": list(self.alternatives),
            "notes": self.notes,
            "references": list(self.references),
            "aliases": list(self.aliases),
            "base_confidence": self.base_confidence,
            "display_name": self.display_name,
            "simple_explanation": self.simple_explanation,
            "category": self.category,
            "tags": list(self.tags),
            "certified": self.certified,
        }

    @classmethod
    def from_dict(cls, identifier: str, d: dict) -> "IngredientRecord":
        """
        Build a record from a knowledge-base entry. Accepts the current field names and
        the legacy ones produced by older data-preparation scripts.
        """
        key = normalize_identifier(d.get("identifier") or identifier)
        derives = d.get("derives_from")
        if derives is None:
            derives = d.get("derivesFrom")
        if derives is None:
            derives = d.get("inheritance") or d.get("contains") or d.get("depends_on") or []
        alternatives = d.get("alternatives")
        if alternatives is None:
            alternatives = d.get("halal_alternatives") or []
        references = _as_list(d.get("references"))
        for legacy in ("quranic_reference", "hadith_reference"):
            if d.get(legacy):
                references.append(d[legacy])
        base = d.get("base_confidence")
        if base is None:
            base = d.get("baseConfidence", d.get("confidence_score_base"))
        category = d.get("category")
        return cls(
            identifier=key,
            ruling=Ruling.parse(d.get("ruling") or d.get("status") or d.get("default_status")),
            derives_from=_identifiers(derives),
            alternatives=_strings(alternatives),
            notes=(d.get("notes") or d.get("reason") or "").strip(),
            references=_strings(references),
            aliases=_identifiers(d.get("aliases")),
            base_confidence=_base_confidence(base),
            display_name=d.get("display_name") or None,
            simple_explanation=(d.get("simple_explanation") or d.get("eli5") or "").strip(),
            category=category.strip().lower() if isinstance(category, str) and category.strip() else None,
            tags=_strings(d.get("tags")),
            certified=bool(d.get("certified") or d.get("halal_certified")),
        )
