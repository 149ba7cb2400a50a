"""
Structured results: inheritance resolution output and the final evaluation result.
Results are built fresh per call and hold identifiers only, never records.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from halal_core.models.ingredient_record import Ruling
from halal_core.models.modifier_match import ModifierMatch


@dataclass(frozen=True)
class ResolvedStatus:
    identifier: str
    ruling: Ruling
    inherited_haram_source: Optional[str] = None
    chain: tuple[str, ...] = ()
    missing_ancestors: tuple[str, ...] = ()
    steps: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "ruling": self.ruling.value,
            "inherited_haram_source": self.inherited_haram_source,
            "chain": list(self.chain),
            "missing_ancestors": list(self.missing_ancestors),
            "steps": list(self.steps),
        }


@dataclass(frozen=True)
class EvaluationResult:
    identifier: str
    display_name: str
    ruling: Ruling
    confidence_score: int
    confidence_level: str
    ingredient_type: str
    explanation: str
    simple_explanation: str
    alternatives: tuple[str, ...] = ()
    inheritance_chain: tuple[str, ...] = ()
    inherited_from: Optional[str] = None
    overriding_modifiers: tuple[ModifierMatch, ...] = ()
    conditional_modifiers: tuple[ModifierMatch, ...] = ()
    processing_modifiers: tuple[ModifierMatch, ...] = ()
    trace: tuple[str, ...] = ()
    references: tuple[str, ...] = ()
    quran_reference: Optional[str] = None
    hadith_reference: Optional[str] = None
    requires_verification: bool = False
    is_unknown: bool = False
    tags: tuple[str, ...] = field(default=())
    enforced_by: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "display_name": self.display_name,
            "ruling": self.ruling.value,
            "confidence_score": self.confidence_score,
            "confidence_level": self.confidence_level,
            "ingredient_type": self.ingredient_type,
            "explanation": self.explanation,
            "simple_explanation": self.simple_explanation,
            "alternatives": list(self.alternatives),
            "inheritance_chain": list(self.inheritance_chain),
            "inherited_from": self.inherited_from,
            "overriding_modifiers": [m.to_dict() for m in self.overriding_modifiers],
            "conditional_modifiers": [m.to_dict() for m in self.conditional_modifiers],
            "processing_modifiers": [m.to_dict() for m in self.processing_modifiers],
            "trace": list(self.trace),
            "references": list(self.references),
            "quran_reference": self.quran_reference,
            "hadith_reference": self.hadith_reference,
            "requires_verification": self.requires_verification,
            "is_unknown": self.is_unknown,
            "tags": list(self.tags),
            "enforced_by": self.enforced_by,
        }
