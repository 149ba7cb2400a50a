"""
Lexical modifier matches found in an ingredient identifier.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ModifierCategory(str, Enum):
    OVERRIDING = "overriding"
    CONDITIONAL = "conditional"
    PROCESSING = "processing"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class ModifierMatch:
    name: str
    category: ModifierCategory
    pattern: str
    explanation: Optional[str] = None
    confidence_reduction: Optional[int] = None
    # microbial / plant for source-qualified compounds downgraded to conditional
    source: Optional[str] = None

    def to_dict(self) -> dict:
        d = {
            "name": self.name,
            "category": self.category.value,
            "pattern": self.pattern,
        }
        if self.explanation is not None:
            d["explanation"] = self.explanation
        if self.confidence_reduction is not None:
            d["confidence_reduction"] = self.confidence_reduction
        if self.source is not None:
            d["source"] = self.source
        return d


@dataclass
class ModifierMatchSet:
    """All distinct matches per category, in the order they were found."""
    overriding: list[ModifierMatch] = field(default_factory=list)
    conditional: list[ModifierMatch] = field(default_factory=list)
    processing: list[ModifierMatch] = field(default_factory=list)
    neutral: list[ModifierMatch] = field(default_factory=list)

    def _bucket(self, category: ModifierCategory) -> list[ModifierMatch]:
        return {
            ModifierCategory.OVERRIDING: self.overriding,
            ModifierCategory.CONDITIONAL: self.conditional,
            ModifierCategory.PROCESSING: self.processing,
            ModifierCategory.NEUTRAL: self.neutral,
        }[category]

    def add(self, match: ModifierMatch) -> bool:
        """Add unless a match with the same name is already in that category."""
        bucket = self._bucket(match.category)
        if any(m.name == match.name for m in bucket):
            return False
        bucket.append(match)
        return True

    def upsert(self, match: ModifierMatch) -> None:
        """Replace a same-named match in place (keeping its position), else append."""
        bucket = self._bucket(match.category)
        for i, m in enumerate(bucket):
            if m.name == match.name:
                bucket[i] = match
                return
        bucket.append(match)

    def names(self, category: ModifierCategory) -> list[str]:
        return [m.name for m in self._bucket(category)]

    @property
    def has_overriding(self) -> bool:
        return bool(self.overriding)

    @property
    def has_conditional(self) -> bool:
        return bool(self.conditional)

    @property
    def has_processing(self) -> bool:
        return bool(self.processing)

    @property
    def has_neutral(self) -> bool:
        return bool(self.neutral)

    @property
    def primary_overriding(self) -> Optional[ModifierMatch]:
        return self.overriding[0] if self.overriding else None

    @property
    def primary_conditional(self) -> Optional[ModifierMatch]:
        return self.conditional[0] if self.conditional else None

    @property
    def primary_processing(self) -> Optional[ModifierMatch]:
        return self.processing[0] if self.processing else None

    @property
    def is_empty(self) -> bool:
        return not (self.overriding or self.conditional or self.processing or self.neutral)

    def to_dict(self) -> dict:
        return {
            "overriding": [m.to_dict() for m in self.overriding],
            "conditional": [m.to_dict() for m in self.conditional],
            "processing": [m.to_dict() for m in self.processing],
            "neutral": [m.to_dict() for m in self.neutral],
            "has_overriding": self.has_overriding,
            "has_conditional": self.has_conditional,
            "has_processing": self.has_processing,
            "has_neutral": self.has_neutral,
        }
