"""
Lexical modifier detection: overriding, conditional, processing and neutral cues.
"""
from .detector import (
    Variant,
    base_candidates,
    detect_modifiers,
    detect_variant,
    extract_base_ingredient,
    modifier_taxonomy,
)
from .tables import PROCESSING_PENALTY, overriding_family

__all__ = [
    "Variant",
    "base_candidates",
    "detect_modifiers",
    "detect_variant",
    "extract_base_ingredient",
    "modifier_taxonomy",
    "PROCESSING_PENALTY",
    "overriding_family",
]
