"""
Deterministic identifier normalization. No fuzzy matching, no substring guessing.
Produces the `_`-joined lowercase keys the knowledge base is indexed by.
"""
import re
import logging
import unicodedata
from typing import List

logger = logging.getLogger(__name__)

SEPARATOR = "_"

# Spellings and E-numbers of the same substance, mapped to the identifier the
# knowledge base stores. Produce plurals are left to the taxonomy.
KNOWN_VARIANTS: dict[str, str] = {
    "gelatine": "gelatin",
    "e441": "gelatin",
    "e1510": "ethanol",
    "ethanol_alcohol": "ethyl_alcohol",
    "e322": "lecithin",
    "e471": "mono_and_diglycerides",
    "mono_diglycerides": "mono_and_diglycerides",
    "e120": "carmine",
    "e904": "shellac",
    "confectioners_glaze": "shellac",
    "e920": "l_cysteine",
    "cysteine": "l_cysteine",
    "marshmallows": "marshmallow",
    "gummies": "gummy_candy",
    "gummy_bears": "gummy_candy",
    "shrimps": "shrimp",
    "prawns": "prawn",
}

_SEPARATORS = re.compile(r"[\s\-/,;:.–—]+")
_DISALLOWED = re.compile(r"[^a-z0-9_]")
_REPEATED = re.compile(r"_+")


def normalize_identifier(text: str) -> str:
    """
    Normalize a raw ingredient name to a knowledge-base identifier.
    - ASCII-fold accents (sautéed -> sauteed), lowercase, strip.
    - Whitespace, hyphens and punctuation become a single `_`.
    - Apply known variants (e.g. gelatine -> gelatin).
    """
    if not text or not isinstance(text, str):
        return ""
    t = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    t = t.lower().strip()
    t = t.replace("'", "")
    t = _SEPARATORS.sub(SEPARATOR, t)
    t = _DISALLOWED.sub("", t)
    t = _REPEATED.sub(SEPARATOR, t).strip(SEPARATOR)
    if t in KNOWN_VARIANTS:
        canonical = KNOWN_VARIANTS[t]
        if canonical != t:
            logger.debug("NORMALIZE variant applied raw=%s -> canonical=%s", t, canonical)
        return canonical
    return t


def tokenize_identifier(identifier: str) -> List[str]:
    """Split a normalized identifier into its tokens."""
    if not identifier:
        return []
    return [p for p in identifier.split(SEPARATOR) if p]


def display_name(identifier: str) -> str:
    """'vanilla_extract' -> 'Vanilla Extract'."""
    return " ".join(w.capitalize() for w in tokenize_identifier(identifier))
