"""
Ordered field resolution for assembling results from several partial sources.

Each result field has a fixed priority list of sources. The first source holding a
present value wins; None, empty strings and empty sequences count as absent.
"""
from typing import Any, Iterable, Optional

# Result field -> source names in priority order (for documentation and diagnostics)
FIELD_SOURCES: dict[str, tuple[str, ...]] = {
    "display_name": ("record.display_name", "prettified_identifier"),
    "notes": ("record.notes", "taxonomy.note", "empty"),
    "simple_explanation": ("record.simple_explanation", "generated_sentence"),
    "alternatives": (
        "record.alternatives",
        "inherited_haram_source.alternatives",
        "base_ingredient.alternatives",
        "empty",
    ),
    "references": (
        "record.references",
        "inherited_haram_source.references",
        "modifier_citation",
        "empty",
    ),
}


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) > 0
    return True


def resolve_field(name: str, sources: Iterable[Any], default: Optional[Any] = None) -> Any:
    """
    Return the first present value in `sources`, else `default`.
    `name` only labels the field; unknown names are allowed.

    >>> resolve_field("notes", [None, "", "from taxonomy"], "")
    'from taxonomy'
    """
    for value in sources:
        if is_present(value):
            return value
    return default
