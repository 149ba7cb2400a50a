"""
Halal knowledge base: in-memory record store, JSON/HTTP loaders and field resolution.
"""
from .knowledge_base import (
    KnowledgeBase,
    fetch_knowledge_base,
    knowledge_base_from_document,
    load_default_knowledge_base,
    load_knowledge_base,
)
from .field_resolution import FIELD_SOURCES, resolve_field

__all__ = [
    "KnowledgeBase",
    "fetch_knowledge_base",
    "knowledge_base_from_document",
    "load_default_knowledge_base",
    "load_knowledge_base",
    "FIELD_SOURCES",
    "resolve_field",
]
