"""
Read-only halal knowledge base. Loads from data/halal_knowledge.json (or a URL).
Lookup by exact normalized identifier, then alias; no substring guessing.
"""
from pathlib import Path
from typing import Any, Mapping, Optional, Union
import json
import logging

from halal_core.config import KB_FETCH_TIMEOUT, get_knowledge_base_path, get_knowledge_base_url
from halal_core.exceptions import KnowledgeBaseUnavailableError
from halal_core.knowledge.http_retry import fetch_json
from halal_core.models.ingredient_record import IngredientRecord
from halal_core.normalization.normalizer import normalize_identifier

logger = logging.getLogger(__name__)

RecordSource = Union[IngredientRecord, Mapping[str, Any]]


class KnowledgeBase:
    """
    O(1) lookup by normalized identifier or alias.
    An alias never shadows a real identifier; the first record to claim an alias keeps it.
    """

    def __init__(self, records: Optional[Mapping[str, RecordSource]], version: str = "0"):
        if records is None:
            raise KnowledgeBaseUnavailableError("knowledge base records are None")
        self._version = str(version)
        self._by_id: dict[str, IngredientRecord] = {}
        self._by_alias: dict[str, str] = {}
        self._stripped: dict[str, int] = {}
        for key, item in records.items():
            rec = item if isinstance(item, IngredientRecord) else IngredientRecord.from_dict(key, dict(item))
            if not rec.identifier:
                logger.warning("KNOWLEDGE_BASE skipped record with empty identifier raw=%s", key)
                continue
            if rec.identifier in self._by_id:
                logger.warning("KNOWLEDGE_BASE duplicate identifier=%s (first kept)", rec.identifier)
                continue
            if rec.stripped_self_references:
                self._stripped[rec.identifier] = rec.stripped_self_references
                logger.warning(
                    "DATA_QUALITY self_reference stripped identifier=%s count=%s",
                    rec.identifier, rec.stripped_self_references,
                )
            self._by_id[rec.identifier] = rec
        for rec in self._by_id.values():
            for alias in rec.aliases:
                if alias in self._by_id or alias in self._by_alias:
                    continue
                self._by_alias[alias] = rec.identifier
        logger.info(
            "KNOWLEDGE_BASE built records=%d aliases=%d version=%s",
            len(self._by_id), len(self._by_alias), self._version,
        )

    @property
    def version(self) -> str:
        return self._version

    @property
    def stripped_self_references(self) -> dict[str, int]:
        return dict(self._stripped)

    def canonical(self, identifier: str) -> Optional[str]:
        """Normalized identifier of the record `identifier` names, or None."""
        key = normalize_identifier(identifier)
        if key in self._by_id:
            return key
        return self._by_alias.get(key)

    def get(self, identifier: str) -> Optional[IngredientRecord]:
        key = self.canonical(identifier)
        return self._by_id.get(key) if key else None

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and self.canonical(identifier) is not None

    def __len__(self) -> int:
        return len(self._by_id)

    def identifiers(self) -> list[str]:
        return list(self._by_id)

    def aliases(self) -> dict[str, str]:
        return dict(self._by_alias)

    def dangling_references(self) -> dict[str, list[str]]:
        """Ancestors named by a record but absent from the knowledge base."""
        out: dict[str, list[str]] = {}
        for rec in self._by_id.values():
            missing = [a for a in rec.derives_from if self.canonical(a) is None]
            if missing:
                out[rec.identifier] = missing
        return out

    def find_cycles(self) -> list[tuple[str, ...]]:
        """
        Derivation cycles, each listed once starting from its smallest identifier.
        Diagnostic only; evaluation is cycle-safe without it.
        """
        cycles: set[tuple[str, ...]] = set()
        done: set[str] = set()

        for identifier in self._by_id:
            if identifier in done:
                continue
            path = [identifier]
            on_path = {identifier}
            # Remaining ancestors of each node on the path
            pending = [iter(self._by_id[identifier].derives_from)]
            while pending:
                raw = next(pending[-1], None)
                if raw is None:
                    node = path.pop()
                    on_path.discard(node)
                    done.add(node)
                    pending.pop()
                    continue
                parent = self.canonical(raw)
                if parent is None or parent in done:
                    continue
                if parent in on_path:
                    cycle = path[path.index(parent):]
                    start = cycle.index(min(cycle))
                    cycles.add(tuple(cycle[start:] + cycle[:start]))
                    continue
                path.append(parent)
                on_path.add(parent)
                pending.append(iter(self._by_id[parent].derives_from))
        return sorted(cycles)


def _records_from_document(data: Any) -> tuple[Mapping[str, Any], str]:
    """Accept a flat {identifier: record} mapping or {"knowledge_version", "ingredients"}."""
    if not isinstance(data, dict):
        raise KnowledgeBaseUnavailableError("knowledge base document must be a JSON object")
    if isinstance(data.get("ingredients"), dict):
        return data["ingredients"], str(data.get("knowledge_version", "0"))
    if isinstance(data.get("ingredients"), list):
        items = {str(i.get("identifier") or i.get("name") or ""): i for i in data["ingredients"] if isinstance(i, dict)}
        return items, str(data.get("knowledge_version", "0"))
    records = {k: v for k, v in data.items() if isinstance(v, dict)}
    return records, "0"


def knowledge_base_from_document(data: Any) -> KnowledgeBase:
    records, version = _records_from_document(data)
    return KnowledgeBase(records, version=version)


def load_knowledge_base(path: Optional[Path] = None) -> KnowledgeBase:
    """Load from a JSON file. Missing or unreadable files raise KnowledgeBaseUnavailableError."""
    path = Path(path) if path else get_knowledge_base_path()
    if not path.exists():
        raise KnowledgeBaseUnavailableError(f"knowledge base not found at {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise KnowledgeBaseUnavailableError(f"knowledge base unreadable at {path}: {e}") from e
    kb = knowledge_base_from_document(data)
    logger.info("KNOWLEDGE_BASE loaded records=%d from %s", len(kb), path)
    return kb


def fetch_knowledge_base(url: str, timeout: Optional[int] = None) -> KnowledgeBase:
    """Load the same JSON document over HTTP with retries."""
    kb = knowledge_base_from_document(fetch_json(url, timeout=timeout or KB_FETCH_TIMEOUT))
    logger.info("KNOWLEDGE_BASE fetched records=%d from %s", len(kb), url[:80])
    return kb


def load_default_knowledge_base() -> KnowledgeBase:
    """HALAL_KB_URL first, else HALAL_KB_PATH, else data/halal_knowledge.json."""
    url = get_knowledge_base_url()
    if url:
        return fetch_knowledge_base(url)
    return load_knowledge_base(get_knowledge_base_path())
