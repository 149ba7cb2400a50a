"""
Backlog of ingredients that evaluated unknown, persisted as JSON for knowledge-base curation.
The API writes here; the engine never does.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from halal_core.config import get_unknown_ingredients_log_path

logger = logging.getLogger(__name__)

MAX_RAW_INPUTS = 20
LOG_FORMAT_VERSION = "1.0"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class UnknownEntry:
    """One normalized key that the knowledge base could not answer for."""

    normalized_key: str
    raw_inputs: List[str] = field(default_factory=list)
    frequency: int = 0
    first_seen: str = ""
    last_seen: str = ""
    # Strictness/madhab of the first request that hit this key
    ruling_context: Optional[Dict[str, str]] = None

    def seen(self, raw_input: str, context: Optional[Dict[str, str]]) -> None:
        stamp = _utc_now()
        if not self.first_seen:
            self.first_seen = stamp
        self.last_seen = stamp
        self.frequency += 1
        if raw_input and raw_input not in self.raw_inputs and len(self.raw_inputs) < MAX_RAW_INPUTS:
            self.raw_inputs.append(raw_input)
        if context and self.ruling_context is None:
            self.ruling_context = {k: str(v) for k, v in context.items() if v}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "normalized_key": self.normalized_key,
            "raw_inputs": list(self.raw_inputs),
            "frequency": self.frequency,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "ruling_context": self.ruling_context,
        }

    @classmethod
    def from_dict(cls, key: str, d: Dict[str, Any]) -> "UnknownEntry":
        return cls(
            normalized_key=d.get("normalized_key") or key,
            raw_inputs=[str(r) for r in d.get("raw_inputs") or []][:MAX_RAW_INPUTS],
            frequency=int(d.get("frequency") or 0),
            first_seen=str(d.get("first_seen") or ""),
            last_seen=str(d.get("last_seen") or ""),
            ruling_context=d.get("ruling_context"),
        )


class UnknownIngredientsLog:
    """Unknown keys with their raw spellings and counts. Reads the JSON file once on construction."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else get_unknown_ingredients_log_path()
        self._entries: Dict[str, UnknownEntry] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, UnknownEntry]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("UNKNOWN_LOG unreadable, starting empty path=%s error=%s", self._path, e)
            return {}
        raw = data.get("unknown_ingredients") if isinstance(data, dict) else None
        if not isinstance(raw, dict):
            return {}
        return {k: UnknownEntry.from_dict(k, v) for k, v in raw.items() if isinstance(v, dict)}

    def _write(self) -> None:
        doc = {
            "version": LOG_FORMAT_VERSION,
            "unknown_ingredients": {k: e.to_dict() for k, e in self._entries.items()},
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(doc, indent=2), encoding="utf-8")

    def record(
        self,
        raw_input: str,
        normalized_key: str,
        context: Optional[Dict[str, str]] = None,
        persist: bool = True,
    ) -> None:
        """Count one sighting of `normalized_key`. Empty keys are ignored."""
        if not normalized_key:
            return
        entry = self._entries.get(normalized_key)
        if entry is None:
            entry = self._entries[normalized_key] = UnknownEntry(normalized_key)
        entry.seen(raw_input, context)
        if persist:
            self._write()
        logger.info(
            "UNKNOWN_INGREDIENT key=%s frequency=%s raw=%s",
            normalized_key, entry.frequency, (raw_input or "")[:50],
        )

    def get_entries(self) -> Dict[str, Dict[str, Any]]:
        return {k: e.to_dict() for k, e in self._entries.items()}

    def get_keys_for_enrichment(self, min_frequency: int = 1) -> List[str]:
        """Keys seen at least min_frequency times, most frequent first (ties by key)."""
        ranked = sorted(self._entries.values(), key=lambda e: (-e.frequency, e.normalized_key))
        return [e.normalized_key for e in ranked if e.frequency >= min_frequency]


_default_log: Optional[UnknownIngredientsLog] = None


def get_unknown_log(path: Optional[Path] = None) -> UnknownIngredientsLog:
    global _default_log
    if _default_log is None:
        _default_log = UnknownIngredientsLog(path)
    return _default_log


def log_unknown_ingredient(raw_input: str, normalized_key: str, context: Optional[Dict[str, str]] = None) -> None:
    get_unknown_log().record(raw_input, normalized_key, context=context)
