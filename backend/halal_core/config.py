"""
Feature flags, paths, and centralized configuration.
All resolution relative to the backend directory.
"""
import os
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Repo root: backend/halal_core/config.py -> parent=halal_core, parent.parent=backend, parent.parent.parent=repo
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_REPO_ROOT = _BACKEND_DIR.parent

# --- Feature flags ---
def get_unknown_log_enabled() -> bool:
    return os.environ.get("UNKNOWN_LOG_ENABLED", "true").lower() in ("1", "true", "yes")

def get_default_strictness() -> str:
    return os.environ.get("DEFAULT_STRICTNESS", "standard").strip().lower() or "standard"

# --- Data paths ---
def get_knowledge_base_path() -> Path:
    override = os.environ.get("HALAL_KB_PATH", "").strip()
    if override:
        return Path(override)
    return _REPO_ROOT / "data" / "halal_knowledge.json"

def get_unknown_ingredients_log_path() -> Path:
    override = os.environ.get("UNKNOWN_LOG_PATH", "").strip()
    if override:
        return Path(override)
    return _REPO_ROOT / "data" / "unknown_ingredients_log.json"

# --- Remote knowledge base (lazy read from env) ---
def get_knowledge_base_url() -> Optional[str]:
    url = os.environ.get("HALAL_KB_URL", "").strip()
    return url or None

# Remote fetch timeout (seconds)
KB_FETCH_TIMEOUT = int(os.environ.get("HALAL_KB_TIMEOUT", "10"))

# --- Startup logging ---
def log_config() -> None:
    logger.info(
        "CONFIG: knowledge_base=%s exists=%s remote=%s unknown_log=%s unknown_log_enabled=%s "
        "default_strictness=%s kb_timeout=%ds",
        get_knowledge_base_path(), get_knowledge_base_path().exists(),
        bool(get_knowledge_base_url()), get_unknown_ingredients_log_path(),
        get_unknown_log_enabled(), get_default_strictness(), KB_FETCH_TIMEOUT,
    )
