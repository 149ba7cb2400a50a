"""
Remote knowledge-base documents over HTTP. Transient failures (timeouts, dropped
connections, gateway errors) are retried with exponential backoff; anything else
surfaces as KnowledgeBaseUnavailableError.
"""
import logging
import time
from typing import Any, Optional

import requests

from halal_core.exceptions import KnowledgeBaseUnavailableError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
INITIAL_BACKOFF = 1.0
# Gateway and overload responses worth another attempt
RETRY_STATUSES = frozenset({429, 502, 503, 504})


def _attempt(url: str, timeout: int) -> tuple[Optional[requests.Response], Optional[str]]:
    try:
        resp = requests.get(url, headers={"Accept": "application/json"}, timeout=timeout)
    except requests.Timeout as e:
        return None, f"timed out after {timeout}s: {e}"
    except requests.RequestException as e:
        return None, f"{type(e).__name__}: {e}"
    if resp.status_code in RETRY_STATUSES:
        return None, f"HTTP {resp.status_code}"
    return resp, None


def get_with_retries(
    url: str,
    timeout: int = 10,
    max_attempts: int = MAX_ATTEMPTS,
    initial_backoff: float = INITIAL_BACKOFF,
) -> requests.Response:
    """
    GET `url`, retrying transient failures. Returns the first non-retryable response
    (which may still be an error status); raises once attempts run out.
    """
    error: Optional[str] = None
    for attempt in range(1, max_attempts + 1):
        resp, error = _attempt(url, timeout)
        if resp is not None:
            return resp
        logger.warning(
            "KNOWLEDGE_FETCH attempt=%s/%s url=%s error=%s",
            attempt, max_attempts, url[:80], error,
        )
        if attempt < max_attempts:
            delay = initial_backoff * (2 ** (attempt - 1))
            logger.info("KNOWLEDGE_FETCH backoff %.1fs", delay)
            time.sleep(delay)
    raise KnowledgeBaseUnavailableError(f"knowledge base fetch failed url={url}: {error}")


def fetch_json(url: str, timeout: int = 10, **retry_options: Any) -> Any:
    """Fetch and decode a JSON document. Non-200 and non-JSON responses raise."""
    resp = get_with_retries(url, timeout=timeout, **retry_options)
    if resp.status_code != 200:
        raise KnowledgeBaseUnavailableError(f"knowledge base fetch failed url={url}: HTTP {resp.status_code}")
    try:
        return resp.json()
    except ValueError as e:
        raise KnowledgeBaseUnavailableError(f"knowledge base at {url} is not JSON: {e}") from e
