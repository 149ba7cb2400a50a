#!/usr/bin/env python3
"""
Data-quality check for the halal knowledge base: record count, stripped
self-references, dangling ancestors and derivation cycles.
Usage: cd backend && python scripts/validate_knowledge_base.py [--path FILE | --url URL] [--strict]
"""
import argparse
import logging
import sys
from pathlib import Path

# Ensure backend is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Validate the halal knowledge base")
    parser.add_argument("--path", type=Path, default=None, help="Knowledge base JSON file (default: HALAL_KB_PATH)")
    parser.add_argument("--url", default=None, help="Fetch the knowledge base from this URL instead")
    parser.add_argument("--strict", action="store_true", help="Exit non-zero on cycles or dangling ancestors")
    args = parser.parse_args()

    from halal_core.exceptions import KnowledgeBaseUnavailableError
    from halal_core.knowledge.knowledge_base import fetch_knowledge_base, load_knowledge_base

    try:
        kb = fetch_knowledge_base(args.url) if args.url else load_knowledge_base(args.path)
    except KnowledgeBaseUnavailableError as e:
        logger.error("Knowledge base unavailable: %s", e)
        return 2

    logger.info("Knowledge base version=%s records=%d aliases=%d", kb.version, len(kb), len(kb.aliases()))

    for identifier, count in sorted(kb.stripped_self_references.items()):
        logger.warning("Self-reference stripped: %s (x%d)", identifier, count)

    dangling = kb.dangling_references()
    for identifier, missing in sorted(dangling.items()):
        logger.warning("Dangling ancestors: %s -> %s", identifier, ", ".join(missing))

    cycles = kb.find_cycles()
    for cycle in cycles:
        logger.warning("Derivation cycle: %s", " -> ".join(cycle + (cycle[0],)))

    logger.info(
        "Validation complete: %d self-references, %d records with dangling ancestors, %d cycles",
        len(kb.stripped_self_references), len(dangling), len(cycles),
    )
    if args.strict and (cycles or dangling):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
