"""
Halal ingredient evaluation API.

Endpoints:
    GET  /                          Health check with knowledge-base size and version
    GET  /ingredients/{identifier}  Evaluate one ingredient (optional strictness, madhab)
    POST /evaluate                  Evaluate a batch of ingredients
    GET  /modifiers/{identifier}    Diagnostic: lexical modifiers detected
    GET  /resolve/{identifier}      Diagnostic: inheritance resolution
    POST /convert                   Convert a recipe text to halal alternatives
"""
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Optional
import logging
from dotenv import load_dotenv
from pathlib import Path

# Load env vars
load_dotenv(Path(__file__).parent / ".env")

app = FastAPI(title="Halal Ingredient Evaluation API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from halal_core.config import get_default_strictness, get_unknown_log_enabled, log_config
from halal_core.enrichment.unknown_log import log_unknown_ingredient
from halal_core.evaluation.halal_engine import HalalEngine, get_default_engine
from halal_core.evaluation.inheritance import InheritanceResolver
from halal_core.exceptions import KnowledgeBaseUnavailableError
from halal_core.models.evaluation_result import EvaluationResult
from halal_core.modifiers.detector import detect_modifiers, detect_variant, extract_base_ingredient
from halal_core.normalization.normalizer import normalize_identifier
from halal_core.preferences import apply_preferences
from halal_core.recipe_converter import convert_recipe

log_config()


def get_engine() -> HalalEngine:
    """Engine over the default knowledge base (HALAL_KB_URL / HALAL_KB_PATH), loaded once."""
    return get_default_engine()


# --- Request Models ---
class EvaluateRequest(BaseModel):
    identifiers: List[str]
    strictness: Optional[str] = None
    madhab: Optional[str] = None


class ConvertRequest(BaseModel):
    text: str
    strictness: Optional[str] = None
    madhab: Optional[str] = None


def _evaluate_one(engine: HalalEngine, raw: str, strictness: Optional[str], madhab: Optional[str]) -> EvaluationResult:
    result = engine.evaluate(raw)
    if result.is_unknown and get_unknown_log_enabled():
        log_unknown_ingredient(raw, result.identifier, context={"strictness": strictness, "madhab": madhab})
    record = engine.knowledge_base.get(result.identifier)
    return apply_preferences(result, strictness or get_default_strictness(), madhab, record=record)


def _unavailable(e: KnowledgeBaseUnavailableError) -> HTTPException:
    logger.error("KNOWLEDGE_BASE unavailable: %s", e)
    return HTTPException(status_code=503, detail=f"Knowledge base unavailable: {e}")


# --- Endpoints ---

@app.get("/")
def health_check():
    try:
        kb = get_engine().knowledge_base
    except KnowledgeBaseUnavailableError as e:
        logger.warning("HEALTH knowledge base unavailable: %s", e)
        return {"status": "degraded", "service": "halal-engine", "error": str(e)}
    return {
        "status": "ok",
        "service": "halal-engine",
        "knowledge_base": {"records": len(kb), "version": kb.version},
    }


@app.get("/ingredients/{identifier}")
def evaluate_ingredient(identifier: str, strictness: Optional[str] = None, madhab: Optional[str] = None):
    try:
        result = _evaluate_one(get_engine(), identifier, strictness, madhab)
    except KnowledgeBaseUnavailableError as e:
        raise _unavailable(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info(
        "EVALUATE identifier=%s ruling=%s confidence=%s",
        result.identifier, result.ruling.value, result.confidence_score,
    )
    return result.to_dict()


@app.post("/evaluate")
def evaluate_batch(request: EvaluateRequest):
    try:
        engine = get_engine()
        results = [_evaluate_one(engine, raw, request.strictness, request.madhab) for raw in request.identifiers]
    except KnowledgeBaseUnavailableError as e:
        raise _unavailable(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("EVALUATE_BATCH count=%d", len(results))
    return {"results": [r.to_dict() for r in results]}


@app.get("/modifiers/{identifier}")
def modifiers(identifier: str):
    key = normalize_identifier(identifier)
    return {
        "identifier": key,
        "modifiers": detect_modifiers(key).to_dict(),
        "base_ingredient": extract_base_ingredient(key),
        "variant": detect_variant(key).to_dict(),
    }


@app.get("/resolve/{identifier}")
def resolve(identifier: str):
    try:
        kb = get_engine().knowledge_base
    except KnowledgeBaseUnavailableError as e:
        raise _unavailable(e)
    resolved = InheritanceResolver(kb).resolve(identifier)
    if resolved is None:
        raise HTTPException(status_code=404, detail=f"Ingredient not in knowledge base: {normalize_identifier(identifier)}")
    return resolved.to_dict()


@app.post("/convert")
def convert(request: ConvertRequest):
    try:
        conversion = convert_recipe(
            request.text, get_engine(), request.strictness or get_default_strictness(), request.madhab,
        )
    except KnowledgeBaseUnavailableError as e:
        raise _unavailable(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return conversion.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
