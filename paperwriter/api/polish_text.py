"""API endpoint for AI polish of auto-populated text."""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from paperwriter.chains.polish_text import ContentRejectedError, run_polish
from paperwriter.core.logging import get_logger
from paperwriter.core.rate_limiter import RateLimiter, client_key, get_polish_rate_limiter
from paperwriter.core.schemas_draft import PaperContext
from paperwriter.core.schemas_polish import VALID_AI_TRANSFORMS, PriorContext

logger = get_logger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        content={"error": message, "polishedText": ""},
        status_code=status_code,
        headers=CORS_HEADERS,
    )


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


@router.options("/polish-text")
async def polish_text_preflight() -> Response:
    """CORS preflight."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/polish-text")
async def polish_text(
    request: Request,
    rate_limiter: RateLimiter = Depends(get_polish_rate_limiter),
) -> JSONResponse:
    """
    Polish a piece of auto-populated text.

    Request body: ``{text, context: {country, committee, topic}, transformType,
    priorContext?, targetLayer?}``.

    Returns:
        200 ``{polishedText}`` on success; 200 with an ``error`` and empty
        ``polishedText`` when the content was rejected; 400 on invalid input;
        429 when rate limited; 500 when the model call failed
    """
    ip = client_key(request.headers)
    if not rate_limiter.check_limit(ip):
        return _error("Rate limit exceeded. Please wait a moment.", 429)

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("Invalid JSON body", 400)
    if not isinstance(body, dict):
        return _error("Invalid JSON body", 400)

    text = body.get("text")
    if _is_blank(text):
        return _error("No text provided", 400)

    raw_context = body.get("context")
    if not isinstance(raw_context, dict) or any(
        _is_blank(raw_context.get(key)) for key in ("country", "committee", "topic")
    ):
        return _error("Missing context (country, committee, or topic)", 400)
    context = PaperContext(
        country=raw_context["country"],
        committee=raw_context["committee"],
        topic=raw_context["topic"],
    )

    transform_type = body.get("transformType")
    if transform_type not in VALID_AI_TRANSFORMS:
        return _error("Invalid transform type", 400)

    try:
        prior_context = PriorContext.model_validate(body.get("priorContext") or {})
    except ValidationError:
        return _error("Invalid prior context", 400)

    target_layer = body.get("targetLayer")
    if not isinstance(target_layer, str):
        target_layer = None

    try:
        polished = await run_polish(text, context, transform_type, prior_context, target_layer)
    except ContentRejectedError:
        return JSONResponse(
            content={"polishedText": "", "error": "Content could not be processed"},
            status_code=200,
            headers=CORS_HEADERS,
        )
    except Exception as e:
        logger.error(f"AI polish error: {type(e).__name__}: {e}")
        return _error("AI processing failed", 500)

    logger.info(f"Polished text (transform={transform_type}, target_layer={target_layer}, chars={len(polished)})")
    return JSONResponse(content={"polishedText": polished}, status_code=200, headers=CORS_HEADERS)
