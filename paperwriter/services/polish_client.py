"""HTTP client for the polish endpoint.

Used by autofill. Every failure degrades to the original text, so callers can
always display ``PolishResult.polished_text``.
"""

from typing import Optional

import httpx

from paperwriter.core.config import get_settings
from paperwriter.core.logging import get_logger
from paperwriter.core.schemas_draft import PaperContext
from paperwriter.core.schemas_polish import PolishResult, PriorContext

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait a moment."


def _error_from_body(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return None


async def _post(client: httpx.AsyncClient, url: str, payload: dict) -> httpx.Response:
    return await client.post(url, json=payload, headers={"Content-Type": "application/json"})


async def polish_text(
    text: str,
    context: PaperContext,
    transform_type: str,
    prior_context: Optional[PriorContext] = None,
    target_layer: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    endpoint_url: Optional[str] = None,
) -> PolishResult:
    """
    Ask the polish endpoint to rewrite a piece of text.

    Args:
        text: Text to polish
        context: Country, committee and topic of the paper
        transform_type: AI transform name
        prior_context: Evidence the student already wrote
        target_layer: Layer the result is written to
        client: Optional client to reuse (its base URL is honoured)
        endpoint_url: Overrides POLISH_ENDPOINT_URL

    Returns:
        PolishResult; never raises
    """
    if not text.strip():
        return PolishResult(success=True, polished_text=text)

    if not context.is_complete():
        return PolishResult(success=False, polished_text=text, error="Missing paper context")

    settings = get_settings()
    url = endpoint_url or settings.POLISH_ENDPOINT_URL
    payload = {
        "text": text,
        "context": context.model_dump(),
        "transformType": transform_type,
        "targetLayer": target_layer,
    }
    if prior_context is not None:
        payload["priorContext"] = prior_context.to_payload()

    logger.debug(f"Calling polish endpoint (transform={transform_type}, chars={len(text)})")

    try:
        if client is not None:
            response = await _post(client, url, payload)
        else:
            async with httpx.AsyncClient(timeout=settings.POLISH_TIMEOUT_SECONDS) as own_client:
                response = await _post(own_client, url, payload)

        if response.status_code == 429:
            logger.warning("Polish endpoint rate limited")
            return PolishResult(success=False, polished_text=text, error=RATE_LIMIT_MESSAGE)

        if not response.is_success:
            error = _error_from_body(response) or "AI processing failed"
            logger.warning(f"Polish endpoint returned {response.status_code}: {error}")
            return PolishResult(success=False, polished_text=text, error=error)

        data = response.json()
    except Exception as e:
        logger.error(f"Polish request failed: {type(e).__name__}: {e}")
        return PolishResult(success=False, polished_text=text, error="Network error")

    polished = data.get("polishedText") if isinstance(data, dict) else None
    if isinstance(polished, str) and polished.strip():
        return PolishResult(success=True, polished_text=polished)

    error = data.get("error") if isinstance(data, dict) else None
    return PolishResult(success=False, polished_text=text, error=error or "Empty response from AI")
