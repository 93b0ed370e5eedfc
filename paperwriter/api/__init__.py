"""API router for the position paper writer."""

from fastapi import APIRouter

from paperwriter.api import polish_text

router = APIRouter()

# AI polish of auto-populated text
router.include_router(polish_text.router, tags=["polish"])
