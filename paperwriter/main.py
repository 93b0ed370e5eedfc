"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from paperwriter.api import router as api_router

app = FastAPI(
    title="Position Paper Writer",
    description="Layered Model UN position paper authoring engine with AI polish",
    version="0.1.0",
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


app.include_router(api_router, prefix="/api", tags=["api"])
