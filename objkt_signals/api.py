"""
FastAPI Router for objkt signals.

Thin presentation layer: runs the pipeline and serialises the batch.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query

from objkt_signals.pipeline import SignalPipeline, close_pipeline, get_pipeline
from objkt_signals.schemas import SignalBatchResponse

router = APIRouter(prefix="/objkts", tags=["Objkts"])


# =============================================================
# HELPER: Pipeline dependency
# =============================================================

def get_signal_pipeline() -> SignalPipeline:
    return get_pipeline()


# =============================================================
# SIGNAL ENDPOINTS
# =============================================================

@router.get("", response_model=SignalBatchResponse)
async def get_available_objkts(
    limit: Optional[int] = Query(None, ge=1, le=200, description="Candidates to discover"),
    pipeline: SignalPipeline = Depends(get_signal_pipeline),
):
    """
    Get currently available tokens.

    Signals keep discovery order (most recently purchased first).
    Skipped candidates are listed with their reason.
    """
    batch = await pipeline.get_available_token_signals(limit)
    return SignalBatchResponse.model_validate(batch.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the default pipeline's upstream session on shutdown."""
    yield
    await close_pipeline()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Objkt Signals API",
        description="Available-token signals derived from objkt marketplace ledgers.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(router)

    @app.get("/")
    def root():
        return {"status": "ok", "message": "Objkt Signals API is running"}

    return app
