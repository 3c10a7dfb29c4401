"""AI generation endpoints for the IdeaHub backend."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from .. import llm
from ..errors import ResponseNormalizationError
from ..normalizer import normalize
from ..schemas import (
    CombineIdeasRequest,
    IdeaBrief,
    IdeaListResponse,
    NormalizeRequest,
    StandupEntry,
    TaskGenerationResponse,
)


router = APIRouter(prefix="/ai", tags=["ai"])


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}


@router.post("/tasks", response_model=TaskGenerationResponse)
def generate_tasks(entry: StandupEntry) -> TaskGenerationResponse:
    """Generate feedback, follow-up questions and tasks from a standup update."""

    return TaskGenerationResponse(**llm.generate_tasks(entry))


@router.post("/market-analysis")
def generate_market_analysis(idea: IdeaBrief) -> Dict[str, Any]:
    return llm.generate_market_analysis(idea)


@router.post("/market-suggestions")
def generate_market_suggestions(idea: IdeaBrief) -> Dict[str, Any]:
    return llm.generate_market_suggestions(idea)


@router.post("/idea-variations", response_model=IdeaListResponse)
def generate_idea_variations(idea: IdeaBrief) -> IdeaListResponse:
    return IdeaListResponse(ideas=llm.generate_idea_variations(idea))


@router.post("/combined-ideas", response_model=IdeaListResponse)
def generate_combined_ideas(payload: CombineIdeasRequest) -> IdeaListResponse:
    return IdeaListResponse(ideas=llm.generate_combined_ideas(payload.base_idea, payload.selected_variations))


@router.post("/normalize")
async def normalize_response(payload: NormalizeRequest) -> Dict[str, Any]:
    """Parse and validate a raw completion, reporting the exact failure."""

    try:
        return normalize(payload.raw, payload.shape)
    except ResponseNormalizationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"kind": exc.kind, "detail": exc.message, "path": exc.path or None},
        ) from exc
    except TypeError as exc:
        # Raised by shape_from_template for templates it cannot compile.
        raise HTTPException(status_code=422, detail={"kind": "invalid_shape", "detail": str(exc)}) from exc
