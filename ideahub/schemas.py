"""Pydantic models for the IdeaHub AI generation API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class StandupEntry(BaseModel):
    """A founder's standup update used to generate feedback and tasks."""

    accomplished: str = ""
    working_on: str = ""
    blockers: str = ""
    goals: str = ""

    @model_validator(mode="after")
    def _require_some_content(self) -> "StandupEntry":
        if not any(value.strip() for value in (self.accomplished, self.working_on, self.blockers, self.goals)):
            raise ValueError("At least one standup field must be filled in.")
        return self


class IdeaBrief(BaseModel):
    """Idea details forwarded to market and variation prompts."""

    title: str = Field(..., min_length=1)
    description: str = ""
    problem_statement: Optional[str] = None
    solution: Optional[str] = None
    target_market: Optional[str] = None
    inspiration: Optional[str] = None
    type: Optional[str] = Field(default=None, description="Idea category, e.g. B2B or B2C.")


class VariationSelection(BaseModel):
    """A variation the user picked for combination."""

    title: str
    description: str = ""
    differentiator: str = ""
    liked_aspects: Optional[str] = Field(
        default=None,
        description="Free-text notes on what the user liked about the variation.",
    )


class CombineIdeasRequest(BaseModel):
    base_idea: str = Field(..., min_length=1)
    selected_variations: List[VariationSelection] = Field(..., min_length=1)


class NormalizeRequest(BaseModel):
    """Run the normalizer on a raw completion supplied by the caller."""

    raw: str
    shape: Optional[Any] = Field(
        default=None,
        description="Optional JSON template describing the expected structure.",
    )


class TaskGenerationResponse(BaseModel):
    feedback: Dict[str, Any]
    follow_up_questions: List[Any]
    tasks: List[Dict[str, Any]]


class IdeaListResponse(BaseModel):
    """Variations or combined ideas, annotated with UI selection flags."""

    ideas: List[Dict[str, Any]]


class ErrorResponse(BaseModel):
    kind: str
    detail: str
    path: Optional[str] = None
