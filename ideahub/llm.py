"""OpenAI-powered generators for tasks, market research and idea variations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Dict, Iterable, List

from openai import APIError, OpenAI

from .config import get_llm_settings
from .errors import LLMConfigurationError, LLMRequestError
from .normalizer import normalize
from .schemas import IdeaBrief, StandupEntry, VariationSelection
from .shapes import (
    COMBINED_IDEAS_SHAPE,
    IDEA_VARIATIONS_SHAPE,
    MARKET_ANALYSIS_SHAPE,
    MARKET_SUGGESTIONS_SHAPE,
    TASK_GENERATION_SHAPE,
    Shape,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptSpec:
    """Container describing how to call the LLM for one use case."""

    system_prompt: str
    user_prompt: str
    shape: Shape
    temperature: float = 0.7
    max_tokens: int = 1000


ClientCache = tuple[str, OpenAI]
_client_cache: ClientCache | None = None


def _get_client() -> OpenAI:
    """Return a cached OpenAI client for the configured API key."""

    global _client_cache
    settings = get_llm_settings()
    api_key = settings.openai_api_key
    if not api_key:
        raise LLMConfigurationError("OpenAI API key not configured. Set OPENAI_API_KEY.")
    if _client_cache and _client_cache[0] == api_key:
        return _client_cache[1]
    client = OpenAI(api_key=api_key, timeout=settings.request_timeout)
    _client_cache = (api_key, client)
    return client


def _complete(spec: PromptSpec) -> str | None:
    """Send one chat completion request and return the message text."""

    client = _get_client()
    model = get_llm_settings().model
    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": spec.system_prompt.strip()},
                {"role": "user", "content": spec.user_prompt.strip()},
            ],
            temperature=spec.temperature,
            max_tokens=spec.max_tokens,
        )
    except APIError as exc:
        raise LLMRequestError(f"OpenAI request failed: {exc}") from exc

    usage = getattr(response, "usage", None)
    if usage:
        log.info(
            "OpenAI completion model=%s prompt_tokens=%s completion_tokens=%s",
            model,
            getattr(usage, "prompt_tokens", None),
            getattr(usage, "completion_tokens", None),
        )
    return response.choices[0].message.content if response.choices else None


def _invoke(spec: PromptSpec) -> Dict[str, Any]:
    return normalize(_complete(spec), spec.shape)


def _with_ui_flags(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{**item, "isSelected": False, "isEditing": False} for item in items]


def _optional_line(label: str, value: str | None) -> str:
    return f"{label}: {value}\n" if value else ""


def generate_tasks(entry: StandupEntry) -> Dict[str, Any]:
    """Turn a standup update into strategic feedback and concrete tasks."""

    update = (
        _optional_line("Accomplished", entry.accomplished)
        + _optional_line("Working On", entry.working_on)
        + _optional_line("Blockers", entry.blockers)
        + _optional_line("Goals", entry.goals)
    )
    system_prompt = dedent(
        """
        You are an experienced co-founder and tech lead. Analyze the standup
        update, give specific feedback and break the next steps into tasks.

        Respond with a single JSON object:
        {
          "feedback": {
            "strengths": [string],
            "areas_for_improvement": [string],
            "opportunities": [string],
            "risks": [string],
            "strategic_recommendations": [string]
          },
          "follow_up_questions": [string],
          "tasks": [
            {
              "title": string,
              "description": string,
              "priority": "high" | "medium" | "low",
              "estimated_hours": number,
              "task_type": string,
              "implementation_tips": [string],
              "potential_challenges": [string],
              "success_metrics": [string],
              "resources": [{"title": string, "url": string, "type": string, "description": string}],
              "learning_resources": [{"title": string, "url": string, "type": string, "platform": string, "description": string}],
              "tools": [{"name": string, "url": string, "category": string, "description": string}]
            }
          ]
        }
        """
    )
    spec = PromptSpec(
        system_prompt=system_prompt,
        user_prompt=f"Please analyze this standup update and provide strategic feedback and tasks:\n\n{update}",
        shape=TASK_GENERATION_SHAPE,
        temperature=0.7,
        max_tokens=2000,
    )
    data = _invoke(spec)
    return {
        "feedback": data["feedback"],
        "follow_up_questions": data["follow_up_questions"],
        "tasks": data["tasks"],
    }


def generate_market_analysis(idea: IdeaBrief) -> Dict[str, Any]:
    """Produce customer profiles, channels, pricing and market sizing for an idea."""

    system_prompt = dedent(
        """
        You are a market research expert. Analyze the idea and return market
        insights with credible sources as a single JSON object:
        {
          "customer_profiles": [{"segment": string, "description": string, "needs": [string], "pain_points": [string], "buying_behavior": string, "sources": [source]}],
          "early_adopters": [{"type": string, "characteristics": [string], "acquisition_strategy": string, "sources": [source]}],
          "sales_channels": [{"channel": string, "effectiveness": number, "cost": string, "timeline": string, "sources": [source]}],
          "pricing_insights": [{"model": string, "price_point": string, "justification": string, "sources": [source]}],
          "market_size": {"tam": string, "sam": string, "som": string, "growth_rate": string, "sources": [source]}
        }
        where source is {"name": string, "url": string, "type": string, "year": number}.
        """
    )
    user_prompt = (
        "Please analyze this business idea:\n\n"
        f"Title: {idea.title}\n"
        f"Description: {idea.description}\n"
        + _optional_line("Problem", idea.problem_statement)
        + _optional_line("Solution", idea.solution)
        + _optional_line("Target Market", idea.target_market)
    )
    spec = PromptSpec(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        shape=MARKET_ANALYSIS_SHAPE,
        temperature=0.7,
        max_tokens=2000,
    )
    return _invoke(spec)


def generate_market_suggestions(idea: IdeaBrief) -> Dict[str, Any]:
    """Suggest audiences, channels, pricing models, customer types and integrations."""

    system_prompt = dedent(
        """
        You are a market research expert. Generate market suggestions as a
        single JSON object:
        {
          "target_audience": [string],
          "sales_channels": [string],
          "pricing_model": [string],
          "customer_type": [string],
          "integration_needs": [string]
        }
        """
    )
    spec = PromptSpec(
        system_prompt=system_prompt,
        user_prompt=f"Please generate market suggestions for:\n\nTitle: {idea.title}\nDescription: {idea.description}",
        shape=MARKET_SUGGESTIONS_SHAPE,
        temperature=0.7,
        max_tokens=1000,
    )
    return _invoke(spec)


def generate_idea_variations(idea: IdeaBrief) -> List[Dict[str, Any]]:
    """Generate creative variations of an idea, ready for selection in the UI."""

    system_prompt = dedent(
        """
        You are an innovation expert. Generate creative variations of the idea
        as a single JSON object:
        {
          "variations": [
            {"id": string, "title": string, "description": string, "differentiator": string, "targetMarket": string, "revenueModel": string}
          ]
        }
        """
    )
    user_prompt = (
        "Please generate variations for:\n\n"
        f"Title: {idea.title}\n"
        + _optional_line("Inspiration", idea.inspiration)
        + _optional_line("Type", idea.type)
    )
    spec = PromptSpec(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        shape=IDEA_VARIATIONS_SHAPE,
        temperature=0.8,
        max_tokens=1000,
    )
    return _with_ui_flags(_invoke(spec)["variations"])


def _describe_variation(variation: VariationSelection) -> str:
    return dedent(
        f"""
        Title: {variation.title}
        Description: {variation.description}
        Differentiator: {variation.differentiator}
        Liked Aspects: {variation.liked_aspects or "None specified"}
        """
    )


def generate_combined_ideas(base_idea: str, selected_variations: List[VariationSelection]) -> List[Dict[str, Any]]:
    """Merge the selected variations into refined ideas."""

    system_prompt = dedent(
        """
        You are an innovation expert. Combine the selected variations into
        refined ideas as a single JSON object:
        {
          "combined_ideas": [
            {"id": string, "title": string, "description": string, "sourceElements": [string], "targetMarket": string, "revenueModel": string, "valueProposition": string}
          ]
        }
        """
    )
    variations = "\n".join(_describe_variation(variation) for variation in selected_variations)
    spec = PromptSpec(
        system_prompt=system_prompt,
        user_prompt=f"Please combine these variations of:\n\nBase Idea: {base_idea}\n\nSelected Variations:\n{variations}",
        shape=COMBINED_IDEAS_SHAPE,
        temperature=0.8,
        max_tokens=1000,
    )
    return _with_ui_flags(_invoke(spec)["combined_ideas"])
