from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, List

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from ideahub import llm
from ideahub.app import PARSE_FAILURE_DETAIL, create_app
from ideahub.config import get_llm_settings
from ideahub.errors import LLMRequestError


client = TestClient(create_app())

TASKS_COMPLETION = """Here is my analysis:
```json
{
  "feedback": {
    "strengths": ["Shipped onboarding"],
    "areas_for_improvement": [],
    "opportunities": ["Partner with accelerators"],
    "risks": ["Churn after trial"],
    "strategic_recommendations": ["Interview churned users"]
  },
  "follow_up_questions": ["What does activation look like?"],
  "tasks": [
    {
      "title": "Run churn interviews",
      "description": "Talk to five users who left during the trial.",
      "priority": "high",
      "estimated_hours": 4,
      "task_type": "Research",
    },
  ],
}
```"""

VARIATIONS_COMPLETION = json.dumps(
    {
        "variations": [
            {"id": "v1", "title": "Coach marketplace", "description": "Match teams with coaches."},
            {"id": 2, "title": "Slack-native coach", "description": "Weekly goals inside Slack."},
        ]
    }
)


@pytest.fixture(autouse=True)
def clear_llm_cache() -> None:
    get_llm_settings.cache_clear()


class _SpecLog(list):
    """Prompt specs sent to the fake model, plus the completions it will return."""

    queue: List[str]


@pytest.fixture
def model(monkeypatch: pytest.MonkeyPatch) -> _SpecLog:
    log = _SpecLog()
    log.queue = []

    def fake_complete(spec: llm.PromptSpec) -> str:
        log.append(spec)
        return log.queue.pop(0)

    monkeypatch.setattr(llm, "_complete", fake_complete)
    return log


def test_healthcheck() -> None:
    response = client.get("/ai/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_tasks_endpoint_returns_repaired_structure(model: _SpecLog) -> None:
    model.queue.append(TASKS_COMPLETION)

    response = client.post("/ai/tasks", json={"accomplished": "Shipped onboarding", "blockers": "Trial churn"})

    assert response.status_code == 200
    data = response.json()
    assert data["tasks"][0]["title"] == "Run churn interviews"
    assert data["follow_up_questions"] == ["What does activation look like?"]
    prompt = model[0].user_prompt
    assert "Accomplished: Shipped onboarding" in prompt
    assert "Blockers: Trial churn" in prompt
    assert "Working On" not in prompt


def test_empty_standup_is_rejected() -> None:
    response = client.post("/ai/tasks", json={"accomplished": "  "})
    assert response.status_code == 422


def test_idea_variations_carry_ui_flags(model: _SpecLog) -> None:
    model.queue.append(VARIATIONS_COMPLETION)

    response = client.post("/ai/idea-variations", json={"title": "AI coaching for remote teams", "type": "B2B"})

    assert response.status_code == 200
    ideas = response.json()["ideas"]
    assert [idea["title"] for idea in ideas] == ["Coach marketplace", "Slack-native coach"]
    assert all(idea["isSelected"] is False and idea["isEditing"] is False for idea in ideas)


def test_combined_ideas_mention_missing_liked_aspects(model: _SpecLog) -> None:
    model.queue.append(
        '{"combined_ideas": [{"id": "c1", "title": "Coach OS", "description": "Both.", "sourceElements": ["Slack"]}]}'
    )
    payload = {
        "base_idea": "AI coaching for remote teams",
        "selected_variations": [
            {"title": "Coach marketplace", "liked_aspects": "Human touch"},
            {"title": "Slack-native coach"},
        ],
    }

    response = client.post("/ai/combined-ideas", json=payload)

    assert response.status_code == 200
    assert response.json()["ideas"][0]["isSelected"] is False
    prompt = model[0].user_prompt
    assert "Liked Aspects: Human touch" in prompt
    assert "Liked Aspects: None specified" in prompt


def test_market_suggestions_pass_through(model: _SpecLog) -> None:
    suggestions = {
        "target_audience": ["Enterprise HR teams"],
        "sales_channels": ["Direct sales"],
        "pricing_model": ["Per seat"],
        "customer_type": ["B2B"],
        "integration_needs": ["Slack"],
    }
    model.queue.append(json.dumps(suggestions))

    response = client.post("/ai/market-suggestions", json={"title": "Coach OS", "description": "Remote coaching"})

    assert response.status_code == 200
    assert response.json() == suggestions


def _market_analysis() -> dict:
    source = {"name": "Gartner HR Tech Survey", "url": "https://example.com/hr", "type": "market_study", "year": 2024}
    return {
        "customer_profiles": [
            {
                "segment": "Remote-first scale-ups",
                "description": "Distributed teams of 50-500 people.",
                "needs": ["Weekly alignment"],
                "pain_points": ["Meeting overload"],
                "buying_behavior": "Team leads trial, HR signs off",
                "sources": [source],
            }
        ],
        "early_adopters": [
            {"type": "Engineering managers", "characteristics": ["Async by default"], "acquisition_strategy": "Slack app directory"}
        ],
        "sales_channels": [
            {"channel": "Product-led growth", "effectiveness": 8, "cost": "Low", "timeline": "3 months"}
        ],
        "pricing_insights": [
            {"model": "Per seat", "price_point": "$8/user/month", "justification": "Matches adjacent tools"}
        ],
        "market_size": {
            "tam": "$12B",
            "sam": "$2B",
            "som": "$40M",
            "growth_rate": "14% CAGR",
            "sources": [source],
        },
    }


def test_market_analysis_returns_validated_payload(model: _SpecLog) -> None:
    analysis = _market_analysis()
    model.queue.append(f"```json\n{json.dumps(analysis, indent=2)}\n```")

    response = client.post(
        "/ai/market-analysis",
        json={"title": "Coach OS", "description": "Remote coaching", "target_market": "Scale-ups"},
    )

    assert response.status_code == 200
    assert response.json() == analysis
    assert "Target Market: Scale-ups" in model[0].user_prompt
    assert "Problem:" not in model[0].user_prompt


def test_market_analysis_requires_market_size_sources(model: _SpecLog) -> None:
    analysis = _market_analysis()
    del analysis["market_size"]["sources"]
    model.queue.append(json.dumps(analysis))

    response = client.post("/ai/market-analysis", json={"title": "Coach OS"})

    assert response.status_code == 502
    assert response.json() == {"kind": "missing_field", "detail": PARSE_FAILURE_DETAIL, "path": "market_size"}


def test_market_analysis_source_names_are_required(model: _SpecLog) -> None:
    analysis = _market_analysis()
    del analysis["market_size"]["sources"][0]["name"]
    model.queue.append(json.dumps(analysis))

    response = client.post("/ai/market-analysis", json={"title": "Coach OS"})

    assert response.status_code == 502
    assert response.json()["path"] == "market_size.sources[0]"


def test_unparseable_completion_maps_to_bad_gateway(model: _SpecLog) -> None:
    model.queue.append("Sorry, I cannot help with that.")

    response = client.post("/ai/market-analysis", json={"title": "Coach OS"})

    assert response.status_code == 502
    assert response.json() == {"kind": "no_json_object", "detail": PARSE_FAILURE_DETAIL, "path": None}


def test_shape_violation_reports_path(model: _SpecLog) -> None:
    model.queue.append('{"variations": [{"title": "No description"}]}')

    response = client.post("/ai/idea-variations", json={"title": "Coach OS"})

    assert response.status_code == 502
    assert response.json()["kind"] == "missing_field"
    assert response.json()["path"] == "variations[0]"


def _fake_client(create: Any) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _raise_api_error(**kwargs: Any) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    raise openai.APIError("upstream timeout", request, body=None)


def test_api_error_becomes_request_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(llm, "_get_client", lambda: _fake_client(_raise_api_error))
    spec = llm.PromptSpec(system_prompt="system", user_prompt="user", shape=None)

    with pytest.raises(LLMRequestError, match="upstream timeout") as excinfo:
        llm._complete(spec)

    assert isinstance(excinfo.value.__cause__, openai.APIError)


def test_request_failure_maps_to_bad_gateway(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(llm, "_get_client", lambda: _fake_client(_raise_api_error))

    response = client.post("/ai/market-suggestions", json={"title": "Coach OS"})

    assert response.status_code == 502
    assert response.json()["kind"] == "llm_request"


def test_missing_api_key_maps_to_service_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    response = client.post("/ai/market-suggestions", json={"title": "Coach OS"})

    assert response.status_code == 503
    assert response.json()["kind"] == "llm_configuration"


def test_complete_uses_configured_model(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IDEAHUB_OPENAI_MODEL", "gpt-4o-mini")
    calls: List[dict] = []

    def create(**kwargs: Any) -> SimpleNamespace:
        calls.append(kwargs)
        message = SimpleNamespace(content='{"ok": true}')
        return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=None)

    monkeypatch.setattr(llm, "_get_client", lambda: _fake_client(create))
    spec = llm.PromptSpec(system_prompt=" system ", user_prompt=" user ", shape=None, max_tokens=50)

    assert llm._complete(spec) == '{"ok": true}'
    assert calls[0]["model"] == "gpt-4o-mini"
    assert calls[0]["max_tokens"] == 50
    assert calls[0]["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "user"},
    ]


def test_normalize_endpoint_repairs_and_validates() -> None:
    response = client.post("/ai/normalize", json={"raw": "{title: 'Coach OS', score: 7,}", "shape": {"title": "string", "score": 0}})

    assert response.status_code == 200
    assert response.json() == {"title": "Coach OS", "score": 7}


def test_normalize_endpoint_reports_specific_error() -> None:
    response = client.post("/ai/normalize", json={"raw": '{"score": "high"}', "shape": {"score": 0}})

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "kind": "type_mismatch",
        "detail": "Type mismatch at score: expected number, got string",
        "path": "score",
    }
