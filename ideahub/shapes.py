"""Shape descriptors for structured model responses.

A shape is one of four variants:

* :class:`Unconstrained` - anything goes (free-form leaf content),
* :class:`PrimitiveShape` - a string, number or boolean,
* :class:`ArrayShape` - a list whose items all share one shape,
* :class:`ObjectShape` - a mapping with ordered fields, some of them required.

Callers usually write shapes as plain templates (the same JSON skeleton they
show the model) and compile them with :func:`shape_from_template`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Union

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
PRIMITIVE_KINDS = frozenset({STRING, NUMBER, BOOLEAN})


@dataclass(frozen=True)
class Unconstrained:
    """Accept any value."""


@dataclass(frozen=True)
class PrimitiveShape:
    kind: str

    def __post_init__(self) -> None:
        if self.kind not in PRIMITIVE_KINDS:
            raise ValueError(f"Unknown primitive kind: {self.kind!r}")


@dataclass(frozen=True)
class ArrayShape:
    item: "Shape" = field(default_factory=Unconstrained)


@dataclass(frozen=True)
class ObjectShape:
    """Ordered field shapes plus the names that must be present."""

    fields: Mapping[str, "Shape"]
    required: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "required", frozenset(self.required))
        unknown = self.required - set(self.fields)
        if unknown:
            raise ValueError(f"Required fields without a shape: {sorted(unknown)}")

    def __hash__(self) -> int:
        return hash((tuple(self.fields.items()), self.required))


Shape = Union[Unconstrained, PrimitiveShape, ArrayShape, ObjectShape]
SHAPE_TYPES = (Unconstrained, PrimitiveShape, ArrayShape, ObjectShape)

_TYPE_TAGS = {str: STRING, int: NUMBER, float: NUMBER, bool: BOOLEAN}


def primitive_kind(value: Any) -> str | None:
    """Return the primitive kind of a sample value, or None if it has none."""

    # bool is a subclass of int and must be checked first.
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, (int, float)):
        return NUMBER
    if isinstance(value, str):
        return STRING
    return None


def is_required_marker(template: Any) -> bool:
    """JavaScript truthiness: containers are always truthy, falsy scalars are not."""

    if template is None or template is False:
        return False
    if isinstance(template, (dict, list, type)) or isinstance(template, SHAPE_TYPES):
        return True
    if isinstance(template, (int, float, str)):
        return bool(template)
    return True


def shape_from_template(template: Any) -> Shape:
    """Compile a plain template into a :data:`Shape`.

    ``{"title": "string", "score": 0, "tags": ["string"]}`` describes an
    object with a required string ``title``, an optional number ``score`` and
    a required list of strings ``tags``.
    """

    if isinstance(template, SHAPE_TYPES):
        return template
    if template is None:
        return Unconstrained()
    if isinstance(template, list):
        if not template:
            return ArrayShape()
        return ArrayShape(shape_from_template(template[0]))
    if isinstance(template, dict):
        fields: Dict[str, Shape] = {}
        required = set()
        for key, child in template.items():
            fields[key] = shape_from_template(child)
            if is_required_marker(child):
                required.add(key)
        return ObjectShape(fields=fields, required=frozenset(required))
    if isinstance(template, type):
        if template not in _TYPE_TAGS:
            raise TypeError(f"Unsupported type tag in shape template: {template.__name__}")
        return PrimitiveShape(_TYPE_TAGS[template])
    kind = primitive_kind(template)
    if kind is None:
        raise TypeError(f"Unsupported shape template value: {template!r}")
    return PrimitiveShape(kind)


# ---------------------------------------------------------------------------
# Use-case shapes
# ---------------------------------------------------------------------------

_SOURCE = {"name": str, "url": "", "type": "", "year": 0}

TASK_GENERATION_SHAPE = shape_from_template(
    {
        "feedback": {
            "strengths": [str],
            "areas_for_improvement": [str],
            "opportunities": [str],
            "risks": [str],
            "strategic_recommendations": [str],
        },
        "follow_up_questions": [str],
        "tasks": [
            {
                "title": str,
                "description": str,
                "priority": "",
                "estimated_hours": 0,
                "task_type": "",
                "implementation_tips": None,
                "potential_challenges": None,
                "success_metrics": None,
                "resources": None,
                "learning_resources": None,
                "tools": None,
            }
        ],
    }
)

MARKET_ANALYSIS_SHAPE = shape_from_template(
    {
        "customer_profiles": [
            {
                "segment": str,
                "description": str,
                "needs": [str],
                "pain_points": [str],
                "buying_behavior": "",
                "sources": None,
            }
        ],
        "early_adopters": [
            {
                "type": str,
                "characteristics": [str],
                "acquisition_strategy": "",
                "sources": None,
            }
        ],
        "sales_channels": [
            {
                "channel": str,
                "effectiveness": 0,
                "cost": "",
                "timeline": "",
                "sources": None,
            }
        ],
        "pricing_insights": [
            {
                "model": str,
                "price_point": "",
                "justification": "",
                "sources": None,
            }
        ],
        "market_size": {
            "tam": str,
            "sam": str,
            "som": str,
            "growth_rate": "",
            "sources": [_SOURCE],
        },
    }
)

MARKET_SUGGESTIONS_SHAPE = shape_from_template(
    {
        "target_audience": [str],
        "sales_channels": [str],
        "pricing_model": [str],
        "customer_type": [str],
        "integration_needs": [str],
    }
)

IDEA_VARIATIONS_SHAPE = shape_from_template(
    {
        "variations": [
            {
                "id": None,
                "title": str,
                "description": str,
                "differentiator": "",
                "targetMarket": "",
                "revenueModel": "",
            }
        ]
    }
)

COMBINED_IDEAS_SHAPE = shape_from_template(
    {
        "combined_ideas": [
            {
                "id": None,
                "title": str,
                "description": str,
                "sourceElements": [str],
                "targetMarket": "",
                "revenueModel": "",
                "valueProposition": "",
            }
        ]
    }
)
