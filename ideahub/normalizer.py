"""Parse, repair and validate free-text model completions.

The model is asked for a JSON object but routinely wraps it in markdown
fences, adds commentary around it, or emits JavaScript-style literals. The
:class:`ResponseNormalizer` tolerates those mistakes and then checks the
result against a shape, failing fast with a typed error on the first problem.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable

from .errors import (
    EmptyObjectError,
    EmptyResponseError,
    ExpectedArrayError,
    ExpectedObjectError,
    InvalidResponseShapeError,
    JsonSyntaxError,
    MissingFieldError,
    NoJsonObjectFoundError,
    ResponseNormalizationError,
    TypeMismatchError,
)
from .repairs import REPAIR_RULES, RepairRule, apply_repairs
from .shapes import (
    ArrayShape,
    ObjectShape,
    PrimitiveShape,
    Unconstrained,
    primitive_kind,
    shape_from_template,
)

log = logging.getLogger(__name__)

_OPENING_FENCE_RE = re.compile(r"^\s*```(?:json)?[ \t]*\n?", re.IGNORECASE)
_CLOSING_FENCE_RE = re.compile(r"\n?[ \t]*```\s*$")
_EMPTY_OBJECT_RE = re.compile(r"\{\s*\}")
SNIPPET_RADIUS = 20


def strip_fences(text: str) -> str:
    """Drop a code fence wrapping the whole text, then surrounding whitespace.

    Backticks inside the text are left alone; a fence that follows some
    preamble is discarded later by :func:`extract_object`.
    """

    text = _OPENING_FENCE_RE.sub("", text, count=1)
    return _CLOSING_FENCE_RE.sub("", text, count=1).strip()


def extract_object(text: str) -> str:
    """Return the span from the first ``{`` to the last ``}`` inclusive."""

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoJsonObjectFoundError(text)
    return text[start : end + 1]


def type_name(value: Any) -> str:
    """Name the JSON type of a parsed value."""

    if value is None:
        return "null"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return primitive_kind(value) or type(value).__name__


def _context(text: str, position: int) -> str:
    return text[max(0, position - SNIPPET_RADIUS) : position + SNIPPET_RADIUS]


def validate(value: Any, shape: Any, path: str = "") -> None:
    """Check *value* against *shape*, raising on the first violation.

    Object fields are visited in the order the shape declares them: first all
    required fields are checked for presence, then each declared field that is
    present is validated recursively. Array items are visited by index.
    """

    shape = shape_from_template(shape)

    if isinstance(shape, Unconstrained):
        return

    if isinstance(shape, ArrayShape):
        if not isinstance(value, list):
            raise ExpectedArrayError(path)
        for index, item in enumerate(value):
            validate(item, shape.item, f"{path}[{index}]")
        return

    if isinstance(shape, ObjectShape):
        if not isinstance(value, dict):
            raise ExpectedObjectError(path)
        for key in shape.fields:
            if key in shape.required and key not in value:
                raise MissingFieldError(key, path)
        for key, child in shape.fields.items():
            if key in value:
                validate(value[key], child, f"{path}.{key}" if path else key)
        return

    if isinstance(shape, PrimitiveShape):
        actual = type_name(value)
        if actual != shape.kind:
            raise TypeMismatchError(path, shape.kind, actual)
        return

    raise TypeError(f"Unknown shape variant: {type(shape).__name__}")


class ResponseNormalizer:
    """Turn a raw completion into a validated dictionary."""

    def __init__(self, rules: Iterable[RepairRule] = REPAIR_RULES) -> None:
        self.rules = tuple(rules)

    def parse(self, raw: str | None) -> Dict[str, Any]:
        """Clean, extract and parse *raw* without validating its shape."""

        if raw is None or not raw.strip():
            raise EmptyResponseError()

        candidate = extract_object(strip_fences(raw))
        if _EMPTY_OBJECT_RE.fullmatch(candidate):
            raise EmptyObjectError(raw)

        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as exc:
            log.debug("Strict parse failed at position %s: %s; applying repairs", exc.pos, exc.msg)
            repaired = apply_repairs(candidate, self.rules)
            try:
                parsed = json.loads(repaired)
            except json.JSONDecodeError as retry_exc:
                raise JsonSyntaxError(
                    _context(repaired, retry_exc.pos), raw=raw, position=retry_exc.pos
                ) from retry_exc
            log.debug("Repaired model response parsed successfully")

        if not isinstance(parsed, dict):
            raise InvalidResponseShapeError(type_name(parsed), raw)
        return parsed

    def normalize(self, raw: str | None, shape: Any = None) -> Dict[str, Any]:
        """Parse *raw* and, when *shape* is given, validate it."""

        try:
            parsed = self.parse(raw)
            if shape is not None:
                validate(parsed, shape)
        except ResponseNormalizationError as exc:
            log.warning("Could not normalize model response (%s): %s", exc.kind, exc.message)
            log.debug("Raw content: %r", raw)
            raise
        return parsed


default_normalizer = ResponseNormalizer()


def normalize(raw: str | None, shape: Any = None) -> Dict[str, Any]:
    """Normalize *raw* with the default repair rules."""

    return default_normalizer.normalize(raw, shape)
