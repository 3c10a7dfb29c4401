"""Typed errors raised while turning model completions into structured data."""

from __future__ import annotations


class ResponseNormalizationError(ValueError):
    """Base class for every failure of the response normalizer.

    Callers branch on :attr:`kind` (or on the subclass) instead of parsing the
    message text.
    """

    kind = "normalization_error"

    def __init__(
        self,
        message: str,
        *,
        path: str = "",
        snippet: str | None = None,
        raw: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.snippet = snippet
        self.raw = raw


class EmptyResponseError(ResponseNormalizationError):
    kind = "empty_response"

    def __init__(self) -> None:
        super().__init__("Empty response from the model")


class NoJsonObjectFoundError(ResponseNormalizationError):
    kind = "no_json_object"

    def __init__(self, raw: str) -> None:
        super().__init__("No valid JSON object found in response", raw=raw)


class EmptyObjectError(ResponseNormalizationError):
    kind = "empty_object"

    def __init__(self, raw: str) -> None:
        super().__init__("Empty JSON object received", raw=raw)


class JsonSyntaxError(ResponseNormalizationError):
    """Both the strict and the repaired parse attempts failed."""

    kind = "json_syntax"

    def __init__(self, snippet: str, raw: str, position: int | None = None) -> None:
        super().__init__(f"JSON syntax error near: ...{snippet}...", snippet=snippet, raw=raw)
        self.position = position


class InvalidResponseShapeError(ResponseNormalizationError):
    kind = "invalid_response_shape"

    def __init__(self, actual: str, raw: str) -> None:
        super().__init__(f"Invalid response format: expected an object, got {actual}", raw=raw)
        self.actual = actual


class ShapeValidationError(ResponseNormalizationError):
    """A parsed value does not match its shape descriptor."""

    kind = "shape_validation"


class ExpectedObjectError(ShapeValidationError):
    kind = "expected_object"

    def __init__(self, path: str) -> None:
        super().__init__(f"Expected object at {path or 'root'}", path=path)


class ExpectedArrayError(ShapeValidationError):
    kind = "expected_array"

    def __init__(self, path: str) -> None:
        super().__init__(f"Expected array at {path or 'root'}", path=path)


class MissingFieldError(ShapeValidationError):
    kind = "missing_field"

    def __init__(self, field: str, path: str) -> None:
        super().__init__(f'Missing required field "{field}" at {path or "root"}', path=path)
        self.field = field


class TypeMismatchError(ShapeValidationError):
    kind = "type_mismatch"

    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Type mismatch at {path or 'root'}: expected {expected}, got {actual}",
            path=path,
        )
        self.expected = expected
        self.actual = actual


class LLMConfigurationError(RuntimeError):
    """The model client cannot be built from the current settings."""


class LLMRequestError(RuntimeError):
    """The model call itself failed before a completion was returned."""
