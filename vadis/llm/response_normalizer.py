"""
Vadis Response Normalizer

Turns raw model output into a single well-formed JSON value.

Generation is non-deterministic, so malformed output is the common case:
prose around the payload, markdown fences, trailing commas, or a single
object where an array was asked for. The normalizer never raises. It returns
one of three variants and each caller declares which one it expects:

- ParsedObject: a JSON object
- ParsedArray: a list of JSON objects
- ParseFailure: nothing recoverable, with the raw text kept for diagnostics
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from vadis.core.constants import OutputShape
from vadis.core.logging_config import get_logger

logger = get_logger("llm.normalizer")

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")

RAW_LOG_LIMIT = 500


@dataclass(frozen=True)
class ParsedObject:
    """A recovered JSON object."""
    value: Dict[str, Any]


@dataclass(frozen=True)
class ParsedArray:
    """A recovered list of JSON objects."""
    items: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ParseFailure:
    """Nothing usable could be recovered from the raw text."""
    raw_text: str
    reason: str

    @property
    def is_offline(self) -> bool:
        return self.reason == OFFLINE_REASON


NormalizedResult = Union[ParsedObject, ParsedArray, ParseFailure]

OFFLINE_REASON = "generation disabled (offline)"


def strip_code_fences(text: str) -> str:
    """Return the body of the first markdown code fence, or the text itself."""
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return text.strip().strip("`").strip()


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing brace or bracket."""
    return _TRAILING_COMMA_PATTERN.sub(r"\1", text)


def _null_constant(_: str) -> None:
    """NaN, Infinity and -Infinity are not JSON; read them as null."""
    return None


def _finite_float(text: str) -> Optional[float]:
    number = float(text)
    return number if math.isfinite(number) else None


def _candidate_spans(text: str) -> Iterator[str]:
    """Yield progressively more aggressive repairs of the text."""
    body = strip_code_fences(text)
    yield body

    starts = [i for i in (body.find("{"), body.find("[")) if i != -1]
    end = max(body.rfind("}"), body.rfind("]"))
    if starts and end > min(starts):
        yield remove_trailing_commas(body[min(starts):end + 1])

    obj_start = body.find("{")
    obj_end = body.rfind("}")
    if obj_start != -1 and obj_end > obj_start:
        span = remove_trailing_commas(body[obj_start:obj_end + 1])
        yield span
        # Several objects separated by commas
        yield f"[{span}]"


def _coerce_shape(
    value: Any,
    expected_shape: OutputShape,
    array_key: Optional[str]
) -> Union[ParsedObject, ParsedArray, str]:
    """Fit a parsed value to the expected shape, or return a reason string."""
    if expected_shape == OutputShape.ARRAY:
        if isinstance(value, dict):
            container = value.get(array_key) if array_key else None
            if isinstance(container, list):
                value = container
            else:
                # Prefer a partial result over total failure
                return ParsedArray([value])
        if isinstance(value, list):
            items = [item for item in value if isinstance(item, dict)]
            if value and not items:
                return "array contains no objects"
            return ParsedArray(items)
        return f"expected array, got {type(value).__name__}"

    if expected_shape == OutputShape.OBJECT:
        if isinstance(value, dict):
            return ParsedObject(value)
        if isinstance(value, list) and len(value) == 1 and isinstance(value[0], dict):
            return ParsedObject(value[0])
        return f"expected object, got {type(value).__name__}"

    return f"shape '{expected_shape.value}' is not structured"


def normalize_response(
    text: Any,
    expected_shape: OutputShape,
    array_key: Optional[str] = None
) -> NormalizedResult:
    """
    Extract a single JSON value of the expected shape from model output.

    Args:
        text: Raw text returned by a generation call
        expected_shape: OBJECT or ARRAY
        array_key: For ARRAY, a container key to unwrap ({"scenes": [...]})

    Returns:
        ParsedObject, ParsedArray, or ParseFailure. Never raises.
    """
    if not isinstance(text, str):
        raw = "" if text is None else repr(text)
        return _failure(raw, f"non-text response ({type(text).__name__})")

    if not text.strip():
        return _failure(text, "empty response")

    reason = "no JSON value found"
    seen = set()
    for candidate in _candidate_spans(text):
        if candidate in seen:
            continue
        seen.add(candidate)
        try:
            value = json.loads(candidate, parse_float=_finite_float, parse_constant=_null_constant)
        except (ValueError, RecursionError) as e:
            reason = f"invalid JSON: {e}"
            continue

        coerced = _coerce_shape(value, expected_shape, array_key)
        if isinstance(coerced, str):
            reason = coerced
            continue
        return coerced

    return _failure(text, reason)


def _failure(raw_text: str, reason: str) -> ParseFailure:
    preview = raw_text[:RAW_LOG_LIMIT]
    logger.warning(f"Could not normalize model response: {reason} | raw: {preview!r}")
    logger.debug(f"Full unparsed response: {raw_text!r}")
    return ParseFailure(raw_text=raw_text, reason=reason)


def offline_failure() -> ParseFailure:
    """ParseFailure used when the generation capability is disabled."""
    return ParseFailure(raw_text="", reason=OFFLINE_REASON)


def result_items(result: NormalizedResult) -> List[Dict[str, Any]]:
    """List of objects carried by a result; empty for failures."""
    if isinstance(result, ParsedArray):
        return list(result.items)
    if isinstance(result, ParsedObject):
        return [result.value]
    return []
