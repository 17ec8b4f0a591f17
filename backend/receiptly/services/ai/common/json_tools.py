"""JSON extraction from free-form model responses.

Models are asked for raw JSON but often wrap it in markdown fences or add
prose around it. ``extract_json`` recovers the payload with a layered
heuristic instead of a grammar:

1. a fenced block labelled ``json`` (any case);
2. any fenced block;
3. the text between the first ``{`` and the last ``}``.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from receiptly.core.errors import ModelFormatError, ModelJsonInvalid

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")

RAW_LOG_CHARS = 200


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range {text}")
    return value


def extract_json(text: str | None) -> str | None:
    """Return the JSON-looking part of *text*, or ``None`` if there is none."""
    if not text:
        return None

    for pattern in (_JSON_FENCE, _ANY_FENCE):
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1).strip()

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last != -1 and last > first:
        return text[first : last + 1]

    return None


def parse_json_payload(text: str | None) -> Any:
    """Extract and decode the JSON payload of a model response.

    Raises ``ModelFormatError`` when nothing JSON-like was found and
    ``ModelJsonInvalid`` when the candidate does not decode. Both carry the
    raw model text for debugging.
    """
    raw = text or ""
    candidate = extract_json(raw)
    if candidate is None:
        logger.warning("Model response contained no JSON: %s", raw[:RAW_LOG_CHARS])
        raise ModelFormatError(raw=raw)

    try:
        return json.loads(candidate, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as exc:
        logger.warning("Model response JSON did not parse (%s): %s", exc, candidate[:RAW_LOG_CHARS])
        raise ModelJsonInvalid(raw=raw) from exc
