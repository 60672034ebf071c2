"""Recover a JSON array from loosely formatted generative model output.

The model is asked for a raw JSON array but regularly wraps it in markdown
fences, adds prose around it, or gets cut off mid-record. Recovery is a fixed
two-step pipeline: strict parse, then a single repair that closes the array.
Anything beyond that is treated as unrecoverable.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ParsedPayload:
    items: List[Any]
    repaired: bool = False


def strip_fences(text: str) -> str:
    """Remove markdown code fence delimiters and surrounding whitespace."""
    return _FENCE_RE.sub("", text or "").strip()


def _from_first_bracket(text: str) -> str:
    start = text.find("[")
    return text[start:] if start != -1 else text


def bound_array(text: str) -> str:
    """Cut the text down to the span between the first '[' and the last ']'.

    A missing bracket leaves that side of the text untouched.
    """
    text = _from_first_bracket(text)
    end = text.rfind("]")
    if end != -1:
        text = text[: end + 1]
    return text


def parse_payload(raw_text: Optional[str]) -> Optional[ParsedPayload]:
    """Return the recovered array, or None when no array can be recovered."""
    cleaned = strip_fences(raw_text or "")
    bounded = bound_array(cleaned)
    if not bounded:
        return None

    repaired = False
    try:
        data = json.loads(bounded)
    except (ValueError, RecursionError) as exc:
        if not bounded.startswith("["):
            logger.debug("Payload has no array to recover: %s", exc)
            return None
        # A truncated array has lost its closing bracket, so the last ']' in
        # the text may belong to the final record rather than the array.
        logger.warning("Strict parse failed, attempting truncation repair: %s", exc)
        try:
            data = json.loads(_from_first_bracket(cleaned).rstrip() + "]")
        except (ValueError, RecursionError) as repair_exc:
            logger.warning("Truncation repair failed: %s", repair_exc)
            return None
        repaired = True

    if not isinstance(data, list):
        logger.debug("Parsed payload is %s, not an array.", type(data).__name__)
        return None
    return ParsedPayload(items=data, repaired=repaired)
