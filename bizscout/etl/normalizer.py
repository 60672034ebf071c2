"""Turn raw generative model output into validated Business records."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from bizscout.etl.grounding import as_cross_references
from bizscout.etl.payload import parse_payload
from bizscout.etl.transform import to_business
from bizscout.models import Business

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Normalized records plus how the payload was recovered.

    ``recovered`` is False when no array could be located or repaired, which
    lets callers tell unparsable output apart from a genuinely empty list.
    """

    businesses: List[Business] = field(default_factory=list)
    recovered: bool = False
    repaired: bool = False


def new_business_id() -> str:
    return f"biz-{uuid.uuid4().hex}"


def normalize_result(
    raw_text: Optional[str],
    industry: str,
    location: str,
    cross_refs: Optional[Iterable[Any]] = None,
) -> NormalizationResult:
    parsed = parse_payload(raw_text)
    if parsed is None:
        logger.warning("No recoverable business array in model output (%d chars).", len(raw_text or ""))
        return NormalizationResult()

    refs = as_cross_references(cross_refs)
    businesses: List[Business] = []
    for index, item in enumerate(parsed.items):
        if not isinstance(item, Mapping):
            logger.debug("Skipping non-object item at index %d: %r", index, item)
            continue
        businesses.append(
            to_business(
                item,
                business_id=new_business_id(),
                industry=industry,
                location=location,
                cross_refs=refs,
            )
        )

    logger.info(
        "Normalized %d businesses from %d items (repaired=%s).",
        len(businesses),
        len(parsed.items),
        parsed.repaired,
    )
    return NormalizationResult(businesses=businesses, recovered=True, repaired=parsed.repaired)


def normalize(
    raw_text: Optional[str],
    industry: str,
    location: str,
    cross_refs: Optional[Iterable[Any]] = None,
) -> List[Business]:
    """Parse, repair and coerce model output; never raises for malformed input."""
    return normalize_result(raw_text, industry, location, cross_refs).businesses
