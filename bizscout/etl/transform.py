"""Utilities for transforming untyped model items into Business records."""

import logging
import math
from typing import Any, Mapping, Optional, Sequence, Tuple

from bizscout.etl.grounding import resolve_maps_uri, synthesize_maps_uri
from bizscout.models import (
    BUSINESS_STATUSES,
    CLOSED_TEMPORARILY,
    OPERATIONAL,
    Business,
    CrossReference,
    ServiceOptions,
)

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"
_SERVICE_FLAGS = (
    ("dineIn", "dine_in"),
    ("delivery", "delivery"),
    ("takeout", "takeout"),
    ("curbsidePickup", "curbside_pickup"),
)


def _strip_or_none(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _safe_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _safe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None

    if isinstance(value, str):
        # "1,234" style counts
        number = _safe_float(value.replace(",", ""))
        if number is not None:
            return int(number)
    return None


def _string_tuple(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item for item in value if isinstance(item, str) and item.strip())


def coerce_rating(value: Any) -> float:
    rating = _safe_float(value)
    if rating is None or not 1.0 <= rating <= 5.0:
        return 0.0
    return rating


def coerce_review_count(value: Any) -> int:
    count = _safe_int(value)
    if count is None or count < 0:
        return 0
    return count


def coerce_status(value: Any) -> str:
    if value == "CLOSED":
        return CLOSED_TEMPORARILY
    if value in BUSINESS_STATUSES:
        return value
    return OPERATIONAL


def coerce_types(value: Any, industry: str) -> Tuple[str, ...]:
    types = _string_tuple(value)
    return types or (industry,)


def coerce_service_options(value: Any) -> ServiceOptions:
    if not isinstance(value, Mapping):
        return ServiceOptions()
    return ServiceOptions(**{attr: value.get(key) is True for key, attr in _SERVICE_FLAGS})


def to_business(
    item: Mapping[str, Any],
    *,
    business_id: str,
    industry: str,
    location: str,
    cross_refs: Sequence[CrossReference] = (),
) -> Business:
    """Coerce every field of ``item`` individually and build the typed record."""
    source_name = _strip_or_none(item.get("name"))
    name = source_name or UNKNOWN_NAME
    address = _strip_or_none(item.get("address")) or location

    maps_uri = resolve_maps_uri(source_name, cross_refs)
    if maps_uri is None:
        maps_uri = synthesize_maps_uri(name, address)

    return Business(
        id=business_id,
        name=name,
        address=address,
        google_maps_uri=maps_uri,
        lat=_safe_float(item.get("lat")),
        lng=_safe_float(item.get("lng")),
        rating=coerce_rating(item.get("rating")),
        review_count=coerce_review_count(item.get("reviewCount")),
        business_status=coerce_status(item.get("businessStatus")),
        business_type=industry,
        types=coerce_types(item.get("types"), industry),
        service_options=coerce_service_options(item.get("serviceOptions")),
        opening_hours=_string_tuple(item.get("openingHours")),
        photos=_string_tuple(item.get("photos")),
        website=_strip_or_none(item.get("website")),
        phone=_strip_or_none(item.get("phone")),
        owner_name=_strip_or_none(item.get("ownerName")),
        price_level=_strip_or_none(item.get("priceLevel")),
        description=_strip_or_none(item.get("description")),
    )
