"""Aggregate statistics for a set of normalized businesses."""

from typing import Iterable, List, Optional

from bizscout.models import Business, BusinessStats


def _passes(business: Business, min_rating: float, require_phone: bool, require_website: bool) -> bool:
    if require_phone and not business.phone:
        return False
    if require_website and not business.website:
        return False
    # unrated businesses are never filtered out by rating
    if business.rating and business.rating < min_rating:
        return False
    return True


def summarize(
    businesses: Iterable[Business],
    min_rating: float = 0,
    require_phone: bool = False,
    require_website: bool = False,
) -> Optional[BusinessStats]:
    """Contact coverage over the full set, rating figures over the filtered set.

    Returns None for an empty input.
    """
    records: List[Business] = list(businesses)
    if not records:
        return None

    filtered = [b for b in records if _passes(b, min_rating, require_phone, require_website)]
    average = sum(b.rating for b in filtered) / len(filtered) if filtered else 0.0

    distribution = [0, 0, 0, 0, 0]
    for business in filtered:
        # round half up, not Python's banker's rounding
        bucket = int(business.rating + 0.5)
        if 1 <= bucket <= 5:
            distribution[bucket - 1] += 1

    return BusinessStats(
        total=len(records),
        with_phone=sum(1 for b in records if b.phone),
        with_website=sum(1 for b in records if b.website),
        filtered_total=len(filtered),
        average_rating=average,
        rating_distribution=distribution,
    )
