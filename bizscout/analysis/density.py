"""Grid-based competitive density analysis over geolocated businesses.

The bounding box of the points is split into ``grid_size`` x ``grid_size``
equal-angle cells. Each occupied cell gets an intensity relative to the
busiest cell and one of three levels: saturated, moderate or sparse.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from bizscout.models import MODERATE, SATURATED, SPARSE, Business, DensityCell

logger = logging.getLogger(__name__)

DEFAULT_GRID_SIZE = 8
SATURATED_THRESHOLD = 0.6
MODERATE_THRESHOLD = 0.3

Point = Tuple[float, float]


def is_geometrically_valid(lat: Any, lng: Any) -> bool:
    """True when both coordinates are finite numbers and not the (0, 0) pair."""
    for value in (lat, lng):
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return not (lat == 0 and lng == 0)


def geolocated(businesses: Iterable[Business]) -> List[Business]:
    return [b for b in businesses if is_geometrically_valid(b.lat, b.lng)]


def points_of(businesses: Iterable[Business]) -> List[Point]:
    return [(b.lat, b.lng) for b in geolocated(businesses)]


def _unpack(point: Any) -> Tuple[Any, Any]:
    if isinstance(point, Mapping):
        return point["lat"], point["lng"]
    if isinstance(point, Business):
        return point.lat, point.lng
    lat, lng = point
    return lat, lng


def _as_point(value: Any) -> Optional[Point]:
    try:
        lat, lng = _unpack(value)
    except (KeyError, TypeError, ValueError):
        return None
    if not is_geometrically_valid(lat, lng):
        return None
    return float(lat), float(lng)


def valid_points(values: Iterable[Any]) -> List[Point]:
    """Keep only values that resolve to a geometrically valid (lat, lng) pair."""
    points = []
    for value in values or []:
        point = _as_point(value)
        if point is not None:
            points.append(point)
    return points


def classify(intensity: float) -> str:
    if intensity > SATURATED_THRESHOLD:
        return SATURATED
    if intensity > MODERATE_THRESHOLD:
        return MODERATE
    return SPARSE


def analyze(points: Sequence[Any], grid_size: int = DEFAULT_GRID_SIZE) -> List[DensityCell]:
    """Bin valid points into an occupied-cell density map.

    ``points`` are expected to be pre-filtered with :func:`valid_points`.
    Returns an empty list for an empty set or a zero-span bounding box.
    """
    if isinstance(grid_size, bool) or not isinstance(grid_size, int) or grid_size <= 0:
        raise ValueError(f"grid_size must be a positive integer, got {grid_size!r}")

    snapshot = [(float(lat), float(lng)) for lat, lng in (_unpack(p) for p in points)]
    if not snapshot:
        return []

    lats = [lat for lat, _ in snapshot]
    lngs = [lng for _, lng in snapshot]
    south, north = min(lats), max(lats)
    west, east = min(lngs), max(lngs)
    lat_span = north - south
    lng_span = east - west
    if lat_span == 0 or lng_span == 0:
        logger.debug("Degenerate bounding box for %d points; no density grid.", len(snapshot))
        return []

    lat_step = lat_span / grid_size
    lng_step = lng_span / grid_size
    last = grid_size - 1

    counts: Counter = Counter()
    for lat, lng in snapshot:
        row = min(math.floor((lat - south) / lat_step), last)
        col = min(math.floor((lng - west) / lng_step), last)
        counts[(row, col)] += 1

    max_count = max(counts.values())
    cells = []
    for (row, col), count in sorted(counts.items()):
        intensity = count / max_count
        cells.append(
            DensityCell(
                row=row,
                col=col,
                count=count,
                intensity=intensity,
                level=classify(intensity),
                center_lat=south + (row + 0.5) * lat_step,
                center_lng=west + (col + 0.5) * lng_step,
            )
        )

    logger.debug("Density grid %dx%d: %d occupied cells, max count %d.", grid_size, grid_size, len(cells), max_count)
    return cells
