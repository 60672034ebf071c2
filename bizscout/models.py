"""Core data models shared by the ingestion and density analysis pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

OPERATIONAL = "OPERATIONAL"
CLOSED_TEMPORARILY = "CLOSED_TEMPORARILY"
CLOSED_PERMANENTLY = "CLOSED_PERMANENTLY"
UNKNOWN = "UNKNOWN"
BUSINESS_STATUSES = (OPERATIONAL, CLOSED_TEMPORARILY, CLOSED_PERMANENTLY, UNKNOWN)

SATURATED = "saturated"
MODERATE = "moderate"
SPARSE = "sparse"


@dataclass(frozen=True, slots=True)
class CrossReference:
    """A grounding hint pairing a place title with its canonical map URI."""

    title: str
    uri: str


@dataclass(frozen=True, slots=True)
class ServiceOptions:
    dine_in: bool = False
    delivery: bool = False
    takeout: bool = False
    curbside_pickup: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "dineIn": self.dine_in,
            "delivery": self.delivery,
            "takeout": self.takeout,
            "curbsidePickup": self.curbside_pickup,
        }


@dataclass(frozen=True, slots=True)
class Business:
    """Normalized business record produced by one ingestion call.

    Records are immutable; a later ingestion call replaces them wholesale.
    """

    id: str
    name: str
    address: str
    google_maps_uri: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    rating: float = 0.0
    review_count: int = 0
    business_status: str = OPERATIONAL
    business_type: Optional[str] = None
    types: Tuple[str, ...] = ()
    service_options: ServiceOptions = field(default_factory=ServiceOptions)
    opening_hours: Tuple[str, ...] = ()
    photos: Tuple[str, ...] = ()
    website: Optional[str] = None
    phone: Optional[str] = None
    owner_name: Optional[str] = None
    price_level: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase wire form of the record."""
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "lat": self.lat,
            "lng": self.lng,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "businessStatus": self.business_status,
            "businessType": self.business_type,
            "types": list(self.types),
            "serviceOptions": self.service_options.to_dict(),
            "openingHours": list(self.opening_hours),
            "photos": list(self.photos),
            "googleMapsUri": self.google_maps_uri,
            "website": self.website,
            "phone": self.phone,
            "ownerName": self.owner_name,
            "priceLevel": self.price_level,
            "description": self.description,
        }


@dataclass(frozen=True, slots=True)
class DensityCell:
    """One occupied cell of the competitive density grid."""

    row: int
    col: int
    count: int
    intensity: float
    level: str
    center_lat: float
    center_lng: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "count": self.count,
            "intensity": self.intensity,
            "level": self.level,
            "center": {"lat": self.center_lat, "lng": self.center_lng},
        }


@dataclass(frozen=True, slots=True)
class BusinessStats:
    total: int
    with_phone: int
    with_website: int
    filtered_total: int
    average_rating: float
    rating_distribution: List[int] = field(default_factory=lambda: [0, 0, 0, 0, 0])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "withPhone": self.with_phone,
            "withWebsite": self.with_website,
            "filteredTotal": self.filtered_total,
            "averageRating": self.average_rating,
            "ratingDistribution": list(self.rating_distribution),
        }
