"""Nearby points of interest returned for a listing."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Category keys in display order
NEARBY_CATEGORIES = [
    ("train_station", "Metro / Train"),
    ("bus_station", "Bus Stops"),
    ("school", "Schools"),
    ("super_market", "Supermarkets"),
    ("restaurant", "Restaurants"),
    ("shopping_mall", "Shopping Malls"),
    ("pharmacy", "Pharmacies"),
    ("movie_theater", "Movie Theaters"),
]


@dataclass(frozen=True)
class NearbyPlace:
    name: str
    distance: str
    duration: Optional[str] = None
    rating: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NearbyPlace":
        return cls(
            name=data.get("name", ""),
            distance=str(data.get("distance", "")),
            duration=data.get("duration"),
            rating=data.get("rating"),
        )


def parse_nearby(payload: Dict[str, Any]) -> Dict[str, List[NearbyPlace]]:
    """
    Group the nearby-places payload by category.

    Unknown categories are ignored and empty categories omitted.
    """
    data = payload.get("data") or {}
    grouped = {}
    for key, _label in NEARBY_CATEGORIES:
        places = data.get(key) or []
        parsed = [NearbyPlace.from_dict(p) for p in places if isinstance(p, dict)]
        if parsed:
            grouped[key] = parsed
    return grouped
