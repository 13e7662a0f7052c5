"""Filter and sort pipeline for listing collections."""

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from ..models.listing import Listing
from ..models.query import AnchorPoint

logger = logging.getLogger(__name__)

# Degrees of latitude/longitude; roughly 2km around Bangalore
PROXIMITY_THRESHOLD = 0.02


class SortOrder(str, Enum):
    RENT_ASC = "rent_asc"
    RENT_DESC = "rent_desc"
    SIZE_DESC = "size_desc"
    SIZE_ASC = "size_asc"
    LIFESTYLE = "lifestyle"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        """Parse a sort selector; anything unrecognized sorts by rent ascending."""
        try:
            return cls(value)
        except ValueError:
            return cls.RENT_ASC


class AmenityMatch(str, Enum):
    ALL = "all"
    ANY = "any"


@dataclass(frozen=True)
class ViewProfile:
    """
    How a view interprets a FilterState.

    The search view relies on the upstream query for BHK type and furnishing
    and supports station proximity; the wishlist view filters everything
    locally and is more lenient on amenities.
    """

    name: str
    require_positive_rent: bool
    amenity_match: AmenityMatch
    min_photos: int
    image_fallback: bool
    match_categories: bool
    use_stations: bool


PRIMARY_VIEW = ViewProfile(
    name="primary",
    require_positive_rent=True,
    amenity_match=AmenityMatch.ALL,
    min_photos=1,
    image_fallback=True,
    match_categories=False,
    use_stations=True,
)

WISHLIST_VIEW = ViewProfile(
    name="wishlist",
    require_positive_rent=False,
    amenity_match=AmenityMatch.ANY,
    min_photos=3,
    image_fallback=False,
    match_categories=True,
    use_stations=False,
)


@dataclass
class FilterState:
    """User-selected filter criteria and sort order for one view session."""

    rent_min: float = 5000
    rent_max: float = 50000
    types: List[str] = field(default_factory=lambda: ["BHK2"])
    furnishing: List[str] = field(default_factory=list)
    size_min: float = 0
    balconies: Optional[int] = None
    bathrooms: Optional[int] = None
    building_types: List[str] = field(default_factory=list)
    amenities: List[str] = field(default_factory=list)
    with_images_only: bool = False
    search_query: str = ""
    stations: List[str] = field(default_factory=list)
    sort_by: SortOrder = SortOrder.RENT_ASC

    @classmethod
    def for_wishlist(cls) -> "FilterState":
        """Defaults for the wishlist view: wide rent range, no type filter."""
        return cls(rent_min=0, rent_max=200000, types=[])

    def toggle_type(self, code: str) -> None:
        _toggle(self.types, code)

    def toggle_furnishing(self, code: str) -> None:
        _toggle(self.furnishing, code)

    def toggle_building_type(self, code: str) -> None:
        _toggle(self.building_types, code)

    def toggle_amenity(self, code: str) -> None:
        _toggle(self.amenities, code)

    def toggle_station(self, place_name: str) -> None:
        _toggle(self.stations, place_name)

    def clear_stations(self) -> None:
        self.stations = []

    def reset(self) -> None:
        """Restore filter bar defaults; search text and stations are kept."""
        defaults = FilterState()
        for f in fields(self):
            if f.name in ("search_query", "stations"):
                continue
            setattr(self, f.name, getattr(defaults, f.name))

    def active_filter_count(self) -> int:
        """Number of secondary filters in use (shown as a badge)."""
        return (
            len(self.furnishing)
            + len(self.building_types)
            + len(self.amenities)
            + (1 if self.size_min > 0 else 0)
            + (1 if self.balconies is not None else 0)
            + (1 if self.bathrooms is not None else 0)
            + (1 if self.with_images_only else 0)
        )

    @classmethod
    def from_params(cls, params: Mapping[str, str], base: Optional["FilterState"] = None) -> "FilterState":
        """
        Build a FilterState from request parameters over ``base`` defaults.

        Recognized keys mirror the front end: rentMin, rentMax, type,
        furnishing, propertySizeMin, balconies, bathrooms, buildingType,
        amenities, withImagesOnly, q, stations, sortBy. List values are
        comma-separated.

        Raises:
            ValueError: If a numeric parameter is not a number
        """
        state = base or cls()
        if "rentMin" in params:
            state.rent_min = _parse_number(params, "rentMin")
        if "rentMax" in params:
            state.rent_max = _parse_number(params, "rentMax")
        if "type" in params:
            state.types = _split(params["type"])
        if "furnishing" in params:
            state.furnishing = _split(params["furnishing"])
        if "propertySizeMin" in params:
            state.size_min = _parse_number(params, "propertySizeMin")
        if params.get("balconies"):
            state.balconies = int(_parse_number(params, "balconies"))
        if params.get("bathrooms"):
            state.bathrooms = int(_parse_number(params, "bathrooms"))
        if "buildingType" in params:
            state.building_types = _split(params["buildingType"])
        if "amenities" in params:
            state.amenities = _split(params["amenities"])
        if "withImagesOnly" in params:
            state.with_images_only = str(params["withImagesOnly"]).lower() in ("1", "true", "yes")
        if "q" in params:
            state.search_query = params["q"]
        if "stations" in params:
            state.stations = _split(params["stations"])
        if "sortBy" in params:
            state.sort_by = SortOrder.parse(params["sortBy"])
        return state


def _toggle(values: List[str], value: str) -> None:
    if value in values:
        values.remove(value)
    else:
        values.append(value)


def _split(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def _parse_number(params: Mapping[str, str], key: str) -> float:
    try:
        return float(params[key])
    except (TypeError, ValueError):
        raise ValueError(f"Parameter {key} must be a number, got {params[key]!r}")


def is_near(listing: Listing, anchor: AnchorPoint, threshold: float = PROXIMITY_THRESHOLD) -> bool:
    """
    Cheap proximity test on raw coordinates.

    Compares squared coordinate differences against the squared threshold;
    this is not a geodesic distance.
    """
    if not listing.has_position:
        return False
    lat_diff = listing.latitude - anchor.lat
    lon_diff = listing.longitude - anchor.lon
    return lat_diff * lat_diff + lon_diff * lon_diff < threshold * threshold


def filter_listings(
    listings: Iterable[Listing],
    state: FilterState,
    anchors: Sequence[AnchorPoint] = (),
    profile: ViewProfile = PRIMARY_VIEW,
    proximity_threshold: float = PROXIMITY_THRESHOLD,
) -> List[Listing]:
    """
    Apply every active filter in ``state``.

    Args:
        listings: Collection to filter
        state: Current filter criteria
        anchors: Anchor points that selected station names refer to
        profile: View-specific interpretation of the criteria
        proximity_threshold: Station radius in degrees

    Returns:
        Listings passing all filters, in input order
    """
    filtered = list(listings)

    if profile.require_positive_rent:
        filtered = [p for p in filtered if p.rent > 0 and state.rent_min <= p.rent <= state.rent_max]
    else:
        filtered = [p for p in filtered if state.rent_min <= p.rent <= state.rent_max]

    if profile.match_categories:
        if state.types:
            filtered = [p for p in filtered if p.type in state.types]
        if state.furnishing:
            filtered = [p for p in filtered if p.furnishing in state.furnishing]

    if state.size_min > 0:
        filtered = [p for p in filtered if p.size >= state.size_min]

    if state.balconies is not None:
        filtered = [p for p in filtered if (p.balconies or 0) >= state.balconies]

    if state.bathrooms is not None:
        filtered = [p for p in filtered if (p.bathrooms or 0) >= state.bathrooms]

    if state.with_images_only:
        filtered = [p for p in filtered if _has_enough_images(p, profile)]

    if state.building_types:
        filtered = [p for p in filtered if p.building_type and p.building_type in state.building_types]

    if state.amenities:
        match = all if profile.amenity_match == AmenityMatch.ALL else any
        filtered = [
            p for p in filtered
            if p.amenities and match(p.has_amenity(a) for a in state.amenities)
        ]

    if profile.use_stations and state.stations:
        by_name = {a.place_name: a for a in anchors}
        selected = [by_name[name] for name in state.stations if name in by_name]
        filtered = [
            p for p in filtered
            if any(is_near(p, anchor, proximity_threshold) for anchor in selected)
        ]

    if state.search_query:
        needle = state.search_query.lower()
        filtered = [
            p for p in filtered
            if needle in p.locality.lower() or needle in p.title.lower()
        ]

    return filtered


def _has_enough_images(listing: Listing, profile: ViewProfile) -> bool:
    if profile.image_fallback and listing.has_images():
        return True
    return len(listing.photos) >= profile.min_photos


def sort_listings(listings: Iterable[Listing], order: SortOrder = SortOrder.RENT_ASC) -> List[Listing]:
    """Return a new list in the requested order (stable, ties unbroken)."""
    if order == SortOrder.RENT_DESC:
        return sorted(listings, key=lambda p: p.rent, reverse=True)
    if order == SortOrder.SIZE_DESC:
        return sorted(listings, key=lambda p: p.size or 0, reverse=True)
    if order == SortOrder.SIZE_ASC:
        return sorted(listings, key=lambda p: p.size or 0)
    if order == SortOrder.LIFESTYLE:
        return sorted(listings, key=lambda p: p.lifestyle_score, reverse=True)
    return sorted(listings, key=lambda p: p.rent)


def filter_and_sort(
    listings: Iterable[Listing],
    state: FilterState,
    anchors: Sequence[AnchorPoint] = (),
    profile: ViewProfile = PRIMARY_VIEW,
    proximity_threshold: float = PROXIMITY_THRESHOLD,
) -> List[Listing]:
    """Filter then sort; a pure function of its inputs."""
    filtered = filter_listings(listings, state, anchors, profile, proximity_threshold)
    result = sort_listings(filtered, state.sort_by)
    logger.debug(f"{profile.name} view: {len(result)} listings after filtering")
    return result


def available_building_types(listings: Iterable[Listing]) -> List[str]:
    """Distinct building types present in ``listings``, first-seen order."""
    types = []
    for listing in listings:
        if listing.building_type and listing.building_type not in types:
            types.append(listing.building_type)
    return types


# Bangalore city center
DEFAULT_MAP_CENTER = (12.9716, 77.5946)


def map_center(listings: Iterable[Listing]) -> Tuple[float, float]:
    """Mean position of listings with coordinates, or the city center."""
    positioned = [p for p in listings if p.has_position]
    if not positioned:
        return DEFAULT_MAP_CENTER
    lat = sum(p.latitude for p in positioned) / len(positioned)
    lon = sum(p.longitude for p in positioned) / len(positioned)
    return lat, lon
