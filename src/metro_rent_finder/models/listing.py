"""Normalized rental listing model built from upstream search results."""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

SITE_URL = "https://www.nobroker.in"
IMAGE_BASE_URL = "https://images.nobroker.in/images"
PLACEHOLDER_IMAGE_URL = "https://assets.nobroker.in/static/img/534_notxt.jpg"


def _number(value: Any) -> float:
    """Coerce an upstream numeric field, treating absent/garbage as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ListingScore:
    """Upstream neighbourhood scores."""

    lifestyle: float = 0
    transit: float = 0


@dataclass(frozen=True)
class Photo:
    """A single photo reference (file names, relative to the listing)."""

    medium: Optional[str] = None
    original: Optional[str] = None


@dataclass(frozen=True)
class Listing:
    """
    Normalized rental listing.

    Every search result is converted to this format for filtering, sorting
    and wishlisting. The upstream record is kept in ``raw`` so the proxy can
    return it untouched. Photos are a tuple and amenities a read-only
    mapping, so a fetched listing cannot be changed in place.
    """

    # Identification
    id: str
    title: str = ""

    # Pricing
    rent: float = 0
    deposit: float = 0
    maintenance_amount: Optional[float] = None
    negotiable: bool = False

    # Size
    size: float = 0
    bathrooms: float = 0
    balconies: float = 0

    # Categories
    type: str = ""  # BHK code, e.g. "BHK2"
    type_desc: str = ""
    furnishing: str = ""  # e.g. "SEMI_FURNISHED"
    furnishing_desc: str = ""
    building_type: Optional[str] = None  # e.g. "AP"

    # Location
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    locality: str = ""

    # Features
    description: Optional[str] = None
    photos: Tuple[Photo, ...] = ()
    original_image_url: Optional[str] = None
    thumbnail_image: Optional[str] = None
    amenities: Optional[Mapping[str, bool]] = None
    score: Optional[ListingScore] = None
    detail_url: Optional[str] = None

    # Display-only attributes
    parking_desc: Optional[str] = None
    property_age: Optional[int] = None
    available_from: Optional[int] = None
    floor: Optional[str] = None
    total_floor: Optional[int] = None
    facing_desc: Optional[str] = None

    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Listing":
        """
        Build a Listing from an upstream search record.

        Raises:
            ValueError: If the record has no identifier
        """
        listing_id = raw.get("id")
        if listing_id in (None, ""):
            raise ValueError("Listing record has no id")

        photos = []
        for photo in raw.get("photos") or []:
            images = (photo or {}).get("imagesMap") or {}
            photos.append(Photo(medium=images.get("medium"), original=images.get("original")))

        score = None
        raw_score = raw.get("score")
        if isinstance(raw_score, dict):
            score = ListingScore(
                lifestyle=_number(raw_score.get("lifestyle")),
                transit=_number(raw_score.get("transit")),
            )

        amenities = raw.get("amenitiesMap")
        if not isinstance(amenities, dict):
            amenities = None

        return cls(
            id=str(listing_id),
            title=raw.get("propertyTitle") or "",
            rent=_number(raw.get("rent")),
            deposit=_number(raw.get("deposit")),
            maintenance_amount=_optional_float(raw.get("maintenanceAmount")),
            negotiable=bool(raw.get("negotiable")),
            size=_number(raw.get("propertySize")),
            bathrooms=_number(raw.get("bathroom")),
            balconies=_number(raw.get("balconies")),
            type=raw.get("type") or "",
            type_desc=raw.get("typeDesc") or "",
            furnishing=raw.get("furnishing") or "",
            furnishing_desc=raw.get("furnishingDesc") or "",
            building_type=raw.get("buildingType") or None,
            latitude=_optional_float(raw.get("latitude")),
            longitude=_optional_float(raw.get("longitude")),
            locality=raw.get("locality") or "",
            description=raw.get("ownerDescription"),
            photos=tuple(photos),
            original_image_url=raw.get("originalImageUrl") or None,
            thumbnail_image=raw.get("thumbnailImage") or None,
            amenities=MappingProxyType(dict(amenities)) if amenities is not None else None,
            score=score,
            detail_url=raw.get("detailUrl"),
            parking_desc=raw.get("parkingDesc"),
            property_age=raw.get("propertyAge"),
            available_from=raw.get("availableFrom"),
            floor=raw.get("floor"),
            total_floor=raw.get("totalFloor"),
            facing_desc=raw.get("facingDesc"),
            raw=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the upstream representation of this listing."""
        if self.raw:
            return dict(self.raw)
        return {
            "id": self.id,
            "propertyTitle": self.title,
            "rent": self.rent,
            "deposit": self.deposit,
            "propertySize": self.size,
            "bathroom": self.bathrooms,
            "balconies": self.balconies,
            "type": self.type,
            "typeDesc": self.type_desc,
            "furnishing": self.furnishing,
            "furnishingDesc": self.furnishing_desc,
            "buildingType": self.building_type,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "locality": self.locality,
            "ownerDescription": self.description,
            "photos": [
                {"imagesMap": {k: v for k, v in (("medium", p.medium), ("original", p.original)) if v}}
                for p in self.photos
            ],
            "originalImageUrl": self.original_image_url,
            "amenitiesMap": dict(self.amenities) if self.amenities is not None else None,
            "score": (
                {"lifestyle": self.score.lifestyle, "transit": self.score.transit}
                if self.score
                else None
            ),
            "detailUrl": self.detail_url,
        }

    @property
    def lifestyle_score(self) -> float:
        return self.score.lifestyle if self.score else 0

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def has_amenity(self, code: str) -> bool:
        """True only when the amenity map explicitly marks ``code`` present."""
        return bool(self.amenities) and self.amenities.get(code) is True

    def has_images(self) -> bool:
        """Check for at least one photo or a fallback image."""
        return len(self.photos) > 0 or bool(self.original_image_url)

    def photo_urls(self, full_size: bool = False) -> List[str]:
        """
        Absolute image URLs for this listing.

        Cards use the medium rendition; the gallery prefers the original.
        Falls back to the listing's own image and finally a placeholder.
        """
        urls = []
        for photo in self.photos:
            filename = (photo.original or photo.medium) if full_size else photo.medium
            if filename:
                urls.append(f"{IMAGE_BASE_URL}/{self.id}/{filename}")
        if not urls and self.original_image_url:
            urls.append(self.original_image_url)
        if not urls:
            urls.append(PLACEHOLDER_IMAGE_URL)
        return urls

    def detail_link(self) -> Optional[str]:
        """Absolute URL of the listing page on the upstream site."""
        if not self.detail_url:
            return None
        return f"{SITE_URL}{self.detail_url}"

    def display_rent(self) -> str:
        """Format rent for display."""
        if not self.rent:
            return "Rent unknown"
        return f"₹{self.rent:,.0f}/mo"

    def display_size(self) -> str:
        """Format size information for display."""
        parts = []
        if self.type_desc or self.type:
            parts.append(self.type_desc or self.type)
        if self.bathrooms:
            parts.append(f"{self.bathrooms:.0f}BA")
        if self.size:
            parts.append(f"{self.size:,.0f} sqft")
        return " | ".join(parts) if parts else "Size unknown"

    def __hash__(self) -> int:
        # amenities is an unhashable mapping view; the id identifies a listing
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Listing({self.id}, {self.display_rent()}, {self.display_size()})"


def parse_listings(records: List[Dict[str, Any]]) -> List[Listing]:
    """Convert upstream records, skipping any that cannot be normalized."""
    listings = []
    for record in records:
        try:
            listings.append(Listing.from_api(record))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to normalize listing record: {e}")
    return listings
