"""Search query, anchor point and cluster models."""

import base64
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

DEFAULT_RADIUS = 2.0
DEFAULT_TYPES = ("BHK2", "BHK1", "BHK3", "BHK4PLUS")
DEFAULT_CITY = "bangalore"


@dataclass(frozen=True)
class AnchorPoint:
    """A named coordinate used as a search center and for proximity filtering."""

    lat: float
    lon: float
    place_name: str
    place_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnchorPoint":
        """
        Parse an anchor from its JSON form (``lat``, ``lon``, ``placeName``, ``placeId``).

        Raises:
            ValueError: If coordinates are missing or not numeric
        """
        if not isinstance(data, dict):
            raise ValueError(f"Location must be an object, got {type(data).__name__}")
        try:
            lat = float(data["lat"])
            lon = float(data["lon"])
        except KeyError as e:
            raise ValueError(f"Location is missing {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Location has invalid coordinates: {e}") from e
        return cls(
            lat=lat,
            lon=lon,
            place_name=str(data.get("placeName") or ""),
            place_id=data.get("placeId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"lat": self.lat, "lon": self.lon}
        if self.place_id is not None:
            data["placeId"] = self.place_id
        data["placeName"] = self.place_name
        return data


@dataclass(frozen=True)
class Cluster:
    """A named group of anchor points, e.g. the stations on one metro line."""

    id: str
    name: str
    color: str
    center: Tuple[float, float]
    locations: Tuple[AnchorPoint, ...]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cluster":
        center = data.get("center") or {}
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            color=data.get("color", ""),
            center=(float(center.get("lat", 0)), float(center.get("lon", 0))),
            locations=tuple(AnchorPoint.from_dict(loc) for loc in data.get("locations", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "center": {"lat": self.center[0], "lon": self.center[1]},
            "locations": [loc.to_dict() for loc in self.locations],
        }

    def find_location(self, place_name: str) -> Optional[AnchorPoint]:
        for loc in self.locations:
            if loc.place_name == place_name:
                return loc
        return None


@dataclass(frozen=True)
class SearchQuery:
    """
    Immutable request descriptor for one upstream search.

    Built per user interaction and consumed once per fetch cycle.
    """

    anchors: Tuple[AnchorPoint, ...]
    radius: float = DEFAULT_RADIUS
    types: Tuple[str, ...] = DEFAULT_TYPES
    furnishing: Optional[str] = None
    city: str = DEFAULT_CITY

    def __post_init__(self):
        if not self.anchors:
            raise ValueError("At least one location is required")

    @classmethod
    def for_cluster(cls, cluster: Cluster, **kwargs) -> "SearchQuery":
        return cls(anchors=cluster.locations, **kwargs)

    @classmethod
    def from_locations_json(cls, locations_json: str, **kwargs) -> "SearchQuery":
        """
        Build a query from a JSON array of locations.

        Raises:
            ValueError: If the JSON is invalid or describes no locations
        """
        try:
            locations = json.loads(locations_json)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid locations JSON: {e}") from e
        if not isinstance(locations, list):
            raise ValueError("Locations must be a JSON array")
        anchors = tuple(AnchorPoint.from_dict(loc) for loc in locations)
        return cls(anchors=anchors, **kwargs)

    def search_param(self) -> str:
        """Base64-encoded compact JSON array of anchors, as the upstream expects."""
        payload = []
        for anchor in self.anchors:
            entry = anchor.to_dict()
            entry["showMap"] = False
            payload.append(entry)
        encoded = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return base64.b64encode(encoded.encode("utf-8")).decode("ascii")

    def locality(self) -> str:
        return ",".join(anchor.place_name for anchor in self.anchors)

    def to_params(self, page: int) -> Dict[str, str]:
        """Query-string parameters for the given page number."""
        params = {
            "city": self.city,
            "isMetro": "true",
            "locality": self.locality(),
            "pageNo": str(page),
            "radius": _format_radius(self.radius),
            "searchParam": self.search_param(),
            "sharedAccomodation": "0",
            "type": ",".join(self.types),
        }
        if self.furnishing:
            params["furnishing"] = self.furnishing
        return params


def _format_radius(radius: float) -> str:
    # upstream receives "2.0", not "2"
    return f"{float(radius):.1f}" if float(radius).is_integer() else str(radius)


def parse_types(value: Optional[str], default: Sequence[str] = DEFAULT_TYPES) -> Tuple[str, ...]:
    """Split a comma-separated category list, falling back to ``default``."""
    if not value:
        return tuple(default)
    types = tuple(t.strip() for t in value.split(",") if t.strip())
    return types or tuple(default)


DEFAULT_CLUSTER_DATA: List[Dict[str, Any]] = [
    {
        "id": "green_south",
        "name": "Green Line (South)",
        "color": "bg-green-600",
        "center": {"lat": 12.9250, "lon": 77.5800},
        "locations": [
            {"lat": 12.946287, "lon": 77.5800611, "placeId": "ChIJFZ7lcOsVrjsRpI3gtGXhbdc", "placeName": "Lalbagh"},
            {"lat": 12.9383208, "lon": 77.58007479999999, "placeId": "ChIJUeZ3HZQVrjsRYSbTWxcLXZI", "placeName": "South End Circle"},
            {"lat": 12.9296749, "lon": 77.5801753, "placeId": "ChIJ6zSXdpkVrjsRvb2SqkmrHBc", "placeName": "Jayanagara"},
            {"lat": 12.9215877, "lon": 77.5802611, "placeId": "ChIJGymEHp4VrjsRR5cYC8E5tWM", "placeName": "Rashtreeya Vidyalaya Road"},
            {"lat": 12.9155385, "lon": 77.5736288, "placeId": "ChIJFfoeVXcVrjsRUKMZuV47coQ", "placeName": "Banashankari"},
            {"lat": 12.9075563, "lon": 77.573061, "placeId": "ChIJCwCOfGUVrjsRkNcI9wbOo4Q", "placeName": "Jayaprakash Nagara"},
            {"lat": 12.8960529, "lon": 77.5701606, "placeId": "ChIJezEhr10VrjsR8Kkc4v3gXeo", "placeName": "Yelachenahalli"},
        ],
    },
    {
        "id": "purple_east",
        "name": "Purple Line (East)",
        "color": "bg-purple-600",
        "center": {"lat": 12.9780, "lon": 77.6200},
        "locations": [
            {"lat": 12.9782619, "lon": 77.63852570000002, "placeId": "ChIJZbZd-qQWrjsRe7G5a9GUZ9U", "placeName": "Indiranagara"},
            {"lat": 12.9763269, "lon": 77.62669749999999, "placeId": "ChIJSd03apkWrjsRmpKnR3Cq5Ck", "placeName": "Halasuru"},
            {"lat": 12.9859106, "lon": 77.645004, "placeId": "ChIJP-ri17AWrjsROiCDxVe3X74", "placeName": "Swami Vivekananda Road"},
            {"lat": 12.9755162, "lon": 77.6066919, "placeId": "ChIJvwy9o30WrjsR_3Soez0XLL8", "placeName": "Mahatma Gandhi Road"},
            {"lat": 12.9809008, "lon": 77.59746539999999, "placeId": "ChIJdUZ_eWUWrjsRfo6CcEaixkU", "placeName": "Cubbon Park"},
        ],
    },
    {
        "id": "misc",
        "name": "Misc Locations",
        "color": "bg-orange-500",
        "center": {"lat": 12.9577, "lon": 77.5992},
        "locations": [
            {"lat": 12.9351929, "lon": 77.62448069999999, "placeId": "ChIJLfyY2E4UrjsRVq4AjI7zgRY", "placeName": "Koramangala"},
            {"lat": 12.9577549, "lon": 77.5992505, "placeId": "ChIJ52kcAs4VrjsROc2UmPe_ifU", "placeName": "Shanti Nagar"},
            {"lat": 12.9638477, "lon": 77.5984758, "placeId": "ChIJyXSkPNcVrjsR9yIBVE-PCZo", "placeName": "Langford Gardens"},
        ],
    },
]


def load_clusters(data: Optional[List[Dict[str, Any]]] = None) -> List[Cluster]:
    """Build clusters from config data, defaulting to the Bangalore metro lines."""
    return [Cluster.from_dict(c) for c in (data or DEFAULT_CLUSTER_DATA)]
