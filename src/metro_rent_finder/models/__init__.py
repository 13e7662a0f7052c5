from .listing import Listing, ListingScore, Photo, parse_listings
from .nearby import NearbyPlace, parse_nearby
from .query import AnchorPoint, Cluster, SearchQuery, load_clusters

__all__ = [
    "AnchorPoint",
    "Cluster",
    "Listing",
    "ListingScore",
    "NearbyPlace",
    "Photo",
    "SearchQuery",
    "load_clusters",
    "parse_listings",
    "parse_nearby",
]
