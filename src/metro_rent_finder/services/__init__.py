from .aggregator import AggregateResult, PageAggregator
from .deduplication import dedupe_listings
from .filtering import FilterState, SortOrder, filter_and_sort
from .search_session import SearchSession
from .wishlist import JsonFileStorage, WishlistStore

__all__ = [
    "AggregateResult",
    "FilterState",
    "JsonFileStorage",
    "PageAggregator",
    "SearchSession",
    "SortOrder",
    "WishlistStore",
    "dedupe_listings",
    "filter_and_sort",
]
