"""Remove listings repeated across result pages."""

import logging
from typing import Any, Callable, Iterable, List, TypeVar

from ..models.listing import Listing

logger = logging.getLogger(__name__)

T = TypeVar("T")


def dedupe_by(items: Iterable[T], key: Callable[[T], Any]) -> List[T]:
    """Keep the first item for each key, preserving order."""
    seen = set()
    unique = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


def dedupe_listings(listings: List[Listing]) -> List[Listing]:
    """
    Drop repeated listing ids, keeping first-seen order.

    The upstream can return the same listing on more than one page when
    pages are requested concurrently.
    """
    unique = dedupe_by(listings, lambda listing: listing.id)
    if len(unique) != len(listings):
        logger.info(f"Fetched {len(listings)} properties, {len(unique)} unique")
    return unique

