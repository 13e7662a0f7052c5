"""Fetch every page of an upstream search and merge the results."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..adapters.base import BaseAdapter, UpstreamError
from ..models.listing import Listing, parse_listings
from ..models.query import SearchQuery

logger = logging.getLogger(__name__)


@dataclass
class AggregateResult:
    """Merged search results plus paging metadata."""

    items: List[Dict[str, Any]]
    total_count: int
    total_pages: int
    pages_fetched: int
    first_page: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def fetched_count(self) -> int:
        return len(self.items)

    def listings(self) -> List[Listing]:
        """Normalize the merged raw items."""
        return parse_listings(self.items)

    def to_response(self) -> Dict[str, Any]:
        """Page 1's envelope with the merged data and extended paging info."""
        other_params = self.first_page.get("otherParams")
        other_params = dict(other_params) if isinstance(other_params, dict) else {}
        other_params["fetched_count"] = self.fetched_count
        other_params["total_pages"] = self.total_pages
        return {**self.first_page, "data": self.items, "otherParams": other_params}


def compute_total_pages(total_count: int, page_size: int, fallback_page_size: int = 26) -> int:
    """Number of pages needed for ``total_count`` results."""
    size = page_size or fallback_page_size
    if total_count <= 0:
        return 0
    return math.ceil(total_count / size)


class PageAggregator:
    """
    Retrieve all listings for a query from a paginated source.

    Page 1 is fetched first to learn the total count; the remaining pages,
    up to ``max_pages``, are fetched concurrently. Any failed page aborts
    the whole search.
    """

    DEFAULT_MAX_PAGES = 20
    DEFAULT_PAGE_SIZE = 26

    def __init__(
        self,
        adapter: BaseAdapter,
        max_pages: int = DEFAULT_MAX_PAGES,
        fallback_page_size: int = DEFAULT_PAGE_SIZE,
        max_workers: int = 8,
    ):
        self.adapter = adapter
        self.max_pages = max_pages
        self.fallback_page_size = fallback_page_size
        self.max_workers = max_workers

    def fetch_all(self, query: SearchQuery) -> AggregateResult:
        """
        Fetch and merge every page of results for ``query``.

        Raises:
            UpstreamError: If any page fails
        """
        first_page = self.adapter.fetch_page(query, 1)
        items = _page_items(first_page, 1)

        total_count = _total_count(first_page)
        total_pages = compute_total_pages(total_count, len(items), self.fallback_page_size)
        logger.info(f"Total properties: {total_count}, Pages: {total_pages}")

        pages_fetched = 1
        last_page = min(total_pages, self.max_pages)
        if last_page > 1:
            pages = list(range(2, last_page + 1))
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(pages))) as pool:
                # map() yields in page order and re-raises the first failure
                results = pool.map(lambda page: self.adapter.fetch_page(query, page), pages)
                for page, page_data in zip(pages, results):
                    items.extend(_page_items(page_data, page))
                    pages_fetched += 1

        logger.info(f"Fetched {len(items)} listings across {pages_fetched} pages")
        return AggregateResult(
            items=items,
            total_count=total_count,
            total_pages=total_pages,
            pages_fetched=pages_fetched,
            first_page=first_page,
        )


def _page_items(page_data: Any, page: int) -> List[Dict[str, Any]]:
    """
    Listing records of one page.

    Raises:
        UpstreamError: If the page is not an object or its data is not a list
    """
    if not isinstance(page_data, dict):
        raise UpstreamError(f"Page {page} is {type(page_data).__name__}, expected an object")
    data = page_data.get("data")
    if data is None:
        return []
    if not isinstance(data, list):
        raise UpstreamError(f"Page {page} data is {type(data).__name__}, expected a list")
    return list(data)


def _total_count(page: Dict[str, Any]) -> int:
    other_params = page.get("otherParams")
    if not isinstance(other_params, dict):
        return 0
    try:
        return int(other_params.get("total_count") or 0)
    except (TypeError, ValueError):
        return 0
