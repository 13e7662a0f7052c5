"""View session holding the current search results and filters."""

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from ..models.listing import Listing
from ..models.query import DEFAULT_CITY, Cluster, SearchQuery
from .aggregator import AggregateResult, PageAggregator
from .deduplication import dedupe_listings
from .filtering import (
    PRIMARY_VIEW,
    PROXIMITY_THRESHOLD,
    FilterState,
    available_building_types,
    filter_and_sort,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchTicket:
    """Tag for one issued search; only the latest ticket may apply results."""

    sequence: int
    query: SearchQuery


class SearchSession:
    """
    Current collection, filters and cluster for one user's search view.

    Each refresh is tagged with an increasing sequence number. Results
    arriving for anything but the most recently issued search are dropped,
    so a slow early request cannot overwrite a newer one.
    """

    def __init__(
        self,
        aggregator: PageAggregator,
        cluster: Cluster,
        filters: Optional[FilterState] = None,
        radius: float = 2.0,
        proximity_threshold: float = PROXIMITY_THRESHOLD,
        city: str = DEFAULT_CITY,
    ):
        self.aggregator = aggregator
        self.city = city
        self.cluster = cluster
        self.filters = filters or FilterState()
        self.radius = radius
        self.proximity_threshold = proximity_threshold
        self.listings: List[Listing] = []
        self.last_result: Optional[AggregateResult] = None
        self._sequence = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    def build_query(self) -> SearchQuery:
        """Upstream query for the current cluster, BHK types and furnishing."""
        kwargs = {"radius": self.radius, "city": self.city}
        if self.filters.types:
            kwargs["types"] = tuple(self.filters.types)
        else:
            kwargs["types"] = ("BHK2", "BHK1")
        if self.filters.furnishing:
            kwargs["furnishing"] = ",".join(self.filters.furnishing)
        return SearchQuery.for_cluster(self.cluster, **kwargs)

    def issue(self, query: Optional[SearchQuery] = None) -> SearchTicket:
        """Start a new search, superseding any in flight."""
        with self._lock:
            sequence = next(self._sequence)
            self._latest = sequence
        return SearchTicket(sequence=sequence, query=query or self.build_query())

    def is_current(self, ticket: SearchTicket) -> bool:
        return ticket.sequence == self._latest

    def apply(self, ticket: SearchTicket, result: AggregateResult, reset_stations: bool = True) -> bool:
        """
        Install results for ``ticket`` if it is still the latest search.

        Station selections are cleared unless ``reset_stations`` is False.

        Returns:
            True if the results were applied, False if they were stale
        """
        with self._lock:
            if not self.is_current(ticket):
                logger.info(
                    f"Discarding stale results for search #{ticket.sequence} "
                    f"(latest is #{self._latest})"
                )
                return False
            self.listings = dedupe_listings(result.listings())
            self.last_result = result
            if reset_stations:
                self.filters.clear_stations()
            return True

    def refresh(self, reset_stations: bool = True) -> bool:
        """
        Run a search for the current state and apply it if still current.

        Raises:
            UpstreamError: If the upstream search fails
        """
        ticket = self.issue()
        result = self.aggregator.fetch_all(ticket.query)
        return self.apply(ticket, result, reset_stations=reset_stations)

    def select_cluster(self, cluster: Cluster) -> None:
        """Switch corridor; station selections belong to the old cluster."""
        self.cluster = cluster
        self.filters.clear_stations()

    def visible(self) -> List[Listing]:
        """Filtered and sorted listings for display."""
        return filter_and_sort(
            self.listings,
            self.filters,
            anchors=self.cluster.locations,
            profile=PRIMARY_VIEW,
            proximity_threshold=self.proximity_threshold,
        )

    def building_types(self) -> List[str]:
        return available_building_types(self.listings)
