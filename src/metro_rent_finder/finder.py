"""Application root wiring config, upstream adapter, aggregator and wishlist."""

import logging
from typing import Any, Dict, List, Optional

from .adapters import get_adapter
from .adapters.base import BaseAdapter
from .config import load_config
from .models.listing import Listing
from .models.query import Cluster, SearchQuery, load_clusters
from .services.aggregator import AggregateResult, PageAggregator
from .services.filtering import FilterState
from .services.search_session import SearchSession
from .services.wishlist import JsonFileStorage, WishlistStore

logger = logging.getLogger(__name__)


class RentFinder:
    """
    Owns the long-lived collaborators of the application.

    Built once at startup (by the web app or the CLI) and passed to
    whatever needs the aggregator or the wishlist.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        adapter: Optional[BaseAdapter] = None,
        wishlist: Optional[WishlistStore] = None,
    ):
        self.config = config if config is not None else load_config()
        upstream = self.config["upstream"]
        search = self.config["search"]

        self.adapter = adapter or get_adapter(upstream.get("source", "nobroker"), upstream)
        self.aggregator = PageAggregator(
            self.adapter,
            max_pages=int(upstream["max_pages"]),
            fallback_page_size=int(upstream["fallback_page_size"]),
            max_workers=int(upstream["max_workers"]),
        )
        self.city = upstream.get("city", "bangalore")
        self.radius = float(search["radius"])
        self.default_types = tuple(search["types"])
        self.proximity_threshold = float(search["proximity_threshold"])
        self.clusters: List[Cluster] = load_clusters(self.config.get("clusters"))
        self.default_cluster_id = search.get("default_cluster") or self.clusters[0].id

        if wishlist is None:
            wishlist = WishlistStore(JsonFileStorage(self.config["wishlist"]["path"]))
            wishlist.hydrate()
        self.wishlist = wishlist

    def get_cluster(self, cluster_id: Optional[str] = None) -> Cluster:
        """
        Look up a cluster by id, defaulting to the configured one.

        Raises:
            ValueError: If no cluster has that id
        """
        cluster_id = cluster_id or self.default_cluster_id
        for cluster in self.clusters:
            if cluster.id == cluster_id:
                return cluster
        raise ValueError(
            f"Unknown cluster: {cluster_id}. Available: {[c.id for c in self.clusters]}"
        )

    def build_query(self, anchors, radius: Optional[float] = None, types=None, furnishing=None) -> SearchQuery:
        return SearchQuery(
            anchors=tuple(anchors),
            radius=radius if radius is not None else self.radius,
            types=tuple(types) if types else self.default_types,
            furnishing=furnishing or None,
            city=self.city,
        )

    def aggregate(self, query: SearchQuery) -> AggregateResult:
        """Run the full paginated search. Raises UpstreamError on failure."""
        return self.aggregator.fetch_all(query)

    def new_session(self, cluster_id: Optional[str] = None, filters: Optional[FilterState] = None) -> SearchSession:
        return SearchSession(
            self.aggregator,
            self.get_cluster(cluster_id),
            filters=filters,
            radius=self.radius,
            proximity_threshold=self.proximity_threshold,
            city=self.city,
        )

    def nearby(self, listing_id: str) -> Dict[str, Any]:
        """Raw nearby-places payload. Raises UpstreamError on failure."""
        return self.adapter.fetch_nearby(listing_id)

    def save_to_wishlist(self, listing: Listing) -> bool:
        added = self.wishlist.add(listing)
        if added:
            logger.info(f"Saved {listing.id} to wishlist")
        return added
