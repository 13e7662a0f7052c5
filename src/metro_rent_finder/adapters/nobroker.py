"""NoBroker adapter for Bangalore rental listings."""

import logging
from typing import Any, Dict

import requests

from ..models.query import SearchQuery
from . import register_adapter
from .base import BaseAdapter, UpstreamError

logger = logging.getLogger(__name__)


@register_adapter("nobroker")
class NoBrokerAdapter(BaseAdapter):
    """
    Adapter for the NoBroker multi-locality rental search API.

    The API is unauthenticated but rejects requests without a browser
    User-Agent. Results come back 26 per page.
    """

    BASE_URL = "https://www.nobroker.in/api/v3/multi/property/RENT/filter"
    NEARBY_URL = "https://www.nobroker.in/api/v3/property/{listing_id}/nearby"
    USER_AGENT = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.114 Safari/537.36"
    )

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.base_url = config.get("base_url") or self.BASE_URL
        self.nearby_url = config.get("nearby_url") or self.NEARBY_URL
        self.timeout = config.get("timeout", 30)
        self.headers = {
            "User-Agent": config.get("user_agent") or self.USER_AGENT,
            "Accept": "application/json",
        }

    def fetch_page(self, query: SearchQuery, page: int) -> Dict[str, Any]:
        """Fetch one page of rental listings."""
        logger.debug(f"Fetching NoBroker page {page} for {query.locality()}")
        return self._get_json(self.base_url, params=query.to_params(page))

    def fetch_nearby(self, listing_id: str) -> Dict[str, Any]:
        """Fetch nearby places for a listing."""
        url = self.nearby_url.format(listing_id=listing_id)
        return self._get_json(url)

    def _get_json(self, url: str, params: Dict[str, str] = None) -> Dict[str, Any]:
        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"NoBroker request failed: {e}")
            raise UpstreamError(f"Request to {url} failed: {e}") from e

        if not response.ok:
            logger.error(f"NoBroker API error: {response.status_code}")
            raise UpstreamError(
                f"API Error: {response.status_code}", status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from {url}: {e}") from e

        if not isinstance(payload, dict):
            logger.error(f"NoBroker API returned {type(payload).__name__}, expected an object")
            raise UpstreamError(f"Unexpected payload from {url}: {type(payload).__name__}")
        return payload
