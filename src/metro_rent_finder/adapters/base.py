"""Abstract base adapter for paginated listing sources."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..models.query import SearchQuery


class UpstreamError(Exception):
    """
    The listing source failed or could not be reached.

    ``status_code`` is the upstream HTTP status when there was a response,
    or None for network failures.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BaseAdapter(ABC):
    """
    Abstract base class for all listing source adapters.

    Each adapter must implement:
    - fetch_page(): Retrieve one raw page of search results
    - fetch_nearby(): Retrieve nearby places for a listing

    Subclasses should use the @register_adapter decorator to register
    themselves with the adapter registry.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize adapter with configuration.

        Args:
            config: The ``upstream`` configuration section
        """
        self.config = config
        self.source_name: str = self.__class__.__name__.replace("Adapter", "").lower()

    @abstractmethod
    def fetch_page(self, query: SearchQuery, page: int) -> Dict[str, Any]:
        """
        Fetch one page of search results.

        Args:
            query: The search to run
            page: 1-based page number

        Returns:
            The decoded JSON payload of the page

        Raises:
            UpstreamError: On a non-success status or network failure
        """
        pass

    @abstractmethod
    def fetch_nearby(self, listing_id: str) -> Dict[str, Any]:
        """
        Fetch categorized nearby places for a listing.

        Raises:
            UpstreamError: On a non-success status or network failure
        """
        pass

    def get_source_name(self) -> str:
        """Get the name of this source."""
        return self.source_name
