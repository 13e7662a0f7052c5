"""Durable wishlist of saved listings."""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ..models.listing import Listing, parse_listings

logger = logging.getLogger(__name__)

STORAGE_KEY = "metro_rent_finder.wishlist"


class JsonFileStorage:
    """
    Key/value storage backed by one JSON document on disk.

    Several namespaced entries can share the file; each write rewrites it.
    """

    DEFAULT_PATH = "./data/wishlist.json"

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or self.DEFAULT_PATH)

    def get(self, key: str) -> Optional[Any]:
        """
        Read an entry.

        Raises:
            OSError, ValueError: If the file cannot be read or parsed
        """
        if not self.path.exists():
            return None
        document = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(document, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return document.get(key)

    def set(self, key: str, value: Any) -> None:
        """
        Write an entry, keeping any others in the document.

        Raises:
            OSError, ValueError: If the file cannot be written
        """
        document = {}
        if self.path.exists():
            try:
                existing = json.loads(self.path.read_text(encoding="utf-8"))
                if isinstance(existing, dict):
                    document = existing
            except ValueError:
                logger.warning(f"Overwriting unreadable storage file {self.path}")
        document[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)


class WishlistStore:
    """
    Deduplicated set of saved listings, keyed by listing id.

    Construct one store at the application root and hand it to consumers.
    Nothing is written to storage until ``hydrate()`` has loaded the saved
    set, so an empty in-memory list never clobbers a stored one. Storage
    failures are logged and otherwise ignored; the in-memory set stays
    authoritative for the running process.
    """

    def __init__(self, storage: JsonFileStorage, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._items: List[Listing] = []
        self._hydrated = False
        self._lock = threading.RLock()

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    def hydrate(self) -> None:
        """Load the stored wishlist once; later calls are no-ops."""
        with self._lock:
            if self._hydrated:
                return

            stored: List[Listing] = []
            try:
                records = self.storage.get(self.key)
                if records:
                    stored = parse_listings(records)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load wishlist: {e}")

            pending = self._items
            self._items = list(stored)
            stored_ids = {listing.id for listing in stored}
            self._items.extend(p for p in pending if p.id not in stored_ids)
            self._hydrated = True
            logger.info(f"Loaded wishlist with {len(stored)} saved listings")

            if pending:
                self._persist()

    def add(self, listing: Listing) -> bool:
        """Save a listing. Returns False if it was already saved."""
        with self._lock:
            if self.contains(listing.id):
                return False
            self._items.append(listing)
            self._persist()
            return True

    def remove(self, listing_id: str) -> bool:
        """Remove a listing. Returns False if it was not saved."""
        with self._lock:
            remaining = [p for p in self._items if p.id != listing_id]
            if len(remaining) == len(self._items):
                return False
            self._items = remaining
            self._persist()
            return True

    def contains(self, listing_id: str) -> bool:
        return any(p.id == listing_id for p in self._items)

    def get(self, listing_id: str) -> Optional[Listing]:
        for listing in self._items:
            if listing.id == listing_id:
                return listing
        return None

    def clear(self) -> None:
        with self._lock:
            self._items = []
            self._persist()

    def listings(self) -> List[Listing]:
        """Snapshot of saved listings in insertion order."""
        return list(self._items)

    def to_records(self) -> List[Dict[str, Any]]:
        return [listing.to_dict() for listing in self._items]

    def _persist(self) -> None:
        if not self._hydrated:
            return
        try:
            self.storage.set(self.key, self.to_records())
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to save wishlist: {e}")

    def __contains__(self, listing_id: str) -> bool:
        return self.contains(listing_id)

    def __iter__(self) -> Iterator[Listing]:
        return iter(self.listings())

    def __len__(self) -> int:
        return len(self._items)
