"""Shared fixtures for rent finder tests."""

import json
from urllib.parse import parse_qs, urlparse

import pytest
import responses

from metro_rent_finder.adapters.base import BaseAdapter, UpstreamError
from metro_rent_finder.adapters.nobroker import NoBrokerAdapter
from metro_rent_finder.models.listing import Listing
from metro_rent_finder.models.query import AnchorPoint, Cluster, SearchQuery

SEARCH_URL = NoBrokerAdapter.BASE_URL


def make_record(listing_id, **overrides):
    """A raw upstream search record."""
    record = {
        "id": listing_id,
        "propertyTitle": f"2 BHK Flat In {listing_id}",
        "rent": 25000,
        "deposit": 100000,
        "propertySize": 1100,
        "bathroom": 2,
        "balconies": 1,
        "type": "BHK2",
        "typeDesc": "2 BHK",
        "furnishing": "SEMI_FURNISHED",
        "furnishingDesc": "Semi",
        "buildingType": "AP",
        "latitude": 12.978,
        "longitude": 77.638,
        "locality": "Indiranagar",
        "photos": [{"imagesMap": {"medium": "a_medium.jpg", "original": "a.jpg"}}],
        "amenitiesMap": {"GYM": True, "LIFT": True, "POOL": False},
        "score": {"lifestyle": 7.5, "transit": 8.0},
        "detailUrl": f"/property/{listing_id}/detail",
    }
    record.update(overrides)
    return record


@pytest.fixture
def make_listing():
    """Factory for Listing objects built from upstream records."""

    def _make(listing_id="p1", **overrides):
        return Listing.from_api(make_record(listing_id, **overrides))

    return _make


@pytest.fixture
def indiranagar():
    return AnchorPoint(lat=12.9782619, lon=77.6385257, place_name="Indiranagara", place_id="abc")


@pytest.fixture
def cubbon_park():
    return AnchorPoint(lat=12.9809008, lon=77.5974654, place_name="Cubbon Park")


@pytest.fixture
def cluster(indiranagar, cubbon_park):
    return Cluster(
        id="purple_east",
        name="Purple Line (East)",
        color="bg-purple-600",
        center=(12.978, 77.62),
        locations=(indiranagar, cubbon_park),
    )


@pytest.fixture
def query(indiranagar):
    return SearchQuery(anchors=(indiranagar,))


def page_payload(records, total_count):
    return {"status": 200, "data": records, "otherParams": {"total_count": total_count}}


def register_search(pages, failures=None):
    """
    Mock the upstream search endpoint.

    ``pages`` maps page number to a payload dict; ``failures`` maps page
    number to an HTTP status to return instead.
    """
    failures = failures or {}

    def callback(request):
        page = int(parse_qs(urlparse(request.url).query)["pageNo"][0])
        if page in failures:
            return (failures[page], {}, json.dumps({"error": "boom"}))
        payload = pages.get(page, page_payload([], 0))
        return (200, {}, json.dumps(payload))

    responses.add_callback(
        responses.GET, SEARCH_URL, callback=callback, content_type="application/json"
    )


def requested_pages():
    """Page numbers requested from the search endpoint so far."""
    pages = []
    for call in responses.calls:
        if call.request.url.startswith(SEARCH_URL):
            pages.append(int(parse_qs(urlparse(call.request.url).query)["pageNo"][0]))
    return sorted(pages)


class FakeAdapter(BaseAdapter):
    """In-memory adapter serving canned pages."""

    def __init__(self, pages=None, nearby=None, error=None):
        super().__init__({})
        self.pages = pages or {}
        self.nearby = nearby or {}
        self.error = error
        self.calls = []

    def fetch_page(self, query, page):
        self.calls.append((query, page))
        if self.error:
            raise self.error
        return self.pages.get(page, page_payload([], 0))

    def fetch_nearby(self, listing_id):
        if self.error:
            raise self.error
        if listing_id not in self.nearby:
            raise UpstreamError("API Error: 404", status_code=404)
        return self.nearby[listing_id]
