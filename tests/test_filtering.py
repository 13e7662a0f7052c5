"""Tests for the filter and sort pipeline."""

import pytest

from metro_rent_finder.models.query import AnchorPoint
from metro_rent_finder.services.filtering import (
    DEFAULT_MAP_CENTER,
    PRIMARY_VIEW,
    WISHLIST_VIEW,
    FilterState,
    SortOrder,
    available_building_types,
    filter_and_sort,
    filter_listings,
    is_near,
    map_center,
    sort_listings,
)


def photos(count):
    return [{"imagesMap": {"medium": f"m{i}.jpg"}} for i in range(count)]


@pytest.fixture
def open_filters():
    """Filters that let any positively priced listing through."""
    return FilterState(rent_min=0, rent_max=1_000_000, types=[])


class TestRentAndImages:
    """Tests for rent bounds and the image rule."""

    def test_conjunction_of_rent_and_images(self, make_listing):
        a = make_listing("A", rent=20000, photos=photos(1))
        b = make_listing("B", rent=60000, photos=photos(1))
        c = make_listing("C", rent=25000, photos=[])
        state = FilterState(rent_min=10000, rent_max=50000, with_images_only=True)

        assert [p.id for p in filter_and_sort([a, b, c], state)] == ["A"]

    def test_rent_bounds_inclusive(self, make_listing):
        low = make_listing("low", rent=5000)
        high = make_listing("high", rent=50000)

        result = filter_listings([low, high], FilterState())

        assert [p.id for p in result] == ["low", "high"]

    def test_primary_drops_unpriced(self, make_listing, open_filters):
        unpriced = make_listing("A", rent=0)
        assert filter_listings([unpriced], open_filters) == []

    def test_wishlist_keeps_unpriced(self, make_listing, open_filters):
        unpriced = make_listing("A", rent=0)
        assert filter_listings([unpriced], open_filters, profile=WISHLIST_VIEW) == [unpriced]

    def test_primary_image_fallback(self, make_listing, open_filters):
        listing = make_listing("A", photos=[], originalImageUrl="https://img.example/a.jpg")
        open_filters.with_images_only = True

        assert filter_listings([listing], open_filters) == [listing]

    def test_wishlist_needs_more_than_two_photos(self, make_listing, open_filters):
        two = make_listing("two", photos=photos(2), originalImageUrl="https://img.example/a.jpg")
        three = make_listing("three", photos=photos(3))
        open_filters.with_images_only = True

        result = filter_listings([two, three], open_filters, profile=WISHLIST_VIEW)

        assert [p.id for p in result] == ["three"]


class TestAmenities:
    """Tests for amenity matching."""

    def test_primary_requires_all(self, make_listing, open_filters):
        both = make_listing("both", amenitiesMap={"GYM": True, "LIFT": True})
        one = make_listing("one", amenitiesMap={"GYM": True, "LIFT": False})
        open_filters.amenities = ["GYM", "LIFT"]

        assert [p.id for p in filter_listings([both, one], open_filters)] == ["both"]

    def test_wishlist_requires_any(self, make_listing, open_filters):
        both = make_listing("both", amenitiesMap={"GYM": True, "LIFT": True})
        one = make_listing("one", amenitiesMap={"GYM": True, "LIFT": False})
        none = make_listing("none", amenitiesMap={"POOL": True})
        open_filters.amenities = ["GYM", "LIFT"]

        result = filter_listings([both, one, none], open_filters, profile=WISHLIST_VIEW)

        assert [p.id for p in result] == ["both", "one"]

    def test_missing_amenity_map_excluded(self, make_listing, open_filters):
        listing = make_listing("A", amenitiesMap=None)
        open_filters.amenities = ["GYM"]

        assert filter_listings([listing], open_filters) == []


class TestOtherFilters:
    """Tests for size, rooms, building type, categories and text search."""

    def test_size_min(self, make_listing, open_filters):
        small = make_listing("small", propertySize=600)
        big = make_listing("big", propertySize=1200)
        open_filters.size_min = 1000

        assert [p.id for p in filter_listings([small, big], open_filters)] == ["big"]

    def test_balconies_and_bathrooms_minimum(self, make_listing, open_filters):
        a = make_listing("A", balconies=2, bathroom=2)
        b = make_listing("B", balconies=0, bathroom=3)
        c = make_listing("C", bathroom=1)
        open_filters.balconies = 1
        open_filters.bathrooms = 2

        assert [p.id for p in filter_listings([a, b, c], open_filters)] == ["A"]

    def test_building_types(self, make_listing, open_filters):
        ap = make_listing("ap", buildingType="AP")
        ih = make_listing("ih", buildingType="IH")
        unknown = make_listing("unknown", buildingType=None)
        open_filters.building_types = ["IH"]

        assert [p.id for p in filter_listings([ap, ih, unknown], open_filters)] == ["ih"]

    def test_text_search_case_insensitive(self, make_listing, open_filters):
        by_locality = make_listing("A", locality="HSR Layout", propertyTitle="Flat")
        by_title = make_listing("B", locality="Koramangala", propertyTitle="Near HSR club")
        other = make_listing("C", locality="Jayanagar", propertyTitle="Flat")
        open_filters.search_query = "hsr"

        result = filter_listings([by_locality, by_title, other], open_filters)

        assert [p.id for p in result] == ["A", "B"]

    def test_primary_ignores_type_and_furnishing(self, make_listing):
        listing = make_listing("A", type="BHK3", furnishing="FULLY_FURNISHED")
        state = FilterState(types=["BHK1"], furnishing=["NOT_FURNISHED"])

        assert filter_listings([listing], state) == [listing]

    def test_wishlist_matches_type_and_furnishing(self, make_listing):
        bhk2 = make_listing("bhk2", type="BHK2", furnishing="SEMI_FURNISHED")
        bhk3 = make_listing("bhk3", type="BHK3", furnishing="SEMI_FURNISHED")
        full = make_listing("full", type="BHK2", furnishing="FULLY_FURNISHED")
        state = FilterState.for_wishlist()
        state.types = ["BHK2"]
        state.furnishing = ["SEMI_FURNISHED"]

        result = filter_listings([bhk2, bhk3, full], state, profile=WISHLIST_VIEW)

        assert [p.id for p in result] == ["bhk2"]

    def test_subset_of_input(self, make_listing):
        listings = [make_listing(f"p{i}", rent=4000 + i * 3000) for i in range(20)]
        state = FilterState(balconies=1, size_min=500)

        result = filter_listings(listings, state)

        assert all(p in listings for p in result)
        assert all(state.rent_min <= p.rent <= state.rent_max for p in result)


class TestStations:
    """Tests for station proximity."""

    def test_is_near(self, make_listing, indiranagar):
        near = make_listing("near", latitude=12.99, longitude=77.64)
        far = make_listing("far", latitude=13.00, longitude=77.66)
        unplaced = make_listing("unplaced", latitude=None, longitude=None)

        assert is_near(near, indiranagar)
        assert not is_near(far, indiranagar)
        assert not is_near(unplaced, indiranagar)

    def test_is_near_uses_combined_distance(self, make_listing):
        anchor = AnchorPoint(lat=12.0, lon=77.0, place_name="X")
        # each axis is inside 0.02 but the diagonal is about 0.0212
        diagonal = make_listing("diagonal", latitude=12.015, longitude=77.015)
        closer = make_listing("closer", latitude=12.013, longitude=77.013)

        assert not is_near(diagonal, anchor)
        assert is_near(closer, anchor)

    def test_selected_stations(self, make_listing, cluster):
        by_indiranagar = make_listing("ind", latitude=12.978, longitude=77.639)
        by_cubbon = make_listing("cub", latitude=12.981, longitude=77.598)
        state = FilterState(stations=["Cubbon Park"])

        result = filter_listings([by_indiranagar, by_cubbon], state, anchors=cluster.locations)

        assert [p.id for p in result] == ["cub"]

    def test_union_of_stations(self, make_listing, cluster):
        by_indiranagar = make_listing("ind", latitude=12.978, longitude=77.639)
        by_cubbon = make_listing("cub", latitude=12.981, longitude=77.598)
        state = FilterState(stations=["Cubbon Park", "Indiranagara"])

        result = filter_listings([by_indiranagar, by_cubbon], state, anchors=cluster.locations)

        assert len(result) == 2

    def test_wishlist_ignores_stations(self, make_listing, cluster):
        listing = make_listing("far", latitude=13.2, longitude=77.9)
        state = FilterState.for_wishlist()
        state.stations = ["Cubbon Park"]

        result = filter_listings([listing], state, anchors=cluster.locations, profile=WISHLIST_VIEW)

        assert result == [listing]


class TestSorting:
    """Tests for sort_listings."""

    def test_rent_orders_are_reverses(self, make_listing):
        listings = [make_listing(f"p{rent}", rent=rent) for rent in (30000, 10000, 20000)]

        asc = sort_listings(listings, SortOrder.RENT_ASC)
        desc = sort_listings(listings, SortOrder.RENT_DESC)

        assert [p.rent for p in asc] == [10000, 20000, 30000]
        assert [p.rent for p in desc] == [30000, 20000, 10000]

    def test_size_orders(self, make_listing):
        listings = [make_listing(f"p{size}", propertySize=size) for size in (900, 1500, 600)]

        assert [p.size for p in sort_listings(listings, SortOrder.SIZE_DESC)] == [1500, 900, 600]
        assert [p.size for p in sort_listings(listings, SortOrder.SIZE_ASC)] == [600, 900, 1500]

    def test_lifestyle_missing_score_last(self, make_listing):
        scored = make_listing("scored", score={"lifestyle": 6.0, "transit": 1})
        better = make_listing("better", score={"lifestyle": 9.0, "transit": 1})
        unscored = make_listing("unscored", score=None)

        result = sort_listings([unscored, scored, better], SortOrder.LIFESTYLE)

        assert [p.id for p in result] == ["better", "scored", "unscored"]

    def test_does_not_mutate_input(self, make_listing):
        listings = [make_listing("b", rent=2), make_listing("a", rent=1)]
        sort_listings(listings, SortOrder.RENT_ASC)
        assert [p.id for p in listings] == ["b", "a"]

    def test_unknown_sort_value_is_rent_asc(self):
        assert SortOrder.parse("price_magic") == SortOrder.RENT_ASC
        assert SortOrder.parse(None) == SortOrder.RENT_ASC

    def test_filter_and_sort_pure(self, make_listing):
        listings = [make_listing("b", rent=30000), make_listing("a", rent=10000)]
        state = FilterState()

        assert filter_and_sort(listings, state) == filter_and_sort(listings, state)


class TestFilterState:
    """Tests for FilterState."""

    def test_defaults(self):
        state = FilterState()
        assert (state.rent_min, state.rent_max, state.types) == (5000, 50000, ["BHK2"])
        assert state.sort_by == SortOrder.RENT_ASC

    def test_wishlist_defaults(self):
        state = FilterState.for_wishlist()
        assert (state.rent_min, state.rent_max, state.types) == (0, 200000, [])

    def test_toggle(self):
        state = FilterState()
        state.toggle_amenity("GYM")
        state.toggle_amenity("LIFT")
        state.toggle_amenity("GYM")
        assert state.amenities == ["LIFT"]

    def test_reset_keeps_search_and_stations(self):
        state = FilterState(
            rent_max=90000, amenities=["GYM"], search_query="hsr", stations=["Halasuru"]
        )
        state.reset()

        assert state.rent_max == 50000
        assert state.amenities == []
        assert state.search_query == "hsr"
        assert state.stations == ["Halasuru"]

    def test_active_filter_count(self):
        state = FilterState(
            furnishing=["SEMI_FURNISHED"], amenities=["GYM", "LIFT"], size_min=500,
            bathrooms=2, with_images_only=True,
        )
        assert state.active_filter_count() == 6
        assert FilterState().active_filter_count() == 0

    def test_from_params(self):
        state = FilterState.from_params({
            "rentMin": "10000",
            "rentMax": "40000",
            "type": "BHK1,BHK2",
            "amenities": "GYM,LIFT",
            "balconies": "1",
            "withImagesOnly": "true",
            "q": "hsr",
            "stations": "Halasuru",
            "sortBy": "size_desc",
        })

        assert state.rent_min == 10000
        assert state.rent_max == 40000
        assert state.types == ["BHK1", "BHK2"]
        assert state.amenities == ["GYM", "LIFT"]
        assert state.balconies == 1
        assert state.bathrooms is None
        assert state.with_images_only is True
        assert state.search_query == "hsr"
        assert state.stations == ["Halasuru"]
        assert state.sort_by == SortOrder.SIZE_DESC

    def test_from_params_over_base(self):
        state = FilterState.from_params({"rentMax": "80000"}, FilterState.for_wishlist())
        assert (state.rent_min, state.rent_max) == (0, 80000)

    def test_from_params_bad_number(self):
        with pytest.raises(ValueError):
            FilterState.from_params({"rentMin": "cheap"})


class TestHelpers:
    """Tests for building types and map center."""

    def test_available_building_types(self, make_listing):
        listings = [
            make_listing("a", buildingType="AP"),
            make_listing("b", buildingType=None),
            make_listing("c", buildingType="IH"),
            make_listing("d", buildingType="AP"),
        ]
        assert available_building_types(listings) == ["AP", "IH"]

    def test_map_center_mean(self, make_listing):
        listings = [
            make_listing("a", latitude=12.0, longitude=77.0),
            make_listing("b", latitude=13.0, longitude=78.0),
            make_listing("c", latitude=None, longitude=None),
        ]
        assert map_center(listings) == (12.5, 77.5)

    def test_map_center_default(self):
        assert map_center([]) == DEFAULT_MAP_CENTER


class TestPhotoRuleAlone:
    """A listing inside every other bound is dropped only for missing photos."""

    def test_excluded_only_by_photo_rule(self, make_listing):
        listing = make_listing("A", rent=40000, propertySize=600, photos=[])
        state = FilterState(rent_min=5000, rent_max=50000)

        assert filter_listings([listing], state) == [listing]
        state.with_images_only = True
        assert filter_listings([listing], state) == []

    def test_amenity_mode_decides(self, make_listing, open_filters):
        listing = make_listing("A", amenitiesMap={"GYM": True, "POOL": False})
        open_filters.amenities = ["GYM", "POOL"]

        assert filter_listings([listing], open_filters, profile=PRIMARY_VIEW) == []
        assert filter_listings([listing], open_filters, profile=WISHLIST_VIEW) == [listing]
