"""Tests for deduplication service."""

from metro_rent_finder.services.deduplication import dedupe_by, dedupe_listings


class TestDedupeListings:
    """Tests for dedupe_listings."""

    def test_keeps_first_occurrence_in_order(self, make_listing):
        a, b, c = make_listing("A"), make_listing("B"), make_listing("C")

        result = dedupe_listings([a, b, a, c, b])

        assert [p.id for p in result] == ["A", "B", "C"]

    def test_first_record_wins(self, make_listing):
        first = make_listing("A", rent=20000)
        second = make_listing("A", rent=30000)

        result = dedupe_listings([first, second])

        assert len(result) == 1
        assert result[0].rent == 20000

    def test_empty_list(self):
        assert dedupe_listings([]) == []

    def test_all_unique_untouched(self, make_listing):
        listings = [make_listing("A"), make_listing("B")]
        assert dedupe_listings(listings) == listings

    def test_ids_unique_after(self, make_listing):
        ids = ["A", "B", "A", "A", "C", "B", "D"]
        result = dedupe_listings([make_listing(i) for i in ids])
        assert len({p.id for p in result}) == len(result) == 4


class TestDedupeBy:
    """Tests for dedupe_by."""

    def test_custom_key(self):
        records = [{"id": 1, "v": "x"}, {"id": 2}, {"id": 1, "v": "y"}]
        assert dedupe_by(records, lambda r: r["id"]) == [{"id": 1, "v": "x"}, {"id": 2}]
