"""Command line entry point for the rent finder."""

import argparse
import logging
import sys
from typing import List

from .adapters.base import UpstreamError
from .config import load_config
from .finder import RentFinder
from .models.listing import Listing
from .models.nearby import NEARBY_CATEGORIES, parse_nearby
from .services.filtering import WISHLIST_VIEW, FilterState, SortOrder, filter_and_sort
from .utils.logging import setup_logging, setup_logging_from_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Metro Rent Finder - rental search along metro corridors"
    )
    parser.add_argument("-c", "--config", help="Path to configuration file")
    parser.add_argument("--cluster", help="Cluster to search (e.g. purple_east, green_south)")
    parser.add_argument("--list-clusters", action="store_true", help="Show configured clusters and exit")
    parser.add_argument("--type", action="append", default=None, help="BHK type, repeatable (e.g. BHK2)")
    parser.add_argument("--furnishing", action="append", default=None, help="Furnishing code, repeatable")
    parser.add_argument("--min-rent", type=float, help="Minimum rent")
    parser.add_argument("--max-rent", type=float, help="Maximum rent")
    parser.add_argument("--min-size", type=float, default=0, help="Minimum size in sqft")
    parser.add_argument("--balconies", type=int, help="Minimum balconies")
    parser.add_argument("--bathrooms", type=int, help="Minimum bathrooms")
    parser.add_argument("--building-type", action="append", default=[], help="Building type code, repeatable")
    parser.add_argument("--amenity", action="append", default=[], help="Required amenity code, repeatable")
    parser.add_argument("--station", action="append", default=[], help="Only listings near this station, repeatable")
    parser.add_argument("--images-only", action="store_true", help="Only listings with photos")
    parser.add_argument("-q", "--query", default="", help="Text to match in locality or title")
    parser.add_argument(
        "--sort",
        choices=[order.value for order in SortOrder],
        default=SortOrder.RENT_ASC.value,
        help="Sort order",
    )
    parser.add_argument("--limit", type=int, default=10, help="Number of listings to print")
    parser.add_argument("--save", metavar="ID", action="append", default=[], help="Save a search result to the wishlist")
    parser.add_argument("--wishlist", action="store_true", help="Show the wishlist instead of searching")
    parser.add_argument("--clear-wishlist", action="store_true", help="Remove every saved listing")
    parser.add_argument("--nearby", metavar="ID", help="Show places near a listing and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser


def filters_from_args(args: argparse.Namespace, wishlist: bool = False) -> FilterState:
    """Translate CLI flags into a FilterState for the chosen view."""
    state = FilterState.for_wishlist() if wishlist else FilterState()
    if args.min_rent is not None:
        state.rent_min = args.min_rent
    if args.max_rent is not None:
        state.rent_max = args.max_rent
    if args.type is not None:
        state.types = list(args.type)
    if args.furnishing is not None:
        state.furnishing = list(args.furnishing)
    state.size_min = args.min_size
    state.balconies = args.balconies
    state.bathrooms = args.bathrooms
    state.building_types = list(args.building_type)
    state.amenities = list(args.amenity)
    state.stations = list(args.station)
    state.with_images_only = args.images_only
    state.search_query = args.query
    state.sort_by = SortOrder.parse(args.sort)
    return state


def print_listings(listings: List[Listing], limit: int) -> None:
    for listing in listings[:limit]:
        print(f"  - [{listing.id}] {listing.title[:60]}")
        print(f"    {listing.display_rent()} | {listing.display_size()} | {listing.locality}")
        link = listing.detail_link()
        if link:
            print(f"    {link}")


def main():
    """CLI entry point."""
    args = build_parser().parse_args()
    setup_logging("DEBUG" if args.verbose else None)

    try:
        config = load_config(args.config, required=bool(args.config))
        setup_logging_from_config(config, verbose=args.verbose)
        finder = RentFinder(config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    if args.list_clusters:
        for cluster in finder.clusters:
            names = ", ".join(loc.place_name for loc in cluster.locations)
            print(f"{cluster.id}: {cluster.name} ({names})")
        return

    if args.clear_wishlist:
        finder.wishlist.clear()
        print("Wishlist cleared")
        return

    if args.nearby:
        try:
            grouped = parse_nearby(finder.nearby(args.nearby))
        except UpstreamError as e:
            logger.error(f"Could not fetch nearby places: {e}")
            sys.exit(1)
        if not grouped:
            print("No nearby places data available.")
        for key, label in NEARBY_CATEGORIES:
            places = grouped.get(key)
            if not places:
                continue
            print(f"\n{label}: {len(places)} nearby")
            for place in places[:5]:
                extra = f" ({place.duration})" if place.duration else ""
                rating = f" ★ {place.rating}" if place.rating else ""
                print(f"  - {place.name}: {place.distance}{extra}{rating}")
        return

    if args.wishlist:
        saved = finder.wishlist.listings()
        visible = filter_and_sort(saved, filters_from_args(args, wishlist=True), profile=WISHLIST_VIEW)
        print(f"\n=== Wishlist: {len(visible)} of {len(saved)} saved listings ===")
        print_listings(visible, args.limit)
        return

    try:
        session = finder.new_session(args.cluster, filters_from_args(args))
        session.refresh(reset_stations=False)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    except UpstreamError as e:
        logger.error(f"Search failed: {e}")
        sys.exit(1)

    visible = session.visible()
    print(f"\n=== {session.cluster.name}: {len(visible)} properties found ===")
    print_listings(visible, args.limit)

    by_id = {listing.id: listing for listing in session.listings}
    for listing_id in args.save:
        listing = by_id.get(listing_id)
        if listing is None:
            print(f"Not in current results: {listing_id}")
        elif finder.save_to_wishlist(listing):
            print(f"Saved {listing_id}")
        else:
            print(f"Already saved: {listing_id}")


if __name__ == "__main__":
    main()
