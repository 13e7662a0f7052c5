"""JSON API proxying the upstream search for the browser front end."""

import logging
from typing import Optional

from flask import Flask, current_app, jsonify, request

from ..adapters.base import UpstreamError
from ..config import get_env, load_config
from ..finder import RentFinder
from ..models.listing import Listing
from ..models.query import AnchorPoint, SearchQuery, parse_types
from ..services.filtering import (
    WISHLIST_VIEW,
    FilterState,
    available_building_types,
    filter_and_sort,
    map_center,
)
from ..utils.logging import setup_logging_from_config

logger = logging.getLogger(__name__)


def create_app(finder: Optional[RentFinder] = None) -> Flask:
    """
    Build the Flask app around one RentFinder.

    The finder (and with it the wishlist store) is created once here and
    shared by every request.
    """
    app = Flask(__name__)
    app.extensions["rent_finder"] = finder or RentFinder()

    app.add_url_rule("/api/properties", view_func=api_properties)
    app.add_url_rule("/api/nearby", view_func=api_nearby)
    app.add_url_rule("/api/clusters", view_func=api_clusters)
    app.add_url_rule("/api/search", view_func=api_search)
    app.add_url_rule("/api/wishlist", view_func=api_get_wishlist, methods=["GET"])
    app.add_url_rule("/api/wishlist", view_func=api_add_to_wishlist, methods=["POST"])
    app.add_url_rule("/api/wishlist", view_func=api_clear_wishlist, methods=["DELETE"])
    app.add_url_rule("/api/wishlist/<path:listing_id>", view_func=api_wishlist_contains, methods=["GET"])
    app.add_url_rule("/api/wishlist/<path:listing_id>", view_func=api_remove_from_wishlist, methods=["DELETE"])
    return app


def get_finder() -> RentFinder:
    return current_app.extensions["rent_finder"]


def _query_from_request(finder: RentFinder) -> SearchQuery:
    """
    Parse the search query parameters.

    Raises:
        ValueError: With a client-facing message when parameters are invalid
    """
    try:
        radius = float(request.args.get("radius") or finder.radius)
    except ValueError:
        raise ValueError("Invalid radius parameter")
    types = parse_types(request.args.get("type"), finder.default_types)
    furnishing = request.args.get("furnishing") or None

    locations_param = request.args.get("locations")
    if locations_param:
        try:
            query = SearchQuery.from_locations_json(
                locations_param, radius=radius, types=types, furnishing=furnishing, city=finder.city
            )
        except ValueError as e:
            logger.error(f"Failed to parse locations param: {e}")
            raise ValueError("Invalid locations parameter")
        return query

    lat = request.args.get("lat")
    lon = request.args.get("lon")
    if not lat or not lon:
        raise ValueError("Locations or Lat/Lon required")
    try:
        anchor = AnchorPoint(lat=float(lat), lon=float(lon), place_name="Selected Location")
    except ValueError:
        raise ValueError("Invalid Lat/Lon parameters")
    return finder.build_query([anchor], radius=radius, types=types, furnishing=furnishing)


# Routes
def api_properties():
    """Fetch every page of results for the given locations."""
    finder = get_finder()
    try:
        query = _query_from_request(finder)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = finder.aggregate(query)
    except UpstreamError as e:
        logger.error(f"API Proxy Error: {e}")
        return jsonify({"error": "Internal Server Error"}), 500

    return jsonify(result.to_response())


def api_nearby():
    """Pass through nearby places for a listing."""
    listing_id = request.args.get("propertyId")
    if not listing_id:
        return jsonify({"error": "propertyId is required"}), 400

    try:
        data = get_finder().nearby(listing_id)
    except UpstreamError as e:
        if e.status_code is not None:
            return jsonify({"error": "Failed to fetch nearby places"}), e.status_code
        logger.error(f"Nearby API error: {e}")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(data)


def api_clusters():
    """Configured station clusters."""
    finder = get_finder()
    return jsonify({
        "default": finder.default_cluster_id,
        "clusters": [cluster.to_dict() for cluster in finder.clusters],
    })


def api_search():
    """Search a cluster and return deduplicated, filtered, sorted listings."""
    finder = get_finder()
    try:
        filters = FilterState.from_params(request.args)
        session = finder.new_session(request.args.get("cluster"), filters)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        session.refresh(reset_stations=False)
    except UpstreamError as e:
        logger.error(f"Search failed: {e}")
        return jsonify({"error": "Internal Server Error"}), 500

    visible = session.visible()
    result = session.last_result
    return jsonify({
        "cluster": session.cluster.id,
        "data": [listing.to_dict() for listing in visible],
        "count": len(visible),
        "unique_count": len(session.listings),
        "fetched_count": result.fetched_count,
        "total_count": result.total_count,
        "total_pages": result.total_pages,
        "buildingTypes": session.building_types(),
    })


def api_get_wishlist():
    """Saved listings, filtered and sorted with the wishlist view rules."""
    wishlist = get_finder().wishlist
    saved = wishlist.listings()
    try:
        filters = FilterState.from_params(request.args, FilterState.for_wishlist())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    visible = filter_and_sort(saved, filters, profile=WISHLIST_VIEW)
    lat, lon = map_center(visible or saved)
    return jsonify({
        "data": [listing.to_dict() for listing in visible],
        "count": len(visible),
        "total": len(saved),
        "buildingTypes": available_building_types(saved),
        "center": {"lat": lat, "lon": lon},
    })


def api_add_to_wishlist():
    """Save a listing record."""
    record = request.get_json(silent=True)
    if not isinstance(record, dict):
        return jsonify({"error": "Listing JSON body is required"}), 400
    try:
        listing = Listing.from_api(record)
    except (ValueError, TypeError) as e:
        return jsonify({"error": str(e)}), 400

    added = get_finder().save_to_wishlist(listing)
    return jsonify({"added": added, "id": listing.id}), 201 if added else 200


def api_wishlist_contains(listing_id):
    return jsonify({"id": listing_id, "saved": get_finder().wishlist.contains(listing_id)})


def api_remove_from_wishlist(listing_id):
    removed = get_finder().wishlist.remove(listing_id)
    return jsonify({"removed": removed, "id": listing_id})


def api_clear_wishlist():
    get_finder().wishlist.clear()
    return jsonify({"success": True})


def serve() -> None:
    """Run the development server."""
    config = load_config()
    setup_logging_from_config(config)
    port = int(get_env("PORT", "5000"))
    app = create_app(RentFinder(config))
    logger.info(f"Starting server at http://0.0.0.0:{port}")
    app.run(host="0.0.0.0", port=port, debug=get_env("FLASK_DEBUG", "") == "1")


if __name__ == "__main__":
    serve()
