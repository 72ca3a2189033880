"""
routes/main.py — Dashboard route.

Provides:
- GET / — Active location, its plantings ordered by viability, the
          wishlist grouped by season, and the last backup
- GET /csrf-token — CSRF token for POST requests

Every POST route is CSRF protected: send the token from /csrf-token (or
the dashboard) in the X-CSRFToken header.
"""

from flask import Blueprint, jsonify, request
from flask_wtf.csrf import generate_csrf

from database import get_active_location, get_location, get_locations, get_plantings, get_plants
from utils.backup import list_backups
from viability_engine import (
    best_season, current_status, group_wishlist_by_season, score_location_viability,
    sort_by_viability,
)

main_bp = Blueprint('main', __name__)


def _planting_row(planting, plant, location):
    status = current_status(planting)
    current_season = location.conditions.current_season if location else None
    season = best_season(plant, current_season) if plant else None
    return {
        'id': planting.id,
        'name': planting.name or (plant.species if plant else None),
        'plantId': planting.plant_id,
        'species': plant.species if plant else None,
        'status': status.value if status else None,
        'viability': score_location_viability(plant, location).value if plant else None,
        'bestSeason': season.value if season else None,
    }


@main_bp.route('/')
def index():
    """Dashboard for the selected location (?location=<id>, default: active)."""
    locations = get_locations()

    location_id = request.args.get('location')
    location = get_location(location_id) if location_id else get_active_location()
    if location_id and location is None:
        return jsonify({'success': False, 'error': 'Location not found'}), 404

    plants_by_id = {plant.id: plant for plant in get_plants()}
    plantings = get_plantings(location.id) if location else []

    ordered = [
        _planting_row(p, plants_by_id.get(p.plant_id), location)
        for p in sort_by_viability(plantings, plants_by_id, location)
    ]
    wishlist = [
        {
            'season': season.value if season else None,
            'plantings': [_planting_row(p, plants_by_id[p.plant_id], location) for p in members],
        }
        for season, members in group_wishlist_by_season(plantings, plants_by_id, location)
    ]

    backups = list_backups()
    last_backup = backups[0] if backups else None

    return jsonify({
        'success': True,
        'locations': [{'id': loc.id, 'name': loc.name} for loc in locations],
        'location': location.to_dict() if location else None,
        'plantings': ordered,
        'wishlistBySeason': wishlist,
        'plantCount': len(plants_by_id),
        'lastBackup': last_backup,
        'csrfToken': generate_csrf(),
    })


@main_bp.route('/csrf-token')
def csrf_token():
    """Token to send back in the X-CSRFToken header of POST requests."""
    return jsonify({'success': True, 'csrfToken': generate_csrf()})
