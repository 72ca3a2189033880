"""
routes/gardens.py — Garden location API routes.

Provides:
- GET  /gardens/                 — List locations and the active one
- POST /gardens/add              — Add a location
- GET  /gardens/<id>             — Location with its plantings and their viability
- POST /gardens/<id>/edit        — Edit a location
- POST /gardens/<id>/activate    — Make a location the active one
- POST /gardens/<id>/delete      — Delete a location and its plantings
"""

import logging
import uuid

from flask import Blueprint, jsonify, request

from database import (
    create_location, delete_location, get_active_location, get_location, get_locations,
    get_plantings, get_plants, set_active_location, update_location,
)
from utils.validators import ValidationError, location_from_dict
from viability_engine import current_status, score_location_viability, sort_by_viability

logger = logging.getLogger(__name__)

gardens_bp = Blueprint('gardens', __name__, url_prefix='/gardens')


@gardens_bp.route('/')
def list_gardens():
    """All locations plus the active location id."""
    active = get_active_location()
    return jsonify({
        'success': True,
        'locations': [loc.to_dict() for loc in get_locations()],
        'activeLocationId': active.id if active else None,
    })


@gardens_bp.route('/add', methods=['POST'])
def add_garden():
    """Add a location; the first location becomes the active one."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400
    data.setdefault('id', uuid.uuid4().hex)

    try:
        location = location_from_dict(data)
        if get_location(location.id):
            return jsonify({'success': False, 'error': f'Location {location.id} already exists'}), 400
        first = not get_locations()
        create_location(location)
        if first or data.get('activate'):
            set_active_location(location.id)
        return jsonify({'success': True, 'location': location.to_dict()})
    except ValidationError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Adding location failed")
        return jsonify({'success': False, 'error': str(e)}), 500


@gardens_bp.route('/<garden_id>')
def garden_detail(garden_id):
    """A location and its plantings, best viability first."""
    location = get_location(garden_id)
    if not location:
        return jsonify({'success': False, 'error': 'Location not found'}), 404

    plants_by_id = {plant.id: plant for plant in get_plants()}
    plantings = sort_by_viability(get_plantings(garden_id), plants_by_id, location)

    rows = []
    for planting in plantings:
        plant = plants_by_id.get(planting.plant_id)
        status = current_status(planting)
        rows.append({
            **planting.to_dict(),
            'species': plant.species if plant else None,
            'status': status.value if status else None,
            'viability': score_location_viability(plant, location).value if plant else None,
        })

    return jsonify({'success': True, 'location': location.to_dict(), 'plantings': rows})


@gardens_bp.route('/<garden_id>/edit', methods=['POST'])
def edit_garden(garden_id):
    """Edit a location. Fields left out of the body keep their value."""
    existing = get_location(garden_id)
    if not existing:
        return jsonify({'success': False, 'error': 'Location not found'}), 404

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400
    merged = {**existing.to_dict(), **data, 'id': garden_id}
    if 'conditions' in data and isinstance(data['conditions'], dict):
        merged['conditions'] = {**existing.conditions.to_dict(), **data['conditions']}

    try:
        location = location_from_dict(merged)
        update_location(location)
        return jsonify({'success': True, 'location': location.to_dict()})
    except ValidationError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Editing location %s failed", garden_id)
        return jsonify({'success': False, 'error': str(e)}), 500


@gardens_bp.route('/<garden_id>/activate', methods=['POST'])
def activate_garden(garden_id):
    if not set_active_location(garden_id):
        return jsonify({'success': False, 'error': 'Location not found'}), 404
    return jsonify({'success': True, 'activeLocationId': garden_id})


@gardens_bp.route('/<garden_id>/delete', methods=['POST'])
def remove_garden(garden_id):
    try:
        if not delete_location(garden_id):
            return jsonify({'success': False, 'error': 'Location not found'}), 404
        return jsonify({'success': True})
    except Exception as e:
        logger.exception("Deleting location %s failed", garden_id)
        return jsonify({'success': False, 'error': str(e)}), 500
