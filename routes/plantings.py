"""
routes/plantings.py — Planting API routes.

Provides:
- POST /plantings/add               — Add a planting (seeded with one status entry)
- GET  /plantings/<id>              — Planting with its full history
- POST /plantings/<id>/status       — Append a status entry
- POST /plantings/<id>/delete       — Delete a planting
"""

import logging
import uuid

from flask import Blueprint, jsonify, request

from database import (
    append_status, create_planting, delete_planting, get_active_location, get_location,
    get_plant, get_planting,
)
from models import PlantingStatus
from utils.validators import ValidationError, parse_status, parse_timestamp, planting_from_dict

logger = logging.getLogger(__name__)

plantings_bp = Blueprint('plantings', __name__, url_prefix='/plantings')


@plantings_bp.route('/add', methods=['POST'])
def add_planting():
    """
    Add a planting of a stored plant.

    Body: {"plantId", "gardenId"?, "name"?, "status"?, "notes"?,
           "seedsOnHand"?, "plannedQty"?}. The garden defaults to the
    active location and the status to Wishlist.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400
    data.setdefault('id', uuid.uuid4().hex)
    if not data.get('gardenId'):
        active = get_active_location()
        data['gardenId'] = active.id if active else None

    try:
        status = parse_status(data.get('status') or PlantingStatus.WISHLIST.value)
        planting = planting_from_dict({k: v for k, v in data.items() if k != 'history'})
        if get_plant(planting.plant_id) is None:
            return jsonify({'success': False, 'error': 'Plant not found'}), 404
        if get_location(planting.garden_id) is None:
            return jsonify({'success': False, 'error': 'Location not found'}), 404
        create_planting(planting, status=status, notes=data.get('notes'))
        return jsonify({'success': True, 'planting': planting.to_dict()})
    except ValidationError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Adding planting failed")
        return jsonify({'success': False, 'error': str(e)}), 500


@plantings_bp.route('/<planting_id>')
def planting_detail(planting_id):
    planting = get_planting(planting_id)
    if not planting:
        return jsonify({'success': False, 'error': 'Planting not found'}), 404
    return jsonify({'success': True, 'planting': planting.to_dict()})


@plantings_bp.route('/<planting_id>/status', methods=['POST'])
def change_status(planting_id):
    """Append a status entry. Body: {"status", "notes"?, "date"?}."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

    try:
        status = parse_status(data.get('status'))
        date = data.get('date')
        if date:
            parse_timestamp(date)
        entry = append_status(planting_id, status, notes=data.get('notes'), date=date)
        if entry is None:
            return jsonify({'success': False, 'error': 'Planting not found'}), 404
        return jsonify({'success': True, 'entry': entry.to_dict()})
    except ValidationError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Status change of planting %s failed", planting_id)
        return jsonify({'success': False, 'error': str(e)}), 500


@plantings_bp.route('/<planting_id>/delete', methods=['POST'])
def remove_planting(planting_id):
    try:
        if not delete_planting(planting_id):
            return jsonify({'success': False, 'error': 'Planting not found'}), 404
        return jsonify({'success': True})
    except Exception as e:
        logger.exception("Deleting planting %s failed", planting_id)
        return jsonify({'success': False, 'error': str(e)}), 500
