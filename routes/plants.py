"""
routes/plants.py — Plant API routes.

Provides:
- GET  /plants/                      — List all plants
- POST /plants/add                   — Add a plant
- GET  /plants/<id>                  — Get a plant with its seasons
- POST /plants/<id>/edit             — Edit a plant
- POST /plants/<id>/delete           — Delete a plant and its plantings
- GET  /plants/<id>/viability        — Viability against a location (?location=<id>)
- GET  /plants/duplicates            — Duplicate groups with proposed deletions
- POST /plants/duplicates/delete     — Delete the selected duplicates
"""

import logging
import uuid

from flask import Blueprint, jsonify, request

from database import (
    create_plant, delete_duplicates, delete_plant, get_active_location, get_location,
    get_plant, get_plantings, get_plants, update_plant,
)
from duplicate_detector import find_duplicate_groups, selected_deletions, survivor_map
from utils.backup import backup_db
from utils.validators import GardenError, ValidationError, plant_from_dict
from viability_engine import get_suitable_seasons, score_location_viability

logger = logging.getLogger(__name__)

plants_bp = Blueprint('plants', __name__, url_prefix='/plants')


def _plant_payload(plant):
    payload = plant.to_dict()
    payload['seasons'] = [season.value for season in get_suitable_seasons(plant)]
    return payload


# ========================================
# Plant CRUD
# ========================================

@plants_bp.route('/')
def list_plants():
    """Get all plants (JSON API)."""
    try:
        plants = get_plants()
        return jsonify({'success': True, 'plants': [_plant_payload(p) for p in plants]})
    except Exception as e:
        logger.exception("Listing plants failed")
        return jsonify({'success': False, 'error': str(e)}), 500


@plants_bp.route('/add', methods=['POST'])
def add_plant():
    """Add a new plant. An id is minted when none is given."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400
    data.setdefault('id', uuid.uuid4().hex)

    try:
        plant = plant_from_dict(data)
        if get_plant(plant.id):
            return jsonify({'success': False, 'error': f'Plant {plant.id} already exists'}), 400
        create_plant(plant)
        return jsonify({'success': True, 'plant': _plant_payload(plant)})
    except ValidationError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Adding plant failed")
        return jsonify({'success': False, 'error': str(e)}), 500


@plants_bp.route('/<plant_id>')
def get_plant_detail(plant_id):
    """Get a single plant (JSON API)."""
    plant = get_plant(plant_id)
    if not plant:
        return jsonify({'success': False, 'error': 'Plant not found'}), 404
    return jsonify({'success': True, 'plant': _plant_payload(plant)})


@plants_bp.route('/<plant_id>/edit', methods=['POST'])
def edit_plant(plant_id):
    """Edit a plant. Fields left out of the body keep their value."""
    existing = get_plant(plant_id)
    if not existing:
        return jsonify({'success': False, 'error': 'Plant not found'}), 404

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400
    merged = {**existing.to_dict(), **data, 'id': plant_id}

    try:
        plant = plant_from_dict(merged)
        update_plant(plant)
        return jsonify({'success': True, 'plant': _plant_payload(plant)})
    except ValidationError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Editing plant %s failed", plant_id)
        return jsonify({'success': False, 'error': str(e)}), 500


@plants_bp.route('/<plant_id>/delete', methods=['POST'])
def remove_plant(plant_id):
    """Delete a plant and every planting of it."""
    try:
        if not delete_plant(plant_id):
            return jsonify({'success': False, 'error': 'Plant not found'}), 404
        return jsonify({'success': True})
    except Exception as e:
        logger.exception("Deleting plant %s failed", plant_id)
        return jsonify({'success': False, 'error': str(e)}), 500


# ========================================
# Viability
# ========================================

@plants_bp.route('/<plant_id>/viability')
def plant_viability(plant_id):
    """Viability and seasons of a plant for a location (default: active location)."""
    plant = get_plant(plant_id)
    if not plant:
        return jsonify({'success': False, 'error': 'Plant not found'}), 404

    location_id = request.args.get('location')
    location = get_location(location_id) if location_id else get_active_location()
    if location is None:
        return jsonify({'success': False, 'error': 'Location not found'}), 404

    return jsonify({
        'success': True,
        'plantId': plant.id,
        'locationId': location.id,
        'viability': score_location_viability(plant, location).value,
        'seasons': [season.value for season in get_suitable_seasons(plant)],
    })


# ========================================
# Duplicates
# ========================================

@plants_bp.route('/duplicates')
def list_duplicates():
    """Duplicate groups, newest activity first, with the proposed deletions."""
    try:
        groups = find_duplicate_groups(get_plants(), get_plantings())
        return jsonify({
            'success': True,
            'groups': [group.to_dict() for group in groups],
            'toDelete': sorted(selected_deletions(groups)),
        })
    except GardenError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Duplicate detection failed")
        return jsonify({'success': False, 'error': str(e)}), 500


@plants_bp.route('/duplicates/delete', methods=['POST'])
def delete_selected_duplicates():
    """
    Delete the duplicates chosen by the user.

    Body: {"delete": [plant ids]}. Omitting "delete" accepts the proposal.
    Ids outside any duplicate group are ignored. Plantings of a deleted
    plant move to the surviving member of its group.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

    try:
        groups = find_duplicate_groups(get_plants(), get_plantings())
        if 'delete' in data:
            chosen = set(data.get('delete') or [])
            for group in groups:
                group.to_delete = {p.id for p in group.members if p.id in chosen}

        if not selected_deletions(groups):
            return jsonify({'success': True, 'deleted': 0})

        backup_db('pre_dedupe')
        deleted = delete_duplicates(survivor_map(groups))
        return jsonify({'success': True, 'deleted': deleted})
    except GardenError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Duplicate removal failed")
        return jsonify({'success': False, 'error': str(e)}), 500
