"""
routes/data_import.py — Dataset import routes.

Provides:
- GET  /import/datasets   — Canned datasets available for import
- POST /import/preview    — Compute the mutation plan without applying it
- POST /import/           — Compute and apply the mutation plan

Request body for preview/import:
    {
        "mode": "replace" | "add-to-existing" | "create-new",
        "dataset": {"locations": [...], "plants": [...], "plantings": [...]},
        "datasetKey": "default-us",        # instead of "dataset"
        "targetLocationId": "..."          # add-to-existing only
    }

A database backup is taken before a replace import is applied.
"""

import logging

from flask import Blueprint, jsonify, request

from database import apply_mutation_plan, get_active_location, get_collection
from dataset_reconciler import reconcile
from models import ImportMode
from sample_data import list_datasets, load_dataset
from utils.backup import backup_db
from utils.validators import GardenError, dataset_from_dict, validate_import_mode

logger = logging.getLogger(__name__)

import_bp = Blueprint('data_import', __name__, url_prefix='/import')


def _plan_from_request(data):
    """Parse the request body and reconcile it against the stored collection."""
    mode = validate_import_mode(data.get('mode'))

    if data.get('datasetKey'):
        incoming = load_dataset(data['datasetKey'])
    else:
        incoming = dataset_from_dict(data.get('dataset'))

    target_location_id = data.get('targetLocationId')
    if mode == ImportMode.ADD_TO_EXISTING and not target_location_id:
        active = get_active_location()
        target_location_id = active.id if active else None

    return reconcile(get_collection(), incoming, mode, target_location_id=target_location_id)


@import_bp.route('/datasets')
def datasets():
    return jsonify({'success': True, 'datasets': list_datasets()})


@import_bp.route('/preview', methods=['POST'])
def preview_import():
    """Return the plan an import would apply, without writing anything."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

    try:
        plan = _plan_from_request(data)
        return jsonify({'success': True, 'plan': plan.to_dict()})
    except KeyError as e:
        return jsonify({'success': False, 'error': e.args[0] if e.args else str(e)}), 400
    except GardenError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Import preview failed")
        return jsonify({'success': False, 'error': str(e)}), 500


@import_bp.route('/', methods=['POST'])
def run_import():
    """Import a dataset in the requested mode."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

    try:
        plan = _plan_from_request(data)
        if plan.mode == ImportMode.REPLACE and not plan.is_noop():
            backup_db('pre_import')
        summary = apply_mutation_plan(plan)
        return jsonify({
            'success': True,
            'mode': plan.mode.value,
            'summary': summary,
            'idRemap': plan.id_remap,
        })
    except KeyError as e:
        return jsonify({'success': False, 'error': e.args[0] if e.args else str(e)}), 400
    except GardenError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Import failed")
        return jsonify({'success': False, 'error': str(e)}), 500
