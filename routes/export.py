"""
routes/export.py — JSON and Excel export routes.

Provides:
- GET  /export/json                 — Whole collection as an importable dataset
- POST /export/snapshot             — Save a JSON snapshot beside the database
- GET  /export/xlsx/<garden_id>     — Download Excel for one location
"""

from flask import Blueprint, jsonify, send_file

from utils.backup import backup_db
from utils.export import generate_excel
from utils.snapshots import build_snapshot, save_snapshot

export_bp = Blueprint('export', __name__, url_prefix='/export')


@export_bp.route('/json')
def export_json():
    return jsonify(build_snapshot())


@export_bp.route('/snapshot', methods=['POST'])
def export_snapshot():
    """Write the collection to a timestamped JSON file."""
    try:
        filename = save_snapshot('manual')
    except OSError as e:
        return jsonify({'success': False, 'error': str(e)}), 500
    return jsonify({'success': True, 'filename': filename})


@export_bp.route('/xlsx/<garden_id>')
def export_excel(garden_id):
    """Export a location's plantings as Excel."""
    # Auto-backup before export
    backup_db('export')

    buffer, filename = generate_excel(garden_id)
    if not buffer:
        return jsonify({'success': False, 'error': 'No plantings to export for this location'}), 404

    return send_file(
        buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
