"""
routes/settings.py — Settings and backup administration routes.

Provides:
- GET  /settings/                 — Stored settings and available backups
- POST /settings/backup/create    — Create a manual backup
- POST /settings/backup/restore   — Restore from a backup
"""

from flask import Blueprint, jsonify, request

from database import get_active_location
from utils.backup import backup_db, list_backups, restore_db

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


@settings_bp.route('/')
def index():
    active = get_active_location()
    return jsonify({
        'success': True,
        'activeLocationId': active.id if active else None,
        'backups': list_backups(),
    })


# ========================================
# Backup Routes
# ========================================

@settings_bp.route('/backup/create', methods=['POST'])
def backup_create():
    """Create a manual backup."""
    filename = backup_db('manual')
    if not filename:
        return jsonify({'success': False, 'error': 'Backup failed'}), 500
    return jsonify({'success': True, 'filename': filename})


@settings_bp.route('/backup/restore', methods=['POST'])
def backup_restore():
    """Restore the database from a backup file. Body: {"filename"}."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400
    filename = (data.get('filename') or '').strip()
    if not filename:
        return jsonify({'success': False, 'error': 'No backup file given'}), 400

    # Create a safety backup before restoring
    backup_db('pre_restore')

    if not restore_db(filename):
        return jsonify({'success': False, 'error': f'Could not restore {filename}'}), 400
    return jsonify({'success': True, 'restored': filename})
