"""
utils/backup.py — Database backup and restore operations.

Copies the .db file to a backups/ directory beside it with timestamped
filenames. Backup triggers: before a replace import, before duplicate
removal, manual.
Format: garden_YYYYMMDD_HHMMSS_{reason}.db
"""

import logging
import os
import shutil
from datetime import datetime

from database import get_db_path

logger = logging.getLogger(__name__)

BACKUP_PREFIX = 'garden_'


def get_backup_dir():
    return os.path.join(os.path.dirname(os.path.abspath(get_db_path())), 'backups')


def backup_db(reason='manual'):
    """
    Copy the current database to the backup directory with a timestamped filename.

    Args:
        reason: Short tag for the backup trigger (e.g., 'manual', 'pre_import').

    Returns:
        The filename of the created backup, or None if there is nothing to back up
        or the copy failed.
    """
    db_path = get_db_path()
    backup_dir = get_backup_dir()
    os.makedirs(backup_dir, exist_ok=True)

    if not os.path.exists(db_path):
        return None

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    # Sanitize reason string
    safe_reason = reason.replace(' ', '_').replace('/', '_')[:30]
    filename = f'{BACKUP_PREFIX}{timestamp}_{safe_reason}.db'
    dest = os.path.join(backup_dir, filename)

    try:
        shutil.copy2(db_path, dest)
    except OSError as e:
        logger.warning("Backup %s failed: %s", filename, e)
        return None
    logger.info("Database backed up to %s", filename)
    return filename


def list_backups():
    """
    List all backup files, newest first.

    Returns:
        List of dicts with keys: filename, timestamp, size_bytes, reason.
    """
    backup_dir = get_backup_dir()
    if not os.path.isdir(backup_dir):
        return []

    backups = []
    for f in os.listdir(backup_dir):
        if not (f.startswith(BACKUP_PREFIX) and f.endswith('.db')):
            continue

        # Format: garden_YYYYMMDD_HHMMSS_reason.db
        parts = f[:-len('.db')].split('_')
        timestamp_str = ''
        reason = ''
        if len(parts) >= 3:
            date_part, time_part = parts[1], parts[2]
            timestamp_str = (f'{date_part[:4]}-{date_part[4:6]}-{date_part[6:8]} '
                             f'{time_part[:2]}:{time_part[2:4]}:{time_part[4:6]}')
            reason = '_'.join(parts[3:])

        backups.append({
            'filename': f,
            'timestamp': timestamp_str,
            'size_bytes': os.stat(os.path.join(backup_dir, f)).st_size,
            'reason': reason,
        })

    backups.sort(key=lambda b: b['filename'], reverse=True)
    return backups


def restore_db(filename):
    """
    Replace the current database with a backup file.

    DANGEROUS: This overwrites the current database entirely.

    Returns:
        True on success, False on failure.
    """
    if not filename.startswith(BACKUP_PREFIX) or not filename.endswith('.db'):
        return False
    if os.path.basename(filename) != filename:
        return False

    backup_path = os.path.join(get_backup_dir(), filename)
    if not os.path.exists(backup_path):
        return False

    try:
        shutil.copy2(backup_path, get_db_path())
    except OSError as e:
        logger.warning("Restore of %s failed: %s", filename, e)
        return False
    logger.info("Database restored from %s", filename)
    return True
