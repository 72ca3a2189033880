"""
utils/snapshots.py — JSON snapshots of the whole collection.

A snapshot has the same shape as a generated dataset
({locations, plants, plantings}) plus an export timestamp, so a saved
snapshot can be imported again through the reconciler.
"""

import json
import logging
import os
from datetime import datetime

from database import get_collection, get_db_path
from models import AiDataset

logger = logging.getLogger(__name__)


def build_snapshot():
    """Current collection as a JSON-ready dict."""
    collection = get_collection()
    snapshot = AiDataset(
        locations=collection.locations,
        plants=collection.plants,
        plantings=collection.plantings,
    ).to_dict()
    snapshot['exportedAt'] = datetime.now().isoformat(timespec='seconds')
    return snapshot


def save_snapshot(reason='manual'):
    """
    Write the current collection to snapshots/ beside the database.

    Returns:
        Filename of the saved snapshot.
    """
    snapshot_dir = os.path.join(os.path.dirname(os.path.abspath(get_db_path())), 'snapshots')
    os.makedirs(snapshot_dir, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    filename = f"garden_{timestamp}_{reason}.json"
    filepath = os.path.join(snapshot_dir, filename)

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(build_snapshot(), f, ensure_ascii=False, indent=2)

    logger.info("Saved collection snapshot %s", filename)
    return filename
