"""
database.py — SQLite schema creation, seed data, and storage operations.

Stores plants, garden locations, plantings and their status history.
Every multi-row write (dataset import, duplicate removal) runs in a single
transaction so a reader never sees a half-applied change.
Uses WAL mode for concurrent read performance.
"""

import logging
import os
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from flask import current_app, has_app_context

from dataset_reconciler import MutationPlan
from duplicate_detector import species_key
from models import (
    Collection, Conditions, GardenLocation, Plant, Planting, PlantingStatus,
    StatusHistoryEntry,
)
from utils.validators import parse_season

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'garden.db')


def get_db_path() -> str:
    """Database path: app config 'DATABASE', else $GARDEN_DB_PATH, else data/garden.db."""
    if has_app_context():
        configured = current_app.config.get('DATABASE')
        if configured:
            return configured
    return os.environ.get('GARDEN_DB_PATH', DEFAULT_DB_PATH)


def get_db():
    """Get a database connection with WAL mode and foreign keys enabled."""
    db_path = get_db_path()
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='seconds').replace('+00:00', 'Z')


def init_db():
    """Create all tables and indexes if they don't exist."""
    conn = get_db()
    cursor = conn.cursor()

    # Table: settings (active location, ...)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)

    # Table: plants
    # - species_key: species without parenthesized parts, for duplicate lookup
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS plants (
            id TEXT PRIMARY KEY,
            species TEXT NOT NULL,
            species_key TEXT NOT NULL DEFAULT '',
            germination_needs TEXT NOT NULL DEFAULT '',
            optimal_conditions TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_plants_species_key
        ON plants(species_key)
    """)

    # Table: locations
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS locations (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            location TEXT NOT NULL DEFAULT '',
            temperature_unit TEXT NOT NULL DEFAULT 'F' CHECK (temperature_unit IN ('C', 'F')),
            temperature TEXT NOT NULL DEFAULT '',
            sunlight TEXT NOT NULL DEFAULT '',
            soil TEXT NOT NULL DEFAULT '',
            current_season TEXT CHECK (current_season IN ('Spring', 'Summer', 'Autumn', 'Winter')),
            growing_systems TEXT,
            growing_methods TEXT
        )
    """)

    # Table: plantings
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS plantings (
            id TEXT PRIMARY KEY,
            plant_id TEXT NOT NULL REFERENCES plants(id),
            garden_id TEXT NOT NULL REFERENCES locations(id) ON DELETE CASCADE,
            name TEXT,
            created_at TEXT,
            seeds_on_hand INTEGER CHECK (seeds_on_hand IS NULL OR seeds_on_hand >= 0),
            planned_qty INTEGER CHECK (planned_qty IS NULL OR planned_qty >= 0)
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_plantings_plant
        ON plantings(plant_id)
    """)
    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_plantings_garden
        ON plantings(garden_id)
    """)

    # Table: status_history
    # - seq preserves append order; entry_id is only unique within a planting
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS status_history (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            planting_id TEXT NOT NULL REFERENCES plantings(id) ON DELETE CASCADE,
            entry_id TEXT NOT NULL,
            status TEXT NOT NULL CHECK (status IN
                ('Wishlist', 'Planning', 'Planting', 'Growing', 'Harvest', 'Dormant')),
            date TEXT NOT NULL,
            notes TEXT
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_status_history_planting
        ON status_history(planting_id, seq)
    """)

    conn.commit()
    conn.close()


def seed_defaults():
    """Populate the starter plants if the plant table is empty. Idempotent."""
    from sample_data import STARTER_PLANTS

    conn = get_db()
    try:
        existing = conn.execute("SELECT COUNT(*) FROM plants").fetchone()[0]
        if existing == 0:
            for plant in STARTER_PLANTS:
                _insert_plant(conn, plant)
            conn.commit()
            logger.info("Seeded %d starter plants", len(STARTER_PLANTS))
    finally:
        conn.close()


# ========================================
# Row mapping
# ========================================

def _plant_from_row(row) -> Plant:
    return Plant(
        id=row['id'],
        species=row['species'],
        germination_needs=row['germination_needs'],
        optimal_conditions=row['optimal_conditions'],
    )


def _location_from_row(row) -> GardenLocation:
    return GardenLocation(
        id=row['id'],
        name=row['name'],
        location=row['location'],
        temperature_unit=row['temperature_unit'],
        conditions=Conditions(
            temperature=row['temperature'],
            sunlight=row['sunlight'],
            soil=row['soil'],
            current_season=parse_season(row['current_season']),
        ),
        growing_systems=row['growing_systems'],
        growing_methods=row['growing_methods'],
    )


def _load_plantings(conn, where: str = "", params=()) -> List[Planting]:
    rows = conn.execute(
        f"SELECT * FROM plantings {where} ORDER BY rowid", params
    ).fetchall()
    if not rows:
        return []

    history: Dict[str, List[StatusHistoryEntry]] = {}
    entries = conn.execute(
        f"""SELECT status_history.* FROM status_history
            JOIN plantings ON status_history.planting_id = plantings.id
            {where} ORDER BY seq""",
        params
    ).fetchall()
    for entry in entries:
        history.setdefault(entry['planting_id'], []).append(StatusHistoryEntry(
            id=entry['entry_id'],
            status=PlantingStatus(entry['status']),
            date=entry['date'],
            notes=entry['notes'],
        ))

    return [
        Planting(
            id=row['id'],
            plant_id=row['plant_id'],
            garden_id=row['garden_id'],
            history=history.get(row['id'], []),
            seeds_on_hand=row['seeds_on_hand'],
            planned_qty=row['planned_qty'],
            name=row['name'],
            created_at=row['created_at'],
        )
        for row in rows
    ]


# ========================================
# Insert helpers (caller owns the transaction)
# ========================================

def _insert_plant(conn, plant: Plant):
    conn.execute(
        """INSERT INTO plants (id, species, species_key, germination_needs, optimal_conditions)
           VALUES (?, ?, ?, ?, ?)""",
        (plant.id, plant.species, species_key(plant.species),
         plant.germination_needs or '', plant.optimal_conditions or '')
    )


def _insert_location(conn, location: GardenLocation):
    conditions = location.conditions or Conditions()
    conn.execute(
        """INSERT INTO locations (id, name, location, temperature_unit, temperature, sunlight,
                                  soil, current_season, growing_systems, growing_methods)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (location.id, location.name, location.location or '', location.temperature_unit or 'F',
         conditions.temperature or '', conditions.sunlight or '', conditions.soil or '',
         conditions.current_season.value if conditions.current_season else None,
         location.growing_systems, location.growing_methods)
    )


def _insert_history_entry(conn, planting_id: str, entry: StatusHistoryEntry):
    conn.execute(
        """INSERT INTO status_history (planting_id, entry_id, status, date, notes)
           VALUES (?, ?, ?, ?, ?)""",
        (planting_id, entry.id, entry.status.value, entry.date, entry.notes)
    )


def _insert_planting(conn, planting: Planting):
    created_at = planting.created_at
    if not created_at:
        created_at = planting.history[0].date if planting.history else utc_now_iso()

    conn.execute(
        """INSERT INTO plantings (id, plant_id, garden_id, name, created_at, seeds_on_hand, planned_qty)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (planting.id, planting.plant_id, planting.garden_id, planting.name, created_at,
         planting.seeds_on_hand, planting.planned_qty)
    )
    for entry in planting.history:
        _insert_history_entry(conn, planting.id, entry)


def _write(operation, description):
    """Run operation(conn) in one transaction; rollback and re-raise on failure."""
    conn = get_db()
    try:
        result = operation(conn)
        conn.commit()
        return result
    except Exception:
        conn.rollback()
        logger.error("Rolled back %s", description)
        raise
    finally:
        conn.close()


# ========================================
# Plants
# ========================================

def get_plants() -> List[Plant]:
    """Retrieve all plants in insertion order."""
    conn = get_db()
    rows = conn.execute("SELECT * FROM plants ORDER BY rowid").fetchall()
    conn.close()
    return [_plant_from_row(row) for row in rows]


def get_plant(plant_id: str) -> Optional[Plant]:
    """Retrieve a single plant by ID."""
    conn = get_db()
    row = conn.execute("SELECT * FROM plants WHERE id = ?", (plant_id,)).fetchone()
    conn.close()
    return _plant_from_row(row) if row else None


def create_plant(plant: Plant) -> Plant:
    """Insert a plant, minting an id when it has none."""
    if not plant.id:
        plant.id = uuid.uuid4().hex
    _write(lambda conn: _insert_plant(conn, plant), f"create plant {plant.id}")
    logger.info("Created plant %s (%s)", plant.id, plant.species)
    return plant


def update_plant(plant: Plant) -> bool:
    """Update a plant's fields. Returns False if it does not exist."""
    def operation(conn):
        cursor = conn.execute(
            """UPDATE plants SET species = ?, species_key = ?, germination_needs = ?,
                                 optimal_conditions = ?
               WHERE id = ?""",
            (plant.species, species_key(plant.species), plant.germination_needs or '',
             plant.optimal_conditions or '', plant.id)
        )
        return cursor.rowcount > 0

    return _write(operation, f"update plant {plant.id}")


def delete_plant(plant_id: str) -> bool:
    """Delete a plant and the plantings that reference it."""
    def operation(conn):
        conn.execute("DELETE FROM plantings WHERE plant_id = ?", (plant_id,))
        cursor = conn.execute("DELETE FROM plants WHERE id = ?", (plant_id,))
        return cursor.rowcount > 0

    deleted = _write(operation, f"delete plant {plant_id}")
    if deleted:
        logger.info("Deleted plant %s", plant_id)
    return deleted


def delete_duplicates(survivors: Dict[str, Optional[str]]) -> int:
    """
    Delete duplicate plants, moving their plantings to the surviving plant.

    Args:
        survivors: plant id to delete -> id of the plant that takes over its
                   plantings, or None to delete those plantings too.

    Returns:
        Number of plants deleted.
    """
    def operation(conn):
        deleted = 0
        for plant_id, keep_id in survivors.items():
            if keep_id:
                conn.execute(
                    "UPDATE plantings SET plant_id = ? WHERE plant_id = ?", (keep_id, plant_id)
                )
            else:
                conn.execute("DELETE FROM plantings WHERE plant_id = ?", (plant_id,))
            deleted += conn.execute("DELETE FROM plants WHERE id = ?", (plant_id,)).rowcount
        return deleted

    deleted = _write(operation, "duplicate removal")
    logger.info("Removed %d duplicate plants", deleted)
    return deleted


# ========================================
# Locations
# ========================================

def get_locations() -> List[GardenLocation]:
    """Retrieve all garden locations."""
    conn = get_db()
    rows = conn.execute("SELECT * FROM locations ORDER BY rowid").fetchall()
    conn.close()
    return [_location_from_row(row) for row in rows]


def get_location(location_id: str) -> Optional[GardenLocation]:
    """Retrieve a single location by ID."""
    conn = get_db()
    row = conn.execute("SELECT * FROM locations WHERE id = ?", (location_id,)).fetchone()
    conn.close()
    return _location_from_row(row) if row else None


def create_location(location: GardenLocation) -> GardenLocation:
    if not location.id:
        location.id = uuid.uuid4().hex
    _write(lambda conn: _insert_location(conn, location), f"create location {location.id}")
    logger.info("Created location %s (%s)", location.id, location.name)
    return location


def update_location(location: GardenLocation) -> bool:
    """Replace a location's fields. Returns False if it does not exist."""
    def operation(conn):
        existed = conn.execute(
            "SELECT 1 FROM locations WHERE id = ?", (location.id,)
        ).fetchone()
        if not existed:
            return False
        conditions = location.conditions or Conditions()
        conn.execute(
            """UPDATE locations SET name = ?, location = ?, temperature_unit = ?, temperature = ?,
                                    sunlight = ?, soil = ?, current_season = ?,
                                    growing_systems = ?, growing_methods = ?
               WHERE id = ?""",
            (location.name, location.location or '', location.temperature_unit or 'F',
             conditions.temperature or '', conditions.sunlight or '', conditions.soil or '',
             conditions.current_season.value if conditions.current_season else None,
             location.growing_systems, location.growing_methods, location.id)
        )
        return True

    return _write(operation, f"update location {location.id}")


def delete_location(location_id: str) -> bool:
    """Delete a location; its plantings go with it."""
    def operation(conn):
        cursor = conn.execute("DELETE FROM locations WHERE id = ?", (location_id,))
        conn.execute(
            "DELETE FROM settings WHERE key = 'active_location_id' AND value = ?", (location_id,)
        )
        return cursor.rowcount > 0

    deleted = _write(operation, f"delete location {location_id}")
    if deleted:
        logger.info("Deleted location %s", location_id)
    return deleted


# ========================================
# Plantings
# ========================================

def get_plantings(garden_id: Optional[str] = None) -> List[Planting]:
    """Retrieve plantings with their history, optionally for one location."""
    conn = get_db()
    try:
        if garden_id:
            return _load_plantings(conn, "WHERE garden_id = ?", (garden_id,))
        return _load_plantings(conn)
    finally:
        conn.close()


def get_planting(planting_id: str) -> Optional[Planting]:
    conn = get_db()
    try:
        found = _load_plantings(conn, "WHERE id = ?", (planting_id,))
        return found[0] if found else None
    finally:
        conn.close()


def create_planting(planting: Planting, status: PlantingStatus = PlantingStatus.WISHLIST,
                    notes: Optional[str] = None) -> Planting:
    """
    Insert a planting. A planting without history is seeded with one
    entry of the given status, so the history is never empty.
    """
    if not planting.id:
        planting.id = uuid.uuid4().hex
    if not planting.history:
        planting.history = [StatusHistoryEntry(
            id=uuid.uuid4().hex, status=status, date=utc_now_iso(), notes=notes
        )]
    _write(lambda conn: _insert_planting(conn, planting), f"create planting {planting.id}")
    logger.info("Created planting %s for plant %s in %s",
                planting.id, planting.plant_id, planting.garden_id)
    return planting


def append_status(planting_id: str, status: PlantingStatus, notes: Optional[str] = None,
                  date: Optional[str] = None) -> Optional[StatusHistoryEntry]:
    """
    Append a status entry to a planting's history.

    Any status may follow any other. Returns None if the planting does
    not exist.
    """
    entry = StatusHistoryEntry(
        id=uuid.uuid4().hex, status=status, date=date or utc_now_iso(), notes=notes
    )

    def operation(conn):
        exists = conn.execute("SELECT 1 FROM plantings WHERE id = ?", (planting_id,)).fetchone()
        if not exists:
            return None
        _insert_history_entry(conn, planting_id, entry)
        return entry

    return _write(operation, f"status change of planting {planting_id}")


def delete_planting(planting_id: str) -> bool:
    deleted = _write(
        lambda conn: conn.execute("DELETE FROM plantings WHERE id = ?", (planting_id,)).rowcount > 0,
        f"delete planting {planting_id}"
    )
    if deleted:
        logger.info("Deleted planting %s", planting_id)
    return deleted


# ========================================
# Whole collection and imports
# ========================================

def get_collection() -> Collection:
    """Snapshot of every plant, planting and location."""
    return Collection(plants=get_plants(), plantings=get_plantings(), locations=get_locations())


def apply_mutation_plan(plan: MutationPlan) -> Dict[str, int]:
    """
    Apply a reconciler MutationPlan atomically.

    Deletes run first (history and plantings before plants and
    locations), then creates. Any failure rolls the whole plan back.

    Returns:
        The plan's summary counts.
    """
    def operation(conn):
        for planting_id in plan.deletes.plantings:
            conn.execute("DELETE FROM plantings WHERE id = ?", (planting_id,))
        for plant_id in plan.deletes.plants:
            conn.execute("DELETE FROM plants WHERE id = ?", (plant_id,))
        for location_id in plan.deletes.locations:
            conn.execute("DELETE FROM locations WHERE id = ?", (location_id,))
        if plan.deletes.locations:
            conn.execute("DELETE FROM settings WHERE key = 'active_location_id'")

        for location in plan.creates.locations:
            _insert_location(conn, location)
        for plant in plan.creates.plants:
            _insert_plant(conn, plant)
        for planting in plan.creates.plantings:
            _insert_planting(conn, planting)

    if plan.is_noop():
        logger.info("Import (%s) has nothing to apply", plan.mode.value)
        return plan.summary()

    _write(operation, f"{plan.mode.value} import")
    logger.info("Applied %s import: %s", plan.mode.value, plan.summary())
    return plan.summary()


# ========================================
# Settings
# ========================================

def get_setting(key, default=None):
    """Get a setting value by key."""
    conn = get_db()
    row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    if row:
        return row['value']
    return default


def set_setting(key, value):
    _write(
        lambda conn: conn.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, value)
        ),
        f"setting {key}"
    )


def get_active_location() -> Optional[GardenLocation]:
    """The active location, falling back to the first one stored."""
    location_id = get_setting('active_location_id')
    if location_id:
        location = get_location(location_id)
        if location:
            return location
    locations = get_locations()
    return locations[0] if locations else None


def set_active_location(location_id: str) -> bool:
    if get_location(location_id) is None:
        return False
    set_setting('active_location_id', location_id)
    return True
