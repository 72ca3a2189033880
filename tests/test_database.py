"""
tests/test_database.py — Tests for SQLite storage, imports and backups.

Tests cover:
- Starter data seeding
- Plantings and their status history
- Cascading deletes and duplicate removal
- Applying reconciler plans atomically
- Backup and snapshot files
"""

import json
import os
import sqlite3

import pytest

from database import (
    append_status, apply_mutation_plan, create_location, create_planting, delete_duplicates,
    delete_location, get_active_location, get_collection, get_db_path, get_planting,
    get_plantings, get_plants, init_db, seed_defaults, set_active_location,
)
from dataset_reconciler import MutationPlan, reconcile
from models import (
    Conditions, GardenLocation, ImportMode, Plant, Planting, PlantingStatus,
)
from sample_data import STARTER_PLANTS, load_dataset
from utils.backup import backup_db, list_backups, restore_db
from utils.snapshots import save_snapshot


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """Fresh database file for each test."""
    db_path = str(tmp_path / 'garden.db')
    monkeypatch.setenv('GARDEN_DB_PATH', db_path)
    assert get_db_path() == db_path

    init_db()
    seed_defaults()
    yield db_path


@pytest.fixture
def backyard(temp_db):
    return create_location(GardenLocation(
        id='loc1', name='Backyard',
        conditions=Conditions(sunlight='Full sun', temperature='Warm', soil='Well-drained'),
    ))


# ========================================
# Seeding Tests
# ========================================

class TestSeeding:

    def test_starter_plants(self, temp_db):
        species = [p.species for p in get_plants()]
        assert species == [p.species for p in STARTER_PLANTS]

    def test_seed_is_idempotent(self, temp_db):
        seed_defaults()
        assert len(get_plants()) == len(STARTER_PLANTS)

    def test_unknown_dataset(self):
        with pytest.raises(KeyError):
            load_dataset('atlantis')


# ========================================
# Planting Tests
# ========================================

class TestPlantings:

    def test_new_planting_has_history(self, backyard):
        planting = create_planting(Planting(plant_id='starter-basil', garden_id='loc1'))
        stored = get_planting(planting.id)
        assert len(stored.history) == 1
        assert stored.history[0].status == PlantingStatus.WISHLIST
        assert stored.created_at == stored.history[0].date

    def test_append_status_keeps_order(self, backyard):
        planting = create_planting(Planting(id='pl', plant_id='starter-basil', garden_id='loc1'))
        append_status('pl', PlantingStatus.PLANTING, date='2030-01-01T00:00:00Z')
        append_status('pl', PlantingStatus.WISHLIST, notes='Back to the list',
                      date='2030-02-01T00:00:00Z')

        history = get_planting(planting.id).history
        assert [e.status for e in history] == [
            PlantingStatus.WISHLIST, PlantingStatus.PLANTING, PlantingStatus.WISHLIST,
        ]
        assert history[-1].notes == 'Back to the list'

    def test_append_status_to_missing_planting(self, temp_db):
        assert append_status('nope', PlantingStatus.GROWING) is None

    def test_location_delete_cascades(self, backyard):
        create_planting(Planting(id='pl', plant_id='starter-carrot', garden_id='loc1'))
        set_active_location('loc1')

        assert delete_location('loc1')
        assert get_plantings() == []
        assert get_active_location() is None

    def test_negative_count_rejected_by_schema(self, backyard):
        with pytest.raises(sqlite3.IntegrityError):
            create_planting(Planting(id='pl', plant_id='starter-carrot', garden_id='loc1',
                                     seeds_on_hand=-3))
        assert get_plantings() == []


class TestActiveLocation:

    def test_falls_back_to_first_location(self, backyard):
        create_location(GardenLocation(id='loc2', name='Balcony'))
        assert get_active_location().id == 'loc1'
        assert set_active_location('loc2')
        assert get_active_location().id == 'loc2'

    def test_unknown_location_not_activated(self, backyard):
        assert not set_active_location('ghost')


# ========================================
# Duplicate Removal Tests
# ========================================

def test_delete_duplicates_moves_plantings(backyard):
    apply_mutation_plan(reconcile(
        get_collection(),
        load_dataset('default-us'),
        ImportMode.CREATE_NEW,
    ))
    plant_ids = [p.id for p in get_plants() if p.species.startswith('Zucchini')]
    create_planting(Planting(id='mine', plant_id='starter-tomato', garden_id='loc1'))

    deleted = delete_duplicates({'starter-tomato': plant_ids[0], 'starter-basil': None})

    assert deleted == 2
    moved = get_planting('mine')
    assert moved.plant_id == plant_ids[0]
    assert 'starter-basil' not in {p.id for p in get_plants()}


# ========================================
# Import Tests
# ========================================

class TestApplyPlan:

    def test_add_to_existing_import(self, backyard):
        plan = reconcile(get_collection(), load_dataset('default-us'),
                         'add-to-existing', target_location_id='loc1')
        summary = apply_mutation_plan(plan)

        assert summary['plantings_added'] == 3
        plantings = get_plantings('loc1')
        assert len(plantings) == 3
        assert all(p.history for p in plantings)
        assert len(get_collection().locations) == 1

    def test_repeat_import_reuses_plants(self, backyard):
        for _ in range(2):
            apply_mutation_plan(reconcile(get_collection(), load_dataset('new-zealand'),
                                          'add-to-existing', target_location_id='loc1'))
        assert len(get_plants()) == len(STARTER_PLANTS) + 3
        assert len(get_plantings('loc1')) == 6

    def test_replace_import(self, backyard):
        set_active_location('loc1')
        apply_mutation_plan(reconcile(get_collection(), load_dataset('new-zealand'), 'replace'))

        collection = get_collection()
        assert [loc.name for loc in collection.locations] == ['Kitchen Garden']
        assert [p.id for p in collection.plants] == ['p-1', 'p-2', 'p-3']
        assert get_active_location().id == 'loc-1'
        assert get_active_location().temperature_unit == 'C'

    def test_noop_plan_writes_nothing(self, backyard):
        summary = apply_mutation_plan(MutationPlan(mode=ImportMode.REPLACE))
        assert summary['plants_added'] == 0
        assert len(get_plants()) == len(STARTER_PLANTS)

    def test_failed_plan_rolls_back(self, backyard):
        plan = MutationPlan(mode=ImportMode.CREATE_NEW)
        plan.creates.plants = [Plant(id='dup', species='Okra'), Plant(id='dup', species='Okra')]

        with pytest.raises(sqlite3.IntegrityError):
            apply_mutation_plan(plan)
        assert 'dup' not in {p.id for p in get_plants()}


# ========================================
# Backup and Snapshot Tests
# ========================================

class TestBackups:

    def test_backup_and_restore(self, backyard):
        filename = backup_db('manual')
        assert filename.startswith('garden_') and filename.endswith('_manual.db')
        assert list_backups()[0]['reason'] == 'manual'

        delete_location('loc1')
        assert restore_db(filename)
        assert [loc.id for loc in get_collection().locations] == ['loc1']

    def test_restore_rejects_paths(self, temp_db):
        assert not restore_db('../garden.db')
        assert not restore_db('garden_missing.db')

    def test_snapshot_is_importable(self, backyard):
        filename = save_snapshot('test')
        path = os.path.join(os.path.dirname(get_db_path()), 'snapshots', filename)
        with open(path, encoding='utf-8') as f:
            data = json.load(f)

        assert 'exportedAt' in data
        assert [loc['id'] for loc in data['locations']] == ['loc1']
        assert len(data['plants']) == len(STARTER_PLANTS)
