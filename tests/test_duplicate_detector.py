"""
tests/test_duplicate_detector.py — Tests for duplicate plant detection.

Tests cover:
- Species key normalization
- Grouping and recency ordering
- Toggling the proposed deletions
- Survivor mapping used to move plantings
"""

import pytest

from duplicate_detector import (
    find_duplicate_groups, last_activity, selected_deletions, species_key, survivor_map,
    NO_ACTIVITY,
)
from models import Plant, Planting, PlantingStatus, StatusHistoryEntry


def planting_on(planting_id, plant_id, *dates):
    return Planting(
        id=planting_id, plant_id=plant_id, garden_id='loc1',
        history=[StatusHistoryEntry(id=f'h{i}', status=PlantingStatus.GROWING, date=date)
                 for i, date in enumerate(dates)],
    )


# ========================================
# Species Key Tests
# ========================================

class TestSpeciesKey:

    def test_scientific_name_removed(self):
        assert species_key('Tomato (Solanum lycopersicum)') == 'tomato'

    def test_every_group_removed(self):
        assert species_key('Pepper (hot) (Capsicum annuum)') == 'pepper'

    def test_nested_groups_removed(self):
        assert species_key('Bean (Phaseolus (pole))') == 'bean'

    def test_whitespace_collapsed(self):
        assert species_key('  Sweet   Basil ') == 'sweet basil'
        assert species_key('Sweet (Genovese) Basil') == 'sweet basil'

    def test_empty(self):
        assert species_key(None) == ''
        assert species_key('') == ''


# ========================================
# Grouping Tests
# ========================================

class TestGrouping:

    def test_most_recent_activity_survives(self):
        plants = [
            Plant(id='A', species='Tomato'),
            Plant(id='B', species='Tomato (Solanum lycopersicum)'),
        ]
        plantings = [
            planting_on('pa', 'A', '2024-01-01T00:00:00Z'),
            planting_on('pb', 'B', '2023-12-01T00:00:00Z', '2024-06-01T00:00:00Z'),
        ]
        groups = find_duplicate_groups(plants, plantings)

        assert len(groups) == 1
        group = groups[0]
        assert [p.id for p in group.members] == ['B', 'A']
        assert group.survivor().id == 'B'
        assert group.to_delete == {'A'}
        assert group.canonical_species == 'Tomato (Solanum lycopersicum)'

    def test_activity_spans_all_plantings(self):
        plantings = [
            planting_on('p1', 'A', '2024-01-01T00:00:00Z'),
            planting_on('p2', 'A', '2024-08-01T00:00:00Z'),
            planting_on('p3', 'B', '2024-09-01T00:00:00Z'),
        ]
        assert last_activity('A', plantings).month == 8
        assert last_activity('C', plantings) == NO_ACTIVITY

    def test_tie_keeps_collection_order(self):
        plants = [
            Plant(id='first', species='Basil'),
            Plant(id='second', species='basil'),
            Plant(id='third', species='BASIL (Ocimum)'),
        ]
        group = find_duplicate_groups(plants)[0]
        assert [p.id for p in group.members] == ['first', 'second', 'third']
        assert group.to_delete == {'second', 'third'}

    def test_undated_plants_sort_last(self):
        plants = [Plant(id='old', species='Kale'), Plant(id='used', species='Kale')]
        plantings = [planting_on('p1', 'used', '2020-01-01T00:00:00Z')]
        group = find_duplicate_groups(plants, plantings)[0]
        assert group.survivor().id == 'used'

    def test_singletons_not_grouped(self):
        plants = [Plant(id='1', species='Carrot'), Plant(id='2', species='Leek')]
        assert find_duplicate_groups(plants) == []

    def test_one_representative_per_species(self):
        plants = [
            Plant(id='t1', species='Tomato'),
            Plant(id='t2', species='tomato (Roma)'),
            Plant(id='t3', species='TOMATO'),
            Plant(id='b1', species='Basil'),
            Plant(id='b2', species='Basil (Thai)'),
            Plant(id='c1', species='Carrot'),
        ]
        groups = find_duplicate_groups(plants)
        remaining = [p for p in plants if p.id not in selected_deletions(groups)]

        keys = [species_key(p.species) for p in remaining]
        assert sorted(keys) == ['basil', 'carrot', 'tomato']

    def test_to_dict(self):
        plants = [Plant(id='x', species='Leek'), Plant(id='y', species='Leek')]
        data = find_duplicate_groups(plants)[0].to_dict()
        assert data['canonicalSpecies'] == 'Leek'
        assert [m['id'] for m in data['members']] == ['x', 'y']
        assert data['toDelete'] == ['y']


# ========================================
# Selection Tests
# ========================================

class TestSelection:

    def setup_method(self):
        plants = [Plant(id='a', species='Pea'), Plant(id='b', species='Pea (snow)')]
        self.group = find_duplicate_groups(plants)[0]

    def test_toggle_unmarks_and_marks(self):
        assert self.group.toggle('b') is False
        assert self.group.to_delete == set()
        assert self.group.toggle('a') is True
        assert self.group.survivor().id == 'b'

    def test_toggle_outsider_raises(self):
        with pytest.raises(KeyError):
            self.group.toggle('zzz')

    def test_survivor_map(self):
        assert survivor_map([self.group]) == {'b': 'a'}

    def test_survivor_map_with_all_marked(self):
        self.group.toggle('a')
        assert survivor_map([self.group]) == {'a': None, 'b': None}
