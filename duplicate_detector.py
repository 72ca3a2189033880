"""
duplicate_detector.py — Detection of duplicate plant records.

Plants are grouped by a species key: the species name with every
parenthesized part removed ("Tomato (Solanum lycopersicum)" -> "tomato"),
lower-cased, with whitespace collapsed. Within a group the member with
the most recent planting activity is kept and the others are proposed
for deletion. The caller may change the proposal before deleting.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from models import Plant, Planting
from utils.validators import parse_timestamp

_PARENTHESIZED = re.compile(r'\([^()]*\)')

NO_ACTIVITY = datetime.min.replace(tzinfo=timezone.utc)


def species_key(species: Optional[str]) -> str:
    """
    Grouping key for a species name.

    Examples:
        "Tomato (Solanum lycopersicum)" -> "tomato"
        "  Basil  " -> "basil"
        "Pepper (hot) (Capsicum)" -> "pepper"
    """
    if not species:
        return ""
    result = species
    # Repeat so nested groups are removed from the inside out
    while True:
        stripped = _PARENTHESIZED.sub(' ', result)
        if stripped == result:
            break
        result = stripped
    return re.sub(r'\s+', ' ', result).strip().lower()


@dataclass
class DuplicateGroup:
    """Plants sharing a species key, newest activity first."""
    canonical_species: str
    members: List[Plant]
    to_delete: Set[str] = field(default_factory=set)

    @property
    def key(self) -> str:
        return species_key(self.canonical_species)

    def toggle(self, plant_id: str) -> bool:
        """
        Flip whether a member is marked for deletion.

        Returns the new marking. Ids outside the group raise KeyError.
        """
        if plant_id not in {plant.id for plant in self.members}:
            raise KeyError(plant_id)
        if plant_id in self.to_delete:
            self.to_delete.discard(plant_id)
            return False
        self.to_delete.add(plant_id)
        return True

    def survivor(self) -> Optional[Plant]:
        """First member, in recency order, not marked for deletion."""
        for plant in self.members:
            if plant.id not in self.to_delete:
                return plant
        return None

    def to_dict(self):
        return {
            'canonicalSpecies': self.canonical_species,
            'members': [plant.to_dict() for plant in self.members],
            'toDelete': [plant.id for plant in self.members if plant.id in self.to_delete],
        }


def last_activity(plant_id: str, plantings: Iterable[Planting]) -> datetime:
    """Latest history date over all plantings of a plant."""
    latest = NO_ACTIVITY
    for planting in plantings:
        if planting.plant_id != plant_id:
            continue
        for entry in planting.history:
            moment = parse_timestamp(entry.date)
            if moment > latest:
                latest = moment
    return latest


def find_duplicate_groups(plants: Iterable[Plant],
                          plantings: Optional[Iterable[Planting]] = None) -> List[DuplicateGroup]:
    """
    Group plants by species key and propose deletions.

    Args:
        plants: The whole plant collection.
        plantings: Plantings used to date each plant's activity. Plants
                   without any dated activity sort last.

    Returns:
        One DuplicateGroup per key with two or more members, in order of
        the key's first appearance. Equal activity dates keep collection
        order.
    """
    plantings = list(plantings or [])

    by_key: Dict[str, List[Plant]] = {}
    for plant in plants:
        by_key.setdefault(species_key(plant.species), []).append(plant)

    groups = []
    for members in by_key.values():
        if len(members) < 2:
            continue

        activity = {plant.id: last_activity(plant.id, plantings) for plant in members}
        members = sorted(members, key=lambda p: activity[p.id], reverse=True)

        groups.append(DuplicateGroup(
            canonical_species=members[0].species,
            members=members,
            to_delete={plant.id for plant in members[1:]},
        ))
    return groups


def selected_deletions(groups: Iterable[DuplicateGroup]) -> Set[str]:
    """Union of the ids marked for deletion across groups."""
    result: Set[str] = set()
    for group in groups:
        result |= group.to_delete
    return result


def survivor_map(groups: Iterable[DuplicateGroup]) -> Dict[str, Optional[str]]:
    """
    Map each id marked for deletion to its group's surviving plant id.

    The value is None when every member of the group is marked.
    """
    mapping: Dict[str, Optional[str]] = {}
    for group in groups:
        keep = group.survivor()
        for plant_id in group.to_delete:
            mapping[plant_id] = keep.id if keep else None
    return mapping
