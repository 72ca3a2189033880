"""
dataset_reconciler.py — Merging of generated or canned datasets.

Computes, without touching storage, the mutations needed to bring an
incoming dataset into the stored collection:

- replace:          delete everything, adopt the incoming ids as-is
- create-new:       keep everything, add incoming locations, plants and
                    plantings under freshly minted ids
- add-to-existing:  attach incoming plantings to an existing location,
                    reusing stored plants of the same species and
                    dropping the incoming location

A dataset with neither plants nor plantings gives an empty plan in every
mode, whatever locations it carries.

The resulting MutationPlan is checked for dangling plantId/gardenId
references before it is returned. Applying it is the job of
database.apply_mutation_plan(), in a single transaction.
"""

import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional

from models import AiDataset, Collection, GardenLocation, ImportMode
from utils.validators import (
    InvalidModeError, ReferentialIntegrityViolation, ValidationError,
    validate_import_mode,
)


def new_id() -> str:
    return uuid.uuid4().hex


def _species_match_key(species: str) -> str:
    return (species or "").strip().lower()


@dataclass
class EntityChanges:
    plants: List = field(default_factory=list)
    plantings: List = field(default_factory=list)
    locations: List = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.plants or self.plantings or self.locations)


@dataclass
class MutationPlan:
    """
    Pure description of an import.

    `creates` and `updates` hold entities, `deletes` holds ids.
    `id_remap` maps each incoming id to the id it is stored under, per
    collection ('plants', 'plantings', 'locations').
    """
    mode: ImportMode
    creates: EntityChanges = field(default_factory=EntityChanges)
    updates: EntityChanges = field(default_factory=EntityChanges)
    deletes: EntityChanges = field(default_factory=EntityChanges)
    id_remap: Dict[str, Dict[str, str]] = field(
        default_factory=lambda: {'plants': {}, 'plantings': {}, 'locations': {}})
    skipped_plants: List[str] = field(default_factory=list)

    def is_noop(self) -> bool:
        return self.creates.is_empty() and self.updates.is_empty() and self.deletes.is_empty()

    def summary(self) -> Dict[str, int]:
        return {
            'plants_added': len(self.creates.plants),
            'plants_reused': len(self.skipped_plants),
            'plantings_added': len(self.creates.plantings),
            'locations_added': len(self.creates.locations),
            'plants_deleted': len(self.deletes.plants),
            'plantings_deleted': len(self.deletes.plantings),
            'locations_deleted': len(self.deletes.locations),
        }

    def to_dict(self):
        def entities(changes):
            return {
                'plants': [p.to_dict() for p in changes.plants],
                'plantings': [p.to_dict() for p in changes.plantings],
                'locations': [loc.to_dict() for loc in changes.locations],
            }
        return {
            'mode': self.mode.value,
            'creates': entities(self.creates),
            'updates': entities(self.updates),
            'deletes': {
                'plants': list(self.deletes.plants),
                'plantings': list(self.deletes.plantings),
                'locations': list(self.deletes.locations),
            },
            'idRemap': self.id_remap,
            'summary': self.summary(),
        }


def _check_local_references(incoming: AiDataset, require_locations: bool) -> None:
    """Every incoming planting must point at an incoming plant (and location)."""
    plant_ids = {plant.id for plant in incoming.plants}
    location_ids = {location.id for location in incoming.locations}
    for planting in incoming.plantings:
        if planting.plant_id not in plant_ids:
            raise ValidationError(
                f"Planting {planting.id} references unknown plant {planting.plant_id}")
        if require_locations and planting.garden_id not in location_ids:
            raise ValidationError(
                f"Planting {planting.id} references unknown location {planting.garden_id}")


def _plan_replace(plan: MutationPlan, existing: Collection, incoming: AiDataset) -> None:
    _check_local_references(incoming, require_locations=True)
    # A dataset without plants or plantings never wipes the collection
    if not (incoming.plants or incoming.plantings):
        return

    plan.deletes.plantings = [p.id for p in existing.plantings]
    plan.deletes.plants = [p.id for p in existing.plants]
    plan.deletes.locations = [loc.id for loc in existing.locations]

    plan.creates.locations = list(incoming.locations)
    plan.creates.plants = list(incoming.plants)
    plan.creates.plantings = list(incoming.plantings)

    for key, entities in (('locations', incoming.locations),
                          ('plants', incoming.plants),
                          ('plantings', incoming.plantings)):
        plan.id_remap[key] = {entity.id: entity.id for entity in entities}


def _plan_create_new(plan: MutationPlan, incoming: AiDataset, mint: Callable[[], str]) -> None:
    _check_local_references(incoming, require_locations=True)
    if not (incoming.plants or incoming.plantings):
        return

    location_ids = plan.id_remap['locations']
    plant_ids = plan.id_remap['plants']
    planting_ids = plan.id_remap['plantings']

    for location in incoming.locations:
        location_ids[location.id] = mint()
        plan.creates.locations.append(replace(location, id=location_ids[location.id]))

    for plant in incoming.plants:
        plant_ids[plant.id] = mint()
        plan.creates.plants.append(replace(plant, id=plant_ids[plant.id]))

    for planting in incoming.plantings:
        planting_ids[planting.id] = mint()
        plan.creates.plantings.append(replace(
            planting,
            id=planting_ids[planting.id],
            plant_id=plant_ids[planting.plant_id],
            garden_id=location_ids[planting.garden_id],
        ))


def _plan_add_to_existing(plan: MutationPlan, existing: Collection, incoming: AiDataset,
                          target: GardenLocation, mint: Callable[[], str]) -> None:
    _check_local_references(incoming, require_locations=False)

    plant_ids = plan.id_remap['plants']
    planting_ids = plan.id_remap['plantings']

    known_species: Dict[str, str] = {}
    for plant in existing.plants:
        known_species.setdefault(_species_match_key(plant.species), plant.id)

    for plant in incoming.plants:
        key = _species_match_key(plant.species)
        if key in known_species:
            plant_ids[plant.id] = known_species[key]
            plan.skipped_plants.append(plant.id)
            continue
        plant_ids[plant.id] = mint()
        known_species[key] = plant_ids[plant.id]
        plan.creates.plants.append(replace(plant, id=plant_ids[plant.id]))

    for planting in incoming.plantings:
        planting_ids[planting.id] = mint()
        plan.creates.plantings.append(replace(
            planting,
            id=planting_ids[planting.id],
            plant_id=plant_ids[planting.plant_id],
            garden_id=target.id,
        ))

    plan.id_remap['locations'] = {location.id: target.id for location in incoming.locations}


def check_referential_integrity(plan: MutationPlan, existing: Collection) -> None:
    """
    Raise ReferentialIntegrityViolation if applying the plan would leave a
    planting pointing at a plant or location that does not exist.
    """
    deleted_plants = set(plan.deletes.plants)
    deleted_locations = set(plan.deletes.locations)
    deleted_plantings = set(plan.deletes.plantings)

    plant_ids = {p.id for p in existing.plants if p.id not in deleted_plants}
    plant_ids |= {p.id for p in plan.creates.plants}
    location_ids = {loc.id for loc in existing.locations if loc.id not in deleted_locations}
    location_ids |= {loc.id for loc in plan.creates.locations}

    surviving = [p for p in existing.plantings if p.id not in deleted_plantings]
    for planting in surviving + list(plan.creates.plantings) + list(plan.updates.plantings):
        if planting.plant_id not in plant_ids:
            raise ReferentialIntegrityViolation(
                f"Planting {planting.id} would reference missing plant {planting.plant_id}")
        if planting.garden_id not in location_ids:
            raise ReferentialIntegrityViolation(
                f"Planting {planting.id} would reference missing location {planting.garden_id}")


def reconcile(existing: Collection, incoming: AiDataset, mode,
              target_location_id: Optional[str] = None,
              id_factory: Callable[[], str] = new_id) -> MutationPlan:
    """
    Compute the mutations that import `incoming` into `existing`.

    Args:
        existing: The stored collection.
        incoming: Dataset whose ids are local to the dataset.
        mode: ImportMode or its string value ('replace', 'add-to-existing',
              'create-new'; 'add' and 'new' are accepted too).
        target_location_id: Stored location receiving the plantings in
                            add-to-existing mode.
        id_factory: Callable minting new unique ids.

    Returns:
        MutationPlan, checked for referential integrity.

    Raises:
        InvalidModeError: unknown mode, or add-to-existing without an
                          existing target location.
        ValidationError: incoming plantings reference plants or locations
                         missing from the dataset.
    """
    mode = validate_import_mode(mode)
    plan = MutationPlan(mode=mode)

    if mode == ImportMode.REPLACE:
        _plan_replace(plan, existing, incoming)
    elif mode == ImportMode.CREATE_NEW:
        _plan_create_new(plan, incoming, id_factory)
    else:
        target = next((loc for loc in existing.locations if loc.id == target_location_id), None)
        if target is None:
            raise InvalidModeError(
                "add-to-existing mode requires an existing target location"
                + (f" (got {target_location_id!r})" if target_location_id else ""))
        _plan_add_to_existing(plan, existing, incoming, target, id_factory)

    check_referential_integrity(plan, existing)
    return plan
