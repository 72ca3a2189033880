"""
utils/validators.py — Error taxonomy and input validation helpers.

Validates:
- Entity dicts in the camelCase wire format (plants, locations, plantings)
- Status history entries (known status, ISO-8601 date)
- Generated/canned datasets before reconciliation
- Import mode names

Free-text fields (conditions, germination needs...) may be empty: an
empty field is an absence of signal, not an error.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from models import (
    AiDataset, Conditions, GardenLocation, ImportMode, Plant, Planting,
    PlantingStatus, Season, StatusHistoryEntry,
)


class GardenError(Exception):
    """Base class for every error raised by the garden core."""


class ValidationError(GardenError):
    """Malformed or missing required entity field."""


class InvalidModeError(GardenError):
    """Unknown import mode, or add-to-existing without a target location."""


class ReferentialIntegrityViolation(GardenError):
    """A mutation plan would leave a dangling plantId or gardenId."""


TEMPERATURE_UNITS = ('C', 'F')


def _require(data: Dict[str, Any], key: str, entity: str) -> Any:
    if not isinstance(data, dict):
        raise ValidationError(f"{entity} must be an object, got {type(data).__name__}")
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{entity} is missing required field '{key}'")
    return value


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value)


def _optional_count(data: Dict[str, Any], key: str, entity: str) -> Optional[int]:
    value = data.get(key)
    if value is None or value == "":
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{entity} field '{key}' must be an integer, got {value!r}")
    if count < 0:
        raise ValidationError(f"{entity} field '{key}' must not be negative")
    return count


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing 'Z'. Naive timestamps are taken as UTC.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid ISO-8601 date: {value!r}")
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid ISO-8601 date: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_season(value: Any) -> Optional[Season]:
    if value is None or value == "":
        return None
    for season in Season:
        if str(value).strip().lower() == season.value.lower():
            return season
    if str(value).strip().lower() == 'fall':
        return Season.AUTUMN
    raise ValidationError(f"Unknown season: {value!r}")


def parse_status(value: Any) -> PlantingStatus:
    try:
        return PlantingStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown planting status: {value!r}")


def validate_import_mode(mode: Any) -> ImportMode:
    """Return the ImportMode named by `mode`, accepting the short UI names."""
    if isinstance(mode, ImportMode):
        return mode
    aliases = {'add': ImportMode.ADD_TO_EXISTING, 'new': ImportMode.CREATE_NEW}
    if mode in aliases:
        return aliases[mode]
    try:
        return ImportMode(mode)
    except ValueError:
        raise InvalidModeError(f"Unknown import mode: {mode!r}")


def plant_from_dict(data: Dict[str, Any]) -> Plant:
    return Plant(
        id=str(_require(data, 'id', 'Plant')),
        species=str(_require(data, 'species', 'Plant')),
        germination_needs=_text(data, 'germinationNeeds'),
        optimal_conditions=_text(data, 'optimalConditions'),
    )


def conditions_from_dict(data: Optional[Dict[str, Any]]) -> Conditions:
    if data is None:
        return Conditions()
    if not isinstance(data, dict):
        raise ValidationError("Conditions must be an object")
    return Conditions(
        temperature=_text(data, 'temperature'),
        sunlight=_text(data, 'sunlight'),
        soil=_text(data, 'soil'),
        current_season=parse_season(data.get('currentSeason')),
    )


def location_from_dict(data: Dict[str, Any]) -> GardenLocation:
    location_id = str(_require(data, 'id', 'GardenLocation'))
    name = str(_require(data, 'name', 'GardenLocation'))

    unit = data.get('temperatureUnit') or 'F'
    if unit not in TEMPERATURE_UNITS:
        raise ValidationError(f"GardenLocation temperatureUnit must be C or F, got {unit!r}")

    return GardenLocation(
        id=location_id,
        name=name,
        location=_text(data, 'location'),
        temperature_unit=unit,
        conditions=conditions_from_dict(data.get('conditions')),
        growing_systems=data.get('growingSystems'),
        growing_methods=data.get('growingMethods'),
    )


def history_entry_from_dict(data: Dict[str, Any]) -> StatusHistoryEntry:
    date = str(_require(data, 'date', 'StatusHistoryEntry'))
    parse_timestamp(date)
    return StatusHistoryEntry(
        id=str(_require(data, 'id', 'StatusHistoryEntry')),
        status=parse_status(_require(data, 'status', 'StatusHistoryEntry')),
        date=date,
        notes=data.get('notes'),
    )


def planting_from_dict(data: Dict[str, Any]) -> Planting:
    planting_id = str(_require(data, 'id', 'Planting'))
    plant_id = str(_require(data, 'plantId', 'Planting'))
    garden_id = str(_require(data, 'gardenId', 'Planting'))

    history = data.get('history') or []
    if not isinstance(history, list):
        raise ValidationError("Planting history must be a list")

    return Planting(
        id=planting_id,
        plant_id=plant_id,
        garden_id=garden_id,
        history=[history_entry_from_dict(entry) for entry in history],
        seeds_on_hand=_optional_count(data, 'seedsOnHand', 'Planting'),
        planned_qty=_optional_count(data, 'plannedQty', 'Planting'),
        name=data.get('name'),
        created_at=data.get('createdAt'),
    )


def dataset_from_dict(data: Dict[str, Any]) -> AiDataset:
    """
    Parse a generated or canned dataset.

    Missing collections default to empty lists; ids must be unique
    within each collection of the dataset.
    """
    if not isinstance(data, dict):
        raise ValidationError("Dataset must be an object")

    collections = {}
    for key in ('locations', 'plants', 'plantings'):
        items = data.get(key) or []
        if not isinstance(items, list):
            raise ValidationError(f"Dataset '{key}' must be a list")
        collections[key] = items

    dataset = AiDataset(
        locations=[location_from_dict(item) for item in collections['locations']],
        plants=[plant_from_dict(item) for item in collections['plants']],
        plantings=[planting_from_dict(item) for item in collections['plantings']],
    )

    for key, entities in (('locations', dataset.locations),
                          ('plants', dataset.plants),
                          ('plantings', dataset.plantings)):
        ids = [entity.id for entity in entities]
        if len(ids) != len(set(ids)):
            raise ValidationError(f"Dataset '{key}' contains duplicate ids")

    return dataset
