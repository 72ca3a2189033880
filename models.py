"""
models.py — Python dataclasses for the digital garden tracker.

Maps to the SQLite tables created in database.py and to the camelCase
JSON shape exchanged with the browser and the dataset generator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any


class Viability(str, Enum):
    """Tri-state suitability verdict of a plant for a garden."""
    HIGH = 'High'
    MEDIUM = 'Medium'
    LOW = 'Low'


class Season(str, Enum):
    """Seasons in canonical order."""
    SPRING = 'Spring'
    SUMMER = 'Summer'
    AUTUMN = 'Autumn'
    WINTER = 'Winter'


SEASON_ORDER = [Season.SPRING, Season.SUMMER, Season.AUTUMN, Season.WINTER]


class PlantingStatus(str, Enum):
    WISHLIST = 'Wishlist'
    PLANNING = 'Planning'
    PLANTING = 'Planting'
    GROWING = 'Growing'
    HARVEST = 'Harvest'
    DORMANT = 'Dormant'


class ImportMode(str, Enum):
    """How an incoming dataset is merged into the stored collection."""
    REPLACE = 'replace'
    ADD_TO_EXISTING = 'add-to-existing'
    CREATE_NEW = 'create-new'


@dataclass
class Plant:
    """Species record, independent of any garden."""
    id: str = ""
    species: str = ""
    germination_needs: str = ""
    optimal_conditions: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'species': self.species,
            'germinationNeeds': self.germination_needs,
            'optimalConditions': self.optimal_conditions,
        }


@dataclass
class Conditions:
    """Free-text environmental conditions of a garden."""
    temperature: str = ""
    sunlight: str = ""
    soil: str = ""
    current_season: Optional[Season] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'temperature': self.temperature,
            'sunlight': self.sunlight,
            'soil': self.soil,
        }
        if self.current_season is not None:
            result['currentSeason'] = self.current_season.value
        return result


@dataclass
class GardenLocation:
    """Physical or logical garden site."""
    id: str = ""
    name: str = ""
    location: str = ""
    temperature_unit: str = "F"
    conditions: Conditions = field(default_factory=Conditions)
    growing_systems: Optional[str] = None
    growing_methods: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'name': self.name,
            'location': self.location,
            'temperatureUnit': self.temperature_unit,
            'conditions': self.conditions.to_dict(),
        }
        if self.growing_systems is not None:
            result['growingSystems'] = self.growing_systems
        if self.growing_methods is not None:
            result['growingMethods'] = self.growing_methods
        return result


@dataclass
class StatusHistoryEntry:
    """One status change of a planting. `date` is an ISO-8601 string."""
    id: str = ""
    status: PlantingStatus = PlantingStatus.PLANNING
    date: str = ""
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'id': self.id, 'status': self.status.value, 'date': self.date}
        if self.notes is not None:
            result['notes'] = self.notes
        return result


@dataclass
class Planting:
    """A plant grown in a garden location, with its status history."""
    id: str = ""
    plant_id: str = ""
    garden_id: str = ""
    history: List[StatusHistoryEntry] = field(default_factory=list)
    seeds_on_hand: Optional[int] = None
    planned_qty: Optional[int] = None
    name: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def latest_entry(self) -> Optional[StatusHistoryEntry]:
        """The current status is the last entry of the history."""
        return self.history[-1] if self.history else None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'plantId': self.plant_id,
            'gardenId': self.garden_id,
            'history': [entry.to_dict() for entry in self.history],
        }
        for key, value in (('seedsOnHand', self.seeds_on_hand),
                           ('plannedQty', self.planned_qty),
                           ('name', self.name),
                           ('createdAt', self.created_at)):
            if value is not None:
                result[key] = value
        return result


@dataclass
class AiDataset:
    """Generated or canned dataset. Ids are local to the dataset."""
    locations: List[GardenLocation] = field(default_factory=list)
    plants: List[Plant] = field(default_factory=list)
    plantings: List[Planting] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'locations': [loc.to_dict() for loc in self.locations],
            'plants': [plant.to_dict() for plant in self.plants],
            'plantings': [planting.to_dict() for planting in self.plantings],
        }


@dataclass
class Collection:
    """The persisted plants, plantings and locations."""
    plants: List[Plant] = field(default_factory=list)
    plantings: List[Planting] = field(default_factory=list)
    locations: List[GardenLocation] = field(default_factory=list)
