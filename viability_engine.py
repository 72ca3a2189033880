"""
viability_engine.py — Local viability scoring of a plant against a garden.

This module implements:
- Viability scoring: additive keyword points turned into High/Medium/Low
- Season extraction: seasons mentioned in a plant's requirement text
- Dashboard ordering: plantings by viability, wishlist grouped by season

Scoring rules (each adds at most one point, rules are independent):
    - "full sun" required and sunlight says "full sun", "6-8" or "8+"
    - "partial shade" required and sunlight says "partial"
    - "warm" required and temperature says "warm" or reads above 65°F
    - "cool" required and temperature says "cool" or reads below 65°F
    - "well-drained" required and soil says "well-drained"
Score 2+ is High, 1 is Medium, 0 is Low. A garden with no sunlight,
temperature or soil text is always Low.

Temperatures are compared in Fahrenheit. A Celsius reading (location
unit C, or a "C" written after a number in the text) is converted first,
so 18°C counts as cool. A unit in the text wins over the location unit.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from models import (
    Conditions, GardenLocation, Plant, Planting, PlantingStatus, Season,
    SEASON_ORDER, Viability,
)
from text_normalizer import NormalizedText, join_fields, normalize


TEMPERATURE_THRESHOLD_F = 65

FULL_SUN_HOURS = ('full sun', '6-8', '8+')

VIABILITY_ORDER = {Viability.HIGH: 0, Viability.MEDIUM: 1, Viability.LOW: 2}

# A unit written after a number: "20°C", "18 c", "64F"
_UNIT_SUFFIX = re.compile(r'\d\s*°?\s*([cf])\b')

_SEASON_PATTERNS = [
    (Season.SPRING, re.compile(r'\bspring\b')),
    (Season.SUMMER, re.compile(r'\bsummer\b')),
    (Season.AUTUMN, re.compile(r'\b(autumn|fall)\b')),
    (Season.WINTER, re.compile(r'\bwinter\b')),
]


def _requirements(plant: Plant) -> NormalizedText:
    return join_fields(plant.optimal_conditions, plant.germination_needs)


def _temperature_f(temperature: NormalizedText, unit: str) -> Optional[float]:
    """First number of the temperature text, in Fahrenheit."""
    reading = temperature.first_integer()
    if reading is None:
        return None

    suffix = _UNIT_SUFFIX.search(temperature.text)
    if suffix:
        unit = suffix.group(1).upper()

    if unit == 'C':
        return reading * 9 / 5 + 32
    return float(reading)


def score_points(plant: Plant, conditions: Conditions, temperature_unit: str = 'F') -> int:
    """Raw additive score behind score_viability()."""
    requirements = _requirements(plant)
    sunlight = normalize(conditions.sunlight)
    temperature = normalize(conditions.temperature)
    soil = normalize(conditions.soil)
    temp_f = _temperature_f(temperature, temperature_unit)

    score = 0
    if requirements.contains('full sun') and sunlight.contains_any(*FULL_SUN_HOURS):
        score += 1
    if requirements.contains('partial shade') and sunlight.contains('partial'):
        score += 1
    if requirements.contains('warm') and (
            temperature.contains('warm') or (temp_f is not None and temp_f > TEMPERATURE_THRESHOLD_F)):
        score += 1
    if requirements.contains('cool') and (
            temperature.contains('cool') or (temp_f is not None and temp_f < TEMPERATURE_THRESHOLD_F)):
        score += 1
    if requirements.contains('well-drained') and soil.contains('well-drained'):
        score += 1
    return score


def score_viability(plant: Plant, conditions: Optional[Conditions],
                    temperature_unit: str = 'F') -> Viability:
    """
    Score how well a plant suits a garden's conditions.

    Args:
        plant: Plant with free-text requirement fields.
        conditions: Garden conditions; None or all-empty gives Low.
        temperature_unit: Unit of the temperature reading ('C' or 'F').

    Returns:
        Viability.HIGH, Viability.MEDIUM or Viability.LOW.
    """
    if conditions is None:
        return Viability.LOW
    if not (normalize(conditions.sunlight) or normalize(conditions.temperature)
            or normalize(conditions.soil)):
        return Viability.LOW

    score = score_points(plant, conditions, temperature_unit)
    if score >= 2:
        return Viability.HIGH
    if score == 1:
        return Viability.MEDIUM
    return Viability.LOW


def score_location_viability(plant: Plant, location: Optional[GardenLocation]) -> Viability:
    """Score against a location, using its own temperature unit."""
    if location is None:
        return Viability.LOW
    return score_viability(plant, location.conditions, location.temperature_unit or 'F')


def get_suitable_seasons(plant: Plant) -> List[Season]:
    """
    Seasons named in the plant's germination needs or optimal conditions.

    "fall" counts as Autumn. The result is always in Spring, Summer,
    Autumn, Winter order, whatever the order of mention.
    """
    text = join_fields(plant.germination_needs, plant.optimal_conditions).text
    return [season for season, pattern in _SEASON_PATTERNS if pattern.search(text)]


# ========================================
# Dashboard ordering
# ========================================

def current_status(planting: Planting) -> Optional[PlantingStatus]:
    """Status of the latest history entry, or None for an empty history."""
    entry = planting.latest_entry
    return entry.status if entry else None


def best_season(plant: Plant, current_season: Optional[Season]) -> Optional[Season]:
    """
    Next suitable season for the plant, starting from the current one.

    Returns None when the plant mentions no season at all.
    """
    seasons = get_suitable_seasons(plant)
    if not seasons:
        return None
    if current_season is None:
        return seasons[0]

    start = SEASON_ORDER.index(current_season)
    for offset in range(len(SEASON_ORDER)):
        season = SEASON_ORDER[(start + offset) % len(SEASON_ORDER)]
        if season in seasons:
            return season
    return None


def _season_distance(season: Optional[Season], current_season: Optional[Season]) -> int:
    if season is None:
        return len(SEASON_ORDER)
    start = SEASON_ORDER.index(current_season) if current_season else 0
    return (SEASON_ORDER.index(season) - start) % len(SEASON_ORDER)


def sort_by_viability(plantings: Iterable[Planting], plants_by_id: Dict[str, Plant],
                      location: Optional[GardenLocation]) -> List[Planting]:
    """
    Order plantings High first, Low last. Stable within a verdict.

    Plantings whose plant is unknown sort with Low.
    """
    plantings = list(plantings)
    if location is None:
        return plantings

    def sort_key(planting):
        plant = plants_by_id.get(planting.plant_id)
        if plant is None:
            return VIABILITY_ORDER[Viability.LOW]
        return VIABILITY_ORDER[score_location_viability(plant, location)]

    return sorted(plantings, key=sort_key)


def group_wishlist_by_season(
    plantings: Iterable[Planting],
    plants_by_id: Dict[str, Plant],
    location: Optional[GardenLocation],
) -> List[Tuple[Optional[Season], List[Planting]]]:
    """
    Group wishlist plantings by the next season they can be started in.

    Groups are ordered by distance from the location's current season,
    with the season-less group (None) last. Each group is ordered by
    viability.
    """
    current_season = location.conditions.current_season if location else None
    wishlist = [
        p for p in plantings
        if current_status(p) == PlantingStatus.WISHLIST and p.plant_id in plants_by_id
    ]

    groups: Dict[Optional[Season], List[Planting]] = {}
    for planting in wishlist:
        season = best_season(plants_by_id[planting.plant_id], current_season)
        groups.setdefault(season, []).append(planting)

    ordered = sorted(groups.items(), key=lambda item: _season_distance(item[0], current_season))
    return [(season, sort_by_viability(members, plants_by_id, location))
            for season, members in ordered]
