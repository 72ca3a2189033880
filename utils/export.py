"""
utils/export.py — Excel export generation using openpyxl.

Generates an .xlsx file for one garden location with a styled header row.
Columns: Planting, Species, Status, Since, Viability, Seasons, Seeds, Planned.
Rows are ordered by viability against the location, best first.
"""

from io import BytesIO

from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from database import get_location, get_plantings, get_plants
from models import Viability
from viability_engine import (
    current_status, get_suitable_seasons, score_location_viability, sort_by_viability,
)


VIABILITY_FILLS = {
    Viability.HIGH: PatternFill(start_color='4CAF50', end_color='4CAF50', fill_type='solid'),
    Viability.MEDIUM: PatternFill(start_color='FFB300', end_color='FFB300', fill_type='solid'),
    Viability.LOW: PatternFill(start_color='D32F2F', end_color='D32F2F', fill_type='solid'),
}

HEADER_FONT = Font(name='Calibri', bold=True, color='FFFFFF', size=11)
HEADER_FILL = PatternFill(start_color='2E7D32', end_color='2E7D32', fill_type='solid')
HEADER_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
HEADER_BORDER = Border(
    bottom=Side(style='thin', color='1B5E20'),
    right=Side(style='thin', color='E2E8F0'),
)
CELL_BORDER = Border(
    bottom=Side(style='thin', color='E2E8F0'),
    right=Side(style='thin', color='E2E8F0'),
)

COLUMNS = ['Planting', 'Species', 'Status', 'Since', 'Viability', 'Seasons', 'Seeds', 'Planned']
COLUMN_WIDTHS = {'A': 22, 'B': 32, 'C': 12, 'D': 22, 'E': 12, 'F': 24, 'G': 10, 'H': 10}


def _build_sheet(ws, location, plantings, plants_by_id):
    """Populate a worksheet with one row per planting and a styled header."""
    for col_idx, col_name in enumerate(COLUMNS, 1):
        cell = ws.cell(row=1, column=col_idx, value=col_name)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT
        cell.border = HEADER_BORDER

    row_idx = 2
    for planting in sort_by_viability(plantings, plants_by_id, location):
        plant = plants_by_id.get(planting.plant_id)
        if plant is None:
            continue
        status = current_status(planting)
        latest = planting.latest_entry
        viability = score_location_viability(plant, location)

        values = [
            planting.name or plant.species,
            plant.species,
            status.value if status else '',
            latest.date if latest else '',
            viability.value,
            ', '.join(season.value for season in get_suitable_seasons(plant)),
            planting.seeds_on_hand,
            planting.planned_qty,
        ]
        for col_idx, value in enumerate(values, 1):
            ws.cell(row=row_idx, column=col_idx, value=value).border = CELL_BORDER

        viability_cell = ws.cell(row=row_idx, column=5)
        viability_cell.fill = VIABILITY_FILLS[viability]
        viability_cell.font = Font(color='FFFFFF', bold=True)
        row_idx += 1

    for column, width in COLUMN_WIDTHS.items():
        ws.column_dimensions[column].width = width

    # Freeze header row
    ws.freeze_panes = 'A2'


def generate_excel(garden_id):
    """Generate an Excel workbook for one garden location.

    Returns:
        (BytesIO buffer, filename) on success, (None, None) if the location
        does not exist or has no plantings.
    """
    import openpyxl

    location = get_location(garden_id)
    if not location:
        return None, None

    plantings = get_plantings(garden_id)
    if not plantings:
        return None, None

    plants_by_id = {plant.id: plant for plant in get_plants()}

    wb = openpyxl.Workbook()
    ws = wb.active
    # Sheet titles are limited to 31 characters and a few forbidden symbols
    ws.title = ''.join(c for c in location.name if c not in '[]:*?/\\')[:31] or 'Garden'

    _build_sheet(ws, location, plantings, plants_by_id)

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    safe_name = ''.join(c if c.isalnum() else '_' for c in location.name).strip('_') or 'garden'
    filename = f"plantings_{safe_name}.xlsx"
    return buffer, filename
