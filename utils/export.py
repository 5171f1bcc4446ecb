"""
utils/export.py — Excel export generation using openpyxl.

Generates an .xlsx workbook with one sheet per table (Gardens, Plantings,
Harvests, Seedlings, Notes) and a styled header row. Planting status and
seedling phase cells are color-coded.
"""

from datetime import date
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from database import get_all_data


SHEETS = [
    ('Gardens', 'gardens', ['id', 'name', 'cols', 'rows', 'notes', 'created_at']),
    ('Plantings', 'plantings', ['id', 'garden_id', 'square', 'plant_name', 'variety', 'count',
                                'planted_at', 'status', 'notes']),
    ('Harvests', 'harvests', ['id', 'planting_id', 'harvested_at', 'amount', 'weight_grams', 'notes']),
    ('Seedlings', 'seedlings', ['id', 'plant_name', 'variety', 'count', 'phase', 'sown_at',
                                'phase_changed_at', 'planting_id', 'notes']),
    ('Notes', 'notes', ['id', 'garden_id', 'category', 'square', 'planting_id', 'content', 'created_at']),
]

# Status / phase colors
STATUS_FILLS = {
    'active': PatternFill(start_color='4CAF50', end_color='4CAF50', fill_type='solid'),
    'harvested': PatternFill(start_color='FFB300', end_color='FFB300', fill_type='solid'),
    'failed': PatternFill(start_color='D32F2F', end_color='D32F2F', fill_type='solid'),
    'sown': PatternFill(start_color='8D6E63', end_color='8D6E63', fill_type='solid'),
    'germinated': PatternFill(start_color='9CCC65', end_color='9CCC65', fill_type='solid'),
    'true_leaves': PatternFill(start_color='66BB6A', end_color='66BB6A', fill_type='solid'),
    'hardening': PatternFill(start_color='00897B', end_color='00897B', fill_type='solid'),
    'transplanted': PatternFill(start_color='1565C0', end_color='1565C0', fill_type='solid'),
}
STATUS_COLUMNS = ('status', 'phase')

HEADER_FONT = Font(name='Calibri', bold=True, color='FFFFFF', size=11)
HEADER_FILL = PatternFill(start_color='1565C0', end_color='1565C0', fill_type='solid')
HEADER_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
HEADER_BORDER = Border(
    bottom=Side(style='thin', color='0D47A1'),
    right=Side(style='thin', color='E2E8F0'),
)
CELL_BORDER = Border(
    bottom=Side(style='thin', color='E2E8F0'),
    right=Side(style='thin', color='E2E8F0'),
)


def _build_sheet(ws, columns, rows):
    """Populate a worksheet with a styled header and one row per record."""
    for col_idx, col_name in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=col_name)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT
        cell.border = HEADER_BORDER

    widths = [len(c) + 2 for c in columns]
    for row_idx, record in enumerate(rows, 2):
        for col_idx, col_name in enumerate(columns, 1):
            value = record.get(col_name)
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.border = CELL_BORDER
            if col_name in STATUS_COLUMNS and value in STATUS_FILLS:
                cell.fill = STATUS_FILLS[value]
                cell.font = Font(color='FFFFFF', bold=True)
            if value is not None:
                widths[col_idx - 1] = max(widths[col_idx - 1], min(len(str(value)) + 2, 50))

    for col_idx, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    # Freeze header row
    ws.freeze_panes = 'A2'


def generate_excel(user_id):
    """Generate a workbook with all of a user's data.

    Returns:
        (BytesIO buffer, filename), or (None, None) if the user has no gardens
        and no seedlings.
    """
    data = get_all_data(user_id)
    if not data['gardens'] and not data['seedlings']:
        return None, None

    wb = Workbook()
    # Remove default sheet
    wb.remove(wb.active)

    for title, key, columns in SHEETS:
        ws = wb.create_sheet(title=title)
        _build_sheet(ws, columns, data[key])

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    filename = f"garden_data_{date.today().strftime('%Y%m%d')}.xlsx"
    return buffer, filename
