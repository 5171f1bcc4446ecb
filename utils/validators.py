"""
utils/validators.py — Input validation helpers.

Validates:
- Square labels against a garden's declared (cols, rows) extent
- Garden configuration (code, positive extent)
- Dates (YYYY-MM-DD), counts, planting statuses, note categories
"""

import re
from datetime import date, datetime

from utils.errors import ColumnOutOfRange, RowOutOfRange, InvalidInput
from utils.grid import parse_label, decode_column, encode_column, format_label

PLANTING_STATUSES = ('active', 'harvested', 'failed')
NOTE_CATEGORIES = ('observation', 'task', 'plan', 'issue', 'general')

GARDEN_CODE_PATTERN = re.compile(r'[A-Z][A-Z0-9]{0,7}')

# Largest accepted garden: columns A-ZZ, rows 1-999
MAX_COLS = 702
MAX_ROWS = 999
MAX_COUNT = 100000


# ========================================
# Grid Coordinates
# ========================================

def validate_label(label, cols, rows):
    """
    Confirm that a label lies within a cols × rows grid.

    Multi-letter columns are accepted for grids wider than 26.

    Returns:
        The normalized label (trimmed, uppercased, no leading zeros on the row).

    Raises:
        InvalidLabel: label does not parse.
        ColumnOutOfRange: column index outside 1..cols.
        RowOutOfRange: row outside 1..rows.
    """
    column_label, row = parse_label(label)
    col = decode_column(column_label)

    if col < 1 or col > cols:
        last = encode_column(cols)
        raise ColumnOutOfRange(
            f"Column \"{column_label}\" is out of range for this grid (A-{last}).",
            label=label, column=column_label, valid_range=['A', last],
        )
    if row < 1 or row > rows:
        raise RowOutOfRange(
            f"Row {row} is out of range for this grid (1-{rows}).",
            label=label, row=row, valid_range=[1, rows],
        )
    return format_label(col, row)


def validate_labels(labels, cols, rows):
    """Validate every label, stopping at the first invalid one.

    Returns:
        List of normalized labels in input order.
    """
    return [validate_label(label, cols, rows) for label in labels]


# ========================================
# Tool Arguments
# ========================================

def validate_grid_extent(cols, rows):
    """Both dimensions must be positive integers, at most MAX_COLS x MAX_ROWS."""
    for name, value, limit in (('cols', cols, MAX_COLS), ('rows', rows, MAX_ROWS)):
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise InvalidInput(f"{name} must be a positive integer, got {value!r}.", field=name)
        if value > limit:
            raise InvalidInput(f"{name} must be at most {limit}, got {value}.", field=name, maximum=limit)
    return cols, rows


def validate_garden_code(code):
    """Garden codes are short and human-chosen: a letter, then up to 7 letters or digits."""
    normalized = code.strip().upper() if isinstance(code, str) else ''
    if not GARDEN_CODE_PATTERN.fullmatch(normalized):
        raise InvalidInput(
            f"Invalid garden code \"{code}\". Use a letter followed by up to 7 letters or digits (e.g. \"H\").",
            field='id',
        )
    return normalized


def validate_date(value, field='date'):
    """Return an ISO date string, defaulting to today when value is empty."""
    if not value:
        return date.today().isoformat()
    try:
        return datetime.strptime(value, '%Y-%m-%d').date().isoformat()
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a date in YYYY-MM-DD format, got {value!r}.", field=field)


def validate_count(value, field='count'):
    """Positive integer, defaulting to 1."""
    if value is None:
        return 1
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise InvalidInput(f"{field} must be a positive integer, got {value!r}.", field=field)
    if value > MAX_COUNT:
        raise InvalidInput(f"{field} must be at most {MAX_COUNT}, got {value}.", field=field, maximum=MAX_COUNT)
    return value


def validate_planting_status(status):
    if status not in PLANTING_STATUSES:
        raise InvalidInput(
            f"Invalid status {status!r}. Expected one of: {', '.join(PLANTING_STATUSES)}.",
            field='status', allowed=list(PLANTING_STATUSES),
        )
    return status


def validate_note_category(category):
    if category not in NOTE_CATEGORIES:
        raise InvalidInput(
            f"Invalid category {category!r}. Expected one of: {', '.join(NOTE_CATEGORIES)}.",
            field='category', allowed=list(NOTE_CATEGORIES),
        )
    return category


def require_text(value, field):
    """Non-empty string after trimming."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} is required.", field=field)
    return value.strip()
