"""
utils/grid.py — Alphanumeric grid coordinates.

Columns use spreadsheet-style bijective base-26 letters:
    1 → "A", 26 → "Z", 27 → "AA", 28 → "AB", 702 → "ZZ", 703 → "AAA"
There is no zero digit, so every position is offset by one before encoding.
Rows are plain base-10 integers with no leading zeros.

"B3" is column B (2), row 3.
"""

import re

from utils.errors import InvalidLabel, InvalidInput

LABEL_PATTERN = re.compile(r'([A-Z]+)([0-9]+)', re.IGNORECASE | re.ASCII)
COLUMN_PATTERN = re.compile(r'[A-Z]+', re.IGNORECASE | re.ASCII)
GRID_SIZE_PATTERN = re.compile(r'([0-9]+)x([0-9]+)', re.IGNORECASE)


def encode_column(n):
    """Convert a 1-based column index to its letter label."""
    if not isinstance(n, int) or isinstance(n, bool) or n < 1:
        raise InvalidLabel(f"Column index must be a positive integer, got {n!r}.", column=n)

    label = ''
    while n > 0:
        n, rem = divmod(n - 1, 26)
        label = chr(ord('A') + rem) + label
    return label


def decode_column(label):
    """Convert a column letter label back to its 1-based index ("AA" → 27)."""
    if not isinstance(label, str) or not COLUMN_PATTERN.fullmatch(label):
        raise InvalidLabel(f"Column label {label!r} must be one or more letters A-Z.", label=label)

    acc = 0
    for ch in label.upper():
        acc = acc * 26 + (ord(ch) - ord('A') + 1)
    return acc


def normalize_label(raw):
    """Trim and uppercase a raw label without validating it."""
    return raw.strip().upper()


def parse_label(raw):
    """
    Split a coordinate label into its column letters and row number.

    Returns:
        (column_label, row) with column_label uppercased.

    Raises:
        InvalidLabel: if raw is not letters followed by digits.
    """
    if not isinstance(raw, str):
        raise InvalidLabel(f"Invalid coordinate {raw!r}. Expected a string like \"A1\".", label=raw)

    match = LABEL_PATTERN.fullmatch(raw.strip())
    if not match:
        raise InvalidLabel(
            f"Invalid coordinate \"{raw}\". Expected format like \"A1\" or \"B3\" "
            f"(letter column, number row).",
            label=raw,
        )
    return match.group(1).upper(), int(match.group(2))


def label_to_indices(raw):
    """Return the (column, row) integer pair for a label."""
    column_label, row = parse_label(raw)
    return decode_column(column_label), row


def format_label(column, row):
    """Build a label from 1-based indices: (2, 3) → "B3"."""
    if not isinstance(row, int) or row < 1:
        raise InvalidLabel(f"Row index must be a positive integer, got {row!r}.", row=row)
    return f"{encode_column(column)}{row}"


def parse_grid_size(size):
    """Parse a legacy "COLSxROWS" size string ("4x4", "3x6") into (cols, rows)."""
    match = GRID_SIZE_PATTERN.fullmatch(size.strip() if isinstance(size, str) else '')
    if not match:
        raise InvalidInput(
            f"Invalid grid size format: \"{size}\". Expected COLSxROWS (e.g. \"4x4\").",
            size=size,
        )
    return int(match.group(1)), int(match.group(2))


def render_grid(cols, rows, occupancy):
    """
    Render a plain-text grid of active plantings.

    Args:
        cols, rows: Garden extent.
        occupancy: Iterable of (square_label, plant_name) pairs.

    Returns:
        Multi-line string, one line per row, empty squares shown as "·".
    """
    grid = [['·'] * cols for _ in range(rows)]
    for square, plant_name in occupancy:
        try:
            col, row = label_to_indices(square)
        except InvalidLabel:
            continue
        if 1 <= col <= cols and 1 <= row <= rows:
            grid[row - 1][col - 1] = plant_name[:3]

    header = '    ' + ''.join(encode_column(c).ljust(4) for c in range(1, cols + 1))
    lines = [header.rstrip()]
    for r, cells in enumerate(grid, 1):
        lines.append(str(r).ljust(4) + ''.join(cell.ljust(4) for cell in cells).rstrip())
    return '\n'.join(lines)
