"""
tests/test_grid.py — Tests for grid coordinates and input validation.

Tests cover:
- Bijective base-26 column encoding and decoding
- Label parsing ("B3", "aa10", malformed input)
- Bounds validation against a garden's cols × rows
- Tool argument validators
- Plain-text grid rendering
"""

import pytest

from utils.errors import InvalidLabel, ColumnOutOfRange, RowOutOfRange, InvalidInput
from utils.grid import (
    encode_column, decode_column, parse_label, label_to_indices, format_label,
    parse_grid_size, render_grid
)
from utils.validators import (
    validate_label, validate_labels, validate_grid_extent, validate_garden_code,
    validate_date, validate_count, validate_planting_status, validate_note_category
)


# ========================================
# Column Encoding
# ========================================

class TestColumnCodec:
    """Tests for encode_column / decode_column."""

    @pytest.mark.parametrize('n, label', [
        (1, 'A'), (2, 'B'), (26, 'Z'), (27, 'AA'), (28, 'AB'),
        (52, 'AZ'), (53, 'BA'), (702, 'ZZ'), (703, 'AAA'),
    ])
    def test_known_values(self, n, label):
        assert encode_column(n) == label
        assert decode_column(label) == n

    def test_round_trip(self):
        for n in range(1, 10001):
            assert decode_column(encode_column(n)) == n

    def test_monotonic_in_spreadsheet_order(self):
        labels = [encode_column(n) for n in range(1, 2000)]
        assert labels == sorted(labels, key=lambda s: (len(s), s))

    def test_decode_accepts_lowercase(self):
        assert decode_column('ab') == 28

    @pytest.mark.parametrize('bad', ['', 'A1', '1', 'A B', 'É', None, 5])
    def test_decode_rejects_non_letters(self, bad):
        with pytest.raises(InvalidLabel):
            decode_column(bad)

    @pytest.mark.parametrize('bad', [0, -3, 1.5, True])
    def test_encode_rejects_non_positive(self, bad):
        with pytest.raises(InvalidLabel):
            encode_column(bad)


# ========================================
# Label Parsing
# ========================================

class TestParseLabel:
    """Tests for parse_label and friends."""

    def test_basic(self):
        assert parse_label('B3') == ('B', 3)

    def test_case_and_whitespace(self):
        assert parse_label('  b3 ') == ('B', 3)

    def test_multi_letter_column(self):
        assert parse_label('aa10') == ('AA', 10)
        assert label_to_indices('AA10') == (27, 10)

    @pytest.mark.parametrize('bad', ['3B', 'B', '3', '', 'B3x', 'B-3', 'B 3', None])
    def test_rejects_malformed(self, bad):
        with pytest.raises(InvalidLabel):
            parse_label(bad)

    def test_format_label(self):
        assert format_label(2, 3) == 'B3'
        assert format_label(27, 1) == 'AA1'

    def test_parse_grid_size(self):
        assert parse_grid_size('4x4') == (4, 4)
        assert parse_grid_size('3x6') == (3, 6)
        with pytest.raises(InvalidInput):
            parse_grid_size('4 by 4')


# ========================================
# Bounds Validation
# ========================================

class TestValidateLabel:
    """Tests for validate_label / validate_labels."""

    def test_in_range(self):
        assert validate_label('B3', 4, 4) == 'B3'

    def test_normalizes(self):
        assert validate_label(' b3', 4, 4) == 'B3'
        assert validate_label('B03', 4, 4) == 'B3'

    def test_column_out_of_range(self):
        with pytest.raises(ColumnOutOfRange) as exc:
            validate_label('E1', 4, 4)
        assert 'A-D' in exc.value.message
        assert exc.value.detail['valid_range'] == ['A', 'D']

    def test_row_out_of_range(self):
        with pytest.raises(RowOutOfRange) as exc:
            validate_label('B9', 4, 4)
        assert exc.value.detail['row'] == 9
        assert exc.value.detail['valid_range'] == [1, 4]

    def test_row_zero(self):
        with pytest.raises(RowOutOfRange):
            validate_label('A0', 4, 4)

    def test_invalid_label(self):
        with pytest.raises(InvalidLabel):
            validate_label('3B', 4, 4)

    def test_wide_grid(self):
        assert validate_label('AB1', 28, 2) == 'AB1'
        with pytest.raises(ColumnOutOfRange) as exc:
            validate_label('AC1', 28, 2)
        assert 'A-AB' in exc.value.message

    def test_validate_labels_returns_normalized(self):
        assert validate_labels(['a1', 'd4'], 4, 4) == ['A1', 'D4']

    def test_validate_labels_fails_fast(self):
        with pytest.raises(RowOutOfRange) as exc:
            validate_labels(['A1', 'B9', 'Z1'], 4, 4)
        assert exc.value.detail['label'] == 'B9'


# ========================================
# Tool Argument Validators
# ========================================

class TestArgumentValidators:

    def test_grid_extent(self):
        assert validate_grid_extent(4, 3) == (4, 3)
        assert validate_grid_extent(702, 999) == (702, 999)
        for cols, rows in [(703, 4), (4, 1000), (2 ** 64, 2), (10 ** 9, 10 ** 9)]:
            with pytest.raises(InvalidInput) as exc:
                validate_grid_extent(cols, rows)
            assert "at most" in exc.value.message
        for cols, rows in [(0, 4), (4, -1), ('4', 4), (True, 4), (None, 4)]:
            with pytest.raises(InvalidInput):
                validate_grid_extent(cols, rows)

    def test_garden_code(self):
        assert validate_garden_code('h') == 'H'
        assert validate_garden_code(' bed2 ') == 'BED2'
        for bad in ['', '2A', 'TOOLONGCODE', 'A-B', None]:
            with pytest.raises(InvalidInput):
                validate_garden_code(bad)

    def test_date(self):
        assert validate_date('2026-04-01') == '2026-04-01'
        assert len(validate_date(None)) == 10
        with pytest.raises(InvalidInput):
            validate_date('01/04/2026')

    def test_count(self):
        assert validate_count(None) == 1
        assert validate_count(6) == 6
        with pytest.raises(InvalidInput):
            validate_count(2 ** 64)
        with pytest.raises(InvalidInput):
            validate_count(0)

    def test_status_and_category(self):
        assert validate_planting_status('harvested') == 'harvested'
        assert validate_note_category('issue') == 'issue'
        with pytest.raises(InvalidInput):
            validate_planting_status('dead')
        with pytest.raises(InvalidInput):
            validate_note_category('rant')


# ========================================
# Grid Rendering
# ========================================

def test_render_grid():
    text = render_grid(3, 2, [('A1', 'Tomato'), ('C2', 'Basil'), ('Z9', 'Ghost')])
    lines = text.split('\n')
    assert lines[0].split() == ['A', 'B', 'C']
    assert lines[1].split() == ['1', 'Tom', '·', '·']
    assert lines[2].split() == ['2', '·', '·', 'Bas']
