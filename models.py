"""
models.py — Python dataclasses for the square foot garden tracker.

Maps to the SQLite tables created in database.py, plus the typed catalog
records read back by schema introspection.
"""

from dataclasses import dataclass, fields
from typing import Optional


def _from_row(cls, row):
    """Build a dataclass from a sqlite3.Row or dict, ignoring unknown keys."""
    names = {f.name for f in fields(cls)}
    return cls(**{k: row[k] for k in row.keys() if k in names})


@dataclass
class Garden:
    """A user-owned rectangular grid of unit squares."""
    id: str = ""
    user_id: str = ""
    name: str = ""
    cols: int = 0
    rows: int = 0
    notes: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def square_count(self) -> int:
        return self.cols * self.rows

    @classmethod
    def from_row(cls, row):
        return _from_row(cls, row)


@dataclass
class Planting:
    """A plant occupying one square; only status 'active' counts as occupancy."""
    id: Optional[str] = None
    garden_id: str = ""
    square: str = ""
    plant_name: str = ""
    variety: Optional[str] = None
    count: int = 1
    planted_at: Optional[str] = None
    status: str = "active"
    notes: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_row(cls, row):
        return _from_row(cls, row)


@dataclass
class Seedling:
    """Indoor seedling batch, owned by a user rather than a garden."""
    id: Optional[str] = None
    user_id: str = ""
    plant_name: str = ""
    variety: Optional[str] = None
    count: int = 1
    phase: str = "sown"
    sown_at: Optional[str] = None
    phase_changed_at: Optional[str] = None
    planting_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        return _from_row(cls, row)


# ========================================
# Catalog Records (schema introspection)
# ========================================

@dataclass(frozen=True)
class ColumnInfo:
    table_name: str
    column_name: str
    data_type: str
    nullable: bool
    column_default: Optional[str] = None


@dataclass(frozen=True)
class ForeignKey:
    table_name: str
    column_name: str
    foreign_table: str
    foreign_column: str


@dataclass(frozen=True)
class CheckConstraint:
    """A CHECK constraint with its full textual definition, e.g. "CHECK (cols > 0)"."""
    table_name: str
    constraint_name: str
    definition: str
