"""
database.py — SQLite schema creation, catalog introspection, and database operations.

Every read and write is scoped to the calling user's id: gardens and seedlings
carry user_id directly, plantings/harvests/notes reach it through their garden.
Uses WAL mode for concurrent read performance.
"""

import logging
import os
import re
import sqlite3
import uuid

from flask import current_app, has_app_context

from models import ColumnInfo, ForeignKey, CheckConstraint

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'garden.db')

# Domain tables, in documentation order
SCHEMA_TABLES = ('gardens', 'plantings', 'harvests', 'seedlings', 'notes')


def get_db_path():
    """Database path: app config DATABASE, else GARDEN_DB_PATH env var, else data/garden.db."""
    if has_app_context() and current_app.config.get('DATABASE'):
        return current_app.config['DATABASE']
    return os.environ.get('GARDEN_DB_PATH', DEFAULT_DB_PATH)


def get_db():
    """Get a database connection with WAL mode and foreign keys enabled."""
    db_path = get_db_path()
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


def new_id():
    return str(uuid.uuid4())


def init_db():
    """Create all tables and indexes if they don't exist."""
    conn = get_db()
    cursor = conn.cursor()

    # Table: gardens (id is the short code chosen by the gardener, e.g. "H")
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS gardens (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            cols INTEGER NOT NULL CONSTRAINT gardens_cols_positive CHECK (cols > 0),
            "rows" INTEGER NOT NULL CONSTRAINT gardens_rows_positive CHECK ("rows" > 0),
            notes TEXT,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Table: plantings
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS plantings (
            id TEXT PRIMARY KEY,
            garden_id TEXT NOT NULL REFERENCES gardens(id) ON DELETE CASCADE,
            square TEXT NOT NULL,
            plant_name TEXT NOT NULL,
            variety TEXT,
            count INTEGER NOT NULL DEFAULT 1 CONSTRAINT plantings_count_positive CHECK (count > 0),
            planted_at DATE NOT NULL DEFAULT CURRENT_DATE,
            status TEXT NOT NULL DEFAULT 'active'
                CONSTRAINT plantings_status_check CHECK (status IN ('active', 'harvested', 'failed')),
            notes TEXT,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Table: harvests
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS harvests (
            id TEXT PRIMARY KEY,
            planting_id TEXT NOT NULL REFERENCES plantings(id) ON DELETE CASCADE,
            harvested_at DATE NOT NULL DEFAULT CURRENT_DATE,
            amount TEXT,
            weight_grams REAL CONSTRAINT harvests_weight_grams_nonnegative CHECK (weight_grams >= 0),
            notes TEXT,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Table: seedlings (user-level until transplanted)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS seedlings (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            plant_name TEXT NOT NULL,
            variety TEXT,
            count INTEGER NOT NULL DEFAULT 1 CONSTRAINT seedlings_count_positive CHECK (count > 0),
            phase TEXT NOT NULL DEFAULT 'sown'
                CONSTRAINT seedlings_phase_check CHECK (phase IN ('sown', 'germinated', 'true_leaves', 'hardening', 'transplanted', 'failed')),
            sown_at DATE NOT NULL DEFAULT CURRENT_DATE,
            phase_changed_at DATE NOT NULL DEFAULT CURRENT_DATE,
            planting_id TEXT REFERENCES plantings(id) ON DELETE SET NULL,
            notes TEXT,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Table: notes
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS notes (
            id TEXT PRIMARY KEY,
            garden_id TEXT NOT NULL REFERENCES gardens(id) ON DELETE CASCADE,
            category TEXT NOT NULL
                CONSTRAINT notes_category_check CHECK (category IN ('observation', 'task', 'plan', 'issue', 'general')),
            square TEXT,
            planting_id TEXT REFERENCES plantings(id) ON DELETE SET NULL,
            content TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Performance indexes
    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_plantings_garden_status
        ON plantings(garden_id, status)
    """)
    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_seedlings_user_phase
        ON seedlings(user_id, phase)
    """)

    conn.commit()
    conn.close()


# ========================================
# Gardens
# ========================================

def create_garden(user_id, garden_id, name, cols, rows, notes=None):
    """
    Insert a new garden.

    Returns:
        (garden_id, None) on success, or (None, error_message) if the code is taken.
    """
    conn = get_db()
    try:
        conn.execute(
            'INSERT INTO gardens (id, user_id, name, cols, "rows", notes) VALUES (?, ?, ?, ?, ?, ?)',
            (garden_id, user_id, name, cols, rows, notes)
        )
        conn.commit()
        return garden_id, None
    except sqlite3.IntegrityError:
        logger.info("Garden code %s rejected: already in use", garden_id)
        return None, f"Garden code \"{garden_id}\" is already in use."
    finally:
        conn.close()


def get_gardens(user_id):
    """Retrieve all of a user's gardens, newest first."""
    conn = get_db()
    gardens = conn.execute(
        "SELECT * FROM gardens WHERE user_id = ? ORDER BY created_at DESC, id",
        (user_id,)
    ).fetchall()
    conn.close()
    return gardens


def get_garden(user_id, garden_id):
    """Retrieve a single garden by code, or None if it does not belong to the user."""
    conn = get_db()
    garden = conn.execute(
        "SELECT * FROM gardens WHERE id = ? AND user_id = ?",
        (garden_id, user_id)
    ).fetchone()
    conn.close()
    return garden


def get_garden_stats(user_id, garden_id):
    """Active planting and harvest counts for one garden."""
    conn = get_db()
    active = conn.execute(
        """SELECT COUNT(*) FROM plantings p
           JOIN gardens g ON p.garden_id = g.id
           WHERE g.id = ? AND g.user_id = ? AND p.status = 'active'""",
        (garden_id, user_id)
    ).fetchone()[0]
    harvests = conn.execute(
        """SELECT COUNT(*) FROM harvests h
           JOIN plantings p ON h.planting_id = p.id
           JOIN gardens g ON p.garden_id = g.id
           WHERE g.id = ? AND g.user_id = ?""",
        (garden_id, user_id)
    ).fetchone()[0]
    conn.close()
    return {'active_plantings': active, 'harvests': harvests}


# ========================================
# Plantings
# ========================================

def get_active_plantings(user_id, garden_id):
    """Active plantings in a garden, ordered by creation."""
    conn = get_db()
    rows = conn.execute(
        """SELECT p.* FROM plantings p
           JOIN gardens g ON p.garden_id = g.id
           WHERE g.id = ? AND g.user_id = ? AND p.status = 'active'
           ORDER BY p.created_at, p.rowid""",
        (garden_id, user_id)
    ).fetchall()
    conn.close()
    return rows


def create_plantings_batch(garden_id, squares, plant_name, variety=None, count=1,
                           planted_at=None, notes=None):
    """
    Insert one planting per square in a single transaction.

    Squares must already be validated against the garden's extent.

    Returns:
        List of (planting_id, square) tuples in input order.
    """
    conn = get_db()
    created = []
    try:
        for square in squares:
            planting_id = new_id()
            conn.execute(
                """INSERT INTO plantings (id, garden_id, square, plant_name, variety, count, planted_at, notes)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (planting_id, garden_id, square, plant_name, variety, count, planted_at, notes)
            )
            created.append((planting_id, square))
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()
    return created


def get_planting(user_id, planting_id):
    """Retrieve a planting, or None if it is not in one of the user's gardens."""
    conn = get_db()
    planting = conn.execute(
        """SELECT p.* FROM plantings p
           JOIN gardens g ON p.garden_id = g.id
           WHERE p.id = ? AND g.user_id = ?""",
        (planting_id, user_id)
    ).fetchone()
    conn.close()
    return planting


def update_planting_status(user_id, planting_id, status):
    """Set a planting's status. Returns the updated row, or None if not found."""
    if not get_planting(user_id, planting_id):
        return None
    conn = get_db()
    conn.execute("UPDATE plantings SET status = ? WHERE id = ?", (status, planting_id))
    conn.commit()
    conn.close()
    return get_planting(user_id, planting_id)


# ========================================
# Harvests
# ========================================

def create_harvest(planting_id, harvested_at, amount=None, weight_grams=None, notes=None,
                   mark_complete=False):
    """
    Append a harvest record, optionally marking the planting as harvested.

    Both writes happen in one transaction.

    Returns:
        The new harvest id.
    """
    harvest_id = new_id()
    conn = get_db()
    try:
        conn.execute(
            """INSERT INTO harvests (id, planting_id, harvested_at, amount, weight_grams, notes)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (harvest_id, planting_id, harvested_at, amount, weight_grams, notes)
        )
        if mark_complete:
            conn.execute("UPDATE plantings SET status = 'harvested' WHERE id = ?", (planting_id,))
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()
    return harvest_id


# ========================================
# Seedlings
# ========================================

def create_seedling(seedling):
    """Insert a Seedling dataclass. Returns the new id."""
    seedling_id = seedling.id or new_id()
    conn = get_db()
    conn.execute(
        """INSERT INTO seedlings (id, user_id, plant_name, variety, count, phase,
                                  sown_at, phase_changed_at, planting_id, notes)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (seedling_id, seedling.user_id, seedling.plant_name, seedling.variety, seedling.count,
         seedling.phase, seedling.sown_at, seedling.phase_changed_at, seedling.planting_id,
         seedling.notes)
    )
    conn.commit()
    conn.close()
    return seedling_id


def get_seedling(user_id, seedling_id):
    conn = get_db()
    row = conn.execute(
        "SELECT * FROM seedlings WHERE id = ? AND user_id = ?",
        (seedling_id, user_id)
    ).fetchone()
    conn.close()
    return row


def update_seedling_phase(seedling):
    """Persist phase, phase_changed_at and planting_id from a Seedling dataclass."""
    conn = get_db()
    conn.execute(
        """UPDATE seedlings SET phase = ?, phase_changed_at = ?, planting_id = ?
           WHERE id = ? AND user_id = ?""",
        (seedling.phase, seedling.phase_changed_at, seedling.planting_id,
         seedling.id, seedling.user_id)
    )
    conn.commit()
    conn.close()


def count_seedlings_in_progress(user_id):
    """Seedlings not yet transplanted or failed."""
    conn = get_db()
    count = conn.execute(
        """SELECT COUNT(*) FROM seedlings
           WHERE user_id = ? AND phase NOT IN ('transplanted', 'failed')""",
        (user_id,)
    ).fetchone()[0]
    conn.close()
    return count


# ========================================
# Notes
# ========================================

def create_note(garden_id, category, content, square=None, planting_id=None):
    note_id = new_id()
    conn = get_db()
    conn.execute(
        """INSERT INTO notes (id, garden_id, category, content, square, planting_id)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (note_id, garden_id, category, content, square, planting_id)
    )
    conn.commit()
    conn.close()
    return note_id


# ========================================
# Bulk Export
# ========================================

def get_all_data(user_id):
    """
    Every row the user owns, grouped by table.

    Returns:
        dict with keys gardens, plantings, harvests, seedlings, notes; each a
        list of plain dicts, newest first.
    """
    conn = get_db()
    queries = {
        'gardens': "SELECT * FROM gardens WHERE user_id = ? ORDER BY created_at DESC, id",
        'plantings': """SELECT p.* FROM plantings p JOIN gardens g ON p.garden_id = g.id
                         WHERE g.user_id = ? ORDER BY p.planted_at DESC, p.created_at DESC""",
        'harvests': """SELECT h.* FROM harvests h
                        JOIN plantings p ON h.planting_id = p.id
                        JOIN gardens g ON p.garden_id = g.id
                        WHERE g.user_id = ? ORDER BY h.harvested_at DESC, h.created_at DESC""",
        'seedlings': "SELECT * FROM seedlings WHERE user_id = ? ORDER BY sown_at DESC, created_at DESC",
        'notes': """SELECT n.* FROM notes n JOIN gardens g ON n.garden_id = g.id
                     WHERE g.user_id = ? ORDER BY n.created_at DESC""",
    }
    try:
        return {
            table: [dict(row) for row in conn.execute(sql, (user_id,)).fetchall()]
            for table, sql in queries.items()
        }
    finally:
        conn.close()


# ========================================
# Catalog Introspection
# ========================================

CHECK_START = re.compile(r'(?:\bCONSTRAINT\s+"?(\w+)"?\s+)?\bCHECK\s*\(', re.IGNORECASE)


def _matching_paren(text, open_idx):
    """Index of the ')' closing the '(' at open_idx, skipping quoted strings."""
    depth = 0
    quote = None
    for i in range(open_idx, len(text)):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return i
    raise ValueError(f"Unbalanced parentheses in table definition at offset {open_idx}")


def extract_check_constraints(table_name, create_sql):
    """
    Pull every CHECK clause out of a CREATE TABLE statement.

    SQLite keeps no per-constraint catalog, so the stored CREATE text is the
    source. Unnamed checks are named "<table>_check<n>".
    """
    checks = []
    for n, match in enumerate(CHECK_START.finditer(create_sql), 1):
        open_idx = match.end() - 1
        close_idx = _matching_paren(create_sql, open_idx)
        body = ' '.join(create_sql[open_idx + 1:close_idx].split())
        name = match.group(1) or f"{table_name}_check{n}"
        checks.append(CheckConstraint(table_name, name, f"CHECK ({body})"))
    return checks


class SqliteCatalog:
    """Reads column, foreign key and check metadata for a set of tables."""

    def _placeholders(self, tables):
        return ', '.join('?' for _ in tables)

    def columns(self, tables):
        conn = get_db()
        try:
            rows = conn.execute(
                f"""SELECT m.name AS table_name, p.name AS column_name, p.type AS data_type,
                           p."notnull" AS not_null, p.dflt_value AS column_default, p.pk AS pk
                    FROM sqlite_master AS m
                    JOIN pragma_table_info(m.name) AS p
                    WHERE m.type = 'table' AND m.name IN ({self._placeholders(tables)})
                    ORDER BY m.name, p.cid""",
                tuple(tables)
            ).fetchall()
        finally:
            conn.close()
        return [
            ColumnInfo(
                table_name=r['table_name'],
                column_name=r['column_name'],
                data_type=(r['data_type'] or '').lower(),
                nullable=not (r['not_null'] or r['pk']),
                column_default=r['column_default'],
            )
            for r in rows
        ]

    def foreign_keys(self, tables):
        conn = get_db()
        try:
            rows = conn.execute(
                f"""SELECT m.name AS table_name, f."from" AS column_name,
                           f."table" AS foreign_table, f."to" AS foreign_column
                    FROM sqlite_master AS m
                    JOIN pragma_foreign_key_list(m.name) AS f
                    WHERE m.type = 'table' AND m.name IN ({self._placeholders(tables)})
                    ORDER BY m.name, f.id, f.seq""",
                tuple(tables)
            ).fetchall()
        finally:
            conn.close()
        return [
            ForeignKey(r['table_name'], r['column_name'], r['foreign_table'], r['foreign_column'] or 'id')
            for r in rows
        ]

    def check_constraints(self, tables):
        conn = get_db()
        try:
            rows = conn.execute(
                f"""SELECT name AS table_name, sql FROM sqlite_master
                    WHERE type = 'table' AND name IN ({self._placeholders(tables)})
                    ORDER BY name""",
                tuple(tables)
            ).fetchall()
        finally:
            conn.close()
        checks = []
        for r in rows:
            checks.extend(extract_check_constraints(r['table_name'], r['sql'] or ''))
        return checks
