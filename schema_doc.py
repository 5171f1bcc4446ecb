"""
schema_doc.py — Database documentation generated from the catalog.

On first demand the catalog is asked for three things about the domain tables
(columns, foreign keys, CHECK constraints). The answers are rendered as one
markdown table per table, prefixed by the static usage guidance, and the
result is kept for the rest of the process lifetime. A new process picks up
schema changes.

If any catalog query fails the caller gets the short static guidance instead,
nothing is cached, and the next call tries again.
"""

import logging
import re
import threading

from database import SCHEMA_TABLES, SqliteCatalog
from utils.errors import CatalogUnavailable

logger = logging.getLogger(__name__)


STATIC_INSTRUCTIONS = (
    "You are helping a user manage their square foot gardens. "
    "Call get_schema to discover the data model, rules, and coordinate system "
    "before recording plantings, harvests, seedlings or notes."
)

PREAMBLE = """## Data Isolation

Every tool call is scoped to the authenticated user. Gardens and seedlings belong to \
the caller; plantings, harvests and notes are reached through the caller's gardens. \
Records owned by other users are never visible and never need to be filtered out.

## Coordinate System

Gardens use an alphanumeric grid: columns are letters (A, B, C, ...) and rows are \
numbers (1, 2, 3, ...). "B3" means column B, row 3. A 4x4 garden spans columns A-D \
and rows 1-4. Columns past Z continue as AA, AB, ... like spreadsheet columns.

## Writing Data

- Record plantings with add_planting. One planting row is created per square and \
the response lists warnings for squares that already hold an active planting.
- Record harvests with record_harvest; pass mark_complete to set the planting to 'harvested'.
- Move seedlings forward with advance_seedling_phase.

## Important Rules

- IDs are generated by the server. Do NOT invent IDs; use the ones returned by earlier calls.
- Seedling phases must progress in order: sown → germinated → true_leaves → hardening → \
transplanted. A seedling can be marked 'failed' from any phase before it is transplanted.
- When transplanting a seedling, first create the planting, then advance the seedling to \
'transplanted' with that planting_id.
- A single square can have multiple plantings over time (succession planting). Only \
'active' plantings occupy a square.
- Seedlings and plantings are separate concepts: seedlings track indoor growth, \
plantings track what is in the garden.
- Always refer to records by id, never by name or square."""


# ========================================
# Check Constraint Parsing
# ========================================

# CHECK (status IN ('active', 'harvested', 'failed'))
ENUM_CHECK = re.compile(r'^CHECK\s*\(\s*"?(\w+)"?\s+IN\s*\((.*)\)\s*\)$', re.IGNORECASE | re.DOTALL)
ENUM_VALUE = re.compile(r"'((?:[^']|'')*)'|([^,'\s][^,]*)")
CHECK_WRAPPER = re.compile(r'^CHECK\s*\((.*)\)$', re.IGNORECASE | re.DOTALL)


def parse_check_values(definition):
    """
    Decode an enumeration-style check.

    Input pattern: CHECK (<column> IN (<value>, <value>, ...)) where values are
    single-quoted strings ('' escapes a quote) or bare literals.

    Returns:
        (column_name, [values]) or None if the definition is not of that shape.
    """
    match = ENUM_CHECK.match(definition.strip())
    if not match:
        return None
    values = []
    for m in ENUM_VALUE.finditer(match.group(2)):
        if m.group(1) is not None:
            values.append(m.group(1).replace("''", "'"))
        else:
            values.append(m.group(2).strip())
    return match.group(1), values


def strip_check(definition):
    """'CHECK (cols > 0)' → 'cols > 0'."""
    match = CHECK_WRAPPER.match(definition.strip())
    return match.group(1).strip() if match else definition.strip()


def _mentions(expression, column_name):
    return re.search(rf'(?<![\w"]){re.escape(column_name)}(?![\w"])|"{re.escape(column_name)}"', expression) is not None


# ========================================
# Markdown Rendering
# ========================================

def build_schema_markdown(columns, foreign_keys, checks, table_order=SCHEMA_TABLES):
    """
    Render one markdown section per table.

    Args:
        columns: ColumnInfo records, in column order within each table.
        foreign_keys: ForeignKey records.
        checks: CheckConstraint records.

    Returns:
        Sections joined by blank lines, tables in table_order.
    """
    fk_map = {(fk.table_name, fk.column_name): fk for fk in foreign_keys}

    enum_map = {}
    other_checks = {}
    for ck in checks:
        parsed = parse_check_values(ck.definition)
        if parsed:
            column_name, values = parsed
            enum_map[(ck.table_name, column_name)] = values
        else:
            other_checks.setdefault(ck.table_name, []).append(strip_check(ck.definition))

    tables = {}
    for col in columns:
        tables.setdefault(col.table_name, []).append(col)

    sections = []
    for table_name in table_order:
        cols = tables.get(table_name)
        if not cols:
            continue

        rows = [
            f"### {table_name}",
            "| Column | Type | Nullable | Default | Notes |",
            "|--------|------|----------|---------|-------|",
        ]
        for col in cols:
            notes = []
            if col.column_name == 'id':
                notes.append("PK")

            fk = fk_map.get((table_name, col.column_name))
            if fk:
                notes.append(f"FK → {fk.foreign_table}({fk.foreign_column})")

            values = enum_map.get((table_name, col.column_name))
            if values:
                notes.append(', '.join(f"'{v}'" for v in values))
            else:
                for expression in other_checks.get(table_name, []):
                    if _mentions(expression, col.column_name):
                        notes.append(expression)

            nullable = "yes" if col.nullable else "no"
            default = col.column_default or ""
            rows.append(
                f"| {col.column_name} | {col.data_type} | {nullable} | {default} | {'; '.join(notes)} |"
            )
        sections.append('\n'.join(rows))

    return '\n\n'.join(sections)


# ========================================
# Process-wide Cache
# ========================================

class SchemaDocCache:
    """
    Holds the rendered documentation once it has been built successfully.

    Concurrent first calls may each build it; the first to finish is stored
    and every later call returns that same string.
    """

    def __init__(self, tables=SCHEMA_TABLES):
        self.tables = tuple(tables)
        self._value = None
        self._lock = threading.Lock()

    @property
    def is_cached(self):
        return self._value is not None

    def _introspect(self, catalog):
        try:
            columns = catalog.columns(self.tables)
            foreign_keys = catalog.foreign_keys(self.tables)
            checks = catalog.check_constraints(self.tables)
        except Exception as e:
            raise CatalogUnavailable(f"Catalog introspection failed: {e}", error=str(e))
        return columns, foreign_keys, checks

    def get(self, catalog):
        """
        Return the documentation, building it on first successful use.

        Never raises for catalog problems: falls back to STATIC_INSTRUCTIONS.
        """
        cached = self._value
        if cached is not None:
            return cached

        try:
            columns, foreign_keys, checks = self._introspect(catalog)
        except CatalogUnavailable as e:
            logger.warning("Schema documentation unavailable, using static instructions: %s", e.message)
            return STATIC_INSTRUCTIONS

        markdown = build_schema_markdown(columns, foreign_keys, checks, self.tables)
        document = f"{PREAMBLE}\n\n## Database Schema\n\n{markdown}"

        with self._lock:
            if self._value is None:
                self._value = document
                logger.info("Schema documentation cached (%d tables)", len(self.tables))
            return self._value


schema_cache = SchemaDocCache()


def get_schema_doc(catalog=None):
    """Documentation for the live database, cached for the process lifetime."""
    return schema_cache.get(catalog or SqliteCatalog())
