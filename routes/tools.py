"""
routes/tools.py — Remotely invocable garden tools (JSON API).

Provides:
- GET  /tools/        — List available tools with descriptions
- POST /tools/<name>  — Invoke a tool with a JSON object of arguments

Tools:
- list_gardens, create_garden
- add_planting, update_planting_status, record_harvest
- start_seedlings, advance_seedling_phase
- add_note
- get_schema, get_all_data

Responses: {'success': True, 'text': ..., ...} on success,
{'success': False, 'error': ..., 'detail': {...}} on failure.
"""

import json
import logging
import sqlite3

from flask import Blueprint, g, jsonify, request

from database import (
    get_gardens, get_garden, get_garden_stats, create_garden,
    get_active_plantings, create_plantings_batch, get_planting, update_planting_status,
    create_harvest, create_seedling, get_seedling, update_seedling_phase,
    count_seedlings_in_progress, create_note, get_all_data
)
from models import Garden, Planting, Seedling
from planting_engine import active_occupancy, find_conflicts
from schema_doc import get_schema_doc
from seedling_lifecycle import (
    Phase, to_phase, new_seedling, apply_transition, transition_warnings
)
from utils.errors import GardenError, InvalidInput, NotFound
from utils.grid import parse_grid_size, render_grid
from utils.identity import load_user
from utils.validators import (
    validate_label, validate_labels, validate_grid_extent, validate_garden_code,
    validate_date, validate_count, validate_planting_status, validate_note_category,
    require_text
)

logger = logging.getLogger(__name__)

tools_bp = Blueprint('tools', __name__, url_prefix='/tools')

MAX_WEIGHT_GRAMS = 10_000_000

TOOLS = {}


def tool(name, description):
    """Register a handler(user_id, args) -> dict under a tool name."""
    def decorator(fn):
        TOOLS[name] = {'handler': fn, 'description': description}
        return fn
    return decorator


@tools_bp.before_request
def _require_user():
    if request.endpoint == 'tools.list_tools':
        return None
    return load_user()


# ========================================
# Dispatch
# ========================================

@tools_bp.route('/')
def list_tools():
    """List tool names and descriptions (JSON API)."""
    return jsonify({
        'success': True,
        'tools': [{'name': name, 'description': t['description']} for name, t in TOOLS.items()],
    })


@tools_bp.route('/<name>', methods=['POST'])
def invoke(name):
    """Run one tool for the current user."""
    entry = TOOLS.get(name)
    if not entry:
        return jsonify({'success': False, 'error': f"Unknown tool: {name}"}), 404

    args = request.get_json(silent=True)
    if args is None:
        args = {}
    if not isinstance(args, dict):
        return jsonify({'success': False, 'error': 'Tool arguments must be a JSON object.'}), 400

    logger.info("Tool %s invoked by %s", name, g.user_id)
    try:
        result = entry['handler'](g.user_id, args)
    except NotFound as e:
        return jsonify({'success': False, 'error': e.message, 'detail': e.to_dict()}), 404
    except GardenError as e:
        return jsonify({'success': False, 'error': e.message, 'detail': e.to_dict()}), 400
    except sqlite3.Error as e:
        logger.exception("Tool %s failed", name)
        return jsonify({'success': False, 'error': f"Database error: {e}"}), 500

    return jsonify({'success': True, **result})


# ========================================
# Argument Helpers
# ========================================

def _optional_text(args, key):
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{key} must be a string.", field=key)
    return value.strip() or None


def _require_garden(user_id, garden_id):
    garden_id = require_text(garden_id, 'garden_id').upper()
    row = get_garden(user_id, garden_id)
    if not row:
        raise NotFound(f"Garden {garden_id} not found.", garden_id=garden_id)
    return Garden.from_row(row)


def _require_planting(user_id, planting_id):
    planting_id = require_text(planting_id, 'planting_id')
    row = get_planting(user_id, planting_id)
    if not row:
        raise NotFound(f"Planting {planting_id} not found.", planting_id=planting_id)
    return Planting.from_row(row)


# ========================================
# Gardens
# ========================================

@tool('list_gardens', "List all gardens with a grid of active plantings, harvest counts, "
                      "and seedlings in progress.")
def list_gardens(user_id, args):
    gardens = [Garden.from_row(r) for r in get_gardens(user_id)]
    if not gardens:
        return {'text': "No gardens found. Use create_garden to create one.", 'gardens': []}

    sections = []
    summaries = []
    for garden in gardens:
        plantings = [Planting.from_row(r) for r in get_active_plantings(user_id, garden.id)]
        stats = get_garden_stats(user_id, garden.id)
        grid = render_grid(garden.cols, garden.rows, active_occupancy(plantings))

        sections.append(
            f"## {garden.name} ({garden.id})\n"
            f"Size: {garden.cols}x{garden.rows} ({garden.square_count} squares)\n"
            + (f"Notes: {garden.notes}\n" if garden.notes else "")
            + f"\n```\n{grid}\n```\n"
            f"Active plantings: {stats['active_plantings']}\n"
            f"Total harvests: {stats['harvests']}"
        )
        summaries.append({
            'id': garden.id,
            'name': garden.name,
            'cols': garden.cols,
            'rows': garden.rows,
            'active_plantings': stats['active_plantings'],
            'harvests': stats['harvests'],
        })

    in_progress = count_seedlings_in_progress(user_id)
    text = "\n\n---\n\n".join(sections) + f"\n\nSeedlings in progress: {in_progress}"
    return {'text': text, 'gardens': summaries, 'seedlings_in_progress': in_progress}


@tool('create_garden', "Create a new square foot garden. Give a short code (id), a name, "
                       "and either cols/rows or a size like \"4x4\".")
def create_garden_tool(user_id, args):
    garden_id = validate_garden_code(args.get('id'))
    name = require_text(args.get('name'), 'name')

    cols, rows = args.get('cols'), args.get('rows')
    if cols is None and rows is None and args.get('size') is not None:
        cols, rows = parse_grid_size(args.get('size'))
    cols, rows = validate_grid_extent(cols, rows)

    created_id, error = create_garden(user_id, garden_id, name, cols, rows, _optional_text(args, 'notes'))
    if error:
        raise InvalidInput(error, field='id')

    return {
        'text': f"Garden \"{name}\" created ({created_id}, {cols}x{rows}).",
        'garden_id': created_id,
    }


# ========================================
# Plantings & Harvests
# ========================================

@tool('add_planting', "Add planting(s) to square(s) in a garden, e.g. squares [\"A1\", \"B2\"]. "
                      "Warns about squares that already hold an active planting.")
def add_planting(user_id, args):
    garden = _require_garden(user_id, args.get('garden_id'))

    squares = args.get('squares')
    if not isinstance(squares, list) or not squares:
        raise InvalidInput("squares must be a non-empty list of coordinates like [\"A1\"].", field='squares')
    labels = validate_labels(squares, garden.cols, garden.rows)

    plant_name = require_text(args.get('plant_name'), 'plant_name')
    variety = _optional_text(args, 'variety')
    count = validate_count(args.get('count'))
    planted_at = validate_date(args.get('planted_at'), 'planted_at')

    existing = [Planting.from_row(r) for r in get_active_plantings(user_id, garden.id)]
    warnings = find_conflicts(labels, active_occupancy(existing))

    created = create_plantings_batch(
        garden.id, labels, plant_name, variety, count, planted_at, _optional_text(args, 'notes')
    )

    lines = [f"{planting_id} ({square})" for planting_id, square in created]
    text = f"Created {len(created)} planting(s) of {plant_name}:\n" + "\n".join(lines)
    if warnings:
        text += "\n\nWarnings:\n" + "\n".join(warnings)

    return {
        'text': text,
        'plantings': [{'id': planting_id, 'square': square} for planting_id, square in created],
        'warnings': warnings,
    }


@tool('update_planting_status', "Update the status of a planting to active, harvested, or failed.")
def update_planting_status_tool(user_id, args):
    planting_id = require_text(args.get('planting_id'), 'planting_id')
    status = validate_planting_status(args.get('status'))

    row = update_planting_status(user_id, planting_id, status)
    if not row:
        raise NotFound(f"Planting {planting_id} not found.", planting_id=planting_id)

    return {
        'text': f"Planting {row['id']} ({row['plant_name']}, {row['square']}) status set to \"{status}\".",
        'planting_id': row['id'],
        'status': status,
    }


@tool('record_harvest', "Record a harvest for a planting, optionally marking the planting as "
                        "fully harvested (mark_complete).")
def record_harvest(user_id, args):
    planting = _require_planting(user_id, args.get('planting_id'))

    weight_grams = args.get('weight_grams')
    if weight_grams is not None:
        if (isinstance(weight_grams, bool) or not isinstance(weight_grams, (int, float))
                or not 0 <= weight_grams <= MAX_WEIGHT_GRAMS):
            raise InvalidInput(f"weight_grams must be a number between 0 and {MAX_WEIGHT_GRAMS}.",
                               field='weight_grams', maximum=MAX_WEIGHT_GRAMS)
        weight_grams = float(weight_grams)

    mark_complete = args.get('mark_complete', False)
    if not isinstance(mark_complete, bool):
        raise InvalidInput("mark_complete must be true or false.", field='mark_complete')

    harvest_id = create_harvest(
        planting.id,
        validate_date(args.get('harvested_at'), 'harvested_at'),
        amount=_optional_text(args, 'amount'),
        weight_grams=weight_grams,
        notes=_optional_text(args, 'notes'),
        mark_complete=mark_complete,
    )

    text = f"Harvest recorded ({harvest_id}) for {planting.plant_name} ({planting.square})."
    if mark_complete:
        text += "\nPlanting marked as harvested."
    return {'text': text, 'harvest_id': harvest_id}


# ========================================
# Seedlings
# ========================================

@tool('start_seedlings', "Record seeds started indoors. Seedlings belong to the user, not a "
                         "garden, until they are transplanted.")
def start_seedlings(user_id, args):
    plant_name = require_text(args.get('plant_name'), 'plant_name')
    variety = _optional_text(args, 'variety')
    count = validate_count(args.get('count'))
    sown_at = validate_date(args.get('sown_at'), 'sown_at')

    seedling = new_seedling(user_id, plant_name, variety, count, sown_at, _optional_text(args, 'notes'))
    seedling_id = create_seedling(seedling)

    return {
        'text': f"Seedling tray started ({seedling_id}): {count}x {plant_name}"
                + (f" ({variety})" if variety else "") + f", sown {sown_at}.",
        'seedling_id': seedling_id,
    }


@tool('advance_seedling_phase', "Move a seedling forward: sown → germinated → true_leaves → "
                                "hardening → transplanted, or mark it failed. When transplanting, "
                                "create the planting first and pass its planting_id.")
def advance_seedling_phase(user_id, args):
    seedling_id = require_text(args.get('seedling_id'), 'seedling_id')
    target = to_phase(args.get('phase'))
    on_date = validate_date(args.get('date'), 'date')
    planting_id = _optional_text(args, 'planting_id')

    row = get_seedling(user_id, seedling_id)
    if not row:
        raise NotFound(f"Seedling {seedling_id} not found.", seedling_id=seedling_id)
    seedling = Seedling.from_row(row)

    if planting_id and target is Phase.TRANSPLANTED:
        _require_planting(user_id, planting_id)

    updated = apply_transition(seedling, target, on_date, planting_id)
    update_seedling_phase(updated)

    warnings = transition_warnings(target, planting_id)
    text = f"Seedling {seedling.id} ({seedling.plant_name}) advanced to \"{updated.phase}\"."
    if updated.planting_id and target is Phase.TRANSPLANTED:
        text += f" Linked to planting {updated.planting_id}."
    if warnings:
        text += "\n\nWarnings:\n" + "\n".join(warnings)

    return {
        'text': text,
        'seedling_id': seedling.id,
        'phase': updated.phase,
        'planting_id': updated.planting_id,
        'warnings': warnings,
    }


# ========================================
# Notes
# ========================================

@tool('add_note', "Add a categorized note (observation, task, plan, issue, general) to a garden, "
                  "optionally linked to a square or planting.")
def add_note(user_id, args):
    garden = _require_garden(user_id, args.get('garden_id'))
    category = validate_note_category(args.get('category'))
    content = require_text(args.get('content'), 'content')

    square = _optional_text(args, 'square')
    if square:
        square = validate_label(square, garden.cols, garden.rows)

    planting_id = _optional_text(args, 'planting_id')
    if planting_id:
        planting = _require_planting(user_id, planting_id)
        if planting.garden_id != garden.id:
            raise InvalidInput(
                f"Planting {planting_id} belongs to garden {planting.garden_id}, not {garden.id}.",
                field='planting_id',
            )

    note_id = create_note(garden.id, category, content, square, planting_id)

    text = f"Note added ({note_id}, {category})"
    if square:
        text += f" for {square}"
    if planting_id:
        text += f" linked to planting {planting_id}"
    return {'text': text + ".", 'note_id': note_id}


# ========================================
# Schema & Data
# ========================================

@tool('get_schema', "Describe the data model: tables, columns, types, constraints, and the rules "
                    "for coordinates and seedling phases. Call this first.")
def get_schema(user_id, args):
    return {'text': get_schema_doc()}


@tool('get_all_data', "Export all of the user's gardens, plantings, harvests, seedlings and notes "
                      "as raw JSON for analysis. Prefer the other tools for simple lookups.")
def get_all_data_tool(user_id, args):
    data = get_all_data(user_id)
    return {'text': json.dumps(data, indent=2, default=str), 'data': data}
