"""
routes/main.py — Service index and health check.

Provides:
- GET /        — Service name and the available tools
- GET /health  — Database connectivity check
"""

import sqlite3

from flask import Blueprint, jsonify

from database import get_db
from routes.tools import TOOLS

main_bp = Blueprint('main', __name__)

SERVICE_NAME = 'Square Foot Garden Server'


@main_bp.route('/')
def index():
    """Service description with tool names."""
    return jsonify({
        'name': SERVICE_NAME,
        'tools': sorted(TOOLS),
        'endpoints': {'tools': '/tools/', 'export': '/export/excel'},
    })


@main_bp.route('/health')
def health():
    """Check that the database answers a trivial query."""
    try:
        conn = get_db()
        conn.execute("SELECT 1").fetchone()
        conn.close()
        return jsonify({'success': True, 'database': 'ok'})
    except sqlite3.Error as e:
        return jsonify({'success': False, 'database': str(e)}), 503
