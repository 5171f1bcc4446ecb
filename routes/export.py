"""
routes/export.py — Data export routes.

Provides:
- GET /export/excel    — Download all of the caller's data as Excel
- GET /export/json     — All of the caller's data as JSON
- GET /export/backups  — List database backups (operators only)

Auto-backup is triggered before every export.
"""

from flask import Blueprint, current_app, g, jsonify, send_file

from database import get_all_data
from utils.backup import backup_db, list_backups
from utils.export import generate_excel
from utils.identity import load_user

export_bp = Blueprint('export', __name__, url_prefix='/export')
export_bp.before_request(load_user)


@export_bp.route('/excel')
def export_excel():
    """Export every table as a multi-sheet Excel workbook."""
    # Auto-backup before export
    backup_db('export')

    buffer, filename = generate_excel(g.user_id)
    if not buffer:
        return jsonify({'success': False, 'error': 'No data to export.'}), 404

    return send_file(
        buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )


@export_bp.route('/json')
def export_json():
    """Export every table as JSON."""
    backup_db('export')
    return jsonify({'success': True, 'data': get_all_data(g.user_id)})


@export_bp.route('/backups')
def backups():
    """List available backups (JSON API).

    Operator endpoint: backups are whole-database copies, so only user ids
    listed in the OPERATORS config may see them.
    """
    if g.user_id not in current_app.config.get('OPERATORS', ()):
        return jsonify({'success': False, 'error': 'Forbidden: backups are restricted to operators.'}), 403
    return jsonify({'success': True, 'backups': list_backups()})
