"""
utils/identity.py — Caller identity for the JSON blueprints.

Authentication happens upstream. The authenticating proxy forwards the
verified user id in the X-User-Id header, and every query is scoped to it.
"""

from flask import g, jsonify, request

USER_HEADER = 'X-User-Id'


def load_user():
    """before_request hook: set g.user_id or answer 401."""
    user_id = request.headers.get(USER_HEADER, '').strip()
    if not user_id:
        return jsonify({'success': False, 'error': 'Unauthorized: missing caller identity.'}), 401
    g.user_id = user_id
    return None
