"""
app.py — Flask entry point for the square foot garden server.

Initializes the Flask app, registers all route blueprints and
calls init_db() on startup.

Run: python app.py → localhost:5000
"""

import logging
import os

from flask import Flask
from flask_wtf.csrf import CSRFProtect

from database import init_db, DEFAULT_DB_PATH
from routes.main import main_bp
from routes.tools import tools_bp
from routes.export import export_bp
from utils.backup import DEFAULT_BACKUP_DIR, DEFAULT_BACKUP_KEEP


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'square-foot-garden-local-secret-key')
    app.config['DATABASE'] = os.environ.get('GARDEN_DB_PATH', DEFAULT_DB_PATH)
    app.config['BACKUP_DIR'] = os.environ.get('GARDEN_BACKUP_DIR', DEFAULT_BACKUP_DIR)
    app.config['BACKUP_KEEP'] = int(os.environ.get('GARDEN_BACKUP_KEEP', DEFAULT_BACKUP_KEEP))
    # Comma-separated user ids allowed to list backups
    app.config['OPERATORS'] = [u.strip() for u in os.environ.get('GARDEN_OPERATORS', '').split(',') if u.strip()]
    app.config['WTF_CSRF_CHECK_DEFAULT'] = True

    if test_config:
        app.config.update(test_config)

    csrf = CSRFProtect(app)
    # Tools are called by API clients, not browser forms
    csrf.exempt(tools_bp)

    # Initialize database
    with app.app_context():
        init_db()

    # Register blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(tools_bp)
    app.register_blueprint(export_bp)

    return app


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app = create_app()
    # Debug mode: enabled by default for development (auto-reload on file changes)
    # Set FLASK_DEBUG=0 to disable for production
    debug = os.environ.get('FLASK_DEBUG', '1') != '0'
    app.run(host='localhost', port=int(os.environ.get('PORT', '5000')), debug=debug)
