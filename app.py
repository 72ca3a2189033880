"""
app.py — Flask entry point for the digital garden application.

Initializes the Flask app, configures logging, registers all route
blueprints, and calls init_db() and seed_defaults() on startup.

Run: python app.py → localhost:5000
"""

import logging
import os

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError, CSRFProtect

from database import init_db, seed_defaults
from routes.data_import import import_bp
from routes.export import export_bp
from routes.gardens import gardens_bp
from routes.main import main_bp
from routes.plantings import plantings_bp
from routes.plants import plants_bp
from routes.settings import settings_bp


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.secret_key = 'digital-garden-local-app-secret-key'
    app.config['WTF_CSRF_CHECK_DEFAULT'] = True

    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=logging.DEBUG if app.debug else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        """Missing or stale token: JSON 400, the client fetches /csrf-token and retries."""
        return jsonify({'success': False, 'error': e.description}), 400

    # Ensure data directory exists for the default database location
    base_dir = os.path.dirname(os.path.abspath(__file__))
    os.makedirs(os.path.join(base_dir, 'data'), exist_ok=True)

    # Initialize database and seed defaults
    with app.app_context():
        init_db()
        seed_defaults()

    # Register blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(plants_bp)
    app.register_blueprint(gardens_bp)
    app.register_blueprint(plantings_bp)
    app.register_blueprint(import_bp)
    app.register_blueprint(export_bp)
    app.register_blueprint(settings_bp)

    app.logger.info("Using database %s", app.config.get('DATABASE') or 'default path')
    return app


if __name__ == '__main__':
    app = create_app()
    # Debug mode: enabled by default for development (auto-reload on file changes)
    # Set FLASK_DEBUG=0 to disable for production
    debug = os.environ.get('FLASK_DEBUG', '1') != '0'
    app.run(host='localhost', port=5000, debug=debug)
