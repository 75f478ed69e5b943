"""
project: roomgen
module: __init__.py
License: MIT

Flask application factory for the layout preview service.

The generator itself lives in ``roomgen.layout`` and has no web dependency
beyond reading ``ROOMGEN_*`` overrides from an active app config. This
factory wires a development preview blueprint on top of it. Configuration is
sourced from environment variables (optionally via a local .env file).
"""

import logging
import os
import uuid

from dotenv import load_dotenv
from flask import Flask, jsonify

# Load .env if present so ROOMGEN_* overrides can be supplied without exporting shell variables.
load_dotenv()

_ENV_KEYS = (
    "ROOMGEN_CELL_COUNT",
    "ROOMGEN_CELL_SIZE",
    "ROOMGEN_EXTRA_DOOR_CHANCE",
    "ROOMGEN_LOCKED_FRACTION",
    "ROOMGEN_ENEMY_BUDGET",
    "ROOMGEN_TREASURE_BUDGET",
    "ROOMGEN_ENABLE_METRICS",
)


def create_app(config=None):
    """Return a new Flask app with the layout blueprint registered.

    ``config`` (a mapping) is applied last so tests can override anything.
    """
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
        ROOMGEN_PREVIEW_MAX_CELLS=int(os.getenv("ROOMGEN_PREVIEW_MAX_CELLS", "200")),
    )
    for key in _ENV_KEYS:
        if key in os.environ:
            app.config[key] = os.environ[key]
    if config:
        app.config.update(config)

    from roomgen.routes.layout_api import bp_layout, init_layout_state

    init_layout_state(app)
    app.register_blueprint(bp_layout)

    @app.errorhandler(500)
    def internal_error(e):
        error_id = uuid.uuid4().hex[:8]
        logging.exception("Unhandled exception (id=%s)", error_id)
        return jsonify({"error": "internal error", "error_id": error_id}), 500

    return app


__all__ = ["create_app"]
