"""Flask front end: snapshot regeneration endpoints plus static dashboard files."""

import logging
import os

from flask import Flask, abort, jsonify, request, send_from_directory

from gymstats.config import Config
from gymstats.service import (
    OUTCOME_FAILED,
    OUTCOME_INVALID_INPUT,
    OUTCOME_NOT_FOUND,
    OUTCOME_OK,
    SnapshotService,
)
from gymstats.validator import DATE_RANGE_SCHEMA, SchemaValidator

logger = logging.getLogger(__name__)

STATUS_CODES = {
    OUTCOME_OK: 200,
    OUTCOME_INVALID_INPUT: 400,
    OUTCOME_NOT_FOUND: 404,
    OUTCOME_FAILED: 500,
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Only dashboard assets are public; credentials and config share the directory.
STATIC_EXTENSIONS = frozenset({
    ".html", ".css", ".js", ".json", ".map",
    ".png", ".jpg", ".jpeg", ".svg", ".ico", ".webp",
    ".woff", ".woff2",
})


def is_public_asset(filename: str) -> bool:
    parts = filename.replace("\\", "/").split("/")
    if any(part.startswith(".") for part in parts):
        return False
    return os.path.splitext(filename)[1].lower() in STATIC_EXTENSIONS


def create_app(config=None, service=None):
    """Flask application factory."""
    app = Flask(__name__, static_folder=None)

    if config is None:
        config = Config.from_env()
    if service is None:
        service = SnapshotService(config)

    static_dir = os.path.abspath(config["server"]["static_dir"])
    index_page = config["server"]["index_page"]
    range_validator = SchemaValidator(DATE_RANGE_SCHEMA)

    # Store components on app for access in tests
    app.config["components"] = {
        "config": config,
        "service": service,
    }

    def _respond(result):
        return jsonify(result.to_dict()), STATUS_CODES[result.outcome]

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({"success": False, "error": "Method not allowed"}), 405

    # --- Routes ---

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy"})

    # GET is claimed here so the static catch-all below cannot shadow these URLs.
    @app.route("/generate-data", methods=["GET", "POST"])
    def generate_data():
        if request.method != "POST":
            return method_not_allowed(None)
        return _respond(service.generate_latest())

    @app.route("/generate-data-range", methods=["GET", "POST"])
    def generate_data_range():
        if request.method != "POST":
            return method_not_allowed(None)
        body = request.get_json(force=True, silent=True)
        is_valid, errors = range_validator.validate(body)
        if not is_valid:
            logger.info("Rejected range request body: %s", "; ".join(errors))
            return jsonify({"success": False, "error": "Invalid request body"}), 400

        return _respond(service.generate_range(body["from"], body["to"]))

    @app.route("/")
    def index():
        return send_from_directory(static_dir, index_page)

    @app.route("/<path:filename>")
    def static_files(filename):
        if not is_public_asset(filename):
            abort(404)
        return send_from_directory(static_dir, filename)

    return app
