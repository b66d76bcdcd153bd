from __future__ import annotations

import logging
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from unused_css.detector.transport import PAYLOAD_FIELD, decode_payload
from unused_css.errors import PayloadDecodeError

logger = logging.getLogger(__name__)

api_bp = Blueprint("unused_css_api", __name__)


@api_bp.after_request
def add_cors_headers(response):
    """Allow the detector to post from pages served on another origin."""
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response


def privileged(view):
    """Reject the request unless the configured viewer check passes."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        viewer_check = current_app.extensions["viewer_check"]
        if not viewer_check(request):
            return jsonify({"error": "forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper


@api_bp.route("/update_css", methods=["OPTIONS"])
def update_css_preflight():
    """Handle CORS preflight for usage updates."""
    return "", 204


@api_bp.route("/update_css", methods=["POST"])
def update_css():
    """Accept a compressed usage report from the detector and cache it."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON body required"}), 400
    try:
        envelope = decode_payload(data.get(PAYLOAD_FIELD))
    except PayloadDecodeError as exc:
        logger.warning("Rejected CSS usage payload: %s", exc)
        return jsonify({"error": str(exc)}), 400

    store = current_app.extensions["cache_store"]
    store.process(envelope.css, envelope.url, envelope.post_id, envelope.post_types)
    return jsonify({"reduction": round(envelope.reduction, 2)})


@api_bp.route("/detector_config")
def detector_config():
    """Settings the in-page detector needs; ``enabled`` is false when detection is off."""
    config = current_app.extensions["unused_css_config"]
    if not config.css_mode.detects:
        return jsonify({"enabled": False})
    return jsonify({
        "enabled": True,
        "mode": str(config.css_mode),
        "cache_directory": config.cache_directory,
        "include_patterns": config.include_pattern_sources,
    })


@api_bp.route("/get_dashboard_data", methods=["GET", "POST"])
@privileged
def get_dashboard_data():
    store = current_app.extensions["cache_store"]
    return jsonify({"cache_data": store.cache_summary()})


@api_bp.route("/get_css_data", methods=["GET", "POST"])
@privileged
def get_css_data():
    store = current_app.extensions["cache_store"]
    aggregator = current_app.extensions["stats_aggregator"]
    return jsonify({
        "cache_data": store.cache_summary(),
        "stats_data": aggregator.stats(),
    })


@api_bp.route("/clear_css_cache")
@privileged
def clear_css_cache():
    current_app.extensions["cache_store"].clear()
    return "", 204
