#!/usr/bin/env python3
"""
Flask web application for Instantly Chef.

JSON API over the dashboard: profile, weekly planner, pantry, bar, menus,
cart, and the menu generation webhook (submit, callback, results).
Sign-in lives elsewhere; routes only read the current user from the session.
"""

import logging
from functools import wraps
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request, session
from flask_cors import CORS
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from instantly_chef.config import Settings, configure_logging
from instantly_chef.data.database import DatabaseInterface
from instantly_chef.errors import (
    GenerationConfigError,
    GenerationTransportError,
    InvalidCallbackError,
    InvalidItemError,
    UpstreamRejectedError,
)
from instantly_chef.generation.client import PENDING, MenuGenerationClient
from instantly_chef.state import Dashboard
from instantly_chef.utils import coerce_number, timestamp_now

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__)

WEBHOOK_SECRET_HEADER = "x-ic-webhook-secret"


def login_required(f):
    """Decorator to require a signed-in user for API routes."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "unauthorized"}), 401
        return f(*args, **kwargs)
    return decorated_function


def _settings() -> Settings:
    return current_app.config["IC_SETTINGS"]


def _db() -> DatabaseInterface:
    return current_app.config["IC_DB"]


def _generation_client() -> MenuGenerationClient:
    return current_app.config["IC_GENERATION_CLIENT"]


def _dashboard() -> Dashboard:
    return Dashboard(
        _db(),
        str(session["user_id"]),
        settings=_settings(),
        email=session.get("email"),
    )


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _optional_qty(value) -> Optional[float]:
    """Blank means "no quantity"; anything else must parse."""
    if value is None or value == "":
        return None
    qty = coerce_number(value, None)
    if qty is None:
        raise InvalidItemError(f"Quantity must be a number (got {value!r})")
    return qty


def _not_found(what: str):
    return jsonify({"success": False, "error": f"{what} not found"}), 404


@api.errorhandler(InvalidItemError)
def handle_invalid_item(e):
    return jsonify({"success": False, "error": str(e)}), 400


@api.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({"success": False, "error": "invalid payload", "details": e.errors()}), 400


@api.errorhandler(Exception)
def handle_unexpected(e):
    if isinstance(e, HTTPException):
        return e
    logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
    return jsonify({"success": False, "error": str(e)}), 500


@api.route("/health")
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy", "timestamp": timestamp_now()}), 200


# ==================== Profile & dashboard ====================

@api.route("/api/profile", methods=["GET"])
@login_required
def api_get_profile():
    return jsonify({"success": True, "profile": _dashboard().get_profile()})


@api.route("/api/profile", methods=["PUT"])
@login_required
def api_save_profile():
    """Save account form fields (partial updates allowed)."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Profile fields must be a JSON object"}), 400
    profile = _dashboard().update_profile(data)
    return jsonify({"success": True, "profile": profile})


@api.route("/api/dashboard", methods=["GET"])
@login_required
def api_get_dashboard():
    return jsonify({"success": True, "dashboard": _dashboard().to_dict()})


@api.route("/api/dashboard/reset", methods=["POST"])
@login_required
def api_reset_dashboard():
    dash = _dashboard()
    dash.reset()
    return jsonify({"success": True, "dashboard": dash.to_dict()})


# ==================== Weekly planner ====================

@api.route("/api/weekly", methods=["PUT"])
@login_required
def api_update_weekly():
    dash = _dashboard()
    weekly = dash.update_weekly(_body())
    return jsonify({
        "success": True,
        "weekly": weekly.to_dict(),
        "profile": dash.state.profile.to_dict(),
        "budget": dash.budget_status(),
    })


@api.route("/api/weekly/on-hand-image", methods=["POST"])
@login_required
def api_on_hand_image():
    on_hand_text = _dashboard().submit_on_hand_image(_body().get("preview"))
    return jsonify({"success": True, "on_hand_text": on_hand_text})


@api.route("/api/budget", methods=["GET"])
@login_required
def api_budget():
    return jsonify({"success": True, **_dashboard().budget_status()})


# ==================== Pantry ====================

@api.route("/api/pantry", methods=["POST"])
@login_required
def api_add_pantry_item():
    data = _body()
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"success": False, "error": "Name is required"}), 400

    item = _dashboard().add_pantry_item(
        name,
        qty=_optional_qty(data.get("qty")),
        measure=data.get("measure") or None,
        category=data.get("category") or None,
    )
    return jsonify({"success": True, "item": item.to_dict()}), 201


@api.route("/api/pantry/<item_id>", methods=["PATCH"])
@login_required
def api_edit_pantry_item(item_id):
    data = _body()
    patch = {}
    if "name" in data:
        patch["name"] = str(data["name"]).strip()
    if "qty" in data:
        patch["qty"] = _optional_qty(data["qty"])
    if "measure" in data:
        patch["measure"] = data["measure"] or None

    item = _dashboard().edit_pantry_item(item_id, **patch)
    if item is None:
        return _not_found("Pantry item")
    return jsonify({"success": True, "item": item.to_dict()})


@api.route("/api/pantry/<item_id>", methods=["DELETE"])
@login_required
def api_remove_pantry_item(item_id):
    _dashboard().remove_pantry_item(item_id)
    return jsonify({"success": True})


@api.route("/api/pantry/<item_id>/toggle", methods=["POST"])
@login_required
def api_toggle_pantry_item(item_id):
    dash = _dashboard()
    dash.toggle_pantry_item(item_id)
    item = dash.state.pantry.get(item_id)
    return jsonify({"success": True, "item": item.to_dict() if item else None})


@api.route("/api/pantry/reorder", methods=["POST"])
@login_required
def api_reorder_staple():
    name = (_body().get("name") or "").strip()
    if not name:
        return jsonify({"success": False, "error": "Name is required"}), 400
    line = _dashboard().reorder_staple(name)
    return jsonify({"success": True, "line": line.to_dict()})


@api.route("/api/pantry/image", methods=["POST"])
@login_required
def api_pantry_image():
    items = _dashboard().submit_pantry_image()
    return jsonify({"success": True, "items": [item.to_dict() for item in items]})


# ==================== Bar ====================

@api.route("/api/bar", methods=["POST"])
@login_required
def api_add_bar_item():
    data = _body()
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"success": False, "error": "Name is required"}), 400

    qty = _optional_qty(data.get("qty"))
    item = _dashboard().add_bar_item(
        name,
        qty if qty is not None else 0.0,
        data.get("measure") or None,
        data.get("category") or "other",
    )
    return jsonify({"success": True, "item": item.to_dict()}), 201


@api.route("/api/bar/<item_id>", methods=["PATCH"])
@login_required
def api_edit_bar_item(item_id):
    data = _body()
    patch = {}
    if "name" in data:
        patch["name"] = str(data["name"]).strip()
    if "qty" in data:
        patch["qty"] = _optional_qty(data["qty"])
    if "measure" in data:
        patch["measure"] = data["measure"] or None

    item = _dashboard().edit_bar_item(item_id, **patch)
    if item is None:
        return _not_found("Bar item")
    return jsonify({"success": True, "item": item.to_dict()})


@api.route("/api/bar/<item_id>", methods=["DELETE"])
@login_required
def api_remove_bar_item(item_id):
    _dashboard().remove_bar_item(item_id)
    return jsonify({"success": True})


@api.route("/api/bar/<item_id>/toggle", methods=["POST"])
@login_required
def api_toggle_bar_item(item_id):
    dash = _dashboard()
    dash.toggle_bar_item(item_id)
    item = dash.state.bar.get(item_id)
    return jsonify({"success": True, "item": item.to_dict() if item else None})


@api.route("/api/bar/image", methods=["POST"])
@login_required
def api_bar_image():
    items = _dashboard().submit_bar_image()
    return jsonify({"success": True, "items": [item.to_dict() for item in items]})


@api.route("/api/bar/beverage", methods=["POST"])
@login_required
def api_suggest_beverage():
    kind = _body().get("kind", "cocktail")
    try:
        recipe = _dashboard().suggest_beverage(kind)
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    return jsonify({"success": True, "recipe": recipe.to_dict()})


# ==================== Menus ====================

@api.route("/api/menus/sample", methods=["POST"])
@login_required
def api_sample_menus():
    """Offline menu generation from the built-in samples."""
    menus = _dashboard().generate_sample_menus()
    return jsonify({"success": True, "menus": [menu.to_dict() for menu in menus]})


@api.route("/api/menus/<menu_id>/portions", methods=["POST"])
@login_required
def api_adjust_portions(menu_id):
    delta = int(coerce_number(_body().get("delta"), 0))
    menu = _dashboard().adjust_portions(menu_id, delta)
    if menu is None:
        return _not_found("Menu")
    return jsonify({"success": True, "menu": menu.to_dict()})


@api.route("/api/menus/<menu_id>/feedback", methods=["POST"])
@login_required
def api_menu_feedback(menu_id):
    feedback = (_body().get("feedback") or "").strip()
    if not feedback:
        return jsonify({"success": False, "error": "Feedback is required"}), 400
    menu = _dashboard().submit_feedback(menu_id, feedback)
    if menu is None:
        return _not_found("Menu")
    return jsonify({"success": True, "menu": menu.to_dict()})


@api.route("/api/menus/<menu_id>/approve", methods=["POST"])
@login_required
def api_approve_menu(menu_id):
    dash = _dashboard()
    if dash.state.menus.get(menu_id) is None:
        return _not_found("Menu")
    lines = dash.approve_menu(menu_id)
    return jsonify({
        "success": True,
        "lines": [line.to_dict() for line in lines],
        "budget": dash.budget_status(),
    })


# ==================== Cart ====================

@api.route("/api/cart/extra", methods=["POST"])
@login_required
def api_add_extra_item():
    data = _body()
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"success": False, "error": "Name is required"}), 400

    dash = _dashboard()
    line = dash.add_extra_item(
        name,
        coerce_number(data.get("qty"), 1.0),
        data.get("measure") or "count",
        coerce_number(data.get("price"), 0.0),
    )
    return jsonify({"success": True, "line": line.to_dict(), "budget": dash.budget_status()}), 201


@api.route("/api/cart/<section>", methods=["DELETE"])
@login_required
def api_clear_cart_section(section):
    dash = _dashboard()
    dash.clear_cart_section(section)
    return jsonify({"success": True, "budget": dash.budget_status()})


@api.route("/api/cart/line/<line_id>", methods=["DELETE"])
@login_required
def api_remove_cart_line(line_id):
    dash = _dashboard()
    dash.remove_cart_line(line_id)
    return jsonify({"success": True, "budget": dash.budget_status()})


# ==================== Menu generation ====================

@api.route("/api/n8n/submit", methods=["POST"])
@login_required
def api_submit_generation():
    """
    Submit the dashboard snapshot to the generation workflow.

    Returns 202 with the correlation id once the webhook accepts it.
    """
    data = _body()
    dash = _dashboard()
    try:
        accepted = dash.submit_generation(
            _generation_client(),
            client=data.get("client"),
            generate=data.get("generate"),
        )
    except GenerationConfigError as e:
        logger.error(f"Generation not configured: {e}")
        return jsonify({"success": False, "error": str(e)}), 500
    except UpstreamRejectedError as e:
        return jsonify({"success": False, "error": str(e), "details": e.details}), 502
    except GenerationTransportError as e:
        return jsonify({"success": False, "error": str(e)}), 500

    return jsonify({"success": True, **accepted}), 202


@api.route("/api/n8n/callback", methods=["POST"])
def api_generation_callback():
    """Results delivered by the workflow. Not session-authenticated."""
    secret = _settings().webhook_secret
    if secret and request.headers.get(WEBHOOK_SECRET_HEADER) != secret:
        logger.warning("Rejected generation callback with bad secret")
        return jsonify({"success": False, "error": "unauthorized"}), 401

    try:
        stored = _generation_client().handle_callback(request.get_json(silent=True))
    except InvalidCallbackError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    return jsonify({"success": True, "stored": stored}), 200


@api.route("/api/n8n/results", methods=["GET"])
@login_required
def api_generation_results():
    """Poll for a result; installs the menus once they arrive."""
    cid = request.args.get("cid")
    if not cid:
        return jsonify({"success": False, "error": "missing cid"}), 400

    # Other users' ids look pending so their existence is not revealed
    owner = _db().get_generation_owner(cid)
    if owner is not None and owner != str(session["user_id"]):
        logger.warning(f"User {session['user_id']} polled a result owned by another user")
        return jsonify(dict(PENDING))

    result = _generation_client().poll_result(cid)
    # Pending means no stored row, whatever status text a stored row carries
    if "correlationId" not in result:
        return jsonify(result)

    installed = _dashboard().apply_generation_result(result)
    return jsonify({**result, "installed": installed})


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[DatabaseInterface] = None,
    generation_client: Optional[MenuGenerationClient] = None,
) -> Flask:
    """
    Build the Flask application.

    Args:
        settings: Defaults to Settings.from_env()
        db: Defaults to a DatabaseInterface in settings.db_dir
        generation_client: Defaults to a client backed by db

    Returns:
        Configured Flask app
    """
    settings = settings or Settings.from_env()
    db = db or DatabaseInterface(db_dir=settings.db_dir)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config["IC_SETTINGS"] = settings
    app.config["IC_DB"] = db
    app.config["IC_GENERATION_CLIENT"] = generation_client or MenuGenerationClient(settings, store=db)
    CORS(app)

    app.register_blueprint(api)

    if not settings.n8n_webhook_url:
        logger.warning("N8N_WEBHOOK_URL not set - menu generation submit will fail")
    return app


def main():
    settings = Settings.from_env()
    configure_logging(settings)
    app = create_app(settings)

    # Run development server
    app.run(
        host="0.0.0.0",
        port=5000,
        debug=settings.debug,
    )


if __name__ == "__main__":
    main()
