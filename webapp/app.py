#!/usr/bin/env python3
"""
Fitness Dashboard Web App

Flask JSON API over the plan engine: today's plan section, the active plan
document, and applying a coach reply's markers.
"""

import os
import sys
import secrets
from pathlib import Path
from datetime import datetime
from functools import wraps

from flask import Flask, request, jsonify
from flask_wtf.csrf import CSRFProtect

# Add scripts directory to path
SCRIPTS_DIR = Path(__file__).parent.parent / "athletes" / "scripts"
sys.path.insert(0, str(SCRIPTS_DIR))

from constants import ISO_DATE_FORMAT, validate_athlete_id, get_data_root
from coach_actions import execute_actions, plan_dir
from coach_context import locate_today_section
from coach_markers import parse_actions
from document_store import DocumentStore, StorageError
from logger import get_logger
from plan_files import list_plan_windows, locate_active_plan
from plan_sections import NOT_FOUND

app = Flask(__name__)
log = get_logger()

# =============================================================================
# SECURITY CONFIGURATION
# =============================================================================

# Secret key - MUST be set in production
_secret_key = os.environ.get('SECRET_KEY')
if not _secret_key:
    if os.environ.get('FLASK_ENV') == 'production':
        raise RuntimeError("SECRET_KEY environment variable is required in production")
    _secret_key = secrets.token_hex(32)  # Generate random key for dev
    log.warning("Using randomly generated SECRET_KEY. Set SECRET_KEY env var for production.")
app.secret_key = _secret_key

# CSRF Protection
csrf = CSRFProtect(app)

# Largest coach reply accepted (chars)
MAX_REPLY_LENGTH = 50_000


@app.after_request
def set_security_headers(response):
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    if os.environ.get('FLASK_ENV') == 'production':
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# =============================================================================
# AUTHENTICATION
# =============================================================================

def require_api_auth(f):
    """Decorator for API endpoints that require the X-API-Key header."""
    @wraps(f)
    def decorated(*args, **kwargs):
        api_key_setting = os.environ.get('FD_API_KEY')
        api_key = request.headers.get('X-API-Key')
        if api_key and api_key_setting and secrets.compare_digest(api_key, api_key_setting):
            return f(*args, **kwargs)

        # If no API key configured, allow access (dev mode)
        if not api_key_setting:
            return f(*args, **kwargs)

        return jsonify({"error": "Invalid or missing API key"}), 401

    return decorated


# =============================================================================
# INPUT VALIDATION
# =============================================================================

def require_valid_athlete(f):
    """Decorator to validate athlete_id parameter."""
    @wraps(f)
    def decorated(athlete_id, *args, **kwargs):
        if not validate_athlete_id(athlete_id):
            return jsonify({"error": "Invalid athlete ID"}), 400
        return f(athlete_id, *args, **kwargs)
    return decorated


class InvalidQuery(Exception):
    pass


def request_reference() -> datetime:
    """Reference datetime from ?date=YYYY-MM-DD, default now."""
    value = request.args.get('date')
    if not value:
        return datetime.now()
    try:
        day = datetime.strptime(value, ISO_DATE_FORMAT).date()
    except ValueError:
        raise InvalidQuery(f"Invalid date: {value}")
    return datetime(day.year, day.month, day.day, 12, 0)


@app.errorhandler(InvalidQuery)
def bad_request(e):
    return jsonify({"error": str(e)}), 400


def athlete_store(athlete_id: str) -> DocumentStore:
    return DocumentStore(get_data_root() / athlete_id, athlete_id=athlete_id)


# =============================================================================
# ROUTES
# =============================================================================

@app.route('/health')
def health():
    """Health check."""
    data_root = get_data_root()
    status = 'ok' if data_root.is_dir() else 'degraded'
    return jsonify({"status": status, "service": "fitdash-webapp"}), (200 if status == 'ok' else 503)


@app.route('/api/athlete/<athlete_id>/today')
@require_api_auth
@require_valid_athlete
def api_today(athlete_id: str):
    """API: The plan section for today (or ?date=)."""
    reference = request_reference()
    store = athlete_store(athlete_id)

    try:
        plan_file, section = locate_today_section(store, reference)
    except StorageError as e:
        # Degrade to an empty day
        log.error("Could not load today's plan", athlete=athlete_id, error=str(e))
        plan_file, section = None, NOT_FOUND

    payload = {"date": reference.date().isoformat(), "plan_file": plan_file}
    payload.update(section.to_dict())
    return jsonify(payload)


@app.route('/api/athlete/<athlete_id>/plan')
@require_api_auth
@require_valid_athlete
def api_plan(athlete_id: str):
    """API: The full active plan document and all plan windows."""
    reference = request_reference()
    store = athlete_store(athlete_id)

    plan_file = locate_active_plan(store, reference, plan_dir())
    if plan_file is None:
        return jsonify({"error": "No plan configured"}), 404

    return jsonify({
        "plan_file": plan_file,
        "content": store.read(plan_file) or '',
        "windows": [w.to_dict() for w in list_plan_windows(store.list(plan_dir()))],
    })


@app.route('/api/athlete/<athlete_id>/coach/reply', methods=['POST'])
@require_api_auth
@require_valid_athlete
@csrf.exempt  # API endpoints use API key auth instead
def api_coach_reply(athlete_id: str):
    """API: Execute the markers in a coach reply and return the cleaned text."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('reply'), str):
        return jsonify({"error": "Body must be JSON with a 'reply' string"}), 400

    reply = data['reply']
    if len(reply) > MAX_REPLY_LENGTH:
        return jsonify({"error": "Reply too long"}), 400

    reference = request_reference()
    parsed = parse_actions(reply)
    results = execute_actions(parsed.actions, reference, athlete_store(athlete_id))

    return jsonify({
        "reply": parsed.cleaned_text,
        "actionResults": [r.to_dict() for r in results],
    })


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.errorhandler(404)
def not_found(e):
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({"error": "Method not allowed"}), 405


@app.errorhandler(500)
def server_error(e):
    return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    # Default to false in production, true only if explicitly set
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'
    app.run(host='0.0.0.0', port=port, debug=debug)
