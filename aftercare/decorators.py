# Overview: Error-handling decorator shared by API routes.

from functools import wraps
from flask import current_app, jsonify

from .domain.result import VALIDATION_ERROR
from .validation import ValidationError


def handle_errors(action: str):
    """
    Turn request-level exceptions into JSON error responses.

    - ValidationError (bad payload shape): 400 with kind VALIDATION_ERROR
    - anything else: logged with traceback, 500

    Domain failures never reach here; routes return them via respond().
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except ValidationError as e:
                return jsonify({"error": str(e), "kind": VALIDATION_ERROR, "fields": []}), 400
            except Exception:
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"error": "Internal server error"}), 500

        return decorated_function

    return decorator
