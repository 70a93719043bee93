"""
Custom route decorators and request helpers for the JSON API.

- principal_required: ensures the request carries a known principal id
  (resolved by the login manager's request_loader) and passes it to the
  view as `principal_id`.
- json_body: parses the request body as a JSON object or raises a 400.
"""

from functools import wraps

from flask import request
from flask_login import current_user, login_required
from werkzeug.exceptions import BadRequest


def principal_required(f):
    """Require an authenticated principal; inject its id as principal_id."""

    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        return f(current_user.id, *args, **kwargs)

    return decorated


def json_body(required=True):
    """Return the request body as a dict.

    Raises:
        BadRequest: body is not valid JSON, or not a JSON object.
    """
    if not request.get_data(cache=True):
        if required:
            raise BadRequest("Request body must be a JSON object.")
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object.")
    return data
