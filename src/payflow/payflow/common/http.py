from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError
from ..core.session import SessionUser

logger = logging.getLogger(__name__)


def session_user() -> SessionUser:
    """Build the acting user from the Flask session (set by the login layer)."""
    roles = session.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    known = {r.value for r in Role}
    return SessionUser(
        user_id=str(session["user_id"]),
        full_name=session.get("name") or "",
        roles=frozenset(Role(r) for r in roles if r in known),
    )


def json_api(view):
    """Require a session and turn domain errors into ``{"success": false}`` replies."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please sign in to continue"}), 401
        try:
            return view(*args, **kwargs)
        except AuthorizationError as e:
            return jsonify({"success": False, "message": str(e)}), 403
        except NotFoundError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        except DomainError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return jsonify({"success": False, "message": "Internal error"}), 500

    return wrapper
