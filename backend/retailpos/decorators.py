# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def require_actor(f):
    """
    Require a forwarded actor identity.

    Authentication happens upstream; the gateway forwards the resolved
    identity in X-Actor-Id / X-Actor-Name / X-Actor-Role. Sets g.actor to
    an ActorContext for the service layer.

    Returns 401 if the headers are missing or the role is unknown.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = session_service.actor_from_headers(request.headers)
        if actor is None:
            return jsonify({"error": "Actor identity required"}), 401

        g.actor = actor
        return f(*args, **kwargs)

    return decorated_function
