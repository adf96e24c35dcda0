# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import current_app, g, jsonify, request

from .services.identity_service import IdentityError


def _is_authenticated() -> bool:
    return hasattr(g, "identity")


def require_auth(f):
    """
    Require a verified identity token.

    Sets g.identity (an Identity) for the wrapped route.

    Returns 401 if:
    - No "Authorization: Bearer <token>" header
    - The token fails verification (bad signature, expired, no subject)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")
        token = auth_header.split(" ", 1)[1].strip() if auth_header.startswith("Bearer ") else ""

        if not token:
            return jsonify({"error": "Not authorized, no token", "reason": "unauthorized"}), 401

        verifier = current_app.extensions["identity_verifier"]
        try:
            g.identity = verifier.verify(token)
        except IdentityError:
            current_app.logger.info("Rejected identity token on %s %s", request.method, request.path)
            return jsonify({"error": "Not authorized, token failed", "reason": "unauthorized"}), 401

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str, message: str = "Require Admin Role"):
    """
    Require the caller's staff account to hold one of `roles`.

    Must be stacked under @require_auth. Sets g.account.
    """
    allowed = set(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Not authorized, no token", "reason": "unauthorized"}), 401

            admission = current_app.extensions["admission"]
            account = admission.get_account(g.identity.uid)
            if account is None or account.role not in allowed:
                return jsonify({"error": message, "reason": "forbidden"}), 403

            g.account = account
            return f(*args, **kwargs)

        return decorated_function
    return decorator


admin_only = require_role("admin")
admin_or_representative = require_role(
    "admin", "representative", message="Require Admin or Representative Role"
)
