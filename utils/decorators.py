from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app

from utils.security import AccessTokenError, AccessTokenExpiredError


def jwt_required():
    """
    Require a valid access token in the Authorization header.

    Only the token is checked (signature, expiry, issuer, audience); the
    subject is exposed as g.current_user_id for the view to resolve.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            issuer = current_app.extensions["token_issuer"]
            try:
                decoded = issuer.decode_access_token(token)
            except AccessTokenExpiredError:
                abort(401, description="Token expired")
            except AccessTokenError:
                abort(401, description="Invalid token")

            g.current_user_id = decoded.get("sub")
            g.current_token_jti = decoded.get("jti")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
