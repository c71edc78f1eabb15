"""
Authentication blueprint:
- POST /auth/register
- POST /auth/authenticate
- POST /auth/refresh-token
- POST /auth/revoke-token
- PUT  /auth/change-password (Bearer)

The views validate input with marshmallow, open one SessionStore per request,
call AuthService and turn its result into JSON. Logging happens here, never
inside the service; raw passwords and token values are never logged.
"""
from __future__ import annotations

import hashlib
import ipaddress
import logging

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.auth import (
    AuthBundleOutSchema,
    ChangePasswordSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    RevokeTokenSchema,
)
from models.schemas.user import ActionResultSchema
from services.auth_service import AuthError
from utils.decorators import jwt_required

from .errors import service_error_response

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
change_password_schema = ChangePasswordSchema()
refresh_token_schema = RefreshTokenSchema()
revoke_token_schema = RevokeTokenSchema()
bundle_out_schema = AuthBundleOutSchema()
action_out_schema = ActionResultSchema()


def client_ip() -> str:
    """First X-Forwarded-For entry when it is a valid address, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    if first:
        try:
            return str(ipaddress.ip_address(first))
        except ValueError:
            pass
    return request.remote_addr or "unknown"


def fingerprint(token: str) -> str:
    """Short, non-reversible handle for a token in log lines."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


def log_outcome(action: str, result, **context) -> None:
    """Log sink for service results."""
    ctx = " ".join(f"{k}={v}" for k, v in context.items())
    if result.success:
        logger.info("%s succeeded user=%s %s", action, result.user_id, ctx)
    elif result.error is AuthError.TOKEN_COMPROMISED:
        logger.warning(
            "%s: revoked refresh token reused, revoked %d active tokens as compromised user=%s %s",
            action,
            result.revoked_count,
            result.user_id,
            ctx,
        )
    else:
        logger.warning("%s failed reason=%s user=%s %s", action, result.error.value, result.user_id, ctx)


def _services():
    return current_app.extensions["storage"], current_app.extensions["auth_service"]


@bp.post("/register")
def register():
    """
    Register a new player and sign them in.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            password: { type: string }
            confirm_password: { type: string }
    responses:
      201:
        description: Created (returns tokens)
      409:
        description: Username taken
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)
    ip = client_ip()

    storage, service = _services()
    with storage.session_scope() as store:
        result = service.register(store, data["username"], data["password"], ip)

    log_outcome("register", result, username=data["username"], ip=ip)
    if not result.success:
        return service_error_response(result.error)
    return jsonify(bundle_out_schema.dump(result.bundle)), 201


@bp.post("/authenticate")
def authenticate():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    ip = client_ip()

    storage, service = _services()
    with storage.session_scope() as store:
        result = service.authenticate(store, data["username"], data["password"], ip)

    log_outcome("authenticate", result, username=data["username"], ip=ip)
    if not result.success:
        return service_error_response(result.error)
    return jsonify(bundle_out_schema.dump(result.bundle)), 200


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token for a new access/refresh pair (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns new tokens)
      401:
        description: Invalid, expired, rotated or revoked token
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_token_schema.load(payload)
    ip = client_ip()

    storage, service = _services()
    with storage.session_scope() as store:
        result = service.renew(store, data["refresh_token"], ip)

    log_outcome("refresh-token", result, token=fingerprint(data["refresh_token"]), ip=ip)
    if not result.success:
        return service_error_response(result.error)
    return jsonify(bundle_out_schema.dump(result.bundle)), 200


@bp.post("/revoke-token")
def revoke_token():
    """
    Revoke a refresh token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
             reason:
               type: string
               enum: [Manual, Expired, ReplacedByNewToken, Compromised, Unknown]
    responses:
      200:
        description: Revoked
      404:
        description: Token not found
      409:
        description: Token already revoked
    """
    payload = request.get_json(silent=True) or {}
    data = revoke_token_schema.load(payload)
    ip = client_ip()

    storage, service = _services()
    with storage.session_scope() as store:
        result = service.revoke(store, data["refresh_token"], ip, data.get("reason"))

    log_outcome("revoke-token", result, token=fingerprint(data["refresh_token"]), ip=ip)
    if not result.success:
        return service_error_response(result.error)
    return jsonify(action_out_schema.dump(result)), 200


@bp.put("/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             current_password: { type: string }
             new_password: { type: string }
             confirm_new_password: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: New password equals the current one
      401:
        description: Unauthorized or wrong current password
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)

    storage, service = _services()
    with storage.session_scope() as store:
        result = service.change_password(
            store, g.current_user_id, data["current_password"], data["new_password"]
        )

    log_outcome("change-password", result, user_id=g.current_user_id)
    if not result.success:
        return service_error_response(result.error)
    return jsonify(action_out_schema.dump(result)), 200
