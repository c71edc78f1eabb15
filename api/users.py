"""
Player blueprint:
- GET  /users/me                  (Bearer) profile and win/loss record
- POST /users/<user_id>/wins      (Bearer, own id only) record a win
- POST /users/<user_id>/losses    (Bearer, own id only) record a loss
"""
from __future__ import annotations

from flask import Blueprint, jsonify, g, abort, current_app

from models.schemas.user import UserOutSchema, ActionResultSchema
from services.auth_service import AuthError
from utils.decorators import jwt_required

from .auth import log_outcome
from .errors import service_error_response

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
action_out_schema = ActionResultSchema()


@bp.get("/users/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      404:
        description: User no longer exists
    """
    storage = current_app.extensions["storage"]
    service = current_app.extensions["auth_service"]
    with storage.session_scope() as store:
        user = service.get_user(store, g.current_user_id)
        if user is None:
            return service_error_response(AuthError.USER_NOT_FOUND)
        body = user_out_schema.dump(user)
    return jsonify({"data": body}), 200


def _record(user_id: str, field: str):
    if user_id != g.current_user_id:
        abort(403, description="You can only update your own record.")
    storage = current_app.extensions["storage"]
    service = current_app.extensions["auth_service"]
    with storage.session_scope() as store:
        if field == "wins":
            result = service.increment_wins(store, user_id)
        else:
            result = service.increment_losses(store, user_id)

    log_outcome(f"increment-{field}", result, user_id=user_id)
    if not result.success:
        return service_error_response(result.error)
    return jsonify(action_out_schema.dump(result)), 200


@bp.post("/users/<user_id>/wins")
@jwt_required()
def record_win(user_id):
    """
    Record a win for a player.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200:
        description: Updated
      403:
        description: Another player's record
      404:
        description: User not found
    """
    return _record(user_id, "wins")


@bp.post("/users/<user_id>/losses")
@jwt_required()
def record_loss(user_id):
    """
    Record a loss for a player.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200:
        description: Updated
      403:
        description: Another player's record
      404:
        description: User not found
    """
    return _record(user_id, "losses")
