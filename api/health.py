from flask import Blueprint, current_app

bp = Blueprint("health", __name__)

VERSION = "1.0.0"


@bp.get("/health/live")
def live():
    """
    Liveness check (process is serving requests)
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
    """
    return {"status": "ok", "version": VERSION}, 200


@bp.get("/health/ready")
def ready():
    """
    Readiness check (database reachable)
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            database:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
      503:
        description: Database unreachable
    """
    db_ok = current_app.extensions["storage"].ping()
    body = {
        "status": "ok" if db_ok else "degraded",
        "database": "ok" if db_ok else "unreachable",
        "version": VERSION,
    }
    return body, 200 if db_ok else 503
