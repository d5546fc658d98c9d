from flask import Blueprint

from models import storage

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check, including a database ping
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
      503:
        description: Database unreachable
    """
    db_ok = storage.ping()
    status = 200 if db_ok else 503
    return {"status": "ok" if db_ok else "degraded", "database": db_ok, "version": "1.0.0"}, status
