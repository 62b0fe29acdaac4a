from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.config import settings
from app.db import db_ping
from app.redis_client import redis_ping

router = APIRouter(tags=["health"])

def uploads_writable() -> bool:
    root = Path(settings.upload_dir)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return root.is_dir()

@router.get("/health")
def health() -> dict:
    return {"status": "ok"}

# readiness probe: 200 only when every dependency answers, 503 with details otherwise
@router.get("/ready")
def ready():
    checks: dict[str, bool] = {}
    errors: dict[str, str] = {}

    for name, fn in (("db", db_ping), ("redis", redis_ping), ("uploads", uploads_writable)):
        try:
            checks[name] = bool(fn())
        except Exception as e:
            checks[name] = False
            msg = str(e).strip()
            errors[name] = f"{e.__class__.__name__}{(': ' + msg) if msg else ''}"

    ok = all(checks.values())

    body: dict = {"status": "ok" if ok else "unready", "checks": checks}
    if errors:
        body["errors"] = errors

    return JSONResponse(status_code=200 if ok else 503, content=body)
