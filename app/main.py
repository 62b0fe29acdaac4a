from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.errors import install_error_handlers
from app.logging_config import setup_logging
from app.middleware import RequestLoggingMiddleware
from app.routes.auth import router as auth_router
from app.routes.health import router as health_router
from app.routes.notifications import router as notifications_router
from app.routes.tasks import router as tasks_router

def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title="taskdesk-api", version="0.1.0")
    app.add_middleware(RequestLoggingMiddleware)
    install_error_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(tasks_router)
    app.include_router(notifications_router)

    # blobs written by LocalBlobStore
    app.mount("/files", StaticFiles(directory=settings.upload_dir, check_dir=False), name="files")
    return app

app = create_app()
