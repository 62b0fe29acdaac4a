from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

class AppError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

class ValidationError(AppError):
    """Malformed or missing input, rejected before any write."""

    status_code = 422

class NotFoundError(AppError):
    status_code = 404

class UpstreamServiceError(AppError):
    """Blob storage or email dispatch failed."""

    status_code = 502

async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
