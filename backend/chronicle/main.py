# backend/chronicle/main.py
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import backup_router, photos_router, projects_router
from .config import Settings, settings as default_settings
from .errors import (
    CorruptArchiveError,
    IntegrityError,
    NotFoundError,
    StorageIOError,
    StoreBusyError,
    ValidationError,
)
from .services.library import LibraryService
from .storage import Store
from .utils.logging import api_logger, configure_logging


def _error_response(request: Request, status_code: int, exc: Exception, headers=None) -> JSONResponse:
    api_logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}", extra={
        "status_code": status_code,
        "detail": str(exc)
    })
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": type(exc).__name__, "detail": str(exc)},
        headers=headers
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(request, status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(CorruptArchiveError)
    async def corrupt_archive_handler(request: Request, exc: CorruptArchiveError):
        return _error_response(request, status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        return _error_response(request, status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(StoreBusyError)
    async def store_busy_handler(request: Request, exc: StoreBusyError):
        return _error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, exc,
                               headers={"Retry-After": str(exc.retry_after)})

    @app.exception_handler(StorageIOError)
    async def storage_error_handler(request: Request, exc: StorageIOError):
        api_logger.error("Storage failure", extra={"path": request.url.path}, exc_info=exc)
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


def create_app(store: Optional[Store] = None, settings: Settings = default_settings) -> FastAPI:
    """Build the HTTP adapter around one store; the app closes it on shutdown"""
    configure_logging(settings)
    if store is None:
        store = Store.from_settings(settings)
    store.open()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        app.state.store.close()

    app = FastAPI(title="Chronicle Archive API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.library = LibraryService(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify your actual frontend URL
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "Retry-After"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(projects_router)
    app.include_router(photos_router)
    app.include_router(backup_router)

    @app.get("/")
    async def root():
        return {
            "message": "Chronicle Archive API is running",
            "busy": app.state.store.busy
        }

    return app
