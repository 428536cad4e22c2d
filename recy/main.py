"""
RECY - recycled residue form tracking

FastAPI application for form submission, admin review and NFT metadata
publication.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api.router import api_router
from .config import get_settings
from .errors import STATUS_BY_KIND, RecyError
from .infra.db.session import close_db, init_db
from .infra.storage.gateway import SupabaseStorageGateway
from .infra.storage.supabase_client import get_supabase
from .messages import ErrorKind, Message
from .middleware.auth import ApiKeyMiddleware

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting RECY API server...")
    
    await init_db()
    logger.info("Database tables initialized")
    
    # Storage gateway (fail fast on missing credentials)
    if getattr(app.state, "storage", None) is None:
        app.state.storage = SupabaseStorageGateway(get_supabase(), settings)
    logger.info("Storage gateway initialized")
    
    yield
    
    # Shutdown
    await close_db()
    logger.info("Shutting down RECY API server...")


async def recy_error_handler(request: Request, exc: RecyError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message.value, "kind": exc.kind.value},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} database error: {exc}")
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.PERSISTENCE_FAILURE],
        content={
            "detail": Message.PERSISTENCE_FAILED.value,
            "kind": ErrorKind.PERSISTENCE_FAILURE.value,
        },
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="RECY - Residue Tracking",
        description="Recycled residue forms, evidence uploads and NFT metadata",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    
    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    app.add_middleware(ApiKeyMiddleware, api_key=settings.api_key)
    
    app.add_exception_handler(RecyError, recy_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    
    # Include API routes
    app.include_router(api_router)
    
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "api": "/api/v1",
        }
    
    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("recy.main:app", host="0.0.0.0", port=8000, reload=True)
