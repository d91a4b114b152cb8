"""
Masala Chef FastAPI application.

Main application entry point with route registration and CORS.
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from masala_chef.config import settings
from masala_chef.api.routes import recipes, sessions
from masala_chef.engine.recipes import get_catalog
from masala_chef.services.session_service import get_session_service

# Configure logging with configurable level
_log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
logging.basicConfig(
    level=_log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup: load and check recipe content once
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    catalog = get_catalog()
    logger.info(f"Loaded {len(catalog.list())} recipe(s)")

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Recipe progression and scoring engine for the cooking game",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# The game client is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(recipes.router)
app.include_router(sessions.router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint with recipe catalog and session registry status."""
    catalog_status = "healthy"
    catalog_error = None

    try:
        recipe_count = len(get_catalog().list())
    except Exception as e:
        catalog_status = "unhealthy"
        catalog_error = str(e)
        recipe_count = 0

    response = {
        "status": catalog_status,
        "version": settings.app_version,
        "recipes": recipe_count,
        "active_sessions": get_session_service().active_count(),
        "sessions": get_session_service().count(),
    }

    if catalog_error:
        response["catalog_error"] = catalog_error

    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "masala_chef.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
