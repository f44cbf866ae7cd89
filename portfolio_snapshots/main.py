import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_snapshots import __version__
from portfolio_snapshots.auth import ApiKeyMiddleware
from portfolio_snapshots.config import get_settings
from portfolio_snapshots.database import engine, init_demo_database
from portfolio_snapshots.routers import positions_router, snapshots_router, settings_router
from portfolio_snapshots.services.market_data import create_market_data_client
from portfolio_snapshots.tasks import start_scheduler, shutdown_scheduler

# Configure logging
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    logger.info("Starting Portfolio Snapshots service...")
    if settings.demo_mode:
        logger.warning("Database credentials not configured. Running in demo mode.")
        await init_demo_database()

    app.state.market_data = create_market_data_client(settings)
    start_scheduler(app.state.market_data)
    logger.info("Service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Portfolio Snapshots service...")
    shutdown_scheduler()
    await app.state.market_data.close()
    await engine.dispose()
    logger.info("Service shutdown complete")


app = FastAPI(
    title="Portfolio Snapshots",
    description="Position tracking, point-in-time snapshots and return reporting",
    version=__version__,
    lifespan=lifespan,
)

if settings.api_key_enabled:
    app.add_middleware(ApiKeyMiddleware, api_key=settings.api_key)

# CORS middleware (added last so it wraps the API key check)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(positions_router)
app.include_router(snapshots_router)
app.include_router(settings_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for uptime monitoring."""
    return {
        "status": "healthy",
        "service": "portfolio-snapshots",
        "version": __version__,
        "demo_mode": settings.demo_mode,
    }


@app.get("/")
async def root():
    """Return API info."""
    return {
        "service": "Portfolio Snapshots",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
