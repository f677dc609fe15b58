"""Dead Zone Arena - FastAPI Backend.

Wave-survival shooter simulation with persistent scores and leaderboard.
"""

import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .api import api_router

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    # Startup
    logger.info(f"Starting {settings.app_name} API...")

    # Create tables (score endpoints answer 500 if the database is unreachable)
    try:
        from .database import init_db
        await init_db()
        logger.info("Database connection successful")
        app.state.db_available = True
    except Exception as e:
        logger.warning(f"Database unavailable, scores will not be saved: {e}")
        app.state.db_available = False

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name} API...")
    from .database import async_engine
    await async_engine.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="""
    Dead Zone Arena API - zombie survival shooter backend.

    Features:
    - Score submission and per-match history
    - Aggregate leaderboard
    - Headless encounter simulation (weapons, adversaries, difficulty ramp)
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration - allow deployed frontend and localhost
cors_origins = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
]

# Add deployed frontend URL from env var
frontend_url = os.environ.get("FRONTEND_URL")
if frontend_url:
    cors_origins.append(frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=f"/api/{settings.api_version}")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# For running with uvicorn directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8000)),
        reload=True,
    )
