# main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from estimator.logging import configure_logging
from estimator.core.config import settings
from estimator.api.main import api_router
from estimator.core.error_handlers import setup_error_handlers, add_request_id_middleware
from estimator.settings.controller import router as settings_router
from estimator.database.core import Base, engine

# Import models to ensure they are registered with SQLAlchemy
from estimator.database.models import SettingRecord  # noqa: F401

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting database initialization...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    yield

    logger.info("Estimating API shutting down")

app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan
)

# Set up error handlers
setup_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request ID middleware for better error tracking
app.middleware("http")(add_request_id_middleware)

app.include_router(api_router, prefix="/api/v1")
app.include_router(settings_router, prefix="/api/v1", tags=["Settings"])


@app.get("/health")
async def health_check():
    """Simple health check endpoint"""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
