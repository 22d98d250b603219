# estimator/api/main.py

from fastapi import APIRouter
from .endpoints import estimates

# Create main API router
api_router = APIRouter()

api_router.include_router(
    estimates.router,
    prefix="/estimates",
    tags=["Estimates"]
)
