# estimator/api/endpoints/estimates.py

import logging

from fastapi import APIRouter, Depends

from estimator.core.config import settings
from estimator.database.core import DbSession
from estimator.schemas.estimate import Estimate, FeasibilityRequest, WeldCostRequest
from estimator.services.pricing_engine import EstimatePricingEngine
from estimator.settings.service import SettingsService, rule_table_cache

logger = logging.getLogger(__name__)

router = APIRouter()


def get_engine(db: DbSession) -> EstimatePricingEngine:
    """Engine reading rule tables through the shared cache for this request's session."""
    return EstimatePricingEngine(SettingsService.rule_source(db))


@router.get(
    "/health/",
    summary="Health Check",
    description="Check the estimating service and its rule table cache"
)
async def health_check():
    return {
        "status": "healthy",
        "service": "estimating",
        "version": settings.API_VERSION,
        "rule_cache": rule_table_cache.get_cache_stats()
    }


@router.post(
    "/price",
    summary="Price an Estimate",
    description="Apply feasibility, weld cost, labor minimum and tax rules to an estimate"
)
def price_estimate(estimate: Estimate, engine: EstimatePricingEngine = Depends(get_engine)):
    quote = engine.price_estimate(estimate)
    return quote.to_dict()


@router.post(
    "/feasibility",
    summary="Check Roll Feasibility",
    description="Whether a tube or pipe can be rolled to a requested diameter"
)
def check_feasibility(request: FeasibilityRequest, engine: EstimatePricingEngine = Depends(get_engine)):
    return engine.check_feasibility(request).to_dict()


@router.post(
    "/weld-cost",
    summary="Weld Cost",
    description="Passes x billed feet x rate for one seam"
)
def weld_cost(request: WeldCostRequest, engine: EstimatePricingEngine = Depends(get_engine)):
    return engine.weld_cost(request).to_dict()
