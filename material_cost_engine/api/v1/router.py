"""Main router aggregator for API v1."""

from fastapi import APIRouter

from material_cost_engine.api.v1.inventory_history import router as inventory_history_router
from material_cost_engine.api.v1.material_costs import router as material_costs_router
from material_cost_engine.api.v1.runs import router as runs_router

router = APIRouter(prefix="/api")

router.include_router(material_costs_router)
router.include_router(inventory_history_router)
router.include_router(runs_router)
