"""API endpoints for the inventory ledger."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from material_cost_engine.domain.repositories import RepositoryBundle
from material_cost_engine.pipeline import build_inventory_history
from material_cost_engine.schemas.inventory_history import (
    InventoryHistoryRecordResponse,
    InventoryHistoryResponse,
)
from material_cost_engine.workbook import get_repositories

router = APIRouter(prefix="/inventory-history", tags=["inventory-history"])


@router.get("/", response_model=InventoryHistoryResponse)
def get_inventory_history(
    repositories: Annotated[RepositoryBundle, Depends(get_repositories)],
    product_code: str | None = Query(
        None,
        min_length=1,
        description="Only return records for this product (balances are unaffected)",
    ),
) -> InventoryHistoryResponse:
    """Build the full ledger, optionally filtered to one product."""
    records = build_inventory_history(repositories)
    if product_code is not None:
        records = [r for r in records if r.product_code.value == product_code.strip()]

    return InventoryHistoryResponse(
        records=[InventoryHistoryRecordResponse.from_domain(r) for r in records],
        total=len(records),
    )
