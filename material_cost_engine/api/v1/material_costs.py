"""API endpoints for material cost calculation."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from material_cost_engine.config import Settings, get_settings
from material_cost_engine.domain.exceptions import DomainValidationError, NotFoundError
from material_cost_engine.domain.repositories import RepositoryBundle
from material_cost_engine.pipeline import calculate_batch_costs
from material_cost_engine.schemas.material_cost import (
    BatchCostResponse,
    MaterialCostRunResponse,
    failures_to_response,
)
from material_cost_engine.workbook import get_repositories

router = APIRouter(prefix="/material-costs", tags=["material-costs"])


@router.get("/", response_model=MaterialCostRunResponse)
def calculate_material_costs(
    repositories: Annotated[RepositoryBundle, Depends(get_repositories)],
    settings: Annotated[Settings, Depends(get_settings)],
    stop_on_error: bool | None = Query(
        None,
        description="Abort on the first failing batch (default from settings)",
    ),
) -> MaterialCostRunResponse:
    """Cost every production batch in the input workbook."""
    if stop_on_error is None:
        stop_on_error = settings.stop_on_error

    try:
        run = calculate_batch_costs(repositories, stop_on_error=stop_on_error)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except DomainValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return MaterialCostRunResponse(
        batches=[BatchCostResponse.from_domain(r) for r in run.reports],
        failures=failures_to_response(run.failures),
        total=len(run.reports),
    )
