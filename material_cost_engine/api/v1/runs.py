"""API endpoint for a full calculation run."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from material_cost_engine import pipeline
from material_cost_engine.config import Settings, get_settings
from material_cost_engine.domain.exceptions import DomainValidationError, NotFoundError
from material_cost_engine.schemas.material_cost import RunSummaryResponse

router = APIRouter(prefix="/runs", tags=["runs"])


@router.post("/", response_model=RunSummaryResponse, status_code=status.HTTP_201_CREATED)
def create_run(
    settings: Annotated[Settings, Depends(get_settings)],
) -> RunSummaryResponse:
    """Cost all batches, build the ledger and write the output workbook."""
    try:
        summary = pipeline.run(settings)
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

    return RunSummaryResponse.from_domain(summary)
