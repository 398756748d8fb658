"""Pydantic schemas for material cost API responses."""

from __future__ import annotations

from pydantic import BaseModel

from material_cost_engine.domain.services.material_cost_service import MaterialConsumption
from material_cost_engine.pipeline import BatchCostReport, BatchFailure, RunSummary


class MaterialConsumptionResponse(BaseModel):
    """One material line of a batch."""

    material_code: str
    material_name: str
    quantity: float
    unit_price: float
    total_cost: float
    freight_cost: float
    purchase_quantity: float
    freight_descriptor: str
    freight_kg_price: float

    @classmethod
    def from_domain(cls, consumption: MaterialConsumption) -> "MaterialConsumptionResponse":
        return cls(
            material_code=consumption.material_code.value,
            material_name=consumption.material_name,
            quantity=consumption.quantity.value,
            unit_price=consumption.unit_price.value,
            total_cost=consumption.total_cost.value,
            freight_cost=consumption.freight_cost.value,
            purchase_quantity=consumption.purchase_quantity.value,
            freight_descriptor=consumption.freight_descriptor,
            freight_kg_price=consumption.freight_kg_price,
        )


class BatchCostResponse(BaseModel):
    """Cost breakdown for one production batch."""

    row_number: int | None
    product_code: str
    production_number: str | None
    production_date: str | None
    consumptions: list[MaterialConsumptionResponse]
    raw_material_cost: float
    total_consumption_kg: float
    unit_cost: float
    yield_cost: float
    coagulant_cost: float
    clay_treatment_cost: float
    freight_cost: float
    total_material_cost: float

    @classmethod
    def from_domain(cls, report: BatchCostReport) -> "BatchCostResponse":
        production = report.production
        return cls(
            row_number=production.row_number,
            product_code=production.product_code.value,
            production_number=production.production_number,
            production_date=production.production_date.value
            if production.production_date
            else None,
            consumptions=[
                MaterialConsumptionResponse.from_domain(c) for c in report.consumptions
            ],
            raw_material_cost=report.raw_material_cost.value,
            total_consumption_kg=report.total_consumption_kg,
            unit_cost=report.unit_cost.value,
            yield_cost=report.yield_cost.value,
            coagulant_cost=report.coagulant_cost.value,
            clay_treatment_cost=report.clay_treatment_cost.value,
            freight_cost=report.freight_cost.value,
            total_material_cost=report.total_material_cost.value,
        )


class BatchFailureResponse(BaseModel):
    """A batch that could not be costed."""

    row_number: int | None
    product_code: str
    message: str

    model_config = {"from_attributes": True}


class MaterialCostRunResponse(BaseModel):
    """Response schema for a costing run."""

    batches: list[BatchCostResponse]
    failures: list[BatchFailureResponse]
    total: int


class RunSummaryResponse(BaseModel):
    """Response schema for a full run that wrote the output workbook."""

    output_file: str
    batches_processed: int
    batches_failed: int
    history_records: int

    @classmethod
    def from_domain(cls, summary: RunSummary) -> "RunSummaryResponse":
        return cls(
            output_file=str(summary.output_file),
            batches_processed=summary.batches_processed,
            batches_failed=summary.batches_failed,
            history_records=summary.history_records,
        )


def failures_to_response(failures: list[BatchFailure]) -> list[BatchFailureResponse]:
    return [BatchFailureResponse.model_validate(f) for f in failures]
