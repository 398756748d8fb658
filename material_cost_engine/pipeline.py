"""Batch costing and ledger orchestration over a repository bundle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from material_cost_engine.config import Settings
from material_cost_engine.domain.exceptions import MaterialCostEngineError
from material_cost_engine.domain.models import Production
from material_cost_engine.domain.repositories import (
    FormulaRepository,
    FreightMasterRepository,
    PurchaseRepository,
    RepositoryBundle,
)
from material_cost_engine.domain.services.inventory_history_service import (
    InventoryHistoryRecord,
    InventoryHistoryService,
)
from material_cost_engine.domain.services.material_cost_service import (
    MaterialConsumption,
    MaterialCostCalculationService,
)
from material_cost_engine.domain.value_objects import Amount
from material_cost_engine.repositories.excel_repositories import ExcelRepositoryFactory
from material_cost_engine.reporting.excel_writer import ExcelResultWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchCostReport:
    """All cost figures for one production batch."""

    production: Production
    consumptions: List[MaterialConsumption]
    raw_material_cost: Amount
    total_consumption_kg: float
    unit_cost: Amount
    yield_cost: Amount
    freight_cost: Amount
    total_material_cost: Amount

    @property
    def coagulant_cost(self) -> Amount:
        return self.production.coagulant_cost

    @property
    def clay_treatment_cost(self) -> Amount:
        return self.production.clay_treatment_cost


@dataclass(frozen=True)
class BatchFailure:
    """A batch that could not be costed."""

    row_number: Optional[int]
    product_code: str
    message: str


@dataclass
class CostRunResult:
    reports: List[BatchCostReport] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)


@dataclass(frozen=True)
class RunSummary:
    output_file: Path
    batches_processed: int
    batches_failed: int
    history_records: int


def calculate_batch_cost(
    production: Production,
    formula_repo: FormulaRepository,
    purchase_repo: PurchaseRepository,
    freight_repo: FreightMasterRepository,
) -> BatchCostReport:
    """
    Cost one batch end to end.

    Raises:
        NotFoundError: Recipe, purchase or freight master entry missing
    """
    service = MaterialCostCalculationService
    result = service.calculate_material_consumption(
        production, formula_repo, purchase_repo, freight_repo
    )

    raw_material_cost = service.calculate_raw_material_cost(result.consumptions)
    unit_cost = service.calculate_unit_cost(raw_material_cost, result.total_consumption_kg)
    yield_cost = service.calculate_yield_cost(raw_material_cost, production.yield_rate)
    total_material_cost = service.calculate_total_material_cost(
        yield_cost,
        production.coagulant_cost,
        production.clay_treatment_cost,
        result.total_freight_cost,
    )

    return BatchCostReport(
        production=production,
        consumptions=result.consumptions,
        raw_material_cost=raw_material_cost,
        total_consumption_kg=result.total_consumption_kg,
        unit_cost=unit_cost,
        yield_cost=yield_cost,
        freight_cost=result.total_freight_cost,
        total_material_cost=total_material_cost,
    )


def _log_report(report: BatchCostReport) -> None:
    for c in report.consumptions:
        logger.debug(
            "  %s (%s): %.2f kg x %.2f = %.2f; freight %s -> %.2f/kg x %.2f kg = %.2f "
            "(purchased %.2f kg)",
            c.material_name,
            c.material_code,
            c.quantity.value,
            c.unit_price.value,
            c.total_cost.value,
            c.freight_descriptor,
            c.freight_kg_price,
            c.quantity.value,
            c.freight_cost.value,
            c.purchase_quantity.value,
        )
    logger.info(
        "Row %s %s: raw=%.2f unit/t=%.2f yield=%.2f coagulant=%.2f clay=%.2f "
        "freight=%.2f total=%.2f",
        report.production.row_number,
        report.production.product_code,
        report.raw_material_cost.value,
        report.unit_cost.value,
        report.yield_cost.value,
        report.coagulant_cost.value,
        report.clay_treatment_cost.value,
        report.freight_cost.value,
        report.total_material_cost.value,
    )


def calculate_batch_costs(
    repositories: RepositoryBundle,
    stop_on_error: bool = True,
) -> CostRunResult:
    """
    Cost every production batch.

    Args:
        repositories: Source repositories
        stop_on_error: Re-raise the first batch error instead of recording it
            and moving on to the next batch

    Returns:
        Reports for successful batches and failures for the rest
    """
    productions = repositories.production_repo.find_all()
    run = CostRunResult()

    if not productions:
        logger.info("No production batches to process")
        return run

    logger.info("Costing %d production batches", len(productions))

    for production in productions:
        try:
            report = calculate_batch_cost(
                production,
                repositories.formula_repo,
                repositories.purchase_repo,
                repositories.freight_repo,
            )
        except MaterialCostEngineError as e:
            if stop_on_error:
                raise
            logger.warning(
                "Row %s %s skipped: %s", production.row_number, production.product_code, e
            )
            run.failures.append(
                BatchFailure(
                    row_number=production.row_number,
                    product_code=production.product_code.value,
                    message=str(e),
                )
            )
            continue

        _log_report(report)
        run.reports.append(report)

    logger.info(
        "Costing complete: %d succeeded, %d failed", len(run.reports), len(run.failures)
    )
    return run


def build_inventory_history(repositories: RepositoryBundle) -> List[InventoryHistoryRecord]:
    transactions = repositories.transaction_repo.find_all_transactions()
    records = InventoryHistoryService.create_history(transactions)

    shortages = sum(1 for r in records if r.balance.is_shortage)
    logger.info("Built inventory history: %d records", len(records))
    if shortages:
        logger.warning("%d history records show a negative balance", shortages)
    return records


def run(settings: Settings) -> RunSummary:
    """
    Read the input workbook, cost every batch, build the ledger and write the result workbook.

    Raises:
        MaterialCostEngineError: Any workbook or domain failure (batch errors
            only when settings.stop_on_error is set)
    """
    input_file = settings.paths.input_file
    output_file = settings.paths.output_file

    repositories = ExcelRepositoryFactory.from_file(input_file)
    cost_run = calculate_batch_costs(repositories, stop_on_error=settings.stop_on_error)
    history = build_inventory_history(repositories)

    writer = ExcelResultWriter(
        input_file=input_file,
        output_file=output_file,
        history_sheet_name=settings.history_sheet_name,
    )
    writer.write(cost_run.reports, history)

    return RunSummary(
        output_file=Path(output_file),
        batches_processed=len(cost_run.reports),
        batches_failed=len(cost_run.failures),
        history_records=len(history),
    )
