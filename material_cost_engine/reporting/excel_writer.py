"""Writes calculation results into a copy of the input workbook."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Sequence
from zipfile import BadZipFile

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils.exceptions import InvalidFileException

from material_cost_engine.domain.exceptions import SheetNotFoundError, WorkbookOpenError
from material_cost_engine.domain.services.inventory_history_service import (
    InventoryHistoryRecord,
)
from material_cost_engine.repositories.sheet_schema import ProductionSheetSchema

if TYPE_CHECKING:
    from material_cost_engine.pipeline import BatchCostReport

logger = logging.getLogger(__name__)

HISTORY_HEADERS = ["日付", "区分", "商品コード", "商品名", "基準数量", "増減数量", "残高"]


class ExcelResultWriter:
    """
    Produces the output workbook.

    Every sheet of the input is preserved. Cost figures are written into the
    production sheet rows they came from and the inventory history sheet is
    (re)created from scratch.
    """

    def __init__(
        self,
        input_file: str | Path,
        output_file: str | Path,
        history_sheet_name: str = "入出庫履歴",
    ):
        self.input_file = Path(input_file)
        self.output_file = Path(output_file)
        self.history_sheet_name = history_sheet_name

    def write(
        self,
        reports: Sequence["BatchCostReport"],
        history: Sequence[InventoryHistoryRecord],
    ) -> Path:
        """
        Write results and save the output workbook.

        Returns:
            Path of the saved workbook

        Raises:
            WorkbookOpenError: Input workbook cannot be opened
            SheetNotFoundError: Production sheet missing from the input
        """
        try:
            workbook = openpyxl.load_workbook(self.input_file)
        except (OSError, InvalidFileException, BadZipFile, KeyError) as e:
            raise WorkbookOpenError(path=self.input_file, reason=e) from e

        self._write_costs(workbook, reports)
        self._write_history(workbook, history)

        self.output_file.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(self.output_file)
        logger.info("Saved result workbook: %s", self.output_file)
        return self.output_file

    def _write_costs(self, workbook: openpyxl.Workbook, reports: Sequence["BatchCostReport"]) -> None:
        sheet_name = ProductionSheetSchema.sheet_name
        if sheet_name not in workbook.sheetnames:
            raise SheetNotFoundError(sheet_name=sheet_name)

        sheet = workbook[sheet_name]
        headers = [cell.value for cell in sheet[1]]
        schema = ProductionSheetSchema.from_headers(headers)
        freight_column = schema.get("freight_cost")

        written = 0
        for report in reports:
            row = report.production.row_number
            if row is None:
                continue
            figures = {
                "raw_material_cost": report.raw_material_cost.value,
                "unit_cost": report.unit_cost.value,
                "yield_cost": report.yield_cost.value,
                "material_cost": report.total_material_cost.value,
            }
            for field, value in figures.items():
                sheet.cell(row=row, column=schema.index(field) + 1, value=value)
            if freight_column is not None:
                sheet.cell(row=row, column=freight_column + 1, value=report.freight_cost.value)
            written += 1

        logger.info("Wrote cost figures for %d rows to '%s'", written, sheet_name)

    def _write_history(
        self,
        workbook: openpyxl.Workbook,
        history: Sequence[InventoryHistoryRecord],
    ) -> None:
        if self.history_sheet_name in workbook.sheetnames:
            del workbook[self.history_sheet_name]
        sheet = workbook.create_sheet(self.history_sheet_name)

        sheet.append(HISTORY_HEADERS)
        for cell in sheet[1]:
            cell.font = Font(bold=True)

        for record in history:
            sheet.append(
                [
                    record.date.value,
                    record.inventory_type.value,
                    record.product_code.value,
                    record.product_name,
                    record.base_quantity.value,
                    record.change_quantity.value,
                    record.balance.value,
                ]
            )

        logger.info(
            "Wrote %d inventory history records to '%s'", len(history), self.history_sheet_name
        )
