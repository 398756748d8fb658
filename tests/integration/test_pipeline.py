"""Integration tests for the costing and ledger pipeline."""

import logging
from dataclasses import replace

import openpyxl
import pytest

from material_cost_engine import pipeline
from material_cost_engine.domain.exceptions import FormulaNotFoundError, WorkbookOpenError
from material_cost_engine.domain.models import Production
from material_cost_engine.domain.value_objects import InventoryType
from material_cost_engine.repositories.in_memory import (
    InMemoryInventoryTransactionRepository,
    InMemoryProductionRepository,
)
from material_cost_engine.reporting.excel_writer import HISTORY_HEADERS
from factories import transaction

P001_UNIT_COST = 3500.0 / 130.0 * 1000.0


def with_unknown_product(repositories):
    productions = repositories.production_repo.find_all()
    productions.append(Production.create("P999", 10.0, 1.0, row_number=4))
    return replace(repositories, production_repo=InMemoryProductionRepository(productions))


class TestCalculateBatchCosts:
    """Tests for pipeline.calculate_batch_costs."""

    def test_all_figures(self, repositories):
        run = pipeline.calculate_batch_costs(repositories)
        assert run.failures == []

        first, second = run.reports
        assert first.raw_material_cost.value == pytest.approx(3500.0)
        assert first.total_consumption_kg == pytest.approx(130.0)
        assert first.unit_cost.value == pytest.approx(P001_UNIT_COST)
        assert first.yield_cost.value == pytest.approx(3325.0)
        assert first.freight_cost.value == pytest.approx(1800.0)
        assert first.coagulant_cost.value == 100.0
        assert first.clay_treatment_cost.value == 50.0
        assert first.total_material_cost.value == pytest.approx(5275.0)

        assert second.raw_material_cost.value == pytest.approx(2000.0)
        assert second.unit_cost.value == pytest.approx(20000.0)
        assert second.yield_cost.value == pytest.approx(1800.0)
        assert second.freight_cost.value == pytest.approx(1500.0)
        assert second.total_material_cost.value == pytest.approx(3300.0)

    def test_stop_on_error_raises(self, repositories):
        repositories = with_unknown_product(repositories)
        with pytest.raises(FormulaNotFoundError, match="P999"):
            pipeline.calculate_batch_costs(repositories, stop_on_error=True)

    def test_continue_on_error_records_failure(self, repositories, caplog):
        repositories = with_unknown_product(repositories)
        with caplog.at_level(logging.WARNING):
            run = pipeline.calculate_batch_costs(repositories, stop_on_error=False)

        assert len(run.reports) == 2
        assert len(run.failures) == 1
        failure = run.failures[0]
        assert failure.row_number == 4
        assert failure.product_code == "P999"
        assert "No formula found" in failure.message
        assert "skipped" in caplog.text

    def test_no_productions(self, repositories):
        repositories = replace(repositories, production_repo=InMemoryProductionRepository())
        run = pipeline.calculate_batch_costs(repositories)
        assert run.reports == []
        assert run.failures == []


class TestBuildInventoryHistory:
    def test_shortage_is_logged(self, repositories, caplog):
        sales_only = InMemoryInventoryTransactionRepository(
            [transaction("2024-01-20", InventoryType.SALES, "P001", 300.0, "製品A")]
        )
        repositories = replace(repositories, transaction_repo=sales_only)
        with caplog.at_level(logging.WARNING):
            records = pipeline.build_inventory_history(repositories)

        assert records[-1].balance.value == -300.0
        assert "negative balance" in caplog.text


class TestRun:
    """Tests for the full workbook-to-workbook run."""

    def test_writes_cost_figures(self, settings):
        summary = pipeline.run(settings)

        assert summary.output_file == settings.paths.output_file
        assert summary.batches_processed == 2
        assert summary.batches_failed == 0
        assert summary.history_records == 6

        workbook = openpyxl.load_workbook(settings.paths.output_file)
        sheet = workbook["【入庫】生産"]
        assert sheet["F2"].value == pytest.approx(3500.0)
        assert sheet["G2"].value == pytest.approx(P001_UNIT_COST)
        assert sheet["I2"].value == pytest.approx(3325.0)
        assert sheet["L2"].value == pytest.approx(5275.0)
        assert sheet["M2"].value == pytest.approx(1800.0)
        assert sheet["L3"].value == pytest.approx(3300.0)
        # inputs are untouched
        assert sheet["E2"].value == 1000
        assert sheet["H2"].value == 0.95

    def test_preserves_input_sheets(self, settings):
        pipeline.run(settings)
        workbook = openpyxl.load_workbook(settings.paths.output_file)
        for name in ["【入庫】生産", "【入庫】仕入", "【出庫】売上", "配合マスタ", "運賃マスタ"]:
            assert name in workbook.sheetnames
        assert workbook["配合マスタ"]["A2"].value == "P001"

    def test_writes_history_sheet(self, settings):
        pipeline.run(settings)
        workbook = openpyxl.load_workbook(settings.paths.output_file)
        sheet = workbook["入出庫履歴"]
        rows = list(sheet.iter_rows(values_only=True))

        assert list(rows[0]) == HISTORY_HEADERS
        assert sheet["A1"].font.bold
        assert [(r[0], r[1], r[2], r[6]) for r in rows[1:]] == [
            ("2024-01-05", "仕入", "M001", 100),
            ("2024-01-08", "仕入", "M002", 200),
            ("2024-01-10", "仕入", "M001", 200),
            ("2024-01-15", "生産", "P001", 1000),
            ("2024-01-16", "生産", "P002", 200),
            ("2024-01-20", "売上", "P001", 700),
        ]
        assert rows[-1][3] == "製品A"
        assert rows[-1][4] == 1000
        assert rows[-1][5] == 300

    def test_existing_history_sheet_is_replaced(self, settings):
        workbook = openpyxl.load_workbook(settings.paths.input_file)
        stale = workbook.create_sheet("入出庫履歴")
        stale.append(["stale"])
        stale.append(["stale"] * 10)
        workbook.save(settings.paths.input_file)

        pipeline.run(settings)

        output = openpyxl.load_workbook(settings.paths.output_file)
        assert output.sheetnames.count("入出庫履歴") == 1
        assert output["入出庫履歴"]["A1"].value == "日付"
        assert output["入出庫履歴"].max_row == 7

    def test_continue_on_error(self, settings):
        workbook = openpyxl.load_workbook(settings.paths.input_file)
        workbook["【入庫】生産"].append(
            [3, "2024-01-17", "P999", "L-03", 10, None, None, 1.0, None, None, None, None, None]
        )
        workbook.save(settings.paths.input_file)

        summary = pipeline.run(settings.model_copy(update={"stop_on_error": False}))

        assert summary.batches_processed == 2
        assert summary.batches_failed == 1
        output = openpyxl.load_workbook(settings.paths.output_file)
        assert output["【入庫】生産"]["L4"].value is None

    def test_stop_on_error_writes_nothing(self, settings):
        workbook = openpyxl.load_workbook(settings.paths.input_file)
        workbook["【入庫】生産"].append(
            [3, "2024-01-17", "P999", "L-03", 10, None, None, 1.0, None, None, None, None, None]
        )
        workbook.save(settings.paths.input_file)

        with pytest.raises(FormulaNotFoundError):
            pipeline.run(settings)
        assert not settings.paths.output_file.exists()

    def test_missing_input(self, settings, tmp_path):
        paths = settings.paths.model_copy(update={"input_file": tmp_path / "nope.xlsx"})
        with pytest.raises(WorkbookOpenError):
            pipeline.run(settings.model_copy(update={"paths": paths}))
