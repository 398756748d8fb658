"""Pytest fixtures for testing."""

from datetime import datetime
from pathlib import Path

import openpyxl
import pytest
from fastapi.testclient import TestClient

from material_cost_engine.config import PathsSettings, Settings, get_settings
from material_cost_engine.domain.models import Production
from material_cost_engine.domain.repositories import RepositoryBundle
from material_cost_engine.domain.value_objects import InventoryType
from material_cost_engine.main import app
from material_cost_engine.repositories.in_memory import build_in_memory_bundle
from material_cost_engine.workbook import get_repositories
from factories import (
    PRODUCTION_HEADERS,
    formula,
    freight_master,
    purchase,
    transaction,
)

# Excel serial for 2024-01-20
SALES_DATE_SERIAL = 45311


@pytest.fixture(name="repositories")
def repositories_fixture() -> RepositoryBundle:
    """
    In-memory repositories mirroring the sample workbook.

    P001 uses M001 (direct freight 10/kg) and M002 (freight master T0001 at 15/kg);
    P002 uses M002 only.
    """
    return build_in_memory_bundle(
        formulas={
            "P001": [formula("M001", 0.03), formula("M002", 0.1)],
            "P002": [formula("M002", 0.5)],
        },
        purchases={
            "M001": purchase("材料A", 50.0, 100.0, "10"),
            "M002": purchase("材料B", 20.0, 200.0, "T0001"),
        },
        freight_masters=[freight_master("T0001", 15.0)],
        productions=[
            Production.create("P001", 1000.0, 0.95, 100.0, 50.0, "2024-01-15", "L-01", 2),
            Production.create("P002", 200.0, 0.9, 0.0, 0.0, "2024-01-16", "L-02", 3),
        ],
        transactions=[
            transaction("2024-01-20", InventoryType.SALES, "P001", 300.0, "製品A"),
            transaction("2024-01-15", InventoryType.PRODUCTION, "P001", 1000.0),
            transaction("2024-01-05", InventoryType.PURCHASE, "M001", 100.0, "材料A"),
        ],
    )


def write_sample_workbook(path: Path) -> Path:
    """Write a workbook with all five input sheets."""
    workbook = openpyxl.Workbook()

    production = workbook.active
    production.title = "【入庫】生産"
    production.append(PRODUCTION_HEADERS)
    production.append(
        [1, datetime(2024, 1, 15), "P001", "L-01", 1000, None, None, 0.95, None, 100, 50, None, None]
    )
    production.append(
        [2, datetime(2024, 1, 16), "P002", "L-02", 200, None, None, 0.9, None, None, None, None, None]
    )

    purchases = workbook.create_sheet("【入庫】仕入")
    purchases.append(["仕入日", "商品コード", "商品名", "仕入単価", "数量", "運賃"])
    purchases.append([datetime(2024, 1, 5), "M001", "材料A", 40, 100, 10])
    purchases.append(["2024-01-08", "M002", "材料B", 20, 200, "T0001"])
    purchases.append([datetime(2024, 1, 10), "M001", "材料A", 50, 100, 10])

    sales = workbook.create_sheet("【出庫】売上")
    sales.append(["売上日", "商品コード", "商品名", "数量"])
    sales.append([SALES_DATE_SERIAL, "P001", "製品A", 300])

    formulas = workbook.create_sheet("配合マスタ")
    formulas.append(["製造商品コード", "材料商品コード", "消費比率"])
    formulas.append(["P001", "M001", 0.03])
    formulas.append(["P001", "M002", 0.1])
    formulas.append([None, None, None])
    formulas.append(["P002", "M002", 0.5])

    freight = workbook.create_sheet("運賃マスタ")
    freight.append(["運賃コード", "パターン名", "Kg単価", "有効開始日", "有効終了日"])
    freight.append(["T0001", "標準運賃", 15, datetime(2024, 1, 1), None])
    freight.append(["T0002", "期間限定運賃", 12, "2024-01-01", "2024-12-31"])

    workbook.save(path)
    return path


@pytest.fixture(name="sample_workbook")
def sample_workbook_fixture(tmp_path: Path) -> Path:
    """Sample input workbook saved under tmp_path."""
    return write_sample_workbook(tmp_path / "input.xlsx")


@pytest.fixture(name="settings")
def settings_fixture(sample_workbook: Path, tmp_path: Path) -> Settings:
    """Settings pointing at the sample workbook and a tmp output file."""
    return Settings(
        paths=PathsSettings(
            input_file=sample_workbook,
            output_file=tmp_path / "out" / "result.xlsx",
        )
    )


@pytest.fixture(name="client")
def client_fixture(repositories: RepositoryBundle, settings: Settings):
    """Create test client with in-memory repositories and tmp workbook settings."""

    def get_repositories_override() -> RepositoryBundle:
        return repositories

    def get_settings_override() -> Settings:
        return settings

    app.dependency_overrides[get_repositories] = get_repositories_override
    app.dependency_overrides[get_settings] = get_settings_override
    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()
