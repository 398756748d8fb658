"""Header-row resolution for the workbook sheets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Sequence

from material_cost_engine.domain.exceptions import MissingColumnsError


def normalize_header(value: Any) -> str:
    """Normalize a header cell for matching: None -> "", trimmed, inner spaces collapsed."""
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


@dataclass(frozen=True)
class SheetSchema:
    """
    Column positions of one sheet, resolved from its header row.

    Subclasses declare ``sheet_name`` and map field names to header labels
    in ``required_columns`` / ``optional_columns``. Indexes are 0-based.
    """

    sheet_name: ClassVar[str] = ""
    required_columns: ClassVar[Dict[str, str]] = {}
    optional_columns: ClassVar[Dict[str, str]] = {}

    columns: Dict[str, int]

    @classmethod
    def from_headers(cls, headers: Sequence[Any]) -> "SheetSchema":
        """
        Resolve column indexes from a header row.

        The first occurrence of a header wins.

        Raises:
            MissingColumnsError: Listing every required header not present
        """
        positions: Dict[str, int] = {}
        for idx, header in enumerate(headers):
            label = normalize_header(header)
            if label and label not in positions:
                positions[label] = idx

        missing = [
            label for label in cls.required_columns.values() if label not in positions
        ]
        if missing:
            raise MissingColumnsError(sheet_name=cls.sheet_name, missing=missing)

        columns = {field: positions[label] for field, label in cls.required_columns.items()}
        for field, label in cls.optional_columns.items():
            if label in positions:
                columns[field] = positions[label]
        return cls(columns=columns)

    def index(self, field: str) -> int:
        """0-based index of a required or present optional column."""
        return self.columns[field]

    def get(self, field: str) -> Optional[int]:
        return self.columns.get(field)

    def label(self, field: str) -> str:
        return self.required_columns.get(field) or self.optional_columns[field]


class ProductionSheetSchema(SheetSchema):
    sheet_name = "【入庫】生産"
    required_columns = {
        "production_date": "生産日",
        "product_code": "商品コード",
        "quantity": "生産数量",
        "raw_material_cost": "原砂金額",
        "unit_cost": "原単位（円/ｔ）",
        "yield_rate": "歩留率",
        "yield_cost": "原砂歩留金額",
        "coagulant": "凝集剤",
        "clay_treatment": "粘土処理",
        "material_cost": "材料費",
    }
    optional_columns = {
        "item": "項",
        "production_number": "生産品番",
        "freight_cost": "運賃",
    }


class PurchaseSheetSchema(SheetSchema):
    sheet_name = "【入庫】仕入"
    required_columns = {
        "purchase_date": "仕入日",
        "product_code": "商品コード",
        "product_name": "商品名",
        "unit_price": "仕入単価",
        "quantity": "数量",
        "freight": "運賃",
    }


class SalesSheetSchema(SheetSchema):
    sheet_name = "【出庫】売上"
    required_columns = {
        "sales_date": "売上日",
        "product_code": "商品コード",
        "product_name": "商品名",
        "quantity": "数量",
    }


class FormulaSheetSchema(SheetSchema):
    sheet_name = "配合マスタ"
    required_columns = {
        "product_code": "製造商品コード",
        "material_code": "材料商品コード",
        "consumption_ratio": "消費比率",
    }


class FreightMasterSheetSchema(SheetSchema):
    sheet_name = "運賃マスタ"
    required_columns = {
        "freight_code": "運賃コード",
        "pattern_name": "パターン名",
        "kg_unit_price": "Kg単価",
        "valid_from": "有効開始日",
        "valid_to": "有効終了日",
    }
