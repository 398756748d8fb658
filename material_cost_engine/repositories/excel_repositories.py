"""Workbook-backed repositories (openpyxl)."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.datetime import from_excel
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook

from material_cost_engine.domain.exceptions import (
    DomainValidationError,
    FormulaNotFoundError,
    FreightMasterNotFoundError,
    InvalidCellError,
    PurchaseNotFoundError,
    SheetNotFoundError,
    WorkbookOpenError,
)
from material_cost_engine.domain.models import (
    FormulaEntry,
    FreightMaster,
    InventoryTransaction,
    Production,
    Purchase,
)
from material_cost_engine.domain.repositories import RepositoryBundle
from material_cost_engine.domain.value_objects import (
    Amount,
    ConsumptionRatio,
    DirectFreightPrice,
    FreightCode,
    InventoryType,
    PatternName,
    ProductCode,
    Quantity,
    TransactionDate,
    parse_freight_code,
)
from material_cost_engine.repositories.sheet_schema import (
    FormulaSheetSchema,
    FreightMasterSheetSchema,
    ProductionSheetSchema,
    PurchaseSheetSchema,
    SalesSheetSchema,
    SheetSchema,
)

logger = logging.getLogger(__name__)

Row = Tuple[Any, ...]
T = TypeVar("T")
S = TypeVar("S", bound=SheetSchema)


# ---------------------------------------------------------------------- #
# Cell helpers                                                             #
# ---------------------------------------------------------------------- #


def cell_text(value: Any) -> str:
    """Render a cell value as trimmed text; integral floats drop their '.0'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def cell_date_text(value: Any) -> str:
    """
    Render a date cell as text.

    Date cells become ISO dates, numbers (and numeric text) are decoded as
    Excel serial dates, any other text passes through trimmed.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _serial_to_date_text(float(value))

    text = str(value).strip()
    try:
        serial = float(text)
    except ValueError:
        return text
    return _serial_to_date_text(serial)


def _serial_to_date_text(serial: float) -> str:
    converted = from_excel(serial)
    if isinstance(converted, datetime):
        return converted.date().isoformat()
    return str(converted)


def _cell(row: Row, index: Optional[int]) -> Any:
    if index is None or index >= len(row):
        return None
    return row[index]


def _is_blank_row(row: Row) -> bool:
    return all(cell_text(value) == "" for value in row)


def _parse_number(text: str, sheet_name: str, row_number: int, column: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise InvalidCellError(
            sheet_name=sheet_name,
            row_number=row_number,
            column=column,
            value=text,
            reason="value is not a number",
        )


def _in_row(sheet_name: str, row_number: int, column: str, value: Any, build: Callable[[], T]) -> T:
    """Run a value-object constructor, re-raising validation errors with the row location."""
    try:
        return build()
    except DomainValidationError as e:
        raise InvalidCellError(
            sheet_name=sheet_name,
            row_number=row_number,
            column=column,
            value=value,
            reason=str(e),
        ) from e


def read_sheet(
    workbook: Workbook,
    schema_cls: type[S],
    required: bool = True,
) -> Optional[Tuple[S, List[Tuple[int, Row]]]]:
    """
    Read a sheet's header and data rows.

    Returns:
        (schema, [(sheet_row_number, row), ...]) or None when an optional
        sheet is absent or empty

    Raises:
        SheetNotFoundError: A required sheet is absent or has no header row
        MissingColumnsError: The header row lacks required columns
    """
    sheet_name = schema_cls.sheet_name
    if sheet_name not in workbook.sheetnames:
        if required:
            raise SheetNotFoundError(sheet_name=sheet_name)
        logger.info("Optional sheet '%s' not present; skipping", sheet_name)
        return None

    rows = list(workbook[sheet_name].iter_rows(values_only=True))
    if not rows:
        if required:
            raise SheetNotFoundError(sheet_name=sheet_name)
        return None

    schema = schema_cls.from_headers(rows[0])
    data = [(idx + 1, row) for idx, row in enumerate(rows) if idx > 0]
    return schema, data


# ---------------------------------------------------------------------- #
# Repositories                                                             #
# ---------------------------------------------------------------------- #


class ExcelFormulaRepository:
    """Recipes from the formula master sheet, grouped by manufactured product."""

    def __init__(self, workbook: Workbook):
        schema, rows = read_sheet(workbook, FormulaSheetSchema)
        sheet = schema.sheet_name
        self._data: Dict[str, List[FormulaEntry]] = {}

        for row_number, row in rows:
            product_code = cell_text(_cell(row, schema.index("product_code")))
            material_code = cell_text(_cell(row, schema.index("material_code")))
            ratio_text = cell_text(_cell(row, schema.index("consumption_ratio")))

            if not product_code or not material_code or not ratio_text:
                continue

            ratio_label = schema.label("consumption_ratio")
            ratio = _parse_number(ratio_text, sheet, row_number, ratio_label)
            entry = FormulaEntry(
                material_code=ProductCode(material_code),
                consumption_ratio=_in_row(
                    sheet, row_number, ratio_label, ratio_text,
                    lambda: ConsumptionRatio(ratio),
                ),
            )
            self._data.setdefault(product_code, []).append(entry)

        logger.info("Loaded formulas for %d products", len(self._data))

    def find_by_product_code(self, product_code: ProductCode) -> List[FormulaEntry]:
        entries = self._data.get(product_code.value)
        if entries is None:
            raise FormulaNotFoundError(product_code=product_code.value)
        return list(entries)


class ExcelFreightMasterRepository:
    """Freight master entries keyed by freight code."""

    def __init__(self, workbook: Workbook):
        schema, rows = read_sheet(workbook, FreightMasterSheetSchema)
        sheet = schema.sheet_name
        self._data: Dict[str, FreightMaster] = {}

        for row_number, row in rows:
            freight_code = cell_text(_cell(row, schema.index("freight_code")))
            pattern_name = cell_text(_cell(row, schema.index("pattern_name")))
            price_text = cell_text(_cell(row, schema.index("kg_unit_price")))
            valid_from = cell_date_text(_cell(row, schema.index("valid_from")))
            valid_to = cell_date_text(_cell(row, schema.index("valid_to")))

            if not freight_code or not pattern_name or not price_text or not valid_from:
                continue

            price = _parse_number(price_text, sheet, row_number, schema.label("kg_unit_price"))
            entry = _in_row(
                sheet, row_number, schema.label("freight_code"), freight_code,
                lambda: FreightMaster(
                    freight_code=freight_code,
                    pattern_name=PatternName(pattern_name),
                    kg_unit_price=Amount(price),
                    valid_from=TransactionDate(valid_from),
                    valid_to=TransactionDate(valid_to) if valid_to else None,
                ),
            )
            self._data[freight_code] = entry

        logger.info("Loaded %d freight master entries", len(self._data))

    def find_by_code(self, freight_code: str) -> FreightMaster:
        entry = self._data.get(freight_code)
        if entry is None:
            raise FreightMasterNotFoundError(freight_code=freight_code)
        return entry


class ExcelPurchaseRepository:
    """
    Latest purchase terms per material.

    Rows are read top to bottom and a later row for the same material
    replaces an earlier one.
    """

    def __init__(self, workbook: Workbook):
        schema, rows = read_sheet(workbook, PurchaseSheetSchema)
        sheet = schema.sheet_name
        self._data: Dict[str, Purchase] = {}

        for row_number, row in rows:
            product_code = cell_text(_cell(row, schema.index("product_code")))
            product_name = cell_text(_cell(row, schema.index("product_name")))
            price_text = cell_text(_cell(row, schema.index("unit_price")))
            quantity_text = cell_text(_cell(row, schema.index("quantity")))
            freight_text = cell_text(_cell(row, schema.index("freight")))

            if not product_code or not price_text:
                continue

            price = _parse_number(price_text, sheet, row_number, schema.label("unit_price"))
            quantity = (
                _parse_number(quantity_text, sheet, row_number, schema.label("quantity"))
                if quantity_text
                else 0.0
            )
            freight_code: FreightCode = (
                _in_row(
                    sheet, row_number, schema.label("freight"), freight_text,
                    lambda: parse_freight_code(freight_text),
                )
                if freight_text
                else DirectFreightPrice(0.0)
            )

            self._data[product_code] = _in_row(
                sheet, row_number, schema.label("unit_price"), price_text,
                lambda: Purchase(
                    product_name=product_name,
                    unit_price=Amount(price),
                    quantity=Quantity(quantity),
                    freight_code=freight_code,
                ),
            )

        logger.info("Loaded purchase terms for %d materials", len(self._data))

    def find_latest_price(self, product_code: ProductCode) -> Purchase:
        purchase = self._data.get(product_code.value)
        if purchase is None:
            raise PurchaseNotFoundError(product_code=product_code.value)
        return purchase


class ExcelProductionRepository:
    """Production batches, one per non-blank row of the production sheet."""

    def __init__(self, workbook: Workbook):
        schema, rows = read_sheet(workbook, ProductionSheetSchema)
        self._productions: List[Production] = [
            self._parse_row(schema, row_number, row)
            for row_number, row in rows
            if not _is_blank_row(row)
        ]
        logger.info("Loaded %d production batches", len(self._productions))

    @staticmethod
    def _parse_row(schema: SheetSchema, row_number: int, row: Row) -> Production:
        sheet = schema.sheet_name

        def text(field: str) -> str:
            return cell_text(_cell(row, schema.get(field)))

        def required(field: str, value: str) -> str:
            if not value:
                raise InvalidCellError(
                    sheet_name=sheet,
                    row_number=row_number,
                    column=schema.label(field),
                    value=value,
                    reason="required value is blank",
                )
            return value

        def number(field: str, value: str, default: float | None = None) -> float:
            if not value and default is not None:
                return default
            return _parse_number(required(field, value), sheet, row_number, schema.label(field))

        production_date = required(
            "production_date", cell_date_text(_cell(row, schema.index("production_date")))
        )
        product_code = required("product_code", text("product_code"))
        quantity = number("quantity", text("quantity"))
        yield_rate = number("yield_rate", text("yield_rate"))
        coagulant = number("coagulant", text("coagulant"), default=0.0)
        clay_treatment = number("clay_treatment", text("clay_treatment"), default=0.0)

        return _in_row(
            sheet, row_number, schema.label("product_code"), product_code,
            lambda: Production.create(
                product_code=product_code,
                quantity=quantity,
                yield_rate=yield_rate,
                coagulant_cost=coagulant,
                clay_treatment_cost=clay_treatment,
                production_date=production_date,
                production_number=text("production_number") or None,
                row_number=row_number,
            ),
        )

    def find_all(self) -> List[Production]:
        return list(self._productions)


class ExcelInventoryTransactionRepository:
    """
    Inventory movements gathered from the production, purchase and sales sheets.

    Each sheet is optional. Rows missing a date, product code or quantity
    are skipped. Production rows carry no product name, so the product code
    stands in for it.
    """

    _SOURCES: Sequence[Tuple[type[SheetSchema], InventoryType, str, Optional[str]]] = (
        (ProductionSheetSchema, InventoryType.PRODUCTION, "production_date", None),
        (PurchaseSheetSchema, InventoryType.PURCHASE, "purchase_date", "product_name"),
        (SalesSheetSchema, InventoryType.SALES, "sales_date", "product_name"),
    )

    def __init__(self, workbook: Workbook):
        self._transactions: List[InventoryTransaction] = []

        for schema_cls, inventory_type, date_field, name_field in self._SOURCES:
            loaded = read_sheet(workbook, schema_cls, required=False)
            if loaded is None:
                continue
            schema, rows = loaded
            before = len(self._transactions)

            for row_number, row in rows:
                transaction = self._parse_row(
                    schema, row_number, row, inventory_type, date_field, name_field
                )
                if transaction is not None:
                    self._transactions.append(transaction)

            logger.info(
                "Loaded %d %s transactions from '%s'",
                len(self._transactions) - before,
                inventory_type.name.lower(),
                schema.sheet_name,
            )

    @staticmethod
    def _parse_row(
        schema: SheetSchema,
        row_number: int,
        row: Row,
        inventory_type: InventoryType,
        date_field: str,
        name_field: Optional[str],
    ) -> Optional[InventoryTransaction]:
        sheet = schema.sheet_name
        date_text = cell_date_text(_cell(row, schema.index(date_field)))
        product_code = cell_text(_cell(row, schema.index("product_code")))
        quantity_text = cell_text(_cell(row, schema.index("quantity")))

        if not date_text or not product_code or not quantity_text:
            return None

        quantity = _parse_number(quantity_text, sheet, row_number, schema.label("quantity"))
        product_name = (
            cell_text(_cell(row, schema.index(name_field))) if name_field else product_code
        )

        transaction_date = _in_row(
            sheet, row_number, schema.label(date_field), date_text,
            lambda: TransactionDate(date_text),
        )
        return _in_row(
            sheet, row_number, schema.label("quantity"), quantity_text,
            lambda: InventoryTransaction(
                date=transaction_date,
                inventory_type=inventory_type,
                product_code=ProductCode(product_code),
                product_name=product_name,
                quantity=Quantity(quantity),
            ),
        )

    def find_all_transactions(self) -> List[InventoryTransaction]:
        return list(self._transactions)


class ExcelRepositoryFactory:
    """Opens the input workbook once and builds every repository from it."""

    @staticmethod
    def from_file(path: str | Path) -> RepositoryBundle:
        """
        Load all repositories from a workbook file.

        Raises:
            WorkbookOpenError: File missing, locked or not a valid .xlsx
            WorkbookError: A sheet or cell could not be read
        """
        logger.info("Reading workbook: %s", path)
        try:
            workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
        except (OSError, InvalidFileException, BadZipFile, KeyError) as e:
            raise WorkbookOpenError(path=path, reason=e) from e

        try:
            logger.info("Workbook sheets: %s", ", ".join(workbook.sheetnames))
            bundle = RepositoryBundle(
                formula_repo=ExcelFormulaRepository(workbook),
                purchase_repo=ExcelPurchaseRepository(workbook),
                freight_repo=ExcelFreightMasterRepository(workbook),
                production_repo=ExcelProductionRepository(workbook),
                transaction_repo=ExcelInventoryTransactionRepository(workbook),
            )
        finally:
            workbook.close()

        logger.info("Repositories initialised")
        return bundle
