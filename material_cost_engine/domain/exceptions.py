"""Domain-specific exception classes."""

from typing import Sequence


class MaterialCostEngineError(Exception):
    """Base exception for material cost engine errors."""

    pass


class DomainValidationError(MaterialCostEngineError, ValueError):
    """Raised when a value object or entity is built from invalid input."""

    pass


class NotFoundError(MaterialCostEngineError):
    """Raised when a repository lookup cannot resolve its key."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(message)


class FormulaNotFoundError(NotFoundError):
    """Raised when a product has no recipe in the formula master."""

    def __init__(self, product_code: str):
        self.product_code = product_code
        super().__init__(
            product_code,
            f"No formula found for product code '{product_code}'",
        )


class PurchaseNotFoundError(NotFoundError):
    """Raised when a material has no purchase record."""

    def __init__(self, product_code: str):
        self.product_code = product_code
        super().__init__(
            product_code,
            f"No purchase record found for product code '{product_code}'",
        )


class FreightMasterNotFoundError(NotFoundError):
    """Raised when a freight code is missing from the freight master."""

    def __init__(self, freight_code: str):
        self.freight_code = freight_code
        super().__init__(
            freight_code,
            f"No freight master entry found for freight code '{freight_code}'",
        )


class WorkbookError(MaterialCostEngineError):
    """Base exception for workbook adapter errors."""

    pass


class WorkbookOpenError(WorkbookError):
    """Raised when the input workbook cannot be opened."""

    def __init__(self, path: object, reason: object):
        self.path = path
        self.reason = reason
        super().__init__(
            f"Could not open input workbook '{path}': {reason}. "
            "Close the file if it is open in Excel and check that the path is correct."
        )


class SheetNotFoundError(WorkbookError):
    """Raised when a required sheet is absent from the workbook."""

    def __init__(self, sheet_name: str):
        self.sheet_name = sheet_name
        super().__init__(f"Sheet '{sheet_name}' not found in workbook")


class MissingColumnsError(WorkbookError):
    """Raised when a sheet header row lacks required columns."""

    def __init__(self, sheet_name: str, missing: Sequence[str]):
        self.sheet_name = sheet_name
        self.missing = list(missing)
        super().__init__(
            f"Sheet '{sheet_name}' is missing required columns: {', '.join(self.missing)}"
        )


class InvalidCellError(WorkbookError):
    """Raised when a data cell is blank or malformed where a value is required."""

    def __init__(
        self,
        sheet_name: str,
        row_number: int,
        column: str,
        value: object,
        reason: str,
    ):
        self.sheet_name = sheet_name
        self.row_number = row_number
        self.column = column
        self.value = value
        self.reason = reason
        super().__init__(
            f"Sheet '{sheet_name}' row {row_number}, column '{column}': "
            f"{reason} (value={value!r})"
        )
