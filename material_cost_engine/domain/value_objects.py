"""Domain value objects for type-safe costing and inventory concepts."""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Union

from material_cost_engine.domain.exceptions import DomainValidationError

# ASCII digits only; \d would also accept full-width digits
_FREIGHT_CODE_PATTERN: re.Pattern[str] = re.compile(r"T[0-9]{4}")
_DATE_PATTERN: re.Pattern[str] = re.compile(r"([0-9]+)([-/.])([0-9]+)\2([0-9]+)")
_NUMBER_PATTERN: re.Pattern[str] = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")

MIN_YEAR = 1900
MAX_YEAR = 2100


def is_freight_code(value: str) -> bool:
    """Return True if value has the master freight code shape T0001-T9999."""
    return bool(_FREIGHT_CODE_PATTERN.fullmatch(value))


def _require_non_negative(value: float, label: str) -> None:
    # ``not >=`` also rejects NaN
    if not value >= 0.0:
        raise DomainValidationError(f"{label} cannot be negative: {value}")


@dataclass(frozen=True)
class ProductCode:
    """Product or material code. Stored trimmed; never empty."""

    value: str

    def __post_init__(self) -> None:
        trimmed = "" if self.value is None else str(self.value).strip()
        if not trimmed:
            raise DomainValidationError("Product code cannot be empty")
        object.__setattr__(self, "value", trimmed)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PatternName:
    """Freight pattern name. Stored trimmed; never empty."""

    value: str

    def __post_init__(self) -> None:
        trimmed = "" if self.value is None else str(self.value).strip()
        if not trimmed:
            raise DomainValidationError("Pattern name cannot be empty")
        object.__setattr__(self, "value", trimmed)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Quantity:
    """Non-negative quantity in kilograms."""

    value: float

    def __post_init__(self) -> None:
        _require_non_negative(self.value, "Quantity")

    def __add__(self, other: Quantity) -> Quantity:
        return Quantity(self.value + other.value)

    def __str__(self) -> str:
        return f"{self.value}kg"


@dataclass(frozen=True)
class Amount:
    """
    Immutable non-negative monetary amount.

    Arithmetic returns new instances and re-validates the result.
    """

    value: float

    def __post_init__(self) -> None:
        _require_non_negative(self.value, "Amount")

    @classmethod
    def zero(cls) -> Amount:
        return cls(0.0)

    def __add__(self, other: Amount) -> Amount:
        return Amount(self.value + other.value)

    def __mul__(self, factor: float) -> Amount:
        return Amount(self.value * factor)

    def __truediv__(self, divisor: float) -> Amount:
        return Amount(self.value / divisor)

    def __str__(self) -> str:
        return f"{self.value:.2f}"


@dataclass(frozen=True)
class YieldRate:
    """Fraction of raw material cost retained after process loss (0.0-1.0)."""

    value: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.value <= 1.0:
            raise DomainValidationError(
                f"Yield rate must be between 0.0 and 1.0: {self.value}"
            )


@dataclass(frozen=True)
class ConsumptionRatio:
    """Fraction of production quantity consumed as one material. May exceed 1.0."""

    value: float

    def __post_init__(self) -> None:
        _require_non_negative(self.value, "Consumption ratio")


@dataclass(frozen=True)
class InventoryBalance:
    """Signed running inventory balance. Negative values signal a shortage."""

    value: float

    @property
    def is_shortage(self) -> bool:
        return self.value < 0.0

    def __str__(self) -> str:
        return f"{self.value}"


@dataclass(frozen=True)
class TransactionDate:
    """
    Calendar date kept in its source string form.

    Accepts ``YYYY-MM-DD``, ``YYYY/MM/DD`` and ``YYYY.MM.DD`` (one separator,
    used consistently) for years 1900-2100. Ordering is by calendar value,
    then by the raw string so differently formatted equal dates still have a
    deterministic order.
    """

    value: str

    def __post_init__(self) -> None:
        trimmed = "" if self.value is None else str(self.value).strip()
        if not trimmed:
            raise DomainValidationError("Transaction date cannot be empty")
        object.__setattr__(self, "value", trimmed)
        object.__setattr__(self, "_calendar_date", self._parse(trimmed))

    @staticmethod
    def _parse(text: str) -> date:
        invalid = DomainValidationError(
            f"Invalid date format: '{text}'. "
            "Expected YYYY-MM-DD, YYYY/MM/DD or YYYY.MM.DD (e.g. 2024-01-15)"
        )
        match = _DATE_PATTERN.fullmatch(text)
        if not match:
            raise invalid

        year, month, day = int(match.group(1)), int(match.group(3)), int(match.group(4))
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise invalid
        if not 1 <= month <= 12:
            raise invalid
        if not 1 <= day <= calendar.monthrange(year, month)[1]:
            raise invalid
        return date(year, month, day)

    def as_date(self) -> date:
        return self._calendar_date  # type: ignore[attr-defined]

    @property
    def sort_key(self) -> tuple[date, str]:
        return (self.as_date(), self.value)

    def __lt__(self, other: TransactionDate) -> bool:
        return self.sort_key < other.sort_key

    def __le__(self, other: TransactionDate) -> bool:
        return self.sort_key <= other.sort_key

    def __gt__(self, other: TransactionDate) -> bool:
        return self.sort_key > other.sort_key

    def __ge__(self, other: TransactionDate) -> bool:
        return self.sort_key >= other.sort_key

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MasterFreightCode:
    """Freight code resolved through the freight master."""

    code: str

    def __post_init__(self) -> None:
        if not is_freight_code(self.code):
            raise DomainValidationError(
                f"Invalid freight code format: '{self.code}'. Expected T0001-T9999"
            )

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class DirectFreightPrice:
    """Freight price per kg given directly on the purchase."""

    price: float

    def __post_init__(self) -> None:
        _require_non_negative(self.price, "Freight price")

    def __str__(self) -> str:
        return f"{self.price:.2f}"


# Freight terms recorded on a purchase: a reference into the freight master
# or a per-kg price given directly.
FreightCode = Union[MasterFreightCode, DirectFreightPrice]


def parse_freight_code(raw: str) -> FreightCode:
    """
    Build freight terms from spreadsheet text.

    Numeric text (ASCII digits) becomes a direct per-kg price, which must be
    non-negative; otherwise the text must be a master code T0001-T9999.

    Raises:
        DomainValidationError: If the text is empty, negative or malformed.
    """
    text = str(raw).strip()
    if not text:
        raise DomainValidationError("Freight code or price cannot be empty")

    if _NUMBER_PATTERN.fullmatch(text):
        price = float(text)
        if price < 0.0:
            raise DomainValidationError(f"Freight price cannot be negative: {text}")
        return DirectFreightPrice(price)

    if is_freight_code(text):
        return MasterFreightCode(text)

    raise DomainValidationError(
        f"Invalid freight code format: '{text}'. "
        "Expected T0001-T9999 or a number (e.g. T0001, 150.5)"
    )


class InventoryType(str, Enum):
    """Inventory movement type. Values are the labels used in the workbook."""

    PRODUCTION = "生産"
    PURCHASE = "仕入"
    SALES = "売上"

    @property
    def is_inbound(self) -> bool:
        return self is not InventoryType.SALES
