"""Domain entities built from workbook rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from material_cost_engine.domain.exceptions import DomainValidationError
from material_cost_engine.domain.value_objects import (
    Amount,
    ConsumptionRatio,
    FreightCode,
    InventoryType,
    PatternName,
    ProductCode,
    Quantity,
    TransactionDate,
    YieldRate,
    is_freight_code,
)


@dataclass(frozen=True)
class Production:
    """
    Represents one production batch.

    Business Rules:
    - coagulant and clay treatment costs are added on top of the yield cost
    - row_number is the 1-based sheet row the batch was read from, when known
    """

    product_code: ProductCode
    quantity: Quantity
    yield_rate: YieldRate
    coagulant_cost: Amount
    clay_treatment_cost: Amount
    production_date: Optional[TransactionDate] = None
    production_number: Optional[str] = None
    row_number: Optional[int] = None

    @classmethod
    def create(
        cls,
        product_code: str,
        quantity: float,
        yield_rate: float,
        coagulant_cost: float = 0.0,
        clay_treatment_cost: float = 0.0,
        production_date: str | None = None,
        production_number: str | None = None,
        row_number: int | None = None,
    ) -> "Production":
        """
        Factory method building a batch from raw values.

        Raises:
            DomainValidationError: If any value fails its value-object invariant
        """
        return cls(
            product_code=ProductCode(product_code),
            quantity=Quantity(quantity),
            yield_rate=YieldRate(yield_rate),
            coagulant_cost=Amount(coagulant_cost),
            clay_treatment_cost=Amount(clay_treatment_cost),
            production_date=TransactionDate(production_date) if production_date else None,
            production_number=production_number or None,
            row_number=row_number,
        )


@dataclass(frozen=True)
class FormulaEntry:
    """One material line of a product's recipe."""

    material_code: ProductCode
    consumption_ratio: ConsumptionRatio


@dataclass(frozen=True)
class Purchase:
    """Latest known purchase price and freight terms for a material."""

    product_name: str
    unit_price: Amount
    quantity: Quantity
    freight_code: FreightCode


@dataclass(frozen=True)
class FreightMaster:
    """
    Freight master entry keyed by a T0001-T9999 code.

    The validity window is stored as read; it is not applied when resolving
    freight prices.
    """

    freight_code: str
    pattern_name: PatternName
    kg_unit_price: Amount
    valid_from: TransactionDate
    valid_to: Optional[TransactionDate] = None

    def __post_init__(self) -> None:
        if not is_freight_code(self.freight_code):
            raise DomainValidationError(
                f"Invalid freight code format: '{self.freight_code}'. "
                "Expected T0001-T9999"
            )


@dataclass(frozen=True)
class InventoryTransaction:
    """One dated inventory movement."""

    date: TransactionDate
    inventory_type: InventoryType
    product_code: ProductCode
    product_name: str
    quantity: Quantity
