"""Material cost allocation for a single production batch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from material_cost_engine.domain.models import Production, Purchase
from material_cost_engine.domain.repositories import (
    FormulaRepository,
    FreightMasterRepository,
    PurchaseRepository,
)
from material_cost_engine.domain.value_objects import (
    Amount,
    DirectFreightPrice,
    MasterFreightCode,
    ProductCode,
    Quantity,
    YieldRate,
)

KG_PER_TONNE = 1000.0


@dataclass(frozen=True)
class MaterialConsumption:
    """
    One material consumed by a batch.

    total_cost excludes freight; freight_cost is the freight apportioned to
    the consumed quantity. purchase_quantity and freight_descriptor are kept
    for traceability.
    """

    material_code: ProductCode
    material_name: str
    quantity: Quantity
    unit_price: Amount
    total_cost: Amount
    freight_cost: Amount
    purchase_quantity: Quantity
    freight_descriptor: str
    freight_kg_price: float


@dataclass(frozen=True)
class MaterialCostResult:
    """Consumption lines for a batch plus their summed freight."""

    consumptions: List[MaterialConsumption]
    total_freight_cost: Amount

    @property
    def total_consumption_kg(self) -> float:
        return sum(c.quantity.value for c in self.consumptions)


class MaterialCostCalculationService:
    """Stateless material cost calculations for production batches."""

    @staticmethod
    def calculate_material_consumption(
        production: Production,
        formula_repo: FormulaRepository,
        purchase_repo: PurchaseRepository,
        freight_repo: FreightMasterRepository,
    ) -> MaterialCostResult:
        """
        Compute consumed quantity, material cost and freight for every recipe line.

        Freight is charged per kg of material actually consumed by this batch,
        not per kg of the purchased lot.

        Args:
            production: Batch to cost
            formula_repo: Recipe lookup
            purchase_repo: Latest purchase price lookup
            freight_repo: Freight master lookup for code-based freight terms

        Returns:
            MaterialCostResult with one line per recipe entry

        Raises:
            FormulaNotFoundError: Product has no recipe
            PurchaseNotFoundError: A material has no purchase record
            FreightMasterNotFoundError: A purchase references an unknown freight code
        """
        formulas = formula_repo.find_by_product_code(production.product_code)

        consumptions: List[MaterialConsumption] = []
        total_freight = Amount.zero()

        for formula in formulas:
            consumed = Quantity(production.quantity.value * formula.consumption_ratio.value)
            purchase = purchase_repo.find_latest_price(formula.material_code)
            freight_kg_price = MaterialCostCalculationService._freight_kg_price(
                purchase, freight_repo
            )

            freight_cost = Amount(freight_kg_price * consumed.value)
            total_freight = total_freight + freight_cost

            consumptions.append(
                MaterialConsumption(
                    material_code=formula.material_code,
                    material_name=purchase.product_name,
                    quantity=consumed,
                    unit_price=purchase.unit_price,
                    total_cost=purchase.unit_price * consumed.value,
                    freight_cost=freight_cost,
                    purchase_quantity=purchase.quantity,
                    freight_descriptor=str(purchase.freight_code),
                    freight_kg_price=freight_kg_price,
                )
            )

        return MaterialCostResult(
            consumptions=consumptions,
            total_freight_cost=total_freight,
        )

    @staticmethod
    def _freight_kg_price(purchase: Purchase, freight_repo: FreightMasterRepository) -> float:
        match purchase.freight_code:
            case DirectFreightPrice(price=price):
                return price
            case MasterFreightCode(code=code):
                return freight_repo.find_by_code(code).kg_unit_price.value
            case other:
                raise TypeError(f"Unsupported freight code: {other!r}")

    @staticmethod
    def calculate_raw_material_cost(consumptions: Sequence[MaterialConsumption]) -> Amount:
        """Sum material costs (freight excluded). Zero for no consumptions."""
        total = Amount.zero()
        for consumption in consumptions:
            total = total + consumption.total_cost
        return total

    @staticmethod
    def calculate_unit_cost(raw_material_cost: Amount, total_consumption_kg: float) -> Amount:
        """
        Cost per tonne of consumed material: (raw cost / consumed kg) x 1000.

        Returns zero when nothing was consumed.
        """
        if total_consumption_kg == 0.0:
            return Amount.zero()
        return (raw_material_cost / total_consumption_kg) * KG_PER_TONNE

    @staticmethod
    def calculate_yield_cost(raw_material_cost: Amount, yield_rate: YieldRate) -> Amount:
        return raw_material_cost * yield_rate.value

    @staticmethod
    def calculate_total_material_cost(
        yield_cost: Amount,
        coagulant_cost: Amount,
        clay_treatment_cost: Amount,
        freight_cost: Amount,
    ) -> Amount:
        return yield_cost + coagulant_cost + clay_treatment_cost + freight_cost
