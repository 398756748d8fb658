"""Chronological inventory ledger with per-product running balances."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from material_cost_engine.domain.models import InventoryTransaction
from material_cost_engine.domain.value_objects import (
    InventoryBalance,
    InventoryType,
    ProductCode,
    Quantity,
    TransactionDate,
)


@dataclass(frozen=True)
class InventoryHistoryRecord:
    """
    One ledger line.

    base_quantity is the balance before the movement, change_quantity its
    unsigned magnitude and balance the result. Balances may be negative.
    """

    date: TransactionDate
    inventory_type: InventoryType
    product_code: ProductCode
    product_name: str
    base_quantity: InventoryBalance
    change_quantity: Quantity
    balance: InventoryBalance


class InventoryHistoryService:
    """Builds the inventory ledger from a complete set of transactions."""

    @staticmethod
    def create_history(
        transactions: Iterable[InventoryTransaction],
    ) -> List[InventoryHistoryRecord]:
        """
        Sort transactions and apply them to per-product running balances.

        Ordering is by date (calendar value, then date text), then product
        code. ``sorted`` is stable, so transactions sharing both keep their
        input order and the output is deterministic for a given input list.

        Returns:
            Ledger records in processed order
        """
        ordered = sorted(
            transactions,
            key=lambda t: (t.date.sort_key, t.product_code.value),
        )

        balances: Dict[str, float] = {}
        records: List[InventoryHistoryRecord] = []

        for transaction in ordered:
            code = transaction.product_code.value
            base = balances.get(code, 0.0)

            if transaction.inventory_type.is_inbound:
                change = transaction.quantity.value
            else:
                change = -transaction.quantity.value

            new_balance = base + change
            balances[code] = new_balance

            records.append(
                InventoryHistoryRecord(
                    date=transaction.date,
                    inventory_type=transaction.inventory_type,
                    product_code=transaction.product_code,
                    product_name=transaction.product_name,
                    base_quantity=InventoryBalance(base),
                    change_quantity=Quantity(abs(change)),
                    balance=InventoryBalance(new_balance),
                )
            )

        return records
