"""Pydantic schemas for inventory history API responses."""

from pydantic import BaseModel

from material_cost_engine.domain.services.inventory_history_service import (
    InventoryHistoryRecord,
)


class InventoryHistoryRecordResponse(BaseModel):
    """One ledger line."""

    date: str
    inventory_type: str
    product_code: str
    product_name: str
    base_quantity: float
    change_quantity: float
    balance: float

    @classmethod
    def from_domain(cls, record: InventoryHistoryRecord) -> "InventoryHistoryRecordResponse":
        return cls(
            date=record.date.value,
            inventory_type=record.inventory_type.value,
            product_code=record.product_code.value,
            product_name=record.product_name,
            base_quantity=record.base_quantity.value,
            change_quantity=record.change_quantity.value,
            balance=record.balance.value,
        )


class InventoryHistoryResponse(BaseModel):
    """Response schema for the inventory ledger."""

    records: list[InventoryHistoryRecordResponse]
    total: int
