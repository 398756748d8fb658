"""Dict-backed repositories for tests and programmatic use."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Sequence

from material_cost_engine.domain.exceptions import (
    FormulaNotFoundError,
    FreightMasterNotFoundError,
    PurchaseNotFoundError,
)
from material_cost_engine.domain.models import (
    FormulaEntry,
    FreightMaster,
    InventoryTransaction,
    Production,
    Purchase,
)
from material_cost_engine.domain.repositories import RepositoryBundle
from material_cost_engine.domain.value_objects import ProductCode


class InMemoryFormulaRepository:
    """Recipes keyed by manufactured product code."""

    def __init__(self, formulas: Mapping[str, Sequence[FormulaEntry]] | None = None):
        self._formulas: Dict[str, List[FormulaEntry]] = {
            code: list(entries) for code, entries in (formulas or {}).items()
        }

    def add(self, product_code: str, entry: FormulaEntry) -> None:
        self._formulas.setdefault(product_code, []).append(entry)

    def find_by_product_code(self, product_code: ProductCode) -> List[FormulaEntry]:
        entries = self._formulas.get(product_code.value)
        if entries is None:
            raise FormulaNotFoundError(product_code=product_code.value)
        return list(entries)


class InMemoryPurchaseRepository:
    """Purchases keyed by material code; a later add replaces an earlier one."""

    def __init__(self, purchases: Mapping[str, Purchase] | None = None):
        self._purchases: Dict[str, Purchase] = dict(purchases or {})

    def add(self, product_code: str, purchase: Purchase) -> None:
        self._purchases[product_code] = purchase

    def find_latest_price(self, product_code: ProductCode) -> Purchase:
        purchase = self._purchases.get(product_code.value)
        if purchase is None:
            raise PurchaseNotFoundError(product_code=product_code.value)
        return purchase


class InMemoryFreightMasterRepository:
    """Freight master entries keyed by freight code."""

    def __init__(self, entries: Iterable[FreightMaster] = ()):
        self._entries: Dict[str, FreightMaster] = {e.freight_code: e for e in entries}

    def find_by_code(self, freight_code: str) -> FreightMaster:
        entry = self._entries.get(freight_code)
        if entry is None:
            raise FreightMasterNotFoundError(freight_code=freight_code)
        return entry


class InMemoryProductionRepository:
    def __init__(self, productions: Iterable[Production] = ()):
        self._productions = list(productions)

    def find_all(self) -> List[Production]:
        return list(self._productions)


class InMemoryInventoryTransactionRepository:
    def __init__(self, transactions: Iterable[InventoryTransaction] = ()):
        self._transactions = list(transactions)

    def find_all_transactions(self) -> List[InventoryTransaction]:
        return list(self._transactions)


def build_in_memory_bundle(
    formulas: Mapping[str, Sequence[FormulaEntry]] | None = None,
    purchases: Mapping[str, Purchase] | None = None,
    freight_masters: Iterable[FreightMaster] = (),
    productions: Iterable[Production] = (),
    transactions: Iterable[InventoryTransaction] = (),
) -> RepositoryBundle:
    """Assemble a RepositoryBundle from plain collections."""
    return RepositoryBundle(
        formula_repo=InMemoryFormulaRepository(formulas),
        purchase_repo=InMemoryPurchaseRepository(purchases),
        freight_repo=InMemoryFreightMasterRepository(freight_masters),
        production_repo=InMemoryProductionRepository(productions),
        transaction_repo=InMemoryInventoryTransactionRepository(transactions),
    )
