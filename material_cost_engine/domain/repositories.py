"""Repository contracts consumed by the domain services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

from material_cost_engine.domain.models import (
    FormulaEntry,
    FreightMaster,
    InventoryTransaction,
    Production,
    Purchase,
)
from material_cost_engine.domain.value_objects import ProductCode


class FormulaRepository(Protocol):
    def find_by_product_code(self, product_code: ProductCode) -> List[FormulaEntry]:
        """
        Return the recipe lines for a product.

        Raises:
            FormulaNotFoundError: If the product has no recipe
        """
        ...


class PurchaseRepository(Protocol):
    def find_latest_price(self, product_code: ProductCode) -> Purchase:
        """
        Return the latest purchase record for a material.

        Raises:
            PurchaseNotFoundError: If the material was never purchased
        """
        ...


class FreightMasterRepository(Protocol):
    def find_by_code(self, freight_code: str) -> FreightMaster:
        """
        Return the freight master entry for a code.

        Raises:
            FreightMasterNotFoundError: If the code is not registered
        """
        ...


class ProductionRepository(Protocol):
    def find_all(self) -> List[Production]:
        """Return every production batch in source order."""
        ...


class InventoryTransactionRepository(Protocol):
    def find_all_transactions(self) -> List[InventoryTransaction]:
        """Return every inventory transaction, unsorted."""
        ...


@dataclass(frozen=True)
class RepositoryBundle:
    """The full set of repositories a calculation run reads from."""

    formula_repo: FormulaRepository
    purchase_repo: PurchaseRepository
    freight_repo: FreightMasterRepository
    production_repo: ProductionRepository
    transaction_repo: InventoryTransactionRepository
