"""
inventory_engines.ledger -- Stock ledger fold.

Responsibility:
    Derive stock levels from recorded ``StockTransaction`` deltas, and check
    a recorded history against an item's current stock.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Transactions are folded in timestamp order (ties keep input order).
    - A fold that would dip below zero is reported, never clamped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from inventory_kernel.domain.items import InventoryItem, StockTransaction


def ordered(transactions: Iterable[StockTransaction]) -> list[StockTransaction]:
    return sorted(transactions, key=lambda t: t.timestamp)


def replay_stock(transactions: Iterable[StockTransaction], opening_stock: int = 0) -> int:
    """
    Fold signed deltas onto an opening balance.

    Raises:
        ValueError: the running balance goes negative at some point.
    """
    balance = opening_stock
    for txn in ordered(transactions):
        balance += txn.quantity
        if balance < 0:
            raise ValueError(
                f"ledger for item {txn.item_id} goes negative at transaction {txn.id}"
            )
    return balance


@dataclass(frozen=True)
class LedgerCheck:
    item_id: str
    expected_stock: int
    ledger_stock: int

    @property
    def is_consistent(self) -> bool:
        return self.expected_stock == self.ledger_stock


def check_item_ledger(
    item: InventoryItem,
    transactions: Iterable[StockTransaction],
    opening_stock: int = 0,
) -> LedgerCheck:
    """Compare an item's current stock with the fold of its own transactions."""
    own = [t for t in transactions if t.item_id == item.id]
    return LedgerCheck(
        item_id=item.id,
        expected_stock=item.current_stock,
        ledger_stock=replay_stock(own, opening_stock),
    )
