"""
Pytest fixtures for the inventory core test suite.

Provides:
- Structured logging for the session and per-test log capture
- A deterministic clock
- In-memory and SQLite-backed document stores
- Item / order / requisition factories
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from itertools import count

import pytest
from sqlalchemy.orm import sessionmaker

from inventory_config.schema import InventoryCoreConfig
from inventory_kernel.db.engine import build_engine, create_tables, drop_tables
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.items import InventoryItem
from inventory_kernel.domain.procurement import (
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
    Requisition,
    RequisitionLine,
    RequisitionPriority,
    RequisitionStatus,
)
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_services.remote_store import InMemoryDocumentStore
from inventory_services.sql_store import SqlDocumentStore


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, inventory_service):
            inventory_service.adjust_stock(...)
            logs = captured_logs()
            assert any(r["message"] == "inventory_stock_updated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and configuration
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


@pytest.fixture
def core_config():
    return InventoryCoreConfig()


# =============================================================================
# Stores
# =============================================================================


def _sequential_ids(prefix: str = "doc"):
    counter = count(1)
    return lambda: f"{prefix}-{next(counter):04d}"


@pytest.fixture
def memory_store(deterministic_clock):
    """In-memory document store with predictable ids."""
    return InMemoryDocumentStore(clock=deterministic_clock, id_factory=_sequential_ids())


@pytest.fixture
def sql_engine():
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine, deterministic_clock):
    """SQLite-backed document store with predictable ids."""
    factory = sessionmaker(bind=sql_engine, expire_on_commit=False)
    return SqlDocumentStore(factory, clock=deterministic_clock, id_factory=_sequential_ids())


@pytest.fixture(params=["memory", "sql"])
def any_store(request, deterministic_clock):
    """Each RemoteStore implementation in turn."""
    if request.param == "memory":
        return request.getfixturevalue("memory_store")
    return request.getfixturevalue("sql_store")


# =============================================================================
# Domain factories
# =============================================================================


def make_item(
    item_id: str = "item-1",
    name: str = "Bath Towel",
    category: str = "Linen",
    current_stock: int = 50,
    reorder_level: int = 15,
    unit_price: Decimal | str = "120",
    supplier: str = "Linen Supply Co.",
    description: str = "",
    last_restocked: date | None = None,
    **extra,
) -> InventoryItem:
    return InventoryItem(
        id=item_id,
        name=name,
        category=category,
        description=description,
        current_stock=current_stock,
        reorder_level=reorder_level,
        unit_price=Decimal(unit_price),
        supplier=supplier,
        last_restocked=last_restocked,
        **extra,
    )


def make_order(
    order_id: str = "po-1",
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING,
    lines: tuple[PurchaseOrderLine, ...] | None = None,
    supplier: str = "Linen Supply Co.",
    **extra,
) -> PurchaseOrder:
    lines = lines or (PurchaseOrderLine("Bath Towel", 2, Decimal("100")),)
    return PurchaseOrder(
        id=order_id,
        order_number=f"PO-2024-{order_id}",
        supplier=supplier,
        items=lines,
        total_amount=sum((l.total for l in lines), Decimal("0")),
        status=status,
        order_date=date(2024, 9, 20),
        **extra,
    )


def make_requisition(
    requisition_id: str = "req-1",
    status: RequisitionStatus = RequisitionStatus.PENDING,
    priority: RequisitionPriority = RequisitionPriority.MEDIUM,
    department: str = "Housekeeping",
    estimated_cost: Decimal | str = "500",
    **extra,
) -> Requisition:
    line = RequisitionLine("Bath Towel", 10, "pieces", Decimal(estimated_cost))
    return Requisition(
        id=requisition_id,
        request_number=f"REQ-2024-{requisition_id}",
        department=department,
        requested_by="Ana Cruz",
        items=(line,),
        total_estimated_cost=line.estimated_cost,
        status=status,
        priority=priority,
        request_date=date(2024, 9, 20),
        **extra,
    )


class FlakyStore:
    """
    Wraps a store and fails selected operations on demand.

    ``fail("update")`` makes the next update raise; ``fail("update", times=None)``
    makes every update raise until ``heal()``.  Subscription callbacks are
    captured so tests can push late snapshots or transport errors by hand.
    """

    def __init__(self, inner):
        self.inner = inner
        self._failures: dict[str, int | None] = {}
        self.calls: list[str] = []
        self.listeners: list[tuple] = []

    def fail(self, operation: str, times: int | None = 1) -> None:
        self._failures[operation] = times

    def heal(self) -> None:
        self._failures.clear()

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation not in self._failures:
            return
        remaining = self._failures[operation]
        if remaining is not None:
            if remaining <= 1:
                del self._failures[operation]
            else:
                self._failures[operation] = remaining - 1
        raise ConnectionError(f"simulated {operation} failure")

    def get_all(self, collection, order_by=None, descending=False, where=None):
        self._check("get_all")
        return self.inner.get_all(collection, order_by, descending, where)

    def get(self, collection, doc_id):
        self._check("get")
        return self.inner.get(collection, doc_id)

    def create(self, collection, data):
        self._check("create")
        return self.inner.create(collection, data)

    def update(self, collection, doc_id, fields):
        self._check("update")
        return self.inner.update(collection, doc_id, fields)

    def delete(self, collection, doc_id):
        self._check("delete")
        return self.inner.delete(collection, doc_id)

    def subscribe(self, collection, on_snapshot, on_error=None, order_by=None):
        self.listeners.append((collection, on_snapshot, on_error))
        return self.inner.subscribe(collection, on_snapshot, on_error, order_by)


@pytest.fixture
def flaky_store(memory_store):
    return FlakyStore(memory_store)
