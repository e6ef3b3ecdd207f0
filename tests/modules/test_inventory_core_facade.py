"""
Tests for the InventoryCore facade.

Covers:
- Construction over the in-memory store and over SQLite
- Operations pass through to the shared caches
- Default filter spec uses the configured "all categories" label
- Presentation helpers use the configured currency
- close() / context manager ends every open subscription
"""

from decimal import Decimal

import pytest

from inventory_config.schema import InventoryCoreConfig
from inventory_engines.filtering import FilterSpec
from inventory_kernel.domain.procurement import PurchaseOrderStatus
from inventory_modules.core import InventoryCore
from inventory_services.remote_store import InMemoryDocumentStore
from inventory_services.sql_store import SqlDocumentStore

TOWEL = {
    "name": "Bath Towel", "category": "Linen",
    "current_stock": 8, "reorder_level": 15, "unit_price": "450",
}
SOAP = {"name": "Soap", "category": "Toiletries", "current_stock": 200, "unit_price": "25"}


@pytest.fixture
def core(deterministic_clock, core_config):
    return InventoryCore.in_memory(core_config, deterministic_clock)


class TestConstruction:

    def test_in_memory(self, core):
        assert isinstance(core.store, InMemoryDocumentStore)
        assert core.fetch_items() == []

    def test_from_database_url(self, deterministic_clock, core_config):
        core = InventoryCore.from_database_url("sqlite://", core_config, deterministic_clock)
        assert isinstance(core.store, SqlDocumentStore)

        added = core.add_item(TOWEL)

        assert [i.id for i in core.fetch_items(force_refresh=True)] == [added.id]

    def test_loads_active_config_when_none_given(self, monkeypatch, deterministic_clock):
        monkeypatch.delenv("INVENTORY_CORE_CONFIG", raising=False)
        core = InventoryCore.in_memory(clock=deterministic_clock)
        assert core.config == InventoryCoreConfig()

    def test_initialization_logged(self, deterministic_clock, core_config, captured_logs):
        InventoryCore.in_memory(core_config, deterministic_clock)
        (record,) = [r for r in captured_logs() if r["message"] == "inventory_core_initialized"]
        assert record["store"] == "InMemoryDocumentStore"
        assert record["cache_ttl_seconds"] == 300


class TestItems:

    def test_add_update_and_stats(self, core):
        towel = core.add_item(TOWEL)
        core.add_item(SOAP)
        core.adjust_stock(towel.id, -8, reason="Issued to floor 3", actor="maria")

        stats = core.aggregate_stats()

        assert stats.total_items == 2
        assert stats.out_of_stock_items == 1
        assert stats.total_value == Decimal("5000")
        assert [t.quantity for t in core.stock_history(towel.id)] == [8, -8]

    def test_filter_items_default_spec_returns_everything(self, core):
        core.add_item(SOAP)
        core.add_item(TOWEL)
        assert [i.name for i in core.filter_items(core.fetch_items())] == ["Bath Towel", "Soap"]

    def test_filter_items_with_spec(self, core):
        core.add_item(SOAP)
        core.add_item(TOWEL)
        spec = FilterSpec(stock_status="low-stock")
        assert [i.name for i in core.filter_items(core.fetch_items(), spec)] == ["Bath Towel"]

    def test_facets_use_configured_label(self, deterministic_clock):
        config = InventoryCoreConfig(all_categories_label="Everything")
        core = InventoryCore.in_memory(config, deterministic_clock)
        core.add_item(TOWEL)
        options = core.facet_counts(core.fetch_items()).category_options
        assert options[0].value == "Everything"

    def test_update_and_delete(self, core):
        towel = core.add_item(TOWEL)
        core.update_item(towel.id, {"location": "Linen room"})
        core.update_stock(towel.id, 30)
        assert core.fetch_items()[0].current_stock == 30
        core.delete_item(towel.id)
        assert core.fetch_items() == []


class TestProcurement:

    def test_order_pipeline(self, core):
        order = core.create_purchase_order({
            "supplier": "Linen Supply Co.",
            "items": [{"name": "Bath Towel", "quantity": 2, "unit_price": 100}],
        })
        result = core.transition_purchase_order(order.id, "approve", actor="manager")

        assert result.confirmed
        assert core.fetch_purchase_orders()[0].status == PurchaseOrderStatus.APPROVED
        assert core.procurement_stats().approved_orders == 1

    def test_requisition_pipeline(self, core):
        req = core.create_requisition({
            "department": "Kitchen",
            "requested_by": "Chef",
            "items": [{"name": "Flour", "quantity": 10, "unit": "kg", "estimated_cost": 800}],
        })
        core.transition_requisition(req.id, "reject", actor="gm")
        assert core.requisition_stats().total_estimated_cost == Decimal("0")
        assert len(core.fetch_requisitions()) == 1

    def test_suppliers(self, core):
        core.create_supplier({"name": "Metro Hotel Supplies"})
        assert [s.name for s in core.fetch_suppliers()] == ["Metro Hotel Supplies"]


class TestPresentation:

    def test_configured_currency(self, core):
        assert core.format_currency(Decimal("22500.50")) == "₱22,501"

    def test_explicit_currency(self, core):
        assert core.format_currency(100, "USD") == "$100"


class TestClose:

    def test_close_ends_subscriptions(self, core):
        items = core.subscribe_items(lambda items: None)
        orders = core.subscribe_purchase_orders(lambda orders: None)
        requisitions = core.subscribe_requisitions(lambda reqs: None)

        core.close()

        assert not items.active
        assert not orders.active
        assert not requisitions.active
        assert core.store.listener_count() == 0

    def test_context_manager(self, deterministic_clock, core_config):
        with InventoryCore.in_memory(core_config, deterministic_clock) as core:
            subscription = core.subscribe_items(lambda items: None)
        assert not subscription.active

    def test_close_without_subscriptions(self, core):
        core.close()
