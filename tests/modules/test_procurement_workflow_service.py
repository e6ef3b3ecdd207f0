"""
Tests for ProcurementService.

Covers:
- Purchase order creation: totals from lines, pending status, numbering
- Purchase order transition table through the service
- Requisition creation and approve / reject / fulfill
- Remote failure on a transition reverts the cache
- Transitions after the TTL lapses checked against the current remote status
- Supplier directory and pipeline statistics
"""

from datetime import date
from decimal import Decimal

import pytest

from inventory_kernel.domain.procurement import (
    PurchaseOrderStatus,
    RequisitionPriority,
    RequisitionStatus,
    SupplierStatus,
)
from inventory_kernel.exceptions import (
    InvalidQuantityError,
    InvalidTransitionError,
    MissingFieldError,
    PurchaseOrderNotFoundError,
    RemoteWriteError,
    RequisitionNotFoundError,
)
from inventory_modules.procurement.service import ProcurementService, next_document_number
from inventory_services.workflow_executor import MutationStatus

ORDER = {
    "supplier": "Linen Supply Co.",
    "items": [
        {"name": "Bath Towel", "quantity": 2, "unit_price": 100},
        {"name": "Hand Towel", "quantity": 1, "unit_price": 50},
    ],
}

REQUISITION = {
    "department": "Housekeeping",
    "requested_by": "Ana Cruz",
    "priority": "high",
    "items": [
        {"name": "Bath Towel", "quantity": 20, "unit": "pieces", "estimated_cost": "9000"},
        {"name": "Detergent", "quantity": 5, "unit": "kg", "estimated_cost": "1250"},
    ],
    "justification": "Peak season",
}


@pytest.fixture
def service(any_store, deterministic_clock, core_config):
    return ProcurementService(any_store, core_config, clock=deterministic_clock)


@pytest.fixture
def flaky_service(flaky_store, deterministic_clock, core_config):
    return ProcurementService(flaky_store, core_config, clock=deterministic_clock)


def _order_in(service, status: PurchaseOrderStatus):
    order = service.create_purchase_order(ORDER)
    path = {
        PurchaseOrderStatus.PENDING: [],
        PurchaseOrderStatus.APPROVED: ["approve"],
        PurchaseOrderStatus.RECEIVED: ["approve", "receive"],
        PurchaseOrderStatus.CANCELLED: ["cancel"],
    }[status]
    for action in path:
        assert service.transition_purchase_order(order.id, action, actor="manager").confirmed
    return order.id


def _requisition_in(service, status: RequisitionStatus):
    req = service.create_requisition(REQUISITION)
    path = {
        RequisitionStatus.PENDING: [],
        RequisitionStatus.APPROVED: ["approve"],
        RequisitionStatus.REJECTED: ["reject"],
        RequisitionStatus.FULFILLED: ["approve", "fulfill"],
    }[status]
    for action in path:
        assert service.transition_requisition(req.id, action, actor="gm").confirmed
    return req.id


class TestCreatePurchaseOrder:

    def test_total_and_pending_status(self, service):
        order = service.create_purchase_order(ORDER)

        assert order.total_amount == Decimal("250")
        assert order.status == PurchaseOrderStatus.PENDING
        assert [line.total for line in order.items] == [Decimal("200"), Decimal("50")]

    def test_persisted(self, service):
        order = service.create_purchase_order(ORDER)
        (stored,) = service.fetch_purchase_orders(force_refresh=True)
        assert stored.id == order.id
        assert stored.total_amount == Decimal("250")
        assert stored.order_date == date(2024, 9, 20)

    def test_sequential_numbers(self, service):
        first = service.create_purchase_order(ORDER)
        second = service.create_purchase_order(ORDER)
        assert first.order_number == "PO-2024-001"
        assert second.order_number == "PO-2024-002"

    def test_explicit_number_kept(self, service):
        order = service.create_purchase_order({**ORDER, "order_number": "PO-LEGACY-9"})
        assert order.order_number == "PO-LEGACY-9"

    def test_bad_line_never_reaches_store(self, flaky_service, flaky_store):
        bad = {**ORDER, "items": [{"name": "Towel", "quantity": 0, "unit_price": 1}]}
        with pytest.raises(InvalidQuantityError):
            flaky_service.create_purchase_order(bad)
        assert "create" not in flaky_store.calls

    def test_create_failure(self, flaky_service, flaky_store):
        flaky_store.fail("create")
        with pytest.raises(RemoteWriteError):
            flaky_service.create_purchase_order(ORDER)
        assert flaky_service.orders.snapshot() == []

    def test_newest_first(self, service, deterministic_clock):
        older = service.create_purchase_order(ORDER)
        deterministic_clock.advance(3600)
        newer = service.create_purchase_order(ORDER)
        assert [o.id for o in service.fetch_purchase_orders(force_refresh=True)] == [newer.id, older.id]


class TestPurchaseOrderTransitions:

    @pytest.mark.parametrize("status", list(PurchaseOrderStatus))
    def test_approve_only_from_pending(self, service, status):
        order_id = _order_in(service, status)
        if status == PurchaseOrderStatus.PENDING:
            result = service.transition_purchase_order(order_id, "approve", actor="manager")
            assert result.status == MutationStatus.CONFIRMED
            assert result.entity.approved_by == "manager"
        else:
            with pytest.raises(InvalidTransitionError):
                service.transition_purchase_order(order_id, "approve", actor="manager")
            assert service.get_purchase_order(order_id).status == status

    def test_transition_persisted_without_touching_total(self, service):
        order_id = _order_in(service, PurchaseOrderStatus.RECEIVED)
        (stored,) = service.fetch_purchase_orders(force_refresh=True)
        assert stored.id == order_id
        assert stored.status == PurchaseOrderStatus.RECEIVED
        assert stored.total_amount == Decimal("250")
        assert stored.approved_by == "manager"

    def test_unknown_order(self, service):
        with pytest.raises(PurchaseOrderNotFoundError):
            service.transition_purchase_order("nope", "approve", actor="manager")

    def test_sent_order_kept_and_receivable(self, memory_store, deterministic_clock, core_config):
        service = ProcurementService(memory_store, core_config, clock=deterministic_clock)
        doc = memory_store.create("purchaseOrders", {
            "orderNumber": "PO-2023-014",
            "supplier": "Linen Supply Co.",
            "items": [{"name": "Bath Towel", "quantity": 2, "unitPrice": "100", "total": "200"}],
            "totalAmount": "200",
            "status": "sent",
        })

        (order,) = service.fetch_purchase_orders()
        assert order.status == PurchaseOrderStatus.APPROVED
        result = service.transition_purchase_order(doc.id, "receive", actor="storekeeper")
        assert result.entity.status == PurchaseOrderStatus.RECEIVED

    def test_remote_failure_reverts(self, flaky_service, flaky_store):
        order = flaky_service.create_purchase_order(ORDER)
        flaky_store.fail("update")

        result = flaky_service.transition_purchase_order(order.id, "approve", actor="manager")

        assert result.status == MutationStatus.REVERTED
        assert isinstance(result.error, RemoteWriteError)
        assert flaky_service.get_purchase_order(order.id).status == PurchaseOrderStatus.PENDING

    def test_by_status_and_stats(self, service):
        _order_in(service, PurchaseOrderStatus.PENDING)
        _order_in(service, PurchaseOrderStatus.RECEIVED)
        _order_in(service, PurchaseOrderStatus.CANCELLED)
        service.orders.invalidate()

        assert len(service.purchase_orders_by_status("received")) == 1
        stats = service.procurement_stats()
        assert stats.total_orders == 3
        assert stats.total_value == Decimal("500")


class TestRequisitions:

    def test_create(self, service):
        req = service.create_requisition(REQUISITION)
        assert req.status == RequisitionStatus.PENDING
        assert req.priority == RequisitionPriority.HIGH
        assert req.total_estimated_cost == Decimal("10250")
        assert req.request_number == "REQ-2024-001"
        assert req.decided_by is None

    def test_department_required(self, service):
        with pytest.raises(MissingFieldError):
            service.create_requisition({**REQUISITION, "department": ""})

    @pytest.mark.parametrize("status", list(RequisitionStatus))
    def test_fulfill_only_from_approved(self, service, status):
        req_id = _requisition_in(service, status)
        if status == RequisitionStatus.APPROVED:
            result = service.transition_requisition(req_id, "fulfill", actor="storekeeper")
            assert result.entity.status == RequisitionStatus.FULFILLED
            assert result.entity.approved_by == "gm"
        else:
            with pytest.raises(InvalidTransitionError):
                service.transition_requisition(req_id, "fulfill", actor="storekeeper")

    def test_reject_stamps_decider(self, service, deterministic_clock):
        req_id = _requisition_in(service, RequisitionStatus.PENDING)
        result = service.transition_requisition(req_id, "reject", actor="gm")
        assert result.entity.status == RequisitionStatus.REJECTED
        assert result.entity.approved_by == "gm"
        assert result.entity.approved_date == deterministic_clock.now()
        assert result.entity.decided_by == "gm"

    def test_unknown_requisition(self, service):
        with pytest.raises(RequisitionNotFoundError):
            service.get_requisition("nope")

    def test_stats(self, service):
        _requisition_in(service, RequisitionStatus.APPROVED)
        _requisition_in(service, RequisitionStatus.REJECTED)
        service.requisitions.invalidate()
        stats = service.requisition_stats()
        assert stats.total_requisitions == 2
        assert stats.by_department == {"Housekeeping": 2}
        assert stats.total_estimated_cost == Decimal("10250")
        assert len(service.requisitions_by_status(RequisitionStatus.REJECTED)) == 1


class TestSubscriptions:

    def test_order_subscription_tracks_creates(self, memory_store, deterministic_clock, core_config):
        service = ProcurementService(memory_store, core_config, clock=deterministic_clock)
        seen = []
        subscription = service.subscribe_purchase_orders(seen.append)

        service.create_purchase_order(ORDER)

        assert [len(batch) for batch in seen] == [0, 1]
        assert service.order_subscription is subscription
        subscription.unsubscribe()
        assert service.order_subscription is None

    def test_requisition_subscription(self, memory_store, deterministic_clock, core_config):
        service = ProcurementService(memory_store, core_config, clock=deterministic_clock)
        seen = []
        with service.subscribe_requisitions(seen.append):
            service.create_requisition(REQUISITION)
        service.create_requisition(REQUISITION)
        assert [len(batch) for batch in seen] == [0, 1]


class TestSuppliers:

    def test_create_and_list(self, service):
        service.create_supplier({"name": "Metro Hotel Supplies", "email": "sales@metro.ph"})
        service.create_supplier({"name": "acme linens", "status": "inactive"})
        names = [s.name for s in service.fetch_suppliers(force_refresh=True)]
        assert names == ["acme linens", "Metro Hotel Supplies"]
        assert [s.name for s in service.active_suppliers()] == ["Metro Hotel Supplies"]

    def test_inactive_status_decoded(self, service):
        supplier = service.create_supplier({"name": "Old Vendor", "status": "inactive"})
        assert supplier.status == SupplierStatus.INACTIVE


class TestDocumentNumbers:

    def test_continues_highest(self):
        existing = ["PO-2024-001", "PO-2024-007", "PO-2023-010"]
        assert next_document_number("PO", 2024, existing) == "PO-2024-008"

    def test_new_year_restarts(self):
        assert next_document_number("REQ", 2025, ["REQ-2024-044"]) == "REQ-2025-001"

    def test_ignores_malformed(self):
        assert next_document_number("PO", 2024, ["PO-2024-abc", "misc"]) == "PO-2024-001"


class TestStaleCache:

    @pytest.fixture
    def first(self, memory_store, deterministic_clock, core_config):
        return ProcurementService(memory_store, core_config, clock=deterministic_clock)

    @pytest.fixture
    def second(self, memory_store, deterministic_clock, core_config):
        return ProcurementService(memory_store, core_config, clock=deterministic_clock)

    def test_order_created_elsewhere_found_within_ttl(self, first, second):
        first.fetch_purchase_orders()
        order = second.create_purchase_order(ORDER)

        result = first.transition_purchase_order(order.id, "approve", actor="manager")

        assert result.status == MutationStatus.CONFIRMED
        assert first.get_purchase_order(order.id).status == PurchaseOrderStatus.APPROVED

    def test_expired_cache_refetched_before_transition(self, first, second, deterministic_clock):
        order = first.create_purchase_order(ORDER)
        first.fetch_purchase_orders()
        second.transition_purchase_order(order.id, "cancel", actor="manager")
        deterministic_clock.advance(3600)

        with pytest.raises(InvalidTransitionError):
            first.transition_purchase_order(order.id, "approve", actor="manager")

        assert first.get_purchase_order(order.id).status == PurchaseOrderStatus.CANCELLED

    def test_requisition_created_elsewhere_found_within_ttl(self, first, second):
        first.fetch_requisitions()
        req = second.create_requisition(REQUISITION)
        assert first.get_requisition(req.id).request_number == "REQ-2024-001"

    def test_numbering_sees_orders_created_after_expiry(self, first, second, deterministic_clock):
        first.fetch_purchase_orders()
        second.create_purchase_order(ORDER)
        deterministic_clock.advance(3600)
        assert first.create_purchase_order(ORDER).order_number == "PO-2024-002"

    def test_unknown_requisition_after_refetch(self, first):
        first.fetch_requisitions()
        with pytest.raises(RequisitionNotFoundError):
            first.transition_requisition("nope", "approve", actor="manager")
