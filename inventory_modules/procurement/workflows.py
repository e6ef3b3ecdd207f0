"""
Procurement Workflows.

Status machines for purchase orders and material requisitions.
"""

from inventory_kernel.domain.procurement import (
    PurchaseOrderAction,
    PurchaseOrderStatus,
    RequisitionAction,
    RequisitionStatus,
)
from inventory_kernel.domain.workflow import Transition, Workflow
from inventory_kernel.logging_config import get_logger

logger = get_logger("modules.procurement.workflows")


# -----------------------------------------------------------------------------
# Purchase Order Workflow
# -----------------------------------------------------------------------------

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Purchase order lifecycle",
    initial_state=PurchaseOrderStatus.PENDING,
    states=tuple(PurchaseOrderStatus),
    transitions=(
        Transition(
            PurchaseOrderStatus.PENDING,
            PurchaseOrderStatus.APPROVED,
            action=PurchaseOrderAction.APPROVE,
            stamps_approval=True,
        ),
        Transition(
            PurchaseOrderStatus.APPROVED,
            PurchaseOrderStatus.RECEIVED,
            action=PurchaseOrderAction.RECEIVE,
        ),
        Transition(
            PurchaseOrderStatus.PENDING,
            PurchaseOrderStatus.CANCELLED,
            action=PurchaseOrderAction.CANCEL,
        ),
        Transition(
            PurchaseOrderStatus.APPROVED,
            PurchaseOrderStatus.CANCELLED,
            action=PurchaseOrderAction.CANCEL,
        ),
    ),
    terminal_states=(PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED),
)

logger.info(
    "procurement_purchase_order_workflow_registered",
    extra={
        "workflow_name": PURCHASE_ORDER_WORKFLOW.name,
        "state_count": len(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
        "initial_state": PURCHASE_ORDER_WORKFLOW.initial_state.value,
    },
)


# -----------------------------------------------------------------------------
# Requisition Workflow
# -----------------------------------------------------------------------------

REQUISITION_WORKFLOW = Workflow(
    name="requisition",
    description="Material requisition lifecycle",
    initial_state=RequisitionStatus.PENDING,
    states=tuple(RequisitionStatus),
    transitions=(
        Transition(
            RequisitionStatus.PENDING,
            RequisitionStatus.APPROVED,
            action=RequisitionAction.APPROVE,
            stamps_approval=True,
        ),
        # Rejections record the decider in the approval fields too.
        Transition(
            RequisitionStatus.PENDING,
            RequisitionStatus.REJECTED,
            action=RequisitionAction.REJECT,
            stamps_approval=True,
        ),
        Transition(
            RequisitionStatus.APPROVED,
            RequisitionStatus.FULFILLED,
            action=RequisitionAction.FULFILL,
        ),
    ),
    terminal_states=(RequisitionStatus.REJECTED, RequisitionStatus.FULFILLED),
)

logger.info(
    "procurement_requisition_workflow_registered",
    extra={
        "workflow_name": REQUISITION_WORKFLOW.name,
        "state_count": len(REQUISITION_WORKFLOW.states),
        "transition_count": len(REQUISITION_WORKFLOW.transitions),
        "initial_state": REQUISITION_WORKFLOW.initial_state.value,
    },
)
