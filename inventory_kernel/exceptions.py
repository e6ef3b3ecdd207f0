"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the core (UI shells, background jobs) must tell a rejected
stock adjustment apart from an unreachable store without parsing message
strings. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        core.update_stock(item_id, new_stock)
    except NegativeStockError as e:
        show_inline(f"{e.item_id}: stock cannot go below zero")
    except RemoteWriteError as e:
        show_banner(e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- RemoteStoreError
    |   +-- FetchError
    |   +-- RemoteWriteError
    |   +-- DocumentNotFoundError
    |
    +-- ValidationError
    |   +-- MissingFieldError
    |   +-- InvalidFieldError
    |   +-- InvalidQuantityError
    |   +-- NegativeStockError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- UnknownActionError
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- PurchaseOrderNotFoundError
    |   +-- RequisitionNotFoundError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|---------------------------------------
Remote       | REMOTE_FETCH_FAILED       | Collection read failed (cache kept)
             | REMOTE_WRITE_FAILED       | create/update/delete rejected by store
             | DOCUMENT_NOT_FOUND        | Store has no document with that id
-------------|---------------------------|---------------------------------------
Validation   | MISSING_FIELD             | Required field absent or blank
             | INVALID_FIELD             | Field present but malformed
             | INVALID_QUANTITY          | Quantity <= 0 or not an integer
             | NEGATIVE_STOCK            | Resulting stock would be below zero
-------------|---------------------------|---------------------------------------
Workflow     | INVALID_TRANSITION        | Status precondition not met
             | UNKNOWN_ACTION            | Action not defined by the workflow
-------------|---------------------------|---------------------------------------
Not found    | ITEM_NOT_FOUND            | Item id not in cache or store
             | PURCHASE_ORDER_NOT_FOUND  | Order id not in cache or store
             | REQUISITION_NOT_FOUND     | Requisition id not in cache or store
-------------|---------------------------|---------------------------------------
Config       | INVALID_CONFIGURATION     | Config file or values rejected

===============================================================================
PROPAGATION
===============================================================================

Validation and workflow errors are raised synchronously, before any remote
call. Remote errors wrap the store's own exception as ``__cause__``. None of
these are fatal to the process; each is local to the attempted operation.
"""

from typing import Any


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Remote store exceptions


class RemoteStoreError(InventoryKernelError):
    """Base exception for failures at the remote document store boundary."""

    code: str = "REMOTE_STORE_ERROR"


class FetchError(RemoteStoreError):
    """Reading a collection from the remote store failed."""

    code: str = "REMOTE_FETCH_FAILED"

    def __init__(self, collection: str, reason: str):
        self.collection = collection
        self.reason = reason
        super().__init__(
            f"Failed to fetch collection {collection}: {reason}"
        )


class RemoteWriteError(RemoteStoreError):
    """A create, update or delete was rejected by the remote store."""

    code: str = "REMOTE_WRITE_FAILED"

    def __init__(
        self,
        collection: str,
        operation: str,
        doc_id: str | None,
        reason: str,
    ):
        self.collection = collection
        self.operation = operation
        self.doc_id = doc_id
        self.reason = reason
        target = f"{collection}/{doc_id}" if doc_id else collection
        super().__init__(f"Remote {operation} failed for {target}: {reason}")


class DocumentNotFoundError(RemoteStoreError):
    """The remote store has no document with the given id."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document not found: {collection}/{doc_id}")


# Validation exceptions


class ValidationError(InventoryKernelError):
    """Base exception for input rejected before any remote call."""

    code: str = "VALIDATION_FAILED"


class MissingFieldError(ValidationError):
    """A required field is absent or blank."""

    code: str = "MISSING_FIELD"

    def __init__(self, entity: str, field_name: str):
        self.entity = entity
        self.field_name = field_name
        super().__init__(f"{entity}: field '{field_name}' is required")


class InvalidFieldError(ValidationError):
    """A field is present but its value is not acceptable."""

    code: str = "INVALID_FIELD"

    def __init__(self, entity: str, field_name: str, value: Any, reason: str):
        self.entity = entity
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(
            f"{entity}: invalid value {value!r} for '{field_name}': {reason}"
        )


class InvalidQuantityError(ValidationError):
    """A line or adjustment quantity is not a positive integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, entity: str, quantity: Any):
        self.entity = entity
        self.quantity = quantity
        super().__init__(
            f"{entity}: quantity must be a positive integer, got {quantity!r}"
        )


class NegativeStockError(ValidationError):
    """
    A stock change would leave current stock below zero.

    Adjustments are rejected, never clamped.
    """

    code: str = "NEGATIVE_STOCK"

    def __init__(self, item_id: str, current_stock: int, requested_stock: int):
        self.item_id = item_id
        self.current_stock = current_stock
        self.requested_stock = requested_stock
        super().__init__(
            f"Stock for item {item_id} cannot become {requested_stock} "
            f"(currently {current_stock})"
        )


# Workflow exceptions


class WorkflowError(InventoryKernelError):
    """Base exception for status workflow violations."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """The entity's current status does not permit the requested action."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        workflow: str,
        entity_id: str | None,
        current_state: str,
        action: str,
    ):
        self.workflow = workflow
        self.entity_id = entity_id
        self.current_state = current_state
        self.action = action
        super().__init__(
            f"{workflow}: cannot '{action}' from status '{current_state}'"
            + (f" (id={entity_id})" if entity_id else "")
        )


class UnknownActionError(WorkflowError):
    """The action is not defined by the workflow at all."""

    code: str = "UNKNOWN_ACTION"

    def __init__(self, workflow: str, action: str):
        self.workflow = workflow
        self.action = action
        super().__init__(f"{workflow}: unknown action '{action}'")


# Not found exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for entities missing from both cache and store."""

    code: str = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Inventory item with given ID was not found."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Inventory item not found: {item_id}")


class PurchaseOrderNotFoundError(NotFoundError):
    """Purchase order with given ID was not found."""

    code: str = "PURCHASE_ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Purchase order not found: {order_id}")


class RequisitionNotFoundError(NotFoundError):
    """Requisition with given ID was not found."""

    code: str = "REQUISITION_NOT_FOUND"

    def __init__(self, requisition_id: str):
        self.requisition_id = requisition_id
        super().__init__(f"Requisition not found: {requisition_id}")


# Configuration exceptions


class ConfigurationError(InventoryKernelError):
    """Configuration file or values were rejected."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid configuration for '{field_name}': {reason}")
