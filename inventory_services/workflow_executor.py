"""
inventory_services.workflow_executor -- Status transition execution.

Responsibility:
    Applies one workflow action to a status-bearing entity held in a
    CacheStore: resolve the transition, stamp it, patch the cache
    optimistically, write to the remote store, and revert the local patch if
    the write fails.  Thin coordinator; transition rules live in the pure
    lifecycle engine.

Architecture position:
    Services layer.  May import from inventory_engines (pure engines) and
    inventory_kernel (domain, exceptions, logging).

Invariants enforced:
    - Invalid or unknown actions raise before anything is patched or sent.
    - Only status and approval stamps are written; totals are untouched.
    - Every attempt emits exactly one ``workflow_transition`` log record.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Mapping, TypeVar

from inventory_engines.lifecycle import resolve_transition, transition_changes
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.workflow import Workflow
from inventory_kernel.exceptions import RemoteWriteError, WorkflowError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_services.cache_store import CacheStore
from inventory_services.remote_store import RemoteStore

logger = get_logger("services.workflow_executor")

T = TypeVar("T")

TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_CONFIRMED = "confirmed"
OUTCOME_REVERTED = "reverted"
OUTCOME_REJECTED = "rejected"


class MutationStatus(Enum):
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    """
    Outcome of an optimistic mutation.

    ``entity`` is what the cache holds for the id afterwards as far as this
    mutation is concerned: the updated entity when confirmed, the previous
    one when reverted.
    """
    status: MutationStatus
    entity: T
    previous: T
    error: RemoteWriteError | None = None

    @property
    def confirmed(self) -> bool:
        return self.status == MutationStatus.CONFIRMED


def _emit_workflow_trace(
    workflow: Workflow,
    action: str,
    entity_id: str,
    from_state: str,
    outcome: str,
    reason: str,
    duration_ms: float,
    actor: str,
    to_state: str | None = None,
) -> None:
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "workflow": workflow.name,
        "action": action,
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
    }
    if to_state is not None:
        record["to_state"] = to_state
    with LogContext.bind(actor_id=actor, entity_id=entity_id):
        logger.info("workflow_transition", extra=record)


def encode_transition_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Stored field names for the attributes a transition changes."""
    fields: dict[str, Any] = {"status": changes["status"].value}
    if "approved_by" in changes:
        fields["approvedBy"] = changes["approved_by"]
        fields["approvedDate"] = changes["approved_date"].isoformat()
    return fields


class WorkflowExecutor:
    """
    Runs workflow transitions against a cached collection.

    The cached entities must expose ``id``, ``status`` and
    ``with_changes(**changes)``.
    """

    def __init__(self, store: RemoteStore, clock: Clock | None = None):
        self._store = store
        self._clock = clock or SystemClock()

    def execute(
        self,
        workflow: Workflow,
        cache: CacheStore[T],
        collection: str,
        entity_id: str,
        action: Enum | str,
        actor: str,
        not_found: Callable[[str], Exception],
    ) -> MutationResult[T]:
        """
        Apply ``action`` to the entity ``entity_id``.

        Raises:
            not_found(entity_id): the entity is not in the cache.
            UnknownActionError / InvalidTransitionError: the action cannot
                be applied from the entity's current status.
        """
        t0 = time.monotonic()
        action_name = action.value if isinstance(action, Enum) else str(action)

        current = cache.get(entity_id)
        if current is None:
            raise not_found(entity_id)
        from_state = current.status.value

        try:
            transition = resolve_transition(workflow, current.status, action, entity_id)
        except WorkflowError as exc:
            _emit_workflow_trace(
                workflow, action_name, entity_id, from_state,
                outcome=OUTCOME_REJECTED,
                reason=str(exc),
                duration_ms=(time.monotonic() - t0) * 1000,
                actor=actor,
            )
            raise

        changes = transition_changes(transition, actor, self._clock.now())
        updated = current.with_changes(**changes)
        previous = cache.upsert(updated)
        if previous is None:
            previous = current
        to_state = transition.to_state.value

        try:
            self._store.update(collection, entity_id, encode_transition_changes(changes))
        except Exception as exc:
            restored = cache.restore(entity_id, previous, updated)
            error = exc if isinstance(exc, RemoteWriteError) else RemoteWriteError(
                collection, "update", entity_id, str(exc),
            )
            if error is not exc:
                error.__cause__ = exc
            _emit_workflow_trace(
                workflow, action_name, entity_id, from_state,
                outcome=OUTCOME_REVERTED,
                reason=f"remote update failed: {exc}; local revert applied={restored}",
                duration_ms=(time.monotonic() - t0) * 1000,
                actor=actor,
                to_state=to_state,
            )
            return MutationResult(
                status=MutationStatus.REVERTED,
                entity=previous,
                previous=previous,
                error=error,
            )

        _emit_workflow_trace(
            workflow, action_name, entity_id, from_state,
            outcome=OUTCOME_CONFIRMED,
            reason=f"{from_state} -> {to_state}",
            duration_ms=(time.monotonic() - t0) * 1000,
            actor=actor,
            to_state=to_state,
        )
        return MutationResult(
            status=MutationStatus.CONFIRMED,
            entity=updated,
            previous=previous,
        )
