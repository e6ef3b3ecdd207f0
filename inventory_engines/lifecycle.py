"""
inventory_engines.lifecycle -- Pure workflow transition resolution.

Responsibility:
    Given a workflow, an entity's current status and a requested action,
    decide the target status or reject the request.  Also builds the field
    changes a transition implies (status plus approval stamp).

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The actor and timestamp are
    passed in; this module never reads a clock.

Failure modes:
    - UnknownActionError if the action is not part of the workflow.
    - InvalidTransitionError if the action is not allowed from the current
      status (including every action from a terminal status).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from inventory_kernel.domain.workflow import Transition, Workflow
from inventory_kernel.exceptions import InvalidTransitionError, UnknownActionError


def coerce_action(workflow: Workflow, action: Enum | str) -> Enum:
    """Map a raw action string (as a UI would send it) onto the workflow's enum."""
    if isinstance(action, Enum):
        if action in workflow.actions:
            return action
        raise UnknownActionError(workflow.name, str(action.value))
    for known in workflow.actions:
        if known.value == action:
            return known
    raise UnknownActionError(workflow.name, str(action))


def resolve_transition(
    workflow: Workflow,
    current_state: Enum,
    action: Enum | str,
    entity_id: str | None = None,
) -> Transition:
    """
    Find the transition for (current_state, action).

    Raises:
        UnknownActionError: action not defined by the workflow.
        InvalidTransitionError: action not permitted from current_state.
    """
    resolved = coerce_action(workflow, action)
    transition = workflow.transition_for(current_state, resolved)
    if transition is None:
        raise InvalidTransitionError(
            workflow.name,
            entity_id,
            current_state.value,
            resolved.value,
        )
    return transition


def transition_changes(
    transition: Transition,
    actor: str,
    at: datetime,
) -> dict[str, Any]:
    """
    Attribute changes a transition applies to the entity.

    Only the status (and, for stamping transitions, the approver and date)
    change; totals are never recomputed.
    """
    changes: dict[str, Any] = {"status": transition.to_state}
    if transition.stamps_approval:
        changes["approved_by"] = actor
        changes["approved_date"] = at
    return changes
