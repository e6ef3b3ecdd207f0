"""
Canonical workflow types (``inventory_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for status state machines.  Purchase orders and
requisitions both declare their lifecycle as a ``Workflow`` so that the
transition table is defined once and checked in one place.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* A (from_state, action) pair maps to at most one transition.
* ``terminal_states`` have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    Contract: frozen.  ``stamps_approval=True`` means applying the transition
    records the acting user and date in ``approved_by`` / ``approved_date``.
    """
    from_state: Enum
    to_state: Enum
    action: Enum
    stamps_approval: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; validated at construction.
    """
    name: str
    description: str
    initial_state: Enum
    states: tuple[Enum, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[Enum, ...] = ()

    def __post_init__(self):
        if self.initial_state not in self.states:
            raise ValueError(
                f"{self.name}: initial_state {self.initial_state} not in states"
            )
        seen: set[tuple[Enum, Enum]] = set()
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"{self.name}: transition {t.action} references unknown state"
                )
            key = (t.from_state, t.action)
            if key in seen:
                raise ValueError(
                    f"{self.name}: duplicate transition for {t.from_state} / {t.action}"
                )
            seen.add(key)
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"{self.name}: terminal state {t.from_state} has an outgoing transition"
                )

    @property
    def actions(self) -> frozenset[Enum]:
        return frozenset(t.action for t in self.transitions)

    def can_transition(self, from_state: Enum, to_state: Enum) -> bool:
        """True if any action moves ``from_state`` to ``to_state``."""
        return any(
            t.from_state == from_state and t.to_state == to_state
            for t in self.transitions
        )

    def transition_for(self, state: Enum, action: Enum) -> Transition | None:
        for t in self.transitions:
            if t.from_state == state and t.action == action:
                return t
        return None

    def available_actions(self, state: Enum) -> tuple[Enum, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)

    def is_terminal(self, state: Enum) -> bool:
        return state in self.terminal_states
