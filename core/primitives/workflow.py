"""
Storefront Workflow Primitive — Generic State Machine
=======================================================
Deterministic state machine schema shared by the order-status and
payment-status lifecycles.

RULES:
- Invalid transitions are rejected, never silently skipped
- Terminal states allow no further transitions
- Every transition is recorded with actor + timestamp
- Definitions are immutable (frozen)

This file contains NO persistence logic.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from core.errors import InvalidTransitionError


# ══════════════════════════════════════════════════════════════
# TRANSITION RECORD
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StateTransition:
    """
    An immutable record of a single state transition.

    workflow names which machine moved (e.g. "OrderStatus").
    """
    transition_id: uuid.UUID
    workflow: str
    from_state: str
    to_state: str
    actor_id: Optional[str]
    transitioned_at: datetime
    reason: str = ""

    def __post_init__(self):
        if not isinstance(self.transition_id, uuid.UUID):
            raise ValueError("transition_id must be UUID.")
        if not self.workflow or not isinstance(self.workflow, str):
            raise ValueError("workflow must be non-empty string.")
        if not self.from_state or not isinstance(self.from_state, str):
            raise ValueError("from_state must be non-empty string.")
        if not self.to_state or not isinstance(self.to_state, str):
            raise ValueError("to_state must be non-empty string.")

    def to_dict(self) -> dict:
        return {
            "transition_id": str(self.transition_id),
            "workflow": self.workflow,
            "from_state": self.from_state,
            "to_state": self.to_state,
            "actor_id": self.actor_id,
            "transitioned_at": self.transitioned_at.isoformat(),
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> StateTransition:
        return cls(
            transition_id=uuid.UUID(data["transition_id"]),
            workflow=data["workflow"],
            from_state=data["from_state"],
            to_state=data["to_state"],
            actor_id=data.get("actor_id"),
            transitioned_at=datetime.fromisoformat(data["transitioned_at"]),
            reason=data.get("reason", ""),
        )


# ══════════════════════════════════════════════════════════════
# WORKFLOW DEFINITION (state machine schema)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Defines the valid states and transitions for a workflow type.

    Fields:
        name:            Identifier for this workflow (e.g. "OrderStatus")
        initial_state:   Starting state for all new instances
        terminal_states: States from which no further transitions are allowed
        transitions:     Dict of {from_state → frozenset(allowed_to_states)}
    """
    name: str
    initial_state: str
    terminal_states: FrozenSet[str]
    transitions: Dict[str, FrozenSet[str]]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Workflow name must be non-empty.")
        if not self.initial_state:
            raise ValueError("initial_state must be non-empty.")
        if self.initial_state not in self.transitions:
            raise ValueError(
                f"initial_state '{self.initial_state}' not in transitions."
            )
        for state in self.terminal_states:
            if self.transitions.get(state):
                raise ValueError(
                    f"terminal state '{state}' must not have outgoing transitions."
                )

    @property
    def states(self) -> FrozenSet[str]:
        reachable = set(self.transitions)
        for targets in self.transitions.values():
            reachable.update(targets)
        return frozenset(reachable)

    def is_valid_transition(self, from_state: str, to_state: str) -> bool:
        allowed = self.transitions.get(from_state, frozenset())
        return to_state in allowed

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def allowed_next_states(self, from_state: str) -> FrozenSet[str]:
        return self.transitions.get(from_state, frozenset())

    def require_transition(self, from_state: str, to_state: str) -> None:
        """Raise InvalidTransitionError unless from_state → to_state is allowed."""
        if self.is_terminal(from_state):
            raise InvalidTransitionError(
                from_state,
                to_state,
                f"{self.name}: cannot transition from terminal state "
                f"'{from_state}'.",
            )
        if not self.is_valid_transition(from_state, to_state):
            allowed = sorted(self.allowed_next_states(from_state))
            raise InvalidTransitionError(
                from_state,
                to_state,
                f"{self.name}: invalid transition {from_state} → {to_state}. "
                f"Allowed: {allowed}.",
            )
