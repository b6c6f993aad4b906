"""Explicit transition tables for relationship lifecycles.

`StateMachine.transition` tells a legal change (returns True) apart from a
legal no-op, i.e. re-applying the current state (returns False). Anything
else raises IllegalTransition.
"""

import enum
from dataclasses import dataclass
from typing import Generic, TypeVar

from gymcoach.core.errors import Conflict
from gymcoach.models.coach_assignment import AssignmentState
from gymcoach.models.routine_assignment import RoutineAssignmentState

S = TypeVar("S", bound=enum.Enum)


class IllegalTransition(Conflict):
    code = "illegal_transition"


@dataclass(frozen=True)
class StateMachine(Generic[S]):
    name: str
    transitions: dict[S, frozenset[S]]

    def can_transition(self, current: S, target: S) -> bool:
        return target in self.transitions.get(current, frozenset())

    def is_terminal(self, state: S) -> bool:
        return not self.transitions.get(state)

    def transition(self, current: S, target: S) -> bool:
        if current == target:
            return False
        if not self.can_transition(current, target):
            raise IllegalTransition(
                f"Cannot move {self.name} from '{current.value}' to '{target.value}'"
            )
        return True


COACH_ASSIGNMENT = StateMachine(
    name="coach assignment",
    transitions={
        AssignmentState.pending: frozenset({AssignmentState.active, AssignmentState.rejected}),
        AssignmentState.active: frozenset(),
        AssignmentState.rejected: frozenset(),
    },
)

ROUTINE_ASSIGNMENT = StateMachine(
    name="routine assignment",
    transitions={
        RoutineAssignmentState.active: frozenset(
            {RoutineAssignmentState.completed, RoutineAssignmentState.cancelled}
        ),
        RoutineAssignmentState.completed: frozenset(),
        RoutineAssignmentState.cancelled: frozenset(),
    },
)
