"""Operation state machine logic for managing valid state transitions."""
from typing import Set, Dict
from spoanalyzer.core.enums import OperationStatus
from spoanalyzer.core.exceptions import InvalidStateTransitionError


class OperationStateMachine:
    """
    Defines valid state transitions for the background operation.

    State Diagram:
        IDLE → RUNNING → COMPLETED/FAILED
        COMPLETED/FAILED → RUNNING (next operation accepted)

    RUNNING is the only state a new operation cannot start from.
    """

    # Define valid transitions as a mapping from current state to allowed next states
    TRANSITIONS: Dict[OperationStatus, Set[OperationStatus]] = {
        OperationStatus.IDLE: {OperationStatus.RUNNING},
        OperationStatus.RUNNING: {
            OperationStatus.COMPLETED,
            OperationStatus.FAILED,
        },
        OperationStatus.COMPLETED: {OperationStatus.RUNNING},
        OperationStatus.FAILED: {OperationStatus.RUNNING},
    }

    @classmethod
    def can_transition(cls, from_state: OperationStatus, to_state: OperationStatus) -> bool:
        """
        Check if transition from from_state to to_state is valid.

        Args:
            from_state: Current operation status
            to_state: Desired operation status

        Returns:
            bool: True if transition is valid, False otherwise
        """
        return to_state in cls.TRANSITIONS.get(from_state, set())

    @classmethod
    def validate_transition(cls, from_state: OperationStatus, to_state: OperationStatus) -> None:
        """
        Validate state transition and raise exception if invalid.

        Args:
            from_state: Current operation status
            to_state: Desired operation status

        Raises:
            InvalidStateTransitionError: If transition is not valid
        """
        if not cls.can_transition(from_state, to_state):
            raise InvalidStateTransitionError(
                f"Invalid state transition: {from_state} -> {to_state}"
            )

    @classmethod
    def can_start(cls, state: OperationStatus) -> bool:
        """Check if a new operation may be accepted in this state."""
        return cls.can_transition(state, OperationStatus.RUNNING)
