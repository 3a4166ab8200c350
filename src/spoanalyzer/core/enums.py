"""Core enumerations for the SPO Permissions Analyzer."""
from enum import Enum


class OperationStatus(str, Enum):
    """
    Background operation states.

    State flow:
        IDLE → RUNNING → COMPLETED/FAILED
                  ↑            ↓
                  └────────────┘  (starting a new operation is the reset)

    - IDLE: No operation has run since process start
    - RUNNING: The worker is executing an operation
    - COMPLETED: The last operation finished normally
    - FAILED: The last operation raised an error
    """

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class OperationType(str, Enum):
    """Kinds of long-running scans dispatched through the coordinator."""

    SITES = "sites"
    PERMISSIONS = "permissions"
    ENRICHMENT = "enrichment"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class StartResult(str, Enum):
    """
    Outcome of asking the coordinator to start an operation.

    - ACCEPTED: The operation was dispatched to the worker
    - BUSY: Another operation is running, nothing was changed
    """

    ACCEPTED = "ACCEPTED"
    BUSY = "BUSY"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class DataType(str, Enum):
    """Datasets collected by scans and served by the data endpoint."""

    SITES = "sites"
    USERS = "users"
    GROUPS = "groups"
    ROLE_ASSIGNMENTS = "roleassignments"
    INHERITANCE = "inheritance"
    SHARING_LINKS = "sharinglinks"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value
