"""
Engine error taxonomy.

Contract violations and invariant violations are programming errors and are
never recovered from. Synchronization failures are operator-facing and carry
enough context to tell "nothing was saved" apart from a partial save.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class PartitionError(Exception):
    """Base class for partition engine errors."""


class ContractViolation(PartitionError, LookupError):
    """An engine operation received an id that does not exist in the partition."""


class UnknownPersonError(ContractViolation):
    def __init__(self, person_id: Any):
        super().__init__(f"Unknown person id: {person_id}")
        self.person_id = person_id


class UnknownGroupError(ContractViolation):
    def __init__(self, group_id: Any):
        super().__init__(f"Unknown group id: {group_id}")
        self.group_id = group_id


class InvariantViolation(PartitionError):
    """The partition reached a state breaking one-slot-per-person or leader/co-leader distinctness."""


class GatewayError(Exception):
    """A boundary call failed (transport error, HTTP error status or error envelope)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class SyncOutcome(str, Enum):
    NOTHING_SAVED = "nothing_saved"
    PARTIALLY_SAVED = "partially_saved"
    SAVED_RELOAD_FAILED = "saved_reload_failed"


class SyncPhase(str, Enum):
    DELETE = "delete"
    MATERIALIZE = "materialize"
    UPDATE_METADATA = "update_metadata"
    MEMBERSHIP_BATCH = "membership_batch"
    RELOAD = "reload"


class SynchronizationError(Exception):
    """Raised when a save could not complete.

    ``outcome`` tells whether anything already reached the server.
    ``materialized`` maps provisional ids to the server ids created so far.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: SyncPhase,
        outcome: SyncOutcome,
        materialized: Optional[Dict[Any, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.phase = phase
        self.outcome = outcome
        self.materialized = dict(materialized or {})
        self.cause = cause

    @property
    def nothing_saved(self) -> bool:
        return self.outcome == SyncOutcome.NOTHING_SAVED

    @property
    def retry_recommended(self) -> bool:
        return True

    def operator_message(self) -> str:
        if self.nothing_saved:
            return f"Nothing was saved ({self.phase.value} failed). It is safe to retry."
        if self.outcome == SyncOutcome.SAVED_RELOAD_FAILED:
            return "Changes were saved but the refreshed view could not be loaded. Reload the period."
        return (
            f"Save partially completed: {self.phase.value} failed after earlier changes reached the server. "
            "Server state may differ from what is shown; retrying the save is recommended."
        )


__all__ = [
    "PartitionError",
    "ContractViolation",
    "UnknownPersonError",
    "UnknownGroupError",
    "InvariantViolation",
    "GatewayError",
    "SyncOutcome",
    "SyncPhase",
    "SynchronizationError",
]
