"""
Cell membership partition engine.

Keeps every person of a period in exactly one place (a cell slot or the
unassigned bucket) while an operator edits, and saves the result to the
service in ordered phases.
"""

from .identifiers import GroupId, PersistentId, ProvisionalId, ProvisionalIdMinter, is_provisional
from .errors import (
    ContractViolation,
    GatewayError,
    InvariantViolation,
    PartitionError,
    SynchronizationError,
    SyncOutcome,
    SyncPhase,
    UnknownGroupError,
    UnknownPersonError,
)
from .models import (
    AUTO_NAME_TEMPLATE,
    Group,
    GroupSnapshot,
    Location,
    MembershipAssignment,
    Person,
    Role,
    derive_group_name,
)
from .store import PartitionStore
from .placement import PlacementEngine
from .bulk_text import BulkImportResult, ResolutionMiss, import_bulk_text, split_grid
from .gateway import CellGateway, GatewayConfig
from .sync import SyncReport, SynchronizationCoordinator
from .session import EditingSession, load_partition

__all__ = [
    # identifiers
    "GroupId",
    "PersistentId",
    "ProvisionalId",
    "ProvisionalIdMinter",
    "is_provisional",
    # errors
    "ContractViolation",
    "GatewayError",
    "InvariantViolation",
    "PartitionError",
    "SynchronizationError",
    "SyncOutcome",
    "SyncPhase",
    "UnknownGroupError",
    "UnknownPersonError",
    # records
    "AUTO_NAME_TEMPLATE",
    "Group",
    "GroupSnapshot",
    "Location",
    "MembershipAssignment",
    "Person",
    "Role",
    "derive_group_name",
    # engine
    "PartitionStore",
    "PlacementEngine",
    "BulkImportResult",
    "ResolutionMiss",
    "import_bulk_text",
    "split_grid",
    # boundary and saving
    "CellGateway",
    "GatewayConfig",
    "SyncReport",
    "SynchronizationCoordinator",
    "EditingSession",
    "load_partition",
]
