# =============================================================================
# core/models/ - Data Models
# =============================================================================
# This package contains the schemas the coordinators work with:
# - asset.py: AssetRecord, owner references and stored objects
# - result.py: StoreResult / OperationResult and the ErrorKind taxonomy
# =============================================================================

# -----------------------------------------------------------------------------
# Asset Models - metadata rows and object store payloads
# -----------------------------------------------------------------------------
from .asset import (
    AssetRecord,
    OwnerKind,
    OwnerRecord,
    OwnerRef,
    StoredObject,
)

# -----------------------------------------------------------------------------
# Result Models - outcomes of store calls and operations
# -----------------------------------------------------------------------------
from .result import (
    ErrorKind,
    OperationResult,
    StoreResult,
)

__all__ = [
    # Asset
    "AssetRecord",
    "OwnerKind",
    "OwnerRecord",
    "OwnerRef",
    "StoredObject",
    # Result
    "ErrorKind",
    "OperationResult",
    "StoreResult",
]
