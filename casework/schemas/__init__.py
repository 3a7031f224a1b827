from casework.schemas.family_schema import FamilyResponse, FamilyAddressResponse, DuplicateMatch
from casework.schemas.ingest_schema import (
    FormSubmission,
    IngestRequest,
    ManualUpdateRequest,
    IngestionOutcome,
    FieldEditRequest,
    EditOutcome,
)
from casework.schemas.sync_schema import (
    DirectoryAddress,
    DirectoryEntry,
    LocationUnit,
    LocationHierarchy,
    LocationResolution,
    FieldChange,
    SyncResult,
    SyncDetail,
    ReverseSyncReport,
    VerificationReport,
)

__all__ = [
    "FamilyResponse",
    "FamilyAddressResponse",
    "DuplicateMatch",
    "FormSubmission",
    "IngestRequest",
    "ManualUpdateRequest",
    "IngestionOutcome",
    "FieldEditRequest",
    "EditOutcome",
    "DirectoryAddress",
    "DirectoryEntry",
    "LocationUnit",
    "LocationHierarchy",
    "LocationResolution",
    "FieldChange",
    "SyncResult",
    "SyncDetail",
    "ReverseSyncReport",
    "VerificationReport",
]
