from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class DirectoryAddress(BaseModel):
    street: str = ""
    postal_code: str = ""
    city: str = ""
    country: str = ""
    formatted: str = ""


class DirectoryEntry(BaseModel):
    resource_name: Optional[str] = None
    etag: Optional[str] = None
    given_name: str = ""
    middle_name: str = ""
    family_name: str = ""
    phone_numbers: List[str] = []
    email: Optional[str] = None
    address: Optional[DirectoryAddress] = None
    custom_fields: Dict[str, str] = {}
    memberships: List[str] = []


class LocationUnit(BaseModel):
    id: str
    name: str = ""
    parent_id: Optional[str] = None
    postal_code: Optional[str] = None


class LocationHierarchy(BaseModel):
    district: LocationUnit
    sector: LocationUnit
    city: LocationUnit


class LocationResolution(BaseModel):
    is_valid: bool
    location_unit_id: Optional[str] = None
    location_unit_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    formatted_address: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None


class FieldChange(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class SyncResult(BaseModel):
    success: bool
    error: Optional[str] = None
    resource_name: Optional[str] = None


class SyncDetail(BaseModel):
    family_id: Optional[int] = None
    status: str  # updated, not_found, skipped, error
    changes: List[FieldChange] = []
    message: Optional[str] = None


class ReverseSyncReport(BaseModel):
    total: int = 0
    updated: int = 0
    unchanged: int = 0
    not_found: int = 0
    errors: int = 0
    details: List[SyncDetail] = []
    duration_seconds: float = 0.0


class VerificationReport(BaseModel):
    total: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    reasons: Dict[str, int] = {}
