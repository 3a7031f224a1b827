from pydantic import BaseModel
from typing import Any, Dict, Optional


class FamilyResponse(BaseModel):
    """Public view of a validated family returned by the REST surface"""
    id: int
    last_name: Optional[str]
    first_name: Optional[str]
    zakat_eligible: Optional[bool]
    sadaqa_eligible: Optional[bool]
    adult_count: Optional[int]
    child_count: Optional[int]
    address: Optional[str]
    location_unit_id: Optional[str]
    can_travel: Optional[bool]
    email: Optional[str]
    phone: Optional[str]
    phone_secondary: Optional[str]
    circumstance: Optional[str]
    feeling: Optional[str]
    specifics: Optional[str]
    severity: Optional[int]
    language: Optional[str]
    sector_id: Optional[str] = None
    city_id: Optional[str] = None
    last_update: Optional[str] = None
    distance_km: Optional[float] = None

    class Config:
        from_attributes = True


class FamilyAddressResponse(BaseModel):
    id: int
    address: str
    street: str
    postal_code: str
    city: str
    location_unit_id: Optional[str]


class DuplicateMatch(BaseModel):
    exists: bool
    family_id: Optional[int] = None
    row_ref: Optional[int] = None
    data: Dict[str, Any] = {}
