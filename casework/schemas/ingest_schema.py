from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class FormSubmission(BaseModel):
    """Form answers after header mapping; values stay loosely typed until validation"""
    family_id: Optional[Any] = None
    last_name: Optional[str] = None
    first_name: Optional[str] = None
    phone: Optional[Any] = None
    phone_secondary: Optional[Any] = None
    email: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[Any] = None
    city: Optional[str] = None
    adult_count: Optional[Any] = None
    child_count: Optional[Any] = None
    zakat_eligible: Optional[Any] = None
    sadaqa_eligible: Optional[Any] = None
    can_travel: Optional[Any] = None
    circumstance: Optional[str] = None
    feeling: Optional[str] = None
    specifics: Optional[str] = None
    severity: Optional[Any] = None
    language: Optional[str] = None
    identity_doc: Optional[str] = None
    aid_doc: Optional[str] = None
    aid_doc_optional: Optional[str] = None
    resource_doc: Optional[str] = None
    personal_data_protection: Optional[str] = None

    class Config:
        extra = "ignore"


class IngestRequest(BaseModel):
    origin: str = ""
    answers: Dict[str, Any]


class ManualUpdateRequest(BaseModel):
    fields: Dict[str, Any]


class IngestionOutcome(BaseModel):
    action: str  # created, merged, updated, rejected, duplicate, not_found, ignored, failed
    family_id: Optional[int] = None
    errors: List[str] = []
    warnings: List[str] = []
    message: str = ""


class FieldEditRequest(BaseModel):
    value: Any
    old_value: Optional[Any] = None


class EditOutcome(BaseModel):
    family_id: int
    field: str
    accepted: bool
    value: Any = None
    alert: Optional[str] = None
    sync_error: Optional[str] = None
