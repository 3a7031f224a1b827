"""Write-side endpoints: form submissions, manual entry and field edits"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from casework.errors import ValidationError
from casework.schemas import EditOutcome, FieldEditRequest, IngestRequest, IngestionOutcome, ManualUpdateRequest
from casework.services.container import Services
from casework.api.deps import get_services

router = APIRouter()


@router.post("/ingest", response_model=IngestionOutcome)
def ingest_submission(request: IngestRequest, services: Services = Depends(get_services)):
    """
    Receive one form submission
    `origin` is the name of the form sheet it came from, `answers` maps question text to value
    """
    return services.ingestion.process_submission(request.answers, request.origin)


@router.post("/families", response_model=IngestionOutcome)
def create_family(request: ManualUpdateRequest, services: Services = Depends(get_services)):
    """Manual entry by an operator"""
    return services.ingestion.process_manual_entry(request.fields)


@router.post("/families/{family_id}/update", response_model=IngestionOutcome)
def update_family(family_id: int, request: ManualUpdateRequest, services: Services = Depends(get_services)):
    outcome = services.ingestion.process_manual_update(family_id, request.fields)
    if outcome.action == "not_found":
        raise HTTPException(status_code=404, detail="Family not found")
    return outcome


@router.patch("/families/{family_id}/fields/{field}", response_model=EditOutcome)
def edit_family_field(family_id: int, field: str, request: FieldEditRequest,
                      services: Services = Depends(get_services)):
    """Edit one field; status and severity edits run their checks and may be reverted"""
    family = services.store.find_by_id(family_id)
    if family is None:
        raise HTTPException(status_code=404, detail="Family not found")

    try:
        outcome = services.status.handle_field_edit(family, field, request.value, request.old_value)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="; ".join(e.errors))

    if not outcome.accepted:
        return JSONResponse(status_code=409, content=outcome.model_dump())
    return outcome
