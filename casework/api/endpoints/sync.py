"""Directory sync endpoints"""
from fastapi import APIRouter, Depends, HTTPException

from casework.errors import ExternalServiceError
from casework.models import FamilyStatus
from casework.schemas import ReverseSyncReport, SyncResult
from casework.services.container import Services
from casework.api.deps import get_services

router = APIRouter()


@router.post("/sync/reverse", response_model=ReverseSyncReport)
def run_reverse_sync(services: Services = Depends(get_services)):
    """Pull edits made in the contact directory into the family table"""
    try:
        return services.reverse_sync.run()
    except ExternalServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/sync/families/{family_id}", response_model=SyncResult)
def push_family(family_id: int, services: Services = Depends(get_services)):
    """Re-push one validated family to the contact directory"""
    family = services.store.find_by_id(family_id)
    if family is None:
        raise HTTPException(status_code=404, detail="Family not found")
    if family.status != FamilyStatus.VALIDATED.value:
        raise HTTPException(status_code=409, detail="Only validated families are synced")
    return services.contacts.sync_family_contact(family)
