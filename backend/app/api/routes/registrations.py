# app/api/routes/registrations.py
from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_provider
from app.schemas.registrations import (
    ApprovalResult,
    Registration,
    RegistrationList,
    RejectionResult,
    SortDirection,
    SortField,
)
from app.services.backends import BackendProvider
from app.services.registrations import (
    SortState,
    approve_registration,
    get_registration,
    load_registrations,
    reject_registration,
)

router = APIRouter(prefix="/registrations", tags=["registrations"])


# GET /api/registrations/list
@router.get("/list", response_model=RegistrationList)
def list_registrations(
    sort: SortField = Query("created_at"),
    direction: SortDirection = Query("desc"),
    provider: BackendProvider = Depends(get_provider),
):
    state = SortState(field=sort, direction=direction)
    items = load_registrations(provider.read(), state, provider.settings)
    return {"items": items, "sort": state.field, "direction": state.direction}


# GET /api/registrations/{id}
@router.get("/{registration_id}", response_model=Registration)
def read_registration(registration_id: str, provider: BackendProvider = Depends(get_provider)):
    return get_registration(provider.read(), registration_id, provider.settings)


# POST /api/registrations/{id}/approve
@router.post("/{registration_id}/approve", response_model=ApprovalResult)
def approve(registration_id: str, provider: BackendProvider = Depends(get_provider)):
    if not registration_id.strip():
        raise HTTPException(status_code=400, detail="registration id is required")
    # admin() raises ConfigurationError before anything is sent
    return approve_registration(registration_id, backend=provider.admin(), settings=provider.settings)


# POST /api/registrations/{id}/reject
@router.post("/{registration_id}/reject", response_model=RejectionResult)
def reject(registration_id: str, provider: BackendProvider = Depends(get_provider)):
    if not registration_id.strip():
        raise HTTPException(status_code=400, detail="registration id is required")
    return reject_registration(registration_id, backend=provider.admin(), settings=provider.settings)
