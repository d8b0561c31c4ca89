from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel

from ..core.config import settings
from ..core.permissions import PERM_REGISTER_PATIENTS, PERM_VIEW_OWN_BARANGAY, has_permission
from ..core.errors import AuthorizationDenied
from ..core.security import get_current_session
from ..core.session import SessionContext
from ..services.patient_record import PatientRecord
from ..services.scoped_query import ScopedRecords
from .deps import get_records

router = APIRouter(prefix="/patients", tags=["patients"])


class BarangayInfo(BaseModel):
    id: str
    name: str
    municipality: str
    province: str


class PatientSummaryResponse(BaseModel):
    id: str
    client_name: str
    client_address: str
    date_of_birth: date
    age: int
    civil_status: str
    created_at: Optional[datetime]
    barangay: Optional[BarangayInfo] = None


class PatientDetailResponse(PatientRecord):
    age: int
    barangay: Optional[BarangayInfo] = None


def _require_patient_access(ctx: SessionContext, permission: str = PERM_VIEW_OWN_BARANGAY):
    if not has_permission(ctx.scope.role, permission):
        raise AuthorizationDenied("Insufficient permissions to access patient data")


def _barangay_info(row: Optional[Dict[str, Any]]) -> Optional[BarangayInfo]:
    if row is None:
        return None
    return BarangayInfo(id=row["id"], name=row["name"], municipality=row["municipality"], province=row["province"])


def _detail(record: PatientRecord, barangay_row: Optional[Dict[str, Any]]) -> PatientDetailResponse:
    return PatientDetailResponse(
        **record.model_dump(),
        age=record.age(),
        barangay=_barangay_info(barangay_row),
    )


@router.post("/", response_model=PatientDetailResponse, status_code=status.HTTP_201_CREATED)
def create_patient(
    patient_in: Dict[str, Any] = Body(..., description="Intake form fields"),
    records: ScopedRecords = Depends(get_records),
    ctx: SessionContext = Depends(get_current_session),
):
    """Register a client from a complete intake form (single insert)."""
    _require_patient_access(ctx, PERM_REGISTER_PATIENTS)
    record = records.create_patient(ctx.scope, patient_in)
    (pair,) = records.with_barangays(ctx.scope, [record])
    return _detail(*pair)


@router.get("/", response_model=List[PatientSummaryResponse])
def list_patients(
    search: Optional[str] = Query(None, description="Match against client name or address"),
    records: ScopedRecords = Depends(get_records),
    ctx: SessionContext = Depends(get_current_session),
):
    """Newest registrations first, limited to the actor's barangay unless admin."""
    _require_patient_access(ctx)
    found = records.list_patients(ctx.scope, search=search, limit=settings.SEARCH_RESULT_LIMIT)
    return [
        PatientSummaryResponse(
            id=r.id,
            client_name=r.client_name,
            client_address=r.client_address,
            date_of_birth=r.date_of_birth,
            age=r.age(),
            civil_status=r.civil_status,
            created_at=r.created_at,
            barangay=_barangay_info(b),
        )
        for r, b in records.with_barangays(ctx.scope, found)
    ]


@router.get("/{patient_id}", response_model=PatientDetailResponse)
def get_patient(
    patient_id: str,
    records: ScopedRecords = Depends(get_records),
    ctx: SessionContext = Depends(get_current_session),
):
    _require_patient_access(ctx)
    record = records.get_patient(ctx.scope, patient_id)
    (pair,) = records.with_barangays(ctx.scope, [record])
    return _detail(*pair)
