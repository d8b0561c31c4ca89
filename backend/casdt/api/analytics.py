from dataclasses import asdict
from typing import Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..core.errors import AuthorizationDenied
from ..core.permissions import PERM_VIEW_ANALYTICS, has_permission
from ..core.security import get_current_session
from ..core.session import SessionContext
from ..services.analytics import ALL_AGES, analytics_service, load_statistics
from ..services.scoped_query import ScopedRecords
from .deps import get_records

router = APIRouter(prefix="/analytics", tags=["analytics"])


class ScreeningCountsResponse(BaseModel):
    via: int
    pap_smear: int
    hpv_dna: int
    cbe: int


class PositiveFindingsResponse(BaseModel):
    via: int
    cervical_lesions: int
    breast_mass: int
    family_history: int


class MonthlyCountResponse(BaseModel):
    month: str
    count: int


class DashboardResponse(BaseModel):
    age_group: str
    total_patients: int
    screenings: ScreeningCountsResponse


class AnalyticsResponse(BaseModel):
    total_patients: int
    total_barangays: int
    screenings_by_type: ScreeningCountsResponse
    age_group_breakdown: Dict[str, int]
    positive_findings: PositiveFindingsResponse
    referrals: int
    monthly_registrations: List[MonthlyCountResponse]


def _require_analytics_access(ctx: SessionContext):
    if not has_permission(ctx.scope.role, PERM_VIEW_ANALYTICS):
        raise AuthorizationDenied("Insufficient permissions to view analytics")


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    age_group: str = Query(ALL_AGES, description="all, 15-29, 30-49, 50-60 or 60+"),
    records: ScopedRecords = Depends(get_records),
    ctx: SessionContext = Depends(get_current_session),
):
    """Headline screening counts for the actor's scope (regional for admins)."""
    _require_analytics_access(ctx)
    patients = records.list_patients(ctx.scope)
    return asdict(analytics_service.dashboard(patients, group=age_group))


@router.get("/summary", response_model=AnalyticsResponse)
def get_summary(
    records: ScopedRecords = Depends(get_records),
    ctx: SessionContext = Depends(get_current_session),
):
    """
    Totals, screening counts, age bands, positive findings, referrals and
    the six-month registration trend. Barangay totals are admin-only.
    """
    _require_analytics_access(ctx)
    return asdict(load_statistics(records, ctx.scope))
