"""
Screening analytics - dashboard counts, age bands, positive findings and
the monthly registration trend.

All figures are computed from a record set that has already been scoped to
the actor; nothing here filters by barangay again.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from ..core.config import settings
from ..core.errors import ValidationFailure
from ..core.scope import ActorScope
from .patient_record import PatientRecord, derive_age
from .scoped_query import ScopedRecords

AGE_GROUPS: Tuple[str, ...] = ("15-29", "30-49", "50-60", "60+")
ALL_AGES = "all"

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def age_group(age: int) -> Optional[str]:
    """Band for an age; None below 15. 60 itself belongs to 50-60."""
    if age < 15:
        return None
    if age <= 29:
        return "15-29"
    if age <= 49:
        return "30-49"
    if age <= 60:
        return "50-60"
    return "60+"


@dataclass
class ScreeningCounts:
    via: int = 0
    pap_smear: int = 0
    hpv_dna: int = 0
    cbe: int = 0


@dataclass
class PositiveFindings:
    via: int = 0
    cervical_lesions: int = 0
    breast_mass: int = 0
    family_history: int = 0


@dataclass
class MonthlyCount:
    month: str   # e.g. "Oct 26"
    count: int


@dataclass
class Statistics:
    total_patients: int
    total_barangays: int
    screenings_by_type: ScreeningCounts
    age_group_breakdown: Dict[str, int]
    positive_findings: PositiveFindings
    referrals: int
    monthly_registrations: List[MonthlyCount] = field(default_factory=list)


@dataclass
class DashboardStats:
    age_group: str
    total_patients: int
    screenings: ScreeningCounts


def screened_via(r: PatientRecord) -> bool:
    return bool(r.current_via_result or r.via_findings_positive or r.via_findings_negative or r.via_result)


def screened_pap_smear(r: PatientRecord) -> bool:
    return bool(r.current_pap_smear_result or r.pap_smear_result)


def screened_hpv_dna(r: PatientRecord) -> bool:
    return bool(r.current_hpv_dna_result or r.hpv_dna_result)


def screened_cbe(r: PatientRecord) -> bool:
    return bool(r.current_cbe_result or r.cbe_result)


def _shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBR[month - 1]} {year % 100:02d}"


class AnalyticsService:
    """
    Reduces a scoped record set into display statistics.
    Pure: the same records and reference date always give the same figures.
    """

    def __init__(self, trend_months: int = 6, tz: str = "UTC"):
        self.trend_months = trend_months
        self.tz = ZoneInfo(tz)

    def local_date(self, stamp: datetime) -> date:
        """Calendar date of a stored (naive UTC) timestamp in the reporting zone."""
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        return stamp.astimezone(self.tz).date()

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def _as_date(self, value: Optional[date]) -> date:
        if value is None:
            return self.today()
        if isinstance(value, datetime):
            return self.local_date(value)
        return value

    def screening_counts(self, records: Iterable[PatientRecord]) -> ScreeningCounts:
        counts = ScreeningCounts()
        for r in records:
            counts.via += screened_via(r)
            counts.pap_smear += screened_pap_smear(r)
            counts.hpv_dna += screened_hpv_dna(r)
            counts.cbe += screened_cbe(r)
        return counts

    def age_group_breakdown(self, records: Iterable[PatientRecord], as_of: date) -> Dict[str, int]:
        breakdown = {group: 0 for group in AGE_GROUPS}
        for r in records:
            group = age_group(derive_age(r.date_of_birth, as_of))
            if group is not None:
                breakdown[group] += 1
        return breakdown

    def positive_findings(self, records: Iterable[PatientRecord]) -> PositiveFindings:
        findings = PositiveFindings()
        for r in records:
            findings.via += r.via_findings_positive
            findings.cervical_lesions += r.vaginal_cervical_lesion
            findings.breast_mass += r.breast_mass
            findings.family_history += r.family_history_cancer
        return findings

    def monthly_registrations(
        self,
        records: Iterable[PatientRecord],
        as_of: date,
        months: Optional[int] = None,
    ) -> List[MonthlyCount]:
        """Registrations per calendar month, oldest first, ending with ``as_of``'s month."""
        months = months or self.trend_months
        window = [_shift_month(as_of.year, as_of.month, -i) for i in range(months - 1, -1, -1)]
        tally = {ym: 0 for ym in window}
        for r in records:
            if r.created_at is None:
                continue
            day = self.local_date(r.created_at)
            key = (day.year, day.month)
            if key in tally:
                tally[key] += 1
        return [MonthlyCount(month=month_label(y, m), count=tally[(y, m)]) for y, m in window]

    def aggregate(
        self,
        records: List[PatientRecord],
        total_barangays: int = 0,
        as_of: Optional[date] = None,
    ) -> Statistics:
        """
        Full analytics summary. ``total_barangays`` is supplied by the caller
        for admins only; barangay users always see 0.
        """
        as_of = self._as_date(as_of)
        return Statistics(
            total_patients=len(records),
            total_barangays=total_barangays,
            screenings_by_type=self.screening_counts(records),
            age_group_breakdown=self.age_group_breakdown(records, as_of),
            positive_findings=self.positive_findings(records),
            referrals=sum(1 for r in records if r.referral_needed),
            monthly_registrations=self.monthly_registrations(records, as_of),
        )

    def dashboard(
        self,
        records: List[PatientRecord],
        group: str = ALL_AGES,
        as_of: Optional[date] = None,
    ) -> DashboardStats:
        """Headline counts, optionally restricted to a single age band."""
        if group != ALL_AGES and group not in AGE_GROUPS:
            raise ValidationFailure.single("age_group", f"choose from: {', '.join((ALL_AGES,) + AGE_GROUPS)}")
        as_of = self._as_date(as_of)
        if group != ALL_AGES:
            records = [r for r in records if age_group(derive_age(r.date_of_birth, as_of)) == group]
        return DashboardStats(
            age_group=group,
            total_patients=len(records),
            screenings=self.screening_counts(records),
        )


analytics_service = AnalyticsService(trend_months=settings.TREND_MONTHS, tz=settings.REPORT_TIMEZONE)


def load_statistics(
    records: ScopedRecords,
    scope: ActorScope,
    as_of: Optional[date] = None,
    service: AnalyticsService = analytics_service,
) -> Statistics:
    """
    Fetch the actor's scoped inputs, then aggregate. A failed fetch raises
    before anything is computed, so callers never see partial figures.
    """
    patients = records.list_patients(scope)
    total_barangays = records.count_barangays(scope) if scope.is_admin else 0
    return service.aggregate(patients, total_barangays=total_barangays, as_of=as_of)
