"""
Patient intake record: field set, derived fields and consistency rules.

The record is a fixed, typed shape. Conditional detail fields only carry a
value while the flag that gates them is true; the canonical write path
(``PatientDraft`` -> ``validate_record``) also self-corrects the VIA
positive/negative pair and recomputes BMI from height and weight.
"""
import logging
import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    NonNegativeFloat,
    NonNegativeInt,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from ..core.errors import ValidationFailure

logger = logging.getLogger(__name__)

# Flag -> detail fields that are meaningful only while the flag is true
CONDITIONAL_FIELDS: Dict[str, Tuple[str, ...]] = {
    "contraceptives_use": ("contraceptives_duration_years", "contraceptives_duration_months"),
    "previous_cervical_screening": ("via_result", "pap_smear_result", "hpv_dna_result"),
    "previous_breast_screening": ("cbe_result", "mammography_result", "breast_ultrasound_result"),
    "sti_history_client": ("sti_history_client_details",),
    "sti_history_partner": ("sti_history_partner_details",),
    "family_history_cancer": ("family_history_details",),
    "smoking": ("smoking_year_started", "cigarettes_per_day"),
    "current_medication": ("current_medication_details",),
    "allergies": ("allergies_details",),
    "abdominal_surgery": ("abdominal_surgery_details",),
    "referral_needed": ("referral_details",),
}

VIA_EXCLUSIVE_PAIR = ("via_findings_positive", "via_findings_negative")

REQUIRED_FIELDS = ("client_name", "client_address", "date_of_birth")

# Stamped by the write path, never accepted from the intake form
SYSTEM_FIELDS = ("id", "created_by", "created_at", "updated_at")
DERIVED_FIELDS = ("bmi",)

_BOOL = TypeAdapter(bool)


def derive_age(date_of_birth: date, as_of: Optional[date] = None) -> int:
    """Whole years between birth and ``as_of`` (today by default)."""
    as_of = as_of or date.today()
    if isinstance(as_of, datetime):
        as_of = as_of.date()
    age = as_of.year - date_of_birth.year
    if (as_of.month, as_of.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def compute_bmi(height_cm: float, weight_kg: float) -> float:
    """BMI rounded half-up to one decimal; 0 unless both inputs are positive."""
    if not height_cm or not weight_kg or height_cm <= 0 or weight_kg <= 0:
        return 0.0
    height_m = height_cm / 100
    bmi = weight_kg / (height_m * height_m)
    return math.floor(bmi * 10 + 0.5) / 10


class PatientRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Ownership
    id: Optional[str] = None
    barangay_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # I. Client information
    client_name: str
    client_address: str
    date_of_birth: date
    number_of_children: NonNegativeInt = 0
    civil_status: str = ""

    # II.A.1 Menstrual history
    first_menstrual_period: Optional[date] = None
    last_menstrual_period: Optional[date] = None
    age_of_gestation: NonNegativeInt = 0
    menstrual_pattern: str = ""
    pads_per_day: NonNegativeInt = 0

    # II.A.2 Pregnancy history
    gravida: NonNegativeInt = 0
    parity: NonNegativeInt = 0
    full_term: NonNegativeInt = 0
    pre_term: NonNegativeInt = 0
    abortion: NonNegativeInt = 0
    living_children: NonNegativeInt = 0
    age_first_pregnancy: NonNegativeInt = 0

    # II.A.3 Contraceptives
    contraceptives_use: bool = False
    contraceptives_duration_years: Optional[NonNegativeInt] = None
    contraceptives_duration_months: Optional[NonNegativeInt] = None

    # II.A.4 Previous screening
    previous_cervical_screening: bool = False
    via_result: Optional[str] = None
    pap_smear_result: Optional[str] = None
    hpv_dna_result: Optional[str] = None
    previous_breast_screening: bool = False
    cbe_result: Optional[str] = None
    mammography_result: Optional[str] = None
    breast_ultrasound_result: Optional[str] = None

    # II.A.5 Symptoms
    abnormal_vaginal_discharge: bool = False
    abnormal_vaginal_bleeding: bool = False

    # II.B Sexual history
    age_first_intercourse: NonNegativeInt = 0
    number_sexual_partners: NonNegativeInt = 0
    partner_circumcised: bool = False
    sti_history_client: bool = False
    sti_history_client_details: Optional[str] = None
    sti_history_partner: bool = False
    sti_history_partner_details: Optional[str] = None

    # II.C Family and social history
    family_history_cancer: bool = False
    family_history_details: Optional[str] = None
    smoking: bool = False
    smoking_year_started: Optional[NonNegativeInt] = None
    cigarettes_per_day: Optional[NonNegativeInt] = None

    # II.D Medical history
    current_medication: bool = False
    current_medication_details: Optional[str] = None
    allergies: bool = False
    allergies_details: Optional[str] = None
    abdominal_surgery: bool = False
    abdominal_surgery_details: Optional[str] = None

    # III. Vital signs
    blood_pressure: str = ""
    temperature: NonNegativeFloat = 0
    heart_rate: NonNegativeInt = 0
    respiratory_rate: NonNegativeInt = 0

    # Anthropometrics
    height: NonNegativeFloat = 0
    weight: NonNegativeFloat = 0
    bmi: float = 0

    # Skin
    skin_pallor: bool = False
    skin_rashes: bool = False
    skin_jaundice: bool = False

    # HEENT
    anicteric_sclerae: bool = False
    aural_discharge: bool = False
    nasal_discharge: bool = False
    neck_findings: str = ""

    # Chest and lungs
    clear_breath_sounds: bool = False
    crackles_rales: bool = False
    wheezes: bool = False

    # Heart
    normal_heart_rate: bool = False
    regular_rhythm: bool = False
    murmur: bool = False

    # Abdomen
    abdominal_scars: bool = False
    stretch_marks: bool = False
    abdominal_mass: bool = False
    enlarged_liver: bool = False
    abdominal_tenderness: bool = False
    fluid_wave: bool = False

    # Breast examination
    breast_mass: bool = False
    nipple_discharge: bool = False
    skin_orange_peel: bool = False
    enlarged_lymph_nodes: bool = False
    breast_findings_right: str = ""
    breast_findings_left: str = ""

    # Pelvic examination
    vulva_inflammation: bool = False
    vulva_tenderness: bool = False
    vulva_ulcers: bool = False
    vulva_warts: bool = False
    vulva_cyst: bool = False
    vulva_skin_tags: bool = False
    vulva_other_mass: str = ""
    bartholin_swelling: bool = False
    bartholin_tenderness: bool = False
    bartholin_discharge: bool = False
    vaginal_cervical_lesion: bool = False
    vaginal_tears: bool = False
    vaginal_ulcers: bool = False
    vaginal_other_abnormalities: str = ""
    uterus_size_shape_position: str = ""
    cervical_motion_tenderness: bool = False
    adnexal_masses: bool = False
    rectovaginal_findings: str = ""

    # VI. VIA findings
    via_findings_positive: bool = False
    via_findings_negative: bool = False
    via_scj_outline: str = ""
    via_white_epithelium: str = ""
    via_cervical_os: str = ""
    via_suspect_lesions: str = ""

    # Current screening results
    current_via_result: str = ""
    current_pap_smear_result: str = ""
    current_hpv_dna_result: str = ""
    current_cbe_result: str = ""

    # VII. Referral
    referral_needed: bool = False
    referral_details: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Hosted rows may carry NULL where the form stored an empty value.
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("client_name", "client_address")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def _gate_conditional_details(self) -> "PatientRecord":
        for flag, details in CONDITIONAL_FIELDS.items():
            if not getattr(self, flag):
                for name in details:
                    setattr(self, name, None)
        return self

    def details_for(self, flag: str) -> Dict[str, Any]:
        """Detail values gated by ``flag``; empty while the flag is false."""
        if flag not in CONDITIONAL_FIELDS:
            raise KeyError(flag)
        if not getattr(self, flag):
            return {}
        return {name: getattr(self, name) for name in CONDITIONAL_FIELDS[flag]}

    def age(self, as_of: Optional[date] = None) -> int:
        return derive_age(self.date_of_birth, as_of)

    def to_row(self, json_safe: bool = False) -> Dict[str, Any]:
        """
        Flatten into a store row. Gated-off details are written in their
        empty form, the way the intake form always submitted them.
        """
        row = self.model_dump(mode="json" if json_safe else "python", exclude_none=False)
        for flag, details in CONDITIONAL_FIELDS.items():
            for name in details:
                if row[name] is None:
                    row[name] = _empty_value(name)
        return {k: v for k, v in row.items() if not (k in SYSTEM_FIELDS and v is None)}


INTAKE_FIELDS = tuple(
    name for name in PatientRecord.model_fields
    if name not in SYSTEM_FIELDS and name not in DERIVED_FIELDS
)


def _empty_value(name: str) -> Union[str, int]:
    annotation = PatientRecord.model_fields[name].annotation
    return "" if annotation == Optional[str] else 0


class PatientDraft:
    """
    Intake form state prior to submission.

    Mirrors how the form is filled: every ``set`` is applied in order, so
    when both VIA findings are marked the last one wins, and BMI follows
    height and weight on every change.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = {"bmi": 0.0}
        self._unknown: List[str] = []
        for name, value in (values or {}).items():
            self.set(name, value)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "PatientDraft":
        return cls(values)

    def set(self, name: str, value: Any) -> "PatientDraft":
        if name in DERIVED_FIELDS or name in SYSTEM_FIELDS:
            logger.debug("Ignoring client-supplied %s on patient draft", name)
            return self
        if name not in INTAKE_FIELDS:
            self._unknown.append(name)
            return self

        if name in VIA_EXCLUSIVE_PAIR:
            # Form values such as 1 or "true" count as marked
            try:
                value = _BOOL.validate_python(value)
            except ValidationError:
                pass  # kept raw; validate_record reports it

        self._values[name] = value

        if name in VIA_EXCLUSIVE_PAIR and value is True:
            other = VIA_EXCLUSIVE_PAIR[1] if name == VIA_EXCLUSIVE_PAIR[0] else VIA_EXCLUSIVE_PAIR[0]
            self._values[other] = False

        if name in ("height", "weight"):
            self._values["bmi"] = compute_bmi(
                _as_number(self._values.get("height")),
                _as_number(self._values.get("weight")),
            )
        return self

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    @property
    def unknown_fields(self) -> List[str]:
        return list(self._unknown)

    def values(self) -> Dict[str, Any]:
        return dict(self._values)


def _as_number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def validate_record(draft: Union[PatientDraft, Mapping[str, Any]]) -> PatientRecord:
    """
    Validate an intake draft into a ``PatientRecord``.

    Raises ``ValidationFailure`` listing every failing field. Omitted
    optional clinical fields never fail; they take their empty form.
    """
    if not isinstance(draft, PatientDraft):
        draft = PatientDraft.from_mapping(draft)

    errors = [{"field": name, "message": "unknown field"} for name in draft.unknown_fields]
    try:
        record = PatientRecord.model_validate(draft.values())
    except ValidationError as exc:
        errors.extend(_translate_errors(exc.errors()))
        raise ValidationFailure(errors) from exc
    if errors:
        raise ValidationFailure(errors)
    return record


def _translate_errors(raw: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    out = []
    for err in raw:
        field = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        message = "is required" if err.get("type") == "missing" else err.get("msg", "invalid value")
        out.append({"field": field, "message": message})
    return out


def load_record(row: Mapping[str, Any]) -> PatientRecord:
    """Parse a stored row. Stored rows already passed the write path."""
    return PatientRecord.model_validate(row)
