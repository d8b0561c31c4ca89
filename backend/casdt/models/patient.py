from sqlalchemy import Column, String, Date, Text, Boolean, Integer, Float, ForeignKey
from .base import Base, TimestampMixin, generate_uuid


class Patient(Base, TimestampMixin):
    """One CASDT intake record per registered client."""

    __tablename__ = "patients"

    id = Column(String, primary_key=True, default=generate_uuid)
    barangay_id = Column(String, ForeignKey("barangays.id"), nullable=False, index=True)
    created_by = Column(String, nullable=False)

    # I. Client information
    client_name = Column(String(200), nullable=False, index=True)
    client_address = Column(Text, nullable=False)
    date_of_birth = Column(Date, nullable=False)
    number_of_children = Column(Integer, default=0)
    civil_status = Column(String(50), default="")

    # II.A.1 Menstrual history
    first_menstrual_period = Column(Date, nullable=True)
    last_menstrual_period = Column(Date, nullable=True)
    age_of_gestation = Column(Integer, default=0)
    menstrual_pattern = Column(String(100), default="")
    pads_per_day = Column(Integer, default=0)

    # II.A.2 Pregnancy history
    gravida = Column(Integer, default=0)
    parity = Column(Integer, default=0)
    full_term = Column(Integer, default=0)
    pre_term = Column(Integer, default=0)
    abortion = Column(Integer, default=0)
    living_children = Column(Integer, default=0)
    age_first_pregnancy = Column(Integer, default=0)

    # II.A.3 Contraceptives
    contraceptives_use = Column(Boolean, default=False)
    contraceptives_duration_years = Column(Integer, default=0)
    contraceptives_duration_months = Column(Integer, default=0)

    # II.A.4 Previous screening
    previous_cervical_screening = Column(Boolean, default=False)
    via_result = Column(String(200), default="")
    pap_smear_result = Column(String(200), default="")
    hpv_dna_result = Column(String(200), default="")
    previous_breast_screening = Column(Boolean, default=False)
    cbe_result = Column(String(200), default="")
    mammography_result = Column(String(200), default="")
    breast_ultrasound_result = Column(String(200), default="")

    # II.A.5 Symptoms
    abnormal_vaginal_discharge = Column(Boolean, default=False)
    abnormal_vaginal_bleeding = Column(Boolean, default=False)

    # II.B Sexual history
    age_first_intercourse = Column(Integer, default=0)
    number_sexual_partners = Column(Integer, default=0)
    partner_circumcised = Column(Boolean, default=False)
    sti_history_client = Column(Boolean, default=False)
    sti_history_client_details = Column(Text, default="")
    sti_history_partner = Column(Boolean, default=False)
    sti_history_partner_details = Column(Text, default="")

    # II.C Family and social history
    family_history_cancer = Column(Boolean, default=False)
    family_history_details = Column(Text, default="")
    smoking = Column(Boolean, default=False)
    smoking_year_started = Column(Integer, default=0)
    cigarettes_per_day = Column(Integer, default=0)

    # II.D Medical history
    current_medication = Column(Boolean, default=False)
    current_medication_details = Column(Text, default="")
    allergies = Column(Boolean, default=False)
    allergies_details = Column(Text, default="")
    abdominal_surgery = Column(Boolean, default=False)
    abdominal_surgery_details = Column(Text, default="")

    # III. Physical examination - vital signs
    blood_pressure = Column(String(20), default="")
    temperature = Column(Float, default=0)
    heart_rate = Column(Integer, default=0)
    respiratory_rate = Column(Integer, default=0)

    # Anthropometrics (bmi is derived, never accepted from clients)
    height = Column(Float, default=0)  # cm
    weight = Column(Float, default=0)  # kg
    bmi = Column(Float, default=0)

    # Skin
    skin_pallor = Column(Boolean, default=False)
    skin_rashes = Column(Boolean, default=False)
    skin_jaundice = Column(Boolean, default=False)

    # HEENT
    anicteric_sclerae = Column(Boolean, default=False)
    aural_discharge = Column(Boolean, default=False)
    nasal_discharge = Column(Boolean, default=False)
    neck_findings = Column(Text, default="")

    # Chest and lungs
    clear_breath_sounds = Column(Boolean, default=False)
    crackles_rales = Column(Boolean, default=False)
    wheezes = Column(Boolean, default=False)

    # Heart
    normal_heart_rate = Column(Boolean, default=False)
    regular_rhythm = Column(Boolean, default=False)
    murmur = Column(Boolean, default=False)

    # Abdomen
    abdominal_scars = Column(Boolean, default=False)
    stretch_marks = Column(Boolean, default=False)
    abdominal_mass = Column(Boolean, default=False)
    enlarged_liver = Column(Boolean, default=False)
    abdominal_tenderness = Column(Boolean, default=False)
    fluid_wave = Column(Boolean, default=False)

    # Breast examination
    breast_mass = Column(Boolean, default=False)
    nipple_discharge = Column(Boolean, default=False)
    skin_orange_peel = Column(Boolean, default=False)
    enlarged_lymph_nodes = Column(Boolean, default=False)
    breast_findings_right = Column(Text, default="")
    breast_findings_left = Column(Text, default="")

    # Pelvic examination
    vulva_inflammation = Column(Boolean, default=False)
    vulva_tenderness = Column(Boolean, default=False)
    vulva_ulcers = Column(Boolean, default=False)
    vulva_warts = Column(Boolean, default=False)
    vulva_cyst = Column(Boolean, default=False)
    vulva_skin_tags = Column(Boolean, default=False)
    vulva_other_mass = Column(Text, default="")
    bartholin_swelling = Column(Boolean, default=False)
    bartholin_tenderness = Column(Boolean, default=False)
    bartholin_discharge = Column(Boolean, default=False)
    vaginal_cervical_lesion = Column(Boolean, default=False)
    vaginal_tears = Column(Boolean, default=False)
    vaginal_ulcers = Column(Boolean, default=False)
    vaginal_other_abnormalities = Column(Text, default="")
    uterus_size_shape_position = Column(Text, default="")
    cervical_motion_tenderness = Column(Boolean, default=False)
    adnexal_masses = Column(Boolean, default=False)
    rectovaginal_findings = Column(Text, default="")

    # VI. Screening results - VIA
    via_findings_positive = Column(Boolean, default=False)
    via_findings_negative = Column(Boolean, default=False)
    via_scj_outline = Column(String(200), default="")
    via_white_epithelium = Column(String(200), default="")
    via_cervical_os = Column(String(200), default="")
    via_suspect_lesions = Column(String(200), default="")

    # Current screening results
    current_via_result = Column(String(200), default="")
    current_pap_smear_result = Column(String(200), default="")
    current_hpv_dna_result = Column(String(200), default="")
    current_cbe_result = Column(String(200), default="")

    # VII. Referral
    referral_needed = Column(Boolean, default=False)
    referral_details = Column(Text, default="")
