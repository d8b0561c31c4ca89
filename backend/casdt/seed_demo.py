"""
Demo data seeder for the CASDT registry.

Creates a demo barangay, a regional admin and a barangay health worker with
known credentials, plus one registered client so the dashboard and the
records list have something to show right after a fresh start.

Credentials (logged on first run):
  Admin   : admin@casdt.demo    / Admin1234!
  Barangay: barangay@casdt.demo / Demo1234!

This seeder is idempotent and safe to call on every startup.
"""
import logging
from datetime import date

from .core.security import get_password_hash
from .models.barangay import Barangay
from .models.base import Base, SessionLocal, engine, generate_uuid, utcnow
from .models.patient import Patient
from .models.user import Credential, User, UserRole
from .services.patient_record import PatientDraft, validate_record

logger = logging.getLogger(__name__)

DEMO_BARANGAY_NAME = "Poblacion"
DEMO_MUNICIPALITY = "Cotabato City"
DEMO_PROVINCE = "Maguindanao del Norte"

DEMO_ADMIN_EMAIL = "admin@casdt.demo"
DEMO_ADMIN_PASSWORD = "Admin1234!"

DEMO_BARANGAY_EMAIL = "barangay@casdt.demo"
DEMO_BARANGAY_PASSWORD = "Demo1234!"

DEMO_PATIENT_NAME = "Amina Demo"


def seed_demo_data() -> None:
    """Create the demo barangay, accounts and client if they do not already exist."""
    # Ensure tables exist (no-op when already created by main.py)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        barangay = _seed_barangay(db)
        _seed_account(db, DEMO_ADMIN_EMAIL, DEMO_ADMIN_PASSWORD, "Demo Admin", UserRole.ADMIN, None)
        health_worker = _seed_account(
            db, DEMO_BARANGAY_EMAIL, DEMO_BARANGAY_PASSWORD,
            "Demo Barangay Health Worker", UserRole.BARANGAY, barangay.id,
        )
        _seed_patient(db, barangay.id, health_worker.id)
    finally:
        db.close()


# ── helpers ──────────────────────────────────────────────────────────────────

def _seed_barangay(db) -> Barangay:
    barangay = db.query(Barangay).filter(Barangay.name == DEMO_BARANGAY_NAME).first()
    if not barangay:
        barangay = Barangay(
            id=generate_uuid(),
            name=DEMO_BARANGAY_NAME,
            municipality=DEMO_MUNICIPALITY,
            province=DEMO_PROVINCE,
        )
        db.add(barangay)
        db.commit()
        db.refresh(barangay)
        logger.info("[seed] Created demo barangay: %s, %s", barangay.name, barangay.municipality)
    return barangay


def _seed_account(db, email, password, full_name, role, barangay_id) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user

    credential = db.query(Credential).filter(Credential.email == email).first()
    if not credential:
        credential = Credential(id=generate_uuid(), email=email, hashed_password=get_password_hash(password))
        db.add(credential)

    user = User(
        id=credential.id,
        email=email,
        full_name=full_name,
        role=role,
        barangay_id=barangay_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("[seed] Created demo %s: %s / %s", role, email, password)
    return user


def _seed_patient(db, barangay_id: str, created_by: str) -> None:
    existing = db.query(Patient).filter(Patient.client_name == DEMO_PATIENT_NAME).first()
    if existing:
        return

    draft = PatientDraft({
        "barangay_id": barangay_id,
        "client_name": DEMO_PATIENT_NAME,
        "client_address": "Purok 3, Poblacion, Cotabato City",
        "date_of_birth": date(1984, 3, 12),
        "civil_status": "Married",
        "number_of_children": 3,
        "gravida": 3,
        "parity": 3,
        "full_term": 3,
        "living_children": 3,
        "contraceptives_use": True,
        "contraceptives_duration_years": 2,
        "height": 155,
        "weight": 58,
        "blood_pressure": "120/80",
        "via_findings_negative": True,
        "current_via_result": "Negative",
        "current_cbe_result": "Normal",
    })
    record = validate_record(draft)
    now = utcnow()
    record.id = generate_uuid()
    record.created_by = created_by
    record.created_at = now
    record.updated_at = now

    db.add(Patient(**record.to_row()))
    db.commit()
    logger.info("[seed] Created demo client: %s (BMI %.1f)", record.client_name, record.bmi)
