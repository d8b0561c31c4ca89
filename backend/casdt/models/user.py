from sqlalchemy import Column, String, ForeignKey
from .base import Base, TimestampMixin, generate_uuid


class UserRole:
    ADMIN = "admin"
    BARANGAY = "barangay"  # area-user, bound to exactly one barangay

    ALL = [ADMIN, BARANGAY]


class Credential(Base, TimestampMixin):
    """Sign-in credential issued by the authentication collaborator."""

    __tablename__ = "credentials"

    id = Column(String, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)


class User(Base, TimestampMixin):
    """Directory profile; shares its id with the credential it was issued for."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.BARANGAY)
    barangay_id = Column(String, ForeignKey("barangays.id"), nullable=True, index=True)
