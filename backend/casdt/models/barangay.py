from sqlalchemy import Column, String
from .base import Base, TimestampMixin, generate_uuid


class Barangay(Base, TimestampMixin):
    """Organizational unit that patients and area-users are bound to."""

    __tablename__ = "barangays"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(200), nullable=False, index=True)
    municipality = Column(String(200), nullable=False)
    province = Column(String(200), nullable=False)
