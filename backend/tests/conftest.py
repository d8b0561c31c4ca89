"""Shared fixtures: an isolated in-memory registry database per test."""
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from casdt.core.scope import ActorScope
from casdt.models.base import Base
from casdt.models.user import UserRole
from casdt.services.record_store import BARANGAYS, SqlAuthProvider, SqlRecordStore
from casdt.services.scoped_query import ScopedRecords


@pytest.fixture()
def session_factory():
    """Provide an isolated in-memory SQLite database for each test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    yield factory
    test_engine.dispose()


@pytest.fixture()
def store(session_factory):
    return SqlRecordStore(session_factory)


@pytest.fixture()
def auth_provider(session_factory):
    return SqlAuthProvider(session_factory)


@pytest.fixture()
def records(store):
    return ScopedRecords(store)


@pytest.fixture()
def barangays(store):
    """Two barangays, keyed by a short name."""
    north = store.insert(BARANGAYS, {"name": "Rosary Heights", "municipality": "Cotabato City", "province": "Maguindanao"})
    south = store.insert(BARANGAYS, {"name": "Tamontaka", "municipality": "Cotabato City", "province": "Maguindanao"})
    return {"north": north["id"], "south": south["id"]}


@pytest.fixture()
def admin_scope():
    return ActorScope(actor_id="admin-1", role=UserRole.ADMIN, barangay_id=None, email="admin@example.org")


@pytest.fixture()
def north_scope(barangays):
    return ActorScope(actor_id="bhw-north", role=UserRole.BARANGAY, barangay_id=barangays["north"])


@pytest.fixture()
def south_scope(barangays):
    return ActorScope(actor_id="bhw-south", role=UserRole.BARANGAY, barangay_id=barangays["south"])


def intake(**overrides):
    """Minimal valid intake form, with overrides applied on top."""
    form = {
        "client_name": "Maria Santos",
        "client_address": "Purok 1, Rosary Heights",
        "date_of_birth": date(1985, 4, 20),
    }
    form.update(overrides)
    return form
