"""
Shared FastAPI dependencies: the configured record store wrapped for
scoped access, and the admin directory service.
"""
from fastapi import Depends

from ..services.directory import DirectoryService
from ..services.record_store import AuthProvider, RecordStore, get_auth_provider, get_store
from ..services.scoped_query import ScopedRecords


def get_records(store: RecordStore = Depends(get_store)) -> ScopedRecords:
    return ScopedRecords(store)


def get_directory(
    records: ScopedRecords = Depends(get_records),
    auth: AuthProvider = Depends(get_auth_provider),
) -> DirectoryService:
    return DirectoryService(records, auth)
