"""
Hosted record store / auth backed by Supabase.

Rows come back as plain JSON dicts; dates arrive as ISO strings and are
parsed by the patient record model.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Mapping

from supabase import Client, ClientOptions, create_client

from ..core.config import settings
from ..core.errors import AuthenticationFailure, StoreUnavailable
from .record_store import AuthProvider, RecordStore

logger = logging.getLogger(__name__)

# Status codes the auth API uses for rejected credentials
_AUTH_REJECTED = {400, 401, 403, 422}


def create_supabase_client(for_auth: bool = False) -> Client:
    """
    Client for table access, or (``for_auth``) a separate client for the
    auth endpoints. Signing in rewrites the Authorization header of the
    client it runs on, so table queries must never share that client.
    """
    if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set when STORE_BACKEND=supabase")
    if for_auth:
        options = ClientOptions(persist_session=False, auto_refresh_token=False)
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY, options=options)
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


def _json_safe(row: Mapping[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in row.items():
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        out[key] = value
    return out


class SupabaseRecordStore(RecordStore):
    def __init__(self, client: Client):
        self._client = client

    def _execute(self, builder, table: str):
        try:
            return builder.execute()
        except Exception as exc:
            logger.error("Supabase request on %s failed: %s", table, exc)
            raise StoreUnavailable("Record store is unavailable") from exc

    def query(self, table, filters=None, order_by=None, descending=False, limit=None):
        builder = self._client.table(table).select("*")
        for column, value in (filters or {}).items():
            builder = builder.eq(column, value)
        if order_by:
            builder = builder.order(order_by, desc=descending)
        if limit:
            builder = builder.limit(limit)
        return list(self._execute(builder, table).data or [])

    def get_by_id(self, table, row_id):
        builder = self._client.table(table).select("*").eq("id", row_id).limit(1)
        data = self._execute(builder, table).data or []
        return data[0] if data else None

    def insert(self, table, row):
        builder = self._client.table(table).insert(_json_safe(row))
        data = self._execute(builder, table).data or []
        if not data:
            raise StoreUnavailable(f"Insert into {table} returned no row")
        return data[0]

    def count(self, table):
        builder = self._client.table(table).select("id", count="exact")
        return int(self._execute(builder, table).count or 0)


class SupabaseAuthProvider(AuthProvider):
    def __init__(self, client: Client):
        self._client = client

    def _call(self, fn, **credentials):
        try:
            return fn(credentials)
        except Exception as exc:
            if getattr(exc, "status", None) in _AUTH_REJECTED:
                raise AuthenticationFailure(getattr(exc, "message", None) or "Incorrect email or password") from exc
            logger.error("Supabase auth request failed: %s", exc)
            raise StoreUnavailable("Authentication service is unavailable") from exc

    def authenticate(self, email, password):
        resp = self._call(self._client.auth.sign_in_with_password, email=email, password=password)
        if resp.user is None:
            raise AuthenticationFailure("Incorrect email or password")
        return resp.user.id

    def create_credential(self, email, password):
        resp = self._call(self._client.auth.sign_up, email=email, password=password)
        if resp.user is None:
            raise StoreUnavailable("Sign-up did not return an account")
        return resp.user.id
