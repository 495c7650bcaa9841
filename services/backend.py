# services/backend.py
import os
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client, AuthApiError

from models.session import Session
from services.exceptions import (
    AuthorizationError,
    BackendError,
    BackendUnavailable,
    ConstraintViolation,
    NotAuthenticated,
    NotFound,
)

logger = logging.getLogger(__name__)

Filters = Dict[str, Any]

# PostgREST / Postgres error codes we translate into the service taxonomy
UNIQUE_VIOLATION = "23505"
INSUFFICIENT_PRIVILEGE = "42501"
NO_ROWS = "PGRST116"


def encode_value(value: Any) -> Any:
    """Convert a python value into what PostgREST expects on the wire"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def encode_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(value) for key, value in row.items()}


def _condition(column: str, value: Any) -> str:
    if value is None:
        return f"{column}.is.null"
    return f"{column}.eq.{encode_value(value)}"


def build_or_filter(either: List[Filters]) -> str:
    """
    Render OR-of-AND groups as a PostgREST or() expression.

    [{"a": 1, "b": 2}, {"a": 2, "b": 1}] -> "and(a.eq.1,b.eq.2),and(a.eq.2,b.eq.1)"
    """
    groups = []
    for group in either:
        conditions = [_condition(column, value) for column, value in group.items()]
        if len(conditions) == 1:
            groups.append(conditions[0])
        else:
            groups.append(f"and({','.join(conditions)})")
    return ",".join(groups)


class Backend:
    """
    Gateway to the hosted Supabase project.

    Every service reaches the database, the auth provider and the storage
    buckets through this class and nothing else.
    """

    def __init__(self, session: Optional[Session] = None, client: Optional[Client] = None):
        self.supabase = client or create_client(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_KEY")
        )
        self.session = session

    # Session

    def get_current_session(self) -> Optional[Session]:
        return self.session

    def require_session(self) -> Session:
        session = self.get_current_session()
        if session is None:
            raise NotAuthenticated()
        return session

    # Rows

    def query_rows(
        self,
        table: str,
        filters: Optional[Filters] = None,
        either: Optional[List[Filters]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        logger.debug(f"Querying {table} filters={filters} either={either}")
        query = self.supabase.table(table).select("*")
        query = self._apply_filters(query, filters, either)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)

        result = self._execute(query, f"query {table}")
        return result.data or []

    def insert_rows(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        logger.debug(f"Inserting {len(rows)} row(s) into {table}")
        query = self.supabase.table(table).insert([encode_row(row) for row in rows])

        result = self._execute(query, f"insert into {table}")
        return result.data or []

    def update_rows(
        self,
        table: str,
        filters: Optional[Filters],
        patch: Dict[str, Any],
        either: Optional[List[Filters]] = None
    ) -> List[Dict[str, Any]]:
        logger.debug(f"Updating {table} filters={filters} either={either} patch={patch}")
        self._require_filter(table, filters, either)
        query = self.supabase.table(table).update(encode_row(patch))
        query = self._apply_filters(query, filters, either)

        result = self._execute(query, f"update {table}")
        return result.data or []

    def delete_rows(
        self,
        table: str,
        filters: Optional[Filters] = None,
        either: Optional[List[Filters]] = None
    ) -> List[Dict[str, Any]]:
        logger.debug(f"Deleting from {table} filters={filters} either={either}")
        self._require_filter(table, filters, either)
        query = self.supabase.table(table).delete()
        query = self._apply_filters(query, filters, either)

        result = self._execute(query, f"delete from {table}")
        return result.data or []

    def call_remote_procedure(self, name: str, args: Dict[str, Any]) -> Any:
        logger.debug(f"Calling remote procedure {name}")
        query = self.supabase.rpc(name, encode_row(args))

        result = self._execute(query, f"rpc {name}")
        return result.data

    # Auth

    def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> Optional[Session]:
        """Register an account. Returns a session unless email confirmation is pending."""
        try:
            response = self.supabase.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata or {}}
            })
        except AuthApiError as e:
            logger.error(f"Sign up failed for {email}: {str(e)}")
            raise ConstraintViolation(str(e))
        except httpx.HTTPError as e:
            logger.error(f"Auth provider unreachable: {str(e)}")
            raise BackendUnavailable(str(e))

        if not response.user or not response.session:
            return None

        self.session = Session(
            user_id=response.user.id,
            email=response.user.email,
            access_token=response.session.access_token
        )
        return self.session

    def sign_in_with_password(self, email: str, password: str) -> Session:
        try:
            response = self.supabase.auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except AuthApiError as e:
            logger.error(f"Login error for {email}: {str(e)}")
            raise NotAuthenticated("Invalid credentials")
        except httpx.HTTPError as e:
            logger.error(f"Auth provider unreachable: {str(e)}")
            raise BackendUnavailable(str(e))

        if not response.user or not response.session:
            raise NotAuthenticated("Invalid credentials")

        self.session = Session(
            user_id=response.user.id,
            email=response.user.email,
            access_token=response.session.access_token
        )
        return self.session

    def sign_out(self) -> None:
        """Revoke the bound session's access token, then forget the session"""
        try:
            if self.session and self.session.access_token:
                # per-request clients hold no auth state
                self.supabase.auth.admin.sign_out(self.session.access_token)
            else:
                self.supabase.auth.sign_out()
        except (AuthApiError, httpx.HTTPError) as e:
            # the local session is dropped either way
            logger.error(f"Sign out error: {str(e)}")
        self.session = None

    # Storage

    def upload_file(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        logger.debug(f"Uploading {path} to bucket {bucket}")
        storage = self.supabase.storage.from_(bucket)
        try:
            storage.upload(path, content, {"content-type": content_type})
        except httpx.HTTPError as e:
            logger.error(f"Storage unreachable: {str(e)}")
            raise BackendUnavailable(str(e))
        except Exception as e:
            logger.error(f"Error uploading {path}: {str(e)}")
            raise BackendError(f"Failed to upload file: {str(e)}")
        return storage.get_public_url(path)

    # Helpers

    def _apply_filters(self, query, filters: Optional[Filters], either: Optional[List[Filters]]):
        for column, value in (filters or {}).items():
            if value is None:
                query = query.is_(column, "null")
            else:
                query = query.eq(column, encode_value(value))
        if either:
            query = query.or_(build_or_filter(either))
        return query

    def _require_filter(self, table: str, filters: Optional[Filters], either: Optional[List[Filters]]):
        if not filters and not either:
            raise ValueError(f"Refusing unfiltered write on {table}")

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except APIError as e:
            logger.error(f"Backend error during {action}: {e.code} {e.message}")
            raise self._translate(e)
        except httpx.HTTPError as e:
            logger.error(f"Backend unavailable during {action}: {str(e)}")
            raise BackendUnavailable(f"Backend unavailable during {action}")

    @staticmethod
    def _translate(error: APIError) -> BackendError:
        if error.code == UNIQUE_VIOLATION:
            return ConstraintViolation(error.message)
        if error.code == NO_ROWS:
            return NotFound(error.message)
        if error.code == INSUFFICIENT_PRIVILEGE:
            return AuthorizationError(error.message)
        return BackendError(error.message)
