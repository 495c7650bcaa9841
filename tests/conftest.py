"""Pytest configuration for all tests."""

import copy
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

import pytest

from models.session import Session
from services.backend import Backend, encode_row, encode_value
from services.events import EventBus
from services.exceptions import ConstraintViolation, NotAuthenticated


TABLE_DEFAULTS = {
    "invitations": {"status": "pending", "inviter_name": None, "invitee_name": None,
                    "custom_message": None, "accepted_at": None},
    "user_connections": {"status": "pending"},
    "affirmations": {"status": "pending", "is_favorite": False, "recipient_id": None,
                     "recipient_email": None},
    "persons": {"user_id": None, "email": None, "avatar": None},
    "user_profiles": {"email": None, "full_name": None, "photo_url": None},
}

UNIQUE_KEYS = {
    "user_connections": ("user_id", "connected_user_id"),
}


class _Fault:
    def __init__(self, operation, target, error, when, times):
        self.operation = operation
        self.target = target
        self.error = error
        self.when = when
        self.times = times


class FakeBackend(Backend):
    """In-memory stand-in for the Supabase gateway used by the service tests."""

    def __init__(self, session: Optional[Session] = None):
        self.supabase = None
        self.session = session
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.calls: List[tuple] = []
        self.users: Dict[str, Dict[str, Any]] = {}
        self.uploads: Dict[str, bytes] = {}
        self._faults: List[_Fault] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # Test helpers

    def fail(self, operation: str, target: str, error: Exception,
             when: Optional[Callable[[dict], bool]] = None, times: Optional[int] = None):
        self._faults.append(_Fault(operation, target, error, when, times))

    def seed(self, table: str, **row) -> Dict[str, Any]:
        return self._insert(table, row)

    def rows(self, table: str, **filters) -> List[Dict[str, Any]]:
        return [copy.deepcopy(r) for r in self.tables[table] if self._matches(r, filters, None)]

    def register_user(self, email: str, password: str = "secret") -> Session:
        user_id = uuid4()
        self.users[email] = {"id": user_id, "password": password}
        return Session(user_id=user_id, email=email, access_token=f"token-{user_id}")

    # Gateway

    def query_rows(self, table, filters=None, either=None, order_by=None, descending=True, limit=None):
        self._record("query_rows", table, filters=filters, either=either)
        rows = [r for r in self.tables[table] if self._matches(r, filters, either)]
        if order_by:
            rows.sort(key=lambda r: r.get(order_by) or "", reverse=descending)
        if limit:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    def insert_rows(self, table, rows):
        self._record("insert_rows", table, rows=rows)
        return [copy.deepcopy(self._insert(table, row)) for row in rows]

    def update_rows(self, table, filters, patch, either=None):
        self._record("update_rows", table, filters=filters, either=either)
        self._require_filter(table, filters, either)
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters, either):
                row.update(encode_row(patch))
                updated.append(copy.deepcopy(row))
        return updated

    def delete_rows(self, table, filters=None, either=None):
        self._record("delete_rows", table, filters=filters, either=either)
        self._require_filter(table, filters, either)
        removed = [r for r in self.tables[table] if self._matches(r, filters, either)]
        self.tables[table] = [r for r in self.tables[table] if not self._matches(r, filters, either)]
        return copy.deepcopy(removed)

    def call_remote_procedure(self, name, args):
        self._record("call_remote_procedure", name, **args)
        args = encode_row(args)
        a, b = args.get("p_user_id"), args.get("p_connected_user_id")
        edges = [{"user_id": a, "connected_user_id": b}, {"user_id": b, "connected_user_id": a}]

        if name == "create_bidirectional_connection":
            for edge in edges:
                existing = self._find("user_connections", edge)
                if existing and existing["status"] == "blocked":
                    continue
                if existing:
                    existing.update({"status": args["p_status"], "updated_at": self._tick()})
                else:
                    self._insert("user_connections", {**edge, "status": args["p_status"]})
            return None
        if name == "accept_bidirectional_connection":
            for row in self.tables["user_connections"]:
                if self._matches(row, None, edges) and row["status"] != "blocked":
                    row.update({"status": "accepted", "updated_at": self._tick()})
            return None
        raise AssertionError(f"unknown procedure {name}")

    def sign_up(self, email, password, metadata=None):
        if email in self.users:
            raise ConstraintViolation("User already registered")
        self.session = self.register_user(email, password)
        return self.session

    def sign_in_with_password(self, email, password):
        user = self.users.get(email)
        if not user or user["password"] != password:
            raise NotAuthenticated("Invalid credentials")
        self.session = Session(user_id=user["id"], email=email, access_token=f"token-{user['id']}")
        return self.session

    def sign_out(self):
        self.session = None

    def upload_file(self, bucket, path, content, content_type):
        self.uploads[f"{bucket}/{path}"] = content
        return f"https://storage.test/{bucket}/{path}"

    # Internals

    def _record(self, operation, target, **context):
        self.calls.append((operation, target, context))
        for fault in list(self._faults):
            if fault.operation != operation or fault.target != target:
                continue
            if fault.when is not None and not fault.when(context):
                continue
            if fault.times is not None:
                fault.times -= 1
                if fault.times <= 0:
                    self._faults.remove(fault)
            raise fault.error

    def _tick(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def _insert(self, table, row):
        now = self._tick()
        stored = {**TABLE_DEFAULTS.get(table, {}), "id": str(uuid4()), "created_at": now, "updated_at": now}
        stored.update(encode_row(row))

        key = UNIQUE_KEYS.get(table)
        if key and any(all(r.get(k) == stored.get(k) for k in key) for r in self.tables[table]):
            raise ConstraintViolation(f"duplicate key value violates unique constraint on {table}")

        self.tables[table].append(stored)
        return stored

    def _find(self, table, filters):
        return next((r for r in self.tables[table] if self._matches(r, filters, None)), None)

    @staticmethod
    def _matches(row, filters, either):
        def group_matches(group):
            return all(row.get(column) == encode_value(value) for column, value in group.items())

        if filters and not group_matches(filters):
            return False
        if either and not any(group_matches(group) for group in either):
            return False
        return True


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def alice(backend):
    return backend.register_user("a@x.com")


@pytest.fixture
def bob(backend):
    return backend.register_user("b@x.com")


@pytest.fixture
def carol(backend):
    return backend.register_user("c@x.com")
