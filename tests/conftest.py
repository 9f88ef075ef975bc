"""
In-memory stand-in for the Supabase client: enough of the postgrest request builder
for the services (select/insert/update/delete, comparison filters, order, limit, count)
plus "alias:table(...)" relation expansion through <alias>_id columns.
"""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone

import pytest
from postgrest.exceptions import APIError
from supabase import AuthApiError


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


def _split_top_level(spec: str) -> list[str]:
    parts, depth, current = [], 0, ""
    for ch in spec:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.orders = []
        self.max_rows = None
        self.count = None

    # --- request kinds ---
    def select(self, *columns, count=None):
        self.op = "select"
        self.columns = ", ".join(columns) or "*"
        self.count = count
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, changes):
        self.op = "update"
        self.payload = changes
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters ---
    def _add(self, col, test):
        self.filters.append((col, test))
        return self

    def eq(self, col, value):
        return self._add(col, lambda v: v == value)

    def neq(self, col, value):
        return self._add(col, lambda v: v != value)

    def lt(self, col, value):
        return self._add(col, lambda v: v is not None and v < value)

    def lte(self, col, value):
        return self._add(col, lambda v: v is not None and v <= value)

    def gt(self, col, value):
        return self._add(col, lambda v: v is not None and v > value)

    def gte(self, col, value):
        return self._add(col, lambda v: v is not None and v >= value)

    def in_(self, col, values):
        return self._add(col, lambda v: v in values)

    def order(self, col, desc=False):
        self.orders.append((col, desc))
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    # --- execution ---
    def _matches(self, row):
        return all(test(row.get(col)) for col, test in self.filters)

    def _expand(self, table, row, spec):
        out = dict(row)
        for part in _split_top_level(spec):
            if ":" not in part or "(" not in part:
                continue
            alias, rest = part.split(":", 1)
            target, inner = rest.split("(", 1)
            inner = inner[:-1]
            fk = row.get(f"{alias.strip()}_id")
            candidates = self.client.tables.get(target.strip(), []) if fk is not None else []
            related = next((r for r in candidates if r.get("id") == fk), None)
            out[alias.strip()] = self._expand(target.strip(), related, inner) if related else None
        return out

    def execute(self):
        self.client.log.append((self.op, self.table))
        failure = self.client.failures.get((self.op, self.table))
        if isinstance(failure, Exception):
            raise failure
        if failure:
            raise APIError({"message": failure, "code": "500", "hint": None, "details": None})

        rows = self.client.tables.setdefault(self.table, [])
        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in payload:
                row = {"id": str(uuid.uuid4()), "created_at": self.client.now().isoformat(), **copy.deepcopy(item)}
                rows.append(row)
                created.append(dict(row))
            return FakeResponse(created)

        matched = [r for r in rows if self._matches(r)]
        if self.op == "update":
            for r in matched:
                r.update(copy.deepcopy(self.payload))
            return FakeResponse([dict(r) for r in matched])
        if self.op == "delete":
            self.client.tables[self.table] = [r for r in rows if r not in matched]
            return FakeResponse([dict(r) for r in matched])

        for col, desc in reversed(self.orders):
            matched.sort(key=lambda r: (r.get(col) is None, r.get(col)), reverse=desc)
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        data = [self._expand(self.table, r, self.columns) for r in matched]
        return FakeResponse(data, count=len(data) if self.count else None)


class FakeAuthUser:
    def __init__(self, user_id, email):
        self.id = user_id
        self.email = email


class FakeAuth:
    def __init__(self):
        self.accounts = {}
        self.signed_out = False

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if not account or account["password"] != credentials["password"]:
            raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        return type("AuthResponse", (), {"user": FakeAuthUser(account["id"], credentials["email"])})()

    def sign_out(self):
        self.signed_out = True


class FakeClient:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.log: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], str | Exception] = {}
        self.auth = FakeAuth()
        self.clock = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)

    def now(self):
        return self.clock

    def table(self, name):
        return FakeQuery(self, name)

    def fail_on(self, op, table, message="backend unavailable"):
        # message may also be an exception instance, raised as-is
        self.failures[(op, table)] = message

    def seed(self, table, *rows):
        for row in rows:
            self.tables.setdefault(table, []).append(dict(row))

    def writes(self):
        return [entry for entry in self.log if entry[0] != "select"]


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def now(client):
    return client.clock
