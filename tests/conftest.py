"""tests/conftest.py — Shared fixtures for all tests.

Sets environment variables before any Lambda module is imported, then
provides an in-memory Supabase stand-in that records every write.
"""
import json
import os
import sys
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

# Set test env vars before any Lambda module is imported
os.environ.update({
    "JWT_SECRET":           "test-jwt-secret-12345",
    "SUPABASE_URL":         "https://test-project.supabase.co",
    "SUPABASE_SERVICE_KEY": "test-service-key",
    "IMAGES_BUCKET":        "images",
    "TOKEN_TTL_MINUTES":    "45",
    "APP_LOGS_TABLE":       "",
    "AUTH_LOGS_TABLE":      "",
})

# Add lambda/ to path so imports resolve without packaging
_root = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, os.path.join(_root, "lambda"))

import pytest
from postgrest.exceptions import APIError

import helpers
import handler as lambda_handler
import tokens

_BASE_TS = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ── In-memory Supabase ────────────────────────────────────────────────────────

class FakeQuery:
    def __init__(self, store, table):
        self.store    = store
        self.table    = table
        self.op       = "select"
        self.columns  = "*"
        self.payload  = None
        self.filters  = []
        self.ordering = []
        self.window   = None
        self.count    = None
        self.conflict = "id"

    # verbs
    def select(self, columns="*", count=None):
        self.columns, self.count = columns, count
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def upsert(self, rows, on_conflict="id"):
        self.op, self.payload, self.conflict = "upsert", rows, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    # modifiers
    def eq(self, col, val):
        # PostgREST compares as text on the wire: "1" matches 1
        self.filters.append(lambda r: r.get(col) is not None and str(r.get(col)) == str(val))
        return self

    def gte(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) >= val)
        return self

    def lte(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) <= val)
        return self

    def order(self, col, desc=False):
        self.ordering.append((col, desc))
        return self

    def range(self, start, end):
        self.window = (start, end + 1)
        return self

    def limit(self, n):
        self.window = (0, n)
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return dict(row)
        cols = [c.strip() for c in self.columns.split(",")]
        return {c: row.get(c) for c in cols if c in row}

    def execute(self):
        self.store.check_failure(self.op, self.table)
        rows = self.store.tables.setdefault(self.table, [])

        if self.op == "select":
            found = [r for r in rows if self._matches(r)]
            for col, desc in reversed(self.ordering):
                found.sort(key=lambda r: (r.get(col) is None, r.get(col)), reverse=desc)
            total = len(found)
            if self.window:
                found = found[self.window[0]:self.window[1]]
            return SimpleNamespace(data=[self._project(r) for r in found],
                                   count=total if self.count else None)

        self.store.writes.append((self.op, self.table, self.payload))

        if self.op == "insert":
            batch = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.store.add_row(self.table, r) for r in batch]
            return SimpleNamespace(data=created, count=None)

        if self.op == "update":
            touched = [r for r in rows if self._matches(r)]
            for r in touched:
                r.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in touched], count=None)

        if self.op == "upsert":
            batch  = self.payload if isinstance(self.payload, list) else [self.payload]
            result = []
            for incoming in batch:
                key = incoming.get(self.conflict)
                hit = next((r for r in rows if key is not None and r.get(self.conflict) == key), None)
                if hit:
                    hit.update(incoming)
                    result.append(dict(hit))
                else:
                    result.append(self.store.add_row(self.table, incoming))
            return SimpleNamespace(data=result, count=None)

        if self.op == "delete":
            gone = [r for r in rows if self._matches(r)]
            self.store.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=gone, count=None)

        raise AssertionError(f"unsupported op {self.op}")


class FakeBucket:
    def __init__(self, store, name):
        self.store = store
        self.name  = name

    def create_signed_upload_url(self, path):
        return {"signed_url": f"https://storage.test/upload/{self.name}/{path}?token=tok",
                "token": "tok", "path": path}

    def get_public_url(self, path):
        return f"https://storage.test/public/{self.name}/{path}"

    def upload(self, path, content, file_options=None):
        self.store.check_failure("upload", self.name)
        self.store.writes.append(("upload", self.name, path))
        self.store.objects[path] = content
        return SimpleNamespace(path=path)

    def remove(self, paths):
        self.store.writes.append(("remove", self.name, list(paths)))
        for p in paths:
            self.store.objects.pop(p, None)
        return [{"name": p} for p in paths]


class FakeStorage:
    def __init__(self, store):
        self.store = store

    def from_(self, bucket):
        return FakeBucket(self.store, bucket)


class FakeSupabase:
    def __init__(self):
        self.tables  = {}
        self.objects = {}
        self.writes  = []
        self.failures = {}
        self._seq    = 0
        self.storage = FakeStorage(self)

    def table(self, name):
        return FakeQuery(self, name)

    def add_row(self, table, row):
        self._seq += 1
        stored = dict(row)
        stored.setdefault("id", self._seq)
        stored.setdefault("created_at", (_BASE_TS + timedelta(seconds=self._seq)).isoformat())
        self.tables.setdefault(table, []).append(stored)
        return dict(stored)

    def seed(self, table, *rows):
        return [self.add_row(table, r) for r in rows]

    def fail(self, op, table, message="boom"):
        self.failures[(op, table)] = message

    def check_failure(self, op, table):
        if (op, table) in self.failures:
            raise APIError({"message": self.failures[(op, table)], "code": "XX000"})

    def writes_to(self, table):
        return [w for w in self.writes if w[1] == table]


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def store(monkeypatch):
    fake = FakeSupabase()
    monkeypatch.setattr(helpers, "_client", fake)
    yield fake


def make_event(method, path, body=None, query=None, token=None, headers=None):
    hdrs = {"content-type": "application/json", **(headers or {})}
    if token:
        hdrs["authorization"] = f"Bearer {token}"
    return {
        "version":  "2.0",
        "rawPath":  path,
        "headers":  hdrs,
        "queryStringParameters": query,
        "requestContext": {"http": {"method": method, "path": path, "sourceIp": "203.0.113.9"}},
        "body": json.dumps(body) if body is not None else None,
        "isBase64Encoded": False,
    }


@pytest.fixture
def api(store):
    """Call the Lambda entry point; returns (status, parsed body, headers)."""
    def call(method, path, body=None, query=None, token=None, headers=None):
        resp = lambda_handler.handler(make_event(method, path, body, query, token, headers), None)
        parsed = json.loads(resp["body"]) if resp["body"] else None
        return resp["statusCode"], parsed, resp["headers"]
    return call


@pytest.fixture
def admin_token():
    return tokens.issue_token(1, "admin", "p1")


@pytest.fixture
def user_token():
    return tokens.issue_token(2, "user", "p1")
