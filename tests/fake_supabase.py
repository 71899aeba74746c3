"""In-memory stand-in for the supabase-py query builder used in tests."""

import copy
import re
import uuid

from postgrest.exceptions import APIError

# (table, embedded name) -> (local column, remote column, many)
RELATIONS = {
    ("members", "member_services"): ("id", "member_id", True),
    ("attendance", "members"): ("member_id", "id", False),
    ("sessions", "coaches"): ("coach_id", "id", False),
    ("session_bookings", "members"): ("member_id", "id", False),
}

EMBED = re.compile(r"(\w+)(?:!\w+)?\s*\(([^)]*)\)")


class FakeResponse:
    def __init__(self, data):
        self.data = data
        self.count = len(data) if isinstance(data, list) else None


class _Not:
    def __init__(self, query):
        self._query = query

    def is_(self, column, value):
        self._query._filters.append(lambda r: not _is(r.get(column), value))
        return self._query

    def eq(self, column, value):
        self._query._filters.append(lambda r: r.get(column) != value)
        return self._query


def _is(actual, value):
    if value in (None, "null"):
        return actual is None
    return actual is value


def _cmp(op):
    def check(actual, value):
        if actual is None:
            return False
        return op(actual, value)
    return check


class FakeQuery:
    def __init__(self, db, table):
        self._db = db
        self._table = table
        self._action = "select"
        self._payload = None
        self._columns = "*"
        self._filters = []
        self._order = []
        self._limit = None

    # --- actions ---
    def select(self, columns="*", **kwargs):
        self._action = "select"
        self._columns = columns
        return self

    def insert(self, payload, **kwargs):
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload, **kwargs):
        self._action = "update"
        self._payload = payload
        return self

    def delete(self, **kwargs):
        self._action = "delete"
        return self

    # --- filters ---
    def eq(self, column, value):
        self._filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda r: r.get(column) != value)
        return self

    def gt(self, column, value):
        self._filters.append(lambda r: _cmp(lambda a, b: a > b)(r.get(column), value))
        return self

    def gte(self, column, value):
        self._filters.append(lambda r: _cmp(lambda a, b: a >= b)(r.get(column), value))
        return self

    def lt(self, column, value):
        self._filters.append(lambda r: _cmp(lambda a, b: a < b)(r.get(column), value))
        return self

    def lte(self, column, value):
        self._filters.append(lambda r: _cmp(lambda a, b: a <= b)(r.get(column), value))
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda r: r.get(column) in values)
        return self

    def is_(self, column, value):
        self._filters.append(lambda r: _is(r.get(column), value))
        return self

    @property
    def not_(self):
        return _Not(self)

    def order(self, column, desc=False, **kwargs):
        self._order.append((column, desc))
        return self

    def limit(self, size, **kwargs):
        self._limit = size
        return self

    # --- execution ---
    def _matching(self):
        return [r for r in self._db.tables.setdefault(self._table, []) if all(f(r) for f in self._filters)]

    def _embed(self, row):
        out = copy.deepcopy(row)
        for name, _cols in EMBED.findall(self._columns or ""):
            local, remote, many = RELATIONS[(self._table, name)]
            related = [
                copy.deepcopy(r) for r in self._db.tables.get(name, [])
                if r.get(remote) == row.get(local)
            ]
            out[name] = related if many else (related[0] if related else None)
        return out

    def execute(self):
        self._db.calls.append((self._table, self._action))
        failure = self._db.failures.get((self._table, self._action))
        if failure is not None and failure["times"] > 0:
            failure["times"] -= 1
            raise APIError({"message": failure["message"], "code": failure["code"],
                            "hint": None, "details": None})

        if self._action == "insert":
            rows = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for r in rows:
                row = dict(r)
                row.setdefault("id", str(uuid.uuid4()))
                self._db.tables.setdefault(self._table, []).append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        if self._action == "update":
            rows = self._matching()
            for r in rows:
                r.update(self._payload)
            return FakeResponse(copy.deepcopy(rows))

        if self._action == "delete":
            rows = self._matching()
            self._db.tables[self._table] = [r for r in self._db.tables[self._table] if r not in rows]
            return FakeResponse(copy.deepcopy(rows))

        rows = self._matching()
        for column, desc in reversed(self._order):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        return FakeResponse([self._embed(r) for r in rows])


class FakeSupabase:
    def __init__(self, tables=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.failures = {}
        self.calls = []

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, action, message="boom", times=1, code="XX000"):
        """Make the next ``times`` executions of ``action`` on ``table`` raise APIError."""
        self.failures[(table, action)] = {"message": message, "times": times, "code": code}

    def rows(self, table):
        return self.tables.get(table, [])
