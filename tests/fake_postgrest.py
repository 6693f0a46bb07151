"""
In-memory PostgREST stand-in for httpx.MockTransport.

Supports the subset used by RemoteCourseRepository: ``eq.`` filters,
``order=<column>.<asc|desc>``, POST with primary-key conflicts (409) or
``resolution=merge-duplicates``, PATCH and DELETE.
"""

import json

import httpx

PRIMARY_KEYS = {
    "courses": ("id",),
    "enrollments": ("student_id", "course_id"),
    "profiles": ("id",),
}


class FakePostgrest:

    def __init__(self):
        self.tables = {name: [] for name in PRIMARY_KEYS}
        self.requests: list[httpx.Request] = []
        self.fail_with = None
        # Called with each request before it is served
        self.on_request = None

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))

    def _matches(self, row, filters):
        return all(str(row.get(column)) == value for column, value in filters.items())

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "boom"})

        table = request.url.path.rsplit("/", 1)[-1]
        rows = self.tables[table]
        filters = {
            key: value[3:]
            for key, value in request.url.params.items()
            if value.startswith("eq.")
        }
        prefer = request.headers.get("Prefer", "")
        representation = "return=representation" in prefer

        if request.method == "GET":
            result = [row for row in rows if self._matches(row, filters)]
            order = request.url.params.get("order")
            if order:
                column, direction = order.split(".")
                result.sort(key=lambda row: row[column], reverse=direction == "desc")
            return httpx.Response(200, json=result)

        if request.method == "POST":
            body = json.loads(request.content)
            key = {column: str(body[column]) for column in PRIMARY_KEYS[table]}
            existing = [row for row in rows if self._matches(row, key)]
            if existing:
                if "merge-duplicates" not in prefer:
                    return httpx.Response(409, json={"message": "duplicate key"})
                existing[0].update(body)
                body = existing[0]
            else:
                rows.append(dict(body))
            return httpx.Response(201, json=[body] if representation else None)

        if request.method == "PATCH":
            body = json.loads(request.content)
            updated = []
            for row in rows:
                if self._matches(row, filters):
                    row.update(body)
                    updated.append(row)
            return httpx.Response(200, json=updated if representation else None)

        if request.method == "DELETE":
            self.tables[table] = [row for row in rows if not self._matches(row, filters)]
            return httpx.Response(204)

        return httpx.Response(405)
