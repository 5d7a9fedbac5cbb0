import copy
import json
from collections.abc import AsyncGenerator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from src.core.auth.credential import Credential
from src.core.config import settings
from src.main import app
from src.modules.dashboard.sessions import ViewSessionStore

TEACHER_ROLE = settings.teacher_role_id
STUDENT_ROLE = settings.student_role_id

# Small music school: two teachers, two students, two instruments.
# Payments: 2024-01 -> 100 + 50, 2024-02 -> 200 (package without instrument).
# Lessons: two attended in 2024-01, one cancelled in 2024-02.
COLLECTIONS: dict[str, list[dict]] = {
    "users": [
        {"id": "t1", "first_name": "Anna", "last_name": "Keys", "email": "anna@school.com",
         "role": TEACHER_ROLE},
        {"id": "t2", "first_name": "Ben", "last_name": "Strings", "email": "ben@school.com",
         "role": {"id": "custom-teacher", "name": "Teacher"}},
        {"id": "s1", "first_name": "Clara", "last_name": "Bell", "email": "clara@school.com",
         "role": STUDENT_ROLE},
        {"id": "s2", "first_name": "David", "last_name": "Drum", "email": "david@school.com",
         "role": STUDENT_ROLE},
        {"id": "a1", "first_name": "Admin", "last_name": None, "email": "admin@school.com",
         "role": "admin-role"},
    ],
    "instruments": [
        {"id": 1, "name": "Piano"},
        {"id": 2, "name": "Violin"},
    ],
    "packages": [
        {"id": 10, "name": "Beginner", "student": "s1", "instrument": 1, "lessons_quota": 4,
         "duration": 30, "status": "active", "start_datetime": "2024-01-01T00:00:00Z"},
        {"id": 11, "name": "Beginner", "student": "s2", "instrument": 2, "lessons_quota": 0,
         "duration": 45, "status": "completed", "start_datetime": "2024-01-10T00:00:00Z"},
        {"id": 12, "name": "Advanced", "student": "s1", "instrument": None, "lessons_quota": 8,
         "duration": 60, "status": "active", "start_datetime": "2024-02-01T00:00:00Z"},
    ],
    "payments": [
        {"id": 1, "payment_id": "P-1", "package": 10, "rate": "100.00", "currency": "EUR",
         "payment_date": "2024-01-05T10:00:00Z"},
        {"id": 2, "payment_id": None, "package": 11, "rate": "50", "currency": "EUR",
         "payment_date": "2024-01-20"},
        {"id": 3, "payment_id": "P-3", "package": 12, "rate": 200, "currency": "EUR",
         "payment_date": "2024-02-03T09:00:00"},
    ],
    "lessons": [
        {"id": 100, "package": 10, "teacher": "t1", "status": "attended",
         "start_datetime": "2024-01-08T15:00:00Z", "remarks": None},
        {"id": 101, "package": 10, "teacher": "t1", "status": "attended",
         "start_datetime": "2024-01-15T15:00:00Z", "remarks": "Scales"},
        {"id": 102, "package": 11, "teacher": "t2", "status": "cancelled",
         "start_datetime": "2024-02-02T10:00:00Z", "remarks": "Sick"},
    ],
    "student_teacher_relations": [
        {"id": 1, "teacher": "t1", "student": "s1", "instrument": 1},
        {"id": 2, "teacher": "t2", "student": "s2", "instrument": 2},
        {"id": 3, "teacher": "t1", "student": "s2", "instrument": 2},
    ],
    "junction_students_instruments": [
        {"id": 1, "directus_users_id": "s1", "instruments_id": 1},
        {"id": 2, "directus_users_id": "s2", "instruments_id": 1},
        {"id": 3, "directus_users_id": "s2", "instruments_id": 2},
    ],
    "junction_teachers_instruments": [
        {"id": 1, "directus_users_id": "t1", "instruments_id": 1},
        {"id": 2, "directus_users_id": "t2", "instruments_id": 2},
    ],
}


class FakeContentApi:
    """In-process stand-in for the content API, served through httpx.MockTransport."""

    def __init__(self, collections: dict[str, list[dict]]):
        self.collections = collections
        self.failures: dict[str, int] = {}
        self.requests: list[httpx.Request] = []
        self.login_email = "admin@school.com"
        self.login_password = "secret"
        self.login_token = "login-token"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.failures:
            return httpx.Response(
                self.failures[path], json={"errors": [{"message": "Upstream failure"}]}
            )
        if path == "/auth/login" and request.method == "POST":
            body = json.loads(request.content)
            if body == {"email": self.login_email, "password": self.login_password}:
                return httpx.Response(
                    200, json={"data": {"access_token": self.login_token, "expires": 900000}}
                )
            return httpx.Response(401, json={"errors": [{"message": "Invalid user credentials."}]})
        name = "users" if path == "/users" else path.removeprefix("/items/")
        if name not in self.collections:
            return httpx.Response(404, json={"errors": [{"message": "Not found"}]})
        return httpx.Response(200, json={"data": self.collections[name]})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def collections() -> dict[str, list[dict]]:
    """Fresh copy of the sample collections."""
    return copy.deepcopy(COLLECTIONS)


@pytest.fixture
def content_api(collections: dict[str, list[dict]]) -> FakeContentApi:
    return FakeContentApi(collections)


@pytest.fixture
async def http_client(content_api: FakeContentApi) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Content API HTTP client wired to the fake API."""
    async with httpx.AsyncClient(
        base_url="http://directus.test", transport=content_api.transport()
    ) as http:
        yield http


@pytest.fixture
async def client(http_client: httpx.AsyncClient) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with app state set up as at startup (static token)."""
    app.state.http_client = http_client
    app.state.credential = Credential("static-token", source="static")
    app.state.sessions = ViewSessionStore()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
