# tests/conftest.py
"""
Shared fixtures for the web application tests.

The app is built with in-memory doubles for snippet and user storage and the
in-memory session store, so no database or Redis is needed. The client talks
https so the Secure session cookie is sent back on every request.
"""

import html
import re
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from snippetbox.core.config import Settings
from snippetbox.core.exceptions import DuplicateEmailError, InvalidCredentialsError, NoRecordError
from snippetbox.core.rate_limit_config import limiter
from snippetbox.main import create_app
from snippetbox.models.database import Snippet
from snippetbox.models.session_state import MemoryStore

CSRF_TOKEN_RX = re.compile(r"<input type='hidden' name='csrf_token' value='(.+)'>")

ALICE_EMAIL = "alice@example.com"
ALICE_PASSWORD = "pa55word"


def mock_snippet() -> Snippet:
    return Snippet(
        id=1,
        title="An old silent pond",
        content="An old silent pond...",
        created=datetime(2022, 1, 1, 10, 0),
        expires=datetime(2023, 1, 1, 10, 0)
    )


class MockSnippetModel:
    """Snippet storage holding a single snippet with id 1"""

    def __init__(self):
        self.inserted = []

    def insert(self, title: str, content: str, expires: int) -> int:
        self.inserted.append((title, content, expires))
        return 2

    def get(self, snippet_id: int) -> Snippet:
        if snippet_id == 1:
            return mock_snippet()
        raise NoRecordError(record_id=snippet_id)

    def latest(self, limit: int = 10):
        return [mock_snippet()]


class MockUserModel:
    """User storage knowing alice (id 1); dupe@example.com is always taken"""

    def __init__(self):
        self.inserted = []

    def insert(self, name: str, email: str, hashed_password: str) -> None:
        if email == "dupe@example.com":
            raise DuplicateEmailError(email=email)
        self.inserted.append((name, email, hashed_password))

    def authenticate(self, email: str, password: str) -> int:
        if email == ALICE_EMAIL and password == ALICE_PASSWORD:
            return 1
        raise InvalidCredentialsError()

    def exists(self, user_id: int) -> bool:
        return user_id == 1


@pytest.fixture
def test_settings():
    """Settings for tests: cheap bcrypt, no rate limiting, fixed secret"""
    return Settings(
        _env_file=None,
        SESSION_SECRET="test-session-secret",
        BCRYPT_ROUNDS=4,
        RATE_LIMIT_ENABLED=False,
        WRITE_TIMEOUT=30.0
    )


@pytest.fixture
def snippets():
    return MockSnippetModel()


@pytest.fixture
def users():
    return MockUserModel()


@pytest.fixture
def app(test_settings, snippets, users):
    return create_app(test_settings, snippets=snippets, users=users, session_store=MemoryStore())


@pytest.fixture
def client(app):
    limiter.reset()
    with TestClient(app, base_url="https://testserver", follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture
def extract_csrf_token():
    """Pull the CSRF token out of a rendered page"""
    def extract(body: str) -> str:
        match = CSRF_TOKEN_RX.search(body)
        assert match is not None, "no csrf_token field in page"
        return html.unescape(match.group(1))
    return extract


@pytest.fixture
def login(client, extract_csrf_token):
    """Sign a user in through the login form and return the response"""
    def do_login(email: str = ALICE_EMAIL, password: str = ALICE_PASSWORD):
        token = extract_csrf_token(client.get("/user/login").text)
        return client.post(
            "/user/login",
            data={"email": email, "password": password, "csrf_token": token}
        )
    return do_login
