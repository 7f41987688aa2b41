"""Fixtures for the Web API tests."""

import itertools

import pytest
from fastapi.testclient import TestClient

from examprep.core import accounts, users
from examprep.web.api import create_app

PASSWORD = "s3cret-pass"

_counter = itertools.count(1)


@pytest.fixture
def client():
    """Test client on the per-test database (startup seeding skipped)."""
    return TestClient(create_app())


@pytest.fixture
def make_account():
    """Factory registering an account and returning (user, auth headers)."""

    def _make(role: str = "user", is_premium: bool = False):
        n = next(_counter)
        user = accounts.register(f"web{n}@example.com", PASSWORD, f"Web User {n}", role=role)
        if is_premium:
            user = users.set_premium(user.uid, True)
        token = accounts.login(user.email, PASSWORD).token
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def auth(make_account):
    return make_account()


@pytest.fixture
def premium_auth(make_account):
    return make_account(is_premium=True)


@pytest.fixture
def admin_auth(make_account):
    return make_account(role="admin")
