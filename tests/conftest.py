# =============================================================================
# File: tests/conftest.py
# Description: Shared fixtures - the fake-backed container, seeded users
#              and bearer tokens for the HTTP tests
# =============================================================================

from __future__ import annotations

from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from messaging_core.config.jwt_config import JwtConfig
from messaging_core.conversation.models import User
from messaging_core.security.jwt_auth import JwtTokenManager, get_token_manager

from tests.fakes.fake_container import FakeContainer

TEST_JWT_SECRET = "test-secret-key-for-messaging-core"


@pytest.fixture
def container() -> FakeContainer:
    return FakeContainer()


@pytest.fixture
def create_user(container: FakeContainer) -> Callable:
    async def _create(email: str, **fields) -> User:
        return await container.user_service.create_user(email=email, **fields)

    return _create


@pytest.fixture
def token_manager() -> JwtTokenManager:
    return JwtTokenManager(JwtConfig(secret_key=TEST_JWT_SECRET))


@pytest.fixture
def auth_headers(token_manager: JwtTokenManager) -> Callable[[str], Dict[str, str]]:
    def _headers(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token_manager.create_access_token(user_id)}"}

    return _headers


@pytest.fixture
def client(container: FakeContainer, token_manager: JwtTokenManager):
    """
    The application over the fake container. The lifespan is not entered,
    so no real clients are ever created.
    """
    from messaging_core.server import app

    app.state.container = container
    app.dependency_overrides[get_token_manager] = lambda: token_manager
    with_500s = TestClient(app, raise_server_exceptions=False)
    try:
        yield with_500s
    finally:
        app.dependency_overrides.clear()
        app.state.container = None
