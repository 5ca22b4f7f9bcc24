# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from codeblog.client.api import BlogAPIClient
from codeblog.client.cache import LocalCache
from codeblog.client.session import BlogSession
from codeblog.db.session import Base
from codeblog.db.session import get_db as app_get_session
from codeblog.main import app as fastapi_app

TEST_DB_URL = "sqlite://"
TEST_BASE_URL = "http://test/api"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def build_post_payload(**overrides: Any) -> dict[str, Any]:
    """Return a valid create/update body for the posts endpoint."""
    payload: dict[str, Any] = {
        "title": "JWT login flow",
        "description": "Express controller issuing tokens",
        "author": "Ada",
        "avatar": "🦊",
        "tags": ["node", "auth"],
        "files": [
            {
                "filename": "controllers/auth.js",
                "language": "javascript",
                "content": "export const login = (req, res) => res.json({ ok: true });",
            },
            {
                "filename": "routes/index.js",
                "language": "javascript",
                "content": "router.post('/login', login);",
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def post_payload() -> dict[str, Any]:
    return build_post_payload()


@pytest.fixture()
def created_post(client: TestClient, post_payload: dict[str, Any]) -> dict[str, Any]:
    """Create a post through the API and return its JSON."""
    response = client.post("/api/posts", json=post_payload)
    assert response.status_code == 201
    return response.json()


@pytest.fixture()
def api_client(app: FastAPI) -> BlogAPIClient:
    """Gateway client talking to the in-process app."""
    return BlogAPIClient(TEST_BASE_URL, transport=httpx.ASGITransport(app=app))


def _refuse_connection(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


@pytest.fixture()
def offline_api_client() -> BlogAPIClient:
    """Gateway client whose backend is unreachable."""
    return BlogAPIClient(TEST_BASE_URL, transport=httpx.MockTransport(_refuse_connection))


@pytest.fixture()
def local_cache(tmp_path) -> LocalCache:
    return LocalCache(tmp_path / "cache")


@pytest.fixture()
def make_session(local_cache: LocalCache) -> Callable[[BlogAPIClient], BlogSession]:
    """Build sessions that share one local cache directory."""

    def _make(api: BlogAPIClient) -> BlogSession:
        return BlogSession(api, local_cache, author="Current User", avatar="😊")

    return _make
