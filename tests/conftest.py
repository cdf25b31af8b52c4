# File: tests/conftest.py

"""
Shared fixtures. The database and hosted-file storage point at a temp
directory; the environment must be set before anything imports `app`.
"""

import io
import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="roomify-tests-")
os.environ["ROOMIFY_DATABASE_URL"] = f"sqlite:///{_TMP}/roomify-test.db"
os.environ["ROOMIFY_STORAGE_ROOT"] = f"{_TMP}/storage"
os.environ["ROOMIFY_WORKER_URL"] = "http://testserver"

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.db.session import SessionLocal
from app.main import app
from app.services import auth_service
from app.services.backend_session import BackendSession, open_backend_session


def make_image(fmt: str = "PNG", color=(200, 30, 30), size=(8, 6)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG", color=(10, 120, 220))


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def signed_in(db) -> BackendSession:
    """A fresh temporary account and its backend session."""
    result = auth_service.sign_in(db, attempt_temp_user_creation=True)
    user = auth_service.get_user_for_token(db, result.token)
    return open_backend_session(db, user, token=result.token)


@pytest.fixture
def signed_out() -> BackendSession:
    return BackendSession()


@pytest.fixture
def auth_headers(signed_in) -> dict:
    return {"Authorization": f"Bearer {signed_in.token}"}


def asgi_client() -> httpx.AsyncClient:
    """Async client that talks to the app in-process."""
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


def image_client(routes: dict) -> httpx.AsyncClient:
    """
    Async client serving fixed responses by URL.

    `routes` maps a full URL to (status, body, content type); anything
    else is a 404.
    """
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        status, body, content_type = routes.get(str(request.url), (404, b"", "text/plain"))
        headers = {"content-type": content_type} if content_type else {}
        return httpx.Response(status, content=body, headers=headers)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client.calls = calls
    return client


def hosted_files_client(session: BackendSession) -> httpx.AsyncClient:
    """
    Async client that answers https://<subdomain>.<hosting domain>/<path>
    from the session's file store, like the public hosting domain would.
    """
    from app.core.config import settings

    def handler(request: httpx.Request) -> httpx.Response:
        if not request.url.host.endswith(settings.hosting_domain):
            return httpx.Response(404)
        path = f"{settings.hosting_root_dir}{request.url.path}"
        if not session.files.exists(path):
            return httpx.Response(404)
        return httpx.Response(200, content=session.files.read(path), headers={"content-type": "image/png"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
