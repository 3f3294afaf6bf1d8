"""Shared helpers: in-memory SQLite sessions and an API test case wired to them."""

import tempfile
import unittest
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.config import settings
from storefront.models import Base

API = settings.API_PREFIX
PASSWORD = "password123"

# Smallest valid-looking payloads; content is never decoded.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database with all tables; shared across threads (TestClient)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


class DatabaseTestCase(unittest.TestCase):
    """Gives each test its own empty database session as self.db."""

    def setUp(self) -> None:
        self.SessionLocal = make_session_factory()
        self.db: Session = self.SessionLocal()

    def tearDown(self) -> None:
        self.db.close()


class ApiTestCase(unittest.TestCase):
    """TestClient against the real app with DB and storage dependencies overridden."""

    def setUp(self) -> None:
        from storefront.api.products import get_storage
        from storefront.core.database import get_db
        from storefront.main import app
        from storefront.services.storage import LocalStorageBackend

        self.app = app
        self.SessionLocal = make_session_factory()
        self._upload_dir = tempfile.TemporaryDirectory()
        self.upload_dir = self._upload_dir.name
        self.storage = LocalStorageBackend(self.upload_dir, "http://testserver")

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_storage] = lambda: self.storage
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.app.dependency_overrides.clear()
        self._upload_dir.cleanup()

    def register(
        self,
        email: str,
        password: str = PASSWORD,
        name: str = "Test User",
        role: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"email": email, "password": password, "name": name}
        if role:
            body["role"] = role
        resp = self.client.post(f"{API}/auth/register", json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()["data"]

    def admin_headers(self, email: str = "admin@x.com") -> dict[str, str]:
        data = self.register(email, name="Admin User", role="admin")
        return {"Authorization": f"Bearer {data['accessToken']}"}

    def user_headers(self, email: str = "user@x.com") -> dict[str, str]:
        data = self.register(email, name="Regular User")
        return {"Authorization": f"Bearer {data['accessToken']}"}
