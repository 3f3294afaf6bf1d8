"""API tests for /auth routes and the auth dependencies."""

from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from storefront.api.auth import get_optional_user, require_role
from storefront.api.handlers import register_exception_handlers
from storefront.core.database import get_db
from storefront.schemas.auth import CurrentUser
from tests.support import API, PASSWORD, ApiTestCase


class TestRegister(ApiTestCase):
    def test_register_returns_user_and_tokens(self) -> None:
        resp = self.client.post(
            f"{API}/auth/register",
            json={"email": "ann@x.com", "password": PASSWORD, "name": "Ann Lee"},
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "User registered successfully")
        user = body["data"]["user"]
        self.assertEqual((user["email"], user["role"]), ("ann@x.com", "user"))
        self.assertNotIn("passwordHash", user)
        self.assertNotIn("refreshToken", user)
        self.assertIn("accessToken", body["data"])
        self.assertIn("refreshToken", body["data"])

    def test_register_validation_lists_every_error(self) -> None:
        resp = self.client.post(
            f"{API}/auth/register", json={"email": "nope", "password": "1", "name": "A"}
        )
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["message"], "Validation failed")
        self.assertEqual([e["field"] for e in body["errors"]], ["email", "password", "name"])

    def test_duplicate_email(self) -> None:
        self.register("ann@x.com")
        resp = self.client.post(
            f"{API}/auth/register",
            json={"email": "ann@x.com", "password": PASSWORD, "name": "Ann Again"},
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["field"], "email")


class TestLoginRefreshLogout(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register("ann@x.com")

    def login(self, password: str = PASSWORD):
        return self.client.post(
            f"{API}/auth/login", json={"email": "ann@x.com", "password": password}
        )

    def test_login(self) -> None:
        resp = self.login()
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Login successful")

    def test_bad_credentials(self) -> None:
        resp = self.login("wrong-password")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Invalid email or password")
        self.assertEqual(resp.headers["www-authenticate"], "Bearer")

    def test_login_requires_fields(self) -> None:
        resp = self.client.post(f"{API}/auth/login", json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual([e["field"] for e in resp.json()["errors"]], ["email", "password"])

    def test_refresh_then_logout_revokes(self) -> None:
        data = self.login().json()["data"]
        headers = {"Authorization": f"Bearer {data['accessToken']}"}

        resp = self.client.post(f"{API}/auth/refresh", json={"refreshToken": data["refreshToken"]})
        self.assertEqual(resp.status_code, 200)
        self.assertIn("accessToken", resp.json()["data"])

        self.assertEqual(self.client.post(f"{API}/auth/logout", headers=headers).status_code, 200)
        self.assertEqual(self.client.post(f"{API}/auth/logout", headers=headers).status_code, 200)

        resp = self.client.post(f"{API}/auth/refresh", json={"refreshToken": data["refreshToken"]})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Invalid refresh token")

    def test_refresh_requires_token(self) -> None:
        resp = self.client.post(f"{API}/auth/refresh", json={})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Refresh token required")


class TestMe(ApiTestCase):
    def test_me(self) -> None:
        headers = self.user_headers("bob@x.com")
        resp = self.client.get(f"{API}/auth/me", headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["email"], "bob@x.com")

    def test_missing_and_bad_tokens(self) -> None:
        resp = self.client.get(f"{API}/auth/me")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "No token provided")

        resp = self.client.get(f"{API}/auth/me", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Invalid token")

        resp = self.client.get(f"{API}/auth/me", headers={"Authorization": "Basic abc"})
        self.assertEqual(resp.status_code, 401)


class TestAuthDependencies(ApiTestCase):
    """get_optional_user and require_role on a throwaway app."""

    def setUp(self) -> None:
        super().setUp()
        probe = FastAPI()
        register_exception_handlers(probe)
        probe.dependency_overrides[get_db] = self.app.dependency_overrides[get_db]

        @probe.get("/whoami")
        def whoami(user: Annotated[CurrentUser | None, Depends(get_optional_user)]) -> dict:
            return {"email": user.email if user else None}

        @probe.get("/staff")
        def staff(
            user: Annotated[CurrentUser, Depends(require_role(["admin", "user"]))],
        ) -> dict:
            return {"role": user.role}

        self.probe = TestClient(probe)

    def test_optional_user_never_fails(self) -> None:
        self.assertEqual(self.probe.get("/whoami").json(), {"email": None})
        bad = {"Authorization": "Bearer garbage"}
        self.assertEqual(self.probe.get("/whoami", headers=bad).json(), {"email": None})
        headers = self.user_headers("bob@x.com")
        self.assertEqual(self.probe.get("/whoami", headers=headers).json(), {"email": "bob@x.com"})

    def test_require_role_accepts_a_list(self) -> None:
        self.assertEqual(self.probe.get("/staff").status_code, 401)
        resp = self.probe.get("/staff", headers=self.user_headers("bob@x.com"))
        self.assertEqual(resp.json(), {"role": "user"})
