import dataclasses
import tempfile
import unittest
import uuid
from datetime import date, timedelta
from pathlib import Path

from fastapi.testclient import TestClient

from barbershop.main import create_app
from barbershop.settings import get_settings

STRONG_PASSWORD = "Pass#1234"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin#1234"


def future_day(days: int = 30) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


class ApiTestCase(unittest.TestCase):
    """Runs every test against a fresh, migrated SQLite database."""

    settings_overrides: dict = {}

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        tmp_path = Path(self._tmp.name)
        overrides = {
            "database_url": f"sqlite:///{tmp_path / 'test.db'}",
            "upload_dir": str(tmp_path / "uploads"),
            "admin_email": ADMIN_EMAIL,
            "admin_password": ADMIN_PASSWORD,
            "seed_defaults": True,
            "auto_run_migrations": True,
            "expose_reset_token_in_response": True,
            "smtp_enabled": False,
        }
        overrides.update(self.settings_overrides)
        self.settings = dataclasses.replace(get_settings(), **overrides)
        self.app = create_app(self.settings)
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()
        self.app.state.database.dispose()
        self._tmp.cleanup()

    def db(self):
        return self.app.state.database.session()

    def register(self, email: str | None = None, password: str = STRONG_PASSWORD, name: str = "Test Client") -> str:
        email = email or f"client_{uuid.uuid4().hex[:8]}@example.com"
        response = self.client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name, "phone": "555-0100"},
        )
        self.assertEqual(response.status_code, 201, response.text)
        return email

    def login(self, email: str, password: str = STRONG_PASSWORD) -> dict:
        response = self.client.post("/api/auth/login", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def auth_headers(self, email: str, password: str = STRONG_PASSWORD) -> dict:
        token = self.login(email, password)["access_token"]
        return {"Authorization": f"Bearer {token}"}

    def admin_headers(self) -> dict:
        return self.auth_headers(ADMIN_EMAIL, ADMIN_PASSWORD)

    def customer(self) -> tuple[str, dict]:
        email = self.register()
        return email, self.auth_headers(email)

    def service_id(self, name: str = "Haircut") -> int:
        services = self.client.get("/api/services").json()["services"]
        return next(item["id"] for item in services if item["name"] == name)

    def create_barber(self, name: str = "Carlos") -> int:
        response = self.client.post(
            "/api/barbers/admin",
            json={"name": name, "specialties": "fade, beard"},
            headers=self.admin_headers(),
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["barber"]["id"]

    def book(self, headers: dict, **fields):
        payload = {"service_id": self.service_id(), "date": future_day(), "time": "09:00"}
        payload.update(fields)
        return self.client.post("/api/appointments", json=payload, headers=headers)
