import unittest

from support import ApiTestCase


class ServiceCatalogTests(ApiTestCase):
    def test_seeded_services_are_public(self) -> None:
        services = self.client.get("/api/services").json()["services"]
        names = [item["name"] for item in services]
        self.assertEqual(names, sorted(names))
        haircut = next(item for item in services if item["name"] == "Haircut")
        self.assertEqual(haircut["price"], 30.0)
        self.assertEqual(haircut["duration_minutes"], 30)
        self.assertEqual(haircut["icon"], "cut")

    def test_writes_require_admin(self) -> None:
        _, headers = self.customer()
        self.assertEqual(self.client.post("/api/services/admin", json={"name": "Shave"}).status_code, 401)
        forbidden = self.client.post("/api/services/admin", json={"name": "Shave"}, headers=headers)
        self.assertEqual(forbidden.status_code, 403)
        self.assertEqual(forbidden.json()["code"], "forbidden")

    def test_legacy_duration_field_wins(self) -> None:
        admin = self.admin_headers()
        created = self.client.post(
            "/api/services/admin",
            json={"name": "Hot towel shave", "price": "25.50", "duration": 40, "duration_min": 45},
            headers=admin,
        )
        self.assertEqual(created.status_code, 201, created.text)
        service = created.json()["service"]
        self.assertEqual(service["duration_minutes"], 45)
        self.assertEqual(service["price"], 25.5)

        defaulted = self.client.post("/api/services/admin", json={"name": "Wash"}, headers=admin)
        self.assertEqual(defaulted.json()["service"]["duration_minutes"], 30)

        nameless = self.client.post("/api/services/admin", json={"name": "  "}, headers=admin)
        self.assertEqual(nameless.status_code, 400)

    def test_delete_deactivates(self) -> None:
        admin = self.admin_headers()
        service_id = self.service_id("Neckline")
        self.assertEqual(self.client.delete(f"/api/services/admin/{service_id}", headers=admin).status_code, 200)

        public = [item["id"] for item in self.client.get("/api/services").json()["services"]]
        self.assertNotIn(service_id, public)
        everything = self.client.get("/api/services/admin", headers=admin).json()["services"]
        self.assertIn(service_id, [item["id"] for item in everything])

        restored = self.client.put(f"/api/services/admin/{service_id}", json={"active": True}, headers=admin)
        self.assertTrue(restored.json()["service"]["active"])


class BarberCatalogTests(ApiTestCase):
    def test_specialties_and_photo_url(self) -> None:
        admin = self.admin_headers()
        created = self.client.post(
            "/api/barbers/admin",
            json={"name": "Ana", "photo": "uploads/ana.png", "specialties": ["fade", " color "]},
            headers=admin,
        )
        self.assertEqual(created.status_code, 201, created.text)
        barber = created.json()["barber"]
        self.assertEqual(barber["specialties"], ["fade", "color"])
        self.assertEqual(barber["photo"], "http://testserver/uploads/ana.png")

        fetched = self.client.get(f"/api/barbers/{barber['id']}").json()["barber"]
        self.assertEqual(fetched["name"], "Ana")

        updated = self.client.put(
            f"/api/barbers/admin/{barber['id']}",
            json={"specialties": "beard, kids"},
            headers=admin,
        )
        self.assertEqual(updated.json()["barber"]["specialties"], ["beard", "kids"])

    def test_empty_update_is_rejected(self) -> None:
        barber_id = self.create_barber()
        response = self.client.put(f"/api/barbers/admin/{barber_id}", json={}, headers=self.admin_headers())
        self.assertEqual(response.status_code, 400)

    def test_deactivated_barber_is_hidden_and_not_bookable(self) -> None:
        barber_id = self.create_barber()
        self.client.delete(f"/api/barbers/admin/{barber_id}", headers=self.admin_headers())

        listed = [item["id"] for item in self.client.get("/api/barbers").json()["barbers"]]
        self.assertNotIn(barber_id, listed)
        self.assertEqual(self.client.get(f"/api/barbers/{barber_id}").status_code, 404)

        _, headers = self.customer()
        self.assertEqual(self.book(headers, barber_id=barber_id).status_code, 404)


class EstablishmentCatalogTests(ApiTestCase):
    def test_establishment_crud(self) -> None:
        admin = self.admin_headers()
        seeded = self.client.get("/api/establishments").json()["establishments"]
        self.assertEqual(len(seeded), 1)

        created = self.client.post(
            "/api/establishments/admin",
            json={"name": "Downtown", "address": "1 Center Ave", "contact": "555-0199"},
            headers=admin,
        )
        self.assertEqual(created.status_code, 201, created.text)
        establishment_id = created.json()["establishment"]["id"]

        updated = self.client.put(
            f"/api/establishments/admin/{establishment_id}",
            json={"contact": "555-0200"},
            headers=admin,
        )
        self.assertEqual(updated.json()["establishment"]["contact"], "555-0200")

        self.client.delete(f"/api/establishments/admin/{establishment_id}", headers=admin)
        self.assertEqual(self.client.get(f"/api/establishments/{establishment_id}").status_code, 404)
        self.assertEqual(len(self.client.get("/api/establishments").json()["establishments"]), 1)


if __name__ == "__main__":
    unittest.main()
