"""
HTTP round trips through the FastAPI app, backed by a SQLite remote store.
"""
import io
import os

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from plantia.config import Settings
from plantia.main import create_app

HEADERS = {"X-Owner-Id": "owner-1"}

PLANT_BODY = {
    "identification": {
        "species": "Ficus lyrata",
        "commonName": "Fiddle-leaf fig",
        "confidence": 0.88,
        "careProfile": {
            "sunlight": "Bright indirect light",
            "watering": "Every 7-10 days",
            "soil": "Well-draining potting mix",
            "fertilizer": "Monthly in spring and summer",
            "tempRange": "16-24°C",
            "humidity": "Moderate",
        },
    },
    "nickname": "Fiddle",
    "location": "Bedroom",
}


@pytest.fixture()
def client(tmp_path):
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        upload_dir=str(tmp_path / "uploads"),
        photo_max_width=64,
        photo_max_height=64,
    )
    with TestClient(create_app(settings)) as client:
        yield client


def _add_plant(client, **overrides):
    response = client.post("/api/v1/plants", json={**PLANT_BODY, **overrides}, headers=HEADERS)
    assert response.status_code == 201
    return response.json()


class TestAuthentication:

    def test_missing_owner_header(self, client):
        response = client.get("/api/v1/plants")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthenticated"

    def test_health_is_public(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestPlants:

    def test_create_and_fetch(self, client):
        plant = _add_plant(client)
        assert plant["commonName"] == "Fiddle-leaf fig"
        assert plant["nickname"] == "Fiddle"

        response = client.get(f"/api/v1/plants/{plant['id']}", headers=HEADERS)
        assert response.status_code == 200
        details = response.json()
        assert details["careProfile"]["tempRange"] == "16-24°C"
        assert [t["type"] for t in details["tasks"]] == ["water", "fertilize"]

        listed = client.get("/api/v1/plants", headers=HEADERS).json()
        assert [p["id"] for p in listed] == [plant["id"]]

    def test_other_owner_cannot_see_plant(self, client):
        plant = _add_plant(client)
        response = client.get(f"/api/v1/plants/{plant['id']}", headers={"X-Owner-Id": "owner-2"})
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_update(self, client):
        plant = _add_plant(client)
        category = client.post("/api/v1/categories", json={"name": "Figs"}, headers=HEADERS).json()

        response = client.patch(
            f"/api/v1/plants/{plant['id']}",
            json={"location": "Hall", "categoryId": category["id"]},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["location"] == "Hall"
        assert response.json()["categoryId"] == category["id"]
        assert response.json()["nickname"] == "Fiddle"

    def test_delete(self, client):
        plant = _add_plant(client, initialPhotoUrl="https://img/1.jpg")

        assert client.delete(f"/api/v1/plants/{plant['id']}", headers=HEADERS).status_code == 204
        assert client.get(f"/api/v1/plants/{plant['id']}", headers=HEADERS).status_code == 404
        assert client.get("/api/v1/photos", headers=HEADERS).json() == []
        assert client.get("/api/v1/tasks", headers=HEADERS).json() == []

    def test_blank_category_stored_as_none(self, client):
        plant = _add_plant(client, categoryId="")
        assert plant["categoryId"] is None

        response = client.patch(f"/api/v1/plants/{plant['id']}", json={"categoryId": " "}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["categoryId"] is None

    def test_invalid_body(self, client):
        body = {**PLANT_BODY, "identification": {"species": "Ficus"}}
        response = client.post("/api/v1/plants", json=body, headers=HEADERS)
        assert response.status_code == 422


class TestCategories:

    def test_empty_name_rejected(self, client):
        response = client.post("/api/v1/categories", json={"name": "   "}, headers=HEADERS)
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationFailed"

    def test_delete_keeps_plants(self, client):
        category = client.post("/api/v1/categories", json={"name": "Figs"}, headers=HEADERS).json()
        plant = _add_plant(client, categoryId=category["id"])

        response = client.delete(f"/api/v1/categories/{category['id']}", headers=HEADERS)
        assert response.status_code == 204

        assert client.get("/api/v1/categories", headers=HEADERS).json() == []
        [listed] = client.get("/api/v1/plants", headers=HEADERS).json()
        assert listed["id"] == plant["id"]
        assert listed["categoryId"] is None


class TestTasks:

    def test_complete_recurring_task(self, client):
        plant = _add_plant(client)
        tasks = client.get("/api/v1/tasks", headers=HEADERS).json()
        water = next(t for t in tasks if t["type"] == "water")

        response = client.post(f"/api/v1/tasks/{water['id']}/complete", headers=HEADERS)
        assert response.status_code == 200
        result = response.json()
        assert result["task"]["completedAt"] is not None
        assert result["successor"]["plantId"] == plant["id"]
        assert result["successor"]["notes"] == "Every 7-10 days"

        again = client.post(f"/api/v1/tasks/{water['id']}/complete", headers=HEADERS).json()
        assert again["successor"] is None
        assert len(client.get("/api/v1/tasks", headers=HEADERS).json()) == 3

    def test_due_filter(self, client):
        plant = _add_plant(client)
        client.post(
            f"/api/v1/plants/{plant['id']}/tasks",
            json={"type": "prune", "title": "Prune", "nextRunAt": "2000-01-01T00:00:00Z"},
            headers=HEADERS,
        )

        due_now = client.get("/api/v1/tasks", params={"due_within_days": 0}, headers=HEADERS).json()
        assert [t["title"] for t in due_now] == ["Prune"]

        due_week = client.get("/api/v1/tasks", params={"due_within_days": 8}, headers=HEADERS).json()
        assert [t["type"] for t in due_week] == ["prune", "water"]

    def test_complete_unknown(self, client):
        response = client.post("/api/v1/tasks/missing/complete", headers=HEADERS)
        assert response.status_code == 404


class TestPhotosAndHistory:

    def test_upload_photo(self, client, tmp_path):
        plant = _add_plant(client, initialPhotoUrl="https://img/first.jpg")
        image = io.BytesIO()
        Image.new("RGB", (200, 100)).save(image, format="PNG")

        response = client.post(
            f"/api/v1/plants/{plant['id']}/photos/upload",
            files={"file": ("leaf.png", image.getvalue(), "image/png")},
            headers=HEADERS,
        )
        assert response.status_code == 201
        photo = response.json()
        assert os.path.exists(photo["url"])
        assert Image.open(photo["url"]).size == (64, 32)

        details = client.get(f"/api/v1/plants/{plant['id']}", headers=HEADERS).json()
        assert details["photos"][0]["id"] == photo["id"]

    def test_upload_rejects_non_image(self, client):
        plant = _add_plant(client)
        response = client.post(
            f"/api/v1/plants/{plant['id']}/photos/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=HEADERS,
        )
        assert response.status_code == 400

    def test_upload_to_unknown_plant_leaves_no_file(self, client, tmp_path):
        image = io.BytesIO()
        Image.new("RGB", (10, 10)).save(image, format="PNG")
        response = client.post(
            "/api/v1/plants/missing/photos/upload",
            files={"file": ("leaf.png", image.getvalue(), "image/png")},
            headers=HEADERS,
        )
        assert response.status_code == 404
        uploads = tmp_path / "uploads"
        assert not uploads.exists() or list(uploads.iterdir()) == []

    def test_history(self, client):
        plant = _add_plant(client)
        response = client.post(
            "/api/v1/history",
            json={"plantId": plant["id"], "question": "Why brown spots?", "answer": "Too much sun"},
            headers=HEADERS,
        )
        assert response.status_code == 201
        entry = response.json()

        listed = client.get(f"/api/v1/plants/{plant['id']}/history", headers=HEADERS).json()
        assert [h["id"] for h in listed] == [entry["id"]]

        assert client.delete(f"/api/v1/history/{entry['id']}", headers=HEADERS).status_code == 204
        assert client.get(f"/api/v1/plants/{plant['id']}/history", headers=HEADERS).json() == []


class TestClearAllData:

    def test_clears_only_caller(self, client):
        _add_plant(client)
        other = client.post("/api/v1/plants", json=PLANT_BODY, headers={"X-Owner-Id": "owner-2"})
        assert other.status_code == 201

        assert client.delete("/api/v1/data", headers=HEADERS).status_code == 204
        assert client.get("/api/v1/plants", headers=HEADERS).json() == []
        assert len(client.get("/api/v1/plants", headers={"X-Owner-Id": "owner-2"}).json()) == 1
