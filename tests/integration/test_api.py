"""API tests through FastAPI's TestClient with services injected."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from dailyspark.api.app import create_app
from dailyspark.config import Settings
from dailyspark.curriculum.models import User
from dailyspark.errors import StoreError
from tests.factories import make_curriculum, make_topic, seed_curriculum, seed_user


@pytest.fixture
def client(services):
    with TestClient(create_app(services=services)) as test_client:
        yield test_client


@pytest.fixture
def ada(store, settings):
    user = User(id="u-ada", display_name="Ada", email="ada@example.com")
    seed_user(store, settings, user)
    seed_curriculum(
        store,
        settings,
        make_curriculum("c-a", user.id, "Algorithms", [make_topic("Sorting", 3725)]),
    )
    return user


class TestAppSettings:
    def test_routes_use_the_settings_the_app_was_built_with(self, tmp_path):
        db_path = tmp_path / "injected.db"
        app = create_app(Settings(database_path=db_path, max_users_limit=0))

        with TestClient(app) as client:
            response = client.post(
                "/api/users", json={"email": "ada@example.com", "displayName": "Ada"}
            )

        assert response.status_code == 400
        assert "Maximum allowed users: 0" in response.json()["detail"]
        assert app.state.services.settings.database_path == db_path
        assert db_path.exists()

    def test_services_are_built_once_per_app(self, tmp_path):
        app = create_app(Settings(database_path=tmp_path / "once.db"))

        with TestClient(app) as client:
            client.get("/health")
            first = app.state.services
            client.get("/api/users/count")

        assert first is not None
        assert app.state.services is first


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["email"] == {"configured": False}
        assert body["aggregation_latency"]["count"] == 0

    def test_root_lists_endpoints(self, client):
        assert client.get("/").json()["endpoints"]["process_all"] == "/api/process-all"


class TestUsers:
    def test_create_get_and_count(self, client):
        response = client.post(
            "/api/users", json={"email": "ada@example.com", "displayName": "Ada"}
        )

        assert response.status_code == 200
        created = response.json()
        assert created["displayName"] == "Ada"
        assert client.get(f"/api/users/{created['id']}").json() == created
        assert client.get("/api/users/count").json() == {"totalUsers": 1}

    def test_missing_fields_are_400(self, client):
        response = client.post("/api/users", json={"email": "ada@example.com"})

        assert response.status_code == 400
        assert response.json() == {"detail": "DisplayName is required"}

    def test_duplicate_id_is_400(self, client):
        payload = {"id": "u-1", "email": "a@example.com", "displayName": "A"}
        client.post("/api/users", json=payload)

        response = client.post("/api/users", json=payload)

        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_limit_is_400_with_counts(self, client):
        for i in range(5):
            client.post("/api/users", json={"email": f"{i}@example.com", "displayName": str(i)})

        response = client.post("/api/users", json={"email": "x@example.com", "displayName": "X"})

        assert response.status_code == 400
        assert response.json()["detail"] == (
            "User limit reached. Maximum allowed users: 5. Current users: 5"
        )

    def test_unknown_user_is_404(self, client):
        assert client.get("/api/users/nobody").status_code == 404

    def test_update(self, client, ada):
        response = client.put("/api/users", json={"id": "u-ada", "displayName": "Ada L."})

        assert response.status_code == 200
        assert response.json()["displayName"] == "Ada L."

    def test_malformed_body_is_sanitized_422(self, client):
        response = client.post("/api/users", json={"email": ["not", "a", "string"]})

        assert response.status_code == 422
        body = response.json()
        assert body["invalid_fields"] == ["email"]
        assert "not" not in body["detail"]


class TestCurricula:
    def test_crud(self, client):
        created = client.post(
            "/api/curricula",
            json={
                "userId": "u-ada",
                "courseTitle": "Algorithms",
                "topics": [{"title": "Sorting", "estimatedTime": 600}],
            },
        ).json()
        assert created["status"] == "NotStarted"

        fetched = client.get(f"/api/curricula/{created['id']}", params={"userId": "u-ada"})
        assert fetched.json() == created

        updated = client.put(
            "/api/curricula",
            json={"id": created["id"], "userId": "u-ada", "status": "Active"},
        ).json()
        assert updated["status"] == "Active"
        assert updated["topics"][0]["title"] == "Sorting"

        listed = client.get("/api/curricula", params={"userId": "u-ada"}).json()
        assert [c["id"] for c in listed] == [created["id"]]

    def test_wrong_owner_is_404(self, client, ada):
        response = client.get("/api/curricula/c-a", params={"userId": "u-bob"})
        assert response.status_code == 404


class TestTopics:
    def test_query_topics(self, client, ada, sender):
        response = client.get("/api/topics", params={"userId": "u-ada"})

        assert response.status_code == 200
        assert response.json()[0] == {
            "courseTitle": "Algorithms",
            "title": "Sorting",
            "description": "About Sorting",
            "estimatedTime": "1 hour 2 minutes 5 seconds",
            "question": "What is Sorting?",
            "resources": ["https://example.com/sorting"],
            "status": "NotStarted",
        }
        assert sender.sent == []

    def test_query_topics_not_found(self, client):
        response = client.get("/api/topics", params={"userId": "nobody"})

        assert response.status_code == 404
        assert response.json()["detail"] == (
            "No active curriculum topics found for user with id nobody."
        )

    def test_process_user_sends_email(self, client, ada, sender):
        response = client.post("/api/topics/u-ada/process")

        assert response.status_code == 200
        assert response.json()["displayName"] == "Ada"
        assert [m.to for m in sender.sent] == ["ada@example.com"]

    def test_process_unknown_user_is_404(self, client, sender):
        assert client.post("/api/topics/nobody/process").status_code == 404
        assert sender.sent == []

    def test_process_all(self, client, ada, store, settings):
        seed_user(store, settings, User(id="u-bob", display_name="Bob", email="bob@example.com"))

        body = client.post("/api/process-all").json()

        assert [r["userId"] for r in body["results"]] == ["u-ada", "u-bob"]
        assert [r["status"] for r in body["results"]] == ["ok", "no_active_curricula"]
        assert body["summary"]["emails_sent"] == 1

    def test_store_failure_is_generic_500(self, client, ada, services):
        with patch.object(
            services.topics.users,
            "get_by_id",
            side_effect=StoreError("get_by_id", "unable to open /var/db/dailyspark.db"),
        ):
            response = client.post("/api/topics/u-ada/process")

        assert response.status_code == 500
        assert "dailyspark.db" not in response.json()["detail"]
