"""
Tests for the HTTP API running on the in-memory storage backend.
"""

import asyncio
import csv
import io
import os
import tempfile
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from yarnstash.api import ApiAuth
from yarnstash.config import AppConfig, StorageBackend
from yarnstash.data import SQLiteConnection, run_migrations
from yarnstash.main import create_app
from yarnstash.models import utc_now

from conftest import Seeder, ts

JWT_SECRET = "test-secret"


async def seed_database(db_path):
    await run_migrations(db_path)
    conn = SQLiteConnection(db_path, pool_size=1)
    await conn.connect()
    try:
        seed = Seeder(conn)
        await seed.user("alice@example.com")
        await seed.user("bob@example.com")
        now = utc_now()
        await seed.yarn(1, "Teal", now - timedelta(hours=1), price=10)
        await seed.yarn(1, 'Red "Ruby"', now - timedelta(hours=2))
        await seed.pattern(1, "Shawl", now - timedelta(hours=3))
        await seed.yarn(2, "Bob's Yarn", now)
        list_id = await seed.shopping_list(1, "Winter", ts(2024, 11, 1))
        await seed.shopping_item(list_id, "notion", item_name="Stitch markers", estimated_price=4)
    finally:
        await conn.disconnect()


@pytest.fixture
def config():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = AppConfig()
        config.database.path = os.path.join(tmpdir, "api.db")
        config.database.pool_size = 2
        config.drive.backend = StorageBackend.MEMORY
        config.drive.client_id = "client-id"
        config.drive.client_secret = "client-secret"
        config.backup.pattern_files_dir = tmpdir
        config.api.jwt_secret = JWT_SECRET
        asyncio.run(seed_database(config.database.path))
        yield config


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as client:
        yield client


def auth_headers(user_id=1, email="alice@example.com"):
    token = ApiAuth(JWT_SECRET).create_jwt(user_id, email)
    return {"Authorization": f"Bearer {token}"}


class TestAuth:

    def test_requires_token(self, client):
        response = client.get("/api/v1/activity/recent")
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"

    def test_rejects_bad_token(self, client):
        headers = {"Authorization": "Bearer not-a-jwt"}
        response = client.get("/api/v1/activity/recent", headers=headers)
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_TOKEN"

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["storage_backend"] == "memory"
        assert response.json()["scheduler_running"] is False


class TestActivityRoutes:

    def test_recent(self, client):
        response = client.get("/api/v1/activity/recent?limit=2", headers=auth_headers())

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["totalPages"] == 2
        assert [a["id"].split("-")[0] for a in data["activities"]] == ["yarn", "yarn"]

    def test_recent_type_filter(self, client):
        response = client.get(
            "/api/v1/activity/recent?type=pattern,project", headers=auth_headers()
        )
        assert [a["type"] for a in response.json()["activities"]] == ["pattern"]

    def test_validation_errors_are_400(self, client):
        response = client.get("/api/v1/activity/recent?page=0", headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_PAGE"

        response = client.get("/api/v1/activity/calendar?year=2024&month=13", headers=auth_headers())
        assert response.status_code == 400

    def test_summary_and_calendar(self, client):
        summary = client.get("/api/v1/activity/summary", headers=auth_headers()).json()
        assert summary["period"] == "week"
        assert summary["summary"]["yarnAdded"] == 2

        now = utc_now()
        calendar = client.get(
            f"/api/v1/activity/calendar?year={now.year}&month={now.month}",
            headers=auth_headers(),
        ).json()
        assert calendar["month"] == now.month

    def test_export_csv(self, client):
        response = client.get("/api/v1/activity/export?format=csv", headers=auth_headers())

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="activity-log.csv"' in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert ["User: alice@example.com"] in rows
        assert any(row[3:4] == ['Red "Ruby"'] for row in rows)
        assert not any("Bob's Yarn" in row for row in rows)

    def test_export_bad_format(self, client):
        response = client.get("/api/v1/activity/export?format=xml", headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_FORMAT"


class TestDashboardRoutes:

    def test_stats(self, client):
        stats = client.get("/api/v1/dashboard/stats", headers=auth_headers()).json()
        assert stats["totalYarn"] == 2
        assert stats["yarnValue"] == "10.00"

    def test_completion_rate(self, client):
        rate = client.get("/api/v1/dashboard/completion-rate", headers=auth_headers()).json()
        assert rate == {
            "period": "year",
            "projectsStarted": 0,
            "projectsCompleted": 0,
            "completionRate": 0,
        }


class TestShoppingRoutes:

    def test_text_export_by_default(self, client):
        response = client.get("/api/v1/shopping-lists/1/export", headers=auth_headers())

        assert response.status_code == 200
        assert response.text.startswith("Winter\n")
        assert "□ 1x Stitch markers ($4.00)" in response.text

    def test_other_users_list_is_not_found(self, client):
        response = client.get("/api/v1/shopping-lists/1/export", headers=auth_headers(2))
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "SHOPPING_LIST_NOT_FOUND"


class TestDriveRoutes:

    def test_status(self, client):
        data = client.get("/api/v1/drive/status", headers=auth_headers()).json()
        assert data["connected"] is True
        assert data["backend"] == "memory"
        assert data["quota"]["usage"] == 0

    def test_connect_and_bad_callback(self, client):
        data = client.get("/api/v1/drive/connect", headers=auth_headers()).json()
        assert data["state"] in data["authUrl"]

        response = client.get(
            "/api/v1/drive/callback?code=abc&state=forged", follow_redirects=False
        )
        assert response.status_code in (302, 307)
        assert response.headers["location"].endswith("/settings?error=invalid_state")

    def test_backup_list_and_cleanup(self, client):
        headers = auth_headers()
        for _ in range(3):
            response = client.post("/api/v1/drive/backup/full", headers=headers)
            assert response.status_code == 200
            assert response.json()["backup"]["name"].startswith("backup_1_")

        backups = client.get("/api/v1/drive/backups", headers=headers).json()
        assert len(backups) == 3

        cleanup = client.delete("/api/v1/drive/backups/cleanup?keepCount=1", headers=headers).json()
        assert cleanup["deletedCount"] == 2
        assert cleanup["keptCount"] == 1

        log = client.get("/api/v1/drive/sync-log", headers=headers).json()
        assert log["total"] == 5
        assert [e["syncType"] for e in log["entries"][:2]] == ["file_delete", "file_delete"]

    def test_cleanup_rejects_bad_keep_count(self, client):
        response = client.delete(
            "/api/v1/drive/backups/cleanup?keepCount=lots", headers=auth_headers()
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_KEEP_COUNT"

    def test_file_round_trip(self, client):
        headers = auth_headers()
        uploaded = client.post(
            "/api/v1/drive/files",
            files={"file": ("notes.txt", b"k2tog", "text/plain")},
            headers=headers,
        ).json()

        download = client.get(f"/api/v1/drive/files/{uploaded['objectId']}", headers=headers)
        assert download.content == b"k2tog"

        assert client.delete(f"/api/v1/drive/files/{uploaded['objectId']}", headers=headers).status_code == 200
        missing = client.delete(f"/api/v1/drive/files/{uploaded['objectId']}", headers=headers)
        assert missing.status_code == 404

    def test_download_name_is_sanitized(self, client):
        headers = auth_headers()
        uploaded = client.post(
            "/api/v1/drive/files",
            files={"file": ("chart.pdf", b"%PDF", "application/pdf")},
            headers=headers,
        ).json()

        response = client.get(
            f"/api/v1/drive/files/{uploaded['objectId']}",
            params={"filename": 'my "chart"\r\nX-Evil: 1.pdf'},
            headers=headers,
        )

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert disposition == 'attachment; filename="my _chart_X-Evil_ 1.pdf"'
        assert "x-evil" not in response.headers

    def test_folders(self, client):
        headers = auth_headers()
        folders = client.get("/api/v1/drive/folders", headers=headers).json()
        assert folders[0]["name"] == "Yarn Management"
        assert {f["name"] for f in folders[1:]} == {
            "Patterns", "Yarn Photos", "Project Photos", "Backups",
        }

        created = client.post("/api/v1/drive/folders", json={"name": "Swatches"}, headers=headers)
        assert created.json()["name"] == "Swatches"

    def test_restore_not_implemented(self, client):
        response = client.post("/api/v1/drive/restore/abc", headers=auth_headers())
        assert response.status_code == 501
