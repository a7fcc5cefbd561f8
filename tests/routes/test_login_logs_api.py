"""Tests for the login logs API."""
from httpx import AsyncClient


class TestLoginLogsApi:
    async def test_create_captures_client_ip(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/login-logs",
            json={
                "username": "admin",
                "platform": "Win32",
                "language": "en-US",
                "online": True,
                "screenWidth": 1920,
                "screenHeight": 1080,
                "cookiesEnabled": True,
                "hardwareConcurrency": 8,
                "deviceMemory": 8,
                "brands": [{"brand": "Chromium", "version": "131"}],
                "mobile": False,
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["username"] == "admin"
        assert body["ip"] == "127.0.0.1"
        assert body["screenWidth"] == 1920
        assert body["brands"] == [{"brand": "Chromium", "version": "131"}]
        assert "password" not in body

    async def test_list_newest_first(self, async_client: AsyncClient):
        for name in ("first", "second", "third"):
            await async_client.post("/api/login-logs", json={"username": name})

        response = await async_client.get("/api/login-logs", params={"perPage": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["lastPage"] == 2
        assert [log["username"] for log in body["data"]] == ["third", "second"]

    async def test_username_required(self, async_client: AsyncClient):
        response = await async_client.post("/api/login-logs", json={"platform": "Linux"})

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
