"""Tests for the row items API."""
import re

from httpx import AsyncClient

FORM = {"title": "Report", "description": "quarterly", "password": "secret", "fingerprint": "fp1"}
TWO_FILES = [
    ("files", ("a.txt", b"alpha", "text/plain")),
    ("files", ("b.txt", b"bravo", "text/plain")),
]


async def _create(client: AsyncClient, files=None, **overrides):
    data = {**FORM, **overrides}
    return await client.post("/api/rows", data=data, files=files or [])


class TestCreateRow:
    async def test_create_with_files_and_download(self, async_client: AsyncClient, zip_members):
        response = await _create(async_client, files=TWO_FILES)

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Report"
        assert body["description"] == "quarterly"
        assert body["fingerprint"] == "fp1"
        assert body["ownerIp"] == "127.0.0.1"
        assert body["isDeleted"] is False
        assert "password" not in body
        assert len(body["filePaths"]) == 1
        match = re.fullmatch(r"uploads/cdmi/secret_Report_(.+)\.zip", body["filePaths"][0])
        assert match
        stamp = match.group(1)

        download = await async_client.get(f"/api/rows/{body['id']}/download")
        assert download.status_code == 200
        assert zip_members(download.content) == {
            f"1_Report_{stamp}.txt": b"alpha",
            f"2_Report_{stamp}.txt": b"bravo",
        }

    async def test_create_without_files(self, async_client: AsyncClient):
        response = await _create(async_client)

        assert response.status_code == 201
        assert response.json()["filePaths"] == []

    async def test_blocked_fingerprint_gets_403(self, async_client: AsyncClient):
        first = await _create(async_client, fingerprint="fp2")
        assert first.status_code == 201

        toggled = await async_client.post("/api/fingerprints/fp2/toggle-block")
        assert toggled.status_code == 200
        assert toggled.json()["isBlocked"] is True

        second = await _create(async_client, files=TWO_FILES, fingerprint="fp2")
        assert second.status_code == 403
        assert second.json()["error"] == "forbidden"

        listing = await async_client.get("/api/rows")
        assert listing.json()["total"] == 1

    async def test_only_empty_files(self, async_client: AsyncClient):
        response = await _create(async_client, files=[("files", ("empty.txt", b"", "text/plain"))])

        assert response.status_code == 404
        assert response.json()["error"] == "no_valid_files"

    async def test_missing_fingerprint_is_rejected(self, async_client: AsyncClient):
        response = await async_client.post("/api/rows", data={"title": "Report"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert any(err["loc"] == ["fingerprint"] for err in body["details"]["errors"])

    async def test_title_too_long(self, async_client: AsyncClient):
        response = await _create(async_client, title="x" * 256)

        assert response.status_code == 422


class TestReadRows:
    async def test_get_row(self, async_client: AsyncClient):
        created = (await _create(async_client)).json()

        response = await async_client.get(f"/api/rows/{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    async def test_get_unknown_row(self, async_client: AsyncClient):
        response = await async_client.get("/api/rows/9999")

        assert response.status_code == 404
        assert response.json() == {
            "error": "not_found",
            "message": "Row item not found",
            "details": {"id": 9999},
        }

    async def test_list_envelope_and_deleted_filter(self, async_client: AsyncClient):
        ids = [(await _create(async_client, title=f"row {i}")).json()["id"] for i in range(3)]
        await async_client.post(f"/api/rows/{ids[0]}/toggle-delete")

        visible = (await async_client.get("/api/rows", params={"perPage": 1})).json()
        assert visible["total"] == 2
        assert visible["perPage"] == 1
        assert visible["currentPage"] == 1
        assert visible["lastPage"] == 2
        assert [r["id"] for r in visible["data"]] == [ids[2]]

        everything = (await async_client.get("/api/rows", params={"includeDeleted": "true"})).json()
        assert [r["id"] for r in everything["data"]] == list(reversed(ids))


class TestUpdateRow:
    async def test_patch_appends_loose_files(self, async_client: AsyncClient):
        created = (await _create(async_client, files=TWO_FILES)).json()

        response = await async_client.patch(
            f"/api/rows/{created['id']}",
            data={"title": "Report v2"},
            files=[("files", ("c.txt", b"charlie", "text/plain"))],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Report v2"
        assert body["description"] == "quarterly"
        assert body["filePaths"][0] == created["filePaths"][0]
        assert len(body["filePaths"]) == 2
        assert body["filePaths"][1].endswith(".txt")

    async def test_put_unknown_row(self, async_client: AsyncClient):
        response = await async_client.put("/api/rows/4242", data={"title": "x"})

        assert response.status_code == 404


class TestDeleteRow:
    async def test_toggle_delete_round_trip(self, async_client: AsyncClient):
        created = (await _create(async_client, files=TWO_FILES)).json()

        trashed = (await async_client.post(f"/api/rows/{created['id']}/toggle-delete")).json()
        assert trashed["isDeleted"] is True
        assert "/delete/" in trashed["filePaths"][0]

        restored = (await async_client.post(f"/api/rows/{created['id']}/toggle-delete")).json()
        assert restored["isDeleted"] is False
        assert restored["filePaths"] == created["filePaths"]

        download = await async_client.get(f"/api/rows/{created['id']}/download")
        assert download.status_code == 200

    async def test_hard_delete_with_credential(self, async_client: AsyncClient):
        created = (await _create(async_client, files=TWO_FILES)).json()

        denied = await async_client.delete(f"/api/rows/{created['id']}/wrong")
        assert denied.status_code == 403

        response = await async_client.delete(f"/api/rows/{created['id']}/secret")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Row item deleted successfully"
        assert body["data"]["id"] == created["id"]

        assert (await async_client.get(f"/api/rows/{created['id']}")).status_code == 404
        assert (await async_client.get(f"/api/rows/{created['id']}/download")).status_code == 404

    async def test_hard_delete_without_credential(self, async_client: AsyncClient):
        created = (await _create(async_client)).json()

        response = await async_client.delete(f"/api/rows/{created['id']}")

        assert response.status_code == 200

    async def test_hard_delete_unknown_row(self, async_client: AsyncClient):
        response = await async_client.delete("/api/rows/777/secret")

        assert response.status_code == 404


class TestDownload:
    async def test_row_without_files(self, async_client: AsyncClient):
        created = (await _create(async_client)).json()

        response = await async_client.get(f"/api/rows/{created['id']}/download")

        assert response.status_code == 404
        assert response.json()["error"] == "no_content"

    async def test_missing_blob(self, async_client: AsyncClient, storage):
        created = (await _create(async_client, files=TWO_FILES)).json()
        await storage.delete(created["filePaths"][0])

        response = await async_client.get(f"/api/rows/{created['id']}/download")

        assert response.status_code == 404
        assert response.json()["error"] == "missing_blob"
