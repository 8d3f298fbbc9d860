"""HTTP surface for user profiles and run history."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import RUNNER_ADDRESS, run_payload

pytestmark = pytest.mark.asyncio


class TestProfile:
    async def test_profile_after_runs(self, client: AsyncClient):
        await client.post("/api/v1/run/submit", json=run_payload())
        await client.post("/api/v1/run/submit", json=run_payload(deviceHash=None))

        response = await client.get(f"/api/v1/users/{RUNNER_ADDRESS}")

        assert response.status_code == 200
        data = response.json()
        assert data["walletAddress"] == RUNNER_ADDRESS
        assert data["exp"] == 100
        assert data["level"] == 2
        assert data["tier"] == 1
        assert data["runCount"] == 2
        assert data["verifiedRunCount"] == 1
        assert data["totalDistanceMeters"] == 10000
        assert data["attestationSequence"] == 0

    async def test_lookup_is_case_insensitive(self, client: AsyncClient):
        await client.post("/api/v1/run/submit", json=run_payload())
        response = await client.get(f"/api/v1/users/{RUNNER_ADDRESS.upper().replace('0X', '0x')}")
        assert response.status_code == 200

    async def test_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/v1/users/0x" + "00" * 20)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ERR_NOT_FOUND"

    async def test_invalid_address(self, client: AsyncClient):
        response = await client.get("/api/v1/users/not-an-address")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ERR_BAD_REQUEST"


class TestMe:
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "ERR_UNAUTHORIZED"

    async def test_returns_own_profile(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/v1/users/me")
        assert response.status_code == 200
        assert response.json()["walletAddress"] == RUNNER_ADDRESS


class TestRunHistory:
    async def test_newest_first_with_paging(self, client: AsyncClient):
        ids = []
        for distance in (5000, 6000, 7000):
            submitted = await client.post("/api/v1/run/submit", json=run_payload(distanceMeters=distance))
            ids.append(submitted.json()["runId"])

        response = await client.get(f"/api/v1/users/{RUNNER_ADDRESS}/runs", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert [r["runId"] for r in data["runs"]] == [ids[2], ids[1]]
        assert data["limit"] == 2

        page2 = await client.get(f"/api/v1/users/{RUNNER_ADDRESS}/runs", params={"limit": 2, "offset": 2})
        assert [r["runId"] for r in page2.json()["runs"]] == [ids[0]]

    async def test_limit_bounds(self, client: AsyncClient):
        await client.post("/api/v1/run/submit", json=run_payload())
        response = await client.get(f"/api/v1/users/{RUNNER_ADDRESS}/runs", params={"limit": 500})
        assert response.status_code == 400
