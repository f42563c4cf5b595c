"""End-to-end flow through the API."""

import asyncio
import pytest


@pytest.mark.asyncio
class TestEndToEnd:

    async def test_register_shorten_follow(self, client):
        """Register, shorten, follow and see the click on the dashboard."""
        response = await client.post(
            "/api/register",
            data={"username": "alice", "email": "alice@example.com", "password": "wonderland1"},
        )
        assert response.status_code == 201

        response = await client.post("/api/login", data={"username": "alice", "password": "wonderland1"})
        headers = {"Authorization": f"Bearer {response.headers['X-Auth-Token']}"}

        response = await client.post("/api/new", data={"url": "example.com"}, headers=headers)
        assert response.status_code == 201
        key = response.json()["key"]
        assert len(key) == 10
        assert response.json()["url"] == "https://example.com"

        response = await client.get(f"/{key}")
        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com"

        response = await client.post(f"/api/r/{key}")
        assert response.json() == {"url": "https://example.com"}

        urls = (await client.get("/api/dashboard", headers=headers)).json()["urls"]
        assert urls[0]["clicks"] == 2

        stats = (await client.get("/api/stats")).json()
        assert stats["total_users"] == 1
        assert stats["total_links"] == 1
        assert stats["total_clicks"] == 2

    async def test_concurrent_redirects(self, client, service, store, alice):
        """Many simultaneous visits are all redirected and all counted."""
        link = await service.create_link(alice, "https://example.com")
        concurrency = 50

        responses = await asyncio.gather(*(client.get(f"/{link.key}") for _ in range(concurrency)))

        assert all(r.status_code == 302 for r in responses)
        assert (await store.get_link_by_key(link.key)).clicks == concurrency
