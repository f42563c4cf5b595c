"""Tests for the HTML interface."""

import pytest


async def _login(client, username="alice", password="wonderland1"):
    return await client.post("/login", data={"username": username, "password": password})


@pytest.mark.asyncio
class TestWebAuth:

    async def test_dashboard_redirects_to_login(self, client):
        response = await client.get("/")

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    async def test_login_redirect_keeps_forwarded_prefix(self, client):
        response = await client.get("/", headers={"X-Forwarded-Prefix": "/s"})

        assert response.status_code == 303
        assert response.headers["location"] == "/s/login"

    async def test_login_page(self, client):
        response = await client.get("/login")

        assert response.status_code == 200
        assert "Log in" in response.text

    async def test_failed_login_flashes_error(self, client, alice):
        response = await _login(client, password="wrong-password")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

        page = await client.get("/login")
        assert "Invalid username or password" in page.text

        # Flashes are shown once
        page = await client.get("/login")
        assert "Invalid username or password" not in page.text

    async def test_login_and_dashboard(self, client, alice):
        response = await _login(client)
        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert "session" in response.cookies

        page = await client.get("/")
        assert page.status_code == 200
        assert "alice" in page.text
        assert "You have no links yet." in page.text

    async def test_logout(self, client, alice):
        await _login(client)

        response = await client.post("/logout")
        assert response.status_code == 303

        response = await client.get("/")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    async def test_register(self, client, service):
        response = await client.post(
            "/register",
            data={"username": "carol", "email": "carol@example.com", "password": "carolpass1"},
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert "Account created" in (await client.get("/login")).text
        assert (await service.authenticate("carol", "carolpass1")).username == "carol"

    async def test_register_error_is_flashed(self, client):
        response = await client.post("/register", data={"username": "carol"})
        assert response.headers["location"] == "/register"

        assert "All fields are required" in (await client.get("/register")).text


@pytest.mark.asyncio
class TestWebLinks:

    async def test_create_edit_delete(self, client, service, alice):
        await _login(client)

        response = await client.post("/links", data={"url": "example.com"})
        assert response.status_code == 303

        links = await service.list_links(alice)
        assert len(links) == 1
        page = await client.get("/")
        assert f"http://testserver/{links[0].key}" in page.text
        assert "Created short link" in page.text

        await client.post(f"/links/{links[0].id}/edit", data={"url": "example.org"})
        assert (await service.get_link(alice, links[0].id)).url == "https://example.org"

        await client.post(f"/links/{links[0].id}/delete")
        assert await service.list_links(alice) == []

    async def test_invalid_url_is_flashed(self, client, alice):
        await _login(client)

        await client.post("/links", data={"url": "ftp://example.com"})
        page = await client.get("/")
        assert "Invalid URL" in page.text

    async def test_cannot_delete_others_link(self, client, service, alice, bob):
        link = await service.create_link(bob, "https://bob.example")
        await _login(client)

        await client.post(f"/links/{link.id}/delete")
        assert "You do not own this link" in (await client.get("/")).text
        assert (await service.get_link(bob, link.id)).url == "https://bob.example"


@pytest.mark.asyncio
class TestWebRedirect:

    async def test_redirect(self, client, service, store, alice):
        link = await service.create_link(alice, "https://example.com/page")

        response = await client.get(f"/{link.key}")
        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/page"
        assert (await store.get_link_by_key(link.key)).clicks == 1

    async def test_unknown_key(self, client):
        response = await client.get("/NoSuchKey0")

        assert response.status_code == 404
        assert "does not exist" in response.text

    async def test_password_form(self, client, service, store, alice):
        link = await service.create_link(alice, "https://example.com/secret", password="opensesame")

        response = await client.get(f"/{link.key}")
        assert response.status_code == 200
        assert "password protected" in response.text

        response = await client.post(f"/{link.key}", data={"password": "wrong-one"})
        assert response.status_code == 401
        assert "Incorrect password" in response.text

        response = await client.post(f"/{link.key}", data={"password": "opensesame"})
        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/secret"
        assert (await store.get_link_by_key(link.key)).clicks == 1

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
class TestAnonymousSessions:

    async def test_following_links_stores_no_session(self, client, service, sessions, alice):
        link = await service.create_link(alice, "https://example.com/page")

        for _ in range(50):
            response = await client.get(f"/{link.key}")
            assert response.status_code == 302
            assert "session" not in response.cookies

        assert len(sessions._sessions) == 0

    async def test_pages_without_flash_store_no_session(self, client, service, sessions, alice):
        link = await service.create_link(alice, "https://example.com/secret", password="opensesame")

        assert (await client.get("/login")).status_code == 200
        assert (await client.get("/register")).status_code == 200
        assert (await client.get("/NoSuchKey0")).status_code == 404
        assert (await client.get(f"/{link.key}")).status_code == 200
        response = await client.post(f"/{link.key}", data={"password": "wrong-one"})
        assert response.status_code == 401
        assert "session" not in response.cookies
        assert (await client.post("/logout")).status_code == 303

        assert len(sessions._sessions) == 0

    async def test_failed_login_stores_one_session(self, client, sessions, alice):
        await _login(client, password="wrong-password")
        await _login(client, password="wrong-again")

        assert len(sessions._sessions) == 1

    async def test_login_replaces_session(self, client, sessions, alice):
        await _login(client, password="wrong-password")
        first = set(sessions._sessions)

        await _login(client)

        assert len(sessions._sessions) == 1
        assert set(sessions._sessions).isdisjoint(first)
