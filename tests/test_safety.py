"""Tests for the Safe Browsing client and the safety policy."""

import httpx
import pytest

from shortlink.errors import DependencyError, UnsafeURLError
from shortlink.safety import SafeBrowsingClient, SafetyPolicy, screen_url

UNSAFE_URL = "https://malware.example/download"


def _lookup_handler(request: httpx.Request) -> httpx.Response:
    """Fake Lookup API: flags UNSAFE_URL, everything else is clean."""
    assert request.url.params["key"] == "test-key"
    body = request.read().decode("utf-8")
    if UNSAFE_URL in body:
        return httpx.Response(200, json={"matches": [{"threatType": "MALWARE", "threat": {"url": UNSAFE_URL}}]})
    return httpx.Response(200, json={})


def _failing_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectTimeout("timed out", request=request)


async def _client(tmp_path, handler=_lookup_handler, required=False, threats=None, logger=None):
    db_path = tmp_path / "threats.txt"
    if threats is not None:
        db_path.write_text(threats, encoding="utf-8")

    client = SafeBrowsingClient(
        api_key="test-key",
        db_path=str(db_path),
        required=required,
        transport=httpx.MockTransport(handler),
        logger=logger,
    )
    await client.connect()
    return client


class TestSafeBrowsingClient:

    async def test_clean_url(self, tmp_path, logger):
        client = await _client(tmp_path, logger=logger)
        assert client.enabled

        assert await client.check("https://example.com") == (True, None)
        await client.close()

    async def test_flagged_url(self, tmp_path, logger):
        client = await _client(tmp_path, logger=logger)

        assert await client.check(UNSAFE_URL) == (False, None)
        await client.close()

    async def test_lookup_error(self, tmp_path, logger):
        client = await _client(tmp_path, handler=_failing_handler, logger=logger)

        is_safe, error = await client.check("https://example.com")
        assert error is not None
        await client.close()

    async def test_http_error_status(self, tmp_path, logger):
        client = await _client(tmp_path, handler=lambda request: httpx.Response(500), logger=logger)

        _, error = await client.check("https://example.com")
        assert isinstance(error, httpx.HTTPStatusError)
        await client.close()

    async def test_local_threat_list(self, tmp_path, logger):
        threats = "# local blocklist\nEvil.Example\nhttps://bad.example/exact  # exact url\n"
        client = await _client(tmp_path, handler=_failing_handler, threats=threats, logger=logger)

        # Matches never reach the network
        assert await client.check("https://evil.example/anything") == (False, None)
        assert await client.check("https://bad.example/exact") == (False, None)
        await client.close()

    async def test_disabled_without_credentials(self, logger):
        client = SafeBrowsingClient(logger=logger)
        await client.connect()

        assert not client.enabled
        assert client.policy is SafetyPolicy.LENIENT
        _, error = await client.check("https://example.com")
        assert error is not None

    async def test_required_without_credentials(self):
        client = SafeBrowsingClient(required=True)

        with pytest.raises(RuntimeError):
            await client.connect()

    async def test_required_with_unreadable_db(self, tmp_path):
        # A directory cannot be read as a threat list
        client = SafeBrowsingClient(api_key="test-key", db_path=str(tmp_path), required=True)

        with pytest.raises(RuntimeError):
            await client.connect()


class TestScreenURL:

    async def test_no_oracle_passes(self):
        await screen_url(None, "https://example.com")

    async def test_disabled_oracle_passes(self):
        await screen_url(SafeBrowsingClient(), "https://example.com")

    async def test_unsafe_blocks(self, tmp_path, logger):
        client = await _client(tmp_path, logger=logger)

        with pytest.raises(UnsafeURLError):
            await screen_url(client, UNSAFE_URL, logger)

    async def test_strict_failure_blocks(self, tmp_path, logger):
        client = await _client(tmp_path, handler=_failing_handler, required=True, logger=logger)

        with pytest.raises(DependencyError) as exc_info:
            await screen_url(client, "https://example.com", logger)
        assert exc_info.value.status_code == 503

    async def test_lenient_failure_proceeds(self, tmp_path, logger):
        client = await _client(tmp_path, handler=_failing_handler, required=False, logger=logger)

        await screen_url(client, "https://example.com", logger)
