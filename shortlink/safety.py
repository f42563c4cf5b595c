"""URL reputation checks against Google Safe Browsing.

The client is created once at startup and shared by every request; the
underlying httpx.AsyncClient is safe for concurrent use. Lookups are bounded
by ``timeout_seconds`` so a slow reputation service never stalls a request
indefinitely.

Policy is fixed at startup: when the oracle is mandatory a failed lookup
blocks the operation (strict), otherwise the failure is logged and the
operation proceeds (lenient). An explicit "unsafe" verdict always blocks.
The same rule applies to link creation, update and resolution via
``screen_url``.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Set, Tuple
from urllib.parse import urlparse

import httpx

from .errors import DependencyError, UnsafeURLError


class SafetyPolicy(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"


class SafeBrowsingClient:
    """Client for the Safe Browsing v4 Lookup API plus a local threat list.

    The local threat database is a text file with one URL or host per line
    (``#`` starts a comment). Entries there are reported unsafe without a
    network round trip.
    """

    LOOKUP_URL = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
    THREAT_TYPES = [
        "MALWARE",
        "SOCIAL_ENGINEERING",
        "UNWANTED_SOFTWARE",
        "POTENTIALLY_HARMFUL_APPLICATION",
    ]

    def __init__(
        self,
        api_key: Optional[str] = None,
        db_path: Optional[str] = None,
        required: bool = False,
        timeout_seconds: float = 5.0,
        client_id: str = "shortlink",
        client_version: str = "1.0.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the client (no I/O until connect()).

        Args:
            api_key: Safe Browsing API key
            db_path: Local threat database path
            required: Fail startup if the oracle cannot be initialized
            timeout_seconds: Bound on each remote lookup
            client_id: Client id reported to the API
            client_version: Client version reported to the API
            transport: Optional httpx transport (tests use httpx.MockTransport)
            logger: Optional logger instance
        """
        self.api_key = api_key
        self.db_path = db_path
        self.required = required
        self.timeout_seconds = timeout_seconds
        self.client_id = client_id
        self.client_version = client_version
        self._transport = transport
        self.logger = logger or logging.getLogger(__name__)

        self.enabled = False
        self._client: Optional[httpx.AsyncClient] = None
        self._local_threats: Set[str] = set()

    @property
    def policy(self) -> SafetyPolicy:
        """Strict when the oracle is mandatory, lenient otherwise."""
        return SafetyPolicy.STRICT if self.required else SafetyPolicy.LENIENT

    async def connect(self) -> None:
        """Load the local threat list and open the HTTP client.

        Raises:
            RuntimeError: If the oracle is required and cannot be initialized
        """
        if not self.api_key or not self.db_path:
            message = "Safe Browsing API key or database path not provided"
            if self.required:
                raise RuntimeError(message)
            self.logger.info(f"{message}, safe browsing feature will be disabled")
            return

        try:
            self._local_threats = self._load_local_threats(Path(self.db_path))
        except OSError as e:
            if self.required:
                raise RuntimeError(f"Failed to initialize Safe Browsing: {e}") from e
            self.logger.error(f"Error initializing Safe Browsing, feature disabled: {e}")
            return

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=self._transport,
        )
        self.enabled = True
        self.logger.info(
            f"Safe Browsing enabled (policy={self.policy.value}, "
            f"{len(self._local_threats)} local entries)"
        )

    async def check(self, url: str) -> Tuple[bool, Optional[Exception]]:
        """Look up a URL.

        Returns:
            Tuple of (is_safe, error). ``error`` is set when no verdict could
            be obtained; ``is_safe`` is then meaningless.
        """
        if not self.enabled or self._client is None:
            return False, RuntimeError("Safe Browsing is not initialized")

        if self._matches_local(url):
            self.logger.debug(f"URL matched local threat list: {url}")
            return False, None

        body = {
            "client": {"clientId": self.client_id, "clientVersion": self.client_version},
            "threatInfo": {
                "threatTypes": self.THREAT_TYPES,
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": url}],
            },
        }

        try:
            response = await self._client.post(self.LOOKUP_URL, params={"key": self.api_key}, json=body)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            return False, e

        matches = data.get("matches") if isinstance(data, dict) else None
        return not matches, None

    async def close(self) -> None:
        """Release the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self.enabled = False

    def _matches_local(self, url: str) -> bool:
        if not self._local_threats:
            return False
        if url in self._local_threats:
            return True
        host = (urlparse(url).hostname or "").lower()
        return bool(host) and host in self._local_threats

    def _load_local_threats(self, path: Path) -> Set[str]:
        """Read the local threat list; a missing file is an empty list."""
        if not path.exists():
            self.logger.info(f"Local threat database {path} not found, starting empty")
            return set()

        entries = set()
        for line in path.read_text(encoding="utf-8").splitlines():
            entry = line.split("#", 1)[0].strip()
            if entry:
                entries.add(entry if "://" in entry else entry.lower())
        return entries


async def screen_url(
    oracle: Optional[SafeBrowsingClient],
    url: str,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Apply the safety policy to a URL.

    Raises:
        UnsafeURLError: If the oracle reports the URL as unsafe
        DependencyError: If the lookup failed and the policy is strict
    """
    if oracle is None or not oracle.enabled:
        return

    logger = logger or logging.getLogger(__name__)
    is_safe, error = await oracle.check(url)

    if error is not None:
        if oracle.policy is SafetyPolicy.STRICT:
            logger.error(f"Safety check failed for {url}: {error}")
            raise DependencyError("Error checking URL safety", detail=str(error), status_code=503)
        logger.warning(f"Safety check failed for {url}, proceeding: {error}")
        return

    if not is_safe:
        logger.warning(f"Blocked unsafe URL: {url}")
        raise UnsafeURLError("The provided URL is not safe")
