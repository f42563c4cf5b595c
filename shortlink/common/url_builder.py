"""Short URL building utilities."""


def build_short_url(
    key: str,
    base_url: str,
    path_prefix: str = "",
) -> str:
    """Build the public short URL for a key.

    Args:
        key: The short key
        base_url: Base URL (e.g., https://example.com)
        path_prefix: Optional path prefix (e.g., /s)

    Returns:
        Complete short URL
    """
    base = base_url.rstrip("/")
    prefix = path_prefix.strip("/")

    if prefix:
        return f"{base}/{prefix}/{key}"
    return f"{base}/{key}"


def normalize_path_prefix(path_prefix: str) -> str:
    """Return the prefix with a leading slash and no trailing one ('' when unset)."""
    p = (path_prefix or "").strip().strip("/")
    return "/" + p if p else ""
