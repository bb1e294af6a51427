"""Header parsing utilities."""

from typing import Mapping, Optional


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    name = name.lower()
    for k, v in headers.items():
        if k.lower() == name:
            return v
    return None


def get_client_ip(headers: Mapping[str, str], peer_host: Optional[str] = None) -> Optional[str]:
    """Best-effort client address.

    Priority:
    1. First entry of X-Forwarded-For (original client behind proxies)
    2. Socket peer address

    Returns:
        The address, or None when neither is available
    """
    forwarded_for = _header(headers, "x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return peer_host or None


def get_user_agent(headers: Mapping[str, str]) -> str:
    """User-Agent header value, empty string if absent."""
    return _header(headers, "user-agent") or ""
