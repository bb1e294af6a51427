"""Common utilities for the link service."""

from .validators import is_valid_url, is_valid_slug, is_valid_expiry
from .headers import get_client_ip, get_user_agent
from .url_builder import build_short_url
from .logging_config import setup_logging

__all__ = [
    "is_valid_url",
    "is_valid_slug",
    "is_valid_expiry",
    "get_client_ip",
    "get_user_agent",
    "build_short_url",
    "setup_logging",
]
