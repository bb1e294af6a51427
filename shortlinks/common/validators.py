"""Validation utilities for link creation."""

import re
from urllib.parse import urlparse
from typing import Optional, Tuple

MAX_URL_LENGTH = 2048
MAX_SLUG_LENGTH = 64
# One hundred years; larger lifetimes overflow datetime arithmetic
MAX_EXPIRY_SECONDS = 100 * 366 * 24 * 3600

# Paths served by the management surface
RESERVED_SLUGS = {"links", "status", "health"}


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a target URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if result.scheme not in ("http", "https"):
        return False, "URL must use http or https protocol"

    if not result.netloc:
        return False, "URL must have a valid domain"

    return True, ""


def is_valid_slug(slug: str, max_length: int = MAX_SLUG_LENGTH) -> Tuple[bool, str]:
    """Validate a caller-supplied slug.

    Args:
        slug: The slug to validate
        max_length: Maximum length for the slug

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not slug or not isinstance(slug, str):
        return False, "Slug is required"

    if len(slug) > max_length:
        return False, f"Slug must be at most {max_length} characters"

    if not re.fullmatch(r"[a-zA-Z0-9_-]+", slug):
        return False, "Slug can only contain letters, numbers, hyphens, and underscores"

    if slug.lower() in RESERVED_SLUGS:
        return False, f"'{slug}' is a reserved word and cannot be used"

    return True, ""


def is_valid_expiry(expires_in_secs: Optional[int]) -> Tuple[bool, str]:
    """Validate a relative expiry in seconds (None means never)."""
    if expires_in_secs is None:
        return True, ""
    if isinstance(expires_in_secs, bool) or not isinstance(expires_in_secs, int):
        return False, "Expiry must be a whole number of seconds"
    if expires_in_secs < 0:
        return False, "Expiry must not be negative"
    if expires_in_secs > MAX_EXPIRY_SECONDS:
        return False, f"Expiry must be at most {MAX_EXPIRY_SECONDS} seconds"
    return True, ""
