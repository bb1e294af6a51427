"""Data models for the link store."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Link:
    """A slug to target URL mapping."""

    slug: str
    target_url: str
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None
    clicks: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "slug": self.slug,
            "target_url": self.target_url,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "clicks": self.clicks,
        }


@dataclass
class ClickEvent:
    """One recorded redirect."""

    slug: str
    datetime: datetime
    client_ip_address: str
    client_browser: str
    expires_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "slug": self.slug,
            "datetime": self.datetime.isoformat(),
            "client_ip_address": self.client_ip_address,
            "client_browser": self.client_browser,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
