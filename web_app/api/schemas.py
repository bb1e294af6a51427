"""Pydantic schemas for management API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
import datetime as dt

from shortlinks.common.validators import MAX_EXPIRY_SECONDS


class CreateLinkRequest(BaseModel):
    """Request to create a link. Accepts camelCase or snake_case keys."""

    slug: Optional[str] = Field("", description="Slug to use; generated when empty", max_length=64)
    target_url: str = Field(..., description="Redirect destination", min_length=1, max_length=2048)
    expires_in_secs: Optional[int] = Field(
        None,
        description="Lifetime in seconds; never expires when omitted",
        ge=0,
        le=MAX_EXPIRY_SECONDS,
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"targetUrl": "https://example.org", "slug": "", "expiresInSecs": 3600},
                {"targetUrl": "https://github.com/user/repo", "slug": "repo"},
            ]
        },
    )


class LinkResponse(BaseModel):
    """Link representation with its click count."""

    slug: str
    target_url: str
    shortened_url: str = Field(..., description="Fully-qualified short URL")
    created_at: dt.datetime
    updated_at: dt.datetime
    expires_at: Optional[dt.datetime] = None
    clicks: int = 0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClickResponse(BaseModel):
    """One recorded redirect."""

    slug: str
    datetime: dt.datetime
    client_ip_address: str
    client_browser: str
    expires_at: Optional[dt.datetime] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    timestamp: dt.datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str = Field(..., description="Error message")
