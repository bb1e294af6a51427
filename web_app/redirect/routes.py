"""Redirect listener routes."""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from shortlinks.errors import LinkError
from shortlinks.resolver import RequestMetadata

router = APIRouter()

logger = logging.getLogger("shortlinks.web.redirect")


@router.get("/{slug:path}", include_in_schema=False)
async def redirect_to_target(request: Request, slug: str):
    """Resolve the path as a slug and redirect to its target."""
    service = request.app.state.service

    metadata = RequestMetadata(
        client_ip=getattr(request.state, "client_ip", None),
        client_browser=getattr(request.state, "client_browser", None),
    )

    try:
        target_url = await service.resolve(slug, metadata)
    except LinkError as e:
        # Resolution fails with StorageError; never redirect without a stored click
        logger.error(f"Failed to resolve {slug}: {e}")
        return PlainTextResponse(
            "Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if target_url is None:
        return PlainTextResponse("Link not found", status_code=status.HTTP_404_NOT_FOUND)

    # Keep the short URL out of the Referer sent to the target site
    return RedirectResponse(
        url=target_url,
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        headers={"Referrer-Policy": "no-referrer"},
    )
