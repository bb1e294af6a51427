"""Management API routes."""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Request, HTTPException, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from shortlinks.common.url_builder import build_short_url
from shortlinks.database.models import Link
from shortlinks.errors import LinkNotFoundError, LinkValidationError, SlugConflictError

from .schemas import (
    ClickResponse,
    CreateLinkRequest,
    ErrorResponse,
    HealthResponse,
    LinkResponse,
)

router = APIRouter()


def _link_response(link: Link, forward_url: str) -> LinkResponse:
    return LinkResponse(
        slug=link.slug,
        target_url=link.target_url,
        shortened_url=build_short_url(link.slug, forward_url),
        created_at=link.created_at,
        updated_at=link.updated_at,
        expires_at=link.expires_at,
        clicks=link.clicks,
    )


@router.post(
    "/links",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        422: {"model": ErrorResponse, "description": "Invalid request or slug already exists"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create link",
    description="Create a link. A 4-character slug is generated when none is given.",
)
async def create_link(request: Request, body: CreateLinkRequest):
    """Create a link."""
    service = request.app.state.service
    config = request.app.state.config

    try:
        link = await service.create_link(
            target_url=body.target_url,
            slug=body.slug,
            expires_in_secs=body.expires_in_secs,
        )
    except (SlugConflictError, LinkValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return _link_response(link, config.forward_url)


@router.get(
    "/links",
    response_model=List[LinkResponse],
    summary="List links",
    description="List all links with their click counts.",
)
async def list_links(request: Request):
    """List all links."""
    service = request.app.state.service
    config = request.app.state.config

    links = await service.list_links()
    return [_link_response(link, config.forward_url) for link in links]


@router.get(
    "/links/{slug:path}/clicks",
    response_model=List[ClickResponse],
    responses={404: {"model": ErrorResponse, "description": "Link not found"}},
    summary="List clicks",
    description="List the click events recorded for a link.",
)
async def list_link_clicks(request: Request, slug: str):
    """List click events for a slug."""
    service = request.app.state.service

    try:
        clicks = await service.list_clicks(slug)
    except LinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return [ClickResponse(**click.to_dict()) for click in clicks]


@router.get(
    "/links/{slug:path}",
    response_model=LinkResponse,
    responses={404: {"model": ErrorResponse, "description": "Link not found"}},
    summary="Get link",
)
async def get_link(request: Request, slug: str):
    """Get one link with its click count."""
    service = request.app.state.service
    config = request.app.state.config

    try:
        link = await service.get_link(slug)
    except LinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return _link_response(link, config.forward_url)


@router.delete(
    "/links/{slug:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Link not found"}},
    summary="Delete link",
    description="Delete a link together with its click history.",
)
async def delete_link(request: Request, slug: str):
    """Delete a link."""
    service = request.app.state.service

    try:
        await service.delete_link(slug)
    except LinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/status", response_class=PlainTextResponse, summary="Liveness check")
async def status_check():
    return "Ok"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Store unreachable"}},
    summary="Health check",
    description="Check that the store is reachable.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service

    health = await service.health_check()
    body = HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )

    if not health["overall"]:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )
    return body
