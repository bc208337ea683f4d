from fastapi import APIRouter, Depends, Response, status

from shortlink_app.dependencies import get_resolver, get_shortener
from shortlink_app.schemas.link import ErrorResponse, LinkCreate, LinkResponse
from shortlink_app.services.resolver import Resolver
from shortlink_app.services.shortener import Shortener

router = APIRouter(tags=["links"])


@router.post(
    "/shorten",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": LinkResponse, "description": "Existing link for this URL"},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def shorten_url(
    link_data: LinkCreate,
    response: Response,
    shortener: Shortener = Depends(get_shortener),
):
    """Create a short link, or return the existing one for this URL"""
    record, created = await shortener.shorten(link_data.original_url, link_data.ttl)
    if not created:
        response.status_code = status.HTTP_200_OK
    return record


@router.get(
    "/links/{link_id}",
    response_model=LinkResponse,
    responses={404: {"model": ErrorResponse}, 410: {"model": ErrorResponse}},
)
async def get_link_info(
    link_id: str,
    resolver: Resolver = Depends(get_resolver),
):
    """Get a link's stored record, including its click count"""
    return await resolver.describe(link_id)
