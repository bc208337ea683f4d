from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from shortlink_app.dependencies import get_resolver
from shortlink_app.schemas.link import ErrorResponse
from shortlink_app.services.resolver import Resolver

router = APIRouter(tags=["redirect"])


@router.get(
    "/{link_id}",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
    responses={404: {"model": ErrorResponse}, 410: {"model": ErrorResponse}},
)
async def redirect_to_original_url(
    link_id: str,
    resolver: Resolver = Depends(get_resolver),
):
    """
    Redirect to the original URL.
    
    On a cache hit the click is counted in the background, so the
    redirect does not wait on the database.
    Unknown identifiers answer 404 and expired ones 410
    (see the exception handlers in main.py).
    """
    original_url = await resolver.resolve(link_id)
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
