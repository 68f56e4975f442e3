from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from snaplink_app.schemas.common import ApiResponse
from snaplink_app.schemas.url import URLCreate, URLCreated, URLInfo, URLListItem
from snaplink_app.services.url_service import URLService
from snaplink_app.dependencies import get_url_service

router = APIRouter(prefix="/urls", tags=["urls"])


@router.post(
    "",
    response_model=ApiResponse[URLCreated],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_short_url(
    url_data: Optional[URLCreate] = Body(None),
    url_service: URLService = Depends(get_url_service)
):
    """Create a new short URL, optionally with a custom code and expiry"""
    # No body at all is the same as an empty one: the URL is missing
    created = await url_service.create_short_url(url_data or URLCreate())
    return ApiResponse[URLCreated](data=created)


@router.get("", response_model=ApiResponse[List[URLListItem]])
async def list_owner_urls(
    owner_id: str = Query(..., alias="ownerId", min_length=1),
    url_service: URLService = Depends(get_url_service)
):
    """List the short URLs stored for an owner, newest first"""
    urls = await url_service.list_owner_urls(owner_id)
    return ApiResponse[List[URLListItem]](data=urls)


@router.get("/{short_code}/info", response_model=ApiResponse[URLInfo])
async def get_url_info(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Get information about a short URL without counting a click"""
    info = await url_service.get_url_info(short_code)
    return ApiResponse[URLInfo](data=info)
