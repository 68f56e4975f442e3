from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from snaplink_app.services.url_service import URLService
from snaplink_app.dependencies import get_url_service

# Mounted twice: under /api/urls and at the root for clean short URLs
router = APIRouter(tags=["redirect"])


@router.get("/{short_code}")
async def redirect_to_original_url(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """
    Redirect to the original URL and count the click.

    Unknown or inactive codes answer 404, expired ones 410; both through the
    AppError handler in main.py.
    """
    result = await url_service.redirect(short_code)
    return RedirectResponse(url=result.original_url, status_code=status.HTTP_302_FOUND)
