from fastapi import APIRouter, Depends, Query
from snaplink_app.schemas.analytics import AnalyticsReport
from snaplink_app.schemas.common import ApiResponse
from snaplink_app.services.analytics_service import AnalyticsService, DEFAULT_DAYS, MAX_DAYS
from snaplink_app.dependencies import get_analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=ApiResponse[AnalyticsReport])
async def get_analytics(
    days: int = Query(DEFAULT_DAYS, ge=1, le=MAX_DAYS, description="Size of the reporting window in days"),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Totals, top URLs and clicks per day for the last `days` days"""
    report = await analytics_service.get_analytics(days)
    return ApiResponse[AnalyticsReport](data=report)
