from datetime import datetime
from typing import List

from pydantic import Field, computed_field

from snaplink_app.schemas.common import CamelModel
from snaplink_app.services.short_codes import build_short_url
from snaplink_app.storage.models import DailyClicks


class AnalyticsSummary(CamelModel):
    total_urls: int
    total_clicks: int
    active_url_count: int
    expired_url_count: int
    average_clicks_per_url: float


class TopUrl(CamelModel):
    short_code: str
    original_url: str
    click_count: int
    created_at: datetime

    @computed_field(alias="shortUrl")
    @property
    def short_url(self) -> str:
        return build_short_url(self.short_code)


class DateRange(CamelModel):
    start_date: datetime
    end_date: datetime
    days: int


class AnalyticsReport(CamelModel):
    summary: AnalyticsSummary
    top_urls: List[TopUrl] = Field(default_factory=list)
    clicks_by_date_range: List[DailyClicks] = Field(default_factory=list)
    date_range: DateRange
