"""
Analytics aggregation over the URL record store.

Everything here is arithmetic over store aggregates; the store does the
counting. Totals and active/expired counts are global, only
clicks_by_date_range is limited to the requested window.
"""

from datetime import datetime, timedelta
from typing import Optional

from snaplink_app.exceptions import ValidationError
from snaplink_app.models.record import as_utc, utcnow
from snaplink_app.schemas.analytics import AnalyticsReport, AnalyticsSummary, DateRange, TopUrl
from snaplink_app.storage.strategies import UrlStore


DEFAULT_DAYS = 30
MAX_DAYS = 3650
TOP_URLS_LIMIT = 10


class AnalyticsService:

    def __init__(self, store: UrlStore):
        self.store = store

    async def get_analytics(self, days: int = DEFAULT_DAYS, now: Optional[datetime] = None) -> AnalyticsReport:
        """
        Summary statistics for the window [now - days, now].

        clicks_by_date_range buckets each record's total clicks under the day
        it was created (the store has no per-click timestamps).
        """
        if days < 1:
            raise ValidationError("Days must be a positive integer")
        if days > MAX_DAYS:
            raise ValidationError(f"Days must be at most {MAX_DAYS}")

        end_date = utcnow() if now is None else as_utc(now)
        start_date = end_date - timedelta(days=days)

        total_urls = self.store.count_urls()
        total_clicks = self.store.total_clicks()
        average = round(total_clicks / total_urls, 2) if total_urls > 0 else 0

        summary = AnalyticsSummary(
            total_urls=total_urls,
            total_clicks=total_clicks,
            active_url_count=self.store.count_accessible(end_date),
            expired_url_count=self.store.count_expired(end_date),
            average_clicks_per_url=average,
        )

        return AnalyticsReport(
            summary=summary,
            top_urls=[TopUrl.model_validate(r) for r in self.store.top_urls(TOP_URLS_LIMIT)],
            clicks_by_date_range=self.store.clicks_by_date(start_date, end_date),
            date_range=DateRange(start_date=start_date, end_date=end_date, days=days),
        )
