"""
Data models returned by store aggregate queries.
"""

from pydantic import BaseModel, Field


class DailyClicks(BaseModel):
    """
    Clicks bucketed by day.

    The bucket is the day the record was CREATED, not the day the clicks
    happened: the store keeps one counter per record, not a click log.
    """

    date: str = Field(..., description="Bucket day, YYYY-MM-DD")
    clicks: int = Field(0, ge=0, description="Sum of click counts of records created that day")
