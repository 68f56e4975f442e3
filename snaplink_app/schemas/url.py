from pydantic import BaseModel, Field, computed_field, model_validator
from typing import Any, Optional
from datetime import datetime

from snaplink_app.schemas.common import CamelModel
from snaplink_app.services.short_codes import build_short_url


class URLCreate(CamelModel):
    """Creation request.

    original_url is deliberately a plain optional string: the creation
    workflow does its own validation so that clients get its exact messages
    instead of a schema error.
    """
    original_url: Optional[str] = Field(None, description="The original URL to be shortened")
    owner_id: Optional[str] = Field(None, description="External user identity, stored as-is")
    custom_short_code: Optional[str] = Field(None, description="Requested short code (3-10 chars)")
    expires_at: Optional[datetime] = Field(None, description="When the short URL stops redirecting")

    @model_validator(mode="before")
    @classmethod
    def non_object_body(cls, data: Any) -> Any:
        # A JSON array, string or number carries no fields at all
        if isinstance(data, (dict, BaseModel)):
            return data
        return {}


class URLCreated(CamelModel):
    """Creation response, built straight from the stored UrlRecord"""
    id: str
    original_url: str
    short_code: str
    owner_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    @computed_field(alias="shortUrl")
    @property
    def short_url(self) -> str:
        return build_short_url(self.short_code)


class URLInfo(CamelModel):
    short_code: str
    original_url: str
    is_active: bool
    is_expired: bool
    click_count: int
    created_at: datetime
    expires_at: Optional[datetime] = None

    @computed_field(alias="shortUrl")
    @property
    def short_url(self) -> str:
        return build_short_url(self.short_code)


class URLListItem(CamelModel):
    """One entry of an owner's link list"""
    id: str
    short_code: str
    original_url: str
    is_active: bool
    click_count: int
    created_at: datetime
    expires_at: Optional[datetime] = None

    @computed_field(alias="shortUrl")
    @property
    def short_url(self) -> str:
        return build_short_url(self.short_code)


class RedirectResult(CamelModel):
    """Outcome of a successful redirect: where to send the visitor"""
    original_url: str
    is_active: bool
    is_expired: bool
