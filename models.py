# models.py
from datetime import datetime
from typing import Annotated, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    """Accepts and emits the camelCase keys the web frontend uses."""
    model_config = ConfigDict(populate_by_name=True)


# --- Download Models ---
class DownloadRequest(CamelModel):
    user_id: RequiredStr = Field(..., alias="userId")
    content_id: RequiredStr = Field(..., alias="contentId")
    content_type: Optional[str] = Field(None, alias="contentType")
    stream_url: RequiredStr = Field(..., alias="streamUrl")
    title: RequiredStr

    @field_validator("stream_url")
    @classmethod
    def _http_stream_url(cls, value: str) -> str:
        # only http(s) origins are fetched
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError("streamUrl must be an http(s) URL")
        return value

class DownloadAuthorization(CamelModel):
    success: bool = True
    download_url: str = Field(..., alias="downloadUrl")
    token: str
    expires_at: str = Field(..., alias="expiresAt")
    message: str

class TokenValidation(BaseModel):
    valid: bool
    message: str

class TokenRecord(BaseModel):
    """Detached copy of a download token row, safe to use after the session closes."""
    token: str
    user_id: str
    content_id: str
    content_type: Optional[str] = None
    stream_url: str
    title: str
    expires_at: int
    used: bool

# --- Subscription Models ---
class SubscriptionPlan(BaseModel):
    id: str
    name: str
    duration: str
    price: int
    days: float

class SubscriptionInfo(CamelModel):
    plan_id: str = Field(..., alias="planId")
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    active: bool

class Entitlement(CamelModel):
    allowed: bool
    is_admin: bool = Field(False, alias="isAdmin")
    subscription: Optional[SubscriptionInfo] = None

class SubscriptionStatus(Entitlement):
    user_id: str = Field(..., alias="userId")
