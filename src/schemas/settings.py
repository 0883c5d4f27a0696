"""Runtime settings schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class SettingsResponse(BaseModel):
    default_rev_share: float
    email_on_sync_failure: bool
    admin_email: Optional[str]
    last_sedo_sync: Optional[str]
    last_yandex_sync: Optional[str]


class SettingsUpdate(BaseModel):
    """Only the provided fields change."""

    default_rev_share: Optional[float] = Field(None, ge=0, le=100)
    email_on_sync_failure: Optional[bool] = None
    admin_email: Optional[str] = Field(None, max_length=255)
