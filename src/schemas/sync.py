"""Manual sync schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class ManualSyncRequest(BaseModel):
    domain: Optional[str] = Field(None, max_length=255, description="Only sync this domain")
