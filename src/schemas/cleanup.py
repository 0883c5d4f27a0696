"""Admin data cleanup schemas."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel


class CleanupRequest(BaseModel):
    type: Literal["sedo", "yandex", "all"]
    user_id: Optional[int] = None


class CleanupResponse(BaseModel):
    success: bool = True
    type: str
    user_id: Optional[int] = None
    deleted: Dict[str, int]


class UserDataCounts(BaseModel):
    user_id: int
    username: Optional[str] = None
    role: Optional[str] = None
    sedo_records: int
    yandex_records: int
    overview_records: int


class DataCountsResponse(BaseModel):
    data_by_user: List[UserDataCounts]
    totals: Dict[str, int]
