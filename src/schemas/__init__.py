"""Pydantic schemas for request/response validation."""

from src.schemas.audit import AuditLogListResponse, AuditLogResponse
from src.schemas.auth import LoginRequest, LoginResponse
from src.schemas.dashboard import (
    DashboardSummary,
    OverviewReportResponse,
    RevenueComparison,
    SyncStatusResponse,
)
from src.schemas.domain import (
    DomainAssignmentResponse,
    DomainAssignmentUpsert,
    DomainDiscoveryResponse,
    PublisherDomainResponse,
)
from src.schemas.network_account import (
    NetworkAccountCreate,
    NetworkAccountResponse,
    NetworkAccountUpdate,
)
from src.schemas.settings import SettingsResponse, SettingsUpdate
from src.schemas.sync import ManualSyncRequest
from src.schemas.user import UserCreate, UserCreatedResponse, UserResponse, UserUpdate

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    # User
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserCreatedResponse",
    # Domains
    "DomainAssignmentUpsert",
    "DomainAssignmentResponse",
    "PublisherDomainResponse",
    "DomainDiscoveryResponse",
    # Network accounts
    "NetworkAccountCreate",
    "NetworkAccountUpdate",
    "NetworkAccountResponse",
    # Settings
    "SettingsResponse",
    "SettingsUpdate",
    # Reports
    "DashboardSummary",
    "RevenueComparison",
    "OverviewReportResponse",
    "SyncStatusResponse",
    # Sync
    "ManualSyncRequest",
    # Audit
    "AuditLogResponse",
    "AuditLogListResponse",
]
