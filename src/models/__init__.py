"""
Database models.

All models are exported here for convenient imports:
    from src.models import User, DomainAssignment, SedoLedgerEntry, etc.
"""

from src.models.api_key import ApiKey
from src.models.audit import AuditAction, AuditLog
from src.models.base import AdNetwork, Base, RevenueMetricsMixin, TimestampMixin
from src.models.domain import DomainAssignment
from src.models.ledger import LedgerStatus, SedoLedgerEntry, YandexLedgerEntry
from src.models.network_account import NetworkAccount
from src.models.overview import OverviewReport
from src.models.settings import SystemSetting
from src.models.user import User, UserRole

__all__ = [
    # Base
    "Base",
    "AdNetwork",
    "RevenueMetricsMixin",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    # Domains
    "DomainAssignment",
    # Accounts
    "NetworkAccount",
    # API keys
    "ApiKey",
    # Ledger
    "LedgerStatus",
    "SedoLedgerEntry",
    "YandexLedgerEntry",
    # Overview
    "OverviewReport",
    # Settings
    "SystemSetting",
    # Audit
    "AuditLog",
    "AuditAction",
]
