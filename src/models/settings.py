"""
SystemSetting model for runtime configuration.
"""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class SystemSetting(Base):
    """
    Key-value store for system settings.

    Settings are stored as JSON values to support complex types.
    Default settings are created on application startup.

    Keys:
    - default_rev_share: revShare percent for domains without an assignment
    - email_on_sync_failure: send an email when a sync reports errors
    - admin_email: notification address (overrides ADMIN_EMAIL)
    - last_sedo_sync / last_yandex_sync: ISO timestamp of the last cron run
    """

    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )
    value: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        comment="JSON value - use {'v': ...} wrapper for simple values",
    )

    def __repr__(self) -> str:
        return f"<SystemSetting(key='{self.key}')>"

    def get_value(self):
        """Get the actual value from the JSON wrapper."""
        if isinstance(self.value, dict) and "v" in self.value:
            return self.value["v"]
        return self.value

    def set_value(self, val):
        """Set value with JSON wrapper."""
        self.value = {"v": val}
