"""Runtime settings stored in the system_settings table."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.models import AdNetwork, SystemSetting

DEFAULT_SETTINGS = {
    "default_rev_share": settings.default_rev_share,
    "email_on_sync_failure": True,
    "admin_email": None,
    "last_sedo_sync": None,
    "last_yandex_sync": None,
}


async def get_setting(db: AsyncSession, key: str, default=None):
    """Get a system setting value."""
    setting = await db.get(SystemSetting, key)
    if setting:
        return setting.get_value()
    return default


async def set_setting(db: AsyncSession, key: str, value) -> SystemSetting:
    """Create or update a system setting. Caller commits."""
    setting = await db.get(SystemSetting, key)
    if setting:
        setting.set_value(value)
    else:
        setting = SystemSetting(key=key, value={"v": value})
        db.add(setting)
    return setting


async def get_default_rev_share(db: AsyncSession) -> Decimal:
    """revShare percent used for records whose domain has no assignment."""
    value = await get_setting(db, "default_rev_share", settings.default_rev_share)
    return Decimal(str(value))


async def get_admin_email(db: AsyncSession) -> str:
    return await get_setting(db, "admin_email") or settings.admin_email


async def mark_synced(db: AsyncSession, network: AdNetwork) -> None:
    await set_setting(db, f"last_{network.value}_sync", datetime.now(timezone.utc).isoformat())
