"""Admin settings API endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.db import get_db
from src.models import AuditAction, SystemSetting, User
from src.schemas.settings import SettingsResponse, SettingsUpdate
from src.services.system_settings import DEFAULT_SETTINGS, set_setting
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/settings")


@router.get("/data", response_model=SettingsResponse)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """All runtime settings, with defaults for missing keys."""
    result = await db.execute(select(SystemSetting))
    stored = {s.key: s.get_value() for s in result.scalars().all()}
    values = {**DEFAULT_SETTINGS, **{k: v for k, v in stored.items() if k in DEFAULT_SETTINGS}}
    return SettingsResponse(**values)


@router.put("/data")
async def update_settings(
    request: Request,
    data: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Update runtime settings. last_*_sync keys are not writable."""
    updated_keys = []
    for key, value in data.model_dump(exclude_none=True).items():
        await set_setting(db, key, value)
        updated_keys.append(key)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_SETTINGS,
        target_type="settings",
        action_metadata={"updated_keys": updated_keys},
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return {"success": True, "updated_keys": updated_keys}
