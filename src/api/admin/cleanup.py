"""Admin data cleanup endpoints."""

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.db import get_db
from src.models import AuditAction, User
from src.schemas.cleanup import CleanupRequest, CleanupResponse, DataCountsResponse
from src.services.cache import RevenueCache, get_cache
from src.services.cleanup import cleanup_revenue_data, get_data_counts
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/cleanup-data")


@router.get("", response_model=DataCountsResponse)
async def data_counts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Ledger and overview row counts per user."""
    return await get_data_counts(db)


@router.delete("", response_model=CleanupResponse)
async def cleanup_data(
    request: Request,
    data: CleanupRequest = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    cache: RevenueCache = Depends(get_cache),
):
    """
    Delete revenue data for sedo, yandex or both.

    With user_id only that user's rows go. Overview rows of the affected
    networks are removed along with their ledger rows.
    """
    admin_id = current_user.id
    if data.user_id is not None and await db.get(User, data.user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    deleted = await cleanup_revenue_data(db, data.type, user_id=data.user_id, cache=cache)

    await log_action(
        db=db,
        user_id=admin_id,
        action=AuditAction.CLEANUP_DATA,
        target_type="user" if data.user_id is not None else "revenue_data",
        target_id=data.user_id,
        action_metadata={"type": data.type, **deleted},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    return CleanupResponse(type=data.type, user_id=data.user_id, deleted=deleted)
