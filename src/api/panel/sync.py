"""Panel manual sync endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.db import get_db
from src.models import AdNetwork, AuditAction, User
from src.schemas.sync import ManualSyncRequest
from src.services.cache import RevenueCache, get_cache
from src.services.sync import SyncFetchError, SyncNotConfigured, run_manual_sync
from src.utils.audit import get_client_ip, log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync")


@router.post("/{network}")
async def manual_sync(
    request: Request,
    network: AdNetwork,
    data: Optional[ManualSyncRequest] = Body(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: RevenueCache = Depends(get_cache),
):
    """
    Fetch and reconcile now.

    Publishers only get rows for domains assigned to them.
    """
    user_id = current_user.id
    try:
        result = await run_manual_sync(
            db,
            network,
            current_user,
            cache=cache,
            domain=data.domain if data else None,
        )
    except SyncNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SyncFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e) or f"Failed to fetch {network.value} data",
        )

    await log_action(
        db=db,
        user_id=user_id,
        action=AuditAction.MANUAL_SYNC,
        target_type="sync",
        action_metadata={"network": network.value, **result["sync"]},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    return result
