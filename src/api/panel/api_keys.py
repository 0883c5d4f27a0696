"""Panel endpoints for managing the signed-in user's API keys."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.db import get_db
from src.models import ApiKey, AuditAction, User
from src.schemas.api_key import (
    ApiKeyCreate,
    ApiKeyCreated,
    ApiKeyListResponse,
    ApiKeyResponse,
    ApiKeyUpdate,
)
from src.services.api_keys import AVAILABLE_SCOPES, create_api_key, get_user_api_key, list_api_keys
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/api-keys")


def _to_response(api_key: ApiKey) -> ApiKeyResponse:
    return ApiKeyResponse(
        id=api_key.id,
        name=api_key.name,
        key_prefix=api_key.key_prefix,
        scopes=list(api_key.scopes or []),
        rate_limit=api_key.rate_limit,
        is_active=api_key.is_active,
        expires_at=api_key.expires_at,
        last_used_at=api_key.last_used_at,
        request_count=api_key.request_count,
        created_at=api_key.created_at,
    )


async def _get_own_key(db: AsyncSession, user: User, key_id: int) -> ApiKey:
    api_key = await get_user_api_key(db, user.id, key_id)
    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="API key not found",
        )
    return api_key


@router.get("", response_model=ApiKeyListResponse)
async def list_keys(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    keys = await list_api_keys(db, current_user.id)
    return ApiKeyListResponse(
        keys=[_to_response(k) for k in keys],
        available_scopes=AVAILABLE_SCOPES,
    )


@router.post("", response_model=ApiKeyCreated, status_code=status.HTTP_201_CREATED)
async def create_key(
    request: Request,
    data: ApiKeyCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The raw key is only ever returned here."""
    user_id = current_user.id
    api_key, raw_key = await create_api_key(
        db,
        user_id,
        data.name,
        scopes=data.scopes,
        expires_in_days=data.expires_in_days,
    )
    await log_action(
        db=db,
        user_id=user_id,
        action=AuditAction.CREATE_API_KEY,
        target_type="api_key",
        target_id=api_key.id,
        action_metadata={"name": api_key.name, "scopes": api_key.scopes},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(api_key)
    return ApiKeyCreated(**_to_response(api_key).model_dump(), raw_key=raw_key)


@router.patch("/{key_id}", response_model=ApiKeyResponse)
async def update_key(
    request: Request,
    key_id: int,
    data: ApiKeyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Rename and/or flip the active flag."""
    api_key = await _get_own_key(db, current_user, key_id)
    changes = {}
    if data.name is not None:
        api_key.name = data.name
        changes["name"] = data.name
    if data.toggle_active:
        api_key.is_active = not api_key.is_active
        changes["is_active"] = api_key.is_active

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_API_KEY,
        target_type="api_key",
        target_id=api_key.id,
        action_metadata=changes,
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(api_key)
    return _to_response(api_key)


@router.delete("/{key_id}")
async def delete_key(
    request: Request,
    key_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    api_key = await _get_own_key(db, current_user, key_id)
    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DELETE_API_KEY,
        target_type="api_key",
        target_id=api_key.id,
        action_metadata={"name": api_key.name},
        ip_address=get_client_ip(request),
    )
    await db.delete(api_key)
    await db.commit()
    return {"success": True}
