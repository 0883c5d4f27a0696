"""Admin network account API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.db import get_db
from src.models import AdNetwork, AuditAction, NetworkAccount, User
from src.schemas.network_account import (
    NetworkAccountCreate,
    NetworkAccountResponse,
    NetworkAccountUpdate,
)
from src.services.network_accounts import (
    account_config_status,
    create_account,
    delete_account,
    list_accounts,
    update_account,
)
from src.utils.audit import get_client_ip, log_action
from src.utils.encryption import CredentialEncryptionError

router = APIRouter(prefix="/network-accounts")


def _to_response(account: NetworkAccount) -> NetworkAccountResponse:
    try:
        config = account_config_status(account)
    except CredentialEncryptionError:
        config = {"configured": False}
    return NetworkAccountResponse(
        id=account.id,
        network=account.network,
        name=account.name,
        is_active=account.is_active,
        is_default=account.is_default,
        config=config,
        created_at=account.created_at,
    )


async def _get_account(db: AsyncSession, account_id: int) -> NetworkAccount:
    account = await db.get(NetworkAccount, account_id)
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Network account not found",
        )
    return account


@router.get("", response_model=List[NetworkAccountResponse])
async def list_network_accounts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    network: Optional[AdNetwork] = Query(None),
):
    """Stored accounts. Credentials are reported as has_* flags only."""
    return [_to_response(a) for a in await list_accounts(db, network)]


@router.post("", response_model=NetworkAccountResponse, status_code=status.HTTP_201_CREATED)
async def create_network_account(
    request: Request,
    data: NetworkAccountCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        account = await create_account(
            db,
            network=data.network,
            name=data.name,
            credentials=data.credentials,
            is_default=data.is_default,
            is_active=data.is_active,
        )
    except CredentialEncryptionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_NETWORK_ACCOUNT,
        target_type="network_account",
        target_id=account.id,
        action_metadata={"network": data.network.value, "name": data.name},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(account)
    return _to_response(account)


@router.patch("/{account_id}", response_model=NetworkAccountResponse)
async def update_network_account(
    request: Request,
    account_id: int,
    data: NetworkAccountUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    account = await _get_account(db, account_id)
    try:
        await update_account(
            db,
            account,
            name=data.name,
            credentials=data.credentials,
            is_default=data.is_default,
            is_active=data.is_active,
        )
    except CredentialEncryptionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    changed = [k for k, v in data.model_dump(exclude_none=True).items() if k != "credentials"]
    if data.credentials:
        changed.append("credentials")
    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_NETWORK_ACCOUNT,
        target_type="network_account",
        target_id=account.id,
        action_metadata={"changed": changed},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(account)
    return _to_response(account)


@router.delete("/{account_id}")
async def delete_network_account(
    request: Request,
    account_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    account = await _get_account(db, account_id)
    await delete_account(db, account)
    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DELETE_NETWORK_ACCOUNT,
        target_type="network_account",
        target_id=account_id,
        ip_address=get_client_ip(request),
    )
    await db.commit()
    return {"success": True}
