"""Admin user management API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.db import get_db
from src.models import AuditAction, User, UserRole
from src.schemas.user import UserCreate, UserCreatedResponse, UserResponse, UserUpdate
from src.utils.audit import get_client_ip, log_action
from src.utils.password import generate_password, hash_password

router = APIRouter(prefix="/users")


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.get("", response_model=List[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    role: Optional[UserRole] = Query(None),
    active_only: bool = Query(False),
):
    query = select(User)
    if role:
        query = query.where(User.role == role)
    if active_only:
        query = query.where(User.is_active.is_(True))
    result = await db.execute(query.order_by(User.display_name))
    return result.scalars().all()


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create an account. Without a password a random one is generated and returned once."""
    existing = await db.execute(select(User).where(User.username == data.username))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists",
        )

    password = data.password or generate_password()
    user = User(
        username=data.username,
        password_hash=hash_password(password),
        role=UserRole(data.role),
        display_name=data.display_name,
        email=data.email,
        is_active=True,
    )
    db.add(user)
    await db.flush()

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_USER,
        target_type="user",
        target_id=user.id,
        action_metadata={"username": user.username, "role": data.role},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(user)

    response = UserCreatedResponse.model_validate(user)
    if not data.password:
        response.initial_password = password
    return response


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    request: Request,
    user_id: int,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = await _get_user(db, user_id)
    if user.id == current_user.id and data.is_active is False:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate your own account",
        )

    changes = data.model_dump(exclude_none=True)
    if "password" in changes:
        user.password_hash = hash_password(changes.pop("password"))
        changes["password"] = "changed"
    for field in ("display_name", "email", "is_active"):
        if field in changes:
            setattr(user, field, changes[field])

    action = AuditAction.DEACTIVATE_USER if data.is_active is False else AuditAction.UPDATE_USER
    await log_action(
        db=db,
        user_id=current_user.id,
        action=action,
        target_type="user",
        target_id=user.id,
        action_metadata={"changed": sorted(changes)},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(user)
    return user


@router.delete("/{user_id}")
async def deactivate_user(
    request: Request,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Users are deactivated, never deleted: ledger rows reference them."""
    user = await _get_user(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate your own account",
        )

    user.is_active = False
    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DEACTIVATE_USER,
        target_type="user",
        target_id=user.id,
        ip_address=get_client_ip(request),
    )
    await db.commit()
    return {"success": True}
