"""Panel domain list."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.db import get_db
from src.models import AdNetwork, User
from src.schemas.domain import PublisherDomainResponse
from src.services.revenue_share import list_domain_assignments

router = APIRouter(prefix="/domains")


@router.get("", response_model=List[PublisherDomainResponse])
async def my_domains(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    network: Optional[AdNetwork] = Query(None),
):
    """Active domains assigned to the caller."""
    return await list_domain_assignments(db, network=network, user_id=current_user.id)
