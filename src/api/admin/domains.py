"""Admin domain registry API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.db import get_db
from src.models import AdNetwork, AuditAction, User
from src.schemas.domain import (
    DomainAssignmentResponse,
    DomainAssignmentUpsert,
    DomainDiscoveryResponse,
)
from src.services.network_accounts import get_default_account
from src.services.revenue_share import (
    deactivate_domain_assignment,
    list_domain_assignments,
    set_domain_assignment,
    sync_domains_to_assignment,
)
from src.services.system_settings import get_default_rev_share
from src.utils.audit import get_client_ip, log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/domains")


def _to_response(assignment) -> DomainAssignmentResponse:
    response = DomainAssignmentResponse.model_validate(assignment)
    response.username = assignment.user.username if assignment.user else None
    return response


@router.get("", response_model=List[DomainAssignmentResponse])
async def list_domains(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    network: Optional[AdNetwork] = Query(None),
    user_id: Optional[int] = Query(None),
    include_inactive: bool = Query(False),
):
    assignments = await list_domain_assignments(
        db, network=network, user_id=user_id, include_inactive=include_inactive
    )
    return [_to_response(a) for a in assignments]


@router.put("", response_model=DomainAssignmentResponse)
async def upsert_domain(
    request: Request,
    data: DomainAssignmentUpsert,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Assign a domain to a user.

    An existing (domain, network) assignment is updated in place. Past
    ledger rows keep the revShare they were computed with.
    """
    if data.user_id is not None:
        owner = await db.get(User, data.user_id)
        if not owner:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )

    try:
        assignment = await set_domain_assignment(
            db,
            domain=data.domain,
            network=data.network,
            user_id=data.user_id,
            rev_share=data.rev_share,
            is_active=data.is_active,
            notes=data.notes,
            account_id=data.account_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.ASSIGN_DOMAIN,
        target_type="domain",
        target_id=assignment.id,
        action_metadata={
            "domain": assignment.domain,
            "network": data.network.value,
            "owner_id": data.user_id,
            "rev_share": str(data.rev_share),
        },
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(assignment, attribute_names=["user", "created_at"])
    return _to_response(assignment)


@router.delete("/{network}/{domain}")
async def remove_domain(
    request: Request,
    network: AdNetwork,
    domain: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Deactivate an assignment. The row and its ledger history are kept."""
    if not await deactivate_domain_assignment(db, domain, network):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Domain assignment not found",
        )

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UNASSIGN_DOMAIN,
        target_type="domain",
        action_metadata={"domain": domain, "network": network.value},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    return {"success": True}


@router.post("/discover/{network}", response_model=DomainDiscoveryResponse)
async def discover_domains(
    request: Request,
    network: AdNetwork,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Pull the network's domain list and register new domains to the calling admin."""
    account = await get_default_account(db, network)
    if not account.is_configured():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{network.value.capitalize()} API not configured",
        )

    async with account.client() as client:
        listing = await client.fetch_domains()
    if not listing.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=listing.error or "Failed to fetch domains",
        )

    counts = await sync_domains_to_assignment(
        db,
        current_user.id,
        [stat.domain for stat in listing.domains],
        network,
        default_rev_share=await get_default_rev_share(db),
    )
    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DISCOVER_DOMAINS,
        target_type="domain",
        action_metadata={"network": network.value, **counts},
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return DomainDiscoveryResponse(
        network=network,
        discovered=len(listing.domains),
        created=counts["created"],
        existing=counts["existing"],
    )
