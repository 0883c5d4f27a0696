"""
Domain ownership and revenue share.

Ownership is resolved by exact (domain, network) match against active
DomainAssignment rows. Domains without an assignment belong to the
fallback user at the default revShare.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.models import AdNetwork, DomainAssignment, User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_REV_SHARE = Decimal("80")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class DomainOwner:
    user_id: int
    rev_share: Decimal


def normalize_domain(domain: Optional[str]) -> Optional[str]:
    """Lowercase and trim. Empty strings become None."""
    if domain is None:
        return None
    domain = domain.strip().lower()
    return domain or None


def calculate_net_revenue(gross: Decimal, rev_share: Decimal) -> Decimal:
    """net = round(gross * rev_share / 100, 2)"""
    net = Decimal(str(gross)) * Decimal(str(rev_share)) / Decimal("100")
    return net.quantize(CENT, rounding=ROUND_HALF_UP)


async def get_domain_assignment_map(
    db: AsyncSession,
    network: AdNetwork,
) -> Dict[str, DomainOwner]:
    """
    All active assignments for a network in one query.

    Returns:
        {normalized domain: DomainOwner}
    """
    result = await db.execute(
        select(DomainAssignment).where(
            DomainAssignment.network == network,
            DomainAssignment.is_active.is_(True),
            DomainAssignment.user_id.is_not(None),
        )
    )
    owners = {}
    for assignment in result.scalars().all():
        owners[normalize_domain(assignment.domain)] = DomainOwner(
            user_id=assignment.user_id,
            rev_share=Decimal(str(assignment.rev_share)),
        )
    return owners


async def get_domain_owner(
    db: AsyncSession,
    domain: str,
    network: AdNetwork,
) -> Optional[DomainOwner]:
    """Owner of a single domain, or None when unassigned."""
    result = await db.execute(
        select(DomainAssignment).where(
            DomainAssignment.domain == normalize_domain(domain),
            DomainAssignment.network == network,
            DomainAssignment.is_active.is_(True),
            DomainAssignment.user_id.is_not(None),
        )
    )
    assignment = result.scalars().first()
    if not assignment:
        return None
    return DomainOwner(user_id=assignment.user_id, rev_share=Decimal(str(assignment.rev_share)))


async def get_fallback_admin(db: AsyncSession) -> Optional[User]:
    """First active admin by id. Unassigned revenue is attributed to them."""
    result = await db.execute(
        select(User)
        .where(User.role == UserRole.ADMIN, User.is_active.is_(True))
        .order_by(User.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _find_assignment(
    db: AsyncSession,
    domain: str,
    network: AdNetwork,
) -> Optional[DomainAssignment]:
    # Prefer the active row when stale rows for previous owners exist
    result = await db.execute(
        select(DomainAssignment)
        .where(
            DomainAssignment.domain == domain,
            DomainAssignment.network == network,
        )
        .order_by(DomainAssignment.is_active.desc(), DomainAssignment.id)
    )
    return result.scalars().first()


async def set_domain_assignment(
    db: AsyncSession,
    domain: str,
    network: AdNetwork,
    user_id: Optional[int],
    rev_share: Decimal = DEFAULT_REV_SHARE,
    is_active: bool = True,
    notes: Optional[str] = None,
    account_id: Optional[int] = None,
) -> DomainAssignment:
    """
    Assign a domain to a user.

    Updates the existing (domain, network) assignment in place, or
    creates one. Caller commits.
    """
    domain = normalize_domain(domain)
    if not domain:
        raise ValueError("Domain is required")
    rev_share = Decimal(str(rev_share))
    if rev_share < 0 or rev_share > 100:
        raise ValueError("rev_share must be between 0 and 100")

    assignment = await _find_assignment(db, domain, network)
    if assignment:
        assignment.user_id = user_id
        assignment.rev_share = rev_share
        assignment.is_active = is_active
        if notes is not None:
            assignment.notes = notes
        if account_id is not None:
            assignment.account_id = account_id
    else:
        assignment = DomainAssignment(
            domain=domain,
            network=network,
            user_id=user_id,
            rev_share=rev_share,
            is_active=is_active,
            notes=notes,
            account_id=account_id,
        )
        db.add(assignment)

    await db.flush()
    logger.info(f"Domain {domain} ({network.value}) assigned to user {user_id} at {rev_share}%")
    return assignment


async def deactivate_domain_assignment(
    db: AsyncSession,
    domain: str,
    network: AdNetwork,
) -> bool:
    """Soft-remove an assignment. Returns False when there was none."""
    assignment = await _find_assignment(db, normalize_domain(domain), network)
    if not assignment:
        return False
    assignment.is_active = False
    await db.flush()
    return True


async def list_domain_assignments(
    db: AsyncSession,
    network: Optional[AdNetwork] = None,
    user_id: Optional[int] = None,
    include_inactive: bool = False,
) -> List[DomainAssignment]:
    query = select(DomainAssignment).options(selectinload(DomainAssignment.user))
    if network:
        query = query.where(DomainAssignment.network == network)
    if user_id is not None:
        query = query.where(DomainAssignment.user_id == user_id)
    if not include_inactive:
        query = query.where(DomainAssignment.is_active.is_(True))
    query = query.order_by(DomainAssignment.network, DomainAssignment.domain)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_user_assigned_domains(
    db: AsyncSession,
    user_id: int,
    network: Optional[AdNetwork] = None,
) -> List[str]:
    assignments = await list_domain_assignments(db, network=network, user_id=user_id)
    return [a.domain for a in assignments]


async def sync_domains_to_assignment(
    db: AsyncSession,
    user_id: int,
    domains: Iterable[str],
    network: AdNetwork,
    default_rev_share: Decimal = DEFAULT_REV_SHARE,
) -> Dict[str, int]:
    """
    Create assignments for discovered domains that have none yet.

    Existing assignments (active or not) are left untouched.

    Returns:
        {"created": n, "existing": n}
    """
    created = 0
    existing = 0
    seen = set()
    for raw in domains:
        domain = normalize_domain(raw)
        if not domain or domain in seen:
            continue
        seen.add(domain)

        if await _find_assignment(db, domain, network):
            existing += 1
            continue

        db.add(
            DomainAssignment(
                domain=domain,
                network=network,
                user_id=user_id,
                rev_share=Decimal(str(default_rev_share)),
                is_active=True,
                notes=f"Auto-created from {network.value} sync",
            )
        )
        created += 1

    await db.flush()
    logger.info(f"Domain discovery ({network.value}): {created} created, {existing} existing")
    return {"created": created, "existing": existing}
