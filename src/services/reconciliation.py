"""
Revenue reconciliation: raw network records -> ledger rows.

Each record is resolved to an owner, priced and upserted on its own,
with its own commit. A failing record is rolled back and reported in
the result; the rest of the batch continues. Re-running a batch gives
the same ledger state.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.collectors.records import RawRevenueRecord, to_utc_date
from src.models import AdNetwork, SedoLedgerEntry, YandexLedgerEntry
from src.services.cache import CacheKeys, RevenueCache
from src.services.revenue_share import (
    CENT,
    DomainOwner,
    calculate_net_revenue,
    get_domain_assignment_map,
    normalize_domain,
)
from src.services.system_settings import get_default_rev_share

logger = logging.getLogger(__name__)

LEDGER_MODELS = {
    AdNetwork.SEDO: SedoLedgerEntry,
    AdNetwork.YANDEX: YandexLedgerEntry,
}

LEDGER_CURRENCIES = {
    AdNetwork.SEDO: "EUR",
    AdNetwork.YANDEX: "USD",
}

SAVED = "saved"
UPDATED = "updated"
SKIPPED = "skipped"


@dataclass
class ReconcileResult:
    saved: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    # Users whose ledger rows were re-pointed to another owner
    repointed_from: Set[int] = field(default_factory=set)

    @property
    def written(self) -> int:
        return self.saved + self.updated

    def to_dict(self) -> Dict:
        return {
            "saved": self.saved,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "repointedFrom": sorted(self.repointed_from),
        }


def calculate_ctr(clicks: int, impressions: int) -> Optional[Decimal]:
    """clicks / impressions * 100, None without impressions."""
    if not impressions:
        return None
    return (Decimal(clicks) * 100 / Decimal(impressions)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_rpm(gross: Decimal, impressions: int) -> Optional[Decimal]:
    """Revenue per thousand impressions, None without impressions."""
    if not impressions:
        return None
    return (Decimal(str(gross)) * 1000 / Decimal(impressions)).quantize(CENT, rounding=ROUND_HALF_UP)


def match_nullable(column, value):
    if value is None:
        return column.is_(None)
    return column == value


def invalidate_revenue_caches(cache: Optional[RevenueCache]) -> None:
    """Drop every dashboard and sync-status entry, for all users."""
    if cache is None:
        return
    cache.invalidate_prefix(CacheKeys.DASHBOARD_PREFIX)
    cache.invalidate_prefix(CacheKeys.SYNC_STATUS_PREFIX)


async def _upsert_record(
    db: AsyncSession,
    network: AdNetwork,
    record: RawRevenueRecord,
    owner: DomainOwner,
    domain: Optional[str],
    account_id: Optional[int],
) -> Tuple[str, Optional[int]]:
    """Returns the outcome and, when the row changed owner, the previous owner's id."""
    model = LEDGER_MODELS[network]
    day = to_utc_date(record.date)
    gross = Decimal(str(record.revenue))
    impressions = int(record.impressions or 0)
    clicks = int(record.clicks or 0)

    key = {"date": day, "domain": domain, **record.key_fields()}
    result = await db.execute(
        select(model)
        .where(*[match_nullable(getattr(model, name), value) for name, value in key.items()])
        .order_by(model.id)
    )
    rows = list(result.scalars().all())

    # Same key under the target user wins; otherwise re-point another owner's row
    entry = next((row for row in rows if row.user_id == owner.user_id), None)
    previous_user_id = None
    if entry is None and rows:
        entry = rows[0]
        previous_user_id = entry.user_id
        logger.info(
            f"Re-pointing {network.value} ledger row {entry.id} ({day} {domain}) "
            f"from user {entry.user_id} to {owner.user_id}"
        )

    outcome = UPDATED
    if entry is None:
        entry = model(**key)
        db.add(entry)
        outcome = SAVED

    entry.user_id = owner.user_id
    entry.gross_revenue = gross.quantize(CENT, rounding=ROUND_HALF_UP)
    entry.net_revenue = calculate_net_revenue(gross, owner.rev_share)
    entry.rev_share = owner.rev_share
    entry.impressions = impressions
    entry.clicks = clicks
    entry.ctr = calculate_ctr(clicks, impressions)
    entry.rpm = calculate_rpm(gross, impressions)
    entry.currency = LEDGER_CURRENCIES[network]
    entry.account_id = account_id
    for name, value in record.extra_fields().items():
        setattr(entry, name, value)

    await db.flush()
    return outcome, previous_user_id


async def save_revenue(
    db: AsyncSession,
    network: AdNetwork,
    records: Sequence[RawRevenueRecord],
    fallback_user_id: int,
    cache: Optional[RevenueCache] = None,
    filter_by_assigned_domains: bool = False,
    account_id: Optional[int] = None,
) -> ReconcileResult:
    """
    Upsert a batch of raw records into the network's ledger.

    Args:
        db: Database session. Committed once per record.
        network: Network the records came from
        records: Raw records from a single fetch
        fallback_user_id: Owner for domains without an active assignment
        cache: Dashboard/sync-status entries are dropped after any write
        filter_by_assigned_domains: Skip unassigned records instead of
            attributing them to the fallback user
        account_id: Network account the records were fetched with

    Returns:
        ReconcileResult with saved/updated/skipped counts and per-record errors
    """
    result = ReconcileResult()
    owners = await get_domain_assignment_map(db, network)
    default_owner = DomainOwner(
        user_id=fallback_user_id,
        rev_share=await get_default_rev_share(db),
    )

    for record in records:
        domain = normalize_domain(record.domain)
        owner = owners.get(domain) if domain else None
        if owner is None:
            if filter_by_assigned_domains:
                result.skipped += 1
                continue
            owner = default_owner

        try:
            outcome, previous_user_id = await _upsert_record(db, network, record, owner, domain, account_id)
            await db.commit()
        except Exception as e:
            await db.rollback()
            message = f"Failed to save {network.value} record {record.date} {domain or '(aggregate)'}: {e}"
            logger.error(message)
            result.errors.append(message)
            continue

        if outcome == SAVED:
            result.saved += 1
        else:
            result.updated += 1
        if previous_user_id is not None:
            result.repointed_from.add(previous_user_id)

    if result.written:
        invalidate_revenue_caches(cache)

    logger.info(
        f"{network.value} reconciliation: {result.saved} saved, {result.updated} updated, "
        f"{result.skipped} skipped, {len(result.errors)} errors"
    )
    return result


async def save_sedo_revenue(db: AsyncSession, records, fallback_user_id: int, **kwargs) -> ReconcileResult:
    return await save_revenue(db, AdNetwork.SEDO, records, fallback_user_id, **kwargs)


async def save_yandex_revenue(db: AsyncSession, records, fallback_user_id: int, **kwargs) -> ReconcileResult:
    return await save_revenue(db, AdNetwork.YANDEX, records, fallback_user_id, **kwargs)
