"""
Sync orchestration: fetch -> reconcile -> overview fold.

run_network_sync is the cron path (every active account, unassigned
revenue to the first admin, overview for all users). run_manual_sync is
a user-triggered sync with the default account.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from src.collectors.records import FetchResult
from src.models import AdNetwork, User
from src.services.cache import RevenueCache
from src.services.network_accounts import AccountCredentials, get_active_accounts, get_default_account
from src.services.notifications import notify_sync_failure
from src.services.overview import OverviewResult, sync_overview
from src.services.reconciliation import ReconcileResult, save_revenue
from src.services.revenue_share import get_fallback_admin
from src.services.system_settings import mark_synced

logger = logging.getLogger(__name__)

MAX_ERROR_DETAILS = 10


class SyncNotConfigured(Exception):
    """No configured credentials for the network. Not a failure worth notifying."""

    def __init__(self, network: AdNetwork, config: Optional[Dict[str, bool]] = None):
        super().__init__(f"{network.value.capitalize()} API not configured")
        self.network = network
        self.config = config or {}


class SyncFetchError(Exception):
    """The upstream fetch failed as a whole."""


@dataclass
class AccountSyncResult:
    account_id: Optional[int]
    account_name: str
    success: bool = False
    records_fetched: int = 0
    domains_fetched: int = 0
    date_range: Optional[tuple] = None
    error: Optional[str] = None
    reconcile: ReconcileResult = field(default_factory=ReconcileResult)

    @property
    def error_count(self) -> int:
        return len(self.reconcile.errors) + (1 if self.error else 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accountId": self.account_id,
            "accountName": self.account_name,
            "success": self.success,
            "error": self.error,
            "recordsFetched": self.records_fetched,
            "recordsSaved": self.reconcile.saved,
            "recordsUpdated": self.reconcile.updated,
            "recordsSkipped": self.reconcile.skipped,
            "errors": self.error_count,
        }


def _date_range(value: Optional[tuple]) -> Optional[Dict[str, str]]:
    if not value:
        return None
    return {"start": value[0].isoformat(), "end": value[1].isoformat()}


async def sync_account(
    db: AsyncSession,
    network: AdNetwork,
    account: AccountCredentials,
    fallback_user_id: int,
    cache: Optional[RevenueCache] = None,
    filter_by_assigned_domains: bool = False,
    domain: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AccountSyncResult:
    """Fetch one account's revenue and reconcile it into the ledger."""
    outcome = AccountSyncResult(account_id=account.account_id, account_name=account.name)

    try:
        async with account.client(transport=transport) as client:
            fetched = await client.fetch_revenue(domain=domain)
    except Exception as e:
        # Unexpected client failure counts as a failed fetch for this account only
        logger.exception(f"{network.value} account '{account.name}' fetch crashed")
        fetched = FetchResult.failed(f"Unexpected {network.value} fetch error: {e}")

    if not fetched.success:
        outcome.error = fetched.error or f"Failed to fetch {network.value} data"
        logger.error(f"{network.value} account '{account.name}' fetch failed: {outcome.error}")
        return outcome

    outcome.records_fetched = len(fetched.records)
    outcome.domains_fetched = len({r.domain for r in fetched.records if r.domain})
    outcome.date_range = fetched.date_range
    logger.info(f"{network.value} account '{account.name}': fetched {outcome.records_fetched} records")

    outcome.reconcile = await save_revenue(
        db,
        network,
        fetched.records,
        fallback_user_id,
        cache=cache,
        filter_by_assigned_domains=filter_by_assigned_domains,
        account_id=account.account_id,
    )
    outcome.success = True
    return outcome


def build_sync_response(
    network: AdNetwork,
    accounts: List[AccountSyncResult],
    overview: OverviewResult,
    started: float,
) -> Dict[str, Any]:
    """Cron response body with totals across accounts."""
    save_errors = [e for a in accounts for e in a.reconcile.errors]
    fetch_errors = [f"{a.account_name}: {a.error}" for a in accounts if a.error]
    ranges = [a.date_range for a in accounts if a.date_range]
    date_range = (min(r[0] for r in ranges), max(r[1] for r in ranges)) if ranges else None
    error_count = sum(a.error_count for a in accounts) + len(overview.errors)
    success = any(a.success for a in accounts)

    body = {
        "success": success,
        "message": f"{network.value.capitalize()} cron sync completed",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "duration": f"{int((time.monotonic() - started) * 1000)}ms",
        "summary": {
            "accountsProcessed": len(accounts),
            "recordsFetched": sum(a.records_fetched for a in accounts),
            "recordsSaved": sum(a.reconcile.saved for a in accounts),
            "recordsUpdated": sum(a.reconcile.updated for a in accounts),
            "recordsSkipped": sum(a.reconcile.skipped for a in accounts),
            "overviewSynced": overview.synced,
            "domainsFetched": sum(a.domains_fetched for a in accounts),
            "dateRange": _date_range(date_range),
            "errors": error_count,
        },
        "accounts": [a.to_dict() for a in accounts],
        "details": {
            "fetchErrors": fetch_errors[:MAX_ERROR_DETAILS] or None,
            "saveErrors": save_errors[:MAX_ERROR_DETAILS] or None,
            "overviewErrors": overview.errors[:MAX_ERROR_DETAILS] or None,
        },
    }
    if not success:
        body["error"] = fetch_errors[0] if fetch_errors else f"{network.value} sync failed"
    return body


async def run_network_sync(
    db: AsyncSession,
    network: AdNetwork,
    cache: Optional[RevenueCache] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Scheduled sync of every active account of a network.

    Revenue goes to the domain owner; unassigned domains go to the
    first active admin. One account failing does not stop the others.
    An email is sent when the run reports any error.
    """
    started = time.monotonic()
    logger.info(f"Starting {network.value} sync")

    accounts = await get_active_accounts(db, network)
    configured = [a for a in accounts if a.is_configured()]
    if not configured:
        logger.warning(f"{network.value} sync skipped: API not configured")
        return {
            "success": False,
            "error": f"{network.value.capitalize()} API not configured",
            "config": accounts[0].config_status() if accounts else {},
        }

    admin = await get_fallback_admin(db)
    if admin is None:
        logger.error(f"{network.value} sync aborted: no admin user")
        return {
            "success": False,
            "error": "No admin user found. Please create an admin user first.",
        }
    fallback_user_id = admin.id

    results: List[AccountSyncResult] = []
    for account in configured:
        results.append(
            await sync_account(db, network, account, fallback_user_id, cache=cache, transport=transport)
        )

    overview = OverviewResult()
    if any(r.success for r in results):
        overview = await sync_overview(db, network, user_id=None, cache=cache)

    await mark_synced(db, network)
    await db.commit()

    body = build_sync_response(network, results, overview, started)
    summary = body["summary"]
    logger.info(
        f"{network.value} sync complete in {body['duration']}: {summary['recordsSaved']} saved, "
        f"{summary['recordsUpdated']} updated, {summary['recordsSkipped']} skipped, {summary['errors']} errors"
    )

    if summary["errors"] > 0:
        details = (body["details"]["fetchErrors"] or []) + (body["details"]["saveErrors"] or [])
        await notify_sync_failure(
            db,
            network,
            body.get("error") or f"{summary['errors']} errors during sync",
            details + (body["details"]["overviewErrors"] or []),
        )

    return body


async def run_manual_sync(
    db: AsyncSession,
    network: AdNetwork,
    user: User,
    cache: Optional[RevenueCache] = None,
    domain: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Sync triggered from the panel with the network's default account.

    Publishers only receive rows for their assigned domains; their sync
    refolds their own overview plus that of any user a row was taken
    from. An admin sync keeps unassigned revenue under the admin and
    refolds every user's overview.

    Raises:
        SyncNotConfigured: no usable credentials
        SyncFetchError: the fetch failed
    """
    account = await get_default_account(db, network)
    if not account.is_configured():
        raise SyncNotConfigured(network, account.config_status())

    # Plain values: a per-record rollback expires ORM instances
    user_id = user.id
    is_admin = user.is_admin

    logger.info(f"Manual {network.value} sync by user {user_id} (admin: {is_admin})")
    outcome = await sync_account(
        db,
        network,
        account,
        fallback_user_id=user_id,
        cache=cache,
        filter_by_assigned_domains=not is_admin,
        domain=domain,
        transport=transport,
    )
    if not outcome.success:
        raise SyncFetchError(outcome.error)

    if is_admin:
        overview = await sync_overview(db, network, user_id=None, cache=cache)
    else:
        # Rows taken over from other owners leave stale overview rows under them
        overview = OverviewResult()
        for fold_user_id in [user_id, *sorted(outcome.reconcile.repointed_from - {user_id})]:
            overview.merge(await sync_overview(db, network, user_id=fold_user_id, cache=cache))

    return {
        "success": True,
        "message": f"{network.value.capitalize()} data synced successfully",
        "sync": {
            "fetched": outcome.records_fetched,
            "saved": outcome.reconcile.saved,
            "updated": outcome.reconcile.updated,
            "skipped": outcome.reconcile.skipped,
            "errors": len(outcome.reconcile.errors),
        },
        "dateRange": _date_range(outcome.date_range),
        "overview": {
            "synced": overview.synced,
            "errors": len(overview.errors),
        },
        "errorDetails": outcome.reconcile.errors[:MAX_ERROR_DETAILS] or None,
    }
