"""
Network accounts: stored API credentials per ad network.

Several accounts per network are supported. When none is stored, the
credentials from the environment act as a single implicit account.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.collectors import CLIENTS, create_network_client
from src.config import settings
from src.models import AdNetwork, NetworkAccount
from src.utils.encryption import decrypt_credentials, encrypt_credentials

logger = logging.getLogger(__name__)


def credential_status(network: AdNetwork, credentials: Dict[str, Any]) -> Dict[str, bool]:
    required = CLIENTS[network].required_credentials
    status = {f"has_{name}": bool(credentials.get(name)) for name in required}
    status["configured"] = all(status.values())
    return status


@dataclass
class AccountCredentials:
    """Decrypted credentials of one account. account_id is None for the env account."""

    network: AdNetwork
    name: str
    credentials: Dict[str, Any]
    account_id: Optional[int] = None

    def is_configured(self) -> bool:
        return self.config_status()["configured"]

    def config_status(self) -> Dict[str, bool]:
        """Which credential fields are set. Values are never exposed."""
        return credential_status(self.network, self.credentials)

    def client(self, transport=None):
        return create_network_client(self.network, self.credentials, transport=transport)


def env_credentials(network: AdNetwork) -> Dict[str, Any]:
    """Credentials configured through environment variables."""
    if network == AdNetwork.SEDO:
        return {
            "partner_id": settings.sedo_partner_id,
            "sign_key": settings.sedo_sign_key,
            "username": settings.sedo_username,
            "password": settings.sedo_password,
            "api_url": settings.sedo_api_url,
        }
    return {
        "oauth_token": settings.yandex_api_token,
        "api_url": settings.yandex_api_url,
    }


def _env_account(network: AdNetwork) -> AccountCredentials:
    return AccountCredentials(
        network=network,
        name=f"{network.value.capitalize()} (environment)",
        credentials=env_credentials(network),
    )


def _to_credentials(account: NetworkAccount) -> AccountCredentials:
    return AccountCredentials(
        network=account.network,
        name=account.name,
        credentials=decrypt_credentials(account.credentials),
        account_id=account.id,
    )


async def list_accounts(
    db: AsyncSession,
    network: Optional[AdNetwork] = None,
) -> List[NetworkAccount]:
    query = select(NetworkAccount).order_by(NetworkAccount.network, NetworkAccount.id)
    if network:
        query = query.where(NetworkAccount.network == network)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _clear_default(db: AsyncSession, network: AdNetwork, keep_id: Optional[int] = None) -> None:
    query = update(NetworkAccount).where(NetworkAccount.network == network)
    if keep_id is not None:
        query = query.where(NetworkAccount.id != keep_id)
    await db.execute(query.values(is_default=False))


async def create_account(
    db: AsyncSession,
    network: AdNetwork,
    name: str,
    credentials: Dict[str, Any],
    is_default: bool = False,
    is_active: bool = True,
) -> NetworkAccount:
    """Store a new account. Only one account per network can be the default."""
    if is_default:
        await _clear_default(db, network)

    account = NetworkAccount(
        network=network,
        name=name,
        credentials=encrypt_credentials(credentials),
        is_default=is_default,
        is_active=is_active,
    )
    db.add(account)
    await db.flush()
    logger.info(f"Created {network.value} account {account.id} ({name})")
    return account


async def update_account(
    db: AsyncSession,
    account: NetworkAccount,
    name: Optional[str] = None,
    credentials: Optional[Dict[str, Any]] = None,
    is_default: Optional[bool] = None,
    is_active: Optional[bool] = None,
) -> NetworkAccount:
    """
    Update an account. Credentials are merged, so a partial update keeps
    the stored values of the keys it leaves out.
    """
    if name is not None:
        account.name = name
    if credentials:
        merged = decrypt_credentials(account.credentials)
        merged.update({k: v for k, v in credentials.items() if v not in (None, "")})
        account.credentials = encrypt_credentials(merged)
    if is_active is not None:
        account.is_active = is_active
    if is_default:
        await _clear_default(db, account.network, keep_id=account.id)
        account.is_default = True
    elif is_default is False:
        account.is_default = False

    await db.flush()
    return account


async def delete_account(db: AsyncSession, account: NetworkAccount) -> None:
    await db.delete(account)
    await db.flush()
    logger.info(f"Deleted {account.network.value} account {account.id}")


def account_config_status(account: NetworkAccount) -> Dict[str, bool]:
    return credential_status(account.network, decrypt_credentials(account.credentials))


async def get_active_accounts(db: AsyncSession, network: AdNetwork) -> List[AccountCredentials]:
    """
    Active accounts for a network, default first.

    Falls back to the environment account when nothing is stored.
    """
    result = await db.execute(
        select(NetworkAccount)
        .where(NetworkAccount.network == network, NetworkAccount.is_active.is_(True))
        .order_by(NetworkAccount.is_default.desc(), NetworkAccount.id)
    )
    accounts = list(result.scalars().all())
    if not accounts:
        return [_env_account(network)]
    return [_to_credentials(account) for account in accounts]


async def get_default_account(db: AsyncSession, network: AdNetwork) -> AccountCredentials:
    """The default account, else the oldest active one, else the environment account."""
    accounts = await get_active_accounts(db, network)
    return accounts[0]
