"""Sync failure notifications via the Resend API."""

import asyncio
import html
import logging
from typing import Iterable, Optional

import resend
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.models import AdNetwork
from src.services.system_settings import get_admin_email, get_setting

logger = logging.getLogger(__name__)

MAX_DETAIL_LINES = 10


def build_sync_failure_email(network: AdNetwork, error: str, details: Iterable[str] = ()) -> dict:
    """Subject and HTML body for a failed sync."""
    lines = "".join(f"<li>{html.escape(line)}</li>" for line in list(details)[:MAX_DETAIL_LINES])
    body = f"<p><strong>Error:</strong> {html.escape(error)}</p>"
    if lines:
        body += f"<ul>{lines}</ul>"
    return {
        "subject": f"[RevEngine] {network.value.capitalize()} Sync Failed",
        "html": f"<h2>{network.value.capitalize()} sync failed</h2>{body}",
    }


async def notify_sync_failure(
    db: AsyncSession,
    network: AdNetwork,
    error: str,
    details: Iterable[str] = (),
) -> bool:
    """
    Email the admin about a failed or partially failed sync.

    Returns False when notifications are off, Resend is not configured,
    or sending failed. Never raises.
    """
    if not await get_setting(db, "email_on_sync_failure", True):
        logger.debug("Sync failure emails disabled")
        return False

    recipient: Optional[str] = await get_admin_email(db)
    if not settings.resend_api_key or not recipient:
        logger.warning(f"{network.value} sync failed but email is not configured: {error}")
        return False

    message = build_sync_failure_email(network, error, details)
    try:
        resend.api_key = settings.resend_api_key
        await asyncio.to_thread(
            resend.Emails.send,
            {
                "from": settings.email_from,
                "to": recipient,
                "subject": message["subject"],
                "html": message["html"],
            },
        )
    except Exception as e:
        logger.error(f"Failed to send {network.value} sync failure email: {e}")
        return False

    logger.info(f"Sync failure email sent to {recipient} for {network.value}")
    return True
