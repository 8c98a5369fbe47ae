import asyncio
import logging
import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..models import BotAudit, LinkClick
from ..models.click import (
    ATTRIBUTION_MAX_LENGTH, DEVICE_MAX_LENGTH, IP_MAX_LENGTH, REFERRER_MAX_LENGTH
)
from ..schemas.click import ClickEvent
from ..utils.geo import GeoData, get_geo_data
from ..utils.validators import truncate

logger = logging.getLogger(__name__)


def build_click(event: ClickEvent, geo: GeoData) -> LinkClick:
    """Build the click row. Every call gets a new click id and load timestamp."""
    return LinkClick(
        click_id=str(uuid.uuid4()),
        tracked_date=event.tracked_date,
        load_ts=datetime.now().astimezone(),
        link_id=event.token,
        device=truncate(event.user_agent, DEVICE_MAX_LENGTH),
        os=event.device_os,
        country=geo.country,
        state=geo.state,
        city=geo.city,
        ipaddress=truncate(event.client_ip, IP_MAX_LENGTH),
        click_count=1,
        referrer=truncate(event.referrer, REFERRER_MAX_LENGTH),
        campaign_id=truncate(event.campaign_id, ATTRIBUTION_MAX_LENGTH),
        execution_id=truncate(event.execution_id, ATTRIBUTION_MAX_LENGTH),
        recipient_id=truncate(event.recipient_id, ATTRIBUTION_MAX_LENGTH),
    )


def build_bot_audit(event: ClickEvent, click: LinkClick) -> BotAudit:
    return BotAudit(
        audit_id=str(uuid.uuid4()),
        click_id=click.click_id,
        link_id=event.token,
        crawler=event.crawler,
        user_agent=truncate(event.user_agent, DEVICE_MAX_LENGTH),
        ipaddress=truncate(event.client_ip, IP_MAX_LENGTH),
        tracked_date=event.tracked_date,
    )


async def _insert_click(pool: AsyncEngine, event: ClickEvent) -> str:
    geo = await run_in_threadpool(get_geo_data, event.client_ip)
    click = build_click(event, geo)
    click_id = click.click_id

    async with AsyncSession(pool, expire_on_commit=False) as session:
        session.add(click)
        if event.is_bot:
            session.add(build_bot_audit(event, click))
        await session.commit()

    return click_id


async def record_click(pool: AsyncEngine, event: ClickEvent) -> bool:
    """
    Persist one click for a resolved token.

    Best effort: any failure is logged and swallowed so analytics never
    change the redirect outcome. Nothing is retried.

    Returns:
        True if the row was written
    """
    try:
        click_id = await asyncio.wait_for(
            _insert_click(pool, event), timeout=settings.DB_TIMEOUT_SECONDS
        )
        logger.debug("Logged click %s for token %s", click_id, event.token)
    except Exception:
        logger.exception("Click logging failed for token %s", event.token)
        return False

    return True
