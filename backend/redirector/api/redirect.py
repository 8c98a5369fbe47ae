import asyncio
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.background import BackgroundTask

from ..config import BOT_MAP, settings
from ..core.classifier import get_crawler_name, get_device_os
from ..core.exceptions import DataAccessError, NotFoundError, TokenValidationError
from ..database import PoolManager, get_pool_manager
from ..models.click import REFERRER_MAX_LENGTH
from ..schemas.click import ClickEvent
from ..services.click_logger import record_click
from ..services.resolver import resolve_destination
from ..utils.validators import get_client_ip, get_referrer

router = APIRouter()
logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


async def acquire_pool(manager: PoolManager) -> AsyncEngine:
    try:
        return await asyncio.wait_for(manager.acquire(), timeout=settings.DB_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as e:
        raise DataAccessError("Timed out waiting for database pool") from e


async def settle_click(task: "asyncio.Task[bool]") -> None:
    """Runs after the response is sent; keeps the invocation alive until the write lands"""
    await task


@router.api_route("/", methods=["GET", "HEAD"])
async def missing_token():
    raise TokenValidationError("Request without token")


@router.api_route("/{token}", methods=["GET", "HEAD"])
async def redirect_token(
    token: str,
    request: Request,
    campaign_id: Optional[str] = None,
    execution_id: Optional[str] = None,
    recipient_id: Optional[str] = None,
    manager: PoolManager = Depends(get_pool_manager)
):
    """
    Redirect a short link token to its destination.

    Humans get a 302. HEAD requests and known crawlers get an empty 204 so they
    never fetch the destination. The click is logged in both cases, after
    the response has been handed off.
    """
    tracked_date = datetime.now().astimezone()
    if not token:
        raise TokenValidationError("Request without token")

    user_agent = request.headers.get("user-agent", "")
    device_os = get_device_os(user_agent)
    crawler = get_crawler_name(user_agent, BOT_MAP)

    logger.info("Incoming token: %s", token)
    logger.info("User-Agent: %s", user_agent)

    pool = await acquire_pool(manager)
    destination = await resolve_destination(pool, token)
    if destination is None:
        raise NotFoundError(f"No redirect for token {token!r}")

    event = ClickEvent(
        token=token,
        user_agent=user_agent,
        device_os=device_os,
        crawler=crawler,
        client_ip=get_client_ip(request.headers),
        referrer=get_referrer(request.headers, REFERRER_MAX_LENGTH),
        tracked_date=tracked_date,
        campaign_id=campaign_id,
        execution_id=execution_id,
        recipient_id=recipient_id,
    )

    # Started now, awaited only once the response is out
    click_task = asyncio.create_task(record_click(pool, event))
    background = BackgroundTask(settle_click, click_task)

    if request.method == "HEAD" or event.is_bot:
        logger.info("No redirect for %s (crawler=%s, method=%s)", token, crawler, request.method)
        return Response(status_code=204, background=background)

    return RedirectResponse(
        url=destination,
        status_code=302,
        headers=NO_CACHE_HEADERS,
        background=background,
    )
