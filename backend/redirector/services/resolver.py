import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from ..config import settings
from ..core.exceptions import DataAccessError
from ..models import Redirect
from ..models.redirect import TOKEN_MAX_LENGTH

logger = logging.getLogger(__name__)


async def _fetch_destination(pool: AsyncEngine, token: str) -> Optional[str]:
    async with AsyncSession(pool) as session:
        return await session.scalar(
            select(Redirect.destination_url).where(Redirect.token == token)
        )


async def resolve_destination(pool: AsyncEngine, token: str) -> Optional[str]:
    """
    Look up the destination URL for a token.

    Exact match only, no case folding or trimming.

    Returns:
        The destination URL, or None when the token has no entry

    Raises:
        DataAccessError: the lookup itself failed
    """
    # Cannot exist in the token column
    if len(token) > TOKEN_MAX_LENGTH:
        return None

    try:
        destination = await asyncio.wait_for(
            _fetch_destination(pool, token), timeout=settings.DB_TIMEOUT_SECONDS
        )
    except asyncio.TimeoutError as e:
        raise DataAccessError(f"Token lookup timed out for {token!r}") from e
    except (SQLAlchemyError, OSError) as e:
        raise DataAccessError(f"Token lookup failed for {token!r}: {e}") from e

    if destination is not None and not isinstance(destination, str):
        raise DataAccessError(f"Malformed destination for {token!r}: {destination!r}")

    return destination or None
