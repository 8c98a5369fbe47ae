import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import get_connection_string, settings
from .core.exceptions import ConfigurationError, DataAccessError

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()

ConnectFunc = Callable[[str, Callable[[AsyncEngine], None]], Awaitable[AsyncEngine]]


def build_database_url(conn_string: str):
    """
    Turn a connection string into something create_async_engine accepts.

    SQLAlchemy URLs pass through; ODBC style "Server=...;Database=..."
    strings are wrapped for the aioodbc SQL Server dialect.
    """
    conn_string = (conn_string or "").strip()
    if not conn_string:
        raise ConfigurationError("Missing DB connection string")

    if "://" in conn_string:
        return conn_string

    if "driver=" not in conn_string.lower():
        conn_string = f"Driver={{{settings.ODBC_DRIVER}}};{conn_string}"

    return URL.create("mssql+aioodbc", query={"odbc_connect": conn_string})


async def connect_pool(url, on_fatal_error: Callable[[AsyncEngine], None]) -> AsyncEngine:
    """Create the engine, verify it with a round trip and watch for lost connections"""
    engine_kwargs = {"pool_pre_ping": True}
    if not str(url).startswith("sqlite"):
        engine_kwargs["pool_size"] = settings.DB_POOL_SIZE

    try:
        engine = create_async_engine(url, **engine_kwargs)
    except (SQLAlchemyError, ImportError) as e:
        raise ConfigurationError(f"Unusable DB connection string: {e}") from e

    @event.listens_for(engine.sync_engine, "handle_error")
    def receive_handle_error(context):
        if context.is_disconnect:
            logger.error("Database pool error: %s", context.original_exception)
            on_fatal_error(engine)

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        await engine.dispose()
        raise DataAccessError(f"Database connect failed: {e}") from e
    except asyncio.CancelledError:
        # Timed out by the pool manager
        await engine.dispose()
        raise

    return engine


class PoolManager:
    """
    Owns the process-wide database pool.

    The first acquire() starts a single connect task; concurrent callers
    share it. A failed connect is forgotten so the next call tries again,
    and a pool that reports a lost connection is discarded so the next
    call reconnects. A connect that outlives the timeout counts as failed.
    """

    def __init__(self, connect: ConnectFunc = connect_pool,
                 connection_string: Optional[str] = None,
                 connect_timeout: Optional[float] = None):
        self._connect = connect
        self._connection_string = connection_string
        self._connect_timeout = connect_timeout
        self._pending: Optional[asyncio.Future] = None
        self._disposals = set()

    @property
    def state(self) -> str:
        if self._pending is None:
            return "uninitialized"
        if not self._pending.done():
            return "connecting"
        return "ready"

    async def acquire(self) -> AsyncEngine:
        if self._pending is None:
            conn_string = self._connection_string
            if conn_string is None:
                conn_string = get_connection_string()
            url = build_database_url(conn_string)

            logger.info("Opening database pool")
            self._pending = asyncio.ensure_future(self._bounded_connect(url))
            self._pending.add_done_callback(self._forget_failed)

        # A cancelled waiter must not cancel the shared connect
        return await asyncio.shield(self._pending)

    async def _bounded_connect(self, url) -> AsyncEngine:
        timeout = self._connect_timeout
        if timeout is None:
            timeout = settings.DB_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(self._connect(url, self.discard), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise DataAccessError(f"Database connect timed out after {timeout}s") from e

    def _forget_failed(self, future: asyncio.Future) -> None:
        if future.cancelled() or future.exception() is not None:
            if self._pending is future:
                self._pending = None

    def discard(self, pool: AsyncEngine) -> None:
        """Drop the cached pool if it is still the current one"""
        current = self._pending
        if current is None or not current.done() or current.cancelled():
            return
        if current.exception() is None and current.result() is pool:
            logger.warning("Discarding database pool, next request reconnects")
            self._pending = None
            self._retire(pool)

    def _retire(self, pool: AsyncEngine) -> None:
        # Checked-out connections are closed when their holders return them
        task = asyncio.get_running_loop().create_task(pool.dispose())
        self._disposals.add(task)
        task.add_done_callback(self._disposal_done)

    def _disposal_done(self, task: asyncio.Task) -> None:
        self._disposals.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Disposing discarded pool failed: %s", task.exception())

    async def close(self) -> None:
        if self._disposals:
            await asyncio.gather(*self._disposals, return_exceptions=True)

        pending, self._pending = self._pending, None
        if pending is None or not pending.done():
            return
        if not pending.cancelled() and pending.exception() is None:
            await pending.result().dispose()


pool_manager = PoolManager()


# Dependency to get the pool manager
def get_pool_manager() -> PoolManager:
    return pool_manager
