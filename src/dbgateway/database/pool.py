"""
Connection pool for drivers without a native async pool.

Blocking DB-API drivers (ibm_db, hdbcli, nzpy, ...) get their connections
opened in worker threads and pooled here; single-file engines use the
same pool with ``reuse=False`` so that every release fully closes the
connection.
"""

import asyncio
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Set

from dbgateway.core.exceptions import ConnectFailedError, ConnectionPoolError, ErrorCodes
from dbgateway.logging import get_logger

Opener = Callable[[], Awaitable[Any]]
Closer = Callable[[Any], Awaitable[None]]


class PooledConnection:
    """Pooled connection with its last checkout/return time."""

    def __init__(self, connection: Any):
        self.connection = connection
        self.connection_id = id(connection)
        self.last_used = time.monotonic()

    def touch(self) -> None:
        self.last_used = time.monotonic()

    def get_idle_time(self) -> float:
        return time.monotonic() - self.last_used


class ConnectionPool:
    """Bounded async connection pool.

    At most ``max_size`` connections are checked out at once; further
    ``acquire`` calls wait up to ``acquire_timeout`` for a slot. Opening
    a connection is bounded by ``connect_timeout``. Idle connections
    older than ``idle_timeout`` are closed at checkout.

    An open that outlives its caller (timeout or cancellation) keeps
    running in its worker thread; the connection it produces is closed
    as soon as it arrives.
    """

    def __init__(
        self,
        name: str,
        opener: Opener,
        closer: Closer,
        *,
        min_size: int = 1,
        max_size: int = 5,
        connect_timeout: Optional[float] = None,
        acquire_timeout: float = 30.0,
        idle_timeout: float = 300.0,
        reuse: bool = True,
    ):
        self.name = name
        self.min_size = min_size if reuse else 0
        self.max_size = max_size
        self.connect_timeout = connect_timeout
        self.acquire_timeout = acquire_timeout
        self.idle_timeout = idle_timeout
        self.reuse = reuse

        self._opener = opener
        self._closer = closer
        self._idle: Deque[PooledConnection] = deque()
        self._in_use: Dict[int, PooledConnection] = {}
        self._slots = asyncio.Semaphore(max_size)
        self._orphan_closes: Set["asyncio.Task[None]"] = set()
        self._closed = False

        self.logger = get_logger(f"dbgateway.pool.{name}")

    async def initialize(self) -> None:
        """Open ``min_size`` connections up front so bad settings fail fast."""
        self.logger.debug("Initializing connection pool",
                          min_size=self.min_size,
                          max_size=self.max_size,
                          reuse=self.reuse)
        try:
            for _ in range(self.min_size):
                self._idle.append(await self._create_connection())
        except BaseException:
            await self.close()
            raise

    async def acquire(self) -> Any:
        """Check a connection out of the pool.

        Raises:
            ConnectionPoolError: If the pool is closed or no slot frees up in time
            ConnectFailedError: If opening a new connection times out
        """
        self._ensure_open()

        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError:
            self.logger.warning("Connection pool exhausted",
                                in_use=len(self._in_use),
                                max_size=self.max_size)
            raise ConnectionPoolError(
                f"Connection pool exhausted after {self.acquire_timeout}s timeout",
                code=ErrorCodes.POOL_EXHAUSTED,
                context={"pool_size": self.max_size, "timeout": self.acquire_timeout},
            )

        try:
            self._ensure_open()
            pooled_conn = await self._checkout()
        except BaseException:
            self._slots.release()
            raise

        pooled_conn.touch()
        self._in_use[pooled_conn.connection_id] = pooled_conn
        self.logger.debug("Connection acquired", connection_id=pooled_conn.connection_id)
        return pooled_conn.connection

    async def release(self, connection: Any, *, discard: bool = False) -> None:
        """Return a connection to the pool, or close it.

        Raises:
            ConnectionPoolError: If the connection is not checked out of this pool
        """
        pooled_conn = self._in_use.pop(id(connection), None)
        if pooled_conn is None:
            raise ConnectionPoolError(
                "Connection is not checked out of this pool",
                code=ErrorCodes.RELEASE_FAILED,
                context={"pool": self.name},
            )

        try:
            if discard or not self.reuse or self._closed:
                await self._close_connection(pooled_conn.connection)
            else:
                pooled_conn.touch()
                self._idle.append(pooled_conn)
                self.logger.debug("Connection returned to pool",
                                  connection_id=pooled_conn.connection_id)
        finally:
            self._slots.release()

    async def _checkout(self) -> PooledConnection:
        while self._idle:
            pooled_conn = self._idle.popleft()
            if pooled_conn.get_idle_time() > self.idle_timeout:
                self.logger.debug("Idle connection expired",
                                  connection_id=pooled_conn.connection_id)
                await self._close_connection(pooled_conn.connection)
                continue
            return pooled_conn
        return await self._create_connection()

    async def _create_connection(self) -> PooledConnection:
        start_time = time.perf_counter()
        opening = asyncio.ensure_future(self._opener())
        try:
            raw_connection = await asyncio.wait_for(asyncio.shield(opening), timeout=self.connect_timeout)
        except asyncio.TimeoutError as e:
            opening.add_done_callback(self._close_orphan)
            raise ConnectFailedError(
                f"Opening a connection timed out after {self.connect_timeout}s",
                code=ErrorCodes.CONNECTION_TIMEOUT,
                context={"pool": self.name, "timeout": self.connect_timeout},
                cause=e,
            ) from e
        except asyncio.CancelledError:
            opening.add_done_callback(self._close_orphan)
            raise

        pooled_conn = PooledConnection(raw_connection)
        self.logger.debug("New connection created",
                          connection_id=pooled_conn.connection_id,
                          creation_time_ms=(time.perf_counter() - start_time) * 1000)
        return pooled_conn

    def _close_orphan(self, opening: "asyncio.Future[Any]") -> None:
        if opening.cancelled() or opening.exception() is not None:
            return
        self.logger.warning("Closing connection opened after its caller gave up")
        closing = asyncio.ensure_future(self._close_connection(opening.result()))
        self._orphan_closes.add(closing)
        closing.add_done_callback(self._orphan_closes.discard)

    async def _close_connection(self, connection: Any) -> None:
        try:
            await self._closer(connection)
        except Exception as e:
            self.logger.warning("Error closing connection",
                                connection_id=id(connection),
                                error=str(e))

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionPoolError(
                "Connection pool is closed",
                code=ErrorCodes.POOL_CLOSED,
                context={"pool": self.name},
            )

    async def close(self) -> None:
        """Close idle connections and refuse new checkouts.

        Connections still checked out are closed when they are released.
        """
        if self._closed:
            return

        self._closed = True
        idle_count = len(self._idle)
        while self._idle:
            await self._close_connection(self._idle.popleft().connection)
        if self._orphan_closes:
            await asyncio.gather(*self._orphan_closes)

        self.logger.debug("Connection pool closed",
                          closed_idle=idle_count,
                          still_in_use=len(self._in_use))

    @property
    def is_closed(self) -> bool:
        return self._closed
