"""Process-wide pool registry.

The registry maps a pool key (``engine:host:port:database:user``) to one
live engine-native pool. Pools are created lazily on first use and
reused for every later request with the same key until shutdown.
"""

import asyncio
import hashlib
import hmac
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Union

from ..config.models import PoolConfig
from ..core.base import AsyncComponent
from ..core.exceptions import ConnectFailedError, ConnectionPoolError, ErrorCodes, GatewayException
from .adapters import ADAPTERS, EngineAdapter
from .engines import Engine, parse_engine
from .handle import ConnectionHandle
from .models import ConnectionSettings


@dataclass
class PoolEntry:
    """One registry slot: a native pool and the adapter that owns it."""
    key: str
    engine: Engine
    settings: ConnectionSettings
    pool: Any
    adapter: EngineAdapter
    acquire_timeout: float
    password_digest: bytes = field(default=b"", repr=False)
    created_at: float = field(default_factory=time.time)

    def accepts(self, settings: ConnectionSettings) -> bool:
        """Whether ``settings`` carry the password this pool was opened with."""
        return hmac.compare_digest(self.password_digest, password_digest(settings.password))


def password_digest(password: Optional[str]) -> bytes:
    return hashlib.sha256((password or "").encode("utf-8")).digest()


class PoolRegistry(AsyncComponent[PoolConfig]):
    """Lazily created, single-flight pool map.

    Concurrent first requests for the same key wait on a per-key lock, so
    exactly one pool is created. A failed creation leaves no entry behind.
    A pool is only handed to requests that present the password it was
    created with.
    After ``close_all`` the registry refuses to create new pools.

    Example:
        >>> registry = PoolRegistry(PoolConfig())
        >>> async with registry.acquire("postgresql", config) as handle:
        ...     rows = await handle_adapter.list_tables(handle)
    """

    component_name = "PoolRegistry"

    def __init__(
        self,
        config: Optional[PoolConfig] = None,
        *,
        adapters: Optional[Mapping[Engine, EngineAdapter]] = None,
    ) -> None:
        super().__init__(config if config is not None else PoolConfig())
        self._adapters: Mapping[Engine, EngineAdapter] = adapters if adapters is not None else ADAPTERS
        self._entries: Dict[str, PoolEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._closed = False

    async def _async_initialize(self) -> None:
        self._closed = False

    async def _async_cleanup(self) -> None:
        await self.close_all()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def adapter_for(self, engine: Union[str, Engine]) -> EngineAdapter:
        return self._adapters[parse_engine(engine)]

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionPoolError(
                "Pool registry is shut down",
                code=ErrorCodes.POOL_CLOSED,
            )

    async def get_or_create_pool(self, engine: Union[str, Engine], config: Mapping[str, Any]) -> PoolEntry:
        """Return the pool for a config, creating it on first use.

        Args:
            engine: Engine or engine name
            config: Validated connection config

        Returns:
            Registry entry holding the pool

        Raises:
            UnsupportedEngineError: If the engine is unknown
            ConnectFailedError: If the pool cannot be created
            ConnectionPoolError: If the registry is shut down
        """
        resolved = parse_engine(engine)
        settings = ConnectionSettings.from_config(resolved, config)
        key = settings.pool_key

        entry = self._entries.get(key)
        if entry is not None:
            return self._checked(entry, settings)

        self._ensure_open()
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            entry = self._entries.get(key)
            if entry is not None:
                return self._checked(entry, settings)

            self._ensure_open()
            adapter = self._adapters[resolved]
            adapter.load_driver()

            start_time = time.perf_counter()
            try:
                pool = await adapter.create_pool(settings, self.config)
            except GatewayException:
                raise
            except Exception as e:
                raise ConnectFailedError(
                    f"Failed to create {resolved.value} pool: {e}",
                    context={"engine": resolved.value, "host": settings.host, "port": settings.port},
                    cause=e,
                ) from e

            if self._closed:
                await adapter.close_pool(pool)
                self._ensure_open()

            entry = PoolEntry(
                key=key,
                engine=resolved,
                settings=settings,
                pool=pool,
                adapter=adapter,
                acquire_timeout=self.config.acquire_timeout,
                password_digest=password_digest(settings.password),
            )
            self._entries[key] = entry

        self._logger.info(
            "Pool created",
            engine=resolved.value,
            pool_key=key,
            max_size=self.config.max_size,
            creation_time_ms=(time.perf_counter() - start_time) * 1000,
        )
        return entry

    def _checked(self, entry: PoolEntry, settings: ConnectionSettings) -> PoolEntry:
        if not entry.accepts(settings):
            self._logger.warning("Pool credentials mismatch", engine=entry.engine.value, pool_key=entry.key)
            raise ConnectFailedError(
                f"Authentication failed for user {settings.user!r}",
                code=ErrorCodes.AUTH_FAILED,
                context={"engine": entry.engine.value, "host": settings.host, "port": settings.port},
            )
        return entry

    @asynccontextmanager
    async def acquire(self, engine: Union[str, Engine], config: Mapping[str, Any]) -> AsyncIterator[ConnectionHandle]:
        """Lease a validated connection; it is released on every exit path."""
        entry = await self.get_or_create_pool(engine, config)
        handle = await entry.adapter.connect(entry)
        try:
            yield handle
        finally:
            await handle.release()

    async def close_all(self) -> Dict[str, int]:
        """Close every pool exactly once.

        Each pool gets ``shutdown_timeout`` seconds; a pool that does not
        close in time is abandoned and logged. Per-pool failures never
        stop the remaining pools from closing.

        Returns:
            Counts of closed and failed pools
        """
        self._closed = True
        entries = list(self._entries.values())
        self._entries.clear()
        self._locks.clear()

        closed = failed = 0
        for entry in entries:
            try:
                await asyncio.wait_for(
                    entry.adapter.close_pool(entry.pool),
                    timeout=self.config.shutdown_timeout,
                )
                closed += 1
                self._logger.debug("Pool closed", engine=entry.engine.value, pool_key=entry.key)
            except asyncio.TimeoutError:
                failed += 1
                self._logger.warning(
                    "Pool close timed out, abandoning pool",
                    engine=entry.engine.value,
                    pool_key=entry.key,
                    timeout=self.config.shutdown_timeout,
                )
            except Exception as e:
                failed += 1
                self._logger.error(
                    "Pool close failed",
                    engine=entry.engine.value,
                    pool_key=entry.key,
                    error=str(e),
                )

        if entries:
            self._logger.info("Pool registry drained", closed=closed, failed=failed)
        return {"closed": closed, "failed": failed}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def pool_count(self) -> int:
        return len(self._entries)

    def get_health_status(self) -> Dict[str, Any]:
        status = super().get_health_status()
        status.update(self.stats())
        return status

    def stats(self) -> Dict[str, Any]:
        """Pool counts per engine; keys stay internal."""
        per_engine: Dict[str, int] = {}
        for entry in self._entries.values():
            per_engine[entry.engine.value] = per_engine.get(entry.engine.value, 0) + 1
        return {
            "active_pools": len(self._entries),
            "pools_by_engine": per_engine,
            "closed": self.is_closed,
        }
