"""Leased connection handles.

A ``ConnectionHandle`` wraps one physical connection checked out of a
pool for the duration of one request. It is either leased or released,
never both: ``release`` is idempotent, so defensive cleanup code can call
it again without handing the same connection back to the pool twice.
"""

import time
import uuid
from typing import Any, Awaitable, Callable, Optional

from ..core.exceptions import ConnectionPoolError, ErrorCodes, ReleaseFailedError
from ..logging import get_logger
from .engines import Engine
from .models import ConnectionSettings

ReleaseCallback = Callable[[Any, bool], Awaitable[None]]

logger = get_logger(__name__)


class ConnectionHandle:
    """Single-use lease on one engine-native connection.

    Attributes:
        engine: Engine the connection belongs to
        settings: Resolved settings the pool was created from
        pool_key: Key of the owning pool (logged, never returned to API callers)
        handle_id: Short identifier used in log events

    Example:
        >>> async with await adapter.connect(entry) as handle:
        ...     rows = await adapter.list_tables(handle)
    """

    def __init__(
        self,
        connection: Any,
        *,
        engine: Engine,
        settings: ConnectionSettings,
        pool_key: str,
        release_callback: ReleaseCallback,
    ) -> None:
        self._connection = connection
        self.engine = engine
        self.settings = settings
        self.pool_key = pool_key
        self.handle_id = uuid.uuid4().hex[:12]
        self.acquired_at = time.monotonic()
        self._release_callback: Optional[ReleaseCallback] = release_callback
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def connection(self) -> Any:
        """The native connection.

        Raises:
            ConnectionPoolError: If the handle was already released
        """
        if self._released:
            raise ConnectionPoolError(
                "Connection handle has already been released",
                code=ErrorCodes.POOL_CLOSED,
                context={"engine": self.engine.value, "handle_id": self.handle_id},
            )
        return self._connection

    async def release(self, *, discard: bool = False) -> None:
        """Return the connection to its pool.

        Calling this more than once is a no-op. Failures are logged as
        ReleaseFailed and never raised, so a successful request is not
        turned into a failed one by cleanup.

        Args:
            discard: Close the connection instead of returning it for reuse
        """
        if self._released:
            logger.debug("Handle already released", engine=self.engine.value, handle_id=self.handle_id)
            return

        self._released = True
        connection, self._connection = self._connection, None
        callback, self._release_callback = self._release_callback, None
        held_ms = (time.monotonic() - self.acquired_at) * 1000

        try:
            await callback(connection, discard)
        except Exception as e:
            error = ReleaseFailedError(
                f"Failed to release {self.engine.value} connection: {e}",
                code=ErrorCodes.RELEASE_FAILED,
                context={"engine": self.engine.value, "handle_id": self.handle_id},
                cause=e,
            )
            logger.warning(
                "Connection release failed",
                engine=self.engine.value,
                pool_key=self.pool_key,
                handle_id=self.handle_id,
                error_code=error.code,
                error=error.message,
            )
            return

        logger.debug(
            "Connection released",
            engine=self.engine.value,
            handle_id=self.handle_id,
            held_ms=held_ms,
            discarded=discard,
        )

    async def __aenter__(self) -> "ConnectionHandle":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "leased"
        return f"ConnectionHandle(engine={self.engine.value!r}, id={self.handle_id!r}, {state})"
