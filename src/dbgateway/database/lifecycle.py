"""Graceful shutdown.

``LifecycleManager.shutdown`` drains the pool registry exactly once, no
matter how many signals or callers ask for it.
"""

import asyncio
import signal
from typing import Any, Dict, Iterable, Optional

from ..logging import get_logger
from .registry import PoolRegistry

DEFAULT_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class LifecycleManager:
    """Owns the shutdown sequence for one pool registry.

    Example:
        >>> lifecycle = LifecycleManager(registry)
        >>> lifecycle.install_signal_handlers(asyncio.get_running_loop())
        >>> await lifecycle.wait_stopped()
    """

    def __init__(self, registry: PoolRegistry, *, signals: Iterable[int] = DEFAULT_SIGNALS) -> None:
        self.registry = registry
        self.signals = tuple(signals)
        self.logger = get_logger("dbgateway.lifecycle")
        self._shutdown_task: Optional["asyncio.Task[Dict[str, int]]"] = None
        self._stopped = asyncio.Event()
        self._installed: list = []
        self._signal_tasks: set = set()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutdown_task is not None

    @property
    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    async def shutdown(self, reason: str = "requested") -> Dict[str, int]:
        """Drain every pool once; later calls wait for the first run.

        Returns:
            Counts of closed and failed pools from the single drain
        """
        if self._shutdown_task is None:
            self.logger.info("Shutdown started", reason=reason, active_pools=self.registry.pool_count)
            self._shutdown_task = asyncio.ensure_future(self._drain())
        else:
            self.logger.debug("Shutdown already in progress", reason=reason)
        return await asyncio.shield(self._shutdown_task)

    async def _drain(self) -> Dict[str, int]:
        try:
            result = await self.registry.close_all()
            self.logger.info("Shutdown complete", **result)
            return result
        finally:
            self._stopped.set()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    def install_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Run ``shutdown`` when a termination signal arrives.

        Loops without signal support (Windows, non-main threads) are
        skipped with a warning.
        """
        loop = loop or asyncio.get_running_loop()
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                self.logger.warning("Signal handler not installed", signal=int(sig), error=str(e))
                continue
            self._installed.append((loop, sig))

    def remove_signal_handlers(self) -> None:
        for loop, sig in self._installed:
            loop.remove_signal_handler(sig)
        self._installed.clear()

    def _on_signal(self, sig: Any) -> None:
        name = signal.Signals(sig).name
        task = asyncio.ensure_future(self.shutdown(reason=name))
        self._signal_tasks.add(task)
        task.add_done_callback(self._signal_tasks.discard)
