"""
Cancel-and-supersede handle for a single in-flight asyncio operation.
"""
import asyncio
import logging
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)

class CancellableQuery:
    """
    Owns at most one live task. Starting a new one cancels the previous one first,
    so an owner never holds two live operations.
    """

    def __init__(self, name: str = "query"):
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def supersede(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """
        Cancel the current operation (if any) and start coro in its place.

        Args:
            coro: Coroutine to run as the new operation

        Returns:
            The task now owned by this handle
        """
        self.cancel()
        self._task = asyncio.create_task(coro)
        return self._task

    def cancel(self) -> bool:
        """
        Cancel the current operation.

        Returns:
            True if a live task was cancelled
        """
        if self.active and self._task is not asyncio.current_task():
            self._task.cancel()
            logger.debug(f"Cancelled in-flight {self.name}")
            return True
        return False

    async def wait(self):
        """Wait for the current operation to settle, whether it finished or was cancelled."""
        task = self._task
        if task is not None and task is not asyncio.current_task():
            await asyncio.wait({task})
