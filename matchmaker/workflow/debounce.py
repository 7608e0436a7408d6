"""
Debounced, cancellable background tasks where the last scheduled call wins.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional


logger = logging.getLogger(__name__)


class LatestTaskRunner:
    """
    Runs at most one delayed coroutine at a time.

    Scheduling a new call cancels the previous one. A result that still
    arrives from a superseded call (e.g. a blocking request that cannot be
    interrupted) is discarded, so only the most recently issued call ever
    reaches its callbacks.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def schedule(
        self,
        func: Callable[[], Awaitable[Any]],
        on_result: Callable[[Any], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> asyncio.Task:
        """
        Run `func` after the delay unless superseded.

        Args:
            func: Zero-argument coroutine factory
            on_result: Called with the result if this call is still the latest
            on_error: Called with the exception if this call is still the latest

        Returns:
            The scheduled task
        """
        self.cancel()
        generation = self._generation
        self._task = asyncio.get_running_loop().create_task(
            self._run(generation, func, on_result, on_error)
        )
        return self._task

    def cancel(self) -> None:
        """Cancel the in-flight call and invalidate any result it may still produce."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait until the current call (if any) has settled."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _run(
        self,
        generation: int,
        func: Callable[[], Awaitable[Any]],
        on_result: Callable[[Any], None],
        on_error: Optional[Callable[[Exception], None]],
    ) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

        try:
            result = await func()
        except Exception as e:
            if not self.is_current(generation):
                logger.debug(f"Ignoring error from superseded call: {e}")
            elif on_error is not None:
                on_error(e)
            else:
                logger.warning(f"Background call failed: {e}")
            return

        if self.is_current(generation):
            on_result(result)
        else:
            logger.debug("Discarding result from superseded call")
