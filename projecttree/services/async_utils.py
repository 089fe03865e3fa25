# projecttree/services/async_utils.py
import asyncio
from typing import Any, Coroutine, Optional

from PySide6.QtCore import QObject, QTimer
from loguru import logger


class EventLoopPump(QObject):
    """
    Runs an asyncio loop on the Qt main thread.

    A QTimer gives the loop one pass every `interval_ms`, so coroutines and
    Qt slots share a single thread and never mutate tree state concurrently.
    Blocking work goes to the loop's default executor and comes back through
    call_soon_threadsafe.
    """

    def __init__(self, interval_ms: int = 10, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.loop = asyncio.new_event_loop()
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._tick)

    def start(self):
        asyncio.set_event_loop(self.loop)
        self._timer.start()
        logger.debug(f"Asyncio pump started ({self._timer.interval()} ms).")

    def _tick(self):
        # Run everything that is ready right now, then hand control back to Qt
        self.loop.call_soon(self.loop.stop)
        self.loop.run_forever()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]":
        """Schedules `coro` on the pumped loop; it starts on the next tick."""
        return self.loop.create_task(coro)

    def stop(self):
        """Stops pumping, cancels leftover tasks and closes the loop."""
        self._timer.stop()
        if self.loop.is_closed():
            return
        pending = [task for task in asyncio.all_tasks(self.loop) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.debug(f"Cancelling {len(pending)} pending tasks on shutdown.")
            self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        self.loop.run_until_complete(self.loop.shutdown_default_executor())
        self.loop.close()
        asyncio.set_event_loop(None)
        logger.debug("Asyncio pump stopped.")
