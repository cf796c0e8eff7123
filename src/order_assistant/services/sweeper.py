"""
Recurring background sweeps for the context and history stores
"""
import asyncio
import logging
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class SweepScheduler:
    """
    Runs the context reap and the history sweep on their own intervals.

    Nothing starts on construction: the host calls start() and stop(), and
    tests call run_once() to sweep synchronously.
    """

    def __init__(self, reap_contexts: Callable[[], int], sweep_history: Callable[[], int],
                 reap_interval_hours: float, sweep_interval_hours: float):
        self._jobs: Dict[str, tuple] = {
            "context-reap": (reap_contexts, reap_interval_hours * 3600),
            "history-sweep": (sweep_history, sweep_interval_hours * 3600),
        }
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def run_once(self) -> Dict[str, Optional[int]]:
        return {name: self._run_job(name, job) for name, (job, _) in self._jobs.items()}

    def start(self):
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._loop(name, job, interval), name=name)
            for name, (job, interval) in self._jobs.items()
        ]
        logger.info("Background sweeps started")

    async def stop(self):
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if tasks:
            logger.info("Background sweeps stopped")

    async def _loop(self, name: str, job: Callable[[], int], interval_seconds: float):
        while True:
            await asyncio.sleep(interval_seconds)
            self._run_job(name, job)

    @staticmethod
    def _run_job(name: str, job: Callable[[], int]) -> Optional[int]:
        try:
            return job()
        except Exception:
            logger.exception(f"Sweep '{name}' failed")
            return None
