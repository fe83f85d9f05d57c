import logging
import threading

from jobs.bonus import BonusChecker, BonusWorkerPool
from jobs.reconcile import Reconciler
from jobs.retry import RetryProcessor

logger = logging.getLogger(__name__)


class BackgroundJobs:
    """
    Owns the background threads: retry processor, bonus producer and its
    worker pool, and the reconciliation loop. One stop event shuts them all
    down.
    """

    def __init__(self, retry_processor, bonus_pool, reconciler):
        self.retry_processor = retry_processor
        self.bonus_pool = bonus_pool
        self.reconciler = reconciler
        self.stop_event = threading.Event()
        self.reconcile_wake = threading.Event()
        self.threads = []

    def _spawn(self, name, target, *args):
        thread = threading.Thread(target=target, args=args, name=name, daemon=True)
        thread.start()
        self.threads.append(thread)

    def start(self):
        if self.threads:
            return False
        self.stop_event.clear()
        self.reconcile_wake.clear()
        self._spawn("retry-processor", self.retry_processor.run, self.stop_event)
        self._spawn("reconciler", self.reconciler.run, self.stop_event, self.reconcile_wake)
        self._spawn("bonus-producer", self.bonus_pool.produce, self.stop_event)
        for n in range(self.bonus_pool.workers):
            self._spawn(f"bonus-worker-{n}", self.bonus_pool.work, self.stop_event)
        logger.info("Background jobs started (%d threads)", len(self.threads))
        return True

    def trigger_reconcile(self):
        """Ask the reconciliation loop for a pass now instead of at its next tick"""
        self.reconcile_wake.set()

    def stop(self, timeout=5):
        self.stop_event.set()
        self.reconcile_wake.set()
        for thread in self.threads:
            thread.join(timeout)
        alive = [thread.name for thread in self.threads if thread.is_alive()]
        if alive:
            logger.warning("Background threads still running after stop: %s", alive)
        self.threads = []
        logger.info("Background jobs stopped")


__all__ = [
    "BackgroundJobs",
    "BonusChecker",
    "BonusWorkerPool",
    "Reconciler",
    "RetryProcessor",
]
