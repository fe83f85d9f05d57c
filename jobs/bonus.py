import logging
import queue
import threading

from errors import SyncError
from schemas import Subscriber

logger = logging.getLogger(__name__)

SUBSCRIBERS_COLLECTION = "subscribers"
PRODUCER_PAGE_SIZE = 30

CHECK_EVENT = "check_subscription"
BONUS_EVENT = "bonus"


class BonusChecker:
    """
    Awards the loyalty bonus once a subscriber has confirmed their membership
    of the configured list.
    """

    def __init__(self, config, listmonk, mcrm, datastore, ledger, events):
        self.list_id = config.list_id
        self.bonus_sum = config.bonus_sum
        self.listmonk = listmonk
        self.mcrm = mcrm
        self.datastore = datastore
        self.ledger = ledger
        self.events = events
        # uids queued or being checked, and uids awarded by this process
        self._lock = threading.Lock()
        self._pending = set()
        self._awarded = set()

    def claim(self, uid):
        """Reserve a uid for one check; False if it is in flight or already awarded"""
        with self._lock:
            if uid in self._pending or uid in self._awarded:
                return False
            self._pending.add(uid)
            return True

    def release(self, uid, awarded):
        with self._lock:
            self._pending.discard(uid)
            if awarded:
                self._awarded.add(uid)

    def check(self, subscriber, record_failures=True):
        """
        Returns True when the bonus was awarded by this call. Failures go to the
        retry ledger unless record_failures is off, in which case they raise.
        """
        if subscriber.bonus_status:
            return False

        try:
            current = self.listmonk.get_subscriber(subscriber.uid)
        except SyncError as e:
            self.events.record("Listmonk GET API error:", str(e), uid=subscriber.uid)
            if not record_failures:
                raise
            self.ledger.add(str(subscriber.uid), CHECK_EVENT, str(e))
            return False

        if not current.is_confirmed(self.list_id):
            return False

        try:
            self.mcrm.award_bonus(subscriber.phone, self.bonus_sum)
        except SyncError as e:
            self.events.record("MCRM bonus API error:", str(e), uid=subscriber.uid)
            if not record_failures:
                raise
            self.ledger.add(str(subscriber.uid), BONUS_EVENT, str(e))
            return False

        subscriber.bonus_status = True
        try:
            self.datastore.update(SUBSCRIBERS_COLLECTION, subscriber.id, {"bonus_status": True})
        except SyncError as e:
            # The award went through; the caller must not offer this uid again
            self.events.record("Failed to update subscriber bonus status:", str(e), uid=subscriber.uid)
            return True

        logger.info("Bonus awarded: uid=%s phone=%s sum=%s", subscriber.uid, subscriber.phone, self.bonus_sum)
        return True

    def check_uid(self, uid):
        """Re-run the check for one subscriber looked up by uid (retry path)"""
        items = self.datastore.list_page(
            SUBSCRIBERS_COLLECTION, 1, 1, filter=f"uid={int(uid)}"
        ).get("items") or []
        if not items:
            logger.info("No subscriber with uid=%s, nothing to check", uid)
            return False

        subscriber = Subscriber.from_dict(items[0])
        if not self.claim(subscriber.uid):
            logger.info("Subscriber uid=%s is being checked or was already awarded", subscriber.uid)
            return False
        awarded = False
        try:
            awarded = self.check(subscriber, record_failures=False)
        finally:
            self.release(subscriber.uid, awarded)
        return awarded


class BonusWorkerPool:
    """
    A producer that re-scans unflagged subscribers every cycle, feeding a
    bounded queue drained by a fixed number of worker threads.
    """

    def __init__(self, checker, datastore, workers=10, queue_size=2000, interval=15, bulk_timeout=30):
        self.checker = checker
        self.datastore = datastore
        self.workers = workers
        self.interval = interval
        self.bulk_timeout = bulk_timeout
        self.queue = queue.Queue(maxsize=queue_size)

    def produce_once(self, stop=None):
        """Queue every unflagged subscriber not already queued; returns how many"""
        try:
            items = self.datastore.list_all(
                SUBSCRIBERS_COLLECTION, per_page=PRODUCER_PAGE_SIZE, timeout=self.bulk_timeout
            )
        except SyncError as e:
            self.checker.events.record("PocketBase fetch subscribers error:", str(e))
            return 0

        queued = 0
        for item in items:
            subscriber = Subscriber.from_dict(item)
            if subscriber.bonus_status or not self.checker.claim(subscriber.uid):
                continue
            while True:
                try:
                    self.queue.put(subscriber, timeout=1)
                    break
                except queue.Full:
                    if stop is not None and stop.is_set():
                        self.checker.release(subscriber.uid, False)
                        return queued
            queued += 1

        logger.info("Queued %d of %d subscribers for bonus check", queued, len(items))
        return queued

    def process_one(self, subscriber):
        awarded = False
        try:
            awarded = self.checker.check(subscriber)
        except Exception:
            logger.exception("Bonus check crashed for uid=%s", subscriber.uid)
        finally:
            self.checker.release(subscriber.uid, awarded)
        return awarded

    def work(self, stop):
        while not stop.is_set():
            try:
                subscriber = self.queue.get(timeout=1)
            except queue.Empty:
                continue
            try:
                self.process_one(subscriber)
            finally:
                self.queue.task_done()

    def produce(self, stop):
        while not stop.is_set():
            self.produce_once(stop)
            stop.wait(self.interval)
