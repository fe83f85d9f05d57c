import logging

from errors import SyncError
from handlers.webhook import RelayFailure
from jobs.bonus import BONUS_EVENT, CHECK_EVENT

logger = logging.getLogger(__name__)


class RetryProcessor:
    """
    Drains the retry ledger: replays each entry once per pass, deletes it on
    success and drops it once it has used up its retries.
    """

    def __init__(self, ledger, relay, bonus_checker, events, notify=None, interval=30):
        self.ledger = ledger
        self.relay = relay
        self.bonus_checker = bonus_checker
        self.events = events
        self.notify = notify
        self.interval = interval

    def _replay(self, entry):
        if entry.event in (CHECK_EVENT, BONUS_EVENT):
            try:
                self.bonus_checker.check_uid(entry.serial)
            except ValueError as e:
                raise SyncError(f"bad subscriber uid {entry.serial!r}: {e}") from e
            return f"UID: {entry.serial}, Event: {entry.event}"

        subscriber = self.relay.relay(entry.serial, entry.event)
        return f"Serial: {entry.serial}, Event: {entry.event}, Subscriber UID: {subscriber.uid}"

    def process(self, entry):
        """Handle one ledger entry; returns 'dropped', 'resolved' or 'failed'"""
        if self.ledger.exhausted(entry):
            self.events.record("Max retries reached for serial:", entry.serial)
            self.ledger.resolve(entry)
            if self.notify:
                self.notify(
                    f"Dropped retry entry after {entry.retry_count} attempts: "
                    f"serial {entry.serial}, event {entry.event}"
                )
            return "dropped"

        try:
            details = self._replay(entry)
        except RelayFailure as e:
            self._failed(entry, e.details())
            return "failed"
        except SyncError as e:
            self._failed(entry, str(e))
            return "failed"

        self.events.success("Retry processed successfully", details)
        self.ledger.resolve(entry)
        return "resolved"

    def _failed(self, entry, error_message):
        self.events.record(
            "Retry failed for serial:",
            f"Serial: {entry.serial}, Attempt: {entry.retry_count + 1}, Error: {error_message}",
        )
        self.ledger.record_failure(entry, error_message)

    def run_once(self):
        try:
            entries = self.ledger.pending()
        except SyncError as e:
            self.events.record("Failed to fetch retry entries:", str(e))
            return {}

        counts = {"dropped": 0, "resolved": 0, "failed": 0}
        for entry in entries:
            counts[self.process(entry)] += 1
        if entries:
            logger.info("Retry pass: %s", counts)
        return counts

    def run(self, stop):
        while not stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Retry pass crashed")
            stop.wait(self.interval)
