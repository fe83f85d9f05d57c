import logging

from errors import SyncError
from schemas import RetryEntry, utc_timestamp

logger = logging.getLogger(__name__)

RETRY_COLLECTION = "retry"
MAX_RETRIES = 5


class RetryLedger:
    """Failed relay attempts waiting for the retry processor"""

    def __init__(self, datastore, events, max_retries=MAX_RETRIES, page_size=100):
        self.datastore = datastore
        self.events = events
        self.max_retries = max_retries
        self.page_size = page_size

    def add(self, serial, event, error_message):
        """Create an entry with retry_count 0; returns its id or None if the write failed"""
        entry = RetryEntry(serial=serial, event=event, error_message=error_message)
        try:
            entry.id = self.datastore.create(RETRY_COLLECTION, entry.to_dict())
        except SyncError as e:
            self.events.record("Retry save error:", str(e))
            return None
        logger.info("Added retry entry: serial=%s event=%s id=%s", serial, event, entry.id)
        return entry.id

    def pending(self):
        items = self.datastore.list_all(RETRY_COLLECTION, per_page=self.page_size)
        return [RetryEntry.from_dict(item) for item in items]

    def exhausted(self, entry):
        return entry.retry_count >= self.max_retries

    def record_failure(self, entry, error_message):
        """Count one more failed attempt; the count only ever goes up"""
        entry.retry_count += 1
        entry.error_message = error_message
        entry.timestamp = utc_timestamp()
        try:
            self.datastore.update(RETRY_COLLECTION, entry.id, entry.to_dict())
        except SyncError as e:
            self.events.record("Failed to update retry entry:", str(e))
            return False
        logger.info(
            "Updated retry entry: id=%s serial=%s retry_count=%d",
            entry.id, entry.serial, entry.retry_count,
        )
        return True

    def resolve(self, entry):
        try:
            self.datastore.delete(RETRY_COLLECTION, entry.id)
        except SyncError as e:
            self.events.record("Failed to delete retry entry:", str(e))
            return False
        logger.info("Deleted retry entry: id=%s serial=%s", entry.id, entry.serial)
        return True
