import logging

from errors import SyncError
from schemas import LogEntry

logger = logging.getLogger(__name__)

LOGS_COLLECTION = "logs"


class EventLog:
    """
    Appends advisory entries to the PocketBase logs collection and mirrors
    them to the process log. Nothing reads these back.
    """

    def __init__(self, datastore):
        self.datastore = datastore

    def record(self, message, details="", uid=None, level=logging.ERROR):
        if uid is not None:
            message = f"{message} UID: {uid}"
        entry = LogEntry(error_message=message, response=details)
        logger.log(level, "%s %s", message, details)
        try:
            self.datastore.create(LOGS_COLLECTION, entry.to_dict())
        except SyncError as e:
            logger.warning("Failed to log event to PocketBase: %s", e)
            return False
        return True

    def success(self, message, details=""):
        return self.record(message, details, level=logging.INFO)
