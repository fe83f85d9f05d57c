import logging
import threading
from dataclasses import dataclass

from errors import SyncError
from schemas import Subscriber

logger = logging.getLogger(__name__)

SUBSCRIBERS_COLLECTION = "subscribers"
LISTMONK_PAGE_SIZE = 1000
POCKETBASE_PAGE_SIZE = 100


@dataclass
class ReconcileResult:
    created: int = 0
    updated: int = 0
    aborted: bool = False
    fetch_failed: bool = False


class Reconciler:
    """
    Keeps the PocketBase subscribers collection in line with the members of
    the configured Listmonk list. Matching is by Listmonk id (uid).
    """

    def __init__(self, config, listmonk, datastore, events):
        self.list_id = config.list_id
        self.interval = config.reconcile_interval
        self.cooldown = config.reconcile_cooldown
        self.bulk_timeout = config.bulk_timeout
        self.listmonk = listmonk
        self.datastore = datastore
        self.events = events

    def _fetch_members(self):
        members = {}
        for subscriber in self.listmonk.iter_list_members(self.list_id, LISTMONK_PAGE_SIZE):
            members[subscriber.id] = subscriber
        return members

    def _fetch_existing(self):
        items = self.datastore.list_all(
            SUBSCRIBERS_COLLECTION, per_page=POCKETBASE_PAGE_SIZE, timeout=self.bulk_timeout
        )
        existing = {}
        for item in items:
            record = Subscriber.from_dict(item)
            existing[record.uid] = record
        return existing

    def run_once(self):
        result = ReconcileResult()

        if self.list_id is None or self.list_id <= 0:
            # Process log only: a misconfigured cycle touches no collaborator
            logger.error("Invalid listID: listID=%s is not a valid identifier", self.list_id)
            result.aborted = True
            return result

        # Both sides are fetched in full before anything is written
        try:
            members = self._fetch_members()
        except SyncError as e:
            self.events.record("Listmonk GET subscribers error:", str(e))
            result.aborted = result.fetch_failed = True
            return result
        try:
            existing = self._fetch_existing()
        except SyncError as e:
            self.events.record("PocketBase fetch subscribers error:", str(e))
            result.aborted = result.fetch_failed = True
            return result

        for uid, member in members.items():
            current = existing.get(uid)
            if current is None:
                record = Subscriber.from_listmonk(member)
                try:
                    record.id = self.datastore.create(SUBSCRIBERS_COLLECTION, record.to_dict())
                except SyncError as e:
                    self.events.record("Failed to save new subscriber:", str(e), uid=uid)
                    continue
                existing[uid] = record
                result.created += 1
                logger.info("Saved new subscriber: uid=%s email=%s phone=%s", uid, record.email, record.phone)
                continue

            if current.email == member.email and current.phone == member.phone:
                continue
            try:
                self.datastore.update(
                    SUBSCRIBERS_COLLECTION,
                    current.id,
                    {"email": member.email, "phone": member.phone},
                )
            except SyncError as e:
                self.events.record("Failed to update subscriber:", str(e), uid=uid)
                continue
            current.email = member.email
            current.phone = member.phone
            result.updated += 1
            logger.info("Updated subscriber: uid=%s email=%s phone=%s", uid, member.email, member.phone)

        logger.info(
            "Reconciliation done: list=%s members=%d created=%d updated=%d",
            self.list_id, len(members), result.created, result.updated,
        )
        return result

    def run(self, stop, wake=None):
        """Reconcile until stop is set; setting wake starts the next cycle early"""
        wake = wake or threading.Event()
        while not stop.is_set():
            try:
                result = self.run_once()
            except Exception:
                logger.exception("Reconciliation cycle crashed")
                result = ReconcileResult(aborted=True, fetch_failed=True)

            delay = self.cooldown if result.fetch_failed else self.interval
            wake.wait(delay)
            wake.clear()
