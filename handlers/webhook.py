import logging

from errors import SyncError
from schemas import Subscriber, SubscriberUpsert

logger = logging.getLogger(__name__)

SUBSCRIBERS_COLLECTION = "subscribers"


def normalize_serial(serial):
    """Drop the hardware batch suffix: everything from the first hyphen on"""
    return serial.split("-", 1)[0]


def build_upsert(profile, list_id):
    return SubscriberUpsert(
        email=profile.email,
        name=profile.full_name,
        list_id=list_id,
        phone=profile.phone,
        card_number=profile.card_number,
    )


class RelayFailure(SyncError):
    """One stage of the relay pipeline failed"""

    RETRYABLE = ("lookup", "upsert")

    def __init__(self, stage, error):
        self.stage = stage
        self.error = error
        super().__init__(f"{stage} failed: {error}")

    @property
    def retryable(self):
        return self.stage in self.RETRYABLE

    def details(self):
        details = getattr(self.error, "details", None)
        return f"{self.error} {details()}" if details else str(self.error)


class DeviceRelay:
    """
    CRM lookup -> Listmonk upsert -> PocketBase subscriber record, for one
    device event. Shared by the webhook and the retry processor.
    """

    def __init__(self, config, mcrm, listmonk, datastore, events):
        self.list_id = config.list_id
        self.mcrm = mcrm
        self.listmonk = listmonk
        self.datastore = datastore
        self.events = events

    def relay(self, serial, event):
        cleaned = normalize_serial(serial)

        try:
            profile = self.mcrm.lookup(cleaned)
        except SyncError as e:
            raise RelayFailure("lookup", e) from e

        try:
            created = self.listmonk.create_subscriber(build_upsert(profile, self.list_id))
        except SyncError as e:
            raise RelayFailure("upsert", e) from e

        subscriber = Subscriber.from_listmonk(created)
        try:
            subscriber.id = self.datastore.create(SUBSCRIBERS_COLLECTION, subscriber.to_dict())
        except SyncError as e:
            raise RelayFailure("persist", e) from e

        logger.info(
            "Saved subscriber: uid=%s email=%s phone=%s event=%s",
            subscriber.uid, subscriber.email, subscriber.phone, event,
        )
        return subscriber


def handle_device_event(form, relay, ledger, events, on_success=None):
    """
    Handle a device webhook form. Returns the HTTP status to answer with.
    """
    serial = (form.get("serial") or "").strip()
    event = (form.get("event") or "").strip()

    if not serial or not event:
        logger.warning("Missing serial or event in webhook: %s", dict(form))
        return 400

    try:
        subscriber = relay.relay(serial, event)
    except RelayFailure as e:
        events.record(f"Webhook {e.stage} error:", e.details())
        if e.retryable:
            ledger.add(serial, event, e.details())
        return 500

    events.success("Webhook processed successfully", f"Subscriber UID: {subscriber.uid}")

    if on_success:
        on_success()
    return 200
