import json

import pytest

from config import Config
from errors import UpstreamError
from event_log import EventLog
from retry_ledger import RetryLedger
from schemas import CustomerProfile, ListmonkSubscriber

BASE_ENV = {
    "POCKETBASE_URL": "https://pb.test",
    "POCKETBASE_ADMIN_TOKEN": "pb-token",
    "LISTMONK_API_URL": "https://lists.test/api/subscribers",
    "LISTMONK_USERNAME": "api",
    "LISTMONK_API_KEY": "lm-key",
    "LIST_ID": "3",
    "MCRM_API_URL_USER": "https://mcrm.test/user",
    "MCRM_API_URL_BONUS": "https://mcrm.test/bonus",
    "MCRM_API_KEY": "mcrm-key",
    "BONUS_SUM": "500",
    "WEBHOOK_USERNAME": "hook",
    "WEBHOOK_PASSWORD": "secret",
}


def make_config(**overrides):
    env = dict(BASE_ENV)
    env.update({key: str(value) for key, value in overrides.items()})
    return Config(environ=env)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.content = text.encode()

    def json(self):
        return json.loads(self.text)


def upstream_error(message="boom", status=None):
    return UpstreamError("fake", message, status=status)


class FakeDatastore:
    """In-memory PocketBase with a call log and per-operation failures"""

    def __init__(self):
        self.collections = {}
        self.calls = []
        self.fail = {}
        self._next_id = 0

    def _check(self, op, collection):
        self.calls.append((op, collection))
        error = self.fail.get((op, collection)) or self.fail.get(op)
        if error:
            raise error

    def records(self, collection):
        return list(self.collections.get(collection, {}).values())

    def seed(self, collection, data):
        self._next_id += 1
        record_id = f"rec{self._next_id}"
        self.collections.setdefault(collection, {})[record_id] = dict(data, id=record_id)
        return record_id

    def create(self, collection, data):
        self._check("create", collection)
        return self.seed(collection, data)

    def get(self, collection, record_id):
        self._check("get", collection)
        return dict(self.collections[collection][record_id])

    def update(self, collection, record_id, data):
        self._check("update", collection)
        self.collections[collection][record_id].update(data)
        return record_id

    def delete(self, collection, record_id):
        self._check("delete", collection)
        del self.collections[collection][record_id]

    def list_page(self, collection, page=1, per_page=30, filter=None, timeout=None):
        self._check("list", collection)
        items = self.records(collection)
        if filter:
            field, value = filter.split("=", 1)
            items = [item for item in items if str(item.get(field)) == value]
        total_pages = max(1, -(-len(items) // per_page)) if items else 0
        start = (page - 1) * per_page
        return {
            "items": items[start:start + per_page],
            "page": page,
            "perPage": per_page,
            "totalItems": len(items),
            "totalPages": total_pages,
        }

    def list_all(self, collection, per_page=30, filter=None, timeout=None):
        items = []
        page = 1
        while True:
            result = self.list_page(collection, page, per_page, filter=filter)
            items.extend(result["items"])
            if page >= result["totalPages"]:
                return items
            page += 1


class FakeListmonk:
    def __init__(self, members=None):
        self.members = list(members or [])
        self.created = []
        self.calls = []
        self.fail = {}
        self._next_id = 100

    def _check(self, op):
        self.calls.append(op)
        if op in self.fail:
            raise self.fail[op]

    def create_subscriber(self, upsert):
        self._check("create")
        self.created.append(upsert.to_dict())
        self._next_id += 1
        payload = upsert.to_dict()
        return ListmonkSubscriber.from_dict(
            {
                "id": self._next_id,
                "email": payload["email"],
                "name": payload["name"],
                "attribs": payload["attribs"],
                "lists": [{"id": list_id} for list_id in payload["lists"]],
            }
        )

    def get_subscriber(self, uid):
        self._check("get")
        for member in self.members:
            if member.id == uid:
                return member
        raise upstream_error(f"subscriber {uid} not found", status=404)

    def iter_list_members(self, list_id, per_page=1000):
        self._check("list")
        return [member for member in self.members if member.in_list(list_id)]


class FakeMcrm:
    def __init__(self, profile=None):
        self.profile = profile or CustomerProfile(
            first_name="A", last_name="B", phone="+1", card_number="42", email="a@b.com"
        )
        self.lookups = []
        self.awards = []
        self.fail = {}

    def lookup(self, serial):
        self.lookups.append(serial)
        if "lookup" in self.fail:
            raise self.fail["lookup"]
        return self.profile

    def award_bonus(self, phone, amount):
        self.awards.append((phone, amount))
        if "award" in self.fail:
            raise self.fail["award"]
        return {}


def member(uid, email="m@example.com", phone="+100", list_status=((3, "unconfirmed"),)):
    return ListmonkSubscriber.from_dict(
        {
            "id": uid,
            "email": email,
            "attribs": {"phone": phone},
            "lists": [{"id": lid, "subscription_status": status} for lid, status in list_status],
        }
    )


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def datastore():
    return FakeDatastore()


@pytest.fixture
def listmonk():
    return FakeListmonk()


@pytest.fixture
def mcrm():
    return FakeMcrm()


@pytest.fixture
def events(datastore):
    return EventLog(datastore)


@pytest.fixture
def ledger(datastore, events):
    return RetryLedger(datastore, events)
