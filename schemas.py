from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Dict, List, Optional


def utc_timestamp():
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _text(value):
    return value if isinstance(value, str) else ""


@dataclass
class CustomerProfile:
    first_name: str
    last_name: str
    phone: str
    card_number: str
    email: str

    @classmethod
    def from_dict(cls, data):
        return cls(
            first_name=_text(data.get("first_name")),
            last_name=_text(data.get("last_name")),
            phone=_text(data.get("phone")),
            card_number=_text(data.get("card_number")),
            email=_text(data.get("email")),
        )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


@dataclass
class ListMembership:
    id: int
    subscription_status: str = ""


@dataclass
class ListmonkSubscriber:
    id: int
    email: str
    name: str = ""
    status: str = ""
    attribs: Dict = field(default_factory=dict)
    lists: List[ListMembership] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        lists = [
            ListMembership(id=item.get("id"), subscription_status=_text(item.get("subscription_status")))
            for item in data.get("lists") or []
        ]
        return cls(
            id=data.get("id"),
            email=_text(data.get("email")),
            name=_text(data.get("name")),
            status=_text(data.get("status")),
            attribs=data.get("attribs") or {},
            lists=lists,
        )

    @property
    def phone(self):
        # Listmonk keeps the phone in free-form attributes
        return _text(self.attribs.get("phone"))

    def in_list(self, list_id):
        return any(membership.id == list_id for membership in self.lists)

    def is_confirmed(self, list_id):
        return any(
            membership.id == list_id and membership.subscription_status == "confirmed"
            for membership in self.lists
        )


@dataclass
class SubscriberUpsert:
    email: str
    name: str
    list_id: int
    phone: str
    card_number: str
    status: str = "enabled"

    def to_dict(self):
        return {
            "email": self.email,
            "name": self.name,
            "status": self.status,
            "lists": [self.list_id],
            "attribs": {
                "phone": self.phone,
                "card_number": self.card_number,
            },
        }


@dataclass
class BonusAward:
    number: str
    sum: float

    def to_dict(self):
        return asdict(self)


@dataclass
class Subscriber:
    uid: int
    email: str
    phone: str
    bonus_status: bool = False
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data.get("id"),
            uid=data.get("uid"),
            email=_text(data.get("email")),
            phone=_text(data.get("phone")),
            bonus_status=bool(data.get("bonus_status")),
        )

    @classmethod
    def from_listmonk(cls, subscriber):
        return cls(uid=subscriber.id, email=subscriber.email, phone=subscriber.phone)

    def to_dict(self):
        data = asdict(self)
        data.pop("id")
        return data


@dataclass
class RetryEntry:
    serial: str
    event: str
    error_message: str = ""
    retry_count: int = 0
    timestamp: str = field(default_factory=utc_timestamp)
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data.get("id"),
            serial=_text(data.get("serial")),
            event=_text(data.get("event")),
            error_message=_text(data.get("error_message")),
            retry_count=int(data.get("retry_count") or 0),
            timestamp=_text(data.get("timestamp")),
        )

    def to_dict(self):
        data = asdict(self)
        data.pop("id")
        return data


@dataclass
class LogEntry:
    error_message: str
    response: str = ""
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self):
        return asdict(self)


@dataclass
class StockItem:
    storage: str
    series: str
    count: float

    @classmethod
    def from_dict(cls, data):
        return cls(
            storage=_text(data.get("storage")),
            series=_text(data.get("series")),
            count=float(data.get("count") or 0),
        )


@dataclass
class Item:
    name: str
    characteristic: str
    price: float
    stock: List[StockItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=_text(data.get("name")),
            characteristic=_text(data.get("characteristic")),
            price=float(data.get("price") or 0),
            stock=[StockItem.from_dict(row) for row in data.get("stock") or []],
        )

    def is_empty(self):
        return not self.name and not self.stock
