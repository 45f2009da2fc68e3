"""
Structured chat messages.

Messages are stored in a plain text column. Kinds other than TEXT are
written as a sentinel prefix followed by a payload so that existing
clients can keep rendering them:

    SYSTEM:<text>
    ORDER:<json OrderPayload>
    PAYMENT_REQUEST:<json PaymentRequestPayload>
    __SOLD__:<listing_id>:<title>

Inside the service a message is always a `ChatContent`, a kind plus a
typed payload. `encode` and `decode` are the only functions that deal
with the wire form.
"""
import json
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ValidationError, model_validator


class MessageKind(str, Enum):
    TEXT = "text"
    SYSTEM = "system"
    ORDER = "order"
    PAYMENT_REQUEST = "payment_request"
    SOLD = "sold"


class TextPayload(BaseModel):
    text: str


class OrderPayload(BaseModel):
    order_id: int
    listing_id: int
    title: str
    quantity: int
    total_price: int
    thumbnail_url: Optional[str] = None


class PaymentRequestPayload(BaseModel):
    listing_id: int
    title: str
    unit_price: int
    quantity: int
    total_price: int
    thumbnail_url: Optional[str] = None


class SoldPayload(BaseModel):
    listing_id: int
    title: str


Payload = Union[TextPayload, OrderPayload, PaymentRequestPayload, SoldPayload]

PAYLOAD_TYPES = {
    MessageKind.TEXT: TextPayload,
    MessageKind.SYSTEM: TextPayload,
    MessageKind.ORDER: OrderPayload,
    MessageKind.PAYMENT_REQUEST: PaymentRequestPayload,
    MessageKind.SOLD: SoldPayload,
}


class ChatContent(BaseModel):
    kind: MessageKind
    payload: Payload

    @model_validator(mode="before")
    @classmethod
    def payload_matches_kind(cls, data):
        if not isinstance(data, dict) or "kind" not in data:
            return data
        kind = MessageKind(data["kind"])
        model = PAYLOAD_TYPES[kind]
        payload = data.get("payload")
        if isinstance(payload, dict):
            return dict(data, payload=model.model_validate(payload))
        if not isinstance(payload, model):
            raise ValueError(f"{kind.value} messages carry a {model.__name__}")
        return data

    @classmethod
    def text(cls, text: str) -> "ChatContent":
        return cls(kind=MessageKind.TEXT, payload=TextPayload(text=text))

    @classmethod
    def system(cls, text: str) -> "ChatContent":
        return cls(kind=MessageKind.SYSTEM, payload=TextPayload(text=text))

    @classmethod
    def order(cls, payload: OrderPayload) -> "ChatContent":
        return cls(kind=MessageKind.ORDER, payload=payload)

    @classmethod
    def payment_request(cls, payload: PaymentRequestPayload) -> "ChatContent":
        return cls(kind=MessageKind.PAYMENT_REQUEST, payload=payload)

    @classmethod
    def sold(cls, listing_id: int, title: str) -> "ChatContent":
        return cls(kind=MessageKind.SOLD, payload=SoldPayload(listing_id=listing_id, title=title))


SYSTEM_PREFIX = "SYSTEM:"
ORDER_PREFIX = "ORDER:"
PAYMENT_REQUEST_PREFIX = "PAYMENT_REQUEST:"
SOLD_PREFIX = "__SOLD__:"

RESERVED_PREFIXES = (SYSTEM_PREFIX, ORDER_PREFIX, PAYMENT_REQUEST_PREFIX, SOLD_PREFIX)

_JSON_KINDS = {
    ORDER_PREFIX: (MessageKind.ORDER, OrderPayload),
    PAYMENT_REQUEST_PREFIX: (MessageKind.PAYMENT_REQUEST, PaymentRequestPayload),
}


def encode(content: ChatContent) -> str:
    payload = content.payload
    if content.kind == MessageKind.TEXT:
        return payload.text
    if content.kind == MessageKind.SYSTEM:
        return SYSTEM_PREFIX + payload.text
    if content.kind == MessageKind.ORDER:
        return ORDER_PREFIX + payload.model_dump_json()
    if content.kind == MessageKind.PAYMENT_REQUEST:
        return PAYMENT_REQUEST_PREFIX + payload.model_dump_json()
    if content.kind == MessageKind.SOLD:
        return f"{SOLD_PREFIX}{payload.listing_id}:{payload.title}"
    raise ValueError(f"Unknown message kind: {content.kind}")


def decode(raw: str) -> ChatContent:
    """Parse a stored message. Anything malformed is shown as plain text."""
    if raw.startswith(SYSTEM_PREFIX):
        return ChatContent.system(raw[len(SYSTEM_PREFIX):])

    for prefix, (kind, model) in _JSON_KINDS.items():
        if raw.startswith(prefix):
            try:
                data = json.loads(raw[len(prefix):])
                return ChatContent(kind=kind, payload=model.model_validate(data))
            except (ValueError, ValidationError):
                return ChatContent.text(raw)

    if raw.startswith(SOLD_PREFIX):
        listing_part, sep, title = raw[len(SOLD_PREFIX):].partition(":")
        if sep and listing_part.isdigit():
            return ChatContent.sold(int(listing_part), title)
        return ChatContent.text(raw)

    return ChatContent.text(raw)
