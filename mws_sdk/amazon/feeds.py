"""
Feed (batch write) document construction.

A feed is an AmazonEnvelope holding a header, the message type and one
Message element per record:

    <AmazonEnvelope>
      <Header>
        <DocumentVersion>1.01</DocumentVersion>
        <MerchantIdentifier>SELLER</MerchantIdentifier>
      </Header>
      <MessageType>Inventory</MessageType>
      <Message>
        <MessageID>1</MessageID>
        <OperationType>Update</OperationType>
        <Inventory>...</Inventory>
      </Message>
    </AmazonEnvelope>

Payloads use xmltodict's conventions: "@name" keys are attributes and
"#text" is element text.
"""
import itertools
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

import xmltodict

from mws_sdk.errors import ValidationError

DOCUMENT_VERSION = "1.01"
ENVELOPE_ROOT = "AmazonEnvelope"
FEED_ENCODING = "iso-8859-1"

INVENTORY_FEED = "_POST_INVENTORY_AVAILABILITY_DATA_"
PRICING_FEED = "_POST_PRODUCT_PRICING_DATA_"


@dataclass(frozen=True)
class Message:
    """One feed record. The builder assigns `message_id`."""
    payload: Mapping[str, Any]
    operation_type: Optional[str] = None
    message_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"MessageID": str(self.message_id)}
        if self.operation_type:
            body["OperationType"] = self.operation_type
        body.update(self.payload)
        return body


@dataclass(frozen=True)
class FeedEnvelope:
    merchant_identifier: str
    message_type: str
    messages: Tuple[Message, ...]
    document_version: str = DOCUMENT_VERSION

    def __post_init__(self):
        object.__setattr__(self, "messages", tuple(self.messages))
        ids = [message.message_id for message in self.messages]
        if None in ids:
            raise ValidationError("Every feed message needs a MessageID")
        if len(set(ids)) != len(ids):
            raise ValidationError(f"Duplicate MessageID in feed: {ids}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            ENVELOPE_ROOT: {
                "Header": {
                    "DocumentVersion": self.document_version,
                    "MerchantIdentifier": self.merchant_identifier,
                },
                "MessageType": self.message_type,
                "Message": [message.to_dict() for message in self.messages],
            }
        }

    def to_xml(self) -> str:
        return xmltodict.unparse(self.to_dict(), encoding=FEED_ENCODING)


def encode_feed(document: str) -> bytes:
    """Feed bytes as transmitted; characters outside ISO-8859-1 become references."""
    return document.encode(FEED_ENCODING, errors="xmlcharrefreplace")


def _counter() -> Iterator[int]:
    return itertools.count(1)


class FeedBuilder:
    """
    Builds feed envelopes for one merchant.

    Message ids come from `id_factory`, called once per envelope. The default
    numbers messages 1, 2, 3, ... so the same input always yields the same
    document.
    """

    def __init__(
        self,
        merchant_id: str,
        id_factory: Callable[[], Iterator[int]] = _counter,
    ) -> None:
        self.merchant_id = merchant_id
        self._id_factory = id_factory

    def envelope(self, message_type: str, messages: Iterable[Message]) -> FeedEnvelope:
        ids = self._id_factory()
        numbered = tuple(replace(message, message_id=next(ids)) for message in messages)
        return FeedEnvelope(
            merchant_identifier=self.merchant_id,
            message_type=message_type,
            messages=numbered,
        )

    def build(self, message_type: str, messages: Iterable[Message]) -> str:
        return self.envelope(message_type, messages).to_xml()


def inventory_message(sku: str, quantity: int) -> Message:
    return Message(
        payload={"Inventory": {"SKU": sku, "Quantity": str(int(quantity))}},
        operation_type="Update",
    )


def price_message(sku: str, price: Union[Decimal, float, int, str], currency: str = "DEFAULT") -> Message:
    # price must already be an XSD numeric literal, e.g. "19.99"
    return Message(
        payload={
            "Price": {
                "SKU": sku,
                "StandardPrice": {"@currency": currency, "#text": str(price)},
            }
        },
    )
