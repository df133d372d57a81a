"""Amazon MWS SDK module."""

from .client import MWSClient
from .decoder import classify_error, decode_response, preprocess_localized
from .feeds import FeedBuilder, FeedEnvelope, Message, inventory_message, price_message
from .marketplaces import MARKETPLACE_HOSTS, Credentials
from .nodes import as_list, has_sequence_keys
from .reports import decode_report
from .signer import RequestSigner, SignedRequest
from .transport import RequestsTransport, TransportResponse

__all__ = [
    "MWSClient",
    "Credentials",
    "MARKETPLACE_HOSTS",
    "RequestSigner",
    "SignedRequest",
    "RequestsTransport",
    "TransportResponse",
    "FeedBuilder",
    "FeedEnvelope",
    "Message",
    "inventory_message",
    "price_message",
    "decode_report",
    "decode_response",
    "classify_error",
    "preprocess_localized",
    "as_list",
    "has_sequence_keys",
]
