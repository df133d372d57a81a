"""
MWS Signature Version 2 request signing.

The canonical string hashed for the signature is

    METHOD \\n HOST \\n PATH \\n SORTED_ENCODED_QUERY

and must match, byte for byte, the string the server rebuilds from the
request it receives. The same encoder renders the transmitted query string.
"""
import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import quote

from mws_sdk.amazon.endpoints import EndpointDescriptor
from mws_sdk.amazon.marketplaces import Credentials

logger = logging.getLogger(__name__)

SIGNATURE_METHOD = "HmacSHA256"
SIGNATURE_VERSION = "2"
APPLICATION_NAME = "mws_sdk/MWSClient"
FEED_CONTENT_TYPE = "text/xml; charset=iso-8859-1"

# RFC 3986 unreserved characters are left as-is
_SAFE_CHARS = "-_.~"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """
    Render a moment as MWS expects it: UTC, zero milliseconds, trailing Z.

    Naive datetimes are taken to be UTC already.

    Example: 2024-01-02T03:04:05.000Z
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + ".000Z"


def encode_query(query: Mapping[str, str]) -> str:
    """Percent-encode a query in the key order given (space -> %20)."""
    return "&".join(
        f"{quote(str(key), safe=_SAFE_CHARS)}={quote(str(value), safe=_SAFE_CHARS)}"
        for key, value in query.items()
    )


def sort_query(query: Mapping[str, str]) -> Dict[str, str]:
    """Order keys by their byte value, the order the signature is computed over."""
    return dict(sorted(query.items(), key=lambda item: item[0].encode("utf-8")))


def canonical_string(http_method: str, host: str, path: str, query: Mapping[str, str]) -> str:
    return "\n".join([
        http_method.upper(),
        host.lower(),
        path,
        encode_query(sort_query(query)),
    ])


def calculate_signature(canonical: str, secret: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"),
        canonical.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def content_md5(body: bytes) -> str:
    """Base64 of the raw MD5 digest, as sent in the Content-MD5 header."""
    return base64.b64encode(hashlib.md5(body).digest()).decode("ascii")


def sign_query(
    http_method: str,
    host: str,
    path: str,
    query: Mapping[str, str],
    secret: str,
) -> Dict[str, str]:
    """
    Sort and sign a fully assembled query.

    Returns:
        The byte-ordered query with `Signature` appended.
    """
    ordered = sort_query(query)
    signature = calculate_signature(
        canonical_string(http_method, host, path, ordered), secret
    )
    ordered["Signature"] = signature
    return ordered


@dataclass(frozen=True)
class SignedRequest:
    """A request ready to hand to a transport."""
    method: str
    url: str
    query: Dict[str, str]
    headers: Dict[str, str]
    body: Optional[bytes] = field(default=None, repr=False)

    @property
    def query_string(self) -> str:
        return encode_query(self.query)


class RequestSigner:
    """
    Builds signed requests for one set of credentials.

    Reserved parameters are merged under the caller's query, so caller keys
    win. The clock is injectable for reproducible signatures.
    """

    def __init__(
        self,
        credentials: Credentials,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.credentials = credentials
        self._clock = clock

    def reserved_parameters(self, endpoint: EndpointDescriptor) -> Dict[str, str]:
        return {
            "Timestamp": format_timestamp(self._clock()),
            "AWSAccessKeyId": self.credentials.access_key_id,
            "Action": endpoint.action,
            "MarketplaceId.Id.1": self.credentials.marketplace_id,
            "SellerId": self.credentials.seller_id,
            "SignatureMethod": SIGNATURE_METHOD,
            "SignatureVersion": SIGNATURE_VERSION,
            "Version": endpoint.api_version,
        }

    def build_query(
        self,
        endpoint: EndpointDescriptor,
        query: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        merged = self.reserved_parameters(endpoint)
        merged.update({key: str(value) for key, value in (query or {}).items()})

        # MarketplaceId and MarketplaceId.Id.1 are never sent together
        if "MarketplaceId" in merged:
            merged.pop("MarketplaceId.Id.1", None)

        if endpoint.is_write:
            merged.pop("MarketplaceId.Id.1", None)
            merged.pop("SellerId", None)
        return merged

    def build_headers(
        self,
        endpoint: EndpointDescriptor,
        body: Optional[bytes],
    ) -> Dict[str, str]:
        headers = {
            "Accept": "application/xml",
            "x-amazon-user-agent": (
                f"{APPLICATION_NAME}/{self.credentials.application_version}"
            ),
        }
        if endpoint.is_write:
            headers["Content-MD5"] = content_md5(body or b"")
            headers["Content-Type"] = FEED_CONTENT_TYPE
            headers["Host"] = self.credentials.region_host
        return headers

    def sign(
        self,
        endpoint: EndpointDescriptor,
        query: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> SignedRequest:
        """
        Assemble, sort and sign a request for `endpoint`.

        Args:
            endpoint: Descriptor of the operation being called
            query: Operation parameters supplied by the caller
            body: Request body bytes (feed submissions only)

        Returns:
            SignedRequest with final query, headers and target URL
        """
        final_query = sign_query(
            endpoint.http_method,
            self.credentials.region_host,
            endpoint.path,
            self.build_query(endpoint, query),
            self.credentials.secret_access_key,
        )
        logger.debug(
            "[MWS] Signed %s %s (%d parameters)",
            endpoint.action,
            endpoint.path,
            len(final_query),
        )
        return SignedRequest(
            method=endpoint.http_method,
            url=f"{self.credentials.region_url}{endpoint.path}",
            query=final_query,
            headers=self.build_headers(endpoint, body),
            body=body,
        )

