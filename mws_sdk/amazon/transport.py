"""HTTP transport for signed MWS requests."""
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import requests

from mws_sdk.amazon.signer import SignedRequest
from mws_sdk.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Status, text body and lower-cased headers of one HTTP exchange."""
    status: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Anything that can execute a SignedRequest."""

    def execute(self, request: SignedRequest) -> TransportResponse:
        ...


class RequestsTransport:
    """
    Blocking transport on top of a `requests.Session`.

    Non-2xx answers are returned, not raised; classifying them is the
    decoder's job. Only connection-level failures raise TransportError.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def execute(self, request: SignedRequest) -> TransportResponse:
        # The query string is pre-encoded so the bytes sent are the bytes signed
        url = f"{request.url}?{request.query_string}"
        try:
            response = self.session.request(
                request.method,
                url,
                headers=request.headers,
                data=request.body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error(
                "[MWS] %s %s failed: %s", request.method, request.url, exc, exc_info=True
            )
            raise TransportError() from exc

        logger.debug("[MWS] %s %s -> %s", request.method, request.url, response.status_code)
        return TransportResponse(
            status=response.status_code,
            body=response.text,
            headers={name.lower(): value for name, value in response.headers.items()},
        )

    def close(self) -> None:
        self.session.close()
