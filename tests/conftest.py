"""Shared fixtures: credentials, a fixed clock and a recording fake transport."""
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from mws_sdk.amazon.client import MWSClient
from mws_sdk.amazon.marketplaces import Credentials
from mws_sdk.amazon.signer import SignedRequest
from mws_sdk.amazon.transport import TransportResponse

XML = {"content-type": "text/xml"}

FIXED_MOMENT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class FakeTransport:
    """
    Transport double.

    Records every SignedRequest and answers with queued responses in order.
    """

    def __init__(self):
        self.requests: List[SignedRequest] = []
        self._responses: List[TransportResponse] = []

    def queue(self, body: str, status: int = 200, headers: Optional[Dict[str, str]] = None):
        self._responses.append(TransportResponse(status, body, dict(headers or XML)))
        return self

    def execute(self, request: SignedRequest) -> TransportResponse:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {request.query.get('Action')}")
        return self._responses.pop(0)

    @property
    def actions(self) -> List[str]:
        return [request.query["Action"] for request in self.requests]


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        seller_id="SELLER123",
        marketplace_id="A1PA6795UKMFR9",
        access_key_id="AKIDEXAMPLE",
        secret_access_key="secret-key",
    )


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_MOMENT


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(credentials, fake_transport, fixed_clock) -> MWSClient:
    return MWSClient(credentials, transport=fake_transport, clock=fixed_clock)
