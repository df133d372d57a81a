"""Unit tests for Signature Version 2 signing."""
import base64
import hashlib
import hmac
from datetime import datetime, timedelta, timezone

import pytest

from mws_sdk.amazon.endpoints import lookup
from mws_sdk.amazon.signer import (
    RequestSigner,
    canonical_string,
    content_md5,
    encode_query,
    format_timestamp,
    sign_query,
)


@pytest.fixture
def signer(credentials, fixed_clock):
    return RequestSigner(credentials, clock=fixed_clock)


class TestTimestamp:
    def test_utc_moment(self):
        moment = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "2024-01-02T03:04:05.000Z"

    def test_offset_is_converted_to_utc(self):
        moment = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(moment) == "2024-01-02T03:04:05.000Z"

    def test_naive_is_taken_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"


class TestCanonicalString:
    """Layout, ordering and encoding of the string that gets signed."""

    def test_keys_are_sorted(self):
        canonical = canonical_string("POST", "mws.amazonservices.com", "/", {"B": "2", "A": "1"})
        assert canonical == "POST\nmws.amazonservices.com\n/\nA=1&B=2"

    def test_method_upper_and_host_lower(self):
        canonical = canonical_string("post", "MWS.AmazonServices.com", "/Orders/2013-09-01", {})
        assert canonical == "POST\nmws.amazonservices.com\n/Orders/2013-09-01\n"

    def test_byte_order_puts_uppercase_first(self):
        canonical = canonical_string("POST", "h", "/", {"a": "1", "B": "2"})
        assert canonical.endswith("B=2&a=1")

    def test_rfc3986_encoding(self):
        assert encode_query({"a b": "x/y~*+"}) == "a%20b=x%2Fy~%2A%2B"

    def test_unreserved_characters_untouched(self):
        assert encode_query({"Key": "AZaz09-_.~"}) == "Key=AZaz09-_.~"

    def test_non_ascii_is_utf8_encoded(self):
        assert encode_query({"Title": "é"}) == "Title=%C3%A9"


class TestSignature:
    def test_signature_is_deterministic(self):
        query = {"Action": "ListOrders", "Timestamp": "2024-01-02T03:04:05.000Z"}
        first = sign_query("POST", "mws.amazonservices.com", "/", query, "secret")
        second = sign_query("POST", "mws.amazonservices.com", "/", dict(query), "secret")
        assert first == second

    def test_signature_changes_with_secret(self):
        query = {"Action": "ListOrders"}
        first = sign_query("POST", "mws.amazonservices.com", "/", query, "secret")
        second = sign_query("POST", "mws.amazonservices.com", "/", query, "other")
        assert first["Signature"] != second["Signature"]

    def test_signature_matches_hmac_sha256(self, signer):
        request = signer.sign(lookup("ListOrders"), {"CreatedAfter": "2024-01-01T00:00:00.000Z"})

        unsigned = {k: v for k, v in request.query.items() if k != "Signature"}
        expected_canonical = "\n".join([
            "POST",
            "mws-eu.amazonservices.com",
            "/Orders/2013-09-01",
            encode_query(dict(sorted(unsigned.items()))),
        ])
        expected = base64.b64encode(
            hmac.new(b"secret-key", expected_canonical.encode("utf-8"), hashlib.sha256).digest()
        ).decode("ascii")

        assert request.query["Signature"] == expected

    def test_signature_is_last_parameter(self, signer):
        request = signer.sign(lookup("ListOrders"))
        assert list(request.query)[-1] == "Signature"
        assert request.query_string.rsplit("&", 1)[-1].startswith("Signature=")

    def test_same_clock_same_request(self, credentials, fixed_clock):
        first = RequestSigner(credentials, clock=fixed_clock).sign(lookup("GetOrder"), {"AmazonOrderId.Id.1": "1"})
        second = RequestSigner(credentials, clock=fixed_clock).sign(lookup("GetOrder"), {"AmazonOrderId.Id.1": "1"})
        assert first == second


class TestRequestSigner:
    """Reserved parameters, headers and URL of signed requests."""

    def test_read_request_parameters(self, signer):
        request = signer.sign(lookup("ListOrders"))

        assert request.method == "POST"
        assert request.url == "https://mws-eu.amazonservices.com/Orders/2013-09-01"
        assert request.query["Action"] == "ListOrders"
        assert request.query["AWSAccessKeyId"] == "AKIDEXAMPLE"
        assert request.query["SellerId"] == "SELLER123"
        assert request.query["MarketplaceId.Id.1"] == "A1PA6795UKMFR9"
        assert request.query["SignatureMethod"] == "HmacSHA256"
        assert request.query["SignatureVersion"] == "2"
        assert request.query["Version"] == "2013-09-01"
        assert request.query["Timestamp"] == "2024-01-02T03:04:05.000Z"

    def test_read_request_headers(self, signer):
        request = signer.sign(lookup("ListOrders"))

        assert request.headers["x-amazon-user-agent"] == "mws_sdk/MWSClient/0.0.*"
        assert "Content-MD5" not in request.headers
        assert request.body is None

    def test_marketplace_id_excludes_enumerated_form(self, signer):
        request = signer.sign(lookup("GetMyPriceForSKU"), {"MarketplaceId": "A1PA6795UKMFR9"})

        assert request.query["MarketplaceId"] == "A1PA6795UKMFR9"
        assert "MarketplaceId.Id.1" not in request.query

    def test_caller_parameters_win(self, signer):
        request = signer.sign(lookup("ListOrders"), {"SellerId": "OTHER"})
        assert request.query["SellerId"] == "OTHER"

    def test_values_are_stringified(self, signer):
        request = signer.sign(lookup("ListOrders"), {"MaxResultsPerPage": 10})
        assert request.query["MaxResultsPerPage"] == "10"

    def test_write_request(self, signer):
        body = b"<AmazonEnvelope/>"
        request = signer.sign(lookup("SubmitFeed"), {"FeedType": "_POST_INVENTORY_AVAILABILITY_DATA_"}, body)

        assert request.url == "https://mws-eu.amazonservices.com/"
        assert "SellerId" not in request.query
        assert "MarketplaceId.Id.1" not in request.query
        assert request.query["Version"] == "2009-01-01"
        assert request.headers["Content-MD5"] == base64.b64encode(hashlib.md5(body).digest()).decode()
        assert request.headers["Content-Type"] == "text/xml; charset=iso-8859-1"
        assert request.headers["Host"] == "mws-eu.amazonservices.com"
        assert request.body == body

    def test_content_md5(self):
        assert content_md5(b"") == "1B2M2Y8AsgTpgAmY7PhCfg=="
