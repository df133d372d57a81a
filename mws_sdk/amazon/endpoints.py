"""Static MWS endpoint registry."""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from mws_sdk.errors import UnknownOperation


WRITE_OPERATIONS = frozenset({"SubmitFeed"})


@dataclass(frozen=True)
class EndpointDescriptor:
    """Where and how one MWS operation is called."""
    action: str
    http_method: str
    path: str
    api_version: str

    @property
    def is_write(self) -> bool:
        """Feed submissions carry a body and are signed differently."""
        return self.action in WRITE_OPERATIONS


# (path, version) per sub-API family, as published by Amazon
_ORDERS = ("/Orders/2013-09-01", "2013-09-01")
_PRODUCTS = ("/Products/2011-10-01", "2011-10-01")
_FEEDS = ("/", "2009-01-01")
_REPORTS = ("/", "2009-01-01")

_FAMILIES: List[Tuple[Tuple[str, str], Tuple[str, ...]]] = [
    (_ORDERS, (
        "ListOrders",
        "GetOrder",
        "ListOrderItems",
    )),
    (_PRODUCTS, (
        "GetCompetitivePricingForASIN",
        "GetLowestPricedOffersForASIN",
        "GetMyPriceForSKU",
        "GetMyPriceForASIN",
        "GetLowestOfferListingsForASIN",
        "GetProductCategoriesForSKU",
        "GetProductCategoriesForASIN",
        "GetMatchingProductForId",
    )),
    (_FEEDS, (
        "SubmitFeed",
        "GetFeedSubmissionResult",
    )),
    (_REPORTS, (
        "RequestReport",
        "GetReportRequestList",
        "GetReportList",
        "GetReport",
    )),
]


def _build_table() -> Mapping[str, EndpointDescriptor]:
    table: Dict[str, EndpointDescriptor] = {}
    for (path, version), actions in _FAMILIES:
        for action in actions:
            table[action] = EndpointDescriptor(
                action=action,
                http_method="POST",
                path=path,
                api_version=version,
            )
    return MappingProxyType(table)


ENDPOINTS: Mapping[str, EndpointDescriptor] = _build_table()


def lookup(operation: str) -> EndpointDescriptor:
    """
    Resolve an operation name to its endpoint.

    Raises:
        UnknownOperation: If the operation is not registered.
    """
    try:
        return ENDPOINTS[operation]
    except KeyError:
        raise UnknownOperation(operation) from None
