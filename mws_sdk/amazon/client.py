from mws_sdk.logging import get_logger
from mws_sdk.errors import ServiceError, TransportError, ValidationError
logger = get_logger("MWSClient")

# ====================== ⚙️ AMAZON MWS ======================
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from core.settings import MWSSettings, get_mws_settings
from mws_sdk.amazon.decoder import decode_response, decode_xml, preprocess_localized
from mws_sdk.amazon.endpoints import lookup
from mws_sdk.amazon.feeds import (
    INVENTORY_FEED,
    PRICING_FEED,
    FeedBuilder,
    FeedEnvelope,
    encode_feed,
    inventory_message,
    price_message,
)
from mws_sdk.amazon.marketplaces import Credentials
from mws_sdk.amazon.nodes import Leaf, MapNode, Node, as_list
from mws_sdk.amazon.reports import ReportRow, decode_report
from mws_sdk.amazon.signer import RequestSigner, format_timestamp, utc_now
from mws_sdk.amazon.transport import RequestsTransport, Transport

# Per-call batch limits enforced by Amazon
PRICING_BATCH_LIMIT = 20
MATCHING_PRODUCT_BATCH_LIMIT = 5

# ListOrderItems("validate") fails with exactly this message for good credentials
VALIDATION_PROBE_ORDER_ID = "validate"
VALIDATION_PROBE_MESSAGE = "Invalid AmazonOrderId: validate"

REPORT_DONE = "_DONE_"
REPORT_DONE_NO_DATA = "_DONE_NO_DATA_"


def enumerate_param(param: str, values: Iterable[Any]) -> Dict[str, str]:
    """
    Build an enumerated MWS list parameter.

    enumerate_param("ASINList.ASIN", ["A", "B"])
    -> {"ASINList.ASIN.1": "A", "ASINList.ASIN.2": "B"}
    """
    return {f"{param}.{n}": str(value) for n, value in enumerate(values, start=1)}


def _check_batch(values: Sequence[Any], limit: int, noun: str) -> None:
    if len(values) > limit:
        raise ValidationError(
            f"Maximum amount of {noun}'s for this call is {limit}, got {len(values)}"
        )


def _check_datetime(value: Optional[datetime], name: str) -> None:
    if value is not None and not isinstance(value, datetime):
        raise ValidationError(f"{name} should be a datetime, got {type(value).__name__}")


class MWSClient:
    """
    Amazon MWS adapter.

    Each public method is one logical MWS call: it assembles the operation's
    parameters, signs the request, executes it through the transport and
    returns plain Python data (str / dict / list). Errors are raised as the
    classified types from `mws_sdk.errors`; nothing is retried.
    """

    def __init__(
        self,
        credentials: Credentials,
        transport: Optional[Transport] = None,
        clock: Callable[[], datetime] = utc_now,
        message_ids: Optional[Callable[[], Iterator[int]]] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            credentials: Validated seller credentials
            transport: HTTP transport (default: RequestsTransport)
            clock: UTC clock used for request timestamps
            message_ids: Factory of feed MessageID iterators (default: 1, 2, 3, ...)
        """
        self.credentials = credentials
        self.signer = RequestSigner(credentials, clock=clock)
        self.transport = transport or RequestsTransport()
        if message_ids is None:
            self.feeds = FeedBuilder(credentials.seller_id)
        else:
            self.feeds = FeedBuilder(credentials.seller_id, id_factory=message_ids)

        logger.info(
            "[MWS] Client ready: seller=%s marketplace=%s host=%s",
            credentials.seller_id,
            credentials.marketplace_id,
            credentials.region_host,
        )

    @classmethod
    def from_settings(cls, settings: Optional[MWSSettings] = None, **kwargs: Any) -> "MWSClient":
        """
        Build a client from environment-driven settings.

        Raises:
            ConfigurationError: If a credential is missing or the marketplace is unknown.
        """
        settings = settings or get_mws_settings()
        if kwargs.get("transport") is None:
            kwargs["transport"] = RequestsTransport(timeout=settings.http_timeout)
        return cls(settings.to_credentials(), **kwargs)

    @property
    def marketplace_id(self) -> str:
        return self.credentials.marketplace_id

    # ==============================
    # Core request path
    # ==============================

    def request(
        self,
        operation: str,
        query: Optional[Mapping[str, Any]] = None,
        body: Optional[bytes] = None,
        raw: bool = False,
    ) -> Union[Node, str]:
        """
        Sign, send and decode one MWS call.

        Args:
            operation: MWS Action name
            query: Operation parameters
            body: Request body (feed submissions)
            raw: Return the body text without decoding

        Returns:
            Node for XML responses, text for raw mode and non-XML bodies

        Raises:
            UnknownOperation: Before any network call, if the action is not registered
            ServiceError: The service returned an error envelope
            TransportError: HTTP/network failure without an error envelope
        """
        endpoint = lookup(operation)
        signed = self.signer.sign(endpoint, query, body)
        logger.info("[MWS] %s %s", endpoint.http_method, operation)
        response = self.transport.execute(signed)
        return decode_response(response, raw=raw)

    def _call(
        self,
        operation: str,
        query: Optional[Mapping[str, Any]] = None,
        body: Optional[bytes] = None,
    ) -> Node:
        result = self.request(operation, query, body)
        if isinstance(result, str):
            # MWS sometimes labels XML bodies text/plain
            result = decode_xml(result)
        return result

    # ==============================
    # Credentials
    # ==============================

    def validate_credentials(self) -> bool:
        """
        Quickly check whether the credentials are accepted.

        Returns:
            True if MWS authenticated the probe request, False otherwise.
        """
        try:
            self.list_order_items(VALIDATION_PROBE_ORDER_ID)
        except ServiceError as e:
            valid = str(e) == VALIDATION_PROBE_MESSAGE
            logger.info("[MWS] Credential check: %s (%s)", "valid" if valid else "invalid", e)
            return valid
        except TransportError as e:
            logger.warning("[MWS] Credential check failed at transport level: %s", e)
            return False
        return False

    # ==============================
    # Products
    # ==============================

    def get_competitive_pricing_for_asin(self, asins: Iterable[str]) -> Dict[str, Any]:
        """
        Return the current competitive price of products, by ASIN.

        Args:
            asins: Up to 20 ASINs

        Returns:
            {asin: Price} for each product that has a competitive price.
        """
        asins = list(asins)
        _check_batch(asins, PRICING_BATCH_LIMIT, "ASIN")

        query = {"MarketplaceId": self.marketplace_id}
        query.update(enumerate_param("ASINList.ASIN", asins))
        response = self._call("GetCompetitivePricingForASIN", query)

        prices: Dict[str, Any] = {}
        for product in as_list(response.get("GetCompetitivePricingForASINResult")):
            asin = product.text_at("Product", "Identifiers", "MarketplaceASIN", "ASIN")
            competitive = as_list(
                product.find("Product", "CompetitivePricing", "CompetitivePrices", "CompetitivePrice")
            )
            price = competitive[0].get("Price") if competitive else None
            if asin and price is not None:
                prices[asin] = price.to_python()
        return prices

    def get_lowest_priced_offers_for_asin(self, asin: str, item_condition: str = "New") -> Dict[str, Any]:
        """
        Return the lowest priced offers for a single product.

        Args:
            asin: Product ASIN
            item_condition: New, Used, Collectible, Refurbished or Club
        """
        query = {
            "ASIN": asin,
            "MarketplaceId": self.marketplace_id,
            "ItemCondition": item_condition,
        }
        return self._call("GetLowestPricedOffersForASIN", query).to_python()

    def get_my_price_for_sku(
        self, skus: Iterable[str], item_condition: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Return pricing of your own offers, by SKU.

        Returns:
            {sku: Offer} for successful lookups, {sku: False} otherwise.
        """
        return self._my_price(
            "GetMyPriceForSKU", "SellerSKUList.SellerSKU", "SellerSKU", "SKU",
            list(skus), item_condition,
        )

    def get_my_price_for_asin(
        self, asins: Iterable[str], item_condition: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Return pricing of your own offers, by ASIN.

        Returns:
            {asin: Offer} for successful lookups, {asin: False} otherwise.
        """
        return self._my_price(
            "GetMyPriceForASIN", "ASINList.ASIN", "ASIN", "ASIN",
            list(asins), item_condition,
        )

    def _my_price(
        self,
        operation: str,
        list_param: str,
        id_attribute: str,
        noun: str,
        ids: List[str],
        item_condition: Optional[str],
    ) -> Dict[str, Any]:
        _check_batch(ids, PRICING_BATCH_LIMIT, noun)

        query = {"MarketplaceId": self.marketplace_id}
        if item_condition is not None:
            query["ItemCondition"] = item_condition
        query.update(enumerate_param(list_param, ids))
        response = self._call(operation, query)

        prices: Dict[str, Any] = {}
        for product in as_list(response.get(f"{operation}Result")):
            key = product.attribute(id_attribute)
            if product.attribute("status") == "Success":
                offer = product.find("Product", "Offers", "Offer")
                prices[key] = offer.to_python() if offer is not None else None
            else:
                prices[key] = False
        return prices

    def get_lowest_offer_listings_for_asin(
        self, asins: Iterable[str], item_condition: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Return the lowest-price active offer listings, by ASIN.

        Args:
            asins: Up to 20 ASINs
            item_condition: New, Used, Collectible, Refurbished or Club (default: all)

        Returns:
            {asin: LowestOfferListing} or {asin: False} when there is none.
        """
        asins = list(asins)
        _check_batch(asins, PRICING_BATCH_LIMIT, "ASIN")

        query = {"MarketplaceId": self.marketplace_id}
        if item_condition is not None:
            query["ItemCondition"] = item_condition
        query.update(enumerate_param("ASINList.ASIN", asins))
        response = self._call("GetLowestOfferListingsForASIN", query)

        listings: Dict[str, Any] = {}
        for product in as_list(response.get("GetLowestOfferListingsForASINResult")):
            asin = (
                product.text_at("Product", "Identifiers", "MarketplaceASIN", "ASIN")
                or product.attribute("ASIN")
            )
            listing = product.find("Product", "LowestOfferListings", "LowestOfferListing")
            listings[asin] = listing.to_python() if listing is not None else False
        return listings

    def get_product_categories_for_sku(self, sku: str) -> Optional[Any]:
        """Return the parent categories of a product by SellerSKU, or None."""
        response = self._call("GetProductCategoriesForSKU", {
            "MarketplaceId": self.marketplace_id,
            "SellerSKU": sku,
        })
        categories = response.find("GetProductCategoriesForSKUResult", "Self")
        return categories.to_python() if categories is not None else None

    def get_product_categories_for_asin(self, asin: str) -> Optional[Any]:
        """Return the parent categories of a product by ASIN, or None."""
        response = self._call("GetProductCategoriesForASIN", {
            "MarketplaceId": self.marketplace_id,
            "ASIN": asin,
        })
        categories = response.find("GetProductCategoriesForASINResult", "Self")
        return categories.to_python() if categories is not None else None

    def get_matching_product_for_id(self, ids: Iterable[str], id_type: str = "ASIN") -> Dict[str, Any]:
        """
        Return products and their attributes for a list of identifiers.

        The response is localized (`<ns2:ItemAttributes xml:lang="...">`), so
        it is fetched raw and run through `preprocess_localized` first.

        Args:
            ids: Up to 5 distinct ASIN, GCID, SellerSKU, UPC, EAN, ISBN or JAN values
            id_type: Name of the identifier type

        Returns:
            {"found": {id: attributes}, "not_found": [ids]}
            attributes holds every plain-text ItemAttributes field plus
            small_image / medium_image / large_image when an image exists.
        """
        unique_ids = list(dict.fromkeys(ids))
        _check_batch(unique_ids, MATCHING_PRODUCT_BATCH_LIMIT, "id")

        query = {"MarketplaceId": self.marketplace_id, "IdType": id_type}
        query.update(enumerate_param("IdList.Id", unique_ids))
        body = self.request("GetMatchingProductForId", query, raw=True)
        response = decode_xml(preprocess_localized(body))

        found: Dict[str, Dict[str, str]] = {}
        not_found: List[str] = []
        for result in as_list(response.get("GetMatchingProductForIdResult")):
            product_id = result.attribute("Id")
            products = as_list(result.find("Products", "Product"))
            if result.attribute("status") != "Success" or not products:
                not_found.append(product_id)
                continue
            found[product_id] = self._item_attributes(products[0])

        logger.info(
            "[PRODUCTS] Matched %d of %d id(s)", len(found), len(unique_ids)
        )
        return {"found": found, "not_found": not_found}

    @staticmethod
    def _item_attributes(product: Node) -> Dict[str, str]:
        attribute_sets = as_list(product.find("AttributeSets", "ItemAttributes"))
        if not attribute_sets:
            return {}

        item = attribute_sets[0]
        attributes: Dict[str, str] = {}
        if isinstance(item, MapNode):
            for key, value in item.items():
                if isinstance(value, Leaf):
                    attributes[key] = value.text

        image = item.text_at("SmallImage", "URL")
        if image:
            attributes["medium_image"] = image
            attributes["small_image"] = image.replace("._SL75_", "._SL50_")
            attributes["large_image"] = image.replace("._SL75_", "")
        return attributes

    # ==============================
    # Orders
    # ==============================

    def list_orders(self, created_after: datetime) -> List[Dict[str, Any]]:
        """
        Return unshipped and partially shipped merchant-fulfilled orders.

        Args:
            created_after: Only orders created after this moment

        Returns:
            List of order dictionaries. Empty list when there are none.
        """
        if not isinstance(created_after, datetime):
            raise ValidationError("created_after should be a datetime")

        response = self._call("ListOrders", {
            "CreatedAfter": format_timestamp(created_after),
            "OrderStatus.Status.1": "Unshipped",
            "OrderStatus.Status.2": "PartiallyShipped",
            "FulfillmentChannel.Channel.1": "MFN",
        })
        orders = [order.to_python() for order in as_list(response.find("ListOrdersResult", "Orders", "Order"))]
        logger.info("[ORDERS] Retrieved %d order(s)", len(orders))
        return orders

    def get_order(self, amazon_order_id: str) -> Optional[Dict[str, Any]]:
        """Return one order, or None if MWS does not know it."""
        response = self._call("GetOrder", {"AmazonOrderId.Id.1": amazon_order_id})
        order = response.find("GetOrderResult", "Orders", "Order")
        return order.to_python() if order is not None else None

    def list_order_items(self, amazon_order_id: str) -> List[Dict[str, Any]]:
        """
        Return the items of an order.

        Args:
            amazon_order_id: Amazon order ID (e.g. "402-6202063-8451542")

        Returns:
            List of order item dictionaries.
        """
        response = self._call("ListOrderItems", {"AmazonOrderId": amazon_order_id})
        items = as_list(response.find("ListOrderItemsResult", "OrderItems", "OrderItem"))
        logger.info("[ORDERS] Fetched %d item(s) for order %s", len(items), amazon_order_id)
        return [item.to_python() for item in items]

    # ==============================
    # Feeds
    # ==============================

    def update_stock(self, stock: Mapping[str, int]) -> Dict[str, Any]:
        """
        Update stock quantities.

        Args:
            stock: {sku: quantity}

        Returns:
            FeedSubmissionInfo of the submitted feed.
        """
        envelope = self.feeds.envelope(
            "Inventory",
            [inventory_message(sku, quantity) for sku, quantity in stock.items()],
        )
        return self.submit_feed(INVENTORY_FEED, envelope)

    def update_price(self, prices: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update standard prices.

        Args:
            prices: {sku: price}; prices must be XSD numeric values ("19.99")

        Returns:
            FeedSubmissionInfo of the submitted feed.
        """
        envelope = self.feeds.envelope(
            "Price",
            [price_message(sku, price) for sku, price in prices.items()],
        )
        return self.submit_feed(PRICING_FEED, envelope)

    def submit_feed(
        self,
        feed_type: str,
        feed: Union[FeedEnvelope, str],
        debug: bool = False,
    ) -> Union[Dict[str, Any], str]:
        """
        Submit a feed to MWS.

        Args:
            feed_type: MWS FeedType, e.g. "_POST_INVENTORY_AVAILABILITY_DATA_"
            feed: FeedEnvelope (serialized here) or an XML document (sent as-is)
            debug: Return the XML document instead of sending it

        Returns:
            FeedSubmissionInfo, or the XML document in debug mode.
        """
        document = feed.to_xml() if isinstance(feed, FeedEnvelope) else feed
        if debug:
            return document

        query = {
            "FeedType": feed_type,
            "PurgeAndReplace": "false",
            "Merchant": self.credentials.seller_id,
        }
        if feed_type == PRICING_FEED:
            query["MarketplaceIdList.Id.1"] = self.marketplace_id

        response = self._call("SubmitFeed", query, body=encode_feed(document))
        info = response.find("SubmitFeedResult", "FeedSubmissionInfo")
        if info is None:
            raise ServiceError("SubmitFeed response has no FeedSubmissionInfo")

        logger.info(
            "[FEEDS] Submitted %s: FeedSubmissionId=%s",
            feed_type,
            info.text_at("FeedSubmissionId"),
        )
        return info.to_python()

    def get_feed_submission_result(self, feed_submission_id: str) -> Any:
        """Return the processing report of a submitted feed."""
        response = self._call("GetFeedSubmissionResult", {"FeedSubmissionId": feed_submission_id})
        report = response.find("Message", "ProcessingReport")
        if report is not None:
            return report.to_python()
        return response.to_python()

    # ==============================
    # Reports
    # ==============================

    def get_report_list(self) -> Dict[str, Any]:
        """Return the reports created in the previous 90 days."""
        return self._call("GetReportList").to_python()

    def request_report(
        self,
        report_type: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> str:
        """
        Request a report.

        Args:
            report_type: MWS ReportType, e.g. "_GET_MERCHANT_LISTINGS_DATA_"
            start_date: Optional start of the reported period
            end_date: Optional end of the reported period

        Returns:
            ReportRequestId

        Raises:
            ValidationError: If a date is not a datetime
            ServiceError: If MWS accepted the call but returned no request id
        """
        _check_datetime(start_date, "start_date")
        _check_datetime(end_date, "end_date")

        query = {"ReportType": report_type}
        if start_date is not None:
            query["StartDate"] = format_timestamp(start_date)
        if end_date is not None:
            query["EndDate"] = format_timestamp(end_date)

        response = self._call("RequestReport", query)
        request_id = response.text_at("RequestReportResult", "ReportRequestInfo", "ReportRequestId")
        if not request_id:
            raise ServiceError("Error trying to request report")

        logger.info("[REPORTS] Requested %s: ReportRequestId=%s", report_type, request_id)
        return request_id

    def get_report_request_status(self, report_request_id: str) -> Optional[Dict[str, Any]]:
        """Return the ReportRequestInfo of a report request, or None if unknown."""
        response = self._call("GetReportRequestList", {"ReportRequestIdList.Id.1": report_request_id})
        infos = as_list(response.find("GetReportRequestListResult", "ReportRequestInfo"))
        if not infos:
            return None
        return infos[0].to_python()

    def get_report(self, report_request_id: str) -> Optional[Union[List[ReportRow], Any]]:
        """
        Fetch a report's rows if it is ready.

        Single shot: callers poll this until it stops returning None.

        Returns:
            [] when the report finished without data, the decoded rows when it
            is done, None while it is still being processed.
        """
        status = self.get_report_request_status(report_request_id)
        processing = status.get("ReportProcessingStatus") if status else None

        if processing == REPORT_DONE_NO_DATA:
            return []
        if processing != REPORT_DONE:
            logger.info("[REPORTS] %s not ready (status=%s)", report_request_id, processing)
            return None

        result = self.request("GetReport", {"ReportId": status["GeneratedReportId"]})
        if isinstance(result, str):
            rows = decode_report(result)
            logger.info("[REPORTS] %s: %d row(s)", report_request_id, len(rows))
            return rows
        return result.to_python()
