"""
Response decoding for MWS.

Turns a TransportResponse into one of:

- a normalized node tree (XML content types)
- the raw body text (raw mode, and non-XML bodies such as reports)
- a classified error (any non-2xx status)

Element namespace prefixes and declarations are removed while parsing, so
`<ns2:ItemAttributes>` and `<ItemAttributes>` decode identically. Attribute
names keep their prefix: `xsi:type` and `type` are different attributes.
"""
import io
import logging
from typing import Any, Callable, Dict, Optional, Tuple, Union
from xml.parsers import expat
from xml.parsers.expat import ExpatError
from xml.sax.saxutils import XMLGenerator

import xmltodict

from mws_sdk.amazon.nodes import (
    ATTRIBUTES_KEY,
    TEXT_KEY,
    AttributedLeaf,
    Leaf,
    ListNode,
    MapNode,
    Node,
    as_list,
)
from mws_sdk.amazon.transport import TransportResponse
from mws_sdk.errors import MWSError, ServiceError, TransportError

logger = logging.getLogger(__name__)

ERROR_ENVELOPE_ROOT = "ErrorResponse"
LANGUAGE_KEY = "Language"
XML_LANG = "xml:lang"

# Locales the Products API is known to tag ItemAttributes with. Lifting works
# for any xml:lang value; this list documents what has been seen on the wire.
SUPPORTED_LOCALES = ("de-DE", "en-EN", "es-ES", "fr-FR", "it-IT", "en-US")

Postprocessor = Callable[[Any, str, Any], Optional[Tuple[str, Any]]]


def _local_name(name: str) -> str:
    return name.rsplit(":", 1)[-1]


def _is_namespace_declaration(name: str) -> bool:
    return name == "xmlns" or name.startswith("xmlns:")


def _strip_namespaces(path, key: str, value):
    if key.startswith("@"):
        if _is_namespace_declaration(key[1:]):
            return None
        return key, value
    return _local_name(key), value


def _parse(text: str, postprocessor: Postprocessor) -> Tuple[str, Any]:
    document = xmltodict.parse(text, postprocessor=postprocessor)
    ((root, content),) = document.items()
    return root, content


class _LocalizedRewriter:
    """
    Streams expat events back out as XML, in document order.

    Element prefixes and namespace declarations are dropped; an `xml:lang`
    attribute becomes a `Language` element opening the element's content.
    Text, whitespace and every other attribute pass through untouched.
    """

    def __init__(self) -> None:
        self.out = io.StringIO()
        self.writer = XMLGenerator(self.out, encoding="utf-8", short_empty_elements=False)
        self.parser = expat.ParserCreate()
        self.parser.buffer_text = True
        self.parser.XmlDeclHandler = self.declaration
        self.parser.StartElementHandler = self.start
        self.parser.EndElementHandler = self.end
        self.parser.CharacterDataHandler = self.writer.characters
        # whitespace outside the root element, comments and processing instructions
        self.parser.DefaultHandlerExpand = self.out.write

    def rewrite(self, text: str) -> str:
        self.parser.Parse(text, True)
        return self.out.getvalue()

    def declaration(self, version: str, encoding: Optional[str], standalone: int) -> None:
        parts = [f'version="{version}"']
        if encoding:
            parts.append(f'encoding="{encoding}"')
        if standalone != -1:
            parts.append(f'standalone="{"yes" if standalone else "no"}"')
        self.out.write(f"<?xml {' '.join(parts)}?>")

    def start(self, name: str, attributes: Dict[str, str]) -> None:
        language = attributes.get(XML_LANG)
        kept = {
            key: value
            for key, value in attributes.items()
            if key != XML_LANG and not _is_namespace_declaration(key)
        }
        self.writer.startElement(_local_name(name), kept)
        if language is not None:
            self.writer.startElement(LANGUAGE_KEY, {})
            self.writer.characters(language)
            self.writer.endElement(LANGUAGE_KEY)

    def end(self, name: str) -> None:
        self.writer.endElement(_local_name(name))


def preprocess_localized(text: str) -> str:
    """
    Rewrite a raw localized response into plain, unprefixed XML.

    `<ns2:ItemAttributes xml:lang="de-DE">...` becomes
    `<ItemAttributes><Language>de-DE</Language>...`. Element order,
    whitespace, the XML declaration and all other attributes are kept.

    Raises:
        TransportError: If the body is not well-formed XML.
    """
    try:
        return _LocalizedRewriter().rewrite(text)
    except ExpatError as exc:
        raise TransportError(f"Malformed XML response: {exc}", body=text) from exc


def normalize(value: Any) -> Node:
    """Convert one parsed xmltodict value into a node."""
    if value is None:
        return Leaf("")
    if isinstance(value, str):
        return Leaf(value)
    if isinstance(value, list):
        return ListNode(tuple(normalize(item) for item in value))

    text = ""
    attributes = {}
    children = {}
    for key, child in value.items():
        if key == TEXT_KEY:
            text = child
        elif key.startswith("@"):
            attributes[key[1:]] = child
        else:
            children[key] = normalize(child)

    if not children:
        if attributes:
            return AttributedLeaf(text, attributes)
        return Leaf(text)

    entries = {}
    if attributes:
        entries[ATTRIBUTES_KEY] = MapNode(
            {name: Leaf(attr) for name, attr in attributes.items()}
        )
    entries.update(children)
    return MapNode(entries)


def parse_document(text: str) -> Tuple[str, Node]:
    """
    Parse an XML document.

    Returns:
        (root tag, node for the root's content)

    Raises:
        TransportError: If the body is not well-formed XML.
    """
    try:
        root, content = _parse(text, _strip_namespaces)
    except ExpatError as exc:
        raise TransportError(f"Malformed XML response: {exc}", body=text) from exc
    return root, normalize(content)


def decode_xml(text: str) -> Node:
    return parse_document(text)[1]


def is_xml(content_type: str) -> bool:
    return "xml" in (content_type or "").lower()


def classify_error(status: int, body: str) -> MWSError:
    """
    Classify a non-2xx response.

    A body shaped like `<ErrorResponse><Error><Message>...` yields a
    ServiceError carrying the message verbatim. Anything else yields a
    TransportError with the generic message.
    """
    try:
        root, node = parse_document(body)
    except TransportError:
        return TransportError(status=status, body=body)

    if root == ERROR_ENVELOPE_ROOT:
        errors = as_list(node.get("Error"))
        if errors:
            error = errors[0]
            message = error.text_at("Message")
            if message is not None:
                return ServiceError(
                    message,
                    code=error.text_at("Code"),
                    status=status,
                    request_id=node.text_at("RequestID") or node.text_at("RequestId"),
                )

    return TransportError(status=status, body=body)


def decode_response(response: TransportResponse, raw: bool = False) -> Union[Node, str]:
    """
    Decode a transport response.

    Args:
        response: Status, body and headers from the transport
        raw: Return the body untouched (caller post-processes it)

    Returns:
        Node for XML bodies; body text in raw mode or for other content types

    Raises:
        ServiceError: Non-2xx with a parseable error envelope
        TransportError: Non-2xx without one, or malformed XML
    """
    if not response.ok:
        error = classify_error(response.status, response.body)
        logger.warning("[MWS] HTTP %s: %s", response.status, error)
        raise error

    if raw:
        return response.body
    if is_xml(response.content_type):
        return decode_xml(response.body)
    return response.body
