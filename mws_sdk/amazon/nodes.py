"""
Normalized response tree.

An XML response becomes a tree of four node kinds:

- Leaf: an element holding only text
- AttributedLeaf: an element holding attributes and (possibly empty) text
- ListNode: same-named sibling elements, in document order
- MapNode: distinctly named child elements (attributes under "@attributes")

The wire format cannot tell "one child" from "a list with one item", so a
lone `<Order>` arrives as a MapNode while two arrive as a ListNode. Call
sites that expect repetition use `as_list()` instead of inspecting shapes.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, List, Mapping, Optional, Tuple, Union

ATTRIBUTES_KEY = "@attributes"
TEXT_KEY = "#text"


class Node:
    """Common navigation API shared by every node kind."""

    def get(self, key: Union[str, int], default: Optional["Node"] = None) -> Optional["Node"]:
        return default

    def find(self, *path: Union[str, int]) -> Optional["Node"]:
        """
        Walk `path` from this node.

        Returns:
            The node at the end of the path, or None if any step is missing.
        """
        node: Optional[Node] = self
        for step in path:
            if node is None:
                return None
            node = node.get(step)
        return node

    def text_at(self, *path: Union[str, int]) -> Optional[str]:
        """Text of the leaf at `path`, or None if absent or not a leaf."""
        node = self.find(*path)
        if isinstance(node, (Leaf, AttributedLeaf)):
            return node.text
        return None

    def attribute(self, name: str) -> Optional[str]:
        return None

    def to_python(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class Leaf(Node):
    text: str

    def to_python(self) -> str:
        return self.text


@dataclass(frozen=True)
class AttributedLeaf(Node):
    text: str
    attributes: Mapping[str, str]

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def to_python(self) -> dict:
        return {ATTRIBUTES_KEY: dict(self.attributes), TEXT_KEY: self.text}


@dataclass(frozen=True)
class ListNode(Node):
    items: Tuple[Node, ...]

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Node:
        return self.items[index]

    def keys(self) -> range:
        return range(len(self.items))

    def get(self, key: Union[str, int], default: Optional[Node] = None) -> Optional[Node]:
        if isinstance(key, int) and -len(self.items) <= key < len(self.items):
            return self.items[key]
        return default

    def to_python(self) -> list:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class MapNode(Node):
    entries: Mapping[str, Node]

    def __post_init__(self):
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __getitem__(self, key: str) -> Node:
        return self.entries[key]

    def keys(self):
        return self.entries.keys()

    def items(self):
        return self.entries.items()

    def get(self, key: Union[str, int], default: Optional[Node] = None) -> Optional[Node]:
        if isinstance(key, str):
            return self.entries.get(key, default)
        return default

    @property
    def attributes(self) -> Mapping[str, str]:
        node = self.entries.get(ATTRIBUTES_KEY)
        if isinstance(node, MapNode):
            return MappingProxyType({
                name: value.text
                for name, value in node.entries.items()
                if isinstance(value, Leaf)
            })
        return MappingProxyType({})

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def to_python(self) -> dict:
        return {key: value.to_python() for key, value in self.entries.items()}


def as_list(node: Optional[Node]) -> List[Node]:
    """
    Coerce a node to the sequence of items it stands for.

    None -> [], ListNode -> its items, anything else -> [node].
    """
    if node is None:
        return []
    if isinstance(node, ListNode):
        return list(node.items)
    return [node]


def has_sequence_keys(node: Optional[Node]) -> bool:
    """
    True when the node's keys are the contiguous integers 0..n-1.

    This is the list/singleton discriminator: only a ListNode qualifies.
    """
    if not isinstance(node, (ListNode, MapNode)):
        return False
    keys = list(node.keys())
    return bool(keys) and keys == list(range(len(keys)))
