"""Property node dataclasses and the NodeKind StrEnum.

A property tree is a closed variant over eight node kinds.  GraphEncoder
produces it from a live object graph, the codecs render and parse it, and
GraphDecoder turns it back into objects.

Reference-bearing nodes (complex, collection, dictionary and both array kinds)
carry a ReferenceInfo.  The first sighting of a value is the fully populated
node (``is_processed=True``); every later sighting is a placeholder of the
same kind with ``is_processed=False`` and the same id.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import Any, ClassVar

from objtree.core.arrays import DimensionInfo

__all__ = [
    "CollectionNode",
    "ComplexNode",
    "DictionaryNode",
    "DimensionInfo",
    "KeyValueItem",
    "MultiArrayItem",
    "MultiArrayNode",
    "NodeKind",
    "NullNode",
    "PropertyNode",
    "ReferenceInfo",
    "ReferenceNode",
    "ReferenceTargetNode",
    "SimpleNode",
    "SingleArrayNode",
    "create_node",
    "find_by_id",
    "iter_nodes",
]


class NodeKind(StrEnum):
    """The eight node kinds of a property tree.

    StrEnum values are the lowercased member names:
    - NULL         -> "null"         : a None value, kept explicit
    - SIMPLE       -> "simple"       : a leaf value carried verbatim
    - COMPLEX      -> "complex"      : a record with named properties
    - COLLECTION   -> "collection"   : properties plus unnamed items
    - DICTIONARY   -> "dictionary"   : properties plus key/value items
    - SINGLE_ARRAY -> "single_array" : rank-1 array with a lower bound
    - MULTI_ARRAY  -> "multi_array"  : rank-N array with per-dimension bounds
    - REFERENCE    -> "reference"    : back-reference to an earlier node by id
    """

    NULL = auto()
    SIMPLE = auto()
    COMPLEX = auto()
    COLLECTION = auto()
    DICTIONARY = auto()
    SINGLE_ARRAY = auto()
    MULTI_ARRAY = auto()
    REFERENCE = auto()


@dataclass(slots=True)
class ReferenceInfo:
    """Identity bookkeeping of a reference-bearing node.

    Attributes:
        id:           Positive id, unique per encoding session, issued in order.
        count:        How many places hold the value.  Codecs only write the
                      id when it is greater than 1.
        is_processed: True on the fully populated node, False on placeholders.
    """

    id: int
    count: int = 1
    is_processed: bool = False


@dataclass(slots=True)
class PropertyNode:
    """Fields shared by every node.

    Attributes:
        name:          Property name; empty for array/collection items.
        declared_type: Static type the position expects, or None.
        value_type:    Runtime type of the value, or None.
    """

    kind: ClassVar[NodeKind]

    name: str = ""
    declared_type: Any = None
    value_type: Any = None

    @property
    def type(self) -> Any:
        """The runtime type when known, the declared type otherwise."""
        return self.value_type if self.value_type is not None else self.declared_type


@dataclass(slots=True)
class NullNode(PropertyNode):
    kind: ClassVar[NodeKind] = NodeKind.NULL


@dataclass(slots=True)
class SimpleNode(PropertyNode):
    kind: ClassVar[NodeKind] = NodeKind.SIMPLE

    value: Any = None


@dataclass(slots=True)
class ReferenceTargetNode(PropertyNode):
    """Base of every node whose value can be shared across the graph."""

    reference: ReferenceInfo | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.reference is not None and not self.reference.is_processed

    def make_flat_copy_from(self, source: ReferenceTargetNode) -> None:
        """Copy kind-specific type metadata and the reference from ``source``.

        Children are not copied.  The reference object is shared, so callers
        that need a placeholder replace it afterwards.
        """
        self.value_type = source.value_type
        self.reference = source.reference
        for name in ("element_type", "key_type", "lower_bound"):
            if hasattr(source, name) and hasattr(self, name):
                setattr(self, name, getattr(source, name))


@dataclass(slots=True)
class ComplexNode(ReferenceTargetNode):
    kind: ClassVar[NodeKind] = NodeKind.COMPLEX

    properties: list[PropertyNode] = field(default_factory=list)


@dataclass(slots=True)
class CollectionNode(ComplexNode):
    kind: ClassVar[NodeKind] = NodeKind.COLLECTION

    element_type: Any = None
    items: list[PropertyNode] = field(default_factory=list)


@dataclass(slots=True)
class KeyValueItem:
    key: PropertyNode
    value: PropertyNode


@dataclass(slots=True)
class DictionaryNode(ComplexNode):
    kind: ClassVar[NodeKind] = NodeKind.DICTIONARY

    key_type: Any = None
    element_type: Any = None
    items: list[KeyValueItem] = field(default_factory=list)


@dataclass(slots=True)
class SingleArrayNode(ReferenceTargetNode):
    """Rank-1 array; ``items[i]`` sits at index ``lower_bound + i``."""

    kind: ClassVar[NodeKind] = NodeKind.SINGLE_ARRAY

    element_type: Any = None
    lower_bound: int = 0
    items: list[PropertyNode] = field(default_factory=list)


@dataclass(slots=True)
class MultiArrayItem:
    indexes: tuple[int, ...]
    value: PropertyNode


@dataclass(slots=True)
class MultiArrayNode(ReferenceTargetNode):
    kind: ClassVar[NodeKind] = NodeKind.MULTI_ARRAY

    element_type: Any = None
    dimensions: list[DimensionInfo] = field(default_factory=list)
    items: list[MultiArrayItem] = field(default_factory=list)


@dataclass(slots=True)
class ReferenceNode(PropertyNode):
    """Back-reference read from a rendered tree; resolved by ``target_id``."""

    kind: ClassVar[NodeKind] = NodeKind.REFERENCE

    target_id: int = 0


_NODE_CLASSES: dict[NodeKind, type[PropertyNode]] = {
    NodeKind.NULL: NullNode,
    NodeKind.SIMPLE: SimpleNode,
    NodeKind.COMPLEX: ComplexNode,
    NodeKind.COLLECTION: CollectionNode,
    NodeKind.DICTIONARY: DictionaryNode,
    NodeKind.SINGLE_ARRAY: SingleArrayNode,
    NodeKind.MULTI_ARRAY: MultiArrayNode,
    NodeKind.REFERENCE: ReferenceNode,
}


def create_node(
    kind: NodeKind, name: str = "", declared_type: Any = None, value_type: Any = None
) -> PropertyNode:
    """Instantiate the empty node class for ``kind``."""
    return _NODE_CLASSES[kind](name=name, declared_type=declared_type, value_type=value_type)


def iter_nodes(node: PropertyNode) -> Iterator[PropertyNode]:
    """Walk a property tree in pre-order.

    Dictionary items yield the key node before the value node; multi array
    items yield their value nodes in stored order.
    """
    yield node
    if isinstance(node, ComplexNode):
        for child in node.properties:
            yield from iter_nodes(child)
    if isinstance(node, (CollectionNode, SingleArrayNode)):
        for child in node.items:
            yield from iter_nodes(child)
    elif isinstance(node, DictionaryNode):
        for pair in node.items:
            yield from iter_nodes(pair.key)
            yield from iter_nodes(pair.value)
    elif isinstance(node, MultiArrayNode):
        for item in node.items:
            yield from iter_nodes(item.value)


def find_by_id(node: PropertyNode, reference_id: int) -> ReferenceTargetNode | None:
    """Return the fully populated node carrying ``reference_id``, if any."""
    for candidate in iter_nodes(node):
        if (
            isinstance(candidate, ReferenceTargetNode)
            and candidate.reference is not None
            and candidate.reference.id == reference_id
            and candidate.reference.is_processed
        ):
            return candidate
    return None
