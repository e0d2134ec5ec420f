"""Element, sub-element and attribute names shared by every codec."""

from __future__ import annotations

from enum import StrEnum

from objtree.errors import UnknownNodeKindError
from objtree.tree.nodes import NodeKind

__all__ = ["Attributes", "Elements", "SubElements", "kind_of_tag", "tag_of_kind"]


class Elements(StrEnum):
    """One element per node kind.

    ``ComplexReference`` is only ever read; older documents used it for
    back-references to complex records.
    """

    SIMPLE = "Simple"
    COMPLEX = "Complex"
    COLLECTION = "Collection"
    DICTIONARY = "Dictionary"
    SINGLE_ARRAY = "SingleArray"
    MULTI_ARRAY = "MultiArray"
    NULL = "Null"
    REFERENCE = "Reference"
    COMPLEX_REFERENCE = "ComplexReference"


class SubElements(StrEnum):
    PROPERTIES = "Properties"
    ITEMS = "Items"
    ITEM = "Item"
    DIMENSIONS = "Dimensions"
    DIMENSION = "Dimension"


class Attributes(StrEnum):
    NAME = "name"
    TYPE = "type"
    VALUE = "value"
    ID = "id"
    LOWER_BOUND = "lowerBound"
    LENGTH = "length"
    INDEXES = "indexes"
    ELEMENT_TYPE = "elementType"


_KIND_BY_TAG: dict[str, NodeKind] = {
    Elements.SIMPLE: NodeKind.SIMPLE,
    Elements.COMPLEX: NodeKind.COMPLEX,
    Elements.COLLECTION: NodeKind.COLLECTION,
    Elements.DICTIONARY: NodeKind.DICTIONARY,
    Elements.SINGLE_ARRAY: NodeKind.SINGLE_ARRAY,
    Elements.MULTI_ARRAY: NodeKind.MULTI_ARRAY,
    Elements.NULL: NodeKind.NULL,
    Elements.REFERENCE: NodeKind.REFERENCE,
    Elements.COMPLEX_REFERENCE: NodeKind.REFERENCE,
}

_TAG_BY_KIND: dict[NodeKind, Elements] = {
    NodeKind.SIMPLE: Elements.SIMPLE,
    NodeKind.COMPLEX: Elements.COMPLEX,
    NodeKind.COLLECTION: Elements.COLLECTION,
    NodeKind.DICTIONARY: Elements.DICTIONARY,
    NodeKind.SINGLE_ARRAY: Elements.SINGLE_ARRAY,
    NodeKind.MULTI_ARRAY: Elements.MULTI_ARRAY,
    NodeKind.NULL: Elements.NULL,
    NodeKind.REFERENCE: Elements.REFERENCE,
}


def kind_of_tag(tag: str) -> NodeKind:
    """Map an element tag to its node kind; unknown tags are fatal."""
    try:
        return _KIND_BY_TAG[tag]
    except KeyError:
        msg = f"Unknown element: {tag!r}"
        raise UnknownNodeKindError(msg) from None


def tag_of_kind(kind: NodeKind) -> Elements:
    try:
        return _TAG_BY_KIND[kind]
    except KeyError:
        msg = f"No element for node kind {kind!r}"
        raise UnknownNodeKindError(msg) from None
