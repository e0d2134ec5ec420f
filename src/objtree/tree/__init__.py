"""Property tree model, encoder and decoder."""

from __future__ import annotations

from objtree.tree.decoder import GraphDecoder
from objtree.tree.encoder import GraphEncoder
from objtree.tree.nodes import (
    CollectionNode,
    ComplexNode,
    DictionaryNode,
    KeyValueItem,
    MultiArrayItem,
    MultiArrayNode,
    NodeKind,
    NullNode,
    PropertyNode,
    ReferenceInfo,
    ReferenceNode,
    ReferenceTargetNode,
    SimpleNode,
    SingleArrayNode,
    find_by_id,
    iter_nodes,
)

__all__ = [
    "CollectionNode",
    "ComplexNode",
    "DictionaryNode",
    "GraphDecoder",
    "GraphEncoder",
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
    "find_by_id",
    "iter_nodes",
]
