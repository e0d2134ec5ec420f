"""PropertyTreeSerializer: drives a TreeWriter from a property tree.

Attribute rules:
    name         only when non-empty
    type         only when the runtime type differs from the expected type
    id           only when the target is referenced more than once
    lowerBound   only when non-zero
    length       only when non-zero
    elementType  arrays only, when known

Placeholders (already-rendered targets) become ``Reference`` elements that
carry the name and the id of their target.
"""

from __future__ import annotations

from typing import Any, BinaryIO

from objtree.codecs.elements import Attributes, Elements, SubElements, tag_of_kind
from objtree.core.classifier import concrete_type, runtime_class
from objtree.errors import UnknownNodeKindError
from objtree.protocols import TreeWriter
from objtree.tree.nodes import (
    CollectionNode,
    ComplexNode,
    DictionaryNode,
    MultiArrayNode,
    NodeKind,
    PropertyNode,
    ReferenceNode,
    ReferenceTargetNode,
    SimpleNode,
    SingleArrayNode,
)

__all__ = ["PropertyTreeSerializer"]


class PropertyTreeSerializer:
    """Renders a PropertyNode tree through any TreeWriter."""

    def __init__(self, writer: TreeWriter) -> None:
        self._writer = writer

    def serialize(self, node: PropertyNode, stream: BinaryIO) -> None:
        self._writer.open(stream)
        try:
            self._write(node)
        except BaseException:
            # nothing reaches the stream from a failed walk
            self._writer.discard()
            raise
        self._writer.close()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _write(self, node: PropertyNode) -> None:
        if isinstance(node, ReferenceTargetNode) and node.is_placeholder:
            assert node.reference is not None
            self._write_reference(node.name, node.reference.id)
            return

        match node.kind:
            case NodeKind.NULL:
                self._write_start(node)
            case NodeKind.SIMPLE:
                self._write_simple(node)
            case NodeKind.COMPLEX:
                self._write_complex(node)
            case NodeKind.COLLECTION:
                self._write_collection(node)
            case NodeKind.DICTIONARY:
                self._write_dictionary(node)
            case NodeKind.SINGLE_ARRAY:
                self._write_single_array(node)
            case NodeKind.MULTI_ARRAY:
                self._write_multi_array(node)
            case NodeKind.REFERENCE:
                assert isinstance(node, ReferenceNode)
                self._write_reference(node.name, node.target_id)
                return
            case _:
                msg = f"Unknown property kind: {node.kind!r} ({type(node).__name__})"
                raise UnknownNodeKindError(msg)
        self._writer.write_end_element()

    # ------------------------------------------------------------------
    # Element writers
    # ------------------------------------------------------------------

    def _write_start(self, node: PropertyNode) -> None:
        self._writer.write_start_element(tag_of_kind(node.kind))
        if node.name:
            self._writer.write_attribute(Attributes.NAME, node.name)
        if _type_differs(node):
            self._writer.write_type_attribute(Attributes.TYPE, node.value_type)

    def _write_target_start(self, node: ReferenceTargetNode) -> None:
        self._write_start(node)
        if node.reference is not None and node.reference.count > 1:
            self._writer.write_int_attribute(Attributes.ID, node.reference.id)

    def _write_reference(self, name: str, target_id: int) -> None:
        self._writer.write_start_element(Elements.REFERENCE)
        if name:
            self._writer.write_attribute(Attributes.NAME, name)
        self._writer.write_int_attribute(Attributes.ID, target_id)
        self._writer.write_end_element()

    def _write_simple(self, node: SimpleNode) -> None:
        self._write_start(node)
        self._writer.write_value_attribute(Attributes.VALUE, node.value)

    def _write_complex(self, node: ComplexNode) -> None:
        self._write_target_start(node)
        self._write_properties(node)

    def _write_collection(self, node: CollectionNode) -> None:
        self._write_target_start(node)
        self._write_properties(node)
        self._write_items(node.items)

    def _write_dictionary(self, node: DictionaryNode) -> None:
        self._write_target_start(node)
        self._write_properties(node)
        self._writer.write_start_element(SubElements.ITEMS)
        for pair in node.items:
            self._writer.write_start_element(SubElements.ITEM)
            self._write(pair.key)
            self._write(pair.value)
            self._writer.write_end_element()
        self._writer.write_end_element()

    def _write_single_array(self, node: SingleArrayNode) -> None:
        self._write_target_start(node)
        self._write_element_type(node.element_type)
        if node.lower_bound != 0:
            self._writer.write_int_attribute(Attributes.LOWER_BOUND, node.lower_bound)
        self._write_items(node.items)

    def _write_multi_array(self, node: MultiArrayNode) -> None:
        self._write_target_start(node)
        self._write_element_type(node.element_type)

        self._writer.write_start_element(SubElements.DIMENSIONS)
        for dimension in node.dimensions:
            self._writer.write_start_element(SubElements.DIMENSION)
            if dimension.length != 0:
                self._writer.write_int_attribute(Attributes.LENGTH, dimension.length)
            if dimension.lower_bound != 0:
                self._writer.write_int_attribute(Attributes.LOWER_BOUND, dimension.lower_bound)
            self._writer.write_end_element()
        self._writer.write_end_element()

        self._writer.write_start_element(SubElements.ITEMS)
        for item in node.items:
            self._writer.write_start_element(SubElements.ITEM)
            self._writer.write_int_list_attribute(Attributes.INDEXES, item.indexes)
            self._write(item.value)
            self._writer.write_end_element()
        self._writer.write_end_element()

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _write_properties(self, node: ComplexNode) -> None:
        if not node.properties:
            return
        self._writer.write_start_element(SubElements.PROPERTIES)
        for prop in node.properties:
            self._write(prop)
        self._writer.write_end_element()

    def _write_items(self, items: list[PropertyNode]) -> None:
        self._writer.write_start_element(SubElements.ITEMS)
        for item in items:
            self._write(item)
        self._writer.write_end_element()

    def _write_element_type(self, element_type: Any) -> None:
        if element_type is not None:
            self._writer.write_type_attribute(Attributes.ELEMENT_TYPE, element_type)


def _type_differs(node: PropertyNode) -> bool:
    if node.value_type is None:
        return False
    return node.value_type is not runtime_class(concrete_type(node.declared_type))
