"""PropertyTreeDeserializer: rebuilds a property tree from a TreeReader.

Types omitted by the writer are recovered the same way they were omitted:
the expected type of a property comes from the owner type's declared
properties, the expected type of an item from the container's element type
(the ``elementType`` attribute of arrays, the generic arguments otherwise).

All attributes of an element are read before its sub-elements, because
walking the sub-elements moves the reader's cursor.
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

from objtree.codecs.elements import Attributes, SubElements, kind_of_tag
from objtree.core.arrays import DimensionInfo
from objtree.core.classifier import (
    TypeClassifier,
    concrete_type,
    default_classifier,
    runtime_class,
)
from objtree.core.properties import PropertyProvider
from objtree.errors import MalformedDocumentError, TypeResolutionError
from objtree.protocols import TreeReader
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
    create_node,
)

logger = logging.getLogger(__name__)

__all__ = ["PropertyTreeDeserializer"]


class PropertyTreeDeserializer:
    """Reads a PropertyNode tree through any TreeReader.

    Args:
        reader:            The format-specific reader.
        property_provider: Supplies the declared types of record properties.
        classifier:        Supplies element and key types of containers.
    """

    def __init__(
        self,
        reader: TreeReader,
        property_provider: PropertyProvider | None = None,
        classifier: TypeClassifier | None = None,
    ) -> None:
        self._reader = reader
        self._property_provider = (
            property_provider if property_provider is not None else PropertyProvider()
        )
        self._classifier = classifier if classifier is not None else default_classifier

    def deserialize(self, stream: BinaryIO, expected_type: Any = None) -> PropertyNode:
        """Read one document from ``stream``.

        Raises:
            MalformedDocumentError: If the document has no root element.
            UnknownNodeKindError: On an unrecognised element tag.
        """
        self._reader.open(stream)
        try:
            tag = self._reader.read_element()
            if tag is None:
                msg = "Document has no root element"
                raise MalformedDocumentError(msg)
            return self._read(tag, expected_type)
        finally:
            self._reader.close()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _read(self, tag: str, expected_type: Any) -> PropertyNode:
        kind = kind_of_tag(tag)
        name = self._reader.get_attribute_as_string(Attributes.NAME) or ""
        declared_type = concrete_type(expected_type)

        if kind is NodeKind.NULL:
            return NullNode(name=name, declared_type=declared_type)
        if kind is NodeKind.REFERENCE:
            target_id = self._reader.get_attribute_as_int(Attributes.ID)
            return ReferenceNode(name=name, declared_type=declared_type, target_id=target_id)

        value_type = self._reader.get_attribute_as_type(Attributes.TYPE)
        node_type = value_type if value_type is not None else declared_type
        if node_type is None:
            msg = f"Property type is not defined. Property: {name!r} ({tag})"
            raise TypeResolutionError(msg)

        if kind is NodeKind.SIMPLE:
            value = self._reader.get_attribute_as_object(Attributes.VALUE, runtime_class(node_type))
            return SimpleNode(
                name=name, declared_type=declared_type, value_type=value_type, value=value
            )

        node = create_node(kind, name, declared_type, value_type)
        assert isinstance(node, ReferenceTargetNode)
        reference_id = self._reader.get_attribute_as_int(Attributes.ID)
        if reference_id > 0:
            node.reference = ReferenceInfo(id=reference_id, is_processed=True)

        match node:
            case DictionaryNode():
                self._read_dictionary(node, node_type)
            case CollectionNode():
                self._read_collection(node, node_type)
            case ComplexNode():
                self._read_complex(node, node_type)
            case SingleArrayNode():
                self._read_single_array(node, node_type)
            case MultiArrayNode():
                self._read_multi_array(node, node_type)
        return node

    # ------------------------------------------------------------------
    # Records and containers
    # ------------------------------------------------------------------

    def _read_complex(self, node: ComplexNode, owner_type: Any) -> None:
        for sub in self._reader.read_sub_elements():
            if sub == SubElements.PROPERTIES:
                self._read_properties(node, owner_type)

    def _read_properties(self, node: ComplexNode, owner_type: Any) -> None:
        for tag in self._reader.read_sub_elements():
            name = self._reader.get_attribute_as_string(Attributes.NAME) or ""
            info = self._property_provider.find(owner_type, name)
            if info is None:
                logger.warning(
                    f"Skipping stored property {name!r}: unknown on {runtime_class(owner_type)!r}"
                )
                continue
            node.properties.append(self._read(tag, info.declared_type))

    def _read_collection(self, node: CollectionNode, owner_type: Any) -> None:
        element_type = self._classifier.classify(owner_type).element_type
        node.element_type = element_type
        for sub in self._reader.read_sub_elements():
            if sub == SubElements.PROPERTIES:
                self._read_properties(node, owner_type)
            elif sub == SubElements.ITEMS:
                node.items.extend(self._read_items(element_type))

    def _read_dictionary(self, node: DictionaryNode, owner_type: Any) -> None:
        info = self._classifier.classify(owner_type)
        node.key_type = info.key_type
        node.element_type = info.element_type
        for sub in self._reader.read_sub_elements():
            if sub == SubElements.PROPERTIES:
                self._read_properties(node, owner_type)
            elif sub == SubElements.ITEMS:
                for item_tag in self._reader.read_sub_elements():
                    if item_tag == SubElements.ITEM:
                        node.items.append(self._read_pair(info.key_type, info.element_type))

    def _read_pair(self, key_type: Any, element_type: Any) -> KeyValueItem:
        parts: list[PropertyNode] = []
        for tag in self._reader.read_sub_elements():
            parts.append(self._read(tag, key_type if not parts else element_type))
        if len(parts) != 2:
            msg = f"Dictionary item must hold a key and a value, found {len(parts)} elements"
            raise MalformedDocumentError(msg)
        return KeyValueItem(parts[0], parts[1])

    def _read_items(self, element_type: Any) -> list[PropertyNode]:
        return [self._read(tag, element_type) for tag in self._reader.read_sub_elements()]

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------

    def _array_element_type(self, owner_type: Any) -> Any:
        element_type = self._reader.get_attribute_as_type(Attributes.ELEMENT_TYPE)
        if element_type is not None:
            return element_type
        return self._classifier.classify(owner_type).element_type

    def _read_single_array(self, node: SingleArrayNode, owner_type: Any) -> None:
        node.element_type = self._array_element_type(owner_type)
        node.lower_bound = self._reader.get_attribute_as_int(Attributes.LOWER_BOUND)
        for sub in self._reader.read_sub_elements():
            if sub == SubElements.ITEMS:
                node.items.extend(self._read_items(node.element_type))

    def _read_multi_array(self, node: MultiArrayNode, owner_type: Any) -> None:
        node.element_type = self._array_element_type(owner_type)
        for sub in self._reader.read_sub_elements():
            if sub == SubElements.DIMENSIONS:
                node.dimensions.extend(self._read_dimensions())
            elif sub == SubElements.ITEMS:
                node.items.extend(self._read_array_items(node.element_type, len(node.dimensions)))

    def _read_dimensions(self) -> list[DimensionInfo]:
        dimensions = []
        for tag in self._reader.read_sub_elements():
            if tag != SubElements.DIMENSION:
                continue
            dimensions.append(
                DimensionInfo(
                    length=self._reader.get_attribute_as_int(Attributes.LENGTH),
                    lower_bound=self._reader.get_attribute_as_int(Attributes.LOWER_BOUND),
                )
            )
        return dimensions

    def _read_array_items(self, element_type: Any, rank: int) -> list[MultiArrayItem]:
        items = []
        for tag in self._reader.read_sub_elements():
            if tag != SubElements.ITEM:
                continue
            indexes = tuple(self._reader.get_attribute_as_int_list(Attributes.INDEXES) or ())
            if len(indexes) != rank:
                msg = f"Array item has {len(indexes)} indexes, expected {rank}"
                raise MalformedDocumentError(msg)
            values = self._read_items(element_type)
            if len(values) != 1:
                msg = f"Array item must hold exactly one value, found {len(values)}"
                raise MalformedDocumentError(msg)
            items.append(MultiArrayItem(indexes, values[0]))
        return items
