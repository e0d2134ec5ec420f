"""GraphEncoder: converts a live object graph into a property tree.

Walks the graph depth-first.  TypeClassifier decides each value's shape;
simple values become SIMPLE nodes, everything else becomes a reference-bearing
node that is looked up by identity first:

- already seen: the cached node's count goes up and a placeholder of the same
  kind is returned, carrying a fresh unprocessed ReferenceInfo with the same id;
- not seen: the next id is issued and the node is registered *before* its
  children are encoded (register before recurse), so a value that reaches
  itself ends up as a placeholder instead of recursing forever.

The identity cache and the id counter live for one ``encode`` call.
"""

from __future__ import annotations

import logging
import types
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, get_origin

from objtree.core.arrays import ArrayIndexer, array_rank
from objtree.core.classifier import (
    Shape,
    ShapeInfo,
    TypeClassifier,
    concrete_type,
    default_classifier,
)
from objtree.core.properties import PropertyProvider
from objtree.errors import InvalidOperationError
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
    ReferenceTargetNode,
    SimpleNode,
    SingleArrayNode,
)

logger = logging.getLogger(__name__)

__all__ = ["GraphEncoder"]

_UNENCODABLE = (
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.GeneratorType,
    types.CoroutineType,
)


@dataclass
class GraphEncoder:
    """Converts any object graph into a PropertyNode tree.

    Example::

        encoder = GraphEncoder()
        root = encoder.encode("Root", {"a": [1, 2]})
        # root: DICTIONARY -> (SIMPLE "a", COLLECTION -> [SIMPLE 1, SIMPLE 2])
    """

    property_provider: PropertyProvider = field(default_factory=PropertyProvider)
    classifier: TypeClassifier = field(default_factory=lambda: default_classifier)
    _targets: dict[int, tuple[Any, ReferenceTargetNode]] = field(
        default_factory=dict, init=False, repr=False
    )
    _next_id: int = field(default=1, init=False, repr=False)

    def encode(self, name: str, value: Any, declared_type: Any = None) -> PropertyNode:
        """Encode ``value`` as the root node called ``name``.

        Args:
            name:          Name of the root node.
            value:         Any object graph.
            declared_type: Static type expected at the root, if any.

        Returns:
            The root PropertyNode.

        Raises:
            InvalidOperationError: If some value cannot be decomposed
                (functions, modules, generators, iterators).
        """
        self._targets = {}
        self._next_id = 1
        try:
            root = self._create_node(name, value, declared_type)
            logger.debug(
                f"Encoded {type(value).__name__!r} into {len(self._targets)} reference targets"
            )
            return root
        finally:
            # drop the strong references held for identity stability
            self._targets = {}

    # ------------------------------------------------------------------
    # Node creation
    # ------------------------------------------------------------------

    def _create_node(self, name: str, value: Any, declared_type: Any) -> PropertyNode:
        if value is None:
            return NullNode(name=name, declared_type=declared_type)

        info = self._shape_of(value, declared_type)
        if info.shape is Shape.SIMPLE:
            return SimpleNode(
                name=name, declared_type=declared_type, value_type=type(value), value=value
            )

        target = self._create_target(name, info, value, declared_type)

        cached = self._targets.get(id(value))
        if cached is not None:
            cached_target = cached[1]
            assert cached_target.reference is not None
            cached_target.reference.count += 1
            target.make_flat_copy_from(cached_target)
            target.reference = ReferenceInfo(id=cached_target.reference.id)
            return target

        self._register_target(value, target)

        match target.kind:
            case NodeKind.SINGLE_ARRAY:
                self._fill_single_array(target, value)
            case NodeKind.MULTI_ARRAY:
                self._fill_multi_array(target, value)
            case NodeKind.DICTIONARY:
                self._fill_dictionary(target, info, value)
            case NodeKind.COLLECTION:
                self._fill_collection(target, info, value)
            case NodeKind.COMPLEX:
                self._fill_properties(target, value)
            case _:
                msg = f"Property cannot be filled. Property: {target!r}"
                raise InvalidOperationError(msg)
        return target

    def _register_target(self, value: Any, target: ReferenceTargetNode) -> None:
        """Register before recurse: issue the id and cache the node first."""
        target.reference = ReferenceInfo(id=self._next_id, is_processed=True)
        self._next_id += 1
        self._targets[id(value)] = (value, target)

    def _shape_of(self, value: Any, declared_type: Any) -> ShapeInfo:
        # a declared alias like list[int] over a plain list carries the item types
        declared = concrete_type(declared_type)
        if declared is not None and get_origin(declared) is type(value):
            return self.classifier.classify(declared)
        return self.classifier.classify(type(value))

    @staticmethod
    def _create_target(
        name: str, info: ShapeInfo, value: Any, declared_type: Any
    ) -> ReferenceTargetNode:
        if isinstance(value, _UNENCODABLE):
            msg = f"Unsupported value in serialization: {type(value)!r}"
            raise InvalidOperationError(msg)
        if isinstance(value, Iterator):
            # the walk must leave the caller's iterator untouched
            msg = f"Cannot serialize one-shot iterator {type(value)!r}; materialize it first"
            raise InvalidOperationError(msg)
        node_class: type[ReferenceTargetNode]
        match info.shape:
            case Shape.ARRAY:
                rank = info.array_rank if info.array_rank is not None else array_rank(value)
                node_class = SingleArrayNode if rank == 1 else MultiArrayNode
            case Shape.DICTIONARY:
                node_class = DictionaryNode
            case Shape.COLLECTION | Shape.ENUMERABLE:
                node_class = CollectionNode
            case Shape.COMPLEX:
                node_class = ComplexNode
            case _:
                msg = f"No decomposition for shape {info.shape!r} of {type(value)!r}"
                raise InvalidOperationError(msg)
        return node_class(name=name, declared_type=declared_type, value_type=type(value))

    # ------------------------------------------------------------------
    # Fillers
    # ------------------------------------------------------------------

    def _fill_properties(self, node: ComplexNode, value: Any) -> None:
        for prop in self.property_provider.list_properties(type(value), value):
            sub_value = self.property_provider.get(value, prop.name)
            node.properties.append(self._create_node(prop.name, sub_value, prop.declared_type))

    def _fill_collection(self, node: CollectionNode, info: ShapeInfo, value: Any) -> None:
        # tuple fields are positional; only the items describe a named tuple
        if not self.classifier.capabilities(info.type).immutable:
            self._fill_properties(node, value)
        node.element_type = info.element_type
        for item in value:
            node.items.append(self._create_node("", item, info.element_type))

    def _fill_dictionary(self, node: DictionaryNode, info: ShapeInfo, value: Any) -> None:
        self._fill_properties(node, value)
        node.key_type = info.key_type
        node.element_type = info.element_type
        for key, item in value.items():
            key_node = self._create_node("", key, info.key_type)
            value_node = self._create_node("", item, info.element_type)
            node.items.append(KeyValueItem(key_node, value_node))

    def _fill_single_array(self, node: SingleArrayNode, value: Any) -> None:
        indexer = ArrayIndexer(value)
        node.element_type = indexer.element_type
        node.lower_bound = indexer.dimensions[0].lower_bound
        for item in indexer.values():
            node.items.append(self._create_node("", item, node.element_type))

    def _fill_multi_array(self, node: MultiArrayNode, value: Any) -> None:
        indexer = ArrayIndexer(value)
        node.element_type = indexer.element_type
        node.dimensions = list(indexer.dimensions)
        for indices in indexer.indexes():
            item_node = self._create_node("", indexer.value_at(indices), node.element_type)
            node.items.append(MultiArrayItem(indices, item_node))
