"""GraphDecoder: rebuilds a live object graph from a property tree.

The decoder mirrors the encoder.  Every reference-bearing node that carries a
processed ReferenceInfo is instantiated, registered under its id *before* its
children are decoded (register before recurse), and then populated.
Placeholders and ReferenceNodes resolve to the registered object, so cycles
and shared values come back as the very same instance.

Immutable containers (``tuple``, ``frozenset``, named tuples) cannot be
populated after creation; they are built from their decoded items and
registered afterwards.  A tuple that reaches itself through its own items
therefore cannot be restored and raises ReferenceResolutionError.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any

from objtree.core.arrays import DimensionInfo, create_array, finish_array, set_array_value
from objtree.core.classifier import (
    TypeClassifier,
    concrete_type,
    default_classifier,
    runtime_class,
)
from objtree.core.properties import PropertyProvider
from objtree.errors import (
    InstanceCreationError,
    ReferenceResolutionError,
    TypeResolutionError,
    UnknownNodeKindError,
    UnsupportedContainerError,
)
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

logger = logging.getLogger(__name__)

__all__ = ["GraphDecoder"]


@dataclass
class GraphDecoder:
    """Converts a PropertyNode tree back into objects.

    Args:
        property_provider: Lists and assigns properties of decoded records.
        classifier:        Supplies element types and container capabilities.
        strict_containers: Raise UnsupportedContainerError instead of dropping
            items a container has no way to accept.
    """

    property_provider: PropertyProvider = field(default_factory=PropertyProvider)
    classifier: TypeClassifier = field(default_factory=lambda: default_classifier)
    strict_containers: bool = False
    _objects: dict[int, Any] = field(default_factory=dict, init=False, repr=False)

    def decode(self, node: PropertyNode, expected_type: Any = None) -> Any:
        """Decode ``node`` (and everything below it) into an object.

        Args:
            node:          Root of the property tree.
            expected_type: Type to assume when the node records none.

        Returns:
            The rebuilt object, or None for a NULL node.
        """
        self._objects = {}
        try:
            result = self._decode(node, expected_type)
            logger.debug(f"Decoded {len(self._objects)} reference targets")
            return result
        finally:
            self._objects = {}

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _decode(self, node: PropertyNode, expected_type: Any) -> Any:
        if node.kind is NodeKind.NULL:
            return None

        if isinstance(node, ReferenceNode):
            return self._resolve(node.target_id, node)

        tp = node.type if node.type is not None else concrete_type(expected_type)
        if tp is None:
            msg = f"Property type is not defined. Property: {node.name!r}"
            raise TypeResolutionError(msg)

        if isinstance(node, SimpleNode):
            return node.value

        if isinstance(node, ReferenceTargetNode) and node.is_placeholder:
            assert node.reference is not None
            return self._resolve(node.reference.id, node)

        match node.kind:
            case NodeKind.SINGLE_ARRAY:
                return self._decode_single_array(node, tp)
            case NodeKind.MULTI_ARRAY:
                return self._decode_multi_array(node, tp)
            case NodeKind.DICTIONARY:
                return self._decode_dictionary(node, tp)
            case NodeKind.COLLECTION:
                return self._decode_collection(node, tp)
            case NodeKind.COMPLEX:
                return self._decode_complex(node, tp)
            case _:
                msg = f"Unknown property kind: {node.kind!r} ({type(node).__name__})"
                raise UnknownNodeKindError(msg)

    def _resolve(self, reference_id: int, node: PropertyNode) -> Any:
        try:
            return self._objects[reference_id]
        except KeyError:
            msg = f"Reference {reference_id} of property {node.name!r} has no earlier target"
            raise ReferenceResolutionError(msg) from None

    def _register_target(self, node: ReferenceTargetNode, obj: Any) -> None:
        """Register before recurse: later placeholders resolve to ``obj``."""
        if node.reference is not None:
            self._objects[node.reference.id] = obj

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _decode_complex(self, node: ComplexNode, tp: Any) -> Any:
        obj = _create_instance(tp)
        self._register_target(node, obj)
        self._fill_properties(node, obj, tp)
        return obj

    def _fill_properties(self, node: ComplexNode, obj: Any, tp: Any) -> None:
        for prop_node in node.properties:
            info = self.property_provider.find(tp, prop_node.name)
            if info is None:
                logger.warning(
                    f"Skipping property {prop_node.name!r}: not settable on {runtime_class(tp)!r}"
                )
                continue
            if info.constructor:
                # already passed to the constructor
                continue
            value = self._decode(prop_node, info.declared_type)
            if value is None and not info.nullable:
                continue
            self.property_provider.set(obj, info.name, value)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def _decode_collection(self, node: CollectionNode, tp: Any) -> Any:
        element_type = self._element_type(node.element_type, tp)
        caps = self.classifier.capabilities(tp)

        if caps.immutable:
            assert caps.build is not None
            items = [self._decode(item, element_type) for item in node.items]
            obj = caps.build(items)
            self._register_target(node, obj)
            return obj

        obj = self._create_container(node, tp)
        self._register_target(node, obj)
        self._fill_properties(node, obj, tp)
        values = [self._decode(item, element_type) for item in node.items]
        if caps.append is None:
            self._drop_items(tp, len(values), "append")
            return obj
        for value in values:
            caps.append(obj, value)
        return obj

    def _decode_dictionary(self, node: DictionaryNode, tp: Any) -> Any:
        info = self.classifier.classify(tp)
        key_type = node.key_type if node.key_type is not None else info.key_type
        element_type = self._element_type(node.element_type, tp)
        caps = self.classifier.capabilities(tp)

        obj = self._create_container(node, tp)
        self._register_target(node, obj)
        self._fill_properties(node, obj, tp)
        pairs = [
            (self._decode(pair.key, key_type), self._decode(pair.value, element_type))
            for pair in node.items
        ]
        if caps.insert is None:
            self._drop_items(tp, len(pairs), "keyed insert")
            return obj
        for key, value in pairs:
            caps.insert(obj, key, value)
        return obj

    def _create_container(self, node: ComplexNode, tp: Any) -> Any:
        """Instantiate a container, passing the state only its constructor accepts."""
        arguments: dict[str, Any] = {}
        for prop_node in node.properties:
            info = self.property_provider.find(tp, prop_node.name)
            if info is None or not info.constructor:
                continue
            value = self._decode(prop_node, info.declared_type)
            if value is not None:
                arguments[info.name] = value
        if not arguments:
            return _create_instance(tp)
        cls = runtime_class(tp)
        try:
            return cls(**arguments)
        except Exception as exc:
            raise InstanceCreationError(cls, str(exc)) from exc

    def _drop_items(self, tp: Any, count: int, capability: str) -> None:
        if count == 0:
            return
        msg = f"{runtime_class(tp)!r} has no {capability} capability; {count} item(s) dropped"
        if self.strict_containers:
            raise UnsupportedContainerError(msg)
        logger.warning(msg)

    def _element_type(self, recorded: Any, tp: Any) -> Any:
        if recorded is not None:
            return recorded
        return self.classifier.classify(tp).element_type

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------

    def _decode_single_array(self, node: SingleArrayNode, tp: Any) -> Any:
        element_type = self._element_type(node.element_type, tp)
        dimensions = [DimensionInfo(length=len(node.items), lower_bound=node.lower_bound)]
        array = create_array(runtime_class(tp), element_type, dimensions)
        self._register_target(node, array)
        for offset, item in enumerate(node.items):
            value = self._decode(item, element_type)
            if value is None:
                continue
            set_array_value(array, (node.lower_bound + offset,), value)
        return self._finish_array(node, array, element_type)

    def _decode_multi_array(self, node: MultiArrayNode, tp: Any) -> Any:
        element_type = self._element_type(node.element_type, tp)
        array = create_array(runtime_class(tp), element_type, node.dimensions)
        self._register_target(node, array)
        for item in node.items:
            value = self._decode(item.value, element_type)
            if value is None:
                continue
            set_array_value(array, tuple(item.indexes), value)
        return self._finish_array(node, array, element_type)

    def _finish_array(self, node: ReferenceTargetNode, array: Any, element_type: Any) -> Any:
        finished = finish_array(array, element_type)
        if finished is not array:
            # items of a str/bytes array are leaves, so nothing holds the draft yet
            self._register_target(node, finished)
        return finished


def _create_instance(tp: Any) -> Any:
    """Instantiate ``tp`` without arguments.

    Classes whose constructor requires arguments are allocated with
    ``__new__``; dataclass defaults are then applied so that fields absent
    from the tree keep their declared default.
    """
    cls = runtime_class(tp)
    if not isinstance(cls, type):
        raise InstanceCreationError(tp, "not a class")
    try:
        return cls()
    except TypeError:
        pass
    except Exception as exc:
        raise InstanceCreationError(cls, str(exc)) from exc

    try:
        obj = cls.__new__(cls)
    except Exception as exc:
        raise InstanceCreationError(cls, str(exc)) from exc
    if dataclasses.is_dataclass(cls):
        for f in dataclasses.fields(cls):
            if f.default is not dataclasses.MISSING:
                object.__setattr__(obj, f.name, f.default)
            elif f.default_factory is not dataclasses.MISSING:
                object.__setattr__(obj, f.name, f.default_factory())
    return obj
