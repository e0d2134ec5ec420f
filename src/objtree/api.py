"""Public API functions for objtree.

Each call creates a fresh GraphSerializer, so no encoding or decoding state
survives between calls.  The only process-wide state is the type
classification cache and the registry of simple value converters, which
``register_simple_type`` extends.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from objtree.codecs.values import default_value_converter
from objtree.core.classifier import default_classifier
from objtree.serializer import GraphSerializer, Target
from objtree.settings import SerializerSettings
from objtree.tree.nodes import PropertyNode

__all__ = [
    "decode",
    "deserialize",
    "dump",
    "dumps",
    "encode",
    "load",
    "loads",
    "register_simple_type",
    "serialize",
]


def serialize(data: Any, target: Target, settings: SerializerSettings | None = None) -> None:
    """Serialize ``data`` into a file path or a writable binary stream.

    Args:
        data:     Any object graph except None.
        target:   Path (parent directories are created) or binary stream.
        settings: Codec and exclusion configuration.  Defaults to XML.
    """
    GraphSerializer(settings).serialize(data, target)


def deserialize(
    source: Target, expected_type: Any = None, settings: SerializerSettings | None = None
) -> Any:
    """Deserialize a graph from a file path or a readable binary stream.

    Raises:
        DeserializationError: On any failure; the original exception is ``__cause__``.
    """
    return GraphSerializer(settings).deserialize(source, expected_type)


def dump(data: Any, target: Target, settings: SerializerSettings | None = None) -> None:
    """Alias of ``serialize`` following the ``json.dump`` naming."""
    serialize(data, target, settings)


def load(
    source: Target, expected_type: Any = None, settings: SerializerSettings | None = None
) -> Any:
    """Alias of ``deserialize`` following the ``json.load`` naming."""
    return deserialize(source, expected_type, settings)


def dumps(data: Any, settings: SerializerSettings | None = None) -> bytes:
    """Serialize ``data`` and return the document bytes."""
    return GraphSerializer(settings).dumps(data)


def loads(
    document: bytes, expected_type: Any = None, settings: SerializerSettings | None = None
) -> Any:
    """Deserialize a document held in memory."""
    return GraphSerializer(settings).loads(document, expected_type)


def encode(data: Any, settings: SerializerSettings | None = None) -> PropertyNode:
    """Return the property tree of ``data`` without rendering it."""
    return GraphSerializer(settings).encode(data)


def decode(
    node: PropertyNode, expected_type: Any = None, settings: SerializerSettings | None = None
) -> Any:
    """Rebuild an object graph from a property tree."""
    return GraphSerializer(settings).decode(node, expected_type)


def register_simple_type(
    tp: type,
    to_text: Callable[[Any], str] = str,
    from_text: Callable[[type, str], Any] | None = None,
) -> None:
    """Treat ``tp`` as a leaf value and teach the codecs its text form.

    Args:
        tp:        The type to register; subclasses are covered too.
        to_text:   Renders an instance as text.  Defaults to ``str``.
        from_text: Parses ``(cls, text)`` back into an instance.  Defaults to
                   calling ``cls(text)``.

    Example::

        register_simple_type(Money, to_text=Money.format, from_text=lambda cls, t: cls.parse(t))
    """
    parse = from_text if from_text is not None else (lambda cls, text: cls(text))
    default_value_converter.register(tp, to_text, parse)
    default_classifier.register_simple_type(tp)
