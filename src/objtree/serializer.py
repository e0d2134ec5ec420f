"""GraphSerializer: facade that wires GraphEncoder/GraphDecoder to a codec.

Architecture:
- serialize() encodes the graph into a property tree with a fresh
  GraphEncoder, then renders it through PropertyTreeSerializer and the
  configured TreeWriter.
- deserialize() parses the document into a property tree through
  PropertyTreeDeserializer and the configured TreeReader, then rebuilds the
  graph with a fresh GraphDecoder.  Any failure on this path is wrapped once
  in DeserializationError; encode failures propagate unchanged.
- Each call holds the instance's RLock, so one serializer can be shared
  between threads; the writer and reader it owns are not reentrant.
"""

from __future__ import annotations

import io
import logging
import os
import threading
from pathlib import Path
from typing import Any, BinaryIO

from objtree.codecs import PropertyTreeDeserializer, PropertyTreeSerializer, create_codec
from objtree.core.classifier import TypeClassifier, default_classifier
from objtree.core.properties import PropertyProvider
from objtree.errors import DeserializationError
from objtree.protocols import TreeReader, TreeWriter
from objtree.settings import SerializerSettings
from objtree.tree.decoder import GraphDecoder
from objtree.tree.encoder import GraphEncoder
from objtree.tree.nodes import PropertyNode

logger = logging.getLogger(__name__)

__all__ = ["GraphSerializer"]

Target = str | os.PathLike[str] | BinaryIO


class GraphSerializer:
    """Serializes object graphs to XML or JSON documents and back.

    Example::

        from objtree import GraphSerializer, SerializerSettings

        serializer = GraphSerializer(SerializerSettings(codec="json"))
        serializer.serialize(person, "out/person.json")
        restored = serializer.deserialize("out/person.json")
        assert restored.friend.friend is restored
    """

    def __init__(self, settings: SerializerSettings | None = None) -> None:
        """Initialise the serializer.

        Args:
            settings: Codec and exclusion configuration.  Defaults to
                ``SerializerSettings()`` (XML, root named ``"Root"``).
        """
        self._settings: SerializerSettings = (
            settings if settings is not None else SerializerSettings()
        )
        self._writer, self._reader = create_codec(self._settings)
        self._property_provider = PropertyProvider(
            properties_to_ignore=self._settings.properties_to_ignore,
            markers_to_ignore=self._settings.markers_to_ignore,
        )
        self._classifier: TypeClassifier = default_classifier
        self._lock = threading.RLock()

    @classmethod
    def from_codecs(
        cls,
        writer: TreeWriter,
        reader: TreeReader,
        settings: SerializerSettings | None = None,
    ) -> GraphSerializer:
        """Build a serializer around a custom writer/reader pair."""
        serializer = cls(settings)
        serializer._writer = writer
        serializer._reader = reader
        return serializer

    @property
    def settings(self) -> SerializerSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def serialize(self, data: Any, target: Target) -> None:
        """Serialize ``data`` into a file path or a writable binary stream.

        Missing parent directories of a path target are created.

        Raises:
            ValueError: If ``data`` is None.
            InvalidOperationError: If some value in the graph cannot be encoded.
        """
        if data is None:
            msg = "data must not be None"
            raise ValueError(msg)
        with self._lock:
            node = self.encode(data)
            if isinstance(target, (str, os.PathLike)):
                path = Path(target)
                path.parent.mkdir(parents=True, exist_ok=True)
                with path.open("wb") as stream:
                    PropertyTreeSerializer(self._writer).serialize(node, stream)
            else:
                PropertyTreeSerializer(self._writer).serialize(node, target)

    def deserialize(self, source: Target, expected_type: Any = None) -> Any:
        """Deserialize a graph from a file path or a readable binary stream.

        Args:
            source:        Path or binary stream holding one document.
            expected_type: Root type to assume when the document records none.

        Raises:
            DeserializationError: On any failure while reading or rebuilding;
                the original exception is ``__cause__``.
        """
        with self._lock:
            if isinstance(source, (str, os.PathLike)):
                with Path(source).open("rb") as stream:
                    return self._deserialize(stream, expected_type)
            return self._deserialize(source, expected_type)

    def dumps(self, data: Any) -> bytes:
        """Serialize ``data`` to a document held in memory."""
        buffer = io.BytesIO()
        self.serialize(data, buffer)
        return buffer.getvalue()

    def loads(self, document: bytes, expected_type: Any = None) -> Any:
        """Deserialize a document held in memory."""
        return self.deserialize(io.BytesIO(document), expected_type)

    # ------------------------------------------------------------------
    # Property tree level
    # ------------------------------------------------------------------

    def encode(self, data: Any) -> PropertyNode:
        """Encode ``data`` into a property tree rooted at ``settings.root_name``."""
        encoder = GraphEncoder(self._property_provider, self._classifier)
        return encoder.encode(self._settings.root_name, data)

    def decode(self, node: PropertyNode, expected_type: Any = None) -> Any:
        """Rebuild an object graph from a property tree."""
        decoder = GraphDecoder(
            self._property_provider,
            self._classifier,
            strict_containers=self._settings.strict_containers,
        )
        return decoder.decode(node, expected_type)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _deserialize(self, stream: BinaryIO, expected_type: Any) -> Any:
        try:
            parser = PropertyTreeDeserializer(
                self._reader, self._property_provider, self._classifier
            )
            node = parser.deserialize(stream, expected_type)
            return self.decode(node, expected_type)
        except Exception as exc:
            logger.debug(f"Deserialization failed: {exc!r}")
            msg = f"Could not deserialize {self._settings.codec.value.upper()} document: {exc}"
            raise DeserializationError(msg) from exc
