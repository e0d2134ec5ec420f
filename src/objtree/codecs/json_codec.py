"""JSON codec: the element/attribute layout as nested JSON objects.

Each element is an object whose ``"$"`` member holds the tag and whose
``"#"`` member (present only when non-empty) holds the child elements.
Attributes are the remaining string members::

    {"$": "Collection", "name": "Root", "type": "list",
     "#": [{"$": "Items", "#": [{"$": "Simple", "type": "int", "value": "1"}]}]}
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any, BinaryIO

from objtree.codecs.base import TypedAttributeReader, TypedAttributeWriter
from objtree.codecs.typenames import TypeNameConverter
from objtree.codecs.values import SimpleValueConverter
from objtree.errors import MalformedDocumentError

__all__ = ["JsonTreeReader", "JsonTreeWriter"]

TAG_KEY = "$"
CHILDREN_KEY = "#"


class JsonTreeWriter(TypedAttributeWriter):
    """Collects the document as dicts and dumps it on ``close()``."""

    def __init__(
        self,
        encoding: str = "utf-8",
        indent: bool = True,
        type_names: TypeNameConverter | None = None,
        values: SimpleValueConverter | None = None,
    ) -> None:
        super().__init__(type_names, values)
        self._encoding = encoding
        self._indent = indent
        self._stream: BinaryIO | None = None
        self._root: dict[str, Any] | None = None
        self._stack: list[dict[str, Any]] = []

    def open(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._root = None
        self._stack = []

    def close(self) -> None:
        if self._stream is None:
            return
        try:
            if self._root is not None:
                indent = 2 if self._indent else None
                text = json.dumps(self._root, indent=indent, ensure_ascii=False)
                self._stream.write(text.encode(self._encoding))
        finally:
            self.discard()

    def discard(self) -> None:
        self._stream = None
        self._root = None
        self._stack = []

    def write_start_element(self, tag: str) -> None:
        element: dict[str, Any] = {TAG_KEY: tag}
        if self._stack:
            self._stack[-1].setdefault(CHILDREN_KEY, []).append(element)
        elif self._root is None:
            self._root = element
        else:
            msg = f"Second root element {tag!r}"
            raise MalformedDocumentError(msg)
        self._stack.append(element)

    def write_end_element(self) -> None:
        element = self._stack.pop()
        # keep children after the attributes
        children = element.pop(CHILDREN_KEY, None)
        if children:
            element[CHILDREN_KEY] = children

    def write_attribute(self, name: str, text: str | None) -> None:
        if text is None:
            return
        self._stack[-1][name] = text


class JsonTreeReader(TypedAttributeReader):
    """Walks a loaded JSON document with a current-element cursor."""

    def __init__(
        self,
        encoding: str = "utf-8",
        type_names: TypeNameConverter | None = None,
        values: SimpleValueConverter | None = None,
    ) -> None:
        super().__init__(type_names, values)
        self._encoding = encoding
        self._root: dict[str, Any] | None = None
        self._current: dict[str, Any] | None = None

    def open(self, stream: BinaryIO) -> None:
        try:
            document = json.loads(stream.read().decode(self._encoding))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            msg = f"Malformed JSON document: {exc}"
            raise MalformedDocumentError(msg) from exc
        _check_element(document)
        self._root = document
        self._current = None

    def close(self) -> None:
        self._root = None
        self._current = None

    def read_element(self) -> str | None:
        if self._current is not None or self._root is None:
            return None
        self._current = self._root
        return self._root[TAG_KEY]

    def read_sub_elements(self) -> Iterator[str]:
        parent = self._current
        if parent is None:
            return
        try:
            for child in parent.get(CHILDREN_KEY, ()):
                _check_element(child)
                self._current = child
                yield child[TAG_KEY]
        finally:
            self._current = parent

    def get_attribute_as_string(self, name: str) -> str | None:
        if self._current is None:
            return None
        value = self._current.get(name)
        if value is None:
            return None
        if not isinstance(value, str):
            msg = f"Attribute {name!r} must be a string, got {type(value).__name__}"
            raise MalformedDocumentError(msg)
        return value


def _check_element(element: Any) -> None:
    if not isinstance(element, dict) or not isinstance(element.get(TAG_KEY), str):
        msg = f"Not an element: {element!r:.80}"
        raise MalformedDocumentError(msg)
