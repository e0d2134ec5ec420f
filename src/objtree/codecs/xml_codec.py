"""XML codec built on ``xml.etree.ElementTree``.

Every element becomes an XML element; every attribute becomes an XML
attribute.  Text that XML 1.0 cannot hold (most C0 control characters and
lone surrogates) is rejected with ValueConversionError when written.

A two-level Person graph renders as::

    <?xml version='1.0' encoding='utf-8'?>
    <Complex name="Root" type="app.Person" id="1">
      <Properties>
        <Simple name="name" value="A" />
        <Complex name="friend">
          <Properties>
            <Simple name="name" value="B" />
            <Reference name="friend" id="1" />
          </Properties>
        </Complex>
      </Properties>
    </Complex>
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from typing import BinaryIO

from objtree.codecs.base import TypedAttributeReader, TypedAttributeWriter
from objtree.codecs.typenames import TypeNameConverter
from objtree.codecs.values import SimpleValueConverter
from objtree.errors import MalformedDocumentError, ValueConversionError

__all__ = ["XmlTreeReader", "XmlTreeWriter"]

# characters outside the XML 1.0 Char production
_ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


class XmlTreeWriter(TypedAttributeWriter):
    """Builds an element tree in memory and writes it on ``close()``."""

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
        self._root: ET.Element | None = None
        self._stack: list[ET.Element] = []

    def open(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._root = None
        self._stack = []

    def close(self) -> None:
        if self._stream is None:
            return
        try:
            if self._root is not None:
                document = ET.ElementTree(self._root)
                if self._indent:
                    ET.indent(document)
                document.write(self._stream, encoding=self._encoding, xml_declaration=True)
        finally:
            self.discard()

    def discard(self) -> None:
        self._stream = None
        self._root = None
        self._stack = []

    def write_start_element(self, tag: str) -> None:
        if self._stack:
            element = ET.SubElement(self._stack[-1], tag)
        elif self._root is None:
            element = ET.Element(tag)
            self._root = element
        else:
            msg = f"Second root element {tag!r}"
            raise MalformedDocumentError(msg)
        self._stack.append(element)

    def write_end_element(self) -> None:
        self._stack.pop()

    def write_attribute(self, name: str, text: str | None) -> None:
        if text is None:
            return
        illegal = _ILLEGAL_XML_CHARS.search(text)
        if illegal is not None:
            msg = (
                f"Attribute {name!r} holds {illegal.group()!r} at position {illegal.start()}, "
                f"which XML 1.0 cannot represent"
            )
            raise ValueConversionError(msg)
        self._stack[-1].set(name, text)


class XmlTreeReader(TypedAttributeReader):
    """Walks a parsed element tree with a current-element cursor."""

    def __init__(
        self,
        type_names: TypeNameConverter | None = None,
        values: SimpleValueConverter | None = None,
    ) -> None:
        super().__init__(type_names, values)
        self._root: ET.Element | None = None
        self._current: ET.Element | None = None

    def open(self, stream: BinaryIO) -> None:
        try:
            self._root = ET.parse(stream).getroot()
        except ET.ParseError as exc:
            msg = f"Malformed XML document: {exc}"
            raise MalformedDocumentError(msg) from exc
        self._current = None

    def close(self) -> None:
        self._root = None
        self._current = None

    def read_element(self) -> str | None:
        if self._current is not None or self._root is None:
            return None
        self._current = self._root
        return self._root.tag

    def read_sub_elements(self) -> Iterator[str]:
        parent = self._current
        if parent is None:
            return
        try:
            for child in list(parent):
                self._current = child
                yield child.tag
        finally:
            self._current = parent

    def get_attribute_as_string(self, name: str) -> str | None:
        if self._current is None:
            return None
        return self._current.get(name)
