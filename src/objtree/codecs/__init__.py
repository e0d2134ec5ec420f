"""Codecs rendering property trees as XML or JSON documents."""

from __future__ import annotations

from objtree.codecs.elements import Attributes, Elements, SubElements
from objtree.codecs.json_codec import JsonTreeReader, JsonTreeWriter
from objtree.codecs.parsing import PropertyTreeDeserializer
from objtree.codecs.rendering import PropertyTreeSerializer
from objtree.codecs.typenames import TypeNameConverter
from objtree.codecs.values import SimpleValueConverter, default_value_converter
from objtree.codecs.xml_codec import XmlTreeReader, XmlTreeWriter
from objtree.protocols import TreeReader, TreeWriter
from objtree.settings import CodecFormat, SerializerSettings

__all__ = [
    "Attributes",
    "Elements",
    "JsonTreeReader",
    "JsonTreeWriter",
    "PropertyTreeDeserializer",
    "PropertyTreeSerializer",
    "SimpleValueConverter",
    "SubElements",
    "TypeNameConverter",
    "XmlTreeReader",
    "XmlTreeWriter",
    "create_codec",
    "default_value_converter",
]


def create_codec(settings: SerializerSettings) -> tuple[TreeWriter, TreeReader]:
    """Return a matching writer/reader pair for ``settings.codec``."""
    type_names = TypeNameConverter(include_builtins_prefix=settings.include_builtins_prefix)
    if settings.codec is CodecFormat.JSON:
        return (
            JsonTreeWriter(settings.encoding, settings.indent, type_names),
            JsonTreeReader(settings.encoding, type_names),
        )
    return (
        XmlTreeWriter(settings.encoding, settings.indent, type_names),
        XmlTreeReader(type_names),
    )
