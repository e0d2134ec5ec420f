"""objtree - object graph serialization through a tagged property tree."""

from __future__ import annotations

from objtree.api import (
    decode,
    deserialize,
    dump,
    dumps,
    encode,
    load,
    loads,
    register_simple_type,
    serialize,
)
from objtree.core.arrays import BoundedArray
from objtree.core.properties import ExcludeFromSerialization, excluded_field
from objtree.errors import (
    DeserializationError,
    InstanceCreationError,
    InvalidOperationError,
    MalformedDocumentError,
    ObjtreeError,
    ReferenceResolutionError,
    TypeResolutionError,
    UnknownNodeKindError,
    UnsupportedContainerError,
    ValueConversionError,
)
from objtree.serializer import GraphSerializer
from objtree.settings import CodecFormat, SerializerSettings

__version__: str = "0.1.0"
__all__: list[str] = [
    "BoundedArray",
    "CodecFormat",
    "DeserializationError",
    "ExcludeFromSerialization",
    "GraphSerializer",
    "InstanceCreationError",
    "InvalidOperationError",
    "MalformedDocumentError",
    "ObjtreeError",
    "ReferenceResolutionError",
    "SerializerSettings",
    "TypeResolutionError",
    "UnknownNodeKindError",
    "UnsupportedContainerError",
    "ValueConversionError",
    "decode",
    "deserialize",
    "dump",
    "dumps",
    "encode",
    "excluded_field",
    "load",
    "loads",
    "register_simple_type",
    "serialize",
]
