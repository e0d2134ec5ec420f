"""SerializerSettings and CodecFormat for GraphSerializer configuration.

SerializerSettings is a frozen (immutable) dataclass holding everything the
facade needs to wire a codec and a property provider.  CodecFormat selects the
concrete wire format used to render property trees.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum, auto
from types import MappingProxyType

__all__ = ["CodecFormat", "SerializerSettings"]


class CodecFormat(StrEnum):
    """Which wire format renders the property tree.

    - XML:  element/attribute XML document (default).
    - JSON: the same element/attribute structure as nested JSON objects.
    """

    XML = auto()
    JSON = auto()


@dataclass(frozen=True, slots=True)
class SerializerSettings:
    """Immutable configuration for GraphSerializer.

    Attributes:
        codec: Wire format for the rendered tree.
        root_name: Name given to the root node.  Must be non-empty.
        encoding: Text encoding of the rendered document.
        indent: Pretty-print the rendered document.
        properties_to_ignore: Per-type property names that are never
            serialized, e.g. ``{Person: frozenset({"cache"})}``.  Rules apply
            to subclasses of the listed type as well.
        markers_to_ignore: Extra ``Annotated`` metadata objects (or marker
            classes) that exclude a property, in addition to
            ``ExcludeFromSerialization``.
        strict_containers: When True, decoding items into a container that has
            no append/insert capability raises ``UnsupportedContainerError``
            instead of dropping them with a warning.
        include_builtins_prefix: When True, builtin types are written with
            their ``builtins.`` module prefix.
    """

    codec: CodecFormat = CodecFormat.XML
    root_name: str = "Root"
    encoding: str = "utf-8"
    indent: bool = True
    properties_to_ignore: Mapping[type, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    markers_to_ignore: tuple[object, ...] = ()
    strict_containers: bool = False
    include_builtins_prefix: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.codec, CodecFormat):
            try:
                object.__setattr__(self, "codec", CodecFormat(self.codec))
            except ValueError:
                msg = f"codec must be one of {[c.value for c in CodecFormat]}, got {self.codec!r}"
                raise ValueError(msg) from None
        if not self.root_name:
            msg = "root_name must be a non-empty string"
            raise ValueError(msg)
        try:
            "".encode(self.encoding)
        except LookupError:
            msg = f"unknown encoding {self.encoding!r}"
            raise ValueError(msg) from None
        for owner, names in self.properties_to_ignore.items():
            if not isinstance(owner, type):
                msg = f"properties_to_ignore keys must be types, got {owner!r}"
                raise ValueError(msg)
            if isinstance(names, str):
                msg = f"properties_to_ignore[{owner.__name__}] must be a set of names, not a string"
                raise ValueError(msg)
        frozen_rules = {
            owner: frozenset(names) for owner, names in self.properties_to_ignore.items()
        }
        object.__setattr__(self, "properties_to_ignore", MappingProxyType(frozen_rules))
        object.__setattr__(self, "markers_to_ignore", tuple(self.markers_to_ignore))
