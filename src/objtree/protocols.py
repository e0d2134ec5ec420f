"""Structural protocols for objtree extension points.

Container capabilities
    ``SupportsAppend``, ``SupportsAdd`` and ``SupportsKeyedInsert`` describe how
    decoded items get back into a container.  Any class with a conformant
    method passes ``issubclass``/``isinstance`` checks; no inheritance needed.

Codec boundary
    ``TreeWriter`` and ``TreeReader`` describe an element/attribute store.
    ``PropertyTreeSerializer`` and ``PropertyTreeDeserializer`` drive them, so a
    new wire format only has to implement these two protocols.

Example::

    from objtree.protocols import SupportsAppend

    class Bag:
        def __init__(self) -> None:
            self.items = []

        def append(self, value) -> None:
            self.items.append(value)

    assert issubclass(Bag, SupportsAppend)  # True, structural conformance
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, BinaryIO, Protocol, runtime_checkable

__all__ = [
    "SupportsAdd",
    "SupportsAppend",
    "SupportsKeyedInsert",
    "TreeReader",
    "TreeWriter",
]


@runtime_checkable
class SupportsAppend(Protocol):
    """Ordered containers: ``list``, ``deque`` and friends."""

    def append(self, value: Any, /) -> Any: ...


@runtime_checkable
class SupportsAdd(Protocol):
    """Unordered containers: ``set`` and friends."""

    def add(self, value: Any, /) -> Any: ...


@runtime_checkable
class SupportsKeyedInsert(Protocol):
    """Keyed containers: ``dict`` and any mutable mapping."""

    def __setitem__(self, key: Any, value: Any, /) -> Any: ...


@runtime_checkable
class TreeWriter(Protocol):
    """Write side of the codec boundary.

    Elements nest: every ``write_start_element`` is paired with a
    ``write_end_element``.  Attributes apply to the innermost open element.
    ``close`` writes the document to the stream; ``discard`` drops it and
    releases the stream without writing anything.
    """

    def open(self, stream: BinaryIO) -> None: ...

    def close(self) -> None: ...

    def discard(self) -> None: ...

    def write_start_element(self, tag: str) -> None: ...

    def write_end_element(self) -> None: ...

    def write_attribute(self, name: str, text: str | None) -> None: ...

    def write_int_attribute(self, name: str, number: int) -> None: ...

    def write_int_list_attribute(self, name: str, numbers: Sequence[int]) -> None: ...

    def write_type_attribute(self, name: str, tp: Any) -> None: ...

    def write_value_attribute(self, name: str, value: Any) -> None: ...


@runtime_checkable
class TreeReader(Protocol):
    """Read side of the codec boundary.

    ``read_sub_elements`` follows stack discipline: while a child tag yielded by
    it is current, a nested ``read_sub_elements`` call walks that child's own
    elements; when it finishes, the parent enumeration continues.
    """

    def open(self, stream: BinaryIO) -> None: ...

    def close(self) -> None: ...

    def read_element(self) -> str | None: ...

    def read_sub_elements(self) -> Iterator[str]: ...

    def get_attribute_as_string(self, name: str) -> str | None: ...

    def get_attribute_as_int(self, name: str) -> int: ...

    def get_attribute_as_int_list(self, name: str) -> list[int] | None: ...

    def get_attribute_as_type(self, name: str) -> Any: ...

    def get_attribute_as_object(self, name: str, expected_type: Any) -> Any: ...
