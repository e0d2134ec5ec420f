"""Typed attribute helpers shared by the XML and JSON codecs.

Concrete writers only store and emit plain string attributes; concrete readers
only look plain string attributes up.  Everything typed (ints, int lists,
types, simple values) is converted here, so both formats agree on the text
form of every attribute.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from objtree.codecs.typenames import TypeNameConverter
from objtree.codecs.values import SimpleValueConverter, default_value_converter
from objtree.errors import ValueConversionError

__all__ = ["TypedAttributeReader", "TypedAttributeWriter"]


class TypedAttributeWriter:
    """Base class for writers; subclasses implement ``write_attribute``."""

    def __init__(
        self,
        type_names: TypeNameConverter | None = None,
        values: SimpleValueConverter | None = None,
    ) -> None:
        self.type_names = type_names if type_names is not None else TypeNameConverter()
        self.values = values if values is not None else default_value_converter

    def write_attribute(self, name: str, text: str | None) -> None:
        raise NotImplementedError

    def write_int_attribute(self, name: str, number: int) -> None:
        self.write_attribute(name, str(number))

    def write_int_list_attribute(self, name: str, numbers: Sequence[int]) -> None:
        self.write_attribute(name, ",".join(str(n) for n in numbers))

    def write_type_attribute(self, name: str, tp: Any) -> None:
        if tp is None:
            return
        self.write_attribute(name, self.type_names.type_to_name(tp))

    def write_value_attribute(self, name: str, value: Any) -> None:
        if value is None:
            return
        self.write_attribute(name, self.values.to_text(value))


class TypedAttributeReader:
    """Base class for readers; subclasses implement ``get_attribute_as_string``."""

    def __init__(
        self,
        type_names: TypeNameConverter | None = None,
        values: SimpleValueConverter | None = None,
    ) -> None:
        self.type_names = type_names if type_names is not None else TypeNameConverter()
        self.values = values if values is not None else default_value_converter

    def get_attribute_as_string(self, name: str) -> str | None:
        raise NotImplementedError

    def get_attribute_as_int(self, name: str) -> int:
        """Integer attribute; 0 when absent."""
        text = self.get_attribute_as_string(name)
        if not text:
            return 0
        try:
            return int(text)
        except ValueError as exc:
            msg = f"Attribute {name!r} is not an integer: {text!r}"
            raise ValueConversionError(msg) from exc

    def get_attribute_as_int_list(self, name: str) -> list[int] | None:
        text = self.get_attribute_as_string(name)
        if text is None:
            return None
        if not text:
            return []
        try:
            return [int(part) for part in text.split(",")]
        except ValueError as exc:
            msg = f"Attribute {name!r} is not a list of integers: {text!r}"
            raise ValueConversionError(msg) from exc

    def get_attribute_as_type(self, name: str) -> Any:
        text = self.get_attribute_as_string(name)
        if not text:
            return None
        return self.type_names.name_to_type(text)

    def get_attribute_as_object(self, name: str, expected_type: Any) -> Any:
        text = self.get_attribute_as_string(name)
        if text is None:
            return None
        return self.values.from_text(expected_type, text)
