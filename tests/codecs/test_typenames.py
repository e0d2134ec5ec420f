"""Tests for TypeNameConverter.

Covers:
- Builtins are written without the ``builtins.`` prefix unless asked to
- Qualified names for library, test-module and nested classes
- Generic aliases are named after their runtime class
- Resolution via sys.modules and via import
- Unresolvable and non-class names raise TypeResolutionError
"""

from __future__ import annotations

import collections
import datetime as dt
from typing import TypeVar

import numpy as np
import pytest

from objtree.codecs.typenames import TypeNameConverter
from objtree.errors import TypeResolutionError


class Outer:
    class Inner:
        pass


@pytest.fixture
def converter() -> TypeNameConverter:
    """A fresh TypeNameConverter with empty caches for each test."""
    return TypeNameConverter()


class TestTypeToName:
    def test_builtin_short(self, converter: TypeNameConverter) -> None:
        assert converter.type_to_name(int) == "int"
        assert converter.type_to_name(bytearray) == "bytearray"

    def test_builtin_prefix(self) -> None:
        assert TypeNameConverter(include_builtins_prefix=True).type_to_name(int) == "builtins.int"

    def test_library_class(self, converter: TypeNameConverter) -> None:
        assert converter.type_to_name(collections.OrderedDict) == "collections.OrderedDict"
        assert converter.type_to_name(dt.datetime) == "datetime.datetime"

    def test_nested_class_uses_qualname(self, converter: TypeNameConverter) -> None:
        assert converter.type_to_name(Outer.Inner) == f"{__name__}.Outer.Inner"

    def test_generic_alias(self, converter: TypeNameConverter) -> None:
        assert converter.type_to_name(list[int]) == "list"
        assert converter.type_to_name(dict[str, Outer]) == "dict"

    def test_non_class_raises(self, converter: TypeNameConverter) -> None:
        with pytest.raises(TypeResolutionError):
            converter.type_to_name(TypeVar("T"))


class TestNameToType:
    @pytest.mark.parametrize(
        "tp", [int, str, collections.OrderedDict, dt.timedelta, np.float32, Outer, Outer.Inner]
    )
    def test_resolves_what_it_writes(self, converter: TypeNameConverter, tp: type) -> None:
        assert converter.name_to_type(converter.type_to_name(tp)) is tp

    def test_prefixed_builtin(self, converter: TypeNameConverter) -> None:
        assert converter.name_to_type("builtins.float") is float

    def test_imports_missing_module(self, converter: TypeNameConverter) -> None:
        assert converter.name_to_type("fractions.Fraction").__name__ == "Fraction"

    def test_unknown_builtin_raises(self, converter: TypeNameConverter) -> None:
        with pytest.raises(TypeResolutionError, match="does not denote a class"):
            converter.name_to_type("NoSuchType")

    def test_unknown_module_raises(self, converter: TypeNameConverter) -> None:
        with pytest.raises(TypeResolutionError, match="Cannot resolve"):
            converter.name_to_type("no_such_module_here.Thing")

    def test_unknown_attribute_raises(self, converter: TypeNameConverter) -> None:
        with pytest.raises(TypeResolutionError):
            converter.name_to_type("collections.NoSuchThing")

    def test_function_is_not_a_type(self, converter: TypeNameConverter) -> None:
        with pytest.raises(TypeResolutionError, match="does not denote a class"):
            converter.name_to_type("functools.reduce")

    def test_empty_name_raises(self, converter: TypeNameConverter) -> None:
        with pytest.raises(TypeResolutionError, match="Empty"):
            converter.name_to_type("")

    def test_results_are_cached(self, converter: TypeNameConverter) -> None:
        first = converter.name_to_type("collections.deque")
        assert converter.name_to_type("collections.deque") is first is collections.deque
