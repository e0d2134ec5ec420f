"""Unit tests for the public API functions.

Covers:
- serialize/deserialize and the dump/load aliases on paths and streams
- dumps/loads with default and explicit settings
- encode/decode at the property tree level
- No state survives between calls
- register_simple_type turns a record type into a leaf value
- The package exports the documented public surface
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

import pytest

import objtree
from objtree import (
    SerializerSettings,
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
from objtree.tree.nodes import CollectionNode, SimpleNode


@dataclass
class Point:
    x: int = 0
    y: int = 0


class Currency:
    """Registered as a simple type in TestRegisterSimpleType."""

    def __init__(self, code: str = "") -> None:
        self.code = code

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Currency) and other.code == self.code


class Temperature:
    def __init__(self, kelvin: float = 0.0) -> None:
        self.kelvin = kelvin

    def __str__(self) -> str:
        return f"{self.kelvin}K"


@dataclass
class Price:
    amount: float = 0.0
    currency: Currency | None = None


class TestSerialize:
    """Tests for serialize()/deserialize() and their aliases."""

    def test_path_round_trip(self, tmp_path: Path) -> None:
        target = tmp_path / "point.xml"
        serialize(Point(1, 2), target)
        assert deserialize(target) == Point(1, 2)

    def test_stream_round_trip(self) -> None:
        buffer = io.BytesIO()
        serialize([Point(3, 4)], buffer)
        buffer.seek(0)
        assert deserialize(buffer) == [Point(3, 4)]

    def test_aliases(self, tmp_path: Path) -> None:
        target = tmp_path / "point.json"
        settings = SerializerSettings(codec="json")  # type: ignore[arg-type]
        dump(Point(5, 6), target, settings)
        assert load(target, settings=settings) == Point(5, 6)

    def test_expected_type(self) -> None:
        assert deserialize(io.BytesIO(b'<Simple value="7"/>'), int) == 7


class TestDumpsLoads:
    def test_default_codec_is_xml(self) -> None:
        root = ET.fromstring(dumps(Point()))
        assert root.tag == "Complex"

    def test_json_settings(self) -> None:
        settings = SerializerSettings(codec="json")  # type: ignore[arg-type]
        document = dumps({"p": Point(1, 1)}, settings)
        assert document.lstrip().startswith(b"{")
        assert loads(document, settings=settings) == {"p": Point(1, 1)}

    def test_no_state_between_calls(self) -> None:
        shared = Point()
        first = dumps([shared, shared])
        second = dumps([shared, shared])
        assert first == second


class TestTreeLevel:
    def test_encode(self) -> None:
        node = encode([1])
        assert isinstance(node, CollectionNode)
        assert node.name == "Root"
        assert isinstance(node.items[0], SimpleNode)

    def test_decode(self) -> None:
        assert decode(encode({"a": Point(1, 2)})) == {"a": Point(1, 2)}


class TestRegisterSimpleType:
    def test_registered_type_is_a_leaf(self) -> None:
        register_simple_type(Currency, to_text=lambda c: c.code)
        root = ET.fromstring(dumps(Price(9.5, Currency("EUR"))))
        currency = root.find("Properties/Simple[@name='currency']")
        assert currency is not None
        assert currency.get("value") == "EUR"
        assert loads(dumps(Price(9.5, Currency("EUR")))) == Price(9.5, Currency("EUR"))

    def test_custom_parser(self) -> None:
        register_simple_type(
            Temperature, from_text=lambda cls, text: cls(float(text.removesuffix("K")))
        )
        restored = loads(dumps([Temperature(273.15)]))
        assert isinstance(restored[0], Temperature)
        assert restored[0].kelvin == pytest.approx(273.15)


class TestPublicSurface:
    def test_all_exports(self) -> None:
        expected = {
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
        }
        actual = set(objtree.__all__)
        assert expected == actual, f"Missing: {expected - actual}, Extra: {actual - expected}"

    def test_errors_share_a_base(self) -> None:
        for name in objtree.__all__:
            if name.endswith("Error"):
                assert issubclass(getattr(objtree, name), objtree.ObjtreeError)
