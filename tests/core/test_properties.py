"""Tests for PropertyProvider and the exclusion helpers.

Covers:
- Dataclass fields in declaration order, with declared types
- Exclusion: underscore names, Annotated markers, excluded_field(), per-type rules
- Annotated classes, __slots__ classes, settable properties
- Fallback to the instance __dict__ for undeclared plain objects
- Settable properties merged with the instance __dict__
- Constructor state of deque and defaultdict
- ClassVar annotations are skipped
- find() for declared and dynamic properties
- set() on frozen dataclasses
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Annotated, ClassVar

import pytest

from objtree.core.properties import (
    EXCLUDE_METADATA_KEY,
    ExcludeFromSerialization,
    PropertyInfo,
    PropertyProvider,
    excluded_field,
)


class Secret:
    """Custom exclusion marker."""


@dataclass
class Account:
    name: str = ""
    balance: float = 0.0
    password: Annotated[str, ExcludeFromSerialization] = ""
    token: str = excluded_field(default="")
    _internal: int = 0
    note: str | None = None


@dataclass
class SavingsAccount(Account):
    rate: float = 0.0


@dataclass(frozen=True)
class FrozenPoint:
    x: int = 0
    y: int = 0


class Annotated2D:
    kind: ClassVar[str] = "2d"
    width: int
    height: int

    def __init__(self) -> None:
        self.width = 0
        self.height = 0


class Slotted:
    __slots__ = ("a", "b")

    def __init__(self) -> None:
        self.a = 1
        self.b = 2


class Thermometer:
    def __init__(self) -> None:
        self._celsius = 0.0

    @property
    def celsius(self) -> float:
        return self._celsius

    @celsius.setter
    def celsius(self, value: float) -> None:
        self._celsius = value

    @property
    def fahrenheit(self) -> float:
        return self._celsius * 9 / 5 + 32


class Gauge:
    """Settable property plus attributes assigned in __init__."""

    def __init__(self) -> None:
        self._reading = 0
        self.label = "g"
        self.unit = "bar"

    @property
    def reading(self) -> int:
        return self._reading

    @reading.setter
    def reading(self, value: int) -> None:
        self._reading = value


class Plain:
    def __init__(self) -> None:
        self.alpha = 1
        self.beta = "two"
        self._hidden = 3


class Marked:
    visible: int = 0
    hidden: Annotated[int, Secret()] = 0


@pytest.fixture
def provider() -> PropertyProvider:
    """A fresh PropertyProvider without extra rules for each test."""
    return PropertyProvider()


def _names(infos: list[PropertyInfo]) -> list[str]:
    return [info.name for info in infos]


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class TestDataclasses:
    def test_fields_in_declaration_order(self, provider: PropertyProvider) -> None:
        assert _names(provider.list_properties(Account)) == ["name", "balance", "note"]

    def test_declared_types(self, provider: PropertyProvider) -> None:
        infos = {info.name: info for info in provider.list_properties(Account)}
        assert infos["name"].declared_type is str
        assert infos["balance"].declared_type is float

    def test_nullable_follows_annotation(self, provider: PropertyProvider) -> None:
        infos = {info.name: info for info in provider.list_properties(Account)}
        assert not infos["name"].nullable
        assert infos["note"].nullable

    def test_inherited_fields_come_first(self, provider: PropertyProvider) -> None:
        names = _names(provider.list_properties(SavingsAccount))
        assert names == ["name", "balance", "note", "rate"]

    def test_excluded_field_metadata(self) -> None:
        f = excluded_field(default=1, metadata={"other": True})
        assert f.metadata[EXCLUDE_METADATA_KEY] is True
        assert f.metadata["other"] is True

    def test_results_are_cached_per_type(self, provider: PropertyProvider) -> None:
        first = provider.list_properties(Account)
        second = provider.list_properties(Account)
        assert first == second
        assert first is not second


class TestOtherDeclarations:
    def test_annotations_skip_classvar(self, provider: PropertyProvider) -> None:
        assert _names(provider.list_properties(Annotated2D)) == ["width", "height"]

    def test_slots(self, provider: PropertyProvider) -> None:
        assert _names(provider.list_properties(Slotted)) == ["a", "b"]

    def test_only_settable_properties(self, provider: PropertyProvider) -> None:
        infos = provider.list_properties(Thermometer)
        assert _names(infos) == ["celsius"]
        assert infos[0].declared_type is float

    def test_instance_dict_fallback(self, provider: PropertyProvider) -> None:
        assert _names(provider.list_properties(Plain, Plain())) == ["alpha", "beta"]

    def test_properties_merge_with_instance_dict(self, provider: PropertyProvider) -> None:
        names = _names(provider.list_properties(Gauge, Gauge()))
        assert names == ["reading", "label", "unit"]

    def test_properties_only_without_instance(self, provider: PropertyProvider) -> None:
        assert _names(provider.list_properties(Gauge)) == ["reading"]

    def test_declared_fields_close_the_instance_dict(self, provider: PropertyProvider) -> None:
        account = Account()
        account.extra = 1  # type: ignore[attr-defined]
        assert "extra" not in _names(provider.list_properties(Account, account))

    def test_no_instance_no_fallback(self, provider: PropertyProvider) -> None:
        assert provider.list_properties(Plain) == []

    def test_builtin_containers_have_no_properties(self, provider: PropertyProvider) -> None:
        assert provider.list_properties(list, [1, 2]) == []
        assert provider.list_properties(dict, {"a": 1}) == []

    def test_deque_maxlen_is_constructor_state(self, provider: PropertyProvider) -> None:
        infos = provider.list_properties(deque, deque(maxlen=3))
        assert _names(infos) == ["maxlen"]
        assert infos[0].constructor

    def test_defaultdict_factory_is_assigned(self, provider: PropertyProvider) -> None:
        infos = provider.list_properties(defaultdict, defaultdict(list))
        assert _names(infos) == ["default_factory"]
        assert not infos[0].constructor


class TestExclusionRules:
    def test_custom_marker(self) -> None:
        provider = PropertyProvider(markers_to_ignore=(Secret,))
        assert _names(provider.list_properties(Marked)) == ["visible"]

    def test_custom_marker_not_configured(self, provider: PropertyProvider) -> None:
        assert _names(provider.list_properties(Marked)) == ["visible", "hidden"]

    def test_per_type_rule(self) -> None:
        provider = PropertyProvider(properties_to_ignore={Account: frozenset({"balance"})})
        assert _names(provider.list_properties(Account)) == ["name", "note"]

    def test_per_type_rule_applies_to_subclasses(self) -> None:
        provider = PropertyProvider(properties_to_ignore={Account: frozenset({"balance"})})
        assert "balance" not in _names(provider.list_properties(SavingsAccount))

    def test_per_type_rule_on_plain_objects(self) -> None:
        provider = PropertyProvider(properties_to_ignore={Plain: frozenset({"beta"})})
        assert _names(provider.list_properties(Plain, Plain())) == ["alpha"]


# ---------------------------------------------------------------------------
# Lookup and access
# ---------------------------------------------------------------------------


class TestFind:
    def test_declared(self, provider: PropertyProvider) -> None:
        info = provider.find(Account, "balance")
        assert info is not None
        assert info.declared_type is float

    def test_excluded_is_not_found(self, provider: PropertyProvider) -> None:
        assert provider.find(Account, "password") is None
        assert provider.find(Account, "token") is None

    def test_unknown_on_declared_type(self, provider: PropertyProvider) -> None:
        assert provider.find(Account, "missing") is None

    def test_dynamic_on_plain_object(self, provider: PropertyProvider) -> None:
        info = provider.find(Plain, "gamma")
        assert info == PropertyInfo(name="gamma")

    def test_dynamic_beside_settable_property(self, provider: PropertyProvider) -> None:
        assert provider.find(Gauge, "label") == PropertyInfo(name="label")
        assert provider.find(Gauge, "reading") is not None

    def test_read_only_property_is_not_found(self, provider: PropertyProvider) -> None:
        assert provider.find(Thermometer, "fahrenheit") is None

    def test_dynamic_needs_instance_dict(self, provider: PropertyProvider) -> None:
        assert provider.find(object, "anything") is None

    def test_generic_alias_owner(self, provider: PropertyProvider) -> None:
        assert provider.find(list[int], "append") is None


class TestAccess:
    def test_get_and_set(self, provider: PropertyProvider) -> None:
        account = Account(name="a")
        provider.set(account, "name", "b")
        assert provider.get(account, "name") == "b"

    def test_set_frozen_dataclass(self, provider: PropertyProvider) -> None:
        point = FrozenPoint()
        provider.set(point, "x", 5)
        assert point.x == 5

    def test_class_factory_is_read(self, provider: PropertyProvider) -> None:
        assert provider.get(defaultdict(list), "default_factory") is list

    def test_function_factory_is_dropped(
        self, provider: PropertyProvider, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="objtree.core.properties"):
            assert provider.get(defaultdict(lambda: 0), "default_factory") is None
        assert "not a class" in caplog.text

    def test_set_property(self, provider: PropertyProvider) -> None:
        thermometer = Thermometer()
        provider.set(thermometer, "celsius", 100.0)
        assert thermometer.fahrenheit == 212.0


def test_exclude_marker_instance_also_excludes() -> None:
    @dataclass
    class Local:
        shown: int = 0
        hidden: Annotated[int, ExcludeFromSerialization()] = 0

    assert _names(PropertyProvider().list_properties(Local)) == ["shown"]


def test_field_helper_is_a_dataclass_field() -> None:
    @dataclass
    class Local:
        items: list[int] = field(default_factory=list)
        cache: dict[str, int] = excluded_field(default_factory=dict)

    assert _names(PropertyProvider().list_properties(Local)) == ["items"]
