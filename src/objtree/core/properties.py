"""PropertyProvider: lists, reads and writes the serializable properties of a type.

Declared properties are collected, in order, from:

1. dataclass fields,
2. class annotations over the MRO (base classes first, ``ClassVar`` skipped),
3. ``__slots__`` over the MRO,
4. ``property`` objects that have a setter,
5. the constructor state of ``deque`` (``maxlen``) and ``defaultdict``
   (``default_factory``).

A class that declares nothing falls back to the public entries of the
instance ``__dict__``. So does a class whose only declarations are settable
properties: its instance attributes follow the properties.

A property is excluded when its name starts with ``_``, when it is marked with
``ExcludeFromSerialization`` (or any configured marker) through
``typing.Annotated``, when it is a dataclass field created with
``excluded_field()``, or when a per-type rule names it.
"""

from __future__ import annotations

import collections
import dataclasses
import inspect
import logging
import threading
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, ClassVar, Union, get_args, get_origin, get_type_hints

from cachetools import LRUCache

__all__ = [
    "EXCLUDE_METADATA_KEY",
    "ExcludeFromSerialization",
    "PropertyInfo",
    "PropertyProvider",
    "excluded_field",
]

logger = logging.getLogger(__name__)

EXCLUDE_METADATA_KEY = "objtree.exclude"


class ExcludeFromSerialization:
    """Marker excluding a property from serialization.

    Use the class (or an instance) as ``Annotated`` metadata::

        @dataclass
        class Account:
            name: str = ""
            password: Annotated[str, ExcludeFromSerialization] = ""
    """


def excluded_field(**kwargs: Any) -> Any:
    """``dataclasses.field`` that is never serialized.

    Accepts the same keyword arguments as ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[EXCLUDE_METADATA_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True, slots=True)
class PropertyInfo:
    """One serializable property.

    Attributes:
        name:          Attribute name.
        declared_type: Annotation with ``Annotated`` stripped, or None.
        nullable:      Whether ``None`` may be assigned on decode.
        constructor:   Passed to the constructor on decode instead of being
                       assigned, for state that is read-only afterwards.
    """

    name: str
    declared_type: Any = None
    nullable: bool = True
    constructor: bool = False


# state of stdlib containers that lives outside __dict__
_CONTAINER_STATE: dict[type, tuple[PropertyInfo, ...]] = {
    collections.deque: (PropertyInfo("maxlen", int | None, constructor=True),),
    collections.defaultdict: (PropertyInfo("default_factory", type | None),),
}


@dataclass(frozen=True, slots=True)
class _Declared:
    """Cached declaration of a class.

    ``open`` is set when the class declares nothing but settable properties
    and container state, so the instance ``__dict__`` still contributes.
    """

    properties: tuple[PropertyInfo, ...]
    open: bool


def _accepts_none(tp: Any) -> bool:
    if tp is None or tp is Any or tp is object or tp is type(None):
        return True
    if isinstance(tp, (str, typing.ForwardRef, typing.TypeVar)):
        return True
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        return any(_accepts_none(arg) for arg in get_args(tp))
    return False


def _is_classvar(tp: Any) -> bool:
    return tp is ClassVar or get_origin(tp) is ClassVar


class PropertyProvider:
    """Provides the filtered property list of a type, plus get/set access.

    Declared property lists are cached per type in an ``LRUCache``; the cache
    belongs to the provider instance.

    Args:
        properties_to_ignore: Per-type property names to skip.  A rule for a
            type also applies to its subclasses.
        markers_to_ignore: Extra ``Annotated`` metadata that excludes a
            property, in addition to ``ExcludeFromSerialization``.
        max_size: Maximum number of cached types.
    """

    def __init__(
        self,
        properties_to_ignore: Mapping[type, frozenset[str]] | None = None,
        markers_to_ignore: tuple[object, ...] = (),
        max_size: int = 1024,
    ) -> None:
        self._properties_to_ignore = dict(properties_to_ignore or {})
        self._markers: tuple[object, ...] = (ExcludeFromSerialization, *markers_to_ignore)
        self._cache: LRUCache[type, _Declared | None] = LRUCache(maxsize=max_size)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    def list_properties(self, tp: Any, instance: Any = None) -> list[PropertyInfo]:
        """Return the serializable properties of ``tp`` in declaration order.

        Args:
            tp:       The owner type.  Generic aliases are reduced to their class.
            instance: Optional instance, read when the class declares nothing
                or only settable properties.

        Returns:
            An ordered list of PropertyInfo; empty when nothing is serializable.
        """
        cls = _owner_class(tp)
        if cls is None:
            return []
        declared = self._declared(cls)
        properties = list(declared.properties) if declared is not None else []
        if declared is not None and not declared.open:
            return properties
        if instance is None:
            return properties
        attributes = getattr(instance, "__dict__", None)
        if not isinstance(attributes, dict):
            return properties
        taken = {info.name for info in properties}
        properties.extend(
            PropertyInfo(name=name)
            for name in attributes
            if isinstance(name, str) and name not in taken and not self._ignored_name(cls, name)
        )
        return properties

    def find(self, tp: Any, name: str) -> PropertyInfo | None:
        """Look up a property of ``tp`` by name; None when it cannot be set."""
        cls = _owner_class(tp)
        if cls is None or not name:
            return None
        declared = self._declared(cls)
        if declared is not None:
            for info in declared.properties:
                if info.name == name:
                    return info
            if not declared.open:
                return None
        if self._ignored_name(cls, name) or not _has_instance_dict(cls):
            return None
        if isinstance(inspect.getattr_static(cls, name, None), property):
            # read-only property
            return None
        return PropertyInfo(name=name)

    def get(self, instance: Any, name: str) -> Any:
        value = getattr(instance, name)
        if (
            name == "default_factory"
            and isinstance(instance, collections.defaultdict)
            and value is not None
            and not isinstance(value, type)
        ):
            # only classes are written by name; other factories cannot be restored
            logger.warning(f"Dropping default_factory {value!r}: not a class")
            return None
        return value

    def set(self, instance: Any, name: str, value: Any) -> None:
        try:
            setattr(instance, name, value)
        except dataclasses.FrozenInstanceError:
            object.__setattr__(instance, name, value)

    # ------------------------------------------------------------------
    # Declared properties
    # ------------------------------------------------------------------

    def _declared(self, cls: type) -> _Declared | None:
        with self._lock:
            if cls in self._cache:
                return self._cache[cls]
        declared = self._collect(cls)
        with self._lock:
            self._cache[cls] = declared
        return declared

    def _collect(self, cls: type) -> _Declared | None:
        hints = _type_hints(cls)
        visited: set[str] = set()
        accepted: list[PropertyInfo] = []

        def consider(name: str, hint: Any, excluded: bool = False) -> None:
            if name in visited:
                return
            visited.add(name)
            if excluded or self._ignored_name(cls, name) or self._has_exclusion_marker(hint):
                return
            declared_type = _strip_annotated(hint)
            accepted.append(
                PropertyInfo(
                    name=name, declared_type=declared_type, nullable=_accepts_none(declared_type)
                )
            )

        if dataclasses.is_dataclass(cls):
            for f in dataclasses.fields(cls):
                consider(f.name, hints.get(f.name), bool(f.metadata.get(EXCLUDE_METADATA_KEY)))

        for klass in reversed(cls.__mro__):
            if klass is object:
                continue
            for name, raw in inspect.get_annotations(klass).items():
                hint = hints.get(name)
                if _is_classvar(hint) or _is_classvar_text(raw):
                    continue
                consider(name, hint)

        for klass in reversed(cls.__mro__):
            slots = klass.__dict__.get("__slots__", ())
            for name in (slots,) if isinstance(slots, str) else slots:
                if name in ("__dict__", "__weakref__"):
                    continue
                consider(name, hints.get(name))

        keeps_instance_dict = not visited
        for klass in reversed(cls.__mro__):
            for name, member in klass.__dict__.items():
                if isinstance(member, property) and member.fset is not None:
                    consider(name, _return_hint(member.fget))

        for owner, state in _CONTAINER_STATE.items():
            if not issubclass(cls, owner):
                continue
            for info in state:
                if info.name in visited:
                    continue
                visited.add(info.name)
                if not self._ignored_name(cls, info.name):
                    accepted.append(info)

        if not visited:
            return None
        return _Declared(tuple(accepted), keeps_instance_dict)

    def _ignored_name(self, cls: type, name: str) -> bool:
        if name.startswith("_"):
            return True
        return any(
            issubclass(cls, owner) and name in names
            for owner, names in self._properties_to_ignore.items()
        )

    def _has_exclusion_marker(self, hint: Any) -> bool:
        if get_origin(hint) is not Annotated:
            return False
        for meta in getattr(hint, "__metadata__", ()):
            for marker in self._markers:
                if meta is marker or meta == marker:
                    return True
                if isinstance(marker, type) and isinstance(meta, marker):
                    return True
        return False


def _owner_class(tp: Any) -> type | None:
    tp = _strip_annotated(tp)
    origin = get_origin(tp)
    cls = origin if isinstance(origin, type) else tp
    return cls if isinstance(cls, type) else None


def _strip_annotated(tp: Any) -> Any:
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def _has_instance_dict(cls: type) -> bool:
    return cls.__dictoffset__ != 0


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls, include_extras=True)
    except (NameError, TypeError, AttributeError):
        # unresolvable forward references: keep what is already evaluated
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            for name, hint in inspect.get_annotations(klass).items():
                hints[name] = None if isinstance(hint, str) else hint
        return hints


def _return_hint(fget: Any) -> Any:
    if fget is None:
        return None
    try:
        return get_type_hints(fget, include_extras=True).get("return")
    except (NameError, TypeError, AttributeError):
        return None


def _is_classvar_text(raw: Any) -> bool:
    return isinstance(raw, str) and raw.startswith(("ClassVar", "typing.ClassVar"))
