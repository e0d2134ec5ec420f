"""TypeClassifier: decides how values of a type are decomposed.

Every type resolves to exactly one ``Shape``.  Classification is cached per
type in a lock-guarded ``cachetools.LRUCache`` owned by the classifier; the
module-level ``default_classifier`` is shared process-wide.

Order of the checks (first match wins):

1. simple leaf types, including registered ones        -> SIMPLE
2. ``bytearray`` (fast path, element type ``int``)        -> ARRAY
3. ``numpy.ndarray`` / ``BoundedArray``                   -> ARRAY
4. iterables: mappings -> DICTIONARY; appendable or sequence/set types
   -> COLLECTION; anything else iterable -> ENUMERABLE
5. everything else                                       -> COMPLEX
"""

from __future__ import annotations

import datetime as dt
import threading
import types
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence, Set
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, StrEnum, auto
from fractions import Fraction
from pathlib import PurePath
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

import numpy as np
from cachetools import LRUCache

from objtree.core.arrays import BoundedArray
from objtree.protocols import SupportsAdd, SupportsAppend, SupportsKeyedInsert

__all__ = [
    "ContainerCapabilities",
    "Shape",
    "ShapeInfo",
    "TypeClassifier",
    "concrete_type",
    "default_classifier",
    "runtime_class",
]

_SIMPLE_TYPES: tuple[type, ...] = (
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    Decimal,
    Fraction,
    dt.datetime,
    dt.date,
    dt.time,
    dt.timedelta,
    uuid.UUID,
    PurePath,
    Enum,
    np.generic,
    type,
)


class Shape(StrEnum):
    """Structural category of a type.

    - SIMPLE:     leaf value carried verbatim.
    - ARRAY:      fixed-size, possibly multi-dimensional array.
    - COLLECTION: iterable with an append/add capability (or a sequence/set).
    - DICTIONARY: iterable of key/value pairs.
    - ENUMERABLE: any other iterable, encoded like COLLECTION.
    - COMPLEX:    record whose named properties are encoded one by one.
    """

    SIMPLE = auto()
    ARRAY = auto()
    COLLECTION = auto()
    DICTIONARY = auto()
    ENUMERABLE = auto()
    COMPLEX = auto()


@dataclass(frozen=True, slots=True)
class ShapeInfo:
    """Cached classification of one type.

    Attributes:
        type:         The classified type (possibly a generic alias).
        shape:        Its structural category.
        element_type: Item type of arrays/collections, value type of
                      dictionaries.  None when unknown (untyped items).
        key_type:     Key type of dictionaries.  None otherwise.
        array_rank:   Rank when fixed by the type (``bytearray``); None when
                      the rank belongs to the instance.
    """

    type: Any
    shape: Shape
    element_type: Any = None
    key_type: Any = None
    array_rank: int | None = None

    @property
    def is_simple(self) -> bool:
        return self.shape is Shape.SIMPLE

    @property
    def is_array(self) -> bool:
        return self.shape is Shape.ARRAY

    @property
    def is_enumerable(self) -> bool:
        return self.shape in (Shape.COLLECTION, Shape.DICTIONARY, Shape.ENUMERABLE)

    @property
    def is_dictionary(self) -> bool:
        return self.shape is Shape.DICTIONARY


@dataclass(frozen=True, slots=True)
class ContainerCapabilities:
    """How decoded items are put back into a container type.

    Attributes:
        append:    ``append(container, item)`` or None.
        insert:    ``insert(container, key, value)`` or None.
        immutable: True for ``tuple``/``frozenset`` families; such containers
                   are built from the decoded items with ``build``.
        build:     ``build(items) -> container`` for immutable containers.
    """

    append: Callable[[Any, Any], Any] | None = None
    insert: Callable[[Any, Any, Any], Any] | None = None
    immutable: bool = False
    build: Callable[[list[Any]], Any] | None = None


def _append(container: Any, item: Any) -> None:
    container.append(item)


def _add(container: Any, item: Any) -> None:
    container.add(item)


def _insert(container: Any, key: Any, value: Any) -> None:
    container[key] = value


def runtime_class(tp: Any) -> Any:
    """Strip ``Annotated`` and generic parameters: ``list[int]`` -> ``list``."""
    if get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    origin = get_origin(tp)
    if isinstance(origin, type) and origin is not types.UnionType:
        return origin
    return tp


def _strip_annotated(tp: Any) -> Any:
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def concrete_type(tp: Any) -> Any:
    """Strip ``Annotated`` and ``Optional``: ``Annotated[X | None, m]`` -> ``X``.

    Unions of several non-None members are returned unchanged.
    """
    tp = _strip_annotated(tp)
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(tp) if arg is not type(None)]
        if len(members) == 1:
            return _strip_annotated(members[0])
    return tp


def _concrete(arg: Any) -> Any:
    if isinstance(arg, TypeVar) or arg is Ellipsis or arg is Any:
        return None
    return arg


def _generic_arguments(tp: Any, cls: type) -> tuple[Any, ...]:
    """Type arguments of ``tp`` or of the first generic base up the MRO."""
    args = get_args(tp)
    if args:
        return args
    for klass in cls.__mro__:
        for base in klass.__dict__.get("__orig_bases__", ()):
            base_args = get_args(base)
            if base_args:
                return base_args
    return ()


class TypeClassifier:
    """Classifies types into shapes and caches the result per type.

    Each classifier owns its caches; ``register_simple_type`` clears them
    because it can change the outcome for the registered type and its
    subclasses.

    Args:
        max_size: Maximum number of cached classifications per cache.
    """

    def __init__(self, max_size: int = 4096) -> None:
        self._simple_types: tuple[type, ...] = _SIMPLE_TYPES
        self._shapes: LRUCache[Any, ShapeInfo] = LRUCache(maxsize=max_size)
        self._capabilities: LRUCache[Any, ContainerCapabilities] = LRUCache(maxsize=max_size)
        self._lock = threading.Lock()

    def register_simple_type(self, tp: type) -> None:
        """Treat ``tp`` (and its subclasses) as a leaf value."""
        with self._lock:
            if tp not in self._simple_types:
                self._simple_types = (*self._simple_types, tp)
            self._shapes.clear()
            self._capabilities.clear()

    def is_simple_type(self, tp: Any) -> bool:
        cls = runtime_class(tp)
        return isinstance(cls, type) and issubclass(cls, self._simple_types)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, tp: Any) -> ShapeInfo:
        """Return the (cached) ShapeInfo of ``tp``.  Never raises."""
        tp = _strip_annotated(tp)
        with self._lock:
            info = self._shapes.get(tp)
        if info is not None:
            return info
        info = self._classify(tp)
        with self._lock:
            # first classification wins
            return self._shapes.setdefault(tp, info)

    def _classify(self, tp: Any) -> ShapeInfo:
        cls = runtime_class(tp)
        if not isinstance(cls, type):
            return ShapeInfo(type=tp, shape=Shape.COMPLEX)

        if issubclass(cls, self._simple_types):
            return ShapeInfo(type=tp, shape=Shape.SIMPLE)

        if issubclass(cls, bytearray):
            return ShapeInfo(type=tp, shape=Shape.ARRAY, element_type=int, array_rank=1)

        if issubclass(cls, (np.ndarray, BoundedArray)):
            return ShapeInfo(type=tp, shape=Shape.ARRAY)

        if issubclass(cls, Iterable) and not issubclass(cls, (types.ModuleType, type)):
            args = _generic_arguments(tp, cls)
            if issubclass(cls, Mapping):
                key_type = _concrete(args[0]) if len(args) > 0 else None
                value_type = _concrete(args[1]) if len(args) > 1 else None
                return ShapeInfo(
                    type=tp, shape=Shape.DICTIONARY, element_type=value_type, key_type=key_type
                )
            element_type = _concrete(args[0]) if args else None
            if issubclass(cls, (SupportsAppend, SupportsAdd, Sequence, Set)):
                return ShapeInfo(type=tp, shape=Shape.COLLECTION, element_type=element_type)
            return ShapeInfo(type=tp, shape=Shape.ENUMERABLE, element_type=element_type)

        return ShapeInfo(type=tp, shape=Shape.COMPLEX)

    # ------------------------------------------------------------------
    # Container capabilities
    # ------------------------------------------------------------------

    def capabilities(self, tp: Any) -> ContainerCapabilities:
        """Return the (cached) append/insert capabilities of ``tp``."""
        cls = runtime_class(tp)
        with self._lock:
            caps = self._capabilities.get(cls)
        if caps is not None:
            return caps
        caps = self._resolve_capabilities(cls)
        with self._lock:
            return self._capabilities.setdefault(cls, caps)

    @staticmethod
    def _resolve_capabilities(cls: Any) -> ContainerCapabilities:
        if not isinstance(cls, type):
            return ContainerCapabilities()
        if issubclass(cls, tuple):
            make = getattr(cls, "_make", None)
            build = make if callable(make) else cls
            return ContainerCapabilities(immutable=True, build=build)
        if issubclass(cls, frozenset):
            return ContainerCapabilities(immutable=True, build=cls)

        append: Callable[[Any, Any], Any] | None = None
        if issubclass(cls, SupportsAppend):
            append = _append
        elif issubclass(cls, SupportsAdd):
            append = _add
        keyed = issubclass(cls, Mapping) and issubclass(cls, SupportsKeyedInsert)
        insert = _insert if keyed else None
        return ContainerCapabilities(append=append, insert=insert)


default_classifier = TypeClassifier()
