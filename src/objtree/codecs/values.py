"""SimpleValueConverter: text form of simple values.

Every simple type has a ``to_text(value) -> str`` and a
``from_text(cls, text) -> value`` pair.  Lookup walks the value type's MRO,
except that enums and numpy scalars are matched first so that ``IntEnum``
and ``numpy.float64`` do not fall through to ``int``/``float``.

Formats:
    bool       ``True`` / ``False`` (strict)
    float      ``repr`` (round-trips exactly, including ``inf``/``nan``)
    bytes      base64
    datetime   ISO 8601
    timedelta  integer microseconds
    numpy      per dtype kind; ``timedelta64`` as ``"<ticks> <unit>"``
    Enum       member name
    type       qualified class name, resolved by ``TypeNameConverter``
"""

from __future__ import annotations

import base64
import binascii
import datetime as dt
import threading
import uuid
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from enum import Enum
from fractions import Fraction
from pathlib import PurePath
from typing import Any

import numpy as np

from objtree.codecs.typenames import TypeNameConverter
from objtree.errors import TypeResolutionError, ValueConversionError

__all__ = ["SimpleValueConverter", "default_value_converter"]

ToText = Callable[[Any], str]
FromText = Callable[[type, str], Any]

_MICROSECOND = dt.timedelta(microseconds=1)

_type_names = TypeNameConverter()


def _bool_from_text(cls: type, text: str) -> bool:
    if text == "True":
        return True
    if text == "False":
        return False
    msg = f"not a boolean: {text!r}"
    raise ValueError(msg)


def _bytes_to_text(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _bytes_from_text(cls: type, text: str) -> bytes:
    return cls(base64.b64decode(text.encode("ascii"), validate=True))


def _enum_to_text(value: Enum) -> str:
    if value.name is not None and value.name in type(value).__members__:
        return value.name
    # flag combinations have no member name
    return str(value.value)


def _enum_from_text(cls: type, text: str) -> Any:
    members = cls.__members__  # type: ignore[attr-defined]
    if text in members:
        return members[text]
    return cls(int(text))


def _timedelta64_to_text(value: np.timedelta64) -> str:
    unit, count = np.datetime_data(value.dtype)
    unit_text = unit if count == 1 else f"{count}{unit}"
    return f"{int(value.astype(np.int64))} {unit_text}"


def _timedelta64_from_text(cls: type, text: str) -> Any:
    ticks, _, unit_text = text.partition(" ")
    dtype = "m8" if unit_text in ("", "generic") else f"m8[{unit_text}]"
    return np.array(int(ticks), dtype=np.int64).astype(dtype)[()]


def _numpy_to_text(value: np.generic) -> str:
    kind = value.dtype.kind
    match kind:
        case "b":
            return "True" if bool(value) else "False"
        case "f":
            return repr(float(value))
        case "c":
            return repr(complex(value))
        case "S":
            return _bytes_to_text(bytes(value))
        case "m":
            return _timedelta64_to_text(value)  # type: ignore[arg-type]
        case "i" | "u" | "U" | "M":
            return str(value)
        case _:
            msg = f"unsupported numpy scalar kind {kind!r}"
            raise ValueError(msg)


def _numpy_from_text(cls: type, text: str) -> Any:
    kind = np.dtype(cls).kind
    match kind:
        case "b":
            return cls(_bool_from_text(bool, text))
        case "i" | "u":
            return cls(int(text))
        case "f":
            return cls(float(text))
        case "c":
            return cls(complex(text))
        case "U" | "M":
            return cls(text)
        case "S":
            return cls(_bytes_from_text(bytes, text))
        case "m":
            return _timedelta64_from_text(cls, text)
        case _:
            msg = f"unsupported numpy scalar kind {kind!r}"
            raise ValueError(msg)


class SimpleValueConverter:
    """Registry of text converters for simple values.

    Example::

        converter = SimpleValueConverter()
        converter.register(Money, to_text=str, from_text=lambda cls, text: cls.parse(text))
    """

    def __init__(self) -> None:
        self._converters: dict[type, tuple[ToText, FromText]] = {}
        self._lock = threading.Lock()
        self.register(bool, lambda value: "True" if value else "False", _bool_from_text)
        self.register(int, str, lambda cls, text: cls(int(text)))
        self.register(float, repr, lambda cls, text: cls(float(text)))
        self.register(complex, repr, lambda cls, text: cls(complex(text)))
        self.register(str, str, lambda cls, text: cls(text))
        self.register(bytes, _bytes_to_text, _bytes_from_text)
        self.register(Decimal, str, lambda cls, text: cls(text))
        self.register(Fraction, str, lambda cls, text: cls(text))
        self.register(dt.datetime, dt.datetime.isoformat, lambda cls, text: cls.fromisoformat(text))
        self.register(dt.date, dt.date.isoformat, lambda cls, text: cls.fromisoformat(text))
        self.register(dt.time, dt.time.isoformat, lambda cls, text: cls.fromisoformat(text))
        self.register(
            dt.timedelta,
            lambda value: str(value // _MICROSECOND),
            lambda cls, text: cls(microseconds=int(text)),
        )
        self.register(uuid.UUID, str, lambda cls, text: cls(text))
        self.register(PurePath, str, lambda cls, text: cls(text))
        self.register(
            type,
            _type_names.type_to_name,
            lambda cls, text: _type_names.name_to_type(text),
        )

    def register(self, tp: type, to_text: ToText, from_text: FromText) -> None:
        """Register (or replace) the converters of ``tp`` and its subclasses."""
        with self._lock:
            self._converters[tp] = (to_text, from_text)

    def _lookup(self, cls: type) -> tuple[ToText, FromText]:
        if issubclass(cls, Enum):
            return _enum_to_text, _enum_from_text
        if issubclass(cls, np.generic):
            return _numpy_to_text, _numpy_from_text
        with self._lock:
            for klass in cls.__mro__:
                converters = self._converters.get(klass)
                if converters is not None:
                    return converters
        msg = f"No text converter registered for {cls!r}"
        raise ValueConversionError(msg)

    def to_text(self, value: Any) -> str:
        """Render ``value`` as text.

        Raises:
            ValueConversionError: If the type has no converter or conversion fails.
        """
        to_text, _ = self._lookup(type(value))
        try:
            return to_text(value)
        except (ValueError, TypeError, OverflowError) as exc:
            msg = f"Cannot convert {value!r} to text: {exc}"
            raise ValueConversionError(msg) from exc

    def from_text(self, cls: type, text: str) -> Any:
        """Parse ``text`` into an instance of ``cls``.

        Raises:
            ValueConversionError: If the type has no converter or the text is malformed.
        """
        if not isinstance(cls, type):
            msg = f"Cannot parse {text!r}: expected type {cls!r} is not a class"
            raise ValueConversionError(msg)
        _, from_text = self._lookup(cls)
        try:
            return from_text(cls, text)
        except (
            ValueError,
            TypeError,
            KeyError,
            OverflowError,
            InvalidOperation,
            binascii.Error,
            TypeResolutionError,
        ) as exc:
            msg = f"Cannot convert {text!r} to {cls.__name__}: {exc}"
            raise ValueConversionError(msg) from exc


default_value_converter = SimpleValueConverter()
