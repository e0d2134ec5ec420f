"""TypeNameConverter: types to portable names and back.

A type is written as ``module.QualifiedName``.  Builtins drop the
``builtins.`` prefix unless asked to keep it, so ``int`` stays ``int`` and
``collections.OrderedDict`` stays fully qualified.  Names resolve through
already-imported modules first and fall back to importing the module.
"""

from __future__ import annotations

import builtins
import importlib
import sys
import threading
from typing import Any

from cachetools import LRUCache, cachedmethod

from objtree.core.classifier import runtime_class
from objtree.errors import TypeResolutionError

__all__ = ["TypeNameConverter"]


class TypeNameConverter:
    """Converts types to names and names to types, caching both directions.

    Args:
        include_builtins_prefix: Write builtin types as ``builtins.int``.
        max_size: Maximum number of cached entries per direction.
    """

    def __init__(self, include_builtins_prefix: bool = False, max_size: int = 1024) -> None:
        self._include_builtins_prefix = include_builtins_prefix
        self._names: LRUCache[Any, str] = LRUCache(maxsize=max_size)
        self._types: LRUCache[Any, Any] = LRUCache(maxsize=max_size)
        self._lock = threading.Lock()

    @cachedmethod(lambda self: self._names, lock=lambda self: self._lock)
    def type_to_name(self, tp: Any) -> str:
        """Return the portable name of ``tp`` (generic parameters are dropped)."""
        cls = runtime_class(tp)
        if not isinstance(cls, type):
            msg = f"Cannot name {tp!r}: not a class"
            raise TypeResolutionError(msg)
        module = cls.__module__
        if module == "builtins" and not self._include_builtins_prefix:
            return cls.__qualname__
        return f"{module}.{cls.__qualname__}"

    @cachedmethod(lambda self: self._types, lock=lambda self: self._lock)
    def name_to_type(self, name: str) -> type:
        """Resolve a name written by ``type_to_name``.

        Raises:
            TypeResolutionError: If no importable module defines the name.
        """
        if not name:
            msg = "Empty type name"
            raise TypeResolutionError(msg)
        if "." not in name:
            return _as_type(getattr(builtins, name, None), name)

        parts = name.split(".")
        # longest module prefix first: "a.b.Outer.Inner" tries "a.b.Outer", then "a.b", then "a"
        for split in range(len(parts) - 1, 0, -1):
            module = _load_module(".".join(parts[:split]))
            if module is None:
                continue
            found: Any = module
            for attribute in parts[split:]:
                found = getattr(found, attribute, None)
                if found is None:
                    break
            if found is not None:
                return _as_type(found, name)
        msg = f"Cannot resolve type name {name!r}"
        raise TypeResolutionError(msg)


def _load_module(module_name: str) -> Any:
    module = sys.modules.get(module_name)
    if module is not None:
        return module
    try:
        return importlib.import_module(module_name)
    except ImportError:
        return None


def _as_type(found: Any, name: str) -> type:
    if not isinstance(found, type):
        msg = f"Type name {name!r} does not denote a class"
        raise TypeResolutionError(msg)
    return found
