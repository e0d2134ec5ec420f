"""Array support: dimension metadata, row-major indexing and bounded arrays.

Three runtime types count as arrays:

- ``bytearray``: always rank 1, lower bound 0, elements are ``int``.
- ``numpy.ndarray``: rank is ``ndim``, every lower bound is 0, the element
  type is the dtype's scalar type (``None`` for object arrays).
- ``BoundedArray``: an N-dimensional array whose dimensions each carry their
  own lower bound.  It is indexed with absolute coordinates.

Array bounds belong to the instance, not the type, so nothing in this module
caches across instances.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

__all__ = [
    "ArrayIndexer",
    "BoundedArray",
    "DimensionInfo",
    "array_rank",
    "create_array",
    "finish_array",
    "for_each",
    "set_array_value",
]


@dataclass(slots=True)
class DimensionInfo:
    """Length and lower bound of one array dimension.

    Valid indices of the dimension are ``[lower_bound, lower_bound + length)``.
    """

    length: int
    lower_bound: int = 0


def for_each(
    dimensions: Sequence[DimensionInfo], visit: Callable[[tuple[int, ...]], Any]
) -> None:
    """Call ``visit`` with every coordinate tuple in row-major order.

    The last dimension varies fastest.  Rank 1 is a plain bounded loop; higher
    ranks recurse one dimension at a time, extending the coordinate prefix.
    A rank-0 array has exactly one coordinate, the empty tuple.
    """
    if not dimensions:
        visit(())
        return

    first = dimensions[0]
    for index in range(first.lower_bound, first.lower_bound + first.length):
        if len(dimensions) < 2:
            visit((index,))
            continue
        _for_each(dimensions, 1, (index,), visit)


def _for_each(
    dimensions: Sequence[DimensionInfo],
    dimension: int,
    prefix: tuple[int, ...],
    visit: Callable[[tuple[int, ...]], Any],
) -> None:
    info = dimensions[dimension]
    for index in range(info.lower_bound, info.lower_bound + info.length):
        coordinates = (*prefix, index)
        if dimension == len(dimensions) - 1:
            visit(coordinates)
            continue
        _for_each(dimensions, dimension + 1, coordinates, visit)


class BoundedArray:
    """N-dimensional array with a lower bound per dimension.

    Storage is a numpy array of the requested dtype (``object`` by default,
    pre-filled with ``None``).  Indexing uses absolute coordinates::

        grid = BoundedArray([2, 3], lower_bounds=[1, -1])
        grid[1, -1] = "top-left"
        grid[2, 1] = "bottom-right"
        grid.upper_bounds   # (2, 1)

    Args:
        lengths: Number of elements in each dimension.  At least one dimension.
        lower_bounds: Lowest valid index per dimension.  Defaults to all zeros.
        dtype: numpy dtype (or scalar type) of the storage.
    """

    __slots__ = ("_data", "_lower_bounds")
    __hash__ = None  # type: ignore[assignment]

    def __init__(
        self,
        lengths: Sequence[int],
        lower_bounds: Sequence[int] | None = None,
        dtype: Any = object,
    ) -> None:
        shape = tuple(int(n) for n in lengths)
        if not shape:
            msg = "BoundedArray needs at least one dimension"
            raise ValueError(msg)
        if any(n < 0 for n in shape):
            msg = f"dimension lengths must be >= 0, got {shape}"
            raise ValueError(msg)
        bounds = (0,) * len(shape) if lower_bounds is None else tuple(int(b) for b in lower_bounds)
        if len(bounds) != len(shape):
            msg = f"expected {len(shape)} lower bounds, got {len(bounds)}"
            raise ValueError(msg)
        self._data: np.ndarray = np.empty(shape, dtype=dtype)
        self._lower_bounds = bounds

    @classmethod
    def from_array(cls, data: Any, lower_bounds: Sequence[int] | None = None) -> BoundedArray:
        """Wrap a copy of ``data`` (anything ``numpy.asarray`` accepts)."""
        source = np.asarray(data)
        result = cls(source.shape, lower_bounds, dtype=source.dtype)
        result._data[...] = source
        return result

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        """The zero-based numpy storage (shared, not copied)."""
        return self._data

    @property
    def rank(self) -> int:
        return self._data.ndim

    @property
    def lengths(self) -> tuple[int, ...]:
        return tuple(self._data.shape)

    @property
    def lower_bounds(self) -> tuple[int, ...]:
        return self._lower_bounds

    @property
    def upper_bounds(self) -> tuple[int, ...]:
        """Highest valid index per dimension (inclusive)."""
        return tuple(b + n - 1 for b, n in zip(self._lower_bounds, self.lengths, strict=True))

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    def _offsets(self, indices: int | Sequence[int]) -> tuple[int, ...]:
        coordinates = (indices,) if isinstance(indices, (int, np.integer)) else tuple(indices)
        if len(coordinates) != self.rank:
            msg = f"expected {self.rank} indices, got {len(coordinates)}"
            raise IndexError(msg)
        offsets = []
        for index, bound, length in zip(coordinates, self._lower_bounds, self.lengths, strict=True):
            if not bound <= index < bound + length:
                msg = f"index {index} out of range [{bound}, {bound + length})"
                raise IndexError(msg)
            offsets.append(int(index) - bound)
        return tuple(offsets)

    def __getitem__(self, indices: int | Sequence[int]) -> Any:
        return self._data[self._offsets(indices)]

    def __setitem__(self, indices: int | Sequence[int], value: Any) -> None:
        self._data[self._offsets(indices)] = value

    def __len__(self) -> int:
        return self.lengths[0]

    def __iter__(self) -> Iterator[Any]:
        """Iterate over all elements in row-major order."""
        return iter(self._data.flat)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundedArray):
            return NotImplemented
        return (
            self._lower_bounds == other._lower_bounds
            and self.lengths == other.lengths
            and bool(np.array_equal(self._data, other._data))
        )

    def __repr__(self) -> str:
        return (
            f"BoundedArray(lengths={self.lengths}, lower_bounds={self._lower_bounds}, "
            f"dtype={self.dtype})"
        )


def _dimensions_of(array: Any) -> list[DimensionInfo]:
    if isinstance(array, BoundedArray):
        return [
            DimensionInfo(length=n, lower_bound=b)
            for n, b in zip(array.lengths, array.lower_bounds, strict=True)
        ]
    if isinstance(array, np.ndarray):
        return [DimensionInfo(length=int(n)) for n in array.shape]
    if isinstance(array, bytearray):
        return [DimensionInfo(length=len(array))]
    msg = f"Not an array: {type(array)!r}"
    raise TypeError(msg)


def _element_type_of(array: Any) -> Any:
    if isinstance(array, bytearray):
        return int
    dtype = array.dtype
    if dtype.kind == "O":
        return None
    return dtype.type


def array_rank(array: Any) -> int:
    """Number of dimensions of an array instance."""
    return len(_dimensions_of(array))


class ArrayIndexer:
    """Enumerates the coordinates and elements of one array instance.

    Dimension metadata is read once in the constructor.  ``indexes()`` and
    ``values()`` are lazy; the coordinate list is built on first use and then
    reused for this instance only.

    Example::

        indexer = ArrayIndexer(np.arange(6).reshape(2, 3))
        list(indexer.indexes())[:3]   # [(0, 0), (0, 1), (0, 2)]
    """

    def __init__(self, array: Any) -> None:
        self._array = array
        self._dimensions = _dimensions_of(array)
        self._indexes: list[tuple[int, ...]] | None = None

    @property
    def dimensions(self) -> list[DimensionInfo]:
        return self._dimensions

    @property
    def rank(self) -> int:
        return len(self._dimensions)

    @property
    def element_type(self) -> Any:
        """Element scalar type, or None when elements are arbitrary objects."""
        return _element_type_of(self._array)

    def for_each(self, visit: Callable[[tuple[int, ...]], Any]) -> None:
        for_each(self._dimensions, visit)

    def indexes(self) -> Iterator[tuple[int, ...]]:
        if self._indexes is None:
            collected: list[tuple[int, ...]] = []
            self.for_each(collected.append)
            self._indexes = collected
        yield from self._indexes

    def values(self) -> Iterator[Any]:
        for indices in self.indexes():
            yield self.value_at(indices)

    def value_at(self, indices: tuple[int, ...]) -> Any:
        if isinstance(self._array, bytearray):
            return self._array[indices[0]]
        return self._array[indices]


def create_array(
    array_type: Any, element_type: Any, dimensions: Sequence[DimensionInfo]
) -> Any:
    """Allocate an empty array of ``array_type`` with the given dimensions.

    ``bytearray`` and ``numpy.ndarray`` are zero-based; asking for a non-zero
    lower bound on them yields a ``BoundedArray`` instead so that no index is
    lost.
    """
    lengths = [d.length for d in dimensions]
    bounds = [d.lower_bound for d in dimensions]
    zero_based = not any(bounds)
    # str/bytes widths and datetime units come from the elements; see finish_array
    dtype = object if element_type is None or _needs_finishing(element_type) else element_type

    if isinstance(array_type, type) and issubclass(array_type, bytearray) and zero_based:
        if len(lengths) != 1:
            msg = f"bytearray must have exactly one dimension, got {len(lengths)}"
            raise ValueError(msg)
        return array_type(lengths[0])
    if isinstance(array_type, type) and issubclass(array_type, np.ndarray) and zero_based:
        return np.empty(lengths, dtype=dtype)
    if not lengths:
        msg = "BoundedArray needs at least one dimension"
        raise ValueError(msg)
    return BoundedArray(lengths, bounds, dtype=dtype)


_PARAMETRIC_SCALARS = (np.flexible, np.datetime64, np.timedelta64)


def _needs_finishing(element_type: Any) -> bool:
    return isinstance(element_type, type) and issubclass(element_type, _PARAMETRIC_SCALARS)


def _narrow(data: np.ndarray, element_type: Any) -> np.ndarray:
    if issubclass(element_type, np.flexible) or data.size == 0:
        return data.astype(element_type)
    # let numpy pick the common datetime unit of the elements
    return np.array(data.tolist())


def finish_array(array: Any, element_type: Any) -> Any:
    """Convert a filled array from ``create_array`` to its final dtype.

    Only ``str``/``bytes``, ``datetime64`` and ``timedelta64`` element types
    need this; every other array is returned unchanged.
    """
    if not _needs_finishing(element_type):
        return array
    if isinstance(array, BoundedArray):
        return BoundedArray.from_array(_narrow(array.data, element_type), array.lower_bounds)
    if isinstance(array, np.ndarray):
        return _narrow(array, element_type)
    return array


def set_array_value(array: Any, indices: tuple[int, ...], value: Any) -> None:
    """Assign ``value`` at absolute ``indices`` of an array from ``create_array``."""
    if isinstance(array, bytearray):
        array[indices[0]] = value
        return
    array[indices] = value
