"""Type classification, array indexing and property access."""

from __future__ import annotations

from objtree.core.arrays import (
    ArrayIndexer,
    BoundedArray,
    DimensionInfo,
    create_array,
    finish_array,
    for_each,
    set_array_value,
)
from objtree.core.classifier import (
    ContainerCapabilities,
    Shape,
    ShapeInfo,
    TypeClassifier,
    default_classifier,
)
from objtree.core.properties import (
    ExcludeFromSerialization,
    PropertyInfo,
    PropertyProvider,
    excluded_field,
)

__all__ = [
    "ArrayIndexer",
    "BoundedArray",
    "ContainerCapabilities",
    "DimensionInfo",
    "ExcludeFromSerialization",
    "PropertyInfo",
    "PropertyProvider",
    "Shape",
    "ShapeInfo",
    "TypeClassifier",
    "create_array",
    "default_classifier",
    "excluded_field",
    "finish_array",
    "for_each",
    "set_array_value",
]
