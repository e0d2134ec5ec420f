"""Exception classes for objtree.

All objtree-specific exceptions inherit from ObjtreeError for easy catching.
Decode-time failures are wrapped once in DeserializationError by
``GraphSerializer.deserialize``; encode-time failures propagate unchanged.
"""

from __future__ import annotations

__all__ = [
    "DeserializationError",
    "InstanceCreationError",
    "InvalidOperationError",
    "MalformedDocumentError",
    "ObjtreeError",
    "ReferenceResolutionError",
    "TypeResolutionError",
    "UnknownNodeKindError",
    "UnsupportedContainerError",
    "ValueConversionError",
]


class ObjtreeError(Exception):
    """Base exception for all objtree errors."""


class InstanceCreationError(ObjtreeError):
    """Raised when a target type has no usable zero-argument construction path."""

    def __init__(self, target_type: object, reason: str = "") -> None:
        self.target_type = target_type
        msg = f"Cannot create an instance of {target_type!r}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ValueConversionError(ObjtreeError):
    """Raised when a simple value cannot round-trip through its text form."""


class TypeResolutionError(ObjtreeError):
    """Raised when a node carries no type and the caller supplied no expected type."""


class UnknownNodeKindError(ObjtreeError):
    """Raised when a tree node's kind is not in the recognised vocabulary."""


class ReferenceResolutionError(ObjtreeError):
    """Raised when a back-reference points to an id that was never registered."""


class UnsupportedContainerError(ObjtreeError):
    """Raised in strict mode when decoded items have no way into their container."""


class InvalidOperationError(ObjtreeError, TypeError):
    """Raised when a value cannot be decomposed into a property node."""


class MalformedDocumentError(ObjtreeError):
    """Raised when a rendered document does not have the expected element layout."""


class DeserializationError(ObjtreeError):
    """Raised by the serializer facade when the input is unusable.

    The original failure is always available as ``__cause__``.
    """
