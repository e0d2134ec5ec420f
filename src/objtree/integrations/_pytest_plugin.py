"""pytest plugin for objtree.

Auto-discovered by pytest via the pytest11 entry point declared in pyproject.toml.
When the package is installed (even in editable mode), pytest discovers this plugin
automatically -- no conftest.py changes are needed.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from objtree import GraphSerializer, SerializerSettings


@pytest.fixture(scope="session")
def assert_roundtrip() -> Any:
    """Fixture that returns a callable round-trip asserter.

    The fixture is session-scoped because the returned callable is stateless
    (it creates a fresh GraphSerializer per call).

    Usage in tests::

        def test_order_survives(assert_roundtrip):
            restored = assert_roundtrip(Order(id=1, lines=[Line("pen", 2)]))
            assert restored.lines[0].quantity == 2

        def test_json_too(assert_roundtrip):
            assert_roundtrip({"a": [1, 2]}, settings=SerializerSettings(codec="json"))

    Returns:
        A callable ``_assert(value, settings=None, compare=None) -> Any`` that
        serializes and deserializes ``value`` and returns the restored object.
    """

    def _assert(
        value: Any,
        settings: SerializerSettings | None = None,
        compare: Callable[[Any, Any], bool] | None = None,
    ) -> Any:
        """Assert that ``value`` survives a serialize/deserialize round trip.

        Args:
            value:    Any object graph except None.
            settings: Optional SerializerSettings (codec, exclusions).
            compare:  Equality predicate ``compare(original, restored)``.
                      Defaults to ``==``.

        Raises:
            AssertionError: When the restored object is not equal to ``value``,
                with both objects and the rendered document in the message.
        """
        serializer = GraphSerializer(settings)
        document = serializer.dumps(value)
        restored = serializer.loads(document)
        equal = compare(value, restored) if compare is not None else value == restored
        if not equal:
            raise AssertionError(
                f"Object graph did not survive the round trip:\n"
                f"  original: {value!r}\n"
                f"  restored: {restored!r}\n"
                f"  document:\n{document.decode(serializer.settings.encoding)}"
            )
        return restored

    return _assert
