"""Packaging correctness verification for objtree.

Tests validate:
- The top-level import works and exposes the public API
- py.typed marker is present in the wheel
- Pytest plugin entry point is registered
- Package metadata is correct

These tests inspect the built wheel and current installation rather than
creating temporary virtualenvs (faster, more reliable in CI).
"""

from __future__ import annotations

import subprocess
import sys
import zipfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent


class TestBaseInstall:
    """Verify the base install imports and works end to end."""

    def test_import_objtree(self):  # type: ignore[no-untyped-def]
        """Top-level import succeeds."""
        import objtree

        assert hasattr(objtree, "dumps")
        assert hasattr(objtree, "loads")
        assert hasattr(objtree, "GraphSerializer")

    def test_round_trip_basic(self):  # type: ignore[no-untyped-def]
        """dumps()/loads() work with default settings."""
        from objtree import dumps, loads

        assert loads(dumps({"a": [1, 2]})) == {"a": [1, 2]}

    def test_codecs_import(self):  # type: ignore[no-untyped-def]
        """codecs package imports with both formats available."""
        from objtree import SerializerSettings
        from objtree.codecs import create_codec

        writer, reader = create_codec(SerializerSettings(codec="json"))  # type: ignore[arg-type]
        assert writer is not None
        assert reader is not None


class TestWheelContents:
    """Verify the built wheel contains required files."""

    @pytest.fixture(scope="class")
    def wheel_path(self) -> Path:
        """Build a fresh wheel and return its path."""
        dist_dir = PROJECT_ROOT / "dist"
        # Use poetry build since that's the project's build system
        result = subprocess.run(
            ["poetry", "build", "-f", "wheel"],
            cwd=str(PROJECT_ROOT),
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            pytest.skip(f"poetry build failed: {result.stderr}")

        wheels = sorted(dist_dir.glob("objtree-*.whl"), key=lambda p: p.stat().st_mtime)
        if not wheels:
            pytest.skip("No wheel found in dist/")
        return wheels[-1]

    def test_py_typed_in_wheel(self, wheel_path: Path):  # type: ignore[no-untyped-def]
        """py.typed marker must be included in the wheel."""
        with zipfile.ZipFile(wheel_path) as zf:
            names = zf.namelist()
            py_typed_files = [n for n in names if n.endswith("py.typed")]
            assert py_typed_files, f"py.typed not found in wheel. Contents: {names}"

    def test_no_pycache_in_wheel(self, wheel_path: Path):  # type: ignore[no-untyped-def]
        """__pycache__ directories must not be in the wheel."""
        with zipfile.ZipFile(wheel_path) as zf:
            pycache_files = [n for n in zf.namelist() if "__pycache__" in n]
            assert not pycache_files, f"__pycache__ found in wheel: {pycache_files}"

    def test_all_source_modules_in_wheel(self, wheel_path: Path):  # type: ignore[no-untyped-def]
        """All source modules must be present in the wheel."""
        expected_modules = [
            "objtree/__init__.py",
            "objtree/api.py",
            "objtree/errors.py",
            "objtree/protocols.py",
            "objtree/serializer.py",
            "objtree/settings.py",
            "objtree/core/__init__.py",
            "objtree/core/arrays.py",
            "objtree/core/classifier.py",
            "objtree/core/properties.py",
            "objtree/tree/__init__.py",
            "objtree/tree/nodes.py",
            "objtree/tree/encoder.py",
            "objtree/tree/decoder.py",
            "objtree/codecs/__init__.py",
            "objtree/codecs/base.py",
            "objtree/codecs/elements.py",
            "objtree/codecs/json_codec.py",
            "objtree/codecs/parsing.py",
            "objtree/codecs/rendering.py",
            "objtree/codecs/typenames.py",
            "objtree/codecs/values.py",
            "objtree/codecs/xml_codec.py",
            "objtree/integrations/__init__.py",
            "objtree/integrations/_pytest_plugin.py",
        ]
        with zipfile.ZipFile(wheel_path) as zf:
            names = zf.namelist()
            for module in expected_modules:
                assert any(module in n for n in names), f"Module {module} not found in wheel"

    def test_metadata_in_wheel(self, wheel_path: Path):  # type: ignore[no-untyped-def]
        """Wheel metadata must include correct package info."""
        with zipfile.ZipFile(wheel_path) as zf:
            metadata_files = [n for n in zf.namelist() if "METADATA" in n]
            assert metadata_files, "No METADATA found in wheel"
            metadata = zf.read(metadata_files[0]).decode()
            assert "objtree" in metadata.lower()
            assert "0.1.0" in metadata
            assert "numpy" in metadata.lower()
            assert "cachetools" in metadata.lower()


class TestPytestPluginDiscovery:
    """Verify the pytest plugin is discoverable."""

    def test_entry_point_registered(self):  # type: ignore[no-untyped-def]
        """pytest11 entry point must be registered for objtree."""
        from importlib.metadata import entry_points

        pytest11_eps = entry_points(group="pytest11")

        ot_eps = [
            ep
            for ep in pytest11_eps
            if "objtree" in ep.name.lower() or "objtree" in str(ep.value).lower()
        ]
        assert ot_eps, (
            f"No pytest11 entry point found for objtree. "
            f"Available: {[ep.name for ep in pytest11_eps]}"
        )

    def test_fixture_available(self):  # type: ignore[no-untyped-def]
        """assert_roundtrip fixture must be importable from plugin."""
        import importlib

        mod = importlib.import_module("objtree.integrations._pytest_plugin")
        assert hasattr(mod, "assert_roundtrip")
        assert callable(mod.assert_roundtrip)

    def test_plugin_discovery_via_pytest(self):  # type: ignore[no-untyped-def]
        """pytest --fixtures should list assert_roundtrip."""
        result = subprocess.run(
            [sys.executable, "-m", "pytest", "--fixtures", "-q"],
            capture_output=True,
            text=True,
            cwd=str(PROJECT_ROOT),
        )
        assert "assert_roundtrip" in result.stdout, (
            f"Fixture not found in pytest fixtures list. stdout: {result.stdout[:500]}"
        )


class TestPackageMetadata:
    """Verify pyproject.toml metadata completeness."""

    def test_version(self):  # type: ignore[no-untyped-def]
        """Package version must be 0.1.0."""
        import objtree

        assert objtree.__version__ == "0.1.0"

    def test_distribution_version_matches(self):  # type: ignore[no-untyped-def]
        """Installed distribution metadata agrees with __version__."""
        from importlib.metadata import version

        import objtree

        assert version("objtree") == objtree.__version__
