"""Tests for mdlive package exports and metadata."""

import pytest

import mdlive


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert isinstance(mdlive.__version__, str)
        assert "0.1.0" in mdlive.__version__

    def test_free_threading_declaration(self) -> None:
        assert mdlive._Py_mod_gil == 0

    def test_all_exports_resolvable(self) -> None:
        for name in mdlive.__all__:
            getattr(mdlive, name)

    def test_lazy_serve(self) -> None:
        from mdlive.app import serve

        assert mdlive.serve is serve

    def test_invalid_attribute_raises(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            mdlive.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018
