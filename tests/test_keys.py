"""Tests for mdlive.content.keys — route key derivation."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdlive._errors import InvalidPath, PathError
from mdlive.content.keys import SINGLE_FILE_KEY, is_markdown, path_to_key, url_to_key


class TestUrlToKey:
    """url_to_key — request path to route key, never fails."""

    def test_strips_leading_slash_and_suffix(self) -> None:
        assert url_to_key("/guide/intro.md") == "guide/intro"

    def test_without_suffix(self) -> None:
        assert url_to_key("/guide/intro") == "guide/intro"

    def test_unmatched_suffix_left_as_is(self) -> None:
        assert url_to_key("/notes.txt") == "notes.txt"

    def test_strips_only_one_slash(self) -> None:
        assert url_to_key("//a.md") == "/a"

    def test_strips_only_one_suffix(self) -> None:
        assert url_to_key("/a.md.md") == "a.md"

    def test_empty(self) -> None:
        assert url_to_key("") == ""
        assert url_to_key("/") == ""

    def test_case_sensitive(self) -> None:
        assert url_to_key("/A.MD") == "A.MD"


class TestPathToKey:
    """path_to_key — filesystem path under a root to route key."""

    def test_nested_document(self, tmp_path: Path) -> None:
        assert path_to_key(tmp_path, tmp_path / "guide" / "intro.md") == "guide/intro"

    def test_top_level_document(self, tmp_path: Path) -> None:
        assert path_to_key(tmp_path, tmp_path / "a.md") == "a"

    def test_single_file_mode(self, tmp_path: Path) -> None:
        doc = tmp_path / "README.md"
        assert path_to_key(doc, doc) == SINGLE_FILE_KEY == "index"

    def test_outside_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidPath, match="is not under"):
            path_to_key(tmp_path / "docs", tmp_path / "elsewhere" / "a.md")

    def test_invalid_path_is_a_path_error(self, tmp_path: Path) -> None:
        with pytest.raises(PathError):
            path_to_key(tmp_path / "docs", tmp_path / "a.md")

    def test_non_utf8_name_raises(self, tmp_path: Path) -> None:
        # os.fsdecode maps undecodable bytes to lone surrogates
        bad = tmp_path / "bad\udcff.md"
        with pytest.raises(InvalidPath, match="UTF-8"):
            path_to_key(tmp_path, bad)

    @pytest.mark.parametrize("rel", ["a", "guide/intro", "deep/er/doc", "with space"])
    def test_agrees_with_url_side(self, tmp_path: Path, rel: str) -> None:
        assert url_to_key("/" + rel + ".md") == path_to_key(tmp_path, tmp_path / (rel + ".md"))


class TestIsMarkdown:
    def test_md(self) -> None:
        assert is_markdown(Path("a.md"))

    def test_other(self) -> None:
        assert not is_markdown(Path("a.txt"))
        assert not is_markdown(Path("md"))
