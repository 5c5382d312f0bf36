"""
Tests for LFS pointer rendering and parsing.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from lfs_rewrite.pointer import PointerFile, build_pointer, parse_pointer

HELLO_SHA = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
HELLO_POINTER = (
    "version https://git-lfs.github.com/spec/v1\n"
    f"oid sha256:{HELLO_SHA}\n"
    "size 5\n"
)


class TestBuildPointer:
    """Test the canonical three-line document."""

    def test_exact_format(self):
        assert build_pointer(HELLO_SHA, 5) == HELLO_POINTER

    def test_trailing_newline(self):
        text = build_pointer(HELLO_SHA, 0)
        assert text.endswith("size 0\n")
        assert len(text.splitlines()) == 3

    def test_model_renders_same_text(self):
        assert PointerFile(oid=HELLO_SHA, size=5).render() == HELLO_POINTER


class TestParsePointer:
    """Test parsing and validation of pointer text."""

    def test_roundtrip_fields(self):
        pointer = parse_pointer(HELLO_POINTER)
        assert pointer.oid == HELLO_SHA
        assert pointer.size == 5

    def test_wrong_version(self):
        with pytest.raises(ValueError, match="Unsupported pointer version"):
            parse_pointer(HELLO_POINTER.replace("spec/v1", "spec/v9"))

    def test_non_sha256_oid(self):
        with pytest.raises(ValueError, match="Unsupported pointer oid"):
            parse_pointer(HELLO_POINTER.replace("sha256:", "md5:"))

    def test_bad_size(self):
        with pytest.raises(ValueError, match="Invalid pointer"):
            parse_pointer(HELLO_POINTER.replace("size 5", "size -1"))

    def test_malformed_line(self):
        with pytest.raises(ValueError, match="Malformed pointer line"):
            parse_pointer(HELLO_POINTER + "garbage\n")

    def test_model_rejects_bad_oid(self):
        with pytest.raises(ValidationError):
            PointerFile(oid="XYZ", size=1)
