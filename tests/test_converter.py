"""
Tests for per-entry and per-tree LFS conversion.

Uses the in-memory FakeObjectDatabase and a real LocalDigestStore in tmp_path.
"""
from __future__ import annotations

import hashlib
from unittest.mock import Mock

import pytest

from lfs_rewrite.converter import LfsBlobConverter
from lfs_rewrite.models import EXECUTABLE_FILE, REGULAR_FILE, SYMLINK, Converted, Failed, NotApplicable, TreeEntry, TreeEntrySet
from lfs_rewrite.pointer import build_pointer
from lfs_rewrite.storage.errors import BlobNotFound, DatabaseError, StoreError

HELLO_SHA = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
LINE = "*.bin filter=lfs diff=lfs merge=lfs -text"


@pytest.fixture
def converter(store):
    return LfsBlobConverter("*.bin", store)


def _pointer_text(data: bytes) -> str:
    return build_pointer(hashlib.sha256(data).hexdigest(), len(data))


class TestConvertEntry:
    """Test the explicit per-entry outcome."""

    def test_filter_miss(self, converter, odb):
        entry = TreeEntry("notes.txt", REGULAR_FILE, odb.add(b"text"))
        assert converter.convert_entry(entry, odb) == NotApplicable("filename does not match")

    def test_converted(self, converter, odb):
        entry = TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello"))
        assert converter.convert_entry(entry, odb) == Converted(digest=HELLO_SHA, size=5)

    def test_pointer_shaped_content_converted(self, converter, odb):
        pointer = _pointer_text(b"hello").encode()
        entry = TreeEntry("data.bin", REGULAR_FILE, odb.add(pointer))

        outcome = converter.convert_entry(entry, odb)

        assert outcome == Converted(digest=hashlib.sha256(pointer).hexdigest(), size=len(pointer))
        assert converter.fix(entry, odb) != entry

    def test_symlink_not_applicable(self, converter, odb):
        entry = TreeEntry("link.bin", SYMLINK, odb.add(b"data.bin"))
        assert converter.convert_entry(entry, odb) == NotApplicable("not a regular file")

    def test_store_failure(self, odb):
        store = Mock()
        store.ensure_present.side_effect = StoreError("disk full")
        converter = LfsBlobConverter("*.bin", store)

        entry = TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello"))
        assert converter.convert_entry(entry, odb) == Failed("disk full")
        assert converter.stats.failed == 1


class TestFix:
    """Test LfsBlobConverter.fix."""

    def test_hello_scenario(self, converter, odb, store):
        entry = TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello"))

        fixed = converter.fix(entry, odb)

        assert fixed.filename == "data.bin"
        assert fixed.mode == REGULAR_FILE
        assert odb.text(fixed.content_id) == (
            "version https://git-lfs.github.com/spec/v1\n"
            f"oid sha256:{HELLO_SHA}\n"
            "size 5\n"
        )
        assert (store.root / "2c" / "f2" / HELLO_SHA).read_bytes() == b"hello"

    def test_unmatched_entry_unchanged(self, converter, odb):
        entry = TreeEntry("data.txt", REGULAR_FILE, odb.add(b"hello"))
        assert converter.fix(entry, odb) is entry
        assert odb.inserted == []

    def test_mode_preserved(self, converter, odb):
        entry = TreeEntry("tool.bin", EXECUTABLE_FILE, odb.add(b"\x7fELF"))
        assert converter.fix(entry, odb).mode == EXECUTABLE_FILE

    def test_pointer_size_is_original_size(self, converter, odb):
        data = b"z" * 5000
        fixed = converter.fix(TreeEntry("big.bin", REGULAR_FILE, odb.add(data)), odb)
        assert odb.text(fixed.content_id).endswith("size 5000\n")

    def test_store_failure_leaves_entry(self, odb):
        store = Mock()
        store.ensure_present.side_effect = StoreError("disk full")
        converter = LfsBlobConverter("*.bin", store)
        entry = TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello"))

        assert converter.fix(entry, odb) == entry
        assert odb.inserted == []

    def test_missing_blob_propagates(self, converter, odb):
        with pytest.raises(BlobNotFound):
            converter.fix(TreeEntry("data.bin", REGULAR_FILE, b"0" * 40), odb)

    def test_insert_failure_propagates(self, converter, odb):
        odb.fail_inserts = True
        with pytest.raises(DatabaseError):
            converter.fix(TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello")), odb)


class TestApply:
    """Test LfsBlobConverter.apply over one tree level."""

    def test_no_match_returns_equal_set(self, converter, odb):
        entries = TreeEntrySet.of([
            TreeEntry("a.txt", REGULAR_FILE, odb.add(b"a")),
            TreeEntry("b.txt", REGULAR_FILE, odb.add(b"b")),
        ])

        result = converter.apply(entries, odb)

        assert result == entries
        assert ".gitattributes" not in result
        assert odb.inserted == []

    def test_hello_scenario_creates_attributes(self, converter, odb):
        entries = TreeEntrySet.of([TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello"))])

        result = converter.apply(entries, odb)

        assert result != entries
        attributes = result.get(".gitattributes")
        assert attributes.mode == REGULAR_FILE
        assert odb.text(attributes.content_id) == LINE
        assert [e.filename for e in result] == ["data.bin", ".gitattributes"]

    def test_existing_attributes_with_line_reused(self, converter, odb):
        attributes_id = odb.add(b"*.txt text\n" + LINE.encode() + b"\n")
        entries = TreeEntrySet.of([
            TreeEntry(".gitattributes", REGULAR_FILE, attributes_id),
            TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello")),
        ])

        result = converter.apply(entries, odb)

        assert result.get(".gitattributes").content_id == attributes_id
        assert attributes_id not in odb.inserted
        assert converter.stats.attributes_updated == 0

    def test_existing_attributes_without_line_appended(self, converter, odb):
        entries = TreeEntrySet.of([
            TreeEntry(".gitattributes", 0o100755, odb.add(b"*.txt text\n")),
            TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello")),
        ])

        result = converter.apply(entries, odb)

        attributes = result.get(".gitattributes")
        assert attributes.mode == REGULAR_FILE
        assert odb.text(attributes.content_id).splitlines() == ["*.txt text", LINE]

    def test_line_present_once_for_many_matches(self, converter, odb):
        entries = TreeEntrySet.of([
            TreeEntry(f"file{i}.bin", REGULAR_FILE, odb.add(f"content {i}".encode()))
            for i in range(5)
        ])

        result = converter.apply(entries, odb)

        text = odb.text(result.get(".gitattributes").content_id)
        assert text.splitlines().count(LINE) == 1
        assert converter.stats.converted == 5

    def test_reapply_does_not_duplicate_attributes_line(self, converter, odb):
        entries = TreeEntrySet.of([
            TreeEntry(".gitattributes", REGULAR_FILE, odb.add(b"*.txt text\n")),
            TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello")),
        ])

        once = converter.apply(entries, odb)
        twice = converter.apply(once, odb)

        # data.bin still matches, so its pointer is converted again
        assert twice.get("data.bin") != once.get("data.bin")
        assert twice.get(".gitattributes") == once.get(".gitattributes")
        text = odb.text(twice.get(".gitattributes").content_id)
        assert text.splitlines().count(LINE) == 1

    def test_symlinked_attributes_kept(self, converter, odb):
        link_id = odb.add(b"shared/gitattributes")
        entries = TreeEntrySet.of([
            TreeEntry(".gitattributes", SYMLINK, link_id),
            TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello")),
        ])

        result = converter.apply(entries, odb)

        assert result.get(".gitattributes") == TreeEntry(".gitattributes", SYMLINK, link_id)
        assert result.get("data.bin") != entries.get("data.bin")
        assert converter.stats.attributes_updated == 0

    def test_identical_content_deduplicated(self, converter, odb, store):
        same = odb.add(b"duplicate payload")
        entries = TreeEntrySet.of([
            TreeEntry("one.bin", REGULAR_FILE, same),
            TreeEntry("two.bin", REGULAR_FILE, same),
        ])

        result = converter.apply(entries, odb)

        assert result.get("one.bin").content_id == result.get("two.bin").content_id
        stored = [p for p in store.root.rglob("*") if p.is_file()]
        assert len(stored) == 1
        assert stored[0].name == hashlib.sha256(b"duplicate payload").hexdigest()

    def test_store_failure_for_all_entries_leaves_tree_untouched(self, odb):
        store = Mock()
        store.ensure_present.side_effect = StoreError("read-only")
        converter = LfsBlobConverter("*.bin", store)
        entries = TreeEntrySet.of([TreeEntry("data.bin", REGULAR_FILE, odb.add(b"hello"))])

        assert converter.apply(entries, odb) == entries
        assert odb.inserted == []

    def test_invalid_pattern(self, store):
        with pytest.raises(ValueError):
            LfsBlobConverter("", store)
