"""End-to-end tests for applying patches to a directory tree."""

import difflib
from pathlib import Path

import pytest

from unipatch.config import PatchOptions
from unipatch.patch.apply import apply_patch, apply_patch_text
from unipatch.patch.exceptions import FormatError, HunkMismatch, PatchIOError, PathError
from unipatch.patch.models import FileAction


def _options(root: Path, **kwargs) -> PatchOptions:
    return PatchOptions(output_dir=root, **kwargs)


def _snapshot(root: Path) -> dict[str, str]:
    return {
        str(p.relative_to(root)): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def _unified_diff(old: str, new: str, name: str) -> str:
    return "\n".join(
        difflib.unified_diff(
            old.splitlines(),
            new.splitlines(),
            fromfile=name,
            tofile=name,
            lineterm="",
        )
    )


class TestApplyPatchText:
    """Tests for apply_patch_text against files on disk."""

    def test_modifies_file_in_place(self, tmp_path: Path):
        target = tmp_path / "f.txt"
        target.write_text("a\nb\nc\nd\n", encoding="utf-8")
        patch = "--- a/f.txt\n+++ b/f.txt\n@@ -1,3 +1,3 @@\n a\n-b\n+B\n c\n"

        result = apply_patch_text(patch, _options(tmp_path, strip=1))

        assert target.read_text(encoding="utf-8") == "a\nB\nc\nd\n"
        assert len(result.files) == 1
        assert result.files[0].action is FileAction.MODIFY
        assert result.files[0].hunks == 1
        assert result.changed_files == [target.resolve()]

    def test_empty_patch_leaves_tree_untouched(self, tmp_path: Path):
        (tmp_path / "f.txt").write_text("a\n", encoding="utf-8")
        before = _snapshot(tmp_path)

        result = apply_patch_text("", _options(tmp_path))
        result_noise = apply_patch_text("some notes\n\n -- not a patch\n", _options(tmp_path))

        assert result.files == []
        assert result_noise.files == []
        assert _snapshot(tmp_path) == before

    def test_count_mismatch_raises_before_touching_file(self, tmp_path: Path):
        target = tmp_path / "f.txt"
        target.write_text("a\nb\n", encoding="utf-8")
        patch = "--- a/f.txt\n+++ b/f.txt\n@@ -1,2 +1,2 @@\n-a\n+A\n"

        with pytest.raises(FormatError):
            apply_patch_text(patch, _options(tmp_path, strip=1))

        assert target.read_text(encoding="utf-8") == "a\nb\n"

    def test_body_longer_than_header_raises_before_touching_file(self, tmp_path: Path):
        target = tmp_path / "f.txt"
        target.write_text("a\nb\n", encoding="utf-8")
        patch = "--- a/f.txt\n+++ b/f.txt\n@@ -1,1 +1,1 @@\n-a\n+A\n-b\n+B\n"

        with pytest.raises(FormatError) as exc_info:
            apply_patch_text(patch, _options(tmp_path, strip=1))

        assert exc_info.value.details["hunk_header"] == "@@ -1,1 +1,1 @@"
        assert target.read_text(encoding="utf-8") == "a\nb\n"

    def test_context_mismatch_writes_nothing(self, tmp_path: Path):
        target = tmp_path / "f.txt"
        target.write_text("a\nb\nc\n", encoding="utf-8")
        patch = "--- a/f.txt\n+++ b/f.txt\n@@ -1,3 +1,3 @@\n a\n-b\n+B\n x\n"

        with pytest.raises(HunkMismatch) as exc_info:
            apply_patch_text(patch, _options(tmp_path, strip=1))

        assert exc_info.value.path == target.resolve()
        assert exc_info.value.line_number == 3
        assert target.read_text(encoding="utf-8") == "a\nb\nc\n"
        assert _snapshot(tmp_path) == {"f.txt": "a\nb\nc\n"}

    def test_two_units_applied_in_order(self, tmp_path: Path):
        (tmp_path / "one.txt").write_text("1\n", encoding="utf-8")
        (tmp_path / "two.txt").write_text("2\n", encoding="utf-8")
        patch = (
            "--- a/one.txt\n+++ b/one.txt\n@@ -1 +1 @@\n-1\n+one\n"
            "--- a/two.txt\n+++ b/two.txt\n@@ -1 +1 @@\n-2\n+two\n"
        )

        result = apply_patch_text(patch, _options(tmp_path, strip=1))

        assert [f.new_path.name for f in result.files] == ["one.txt", "two.txt"]
        assert (tmp_path / "one.txt").read_text(encoding="utf-8") == "one\n"
        assert (tmp_path / "two.txt").read_text(encoding="utf-8") == "two\n"

    def test_earlier_units_stay_applied_when_later_unit_fails(self, tmp_path: Path):
        (tmp_path / "one.txt").write_text("1\n", encoding="utf-8")
        (tmp_path / "two.txt").write_text("2\n", encoding="utf-8")
        patch = (
            "--- a/one.txt\n+++ b/one.txt\n@@ -1 +1 @@\n-1\n+one\n"
            "--- a/two.txt\n+++ b/two.txt\n@@ -1 +1 @@\n-zzz\n+two\n"
        )

        with pytest.raises(HunkMismatch):
            apply_patch_text(patch, _options(tmp_path, strip=1))

        assert (tmp_path / "one.txt").read_text(encoding="utf-8") == "one\n"
        assert (tmp_path / "two.txt").read_text(encoding="utf-8") == "2\n"

    def test_escaping_path_rejected(self, tmp_path: Path):
        root = tmp_path / "root"
        root.mkdir()
        (tmp_path / "evil.txt").write_text("BOOM\n", encoding="utf-8")
        patch = "--- a/../evil.txt\n+++ b/../evil.txt\n@@ -1 +1 @@\n-BOOM\n+BOOM2\n"

        with pytest.raises(PathError):
            apply_patch_text(patch, _options(root, strip=1))

        assert (tmp_path / "evil.txt").read_text(encoding="utf-8") == "BOOM\n"

    def test_missing_target_raises_io_error(self, tmp_path: Path):
        patch = "--- a/missing.txt\n+++ b/missing.txt\n@@ -1 +1 @@\n-a\n+b\n"

        with pytest.raises(PatchIOError):
            apply_patch_text(patch, _options(tmp_path, strip=1))

    def test_creates_new_file(self, tmp_path: Path):
        patch = "--- /dev/null\n+++ b/pkg/new.txt\n@@ -0,0 +1,2 @@\n+hello\n+world\n"

        result = apply_patch_text(patch, _options(tmp_path, strip=1))

        assert (tmp_path / "pkg" / "new.txt").read_text(encoding="utf-8") == "hello\nworld\n"
        assert result.files[0].action is FileAction.CREATE

    def test_create_over_existing_file_rejected(self, tmp_path: Path):
        (tmp_path / "new.txt").write_text("already here\n", encoding="utf-8")
        patch = "--- /dev/null\n+++ b/new.txt\n@@ -0,0 +1 @@\n+hello\n"

        with pytest.raises(PathError):
            apply_patch_text(patch, _options(tmp_path, strip=1))

        assert (tmp_path / "new.txt").read_text(encoding="utf-8") == "already here\n"

    def test_deletes_file(self, tmp_path: Path):
        target = tmp_path / "old.txt"
        target.write_text("x\ny\n", encoding="utf-8")
        patch = "--- a/old.txt\n+++ /dev/null\n@@ -1,2 +0,0 @@\n-x\n-y\n"

        result = apply_patch_text(patch, _options(tmp_path, strip=1))

        assert not target.exists()
        assert result.files[0].action is FileAction.DELETE
        assert result.changed_files == [target.resolve()]

    def test_partial_delete_rejected(self, tmp_path: Path):
        target = tmp_path / "old.txt"
        target.write_text("x\ny\n", encoding="utf-8")
        patch = "--- a/old.txt\n+++ /dev/null\n@@ -1 +0,0 @@\n-x\n"

        with pytest.raises(HunkMismatch):
            apply_patch_text(patch, _options(tmp_path, strip=1))

        assert target.read_text(encoding="utf-8") == "x\ny\n"

    def test_rename_writes_new_path_and_keeps_old(self, tmp_path: Path):
        (tmp_path / "old.txt").write_text("a\n", encoding="utf-8")
        patch = "--- a/old.txt\n+++ b/new.txt\n@@ -1 +1 @@\n-a\n+b\n"

        result = apply_patch_text(patch, _options(tmp_path, strip=1))

        assert (tmp_path / "new.txt").read_text(encoding="utf-8") == "b\n"
        assert (tmp_path / "old.txt").read_text(encoding="utf-8") == "a\n"
        assert result.files[0].action is FileAction.RENAME

    def test_dry_run_does_not_write(self, tmp_path: Path):
        target = tmp_path / "f.txt"
        target.write_text("a\n", encoding="utf-8")
        patch = "--- a/f.txt\n+++ b/f.txt\n@@ -1 +1 @@\n-a\n+b\n"

        result = apply_patch_text(patch, _options(tmp_path, strip=1, dry_run=True))

        assert result.dry_run is True
        assert len(result.files) == 1
        assert target.read_text(encoding="utf-8") == "a\n"

    def test_dry_run_still_reports_mismatch(self, tmp_path: Path):
        (tmp_path / "f.txt").write_text("a\n", encoding="utf-8")
        patch = "--- a/f.txt\n+++ b/f.txt\n@@ -1 +1 @@\n-zzz\n+b\n"

        with pytest.raises(HunkMismatch):
            apply_patch_text(patch, _options(tmp_path, strip=1, dry_run=True))

    def test_no_newline_at_end_of_file(self, tmp_path: Path):
        target = tmp_path / "f.txt"
        target.write_text("a\nb", encoding="utf-8")
        patch = (
            "--- a/f.txt\n+++ b/f.txt\n@@ -1,2 +1,2 @@\n a\n-b\n"
            "\\ No newline at end of file\n+c\n\\ No newline at end of file\n"
        )

        apply_patch_text(patch, _options(tmp_path, strip=1))

        assert target.read_text(encoding="utf-8") == "a\nc"

    def test_crlf_patch_text(self, tmp_path: Path):
        target = tmp_path / "f.txt"
        target.write_text("a\nb\n", encoding="utf-8")
        patch = "--- a/f.txt\r\n+++ b/f.txt\r\n@@ -1,2 +1,2 @@\r\n a\r\n-b\r\n+B\r\n"

        apply_patch_text(patch, _options(tmp_path, strip=1))

        assert target.read_text(encoding="utf-8") == "a\nB\n"


@pytest.mark.parametrize(
    "old, new",
    [
        ("a\nb\nc\n", "a\nB\nc\n"),
        ("one\ntwo\nthree\nfour\nfive\nsix\nseven\neight\nnine\nten\n",
         "zero\none\ntwo\nthree\nfour\nfive\nsix\nseven\nEIGHT\nnine\nten\neleven\n"),
        ("keep\n", "keep\nappended\nlines\n"),
        ("x\ny\nz\n", "z\n"),
    ],
)
def test_round_trip_against_difflib(tmp_path: Path, old: str, new: str):
    """Applying a difflib-generated diff reproduces the new file."""
    target = tmp_path / "file.txt"
    target.write_text(old, encoding="utf-8")
    patch = _unified_diff(old, new, "file.txt")

    apply_patch_text(patch, _options(tmp_path))

    assert target.read_text(encoding="utf-8") == new


def test_apply_patch_reads_patch_file(tmp_path: Path):
    root = tmp_path / "src"
    root.mkdir()
    (root / "main.c").write_text("int x = 1;\nint y = 2;\n", encoding="utf-8")
    patch_file = tmp_path / "fix.patch"
    patch_file.write_text(
        "diff -u orig/main.c src/main.c\n"
        "--- orig/main.c\t2019-05-27 17:19:37.054593200 +0200\n"
        "+++ src/main.c\t2019-05-27 17:20:01.000000000 +0200\n"
        "@@ -1,2 +1,2 @@ static int\n"
        "-int x = 1;\n"
        "+int x = 42;\n"
        " int y = 2;\n",
        encoding="utf-8",
    )

    result = apply_patch(patch_file, _options(root, strip=1))

    assert (root / "main.c").read_text(encoding="utf-8") == "int x = 42;\nint y = 2;\n"
    assert len(result.files) == 1


def test_apply_patch_missing_patch_file(tmp_path: Path):
    with pytest.raises(PatchIOError):
        apply_patch(tmp_path / "nope.patch", _options(tmp_path))
