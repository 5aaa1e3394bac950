"""Unit tests for diff parsing and reconstruction."""

import pytest

from gait_dashboard.errors import GitCommandError, NotFoundError
from gait_dashboard.git.diff import (
    ADDITION,
    CONTEXT,
    DELETION,
    EMPTY_TREE_HASH,
    UNCOMMITTED,
    DiffReconstructor,
    infer_status,
    parse_hunk_header,
    parse_name_status,
    parse_numstat,
    parse_unified_diff,
    resolve_rename_path,
    synthesize_untracked_diff,
)
from gait_dashboard.testing import ScriptedRunner

MODIFIED_DIFF = """diff --git a/app.py b/app.py
index 1111111..2222222 100644
--- a/app.py
+++ b/app.py
@@ -10,3 +10,4 @@ def main():
 ctx
-old
+new1
+new2
"""


@pytest.mark.unit
class TestParseHunkHeader:
    """Tests for parse_hunk_header."""

    def test_full_header(self):
        assert parse_hunk_header("@@ -10,3 +12,4 @@ def main():") == (10, 3, 12, 4)

    def test_omitted_lengths_default_to_one(self):
        assert parse_hunk_header("@@ -5 +5 @@") == (5, 1, 5, 1)

    def test_explicit_zero_length_is_kept(self):
        assert parse_hunk_header("@@ -0,0 +1,3 @@") == (0, 0, 1, 3)

    def test_not_a_header(self):
        assert parse_hunk_header("@@ nonsense") is None


@pytest.mark.unit
class TestParseUnifiedDiff:
    """Tests for parse_unified_diff."""

    def test_classifies_and_numbers_lines(self):
        file_diff = parse_unified_diff(MODIFIED_DIFF, "app.py")

        assert len(file_diff.hunks) == 1
        hunk = file_diff.hunks[0]
        assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (10, 3, 10, 4)

        context, deletion, first, second = hunk.lines
        assert (context.type, context.old_num, context.new_num) == (CONTEXT, 10, 10)
        assert (deletion.type, deletion.old_num, deletion.new_num) == (DELETION, 11, None)
        assert (first.type, first.new_num) == (ADDITION, 11)
        assert (second.type, second.new_num) == (ADDITION, 12)
        assert [line.content for line in hunk.lines] == ["ctx", "old", "new1", "new2"]
        assert (file_diff.additions, file_diff.deletions) == (2, 1)

    def test_line_counts_match_header(self):
        text = (
            "@@ -1,4 +1,5 @@\n"
            " a\n"
            "-b\n"
            "+B\n"
            "+B2\n"
            " c\n"
            " d\n"
        )
        hunk = parse_unified_diff(text, "f.txt").hunks[0]

        old_side = [l for l in hunk.lines if l.type in (CONTEXT, DELETION)]
        new_side = [l for l in hunk.lines if l.type in (CONTEXT, ADDITION)]
        assert len(old_side) == hunk.old_lines
        assert len(new_side) == hunk.new_lines
        assert hunk.lines[-1].old_num == 4
        assert hunk.lines[-1].new_num == 5

    def test_preamble_is_not_classified(self):
        file_diff = parse_unified_diff(MODIFIED_DIFF, "app.py")
        contents = [line.content for hunk in file_diff.hunks for line in hunk.lines]
        assert "-- a/app.py" not in contents
        assert "++ b/app.py" not in contents

    def test_no_newline_marker_is_ignored(self):
        text = "@@ -1 +1 @@\n-old\n\\ No newline at end of file\n+new\n\\ No newline at end of file\n"
        hunk = parse_unified_diff(text, "f").hunks[0]
        assert [l.type for l in hunk.lines] == [DELETION, ADDITION]

    def test_multiple_hunks(self):
        text = (
            "@@ -1,2 +1,2 @@\n"
            "-a\n"
            "+A\n"
            " b\n"
            "@@ -20,2 +20,1 @@\n"
            " y\n"
            "-z\n"
        )
        file_diff = parse_unified_diff(text, "f")
        assert len(file_diff.hunks) == 2
        assert file_diff.hunks[1].lines[0].old_num == 20
        assert file_diff.hunks[1].lines[1].old_num == 21
        assert (file_diff.additions, file_diff.deletions) == (1, 2)

    def test_next_file_preamble_after_exhausted_hunk(self):
        text = (
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
            "diff --git a/other b/other\n"
            "--- a/other\n"
            "+++ b/other\n"
        )
        file_diff = parse_unified_diff(text, "f")
        assert len(file_diff.hunks[0].lines) == 2
        assert (file_diff.additions, file_diff.deletions) == (1, 1)

    def test_status_from_preamble(self):
        added = parse_unified_diff("new file mode 100644\n@@ -0,0 +1 @@\n+x\n", "f")
        deleted = parse_unified_diff("deleted file mode 100644\n@@ -1 +0,0 @@\n-x\n", "f")
        renamed = parse_unified_diff(
            "similarity index 90%\nrename from old.txt\nrename to new.txt\n", "new.txt"
        )
        assert added.status == "A"
        assert deleted.status == "D"
        assert (renamed.status, renamed.old_path) == ("R", "old.txt")

    def test_empty_text(self):
        file_diff = parse_unified_diff("", "f")
        assert file_diff.hunks == []
        assert file_diff.status == "M"


@pytest.mark.unit
class TestUntrackedDiff:
    """Tests for synthesized diffs of untracked files."""

    def test_single_hunk_of_additions(self):
        content = ["alpha", "beta", "", "delta"]
        file_diff = parse_unified_diff(synthesize_untracked_diff("new.txt", content), "new.txt")

        assert file_diff.status == "A"
        assert len(file_diff.hunks) == 1
        hunk = file_diff.hunks[0]
        assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (0, 0, 1, 4)
        assert all(line.type == ADDITION for line in hunk.lines)
        assert [line.new_num for line in hunk.lines] == [1, 2, 3, 4]
        assert [line.content for line in hunk.lines] == content

    def test_empty_file(self):
        file_diff = parse_unified_diff(synthesize_untracked_diff("empty", []), "empty")
        assert file_diff.hunks[0].lines == []
        assert file_diff.additions == 0


@pytest.mark.unit
class TestChangeListings:
    """Tests for numstat and name-status parsing."""

    def test_numstat_binary_reads_as_zero(self):
        changes = parse_numstat("3\t1\tsrc/app.py\n-\t-\tlogo.png\n")
        assert [(c.path, c.additions, c.deletions) for c in changes] == [
            ("src/app.py", 3, 1),
            ("logo.png", 0, 0),
        ]

    def test_numstat_rename_paths(self):
        changes = parse_numstat("0\t0\tsrc/{old => new}/mod.py\n1\t1\ta.txt => b.txt\n")
        assert [c.path for c in changes] == ["src/new/mod.py", "b.txt"]

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("plain.txt", "plain.txt"),
            ("a.txt => b.txt", "b.txt"),
            ("src/{lib => pkg}/x.py", "src/pkg/x.py"),
            ("src/{ => sub}/x.py", "src/sub/x.py"),
            ("src/{sub => }/x.py", "src/x.py"),
        ],
    )
    def test_resolve_rename_path(self, raw, expected):
        assert resolve_rename_path(raw) == expected

    def test_name_status_codes(self):
        changes = parse_name_status("M\tapp.py\nA\tnew.py\nD\tgone.py\nR100\told.py\tmoved.py\n")
        assert [(c.path, c.status, c.old_path) for c in changes] == [
            ("app.py", "M", None),
            ("new.py", "A", None),
            ("gone.py", "D", None),
            ("moved.py", "R", "old.py"),
        ]


@pytest.mark.unit
class TestInferStatus:
    """Tests for the count-based status fallback."""

    def test_added_when_absent_from_parent(self):
        assert infer_status(5, 0, lambda: False, lambda: True) == "A"

    def test_deleted_when_absent_from_commit(self):
        assert infer_status(0, 5, lambda: True, lambda: False) == "D"

    def test_pure_addition_to_existing_file_is_modified(self):
        assert infer_status(5, 0, lambda: True, lambda: True) == "M"

    def test_probes_are_lazy(self):
        def explode():
            raise AssertionError("probe should not run")

        assert infer_status(3, 2, explode, explode) == "M"


@pytest.mark.unit
class TestDiffReconstructor:
    """Tests for DiffReconstructor against scripted git output."""

    def test_root_commit_diffs_against_empty_tree(self):
        runner = ScriptedRunner(
            {
                ("rev-list", "--parents"): "a1",
                ("diff", EMPTY_TREE_HASH, "a1"): (
                    "diff --git a/hello.txt b/hello.txt\n"
                    "new file mode 100644\n"
                    "--- /dev/null\n"
                    "+++ b/hello.txt\n"
                    "@@ -0,0 +1,2 @@\n"
                    "+one\n"
                    "+two\n"
                ),
                ("show", "a1:hello.txt"): "one\ntwo\n",
            }
        )

        file_diff = DiffReconstructor(runner).diff("a1", "hello.txt")

        assert file_diff.status == "A"
        assert file_diff.old_content == []
        assert file_diff.new_content == ["one", "two"]
        assert [l.type for l in file_diff.hunks[0].lines] == [ADDITION, ADDITION]
        assert not any(call[:1] == ("show",) and "^" in call[1] for call in runner.calls)

    def test_commit_diff_uses_first_parent(self):
        runner = ScriptedRunner(
            {
                ("rev-list", "--parents"): "c3 b2 a1",
                ("diff", "b2", "c3"): MODIFIED_DIFF,
                ("show", "c3:app.py"): "new\n",
                ("show", "b2:app.py"): "old\n",
            }
        )
        file_diff = DiffReconstructor(runner).diff("c3", "app.py")
        assert file_diff.old_content == ["old"]
        assert file_diff.new_content == ["new"]

    def test_missing_side_is_empty(self):
        runner = ScriptedRunner(
            {
                ("rev-list", "--parents"): "b2 a1",
                ("diff", "a1", "b2"): "deleted file mode 100644\n@@ -1 +0,0 @@\n-x\n",
                ("show", "a1:gone.txt"): "x\n",
                ("show", "b2:gone.txt"): GitCommandError(
                    ["show"], "fatal: path 'gone.txt' does not exist in 'b2'", 128
                ),
            }
        )
        file_diff = DiffReconstructor(runner).diff("b2", "gone.txt")
        assert file_diff.status == "D"
        assert file_diff.new_content == []
        assert file_diff.old_content == ["x"]

    def test_untracked_file_is_synthesized(self, tmp_path):
        (tmp_path / "draft.md").write_text("# Draft\nbody\n")
        runner = ScriptedRunner(
            {
                ("diff", "HEAD"): "",
                ("status", "--porcelain"): "?? draft.md",
                ("show", "HEAD:draft.md"): GitCommandError(["show"], "fatal: no such path", 128),
            },
            repo_path=str(tmp_path),
        )

        file_diff = DiffReconstructor(runner).diff(UNCOMMITTED, "draft.md")

        assert file_diff.status == "A"
        assert len(file_diff.hunks) == 1
        assert all(l.type == ADDITION for l in file_diff.hunks[0].lines)
        assert file_diff.new_content == ["# Draft", "body"]
        assert file_diff.old_content == []

    def test_tracked_uncommitted_change(self, tmp_path):
        (tmp_path / "app.py").write_text("ctx\nnew1\nnew2\n")
        runner = ScriptedRunner(
            {("diff", "HEAD"): MODIFIED_DIFF, ("show", "HEAD:app.py"): "ctx\nold\n"},
            repo_path=str(tmp_path),
        )
        file_diff = DiffReconstructor(runner).diff(UNCOMMITTED, "app.py")
        assert file_diff.additions == 2
        assert file_diff.old_content == ["ctx", "old"]
        assert runner.count("status") == 0

    def test_file_content_not_found(self, tmp_path):
        runner = ScriptedRunner(
            {("show",): GitCommandError(["show"], "fatal: path does not exist", 128)},
            repo_path=str(tmp_path),
        )
        reconstructor = DiffReconstructor(runner)
        with pytest.raises(NotFoundError):
            reconstructor.file_content("HEAD", "nope.txt")
        with pytest.raises(NotFoundError):
            reconstructor.file_content(UNCOMMITTED, "nope.txt")

    def test_file_changes_prefers_name_status(self):
        runner = ScriptedRunner(
            {
                ("show", "--numstat"): "4\t0\tapp.py\n0\t0\tsrc/{a => b}/m.py\n",
                ("show", "--name-status"): "M\tapp.py\nR100\tsrc/a/m.py\tsrc/b/m.py\n",
            }
        )
        changes = DiffReconstructor(runner).file_changes("c3")

        assert [(c.path, c.status, c.additions) for c in changes] == [
            ("app.py", "M", 4),
            ("src/b/m.py", "R", 0),
        ]
        assert changes[1].old_path == "src/a/m.py"
        assert runner.count("cat-file") == 0

    def test_file_changes_fall_back_to_inference(self):
        runner = ScriptedRunner(
            {
                ("show", "--numstat"): "7\t0\tnew.py\n",
                ("show", "--name-status"): "",
                ("cat-file", "-e", "c3^:new.py"): GitCommandError(["cat-file"], "", 128),
            }
        )
        changes = DiffReconstructor(runner).file_changes("c3")
        assert [(c.path, c.status) for c in changes] == [("new.py", "A")]
