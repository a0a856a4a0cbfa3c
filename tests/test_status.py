"""Test directory status collection."""

from pathlib import Path

from vcfront.status import FileStatus, collect_status


def _tree(tmp_path: Path, fake_rcs) -> None:
    fake_rcs.seed(tmp_path / "free.txt", [("tester", "free\n")])
    fake_rcs.seed(
        tmp_path / "mine.txt",
        [("tester", "mine\n")],
        locks={"tester": "1.1"},
        workfile_mode=0o644,
    )
    fake_rcs.seed(
        tmp_path / "theirs.txt",
        [("alice", "a\n"), ("alice", "b\n")],
        locks={"alice": "1.2"},
        workfile_mode=0o664,
    )
    (tmp_path / "loose.txt").write_text("unregistered\n")


def test_locked_only(session, tmp_path: Path, fake_rcs):
    """By default only locked files are listed."""
    _tree(tmp_path, fake_rcs)

    statuses = collect_status(session, tmp_path)

    assert statuses == [
        FileStatus("mine.txt", "locked-by-me-unchanged", "tester", "1.1"),
        FileStatus("theirs.txt", "locked-by-other", "alice", "1.2"),
    ]


def test_all_files(session, tmp_path: Path, fake_rcs):
    """all_files adds unlocked files with their latest version."""
    _tree(tmp_path, fake_rcs)

    statuses = collect_status(session, tmp_path, all_files=True)

    assert [s.path for s in statuses] == ["free.txt", "mine.txt", "theirs.txt"]
    assert statuses[0] == FileStatus("free.txt", "unlocked", None, "1.1")


def test_paths_relative_to_subdirectory(session, tmp_path: Path, fake_rcs):
    """Paths are shown relative to the listed directory."""
    (tmp_path / "lib" / "RCS").mkdir(parents=True)
    fake_rcs.seed(tmp_path / "lib" / "x.c", [("tester", "x\n")])

    statuses = collect_status(session, tmp_path, all_files=True)

    assert [s.path for s in statuses] == ["lib/x.c"]
