"""Test the snapshot name registry."""

from pathlib import Path

from vcfront.names import NameRecord, NameRegistry, parse_record


def test_parse_record():
    """Records are name, colon, file and version separated by tabs."""
    assert parse_record("REL1\t:\tmain.c\t1.4\n") == NameRecord("REL1", "main.c", "1.4")
    assert parse_record("REL1 : main.c 1.4") is None
    assert parse_record("REL1\t=\tmain.c\t1.4") is None
    assert parse_record("\t:\tmain.c\t1.4") is None


def test_add_and_lookup(tmp_path: Path):
    """Records are appended; lookup finds the first match."""
    registry = NameRegistry(tmp_path, "SCCS")

    registry.add("REL1", "main.c", "1.4")
    registry.add("REL1", "util.c", "1.2")
    registry.add("REL2", "main.c", "1.5")

    assert registry.path == tmp_path / "SCCS" / "VC-names"
    assert registry.path.read_text() == (
        "REL1\t:\tmain.c\t1.4\nREL1\t:\tutil.c\t1.2\nREL2\t:\tmain.c\t1.5\n"
    )
    assert registry.lookup("REL1", "main.c") == "1.4"
    assert registry.lookup("REL2", "main.c") == "1.5"
    assert registry.lookup("REL2", "util.c") is None


def test_missing_registry(tmp_path: Path):
    """A directory without a registry has no records."""
    registry = NameRegistry(tmp_path, "SCCS")

    assert registry.records() == []
    assert registry.lookup("REL1", "main.c") is None
    assert registry.rename_file("main.c", "app.c") == 0
    assert registry.remove_file("main.c") == []


def test_malformed_lines_skipped(tmp_path: Path):
    """Malformed lines are ignored on read and kept on rewrite."""
    (tmp_path / "SCCS").mkdir()
    registry = NameRegistry(tmp_path, "SCCS")
    registry.path.write_text("garbage\nREL1\t:\tmain.c\t1.4\n")

    assert registry.records() == [NameRecord("REL1", "main.c", "1.4")]

    registry.rename_file("main.c", "app.c")

    assert registry.path.read_text() == "garbage\nREL1\t:\tapp.c\t1.4\n"


def test_rename_file(tmp_path: Path):
    """Every record naming the old file is rewritten."""
    registry = NameRegistry(tmp_path, "SCCS")
    registry.add("REL1", "main.c", "1.4")
    registry.add("REL1", "util.c", "1.2")
    registry.add("REL2", "main.c", "1.5")

    assert registry.rename_file("main.c", "app.c") == 2

    assert registry.lookup("REL1", "app.c") == "1.4"
    assert registry.lookup("REL2", "app.c") == "1.5"
    assert registry.lookup("REL1", "util.c") == "1.2"
    assert registry.lookup("REL1", "main.c") is None


def test_remove_file(tmp_path: Path):
    """remove_file drops and returns the file's records."""
    registry = NameRegistry(tmp_path, "SCCS")
    registry.add("REL1", "main.c", "1.4")
    registry.add("REL1", "util.c", "1.2")

    removed = registry.remove_file("main.c")

    assert removed == [NameRecord("REL1", "main.c", "1.4")]
    assert registry.records() == [NameRecord("REL1", "util.c", "1.2")]
