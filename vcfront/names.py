"""Per-directory snapshot name registry (name, file, version triples)."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

REGISTRY_FILENAME = "VC-names"


@dataclass
class NameRecord:
    """One snapshot name bound to one file's version."""

    name: str
    file: str
    version: str

    def to_line(self) -> str:
        return f"{self.name}\t:\t{self.file}\t{self.version}\n"


def parse_record(line: str) -> Optional[NameRecord]:
    """
    Parse one registry line.

    Format: <name>\\t:\\t<file>\\t<version>

    Returns:
        NameRecord, or None if the line is malformed
    """
    parts = line.rstrip("\n").split("\t")
    if len(parts) != 4 or parts[1] != ":" or not all(parts):
        return None
    return NameRecord(name=parts[0], file=parts[2], version=parts[3])


class NameRegistry:
    """Flat text registry stored inside a directory's back-end subdirectory."""

    def __init__(self, directory: Path, subdirectory: str) -> None:
        """
        Initialize registry.

        Args:
            directory: Directory whose files the registry describes
            subdirectory: Back-end metadata directory name (e.g. "SCCS")
        """
        self.directory = directory
        self.path = directory / subdirectory / REGISTRY_FILENAME

    def records(self) -> list[NameRecord]:
        """Read all well-formed records, in file order."""
        if not self.path.exists():
            return []

        records = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            record = parse_record(line)
            if record is None:
                if line.strip():
                    logger.warning(f"Skipping malformed line in {self.path}: {line!r}")
                continue
            records.append(record)
        return records

    def add(self, name: str, file: str, version: str) -> None:
        """Append a record."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(NameRecord(name, file, version).to_line())
        logger.debug(f"Recorded {name}: {file} {version} in {self.path}")

    def lookup(self, name: str, file: str) -> Optional[str]:
        """
        Find the version recorded for a file under a name.

        Returns:
            Version of the first matching record, or None
        """
        for record in self.records():
            if record.name == name and record.file == file:
                return record.version
        return None

    def rename_file(self, old_file: str, new_file: str) -> int:
        """
        Replace the file field of every record naming old_file.

        Returns:
            Number of lines rewritten
        """
        if not self.path.exists():
            return 0

        lines = self.path.read_text(encoding="utf-8").splitlines(keepends=True)
        changed = 0
        new_lines = []
        for line in lines:
            record = parse_record(line)
            if record is not None and record.file == old_file:
                record.file = new_file
                line = record.to_line()
                changed += 1
            new_lines.append(line)

        if changed:
            temp_path = self.path.with_suffix(".tmp")
            temp_path.write_text("".join(new_lines), encoding="utf-8")
            temp_path.replace(self.path)
            logger.debug(f"Renamed {old_file} -> {new_file} in {changed} record(s)")
        return changed

    def remove_file(self, file: str) -> list[NameRecord]:
        """
        Remove every record naming file.

        Returns:
            The removed records
        """
        if not self.path.exists():
            return []

        kept, removed = [], []
        for line in self.path.read_text(encoding="utf-8").splitlines(keepends=True):
            record = parse_record(line)
            if record is not None and record.file == file:
                removed.append(record)
            else:
                kept.append(line)

        if removed:
            temp_path = self.path.with_suffix(".tmp")
            temp_path.write_text("".join(kept), encoding="utf-8")
            temp_path.replace(self.path)
        return removed
