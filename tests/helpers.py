"""Test doubles and file helpers shared by the test modules."""

import hashlib
from pathlib import Path

from exiftool_client import MetadataWriteError


class FakeExifTool:
    """Answers tag queries from a {file name: {tag: value}} table and records writes."""

    def __init__(self, tags_by_name: dict | None = None, fail_writes: bool = False):
        self.tags_by_name = tags_by_name or {}
        self.fail_writes = fail_writes
        self.reads: list[tuple[Path, tuple[str, ...]]] = []
        self.writes: list[tuple[Path, str, str]] = []

    def read_tags(self, path: Path, tags) -> dict[str, str]:
        tags = tuple(tags)
        self.reads.append((Path(path), tags))
        known = self.tags_by_name.get(Path(path).name, {})
        return {t: v for t, v in known.items() if t in tags}

    def write_tag(self, path: Path, tag: str, value: str) -> None:
        self.writes.append((Path(path), tag, value))
        if self.fail_writes:
            raise MetadataWriteError(f"exiftool failed for {path}")


def write_file(path: Path, data: bytes = b"\xff\xd8\xff\xe0 fake media") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def write_script(path: Path, body: str) -> Path:
    """Create an executable shell script standing in for exiftool."""
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(0o755)
    return path


def sha256(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def tree_checksums(root: Path) -> dict[str, str]:
    return {str(p.relative_to(root)): sha256(p) for p in sorted(root.rglob("*")) if p.is_file()}
