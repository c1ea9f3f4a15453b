"""
Thin wrapper around the exiftool executable.

Reads are batched: every candidate tag is requested in a single exiftool call
per file and parsed from its JSON output. Any failure while reading (missing
binary, corrupt file, unparseable output) is reported as "no tags" so callers
never have to special-case broken media.
"""
import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Iterable

logger = logging.getLogger("datefix.exiftool")

DEFAULT_EXIFTOOL = "exiftool"


class ExifToolError(RuntimeError):
    """Base error for exiftool invocations."""


class MetadataWriteError(ExifToolError):
    """exiftool refused or failed to write a tag."""


def require_exiftool(exiftool_path: str = DEFAULT_EXIFTOOL) -> None:
    """Exit with a helpful message if exiftool is not available."""
    if not shutil.which(exiftool_path):
        raise SystemExit(
            f"exiftool not found (looked for '{exiftool_path}'). Install it first:\n"
            "  Debian/Ubuntu: sudo apt-get install libimage-exiftool-perl\n"
            "  macOS: brew install exiftool"
        )
    try:
        subprocess.run([exiftool_path, "-ver"], check=True, capture_output=True, text=True)
    except (OSError, subprocess.CalledProcessError) as e:
        raise SystemExit(f"exiftool is not runnable ({exiftool_path}): {e}")


class ExifTool:
    """Query and write tags through an exiftool executable."""

    def __init__(self, exiftool_path: str = DEFAULT_EXIFTOOL):
        self.exiftool_path = exiftool_path

    def read_command(self, path: Path, tags: Iterable[str]) -> list[str]:
        # -j: one JSON object per file, keyed by tag name
        # -api LargeFileSupport=1 helps with big videos
        cmd = [
            self.exiftool_path,
            "-j",
            "-api", "LargeFileSupport=1",
            "-charset", "filename=utf8",
        ]
        cmd += [f"-{t}" for t in tags]
        cmd.append(str(path))
        return cmd

    def read_tags(self, path: Path, tags: Iterable[str]) -> dict[str, str]:
        """Return {tag: value} for the requested tags that carry a value."""
        tags = list(tags)
        # exiftool echoes raw file names in warnings; they need not be UTF-8
        try:
            res = subprocess.run(self.read_command(path, tags), capture_output=True,
                                 encoding="utf-8", errors="replace")
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("exiftool query failed for %s: %s", path, e)
            return {}

        # exiftool exits 1 for unreadable files but may still print File:* tags
        if not res.stdout.strip():
            logger.debug("exiftool returned nothing for %s (code %s): %s",
                         path, res.returncode, res.stderr.strip())
            return {}

        try:
            records = json.loads(res.stdout)
        except json.JSONDecodeError as e:
            logger.debug("Could not parse exiftool output for %s: %s", path, e)
            return {}

        if not records or not isinstance(records[0], dict):
            return {}

        rec = records[0]
        out: dict[str, str] = {}
        for t in tags:
            val = rec.get(t)
            if val is None:
                continue
            val = str(val).strip()
            if val:
                out[t] = val
        return out

    def write_command(self, path: Path, tag: str, value: str) -> list[str]:
        # -overwrite_original: don't keep _original backups
        # -P: preserve filesystem timestamps that exiftool might otherwise change
        return [
            self.exiftool_path,
            "-overwrite_original",
            "-P",
            f"-{tag}={value}",
            str(path),
        ]

    def write_tag(self, path: Path, tag: str, value: str) -> None:
        """Write a single tag in place, raising MetadataWriteError on failure."""
        try:
            res = subprocess.run(self.write_command(path, tag, value), capture_output=True,
                                 encoding="utf-8", errors="replace")
        except (OSError, subprocess.SubprocessError) as e:
            raise MetadataWriteError(f"exiftool could not be run for {path}: {e}") from e
        if res.returncode != 0:
            raise MetadataWriteError(
                f"exiftool failed for {path}\nSTDOUT:\n{res.stdout}\nSTDERR:\n{res.stderr}"
            )
