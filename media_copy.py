"""
Copy one source file into the destination under its dated name.

Trusted files are copied byte-for-byte. Files without a capture-time tag get
the resolved timestamp written into the copy; the source is never touched.
"""
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dated_names import build_filename, current_millis, file_extension
from exiftool_client import ExifTool, MetadataWriteError
from run_report import RunStatistics
from timestamp_policy import QUERY_TAGS, ResolvedTimestamp, resolve_timestamp

logger = logging.getLogger("datefix.copy")

WITH_TAGS_DIR = "with_tags"
WITHOUT_TAGS_DIR = "without_tags"
DEFAULT_WRITE_TAG = "SubSecCreateDate"


@dataclass(frozen=True)
class CopyResult:
    src: Path
    dst: Path
    resolved: ResolvedTimestamp
    tag_written: bool


def destination_dir(dest_root: Path, trusted: bool, bucket: bool = True) -> Path:
    """with_tags/ or without_tags/ under dest_root, or dest_root itself when flat."""
    if not bucket:
        return dest_root
    return dest_root / (WITH_TAGS_DIR if trusted else WITHOUT_TAGS_DIR)


def unused_name(dest_dir: Path, timestamp: str, extension: str, millis: int) -> Path:
    """Bump the millisecond counter until the name is free."""
    target = dest_dir / build_filename(timestamp, extension, millis)
    while target.exists():
        millis += 1
        target = dest_dir / build_filename(timestamp, extension, millis)
    return target


def copy_to_destination(src: Path, dst: Path) -> Path:
    """Copy content and file times; OSError propagates to the caller."""
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)
    return dst


def discard_partial(dst: Path) -> None:
    """Remove whatever a failed copy left behind so it is never ingested."""
    try:
        dst.unlink(missing_ok=True)
    except OSError as e:
        logger.error("Could not remove partial copy %s: %s", dst, e)


def backfill_timestamp(exiftool: ExifTool, path: Path, value: str, tag: str = DEFAULT_WRITE_TAG) -> None:
    exiftool.write_tag(path, tag, value)


def process_file(
    path: Path,
    dest_root: Path,
    exiftool: ExifTool,
    stats: RunStatistics,
    *,
    bucket: bool = True,
    write_tag: str = DEFAULT_WRITE_TAG,
    millis: Optional[int] = None,
) -> Optional[CopyResult]:
    """
    Resolve, name, copy and (if needed) tag one file, updating `stats`.

    Returns None when the file was skipped (unreadable or copy failed).
    """
    if not path.is_file() or not os.access(path, os.R_OK):
        logger.warning("Skipping unreadable file: %s", path)
        stats.record_skip()
        return None

    tags = exiftool.read_tags(path, QUERY_TAGS)
    resolved = resolve_timestamp(tags)
    if resolved.is_sentinel:
        logger.warning("No timestamp found for %s, using %s", path, resolved.value)

    ext = file_extension(path)
    out_dir = destination_dir(dest_root, resolved.trusted, bucket)
    dst = unused_name(out_dir, resolved.value, ext, current_millis() if millis is None else millis)

    try:
        copy_to_destination(path, dst)
    except OSError as e:
        logger.error("Failed to copy %s: %s", path, e)
        discard_partial(dst)
        stats.copy_failures += 1
        stats.record_skip()
        return None

    tag_written = False
    if not resolved.trusted:
        try:
            backfill_timestamp(exiftool, dst, resolved.value, write_tag)
            tag_written = True
        except MetadataWriteError as e:
            logger.warning("Failed to add EXIF tag to %s", dst.name)
            logger.debug("%s", e)
            stats.write_failures += 1

    stats.record(resolved, ext)
    logger.info(
        "%s -> %s, EXIF DateTime: %s, Status: %s, Used Tag: %s",
        path, dst, resolved.value, resolved.tag_status, resolved.used_tag_label,
    )
    return CopyResult(src=path, dst=dst, resolved=resolved, tag_written=tag_written)
