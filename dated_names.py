"""
Build sortable, filesystem-safe file names from exiftool timestamps.

Name scheme: <YYYY-MM-DD_HH-MM-SS>.<millis>.<ext>

The timestamp part is always rebuilt from its numeric fields, so
"2021:06:01 10:00:00", "2021-06-01T10:00:00+02:00" and
"2021:06:01 10:00:00.123" all map to "2021-06-01_10-00-00" (sub-seconds and
zone offsets are dropped). The millisecond counter is the wall clock at naming
time; two files resolved to the same second are only practically unique,
which is fine since the downstream catalog deduplicates by content.
"""
import re
import time
from pathlib import Path

from dateutil import parser as dtparser

NAME_FORMAT = "%Y-%m-%d_%H-%M-%S"

# YYYY:MM:DD HH:MM:SS with optional .subsec / zone suffix, ":" or "-" in the date
DATETIME_RE = re.compile(r"^(\d{4})[:\-](\d{2})[:\-](\d{2})[ T_](\d{2}):(\d{2}):(\d{2})")
DATE_RE = re.compile(r"^(\d{4})[:\-](\d{2})[:\-](\d{2})$")
UNSAFE_RE = re.compile(r"[:/\\]")


def normalize_timestamp(value: str) -> str:
    """Return the YYYY-MM-DD_HH-MM-SS form of an exiftool timestamp string."""
    s = value.strip()

    m = DATETIME_RE.match(s)
    if m:
        return "{}-{}-{}_{}-{}-{}".format(*m.groups())

    m = DATE_RE.match(s)
    if m:
        return "{}-{}-{}_00-00-00".format(*m.groups())

    try:
        return dtparser.parse(s).strftime(NAME_FORMAT)
    except (ValueError, OverflowError):
        pass

    # Unparseable: keep the text but make it safe for common filesystems.
    s = UNSAFE_RE.sub("-", s)
    return re.sub(r"\s+", "_", s)


def current_millis() -> int:
    """Wall-clock milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def build_filename(timestamp: str, extension: str, millis: int | None = None) -> str:
    """
    Compose the destination name; deterministic once `millis` is given.

    `extension` is taken as found (case kept, leading dot optional). Files
    without an extension get no trailing suffix.
    """
    if millis is None:
        millis = current_millis()
    name = f"{normalize_timestamp(timestamp)}.{millis}"
    ext = extension.lstrip(".")
    if ext:
        name += f".{ext}"
    return name


def file_extension(path: Path) -> str:
    """Extension without the dot, as found on disk."""
    return path.suffix[1:]
