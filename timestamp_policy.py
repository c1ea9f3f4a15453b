"""
Pick the timestamp a media file should be named after.

Primary tags are the ones a camera or recorder writes at capture time; a file
carrying any of them is "trusted" and copied as-is. Files without them get a
best-effort timestamp from the fallback tags (GPS, modify dates, filesystem
time) and finally a fixed sentinel, so every file always resolves to a value.
"""
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

# Capture-time tags, in priority order.
PRIMARY_TAGS = (
    "SubSecDateTimeOriginal",
    "DateTimeOriginal",
    "SubSecCreateDate",
    "CreationDate",
    "CreateDate",
    "SubSecMediaCreateDate",
    "MediaCreateDate",
    "DateTimeCreated",
)

# Narrower scan used for the name of trusted files.
DISPLAY_TAGS = (
    "DateTimeCreated",
    "DateTimeOriginal",
    "CreateDate",
)

# Used only when no primary tag is present, first hit wins.
FALLBACK_TAGS = (
    "GPSDateTime",
    "ModifyDate",
    "SubSecModifyDate",
    "GPSDateStamp",
    "FileModifyDate",
)

QUERY_TAGS = tuple(dict.fromkeys(PRIMARY_TAGS + FALLBACK_TAGS))

SENTINEL_TIMESTAMP = "1970-01-01 00:00:01"
SENTINEL_TAG = "fallback"

STATUS_PRESENT = "Tag present"
STATUS_ADDED = "Tag added"

# exiftool prints these for cameras whose clock was never set
ZERO_DATES = ("0000:00:00 00:00:00", "0000:00:00")


@dataclass(frozen=True)
class ResolvedTimestamp:
    value: str
    trusted: bool
    used_tags: tuple[str, ...]

    @property
    def tag_status(self) -> str:
        return STATUS_PRESENT if self.trusted else STATUS_ADDED

    @property
    def used_tag_label(self) -> str:
        return " ".join(self.used_tags)

    @property
    def is_sentinel(self) -> bool:
        return self.used_tags == (SENTINEL_TAG,)


def clean_value(value: Optional[str]) -> str:
    """Strip a raw tag value; exiftool's all-zero dates count as empty."""
    if not value:
        return ""
    value = str(value).strip()
    if value.startswith(ZERO_DATES):
        return ""
    return value


def first_value(tags: Mapping[str, str], order: Sequence[str]) -> tuple[str, str] | None:
    """Return (tag, value) for the first tag in `order` with a usable value."""
    for name in order:
        val = clean_value(tags.get(name))
        if val:
            return name, val
    return None


def resolve_timestamp(tags: Mapping[str, str]) -> ResolvedTimestamp:
    """
    Apply the priority chain to a {tag: value} mapping.

    A trusted file whose display tags are all empty (e.g. it only carries
    SubSecMediaCreateDate) is named after its first present primary tag.
    """
    present = tuple(name for name in PRIMARY_TAGS if clean_value(tags.get(name)))

    if present:
        hit = first_value(tags, DISPLAY_TAGS) or first_value(tags, PRIMARY_TAGS)
        return ResolvedTimestamp(value=hit[1], trusted=True, used_tags=present)

    hit = first_value(tags, FALLBACK_TAGS)
    if hit:
        return ResolvedTimestamp(value=hit[1], trusted=False, used_tags=(hit[0],))

    return ResolvedTimestamp(value=SENTINEL_TIMESTAMP, trusted=False, used_tags=(SENTINEL_TAG,))
