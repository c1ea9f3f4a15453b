"""Walk a source tree and yield the files that should be processed."""
import fnmatch
import os
from pathlib import Path
from typing import Iterable, Iterator, Sequence


def normalize_extensions(extensions: Iterable[str]) -> set[str]:
    """Lowercase extensions without leading dots; blanks are dropped."""
    out = set()
    for ext in extensions:
        # allow "jpg,mp4" as well as repeated options
        for part in ext.replace(",", " ").split():
            part = part.strip().lower().lstrip(".")
            if part:
                out.add(part)
    return out


def is_excluded(path: Path, patterns: Sequence[str]) -> bool:
    """Case-insensitive match of `*pattern*` against the full path."""
    full = str(path).lower()
    return any(fnmatch.fnmatchcase(full, f"*{p.lower()}*") for p in patterns if p)


def matches_filters(path: Path, extensions: set[str], names: Sequence[str]) -> bool:
    """Apply the extension allow-list and file-name globs (both optional)."""
    if extensions and path.suffix[1:].lower() not in extensions:
        return False
    if names:
        name = path.name.lower()
        if not any(fnmatch.fnmatchcase(name, n.lower()) for n in names):
            return False
    return True


def iter_media_files(
    root: Path,
    exclude: Sequence[str] = (),
    extensions: Iterable[str] = (),
    names: Sequence[str] = (),
    include_hidden: bool = False,
    skip_dirs: Sequence[Path] = (),
) -> Iterator[Path]:
    """
    Yield files under `root` in a stable (sorted) order.

    Hidden files (name starting with ".") are skipped unless `include_hidden`.
    Directories listed in `skip_dirs`, typically the destination when it sits
    inside the source, are not descended into.
    """
    exts = normalize_extensions(extensions)
    skip = {Path(d).resolve() for d in skip_dirs}

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(d for d in dirnames if (current / d).resolve() not in skip)
        for fn in sorted(filenames):
            if not include_hidden and fn.startswith("."):
                continue
            p = current / fn
            if not p.is_file():
                continue
            if is_excluded(p, exclude):
                continue
            if not matches_filters(p, exts, names):
                continue
            yield p


def describe_filters(
    exclude: Sequence[str], extensions: Iterable[str], names: Sequence[str], include_hidden: bool
) -> str:
    """One-line description of the discovery filter, for the run log."""
    parts = []
    exts = sorted(normalize_extensions(extensions))
    if exts:
        parts.append("ext in " + ",".join(exts))
    if names:
        parts.append("name matches " + ",".join(names))
    if exclude:
        parts.append("path not matching " + ",".join(f"*{p}*" for p in exclude))
    if not include_hidden:
        parts.append("no hidden files")
    return "; ".join(parts) if parts else "all files"
