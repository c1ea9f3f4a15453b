"""
Per-run counters, the rolling "last processed files" buffer and log setup.

Counters are only ever incremented. The reporter is observational: how often
the progress display reads a snapshot never changes what gets counted.
"""
import logging
import sys
from collections import Counter, deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from timestamp_policy import ResolvedTimestamp

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
LOG_DATEFMT = "%b %d %H:%M:%S"
BANNER = "=" * 41

RUN_LOGGER = "datefix"
BANNER_LOGGER = "datefix.banner"

RECENT_LINES = 10
NO_EXTENSION = "(none)"


@dataclass
class RunStatistics:
    total_discovered: int = 0
    files_with_tags: int = 0
    files_without_tags: int = 0
    skipped: int = 0
    copy_failures: int = 0
    write_failures: int = 0
    tag_usage: Counter = field(default_factory=Counter)
    filetype_count: Counter = field(default_factory=Counter)

    def record(self, resolved: ResolvedTimestamp, extension: str) -> None:
        """Count one copied file."""
        if resolved.trusted:
            self.files_with_tags += 1
        else:
            self.files_without_tags += 1
        self.tag_usage.update(resolved.used_tags)
        self.filetype_count[extension.lower() or NO_EXTENSION] += 1

    def record_skip(self) -> None:
        self.skipped += 1

    @property
    def processed(self) -> int:
        return self.files_with_tags + self.files_without_tags

    @property
    def accounted(self) -> int:
        return self.processed + self.skipped


class RingBufferHandler(logging.Handler):
    """Keep the last N formatted log lines in memory."""

    def __init__(self, capacity: int = RECENT_LINES, level: int = logging.INFO):
        super().__init__(level)
        self.lines: deque[str] = deque(maxlen=capacity)
        self.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATEFMT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.lines.append(self.format(record))
        except Exception:
            self.handleError(record)


class RunReporter:
    """Read side of a run: snapshots, recent lines and the final summary."""

    def __init__(self, stats: RunStatistics, capacity: int = RECENT_LINES):
        self.stats = stats
        self.buffer = RingBufferHandler(capacity)

    def recent_lines(self) -> list[str]:
        return list(self.buffer.lines)

    def snapshot(self) -> dict:
        s = self.stats
        return {
            "total": s.total_discovered,
            "with_tags": s.files_with_tags,
            "without_tags": s.files_without_tags,
            "skipped": s.skipped,
            "copy_failures": s.copy_failures,
            "write_failures": s.write_failures,
            "tag_usage": dict(s.tag_usage),
            "filetypes": dict(s.filetype_count),
        }

    def progress_postfix(self) -> dict:
        """Short counters for the progress bar."""
        s = self.stats
        return {"tagged": s.files_with_tags, "untagged": s.files_without_tags, "skipped": s.skipped}

    def summary_lines(self, include_recent: bool = False) -> list[str]:
        s = self.stats
        lines = [
            f"Files found: {s.total_discovered}",
            f"Files with proper tags: {s.files_with_tags}",
            f"Files without tags: {s.files_without_tags}",
            f"Files skipped: {s.skipped}",
        ]
        if s.copy_failures or s.write_failures:
            lines.append(f"Copy failures: {s.copy_failures}")
            lines.append(f"Tag write failures: {s.write_failures}")

        if s.tag_usage:
            lines.append("Most used tags:")
            lines += [f"  {tag}: {n}" for tag, n in s.tag_usage.most_common()]
        else:
            lines.append("No tags were found.")

        if s.filetype_count:
            lines.append("File types processed:")
            lines += [f"  {ext}: {n}" for ext, n in sorted(s.filetype_count.items())]
        else:
            lines.append("No files were processed.")

        if include_recent:
            recent = self.recent_lines()
            if recent:
                lines.append("Last processed files:")
                lines += [f"  {line}" for line in recent]
        return lines


class TqdmConsoleHandler(logging.Handler):
    """Print log lines above an active tqdm bar instead of through it."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=sys.stderr)
        except Exception:
            self.handleError(record)


def setup_logging(
    log_file: Optional[Path], reporter: RunReporter, verbose: bool = False
) -> tuple[logging.Logger, logging.Logger]:
    """
    Wire the run logger to the console, the optional log file and the
    reporter's buffer.

    Returns (run_logger, banner_logger). Banner lines are written to the log
    file without the timestamp/level prefix. The console only shows warnings
    and errors unless `verbose`.
    """
    run_log = logging.getLogger(RUN_LOGGER)
    banner_log = logging.getLogger(BANNER_LOGGER)
    teardown_logging()

    run_log.setLevel(logging.DEBUG if verbose else logging.INFO)
    run_log.propagate = False
    banner_log.setLevel(logging.INFO)
    banner_log.propagate = False

    run_log.addHandler(reporter.buffer)

    console = TqdmConsoleHandler(logging.INFO if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    run_log.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        # non-UTF-8 file names arrive as surrogate escapes from os.walk
        fh = logging.FileHandler(log_file, mode="a", encoding="utf-8", errors="backslashreplace")
        fh.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATEFMT))
        run_log.addHandler(fh)

        bh = logging.FileHandler(log_file, mode="a", encoding="utf-8", errors="backslashreplace")
        bh.setFormatter(logging.Formatter("%(message)s"))
        banner_log.addHandler(bh)

    return run_log, banner_log


def teardown_logging() -> None:
    """Close and detach handlers installed by setup_logging."""
    for name in (RUN_LOGGER, BANNER_LOGGER):
        lg = logging.getLogger(name)
        for h in list(lg.handlers):
            lg.removeHandler(h)
            h.close()
    logging.getLogger(RUN_LOGGER).propagate = True


def log_start_banner(banner_log: logging.Logger, started: str, discovery: str, total: int) -> None:
    banner_log.info(BANNER)
    banner_log.info("Processing started: %s", started)
    banner_log.info(BANNER)
    banner_log.info("Discovery filter: %s", discovery)
    banner_log.info("Total files found: %d", total)


def log_end_banner(banner_log: logging.Logger, reporter: RunReporter, destfolder: Path, ended: str) -> None:
    banner_log.info(BANNER)
    banner_log.info("Processing completed. Files copied to %s with updated timestamps if needed.", destfolder)
    banner_log.info(BANNER)
    banner_log.info("Processing ended: %s", ended)
    banner_log.info(BANNER)
    for line in reporter.summary_lines():
        banner_log.info("%s", line)
