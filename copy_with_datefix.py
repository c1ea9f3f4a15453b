#!/usr/bin/env python3
"""
Copy media into a destination folder under timestamp-based names.

Each file is named <YYYY-MM-DD_HH-MM-SS>.<millis>.<ext> after its best
capture timestamp. Files that already carry a capture-time tag go to
with_tags/, the rest go to without_tags/ and get the resolved timestamp
written into the copy (SubSecCreateDate by default). Source files are never
modified.

Usage:
  copy-with-datefix SRCFOLDER DESTFOLDER [-l run.log] [-e pattern]... [--ext jpg]...
"""
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

import click
from tqdm import tqdm

from exiftool_client import DEFAULT_EXIFTOOL, ExifTool, require_exiftool
from media_copy import DEFAULT_WRITE_TAG, WITH_TAGS_DIR, WITHOUT_TAGS_DIR, process_file
from media_discovery import describe_filters, iter_media_files
from run_report import (
    RunReporter,
    RunStatistics,
    log_end_banner,
    log_start_banner,
    setup_logging,
    teardown_logging,
)

PROGRESS_UPDATE_INTERVAL = 5  # refresh the progress counters every N files


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def run(
    srcfolder: Path,
    destfolder: Path,
    exiftool: ExifTool,
    *,
    exclude: Sequence[str] = (),
    extensions: Sequence[str] = (),
    names: Sequence[str] = (),
    include_hidden: bool = False,
    bucket: bool = True,
    write_tag: str = DEFAULT_WRITE_TAG,
    log_file: Optional[Path] = None,
    verbose: bool = False,
    progress: bool = True,
    refresh_every: int = PROGRESS_UPDATE_INTERVAL,
) -> RunReporter:
    """Process every discovered file once and return the run's reporter."""
    # copies landing inside the source tree must not be picked up again
    skip_dirs = []
    src_resolved, dest_resolved = srcfolder.resolve(), destfolder.resolve()
    if dest_resolved == src_resolved:
        if not bucket:
            raise ValueError("Flat output into the source folder would copy earlier copies again.")
        skip_dirs += [destfolder / WITH_TAGS_DIR, destfolder / WITHOUT_TAGS_DIR]
    elif dest_resolved.is_relative_to(src_resolved):
        skip_dirs.append(destfolder)

    destfolder.mkdir(parents=True, exist_ok=True)
    if bucket:
        (destfolder / WITH_TAGS_DIR).mkdir(exist_ok=True)
        (destfolder / WITHOUT_TAGS_DIR).mkdir(exist_ok=True)

    stats = RunStatistics()
    reporter = RunReporter(stats)
    _, banner_log = setup_logging(log_file, reporter, verbose=verbose)
    try:
        files = list(iter_media_files(
            srcfolder,
            exclude=exclude,
            extensions=extensions,
            names=names,
            include_hidden=include_hidden,
            skip_dirs=skip_dirs,
        ))
        stats.total_discovered = len(files)
        log_start_banner(
            banner_log,
            _now(),
            describe_filters(exclude, extensions, names, include_hidden),
            len(files),
        )

        bar = tqdm(files, desc="Processing", unit="file", disable=not progress)
        for i, f in enumerate(bar, 1):
            process_file(f, destfolder, exiftool, stats, bucket=bucket, write_tag=write_tag)
            if i % max(refresh_every, 1) == 0 or i == len(files):
                bar.set_postfix(reporter.progress_postfix())
        bar.close()

        log_end_banner(banner_log, reporter, destfolder, _now())
    finally:
        teardown_logging()
    return reporter


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("srcfolder", required=False, type=click.Path(path_type=Path, file_okay=False))
@click.argument("destfolder", required=False, type=click.Path(path_type=Path, file_okay=False))
@click.option("-l", "--log-file", type=click.Path(path_type=Path, dir_okay=False),
              help="Append processing information to this log file.")
@click.option("-e", "--exclude", multiple=True,
              help="Skip files whose path contains this pattern (case-insensitive, repeatable).")
@click.option("--ext", "extensions", multiple=True, envvar="DATEFIX_EXT",
              help="Only process these extensions (repeatable or comma separated).")
@click.option("--name", "names", multiple=True, envvar="DATEFIX_NAME",
              help="Only process file names matching this glob (repeatable).")
@click.option("--hidden/--no-hidden", "include_hidden", default=False, show_default=True,
              help="Include files whose name starts with a dot.")
@click.option("--bucket/--flat", default=True, show_default=True,
              help="Split output into with_tags/ and without_tags/.")
@click.option("--write-tag", default=DEFAULT_WRITE_TAG, show_default=True,
              help="Tag written into copies that had no capture-time tag.")
@click.option("--exiftool", "exiftool_path", default=DEFAULT_EXIFTOOL, show_default=True, envvar="EXIFTOOL")
@click.option("--refresh-every", default=PROGRESS_UPDATE_INTERVAL, show_default=True, type=click.IntRange(min=1),
              help="Refresh progress counters every N files.")
@click.option("--progress/--no-progress", default=True, show_default=True, help="Progress bar")
@click.option("-v", "--verbose", is_flag=True, help="Echo every processed file.")
@click.pass_context
def main(
    ctx: click.Context,
    srcfolder: Optional[Path],
    destfolder: Optional[Path],
    log_file: Optional[Path],
    exclude: tuple[str, ...],
    extensions: tuple[str, ...],
    names: tuple[str, ...],
    include_hidden: bool,
    bucket: bool,
    write_tag: str,
    exiftool_path: str,
    refresh_every: int,
    progress: bool,
    verbose: bool,
):
    """
    Copy files from SRCFOLDER to DESTFOLDER, renamed after their capture time.

    FILE NAMES look like 2021-06-01_10-00-00.1622541600123.jpg. Files without
    a capture-time tag get one written into the copy.
    """
    if srcfolder is None or destfolder is None:
        raise SystemExit(f"{ctx.get_usage()}\n\nError: SRCFOLDER and DESTFOLDER are required.")

    srcfolder = srcfolder.expanduser().resolve()
    destfolder = destfolder.expanduser().resolve()
    if not srcfolder.is_dir():
        raise SystemExit(f"Source folder does not exist: {srcfolder}")

    if destfolder == srcfolder and not bucket:
        raise SystemExit("DESTFOLDER must differ from SRCFOLDER with --flat (copies would be processed again).")

    require_exiftool(exiftool_path)

    reporter = run(
        srcfolder,
        destfolder,
        ExifTool(exiftool_path),
        exclude=exclude,
        extensions=extensions,
        names=names,
        include_hidden=include_hidden,
        bucket=bucket,
        write_tag=write_tag,
        log_file=log_file,
        verbose=verbose,
        progress=progress,
        refresh_every=refresh_every,
    )

    click.echo(f"\nProcessing completed. Files copied to {destfolder} with updated timestamps if needed.")
    for line in reporter.summary_lines(include_recent=True):
        click.echo(f"  {line}")


if __name__ == "__main__":
    main()
