"""Shared fixtures: an in-memory exiftool stand-in and source/destination folders."""

import logging
from pathlib import Path

import pytest

from run_report import teardown_logging
from tests.helpers import FakeExifTool


@pytest.fixture
def fake_exiftool() -> FakeExifTool:
    return FakeExifTool()


@pytest.fixture
def src_dir(tmp_path: Path) -> Path:
    d = tmp_path / "src"
    d.mkdir()
    return d


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    return tmp_path / "dest"


@pytest.fixture(autouse=True)
def _reset_run_logging():
    """Leave the datefix loggers clean between tests."""
    yield
    teardown_logging()
    logging.getLogger("datefix").setLevel(logging.NOTSET)
