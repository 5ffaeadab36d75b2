"""Shared fixtures for preset-snapshot viewer and CLI tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from sample_data import write_snapshot_dir


@pytest.fixture
def snapshot_dir(tmp_path) -> Path:
    return write_snapshot_dir(tmp_path / "data")
