from __future__ import annotations

from pathlib import Path
import shutil

import pytest


@pytest.fixture
def temp_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Provide a temporary directory removed after the test."""
    path = tmp_path_factory.mktemp("unidb")
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
