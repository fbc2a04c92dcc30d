from pathlib import Path

import pytest

from dtskit.lang.typescript import parse_source
from dtskit.settings import DtsSettings
from dtskit.source import SourceText

SAMPLES_DIR = Path(__file__).parent / "samples"


@pytest.fixture
def samples_dir() -> Path:
    return SAMPLES_DIR


@pytest.fixture
def settings() -> DtsSettings:
    return DtsSettings()


@pytest.fixture
def parse():
    """Parse a code string into ``(source, tree)``."""

    def _parse(code: str, path: str = "test.d.ts"):
        source = SourceText.from_string(code, path)
        return source, parse_source(source)

    return _parse
