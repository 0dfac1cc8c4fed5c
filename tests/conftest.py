import io
import sys
from pathlib import Path

import pytest
from rich.console import Console

# Ensure root and tests paths are available for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(Path(__file__).resolve().parent))


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120, force_terminal=False, color_system=None)


@pytest.fixture
def console_output(console):
    def _read() -> str:
        return console.file.getvalue()
    return _read
