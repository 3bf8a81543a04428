import sys
from pathlib import Path

import pytest

# (1) Repository root on sys.path so tests can import the CLI as `scripts.run`
#     (the package itself is importable via pytest's `pythonpath = ["src", "."]`).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture()
def sample_dir() -> Path:
    """Directory with the bundled clean clients/workers/tasks CSV sheets."""
    return ROOT / "data" / "sample"
