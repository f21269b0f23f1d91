from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


SAMPLE_PLAN_MARKDOWN = textwrap.dedent(
    """
    # Add configuration loader

    This plan adds a configuration loader with validation.

    ## Phase 1: Foundation

    Create `src/config/loader.py` with a parseConfig helper. The loader reads YAML files.
    File: `src/config/schema.py`

    ## Phase 2: Integration

    Update `src/main.py` to call the loader on startup. Remove `src/legacy_config.py` once callers move over.

    ## Phase 3: Testing

    Add `tests/test_loader.py` covering missing keys and defaults.
    """
).lstrip()


@pytest.fixture()
def sample_markdown() -> str:
    """Three-phase plan document touching five files."""
    return SAMPLE_PLAN_MARKDOWN


@pytest.fixture()
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty project directory used as the working directory for CLI tests."""
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.chdir(root)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    return root
