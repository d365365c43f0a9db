"""
conftest.py: shared fixtures for the script-bundle test suite.

1. ENV CLEANUP: snapshot and restore the environment variables the bundler
   reads, so a test that sets OUT_DIR cannot leak into the next one.
2. CRATE FIXTURE: build small cargo-style crates on disk.
"""
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


# ─── Environment Variable Safety ────────────────────────────────────────────

_ENV_KEYS_TO_PROTECT = [
    "OUT_DIR",
    "CARGO_MANIFEST_DIR",
    "SCRIPT_BUNDLE_SHEBANG",
    "SCRIPT_BUNDLE_RUN_RUSTFMT",
    "SCRIPT_BUNDLE_RUSTFMT",
    "SCRIPT_BUNDLE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env_vars():
    """Snapshot and restore bundler environment variables after each test."""
    saved = {}
    for key in _ENV_KEYS_TO_PROTECT:
        if key in os.environ:
            saved[key] = os.environ[key]

    yield

    for key in _ENV_KEYS_TO_PROTECT:
        if key in saved:
            os.environ[key] = saved[key]
        else:
            os.environ.pop(key, None)


# ─── Crate Builder ───────────────────────────────────────────────────────────

def write_file(root: Path, rel_path: str, content: str) -> Path:
    full_path = root / rel_path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    full_path.write_text(content, encoding="utf-8")
    return full_path


@pytest.fixture
def make_crate(tmp_path):
    """Create a crate under tmp_path from a {relative path: content} dict."""
    def _make(files, name="crate"):
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel_path, content in files.items():
            write_file(root, rel_path, content)
        return root
    return _make
