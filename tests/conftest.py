"""
Shared fixtures cho test suite.

App dir va HOME duoc tro vao thu muc tam TRUOC khi import bat ky module nao
cua project, de logs/settings/global gitignore cua may dev khong anh huong tests.
"""

import os
import tempfile
from pathlib import Path

import pytest

_TEST_HOME = tempfile.mkdtemp(prefix="cph-test-home-")
os.environ["CODE_PROMPT_HELPER_HOME"] = os.path.join(_TEST_HOME, ".code-prompt-helper")

from core import ignore_engine  # noqa: E402
from core.logging_config import get_logger  # noqa: E402
from core.exclusion_policy import DefaultExclusionPolicy  # noqa: E402
from core.utils.file_scanner import build_tree  # noqa: E402

# Console handler bind vao stream capture cua ca session, khong phai capsys cua 1 test
get_logger()


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch):
    """Global gitignore (~/.config/git/ignore) cua may that khong duoc doc."""
    monkeypatch.setenv("HOME", _TEST_HOME)
    ignore_engine.clear_cache()
    yield
    ignore_engine.clear_cache()


@pytest.fixture
def make_tree():
    """
    Tao cau truc files tu dict.

    Usage:
        make_tree(tmp_path, {"a.txt": "hello", "src": {"b.py": "x = 1"}})
    """

    def _make(root: Path, layout: dict) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for name, value in layout.items():
            target = root / name
            if isinstance(value, dict):
                _make(target, value)
            elif isinstance(value, bytes):
                target.write_bytes(value)
            else:
                target.write_text(value, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def scan():
    """Build tree voi policy mac dinh (khong co ignore rules)."""

    def _scan(*roots: Path, policy=None):
        return build_tree(list(roots), policy or DefaultExclusionPolicy())

    return _scan
