from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))

from middleware_stack.settings import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Settings are cached per process; start every test from a clean environment."""
    for name in (
        "MIDDLEWARE_STACK_VALIDATE_ON_COMPOSE",
        "MIDDLEWARE_STACK_LOG_PAYLOADS",
        "MIDDLEWARE_STACK_LOG_MAX_CHARS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
