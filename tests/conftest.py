import os

import pytest

from azpipes.config import get_settings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from real AZPIPES_* variables and .env files."""
    for key in list(os.environ):
        if key.upper().startswith("AZPIPES_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
