from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    for key in list(os.environ):
        if key.upper().startswith("ASK_SH_"):
            monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env out of Settings().
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
