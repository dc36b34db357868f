"""Root test configuration: isolate tests from local config and MDSAFE_* env vars"""

import os

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run each test from an empty tmp dir with no MDSAFE_* overrides."""
    for name in list(os.environ):
        if name.startswith("MDSAFE_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
