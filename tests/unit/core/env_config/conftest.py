"""Fixtures for environment configuration tests."""

import os

import pytest


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No FALLBACK_CLIENT_* variables and no stray .env in the working directory."""
    for name in list(os.environ):
        if name.startswith("FALLBACK_CLIENT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
