"""
Pytest configuration and fixtures for downloader tests.
"""

import pytest

from hytale_dl.core.config import Settings, settings_for_branch
from hytale_dl.core.models import SessionToken

from helpers import make_token


@pytest.fixture
def settings() -> Settings:
    return settings_for_branch("release")


@pytest.fixture
def dev_settings() -> Settings:
    return settings_for_branch("development")


@pytest.fixture
def session_token() -> SessionToken:
    return SessionToken.from_oauth(make_token(), "release")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("HYTALE_DL_BRANCH", raising=False)
    monkeypatch.delenv("HYTALE_DL_CREDENTIALS", raising=False)
