# hytale_dl/core/config.py
from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

# ---- build flavour -----------------------------------------------------------
# The environment tag decides which hosts we talk to and is stamped on every
# saved credential. Override with:
#   HYTALE_DL_BRANCH=<release|development|...>
#   HYTALE_DL_CREDENTIALS=<path to credentials json>
RELEASE_BRANCH = "release"
DEFAULT_BRANCH = RELEASE_BRANCH
DEFAULT_CREDENTIALS_FILE = ".hytale-downloader-credentials.json"

CLIENT_ID = "hytale-downloader"
SCOPES: Tuple[str, ...] = ("openid", "offline_access")


@dataclass(frozen=True)
class OAuthConfig:
    client_id: str
    auth_url: str
    token_url: str
    device_auth_url: str
    scopes: Tuple[str, ...] = SCOPES


@dataclass(frozen=True)
class Settings:
    branch: str
    oauth: OAuthConfig
    downloader_url: str
    account_data_url: str
    # (connect, read) seconds for API calls; downloads use their own read timeout
    timeout: Tuple[float, float] = field(default=(10.0, 15.0))

    @property
    def is_release(self) -> bool:
        return self.branch == RELEASE_BRANCH


def _host(name: str, branch: str) -> str:
    if branch == RELEASE_BRANCH:
        return f"https://{name}.hytale.com"
    return f"https://{name}-dev.hytale.com"


def settings_for_branch(branch: str) -> Settings:
    oauth_base = "https://oauth.accounts.hytale.com" if branch == RELEASE_BRANCH \
        else "https://oauth.accounts-dev.hytale.com"
    oauth = OAuthConfig(
        client_id=CLIENT_ID,
        auth_url=f"{oauth_base}/oauth2/auth",
        token_url=f"{oauth_base}/oauth2/token",
        device_auth_url=f"{oauth_base}/oauth2/device/auth",
    )
    return Settings(
        branch=branch,
        oauth=oauth,
        downloader_url=_host("downloader", branch),
        account_data_url=_host("account-data", branch),
    )


def current_branch() -> str:
    return (os.environ.get("HYTALE_DL_BRANCH") or DEFAULT_BRANCH).strip()


def load_settings(branch: Optional[str] = None) -> Settings:
    return settings_for_branch(branch or current_branch())


def default_credentials_path() -> Path:
    env_path = os.environ.get("HYTALE_DL_CREDENTIALS")
    if env_path:
        return Path(env_path).expanduser()
    return Path(DEFAULT_CREDENTIALS_FILE)
