# hytale_dl/core/__init__.py
from .api import check_for_updates, downloader_url, fetch_manifest, fetch_signed_url
from .config import Settings, OAuthConfig, load_settings, settings_for_branch, default_credentials_path
from .credentials import load_credentials, save_credentials
from .download import download, DownloadProgress, ProgressReporter
from .errors import (
    HytaleDownloaderError, TransportError, ApiError, AuthenticationError,
    CredentialsError, BranchMismatchError, DownloadError, VerificationError,
    ChecksumMismatchError, OperationCancelled,
)
from .http import make_session
from .models import OAuthToken, SessionToken, DeviceAuthorization, Manifest, UpdateInfo
from .oauth import (
    device_auth, device_access_token, RefreshTokenSource, RefreshingTokenSource,
    watch_token_source, BearerAuth, new_client,
)
from .utils import resolve_download_path
from .verify import sha256_file, verify_sha256

__all__ = [
    "check_for_updates", "downloader_url", "fetch_manifest", "fetch_signed_url",
    "Settings", "OAuthConfig", "load_settings", "settings_for_branch", "default_credentials_path",
    "load_credentials", "save_credentials",
    "download", "DownloadProgress", "ProgressReporter",
    "HytaleDownloaderError", "TransportError", "ApiError", "AuthenticationError",
    "CredentialsError", "BranchMismatchError", "DownloadError", "VerificationError",
    "ChecksumMismatchError", "OperationCancelled",
    "make_session",
    "OAuthToken", "SessionToken", "DeviceAuthorization", "Manifest", "UpdateInfo",
    "device_auth", "device_access_token", "RefreshTokenSource", "RefreshingTokenSource",
    "watch_token_source", "BearerAuth", "new_client",
    "resolve_download_path",
    "sha256_file", "verify_sha256",
    "setup_logging",
]

# ---- logging for the CLI ----
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route package logs through rich so they print above a live progress bar."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        show_time=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(name)s: %(message)s",
        handlers=[handler],
    )
    # token endpoints and signed URLs would leak into urllib3 debug lines
    logging.getLogger("urllib3").setLevel(logging.WARNING)
