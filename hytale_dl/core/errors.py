# hytale_dl/core/errors.py
"""
Exception types raised by the core. Only the CLI turns these into exit codes.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional


class HytaleDownloaderError(Exception):
    """Base exception for all downloader errors."""


class TransportError(HytaleDownloaderError):
    """Connection failure or timeout talking to a remote endpoint."""


class ApiError(HytaleDownloaderError):
    """Non-success HTTP status or an undecodable response body."""

    def __init__(self, message: str, status: str = "", body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class AuthenticationError(HytaleDownloaderError):
    """Device authorization failed or the refresh token was rejected."""

    def __init__(self, message: str, error_code: str = "") -> None:
        super().__init__(message)
        self.error_code = error_code


class CredentialsError(HytaleDownloaderError):
    """The credentials file is missing, malformed or cannot be written."""


class BranchMismatchError(CredentialsError):
    """Stored credentials belong to a different environment."""

    def __init__(self, stored: str, current: str) -> None:
        super().__init__(
            f"credentials were created for {stored!r} environment, "
            f"but current environment is {current!r}"
        )
        self.stored = stored
        self.current = current


class DownloadError(HytaleDownloaderError):
    """The artifact could not be fetched or written."""


class VerificationError(HytaleDownloaderError):
    """The artifact could not be read for hashing."""


class ChecksumMismatchError(VerificationError):
    def __init__(self, path: Path, expected: str, computed: str) -> None:
        super().__init__(f"checksum mismatch: expected {expected}, got {computed}")
        self.path = path
        self.expected = expected
        self.computed = computed


class OperationCancelled(HytaleDownloaderError):
    def __init__(self, what: Optional[str] = None) -> None:
        super().__init__(f"{what or 'operation'} cancelled")
