from __future__ import annotations
from pathlib import Path


def default_download_name(patchline: str, version: str) -> str:
    return f"hytale-{patchline}-{version}.zip"


def ensure_zip_suffix(path: str) -> str:
    return path if path.lower().endswith(".zip") else path + ".zip"


def resolve_download_path(path: str, patchline: str, version: str) -> Path:
    """Explicit path or hytale-<patchline>-<version>.zip, always absolute and .zip."""
    return Path(ensure_zip_suffix(path or default_download_name(patchline, version))).resolve()
