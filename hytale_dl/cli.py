# hytale_dl/cli.py
"""
hytale-downloader command line.

Usage:
    hytale-downloader                              # download the release patchline
    hytale-downloader --patchline pre-release --download-path game.zip
    hytale-downloader --print-version
    hytale-downloader --check-update
"""
from __future__ import annotations
import argparse
import logging
from pathlib import Path
from typing import List, Optional

import requests
from rich.markup import escape

from . import __version__
from .core import (
    ChecksumMismatchError, CredentialsError, BranchMismatchError, HytaleDownloaderError,
    Settings, SessionToken,
    check_for_updates, default_credentials_path, device_access_token, device_auth,
    download, downloader_url, fetch_manifest, fetch_signed_url, load_credentials,
    load_settings, make_session, new_client, resolve_download_path, save_credentials,
    setup_logging, verify_sha256, watch_token_source,
)
from .ui import ConsoleProgress, console, err_console, error, info, show_device_code, update_banner, warn

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="hytale-downloader", description="Download Hytale game assets")
    ap.add_argument("--patchline", default="release", help="Patchline to download from")
    ap.add_argument("--download-path", default="", help="Path to download zip to")
    ap.add_argument("--credentials-path", default="", help="Path to credentials file")
    ap.add_argument("--print-version", action="store_true", help="Print available game version and exit")
    ap.add_argument("--version", action="store_true", help="Print hytale-downloader version and exit")
    ap.add_argument("--check-update", action="store_true", help="Check for hytale-downloader updates and exit")
    ap.add_argument("--skip-update-check", action="store_true", help="Skip checking for hytale-downloader updates")
    ap.add_argument("--verbose", action="store_true", help="Verbose logging")
    return ap.parse_args(argv)


# ────────────────────────── Update check ──────────────────────────
def run_update_check(settings: Settings, session: Optional[requests.Session] = None) -> None:
    if __version__ == "dev":
        info("skipping update check for dev build")
        return
    try:
        latest = check_for_updates(session or make_session(settings.timeout), settings)
    except HytaleDownloaderError as e:
        warn(f"failed to check for updates: {e}")
        return
    if latest.latest != __version__:
        update_banner(latest.latest, __version__, downloader_url(settings))


# ────────────────────────── Session ──────────────────────────
def create_session(settings: Settings, cred_path: Path, session: Optional[requests.Session] = None) -> SessionToken:
    session = session or make_session(settings.timeout)
    da = device_auth(settings, session)
    show_device_code(da)
    tok = device_access_token(settings, da, session)
    save_credentials(cred_path, tok)
    return tok


def obtain_session(settings: Settings, cred_path: Path) -> SessionToken:
    try:
        return load_credentials(cred_path, settings.branch)
    except BranchMismatchError as e:
        warn(f"{e}; signing in again")
    except CredentialsError as e:
        logger.debug("No usable saved session: %s", e)
    return create_session(settings, cred_path)


def credentials_saver(cred_path: Path):
    def _save(tok: SessionToken) -> None:
        try:
            save_credentials(cred_path, tok)
        except CredentialsError as e:
            logger.error("error saving session: %s", e)
    return _save


# ────────────────────────── Download ──────────────────────────
def download_patchline(
    client: requests.Session, settings: Settings, patchline: str, download_path: str = ""
) -> Path:
    manifest = fetch_manifest(client, settings, patchline)
    signed_url = fetch_signed_url(client, settings, patchline)
    path = resolve_download_path(download_path, patchline, manifest.version)

    info(f'downloading latest ("{escape(patchline)}" patchline) to "{escape(str(path))}"')
    with ConsoleProgress(f"[bold]Downloading[/] {escape(path.name)}") as reporter:
        download(client, signed_url, path, reporter=reporter)

    info("validating checksum...")
    try:
        verify_sha256(path, manifest.sha256)
    except ChecksumMismatchError:
        # never leave a corrupt archive where a later run could trust it
        path.unlink(missing_ok=True)
        raise

    info(f'[green]successfully downloaded "{escape(patchline)}" patchline (version {escape(manifest.version)})[/]')
    return path


def run(args: argparse.Namespace, settings: Settings) -> None:
    if args.check_update:
        run_update_check(settings)
        return
    if not args.skip_update_check:
        run_update_check(settings)

    cred_path = Path(args.credentials_path) if args.credentials_path else default_credentials_path()
    tok = obtain_session(settings, cred_path)
    source = watch_token_source(settings, tok, on_refresh=credentials_saver(cred_path))
    client = new_client(source)

    if args.print_version:
        console.print(fetch_manifest(client, settings, args.patchline).version)
        return

    download_patchline(client, settings, args.patchline, args.download_path)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, console=err_console)

    if args.version:
        console.print(__version__)
        return

    try:
        run(args, load_settings())
    except KeyboardInterrupt:
        warn("interrupted by user")
        raise SystemExit(130)
    except HytaleDownloaderError as e:
        error(str(e))
        raise SystemExit(1)


if __name__ == "__main__":
    main()
