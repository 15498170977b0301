from __future__ import annotations
import logging
from typing import Any, Dict

import requests

from .config import Settings
from .errors import ApiError, TransportError
from .models import Manifest, UpdateInfo

logger = logging.getLogger(__name__)


def _status_text(r: requests.Response) -> str:
    return f"{r.status_code} {r.reason}".strip()


def fetch_json(session: requests.Session, url: str, settings: Settings, include_body: bool = False) -> Dict[str, Any]:
    logger.debug("GET %s", url)
    try:
        r = session.get(url, timeout=settings.timeout)
    except requests.RequestException as e:
        raise TransportError(f"GET {url}: {e}") from e
    if r.status_code != 200:
        msg = f"HTTP status: {_status_text(r)}"
        if include_body:
            msg += f"\nResponse: {r.text}"
        raise ApiError(msg, status=_status_text(r), body=r.text)
    try:
        data = r.json()
    except ValueError as e:
        raise ApiError(f"invalid JSON from {url}: {e}", status=_status_text(r), body=r.text) from e
    if not isinstance(data, dict):
        raise ApiError(f"unexpected JSON from {url}", status=_status_text(r), body=r.text)
    return data


def _field(data: Dict[str, Any], key: str, url: str) -> str:
    val = data.get(key)
    if not isinstance(val, str) or not val:
        raise ApiError(f"response from {url} has no {key!r}")
    return val


def fetch_manifest(session: requests.Session, settings: Settings, patchline: str) -> Manifest:
    url = f"{settings.downloader_url}/version/{patchline}.json"
    data = fetch_json(session, url, settings)
    return Manifest(version=_field(data, "version", url), sha256=_field(data, "sha256", url))


def fetch_signed_url(session: requests.Session, settings: Settings, patchline: str) -> str:
    """Needs an authenticated session; errors carry the raw body for diagnosis."""
    url = f"{settings.account_data_url}/game-assets/{patchline}"
    data = fetch_json(session, url, settings, include_body=True)
    return _field(data, "url", url)


def check_for_updates(session: requests.Session, settings: Settings) -> UpdateInfo:
    url = f"{settings.downloader_url}/version.json"
    data = fetch_json(session, url, settings)
    return UpdateInfo(latest=_field(data, "latest", url))


def downloader_url(settings: Settings) -> str:
    return f"{settings.downloader_url}/hytale-downloader.zip"
