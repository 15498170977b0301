from __future__ import annotations
from typing import Tuple
import requests
from requests.adapters import HTTPAdapter, Retry

from .. import __version__

UA = f"hytale-downloader/{__version__}"
DEFAULT_TIMEOUT: Tuple[float, float] = (10.0, 15.0)


class _TimeoutAdapter(HTTPAdapter):
    """HTTPAdapter that fills in a (connect, read) timeout when a call gives none."""

    def __init__(self, timeout: Tuple[float, float], **kw) -> None:
        self._timeout = timeout
        super().__init__(**kw)

    def send(self, request, **kw):
        if kw.get("timeout") is None:
            kw["timeout"] = self._timeout
        return super().send(request, **kw)


def make_session(timeout: Tuple[float, float] = DEFAULT_TIMEOUT) -> requests.Session:
    # GETs of manifests and archives are retried; token POSTs must fail fast
    # so a rejected refresh token surfaces at once.
    retries = Retry(
        total=2, backoff_factor=0.5,
        status_forcelist=(429, 502, 503, 504),
        allowed_methods=frozenset(["GET"]),
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = _TimeoutAdapter(timeout, max_retries=retries)
    s = requests.Session()
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers.update({"User-Agent": UA})
    return s
