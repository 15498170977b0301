# hytale_dl/core/oauth.py
"""
OAuth 2.0 plumbing for the downloader.

- Device Authorization Grant (RFC 8628): device_auth() + device_access_token()
- RefreshTokenSource: hands out the cached token, refreshes it when it expires
- RefreshingTokenSource: wraps any token source and reports every rotation
  to a callback exactly once, so the caller can persist it
- BearerAuth / new_client(): a requests.Session that authenticates each request
"""
from __future__ import annotations
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import requests
from requests.auth import AuthBase

from .config import Settings
from .errors import AuthenticationError, OperationCancelled, TransportError
from .http import make_session
from .models import DeviceAuthorization, OAuthToken, SessionToken

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"
SLOW_DOWN_STEP = 5  # seconds added to the poll interval on "slow_down"


class TokenSource(Protocol):
    def token(self) -> OAuthToken: ...


# ────────────────────────── token endpoint I/O ──────────────────────────
def _post_form(
    session: requests.Session, url: str, data: Dict[str, str], settings: Settings
) -> Tuple[int, Dict[str, Any]]:
    try:
        r = session.post(
            url, data=data, headers={"Accept": "application/json"}, timeout=settings.timeout
        )
    except requests.RequestException as e:
        raise TransportError(f"POST {url}: {e}") from e
    try:
        payload = r.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    if r.status_code != 200 and not payload.get("error"):
        payload = {"error": f"http_{r.status_code}", "error_description": r.text[:200]}
    return r.status_code, payload


def _describe(payload: Dict[str, Any]) -> str:
    code = payload.get("error", "unknown_error")
    desc = payload.get("error_description")
    return f"{code}: {desc}" if desc else str(code)


# ────────────────────────── device authorization ──────────────────────────
def device_auth(settings: Settings, session: Optional[requests.Session] = None) -> DeviceAuthorization:
    """Ask the provider for a device code and the URL the user has to visit."""
    session = session or make_session(settings.timeout)
    cfg = settings.oauth
    status, payload = _post_form(
        session,
        cfg.device_auth_url,
        {"client_id": cfg.client_id, "scope": " ".join(cfg.scopes)},
        settings,
    )
    if status != 200:
        raise AuthenticationError(
            f"error requesting device code: {_describe(payload)}", payload.get("error", "")
        )
    try:
        return DeviceAuthorization.from_response(payload)
    except ValueError as e:
        raise AuthenticationError(f"error requesting device code: {e}") from e


def device_access_token(
    settings: Settings,
    da: DeviceAuthorization,
    session: Optional[requests.Session] = None,
    cancel: Optional[threading.Event] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> SessionToken:
    """Poll the token endpoint until the user approves, denies or the code expires."""
    session = session or make_session(settings.timeout)
    cfg = settings.oauth
    form = {
        "grant_type": DEVICE_CODE_GRANT,
        "device_code": da.device_code,
        "client_id": cfg.client_id,
    }
    interval = max(da.interval, 1)
    deadline = da.deadline

    while True:
        if cancel is not None:
            if cancel.wait(interval):
                raise OperationCancelled("device authorization")
        else:
            sleep(interval)
        if deadline is not None and clock() >= deadline:
            raise AuthenticationError("device code expired before authorization", "expired_token")

        status, payload = _post_form(session, cfg.token_url, form, settings)
        if status == 200:
            try:
                tok = OAuthToken.from_response(payload)
            except ValueError as e:
                raise AuthenticationError(f"bad token response: {e}") from e
            logger.debug("Device authorization complete")
            return SessionToken.from_oauth(tok, settings.branch)

        code = payload.get("error", "")
        if code == "authorization_pending":
            continue
        if code == "slow_down":
            interval += SLOW_DOWN_STEP
            logger.debug("Provider asked to slow down, polling every %ds", interval)
            continue
        raise AuthenticationError(f"device authorization failed: {_describe(payload)}", code)


# ────────────────────────── token sources ──────────────────────────
class RefreshTokenSource:
    """Returns the current token while it is valid, refreshes it otherwise."""

    def __init__(
        self,
        settings: Settings,
        tok: OAuthToken,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings
        self._tok = tok
        self._session = session or make_session(settings.timeout)
        self._mu = threading.Lock()

    def token(self) -> OAuthToken:
        with self._mu:
            if self._tok.valid:
                return self._tok
            self._tok = self._refresh(self._tok)
            return self._tok

    def _refresh(self, old: OAuthToken) -> OAuthToken:
        if not old.refresh_token:
            raise AuthenticationError("token expired and refresh token is not set")
        cfg = self._settings.oauth
        logger.debug("Refreshing access token")
        status, payload = _post_form(
            self._session,
            cfg.token_url,
            {
                "grant_type": "refresh_token",
                "refresh_token": old.refresh_token,
                "client_id": cfg.client_id,
            },
            self._settings,
        )
        if status != 200:
            raise AuthenticationError(
                f"could not refresh token: {_describe(payload)}", payload.get("error", "")
            )
        try:
            new = OAuthToken.from_response(payload)
        except ValueError as e:
            raise AuthenticationError(f"could not refresh token: {e}") from e
        if not new.refresh_token:
            # provider did not rotate the refresh token; keep using the old one
            new = OAuthToken(new.access_token, new.token_type, old.refresh_token, new.expiry)
        return new


class RefreshingTokenSource:
    """
    Wraps a token source and reports rotations.

    Whenever the wrapped source hands out an access token different from the
    last one seen, ``on_refresh`` receives it as a SessionToken tagged with
    ``branch``. Detection and callback run under one lock, so each rotation is
    reported exactly once no matter how many threads call token().
    """

    def __init__(
        self,
        base: TokenSource,
        last: OAuthToken,
        branch: str,
        on_refresh: Optional[Callable[[SessionToken], None]] = None,
    ) -> None:
        self._base = base
        self._last = last
        self._branch = branch
        self._on_refresh = on_refresh
        self._mu = threading.Lock()

    @property
    def last(self) -> OAuthToken:
        return self._last

    def token(self) -> OAuthToken:
        with self._mu:
            tok = self._base.token()
            if tok.access_token != self._last.access_token:
                logger.debug("Access token rotated")
                if self._on_refresh is not None:
                    self._on_refresh(SessionToken.from_oauth(tok, self._branch))
                # only marked as seen once the callback went through
                self._last = tok
            return tok


def watch_token_source(
    settings: Settings,
    tok: SessionToken,
    on_refresh: Optional[Callable[[SessionToken], None]] = None,
    session: Optional[requests.Session] = None,
) -> RefreshingTokenSource:
    oauth_tok = tok.to_oauth()
    base = RefreshTokenSource(settings, oauth_tok, session=session)
    return RefreshingTokenSource(base, oauth_tok, settings.branch, on_refresh)


# ────────────────────────── authenticated transport ──────────────────────────
class BearerAuth(AuthBase):
    def __init__(self, source: TokenSource) -> None:
        self.source = source

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        r.headers["Authorization"] = self.source.token().authorization()
        return r


def new_client(source: TokenSource) -> requests.Session:
    s = make_session()
    s.auth = BearerAuth(source)
    return s
