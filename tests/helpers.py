"""
Fakes shared by the downloader tests.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from hytale_dl.core.models import OAuthToken


class FakeResponse:
    """Just enough of requests.Response for the code under test."""

    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        reason: str = "OK",
        chunks: Optional[List[bytes]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.headers = dict(headers or {})
        self._json = json_data
        self._body = json.dumps(json_data).encode() if json_data is not None and not body else body
        self._chunks = chunks
        self._error = error
        self.requested_chunk_size: Optional[int] = None
        self.closed = False

    @property
    def text(self) -> str:
        return self._body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        if self._json is None:
            return json.loads(self._body.decode())
        return self._json

    def iter_content(self, chunk_size: int = 1):
        self.requested_chunk_size = chunk_size
        if self._chunks is not None:
            yield from self._chunks
        else:
            for i in range(0, len(self._body), chunk_size):
                yield self._body[i:i + chunk_size]
        if self._error is not None:
            raise self._error

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


Route = Union[FakeResponse, Exception, Callable[..., FakeResponse]]


class FakeSession:
    """requests.Session stand-in: GETs are routed by URL, POSTs served in order."""

    def __init__(self, routes: Optional[Dict[str, Route]] = None, posts: Optional[List[Route]] = None) -> None:
        self.routes: Dict[str, Route] = dict(routes or {})
        self.posts: List[Route] = list(posts or [])
        self.get_calls: List[Dict[str, Any]] = []
        self.post_calls: List[Dict[str, Any]] = []

    @staticmethod
    def _serve(route: Route, url: str, kwargs: Dict[str, Any]) -> FakeResponse:
        if isinstance(route, Exception):
            raise route
        if callable(route) and not isinstance(route, FakeResponse):
            return route(url, **kwargs)
        return route

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.get_calls.append({"url": url, **kwargs})
        if url not in self.routes:
            return FakeResponse(status_code=404, reason="Not Found", body=b"no route")
        return self._serve(self.routes[url], url, kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.post_calls.append({"url": url, **kwargs})
        if not self.posts:
            raise AssertionError(f"unexpected POST {url}")
        return self._serve(self.posts.pop(0), url, kwargs)


class StubTokenSource:
    """Token source returning a scripted sequence; the last entry repeats."""

    def __init__(self, *results: Union[OAuthToken, Exception]) -> None:
        self.results = list(results)
        self.calls = 0

    def token(self) -> OAuthToken:
        self.calls += 1
        res = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(res, Exception):
            raise res
        return res


def make_token(access: str = "access-1", refresh: str = "refresh-1", expires_in: int = 3600) -> OAuthToken:
    return OAuthToken(
        access_token=access,
        refresh_token=refresh,
        expiry=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )


