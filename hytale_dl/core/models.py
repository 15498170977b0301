from __future__ import annotations
import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

# Tokens this close to expiry are treated as expired so a request does not
# race the server-side cutoff.
EXPIRY_DELTA = timedelta(seconds=10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_expiry(expiry: Optional[datetime]) -> Optional[str]:
    if expiry is None:
        return None
    return expiry.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_expiry(raw: Any) -> Optional[datetime]:
    """RFC 3339 text -> aware datetime. Accepts 'Z' and nanosecond fractions."""
    if raw in (None, ""):
        return None
    if not isinstance(raw, str):
        raise ValueError(f"expiry must be a string, got {type(raw).__name__}")
    s = raw.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    # RFC3339Nano trims trailing zeros; fromisoformat() before 3.11 wants exactly 6 digits
    s = re.sub(r"\.(\d+)", lambda m: "." + m.group(1)[:6].ljust(6, "0"), s)
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    if dt.year <= 1:  # zero time: never expires
        return None
    return dt


@dataclass(frozen=True)
class OAuthToken:
    """Token as issued by the identity provider."""
    access_token: str
    token_type: str = "Bearer"
    refresh_token: str = ""
    expiry: Optional[datetime] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any], now: Optional[datetime] = None) -> "OAuthToken":
        access = data.get("access_token")
        if not isinstance(access, str) or not access:
            raise ValueError("server response missing access_token")
        expiry = None
        expires_in = data.get("expires_in")
        if expires_in not in (None, "", 0, "0"):
            expiry = (now or _utcnow()) + timedelta(seconds=int(expires_in))
        return cls(
            access_token=access,
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token") or "",
            expiry=expiry,
        )

    def expired(self, now: Optional[datetime] = None) -> bool:
        if self.expiry is None:
            return False
        return self.expiry - EXPIRY_DELTA <= (now or _utcnow())

    @property
    def valid(self) -> bool:
        return bool(self.access_token) and not self.expired()

    def authorization(self) -> str:
        # servers reject lower-case "bearer" more often than not
        kind = "Bearer" if self.token_type.lower() == "bearer" else self.token_type
        return f"{kind} {self.access_token}"


@dataclass(frozen=True)
class SessionToken:
    """Provider token fields plus the environment tag they were issued for."""
    access_token: str
    refresh_token: str
    expiry: Optional[datetime]
    branch: str
    token_type: str = "Bearer"

    @classmethod
    def from_oauth(cls, tok: OAuthToken, branch: str) -> "SessionToken":
        return cls(
            access_token=tok.access_token,
            refresh_token=tok.refresh_token,
            expiry=tok.expiry,
            branch=branch,
            token_type=tok.token_type,
        )

    def to_oauth(self) -> OAuthToken:
        return OAuthToken(
            access_token=self.access_token,
            token_type=self.token_type,
            refresh_token=self.refresh_token,
            expiry=self.expiry,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
            "expiry": format_expiry(self.expiry),
            "branch": self.branch,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionToken":
        access = data.get("access_token")
        if not isinstance(access, str) or not access:
            raise ValueError("missing access_token")
        branch = data.get("branch")
        if not isinstance(branch, str):
            raise ValueError("missing branch")
        return cls(
            access_token=access,
            refresh_token=data.get("refresh_token") or "",
            expiry=parse_expiry(data.get("expiry")),
            branch=branch,
            token_type=data.get("token_type") or "Bearer",
        )


@dataclass(frozen=True)
class DeviceAuthorization:
    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str = ""
    expires_in: int = 0
    interval: int = 5
    # monotonic clock reading when the code was issued
    issued_at: float = 0.0

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "DeviceAuthorization":
        try:
            device_code = data["device_code"]
            user_code = data["user_code"]
        except KeyError as e:
            raise ValueError(f"device authorization response missing {e.args[0]}") from None
        # some providers still send the draft-era "verification_url"
        uri = data.get("verification_uri") or data.get("verification_url") or ""
        return cls(
            device_code=device_code,
            user_code=user_code,
            verification_uri=uri,
            verification_uri_complete=data.get("verification_uri_complete") or "",
            expires_in=int(data.get("expires_in") or 0),
            interval=int(data.get("interval") or 5),
            issued_at=time.monotonic(),
        )

    @property
    def deadline(self) -> Optional[float]:
        if self.expires_in <= 0:
            return None
        return self.issued_at + self.expires_in


@dataclass(frozen=True)
class Manifest:
    version: str
    sha256: str


@dataclass(frozen=True)
class UpdateInfo:
    latest: str
