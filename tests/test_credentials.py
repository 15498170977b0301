"""Tests for the credentials file."""

import json
import os
import stat
import sys
from datetime import datetime, timezone

import pytest

from hytale_dl.core.credentials import load_credentials, save_credentials
from hytale_dl.core.errors import BranchMismatchError, CredentialsError
from hytale_dl.core.models import SessionToken


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")


class TestLoadCredentials:
    """Loading and environment tag checks."""

    def test_round_trip(self, tmp_path, session_token):
        path = tmp_path / "creds.json"
        save_credentials(path, session_token)

        loaded = load_credentials(path, "release")

        assert loaded == session_token

    def test_branch_mismatch(self, tmp_path, session_token):
        path = tmp_path / "creds.json"
        save_credentials(path, session_token)

        with pytest.raises(BranchMismatchError) as exc:
            load_credentials(path, "development")

        assert exc.value.stored == "release"
        assert exc.value.current == "development"
        assert "'release'" in str(exc.value)
        assert isinstance(exc.value, CredentialsError)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CredentialsError, match="no saved credentials"):
            load_credentials(tmp_path / "nope.json", "release")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "creds.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CredentialsError) as exc:
            load_credentials(path, "release")
        assert not isinstance(exc.value, BranchMismatchError)

    def test_missing_branch_is_malformed(self, tmp_path):
        path = tmp_path / "creds.json"
        _write(path, {"access_token": "a", "refresh_token": "r"})

        with pytest.raises(CredentialsError, match="malformed"):
            load_credentials(path, "release")

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "creds.json"
        _write(path, ["a", "b"])

        with pytest.raises(CredentialsError):
            load_credentials(path, "release")

    def test_accepts_rfc3339_with_nanoseconds(self, tmp_path):
        path = tmp_path / "creds.json"
        _write(path, {
            "access_token": "a",
            "token_type": "Bearer",
            "refresh_token": "r",
            "expiry": "2031-05-04T03:02:01.123456789Z",
            "branch": "release",
        })

        tok = load_credentials(path, "release")

        assert tok.expiry == datetime(2031, 5, 4, 3, 2, 1, 123456, tzinfo=timezone.utc)

    @pytest.mark.parametrize("expiry, micros", [
        ("2031-05-04T03:02:01.1234Z", 123400),
        ("2031-05-04T03:02:01.5Z", 500000),
        ("2031-05-04T03:02:01Z", 0),
    ])
    def test_accepts_trimmed_fractions(self, tmp_path, expiry, micros):
        path = tmp_path / "creds.json"
        _write(path, {"access_token": "a", "refresh_token": "r", "expiry": expiry, "branch": "release"})

        tok = load_credentials(path, "release")

        assert tok.expiry == datetime(2031, 5, 4, 3, 2, 1, micros, tzinfo=timezone.utc)

    def test_zero_expiry_means_none(self, tmp_path):
        path = tmp_path / "creds.json"
        _write(path, {"access_token": "a", "expiry": "0001-01-01T00:00:00Z", "branch": "release"})

        assert load_credentials(path, "release").expiry is None


class TestSaveCredentials:
    """Serialisation and file permissions."""

    def test_layout(self, tmp_path, session_token):
        path = tmp_path / "creds.json"
        save_credentials(path, session_token)

        data = json.loads(path.read_text(encoding="utf-8"))

        assert set(data) == {"access_token", "token_type", "refresh_token", "expiry", "branch"}
        assert data["branch"] == "release"
        assert data["expiry"].endswith("Z")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only_permissions(self, tmp_path, session_token):
        path = tmp_path / "creds.json"
        save_credentials(path, session_token)

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_overwrites_previous(self, tmp_path, session_token):
        path = tmp_path / "creds.json"
        path.write_text("old garbage that is longer than anything we write" * 20, encoding="utf-8")

        newer = SessionToken(
            access_token="new", refresh_token="r", expiry=None, branch="release",
        )
        save_credentials(path, newer)

        assert load_credentials(path, "release") == newer
        assert [p.name for p in tmp_path.iterdir()] == ["creds.json"]

    def test_unwritable_target(self, tmp_path, session_token):
        target = tmp_path / "creds.json"
        target.mkdir()

        with pytest.raises(CredentialsError):
            save_credentials(target, session_token)
        assert [p.name for p in tmp_path.iterdir()] == ["creds.json"]
