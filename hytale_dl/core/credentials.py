# hytale_dl/core/credentials.py
from __future__ import annotations
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from .errors import BranchMismatchError, CredentialsError
from .models import SessionToken

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def load_credentials(path: PathLike, branch: str) -> SessionToken:
    """
    Read a saved session. Raises CredentialsError when there is nothing usable
    on disk, BranchMismatchError when it was issued for another environment.
    """
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise CredentialsError(f"no saved credentials at {p}") from None
    except (OSError, UnicodeDecodeError) as e:
        raise CredentialsError(f"could not read credentials {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise CredentialsError(f"credentials file {p} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise CredentialsError(f"credentials file {p} has unexpected layout")
    try:
        tok = SessionToken.from_dict(raw)
    except ValueError as e:
        raise CredentialsError(f"credentials file {p} is malformed: {e}") from e

    if tok.branch != branch:
        raise BranchMismatchError(tok.branch, branch)

    logger.debug("Loaded credentials from %s (branch=%s)", p, tok.branch)
    return tok


def save_credentials(path: PathLike, tok: SessionToken) -> None:
    """Write owner-only JSON; the old file is swapped out in a single rename."""
    p = Path(path)
    data = json.dumps(tok.to_dict(), indent=2)
    parent = p.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=parent)
    except OSError as e:
        raise CredentialsError(f"could not save credentials to {p}: {e}") from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.chmod(tmp, 0o600)
        os.replace(tmp, p)
    except OSError as e:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise CredentialsError(f"could not save credentials to {p}: {e}") from e
    logger.debug("Saved credentials to %s", p)
