# hytale_dl/core/download.py
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Tuple, Union

import requests

from .errors import DownloadError, OperationCancelled

logger = logging.getLogger(__name__)

CHUNK_SIZE = 32 * 1024
# cadence of byte-count reports when the server sends no Content-Length
UNKNOWN_SIZE_STEP = 1024 * 1024
DOWNLOAD_TIMEOUT: Tuple[float, float] = (10.0, 30.0)


@dataclass
class DownloadProgress:
    """Running state of one transfer. total == 0 means the size is unknown."""
    total: int = 0
    downloaded: int = 0
    percent: int = 0
    reported_bytes: int = 0

    @property
    def known_total(self) -> bool:
        return self.total > 0

    def advance(self, n: int) -> bool:
        """Account for n more bytes; True when a progress report is due."""
        self.downloaded += n
        if self.known_total:
            pct = min(self.downloaded * 100 // self.total, 100)
            if pct != self.percent:
                self.percent = pct
                return True
            return False
        if self.downloaded - self.reported_bytes >= UNKNOWN_SIZE_STEP:
            self.reported_bytes = self.downloaded
            return True
        return False


class ProgressReporter(Protocol):
    def update(self, progress: DownloadProgress) -> None: ...
    def finish(self, progress: DownloadProgress) -> None: ...


def _content_length(r: requests.Response) -> int:
    # requests decodes gzip/deflate bodies, so the declared length would not
    # match what we count
    if r.headers.get("Content-Encoding", "identity").lower() not in ("", "identity"):
        return 0
    try:
        return max(int(r.headers.get("Content-Length", "0")), 0)
    except ValueError:
        return 0


def download(
    session: requests.Session,
    url: str,
    out_path: Union[str, Path],
    reporter: Optional[ProgressReporter] = None,
    chunk_size: int = CHUNK_SIZE,
    cancel: Optional[threading.Event] = None,
    timeout: Tuple[float, float] = DOWNLOAD_TIMEOUT,
) -> int:
    """
    Stream url into out_path and return the number of bytes written.

    - Chunks are written as they arrive; memory use does not depend on size
    - Progress is reported when the whole percentage changes, or every MiB
      when the size is unknown
    - On failure the partial file is left behind; cleaning up is up to the caller
    """
    out_path = Path(out_path)
    logger.debug("Starting download %s -> %s", url, out_path)
    try:
        r = session.get(url, stream=True, timeout=timeout)
    except requests.RequestException as e:
        raise DownloadError(f"error downloading: {e}") from e

    with r:
        if r.status_code != 200:
            raise DownloadError(f"error downloading: HTTP status {r.status_code} {r.reason}".rstrip())

        progress = DownloadProgress(total=_content_length(r))
        try:
            f = open(out_path, "wb")
        except OSError as e:
            raise DownloadError(f"could not create file: {e}") from e

        with f:
            chunks = r.iter_content(chunk_size=chunk_size)
            while True:
                if cancel is not None and cancel.is_set():
                    raise OperationCancelled("download")
                try:
                    chunk = next(chunks)
                except StopIteration:
                    break
                except (requests.RequestException, OSError) as e:
                    raise DownloadError(f"error reading response: {e}") from e
                if not chunk:
                    continue
                try:
                    f.write(chunk)
                except OSError as e:
                    raise DownloadError(f"error writing to file: {e}") from e
                if progress.advance(len(chunk)) and reporter is not None:
                    reporter.update(progress)

    if reporter is not None:
        reporter.finish(progress)
    logger.debug("Download finished: %s (%d bytes)", out_path, progress.downloaded)
    return progress.downloaded
