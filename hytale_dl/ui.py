#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Console output for the downloader (rich)

- Device-code prompt shown while the user authorizes in a browser
- Download progress bar fed by core.download's progress reports
- Update banner, status and error lines
"""

from __future__ import annotations
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn, DownloadColumn, Progress, TextColumn, TimeRemainingColumn, TransferSpeedColumn
)

from .core.download import DownloadProgress
from .core.models import DeviceAuthorization

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


# ────────────────────────── Auth ──────────────────────────
def show_device_code(da: DeviceAuthorization) -> None:
    lines = [
        "Please visit the following URL to authenticate:",
        f"[bold cyan]{escape(da.verification_uri)}[/]",
    ]
    if da.verification_uri_complete:
        lines += [
            "",
            "Or visit the following URL and enter the code:",
            f"[bold cyan]{escape(da.verification_uri_complete)}[/]",
        ]
    lines += ["", f"Authorization code: [bold yellow]{escape(da.user_code)}[/]"]
    console.print(Panel.fit("\n".join(lines), title="Sign in", border_style="cyan"))


# ────────────────────────── Download progress ──────────────────────────
class ConsoleProgress:
    """
    ProgressReporter backed by a rich progress bar. The bar is created on the
    first report, once we know whether the size is known.
    """

    def __init__(self, label: str, console: Console = console) -> None:
        self._label = label
        self._console = console
        self._progress: Optional[Progress] = None
        self._task = None

    def _start(self, p: DownloadProgress) -> None:
        if p.known_total:
            columns = (
                TextColumn(self._label),
                BarColumn(bar_width=50),
                TextColumn("{task.percentage:>3.0f}%"),
                DownloadColumn(binary_units=True),
                TransferSpeedColumn(),
                TimeRemainingColumn(),
            )
        else:
            columns = (TextColumn(self._label), DownloadColumn(binary_units=True), TransferSpeedColumn())
        self._progress = Progress(*columns, console=self._console, transient=False)
        self._progress.start()
        self._task = self._progress.add_task("dl", total=p.total if p.known_total else None)

    def update(self, p: DownloadProgress) -> None:
        if self._progress is None:
            self._start(p)
        self._progress.update(self._task, completed=p.downloaded)

    def finish(self, p: Optional[DownloadProgress] = None) -> None:
        # the last report may be up to a MiB behind, or missing for small files
        if p is not None:
            self.update(p)
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def __enter__(self) -> "ConsoleProgress":
        return self

    def __exit__(self, *exc) -> None:
        self.finish()


# ────────────────────────── Messages ──────────────────────────
def update_banner(latest: str, current: str, url: str) -> None:
    console.print(Panel(
        f"A new version of hytale-downloader is available: [bold green]{latest}[/] (current: {current})\n"
        f"Download it from: [link={url}]{url}[/link]",
        border_style="green", expand=False,
    ))


def info(msg: str) -> None:
    console.print(msg)


def warn(msg: str) -> None:
    err_console.print(f"[yellow]warning:[/] {escape(msg)}")


def error(msg: str) -> None:
    err_console.print(f"[red]error:[/] {escape(msg)}")
