# File: scope_spider/output.py
"""scope_spider.output: Sink for discovered artifacts.

Every artifact is written as one line to the console and, when an output
directory is configured, appended to ``<dir>/<host_with_underscores>``.
Artifacts are also kept in memory for the summary report.
"""
from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import IO, List, Optional, Union

import click

from scope_spider.crawler.models import Artifact
from scope_spider.logger import logger
from scope_spider.utils import output_filename

__all__ = ["Sink"]


class Sink:
    """Append-only reporter; best effort, never raises on write problems."""

    def __init__(
        self,
        site: str,
        *,
        output_dir: Union[str, Path, None] = None,
        json_lines: bool = False,
        stream: Optional[IO[str]] = None,
    ) -> None:
        self.site = site
        self.json_lines = json_lines
        self.stream = stream if stream is not None else sys.stdout
        self.artifacts: List[Artifact] = []
        self._lock = threading.Lock()
        self._file: Optional[IO[str]] = None
        self.path: Optional[Path] = None
        if output_dir is not None:
            directory = Path(output_dir).expanduser()
            directory.mkdir(parents=True, exist_ok=True)
            self.path = directory / output_filename(site)
            self._file = self.path.open("a", encoding="utf-8")

    def render(self, artifact: Artifact) -> str:
        return artifact.to_json(self.site) if self.json_lines else artifact.format()

    def emit(self, artifact: Artifact) -> str:
        line = self.render(artifact)
        with self._lock:
            self.artifacts.append(artifact)
            click.echo(line, file=self.stream)
            if self._file is not None:
                try:
                    self._file.write(line + "\n")
                    self._file.flush()
                except OSError as exc:
                    logger.warning("Failed to write %s: %s", self.path, exc)
        return line

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    def __enter__(self) -> Sink:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
