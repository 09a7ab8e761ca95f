"""Runtime settings for pyps."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from pyps.procfs import DEFAULT_PROC_ROOT
from pyps.report import SortKey

ENV_PROC_ROOT = "PYPS_PROC_ROOT"
ENV_WORKERS = "PYPS_WORKERS"
ENV_LOG_LEVEL = "PYPS_LOG_LEVEL"


@dataclass(slots=True, frozen=True)
class Settings:
    """Settings for one run, from the environment and command line."""

    proc_root: Path = DEFAULT_PROC_ROOT
    workers: int = 1
    log_level: str = "WARNING"
    sort: SortKey | None = None
    tui: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        if environ is None:
            environ = os.environ
        settings = cls()
        if environ.get(ENV_PROC_ROOT):
            settings = replace(settings, proc_root=Path(environ[ENV_PROC_ROOT]))
        if environ.get(ENV_WORKERS):
            try:
                workers = int(environ[ENV_WORKERS])
            except ValueError:
                raise ValueError(f"{ENV_WORKERS} must be an integer, got {environ[ENV_WORKERS]!r}") from None
            settings = replace(settings, workers=workers)
        if environ.get(ENV_LOG_LEVEL):
            settings = replace(settings, log_level=environ[ENV_LOG_LEVEL])
        return settings.validated()

    def validated(self) -> "Settings":
        """Return a copy with workers clamped and the log level checked."""
        level = self.log_level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {self.log_level!r}")
        return replace(self, workers=max(1, self.workers), log_level=level)

    @property
    def log_level_value(self) -> int:
        """Get the log level as a logging constant."""
        return logging.getLevelName(self.log_level)
