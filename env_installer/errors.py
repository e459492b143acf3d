"""Error types raised by the resolution and execution engine."""

from __future__ import annotations

from typing import Optional


class InstallerError(RuntimeError):
    """Base class for every error that ends a run with exit code 1."""


class UsageError(InstallerError):
    """Raised for unknown flags, stray positionals or an empty --steps."""


class ConfigError(InstallerError):
    pass


class UnsupportedPlatform(InstallerError):
    pass


class MissingRootDirectory(InstallerError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Steps directory not found: {path}")
        self.path = path


class StepNotFound(InstallerError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown step: {name}")
        self.name = name


class StepFailed(InstallerError):
    def __init__(self, name: str, status: int, rel_path: Optional[str] = None) -> None:
        where = f" ({rel_path})" if rel_path else ""
        super().__init__(f"Step '{name}'{where} failed with exit status {status}")
        self.name = name
        self.status = status
        self.rel_path = rel_path
