from __future__ import annotations

import stat
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List

import pytest

from env_installer.lib.hwdetect import HostFacts


@dataclass
class MemoryTree:
    """In-memory steps root: directory path -> file names."""

    dirs: Dict[str, List[str]] = field(default_factory=dict)
    root: str = "<memory>"

    def add(self, rel_file: str) -> "MemoryTree":
        p = PurePosixPath(rel_file)
        parent = str(p.parent) if str(p.parent) != "." else ""
        self.dirs.setdefault(parent, []).append(p.name)
        return self

    def mkdir(self, rel_dir: str) -> "MemoryTree":
        self.dirs.setdefault(rel_dir, [])
        return self

    def is_dir(self, rel: PurePosixPath) -> bool:
        return self._key(rel) in self.dirs

    def list_files(self, rel: PurePosixPath) -> List[str]:
        return sorted(self.dirs.get(self._key(rel), []))

    @staticmethod
    def _key(rel: PurePosixPath) -> str:
        return str(rel) if rel.parts else ""


@pytest.fixture
def linux_facts() -> HostFacts:
    return HostFacts(
        platform="linux",
        arch="x86_64",
        distro="ubuntu",
        device_id="lenovo-thinkpad-x240",
        pkg_mgr="apt",
        sudo="",
    )


@pytest.fixture
def macos_facts() -> HostFacts:
    return HostFacts(platform="macos", arch="aarch64", distro="macos", device_id="macmini9-1", pkg_mgr="brew")


@pytest.fixture
def memory_tree() -> MemoryTree:
    return MemoryTree().mkdir("")


def write_step(steps_dir: Path, rel: str, body: str = "exit 0\n") -> Path:
    """Write an sh step that records its STEP_NAME into $MARKER before running body."""

    p = steps_dir / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        "set -eu\n"
        'printf "%s %s\\n" "$STEP_NAME" "$(basename "$0")" >> "$MARKER"\n' + body,
        encoding="utf-8",
    )
    p.chmod(p.stat().st_mode | stat.S_IXUSR)
    return p


def read_marker(marker: Path) -> List[str]:
    if not marker.exists():
        return []
    return marker.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def steps_env(tmp_path, monkeypatch):
    """A real steps root plus a marker file the step scripts append to."""

    steps_dir = tmp_path / "steps"
    steps_dir.mkdir()
    marker = tmp_path / "marker.txt"
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("MARKER", str(marker))
    monkeypatch.setenv("ENV_INSTALLER_LOG_DIR", str(log_dir))
    monkeypatch.delenv("ENV_INSTALLER_CONFIG", raising=False)
    monkeypatch.delenv("ENV_INSTALLER_DEVICE_ID", raising=False)
    return steps_dir, marker, log_dir


@pytest.fixture
def step_writer():
    return write_step


@pytest.fixture
def marker_lines():
    return read_marker


@pytest.fixture
def make_tree():
    return lambda: MemoryTree().mkdir("")
