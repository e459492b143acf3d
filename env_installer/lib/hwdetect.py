from __future__ import annotations

import logging
import os
import platform
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from ..errors import UnsupportedPlatform
from .command import run_cmd

logger = logging.getLogger(__name__)

UNKNOWN_DEVICE = "unknown"

OS_RELEASE = Path("/etc/os-release")
DMI_DIR = Path("/sys/devices/virtual/dmi/id")

_SUDO_CANDIDATES = ("sudo", "doas", "run0", "pkexec", "sudo-rs")

Which = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class HostFacts:
    """Immutable classifier output, computed once per run."""

    platform: str
    arch: str
    distro: str
    device_id: str = UNKNOWN_DEVICE
    pkg_mgr: str = "none"
    sudo: str = ""

    def has_device(self) -> bool:
        return bool(self.device_id) and self.device_id != UNKNOWN_DEVICE


def _read_text(path: Path) -> Optional[str]:
    try:
        txt = path.read_text(encoding="utf-8", errors="ignore").strip()
        return txt or None
    except OSError:
        return None


def slugify_device_id(value: str) -> str:
    """'LENOVO ThinkPad X240' -> 'lenovo-thinkpad-x240'."""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def detect_platform(system: Optional[str] = None) -> str:
    system = system if system is not None else platform.system()
    if system == "Darwin":
        return "macos"
    if system == "Linux":
        return "linux"
    raise UnsupportedPlatform(f"Unsupported platform: {system}")


def normalize_arch(machine: Optional[str] = None) -> str:
    machine = machine if machine is not None else platform.machine()
    m = machine.lower()
    if m in ("x86_64", "amd64"):
        return "x86_64"
    if m in ("aarch64", "arm64"):
        return "aarch64"
    logger.warning("Unknown architecture %s; using raw value", machine)
    return machine


def parse_os_release(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        out[key.strip()] = value.strip().strip("\"'")
    return out


def detect_distro(plat: str, *, os_release: Path = OS_RELEASE) -> str:
    """Coarse distro id used to pick step scopes, not for version logic.

    Omarchy keeps its own id even though it is layered on another base,
    so it can carry its own overrides.
    """

    if plat == "macos":
        return "macos"

    txt = _read_text(os_release)
    if txt is None:
        logger.warning("No %s found; using distro 'linux-unknown'", os_release)
        return "linux-unknown"

    distro_id = parse_os_release(txt).get("ID", "")
    if distro_id in ("ubuntu", "debian", "proxmox", "omarchy"):
        return distro_id
    if distro_id in ("arch", "endeavouros", "manjaro"):
        return "arch"
    logger.warning("Unrecognised distro ID '%s'; using it as-is", distro_id)
    return distro_id or "linux-unknown"


def detect_pkg_manager(plat: str, *, which: Which = shutil.which) -> str:
    if plat == "macos":
        return "brew" if which("brew") else "none"
    if which("apt-get"):
        return "apt"
    if which("pacman"):
        return "pacman"
    return "none"


def _macos_model_identifier(which: Which) -> Optional[str]:
    if not which("system_profiler"):
        return None
    try:
        r = run_cmd(["system_profiler", "SPHardwareDataType"], check=False)
    except OSError:
        return None
    for line in r.stdout.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() == "Model Identifier":
            return value.strip() or None
    return None


def detect_device_id(
    plat: str,
    *,
    override: Optional[str] = None,
    dmi_dir: Path = DMI_DIR,
    which: Which = shutil.which,
) -> str:
    """Stable-ish machine id for device-scoped steps.

    Priority: explicit override, Linux DMI vendor+product, macOS model
    identifier, then the 'unknown' sentinel.
    """

    if override:
        return slugify_device_id(override)

    if plat == "linux":
        product = _read_text(dmi_dir / "product_name")
        vendor = _read_text(dmi_dir / "sys_vendor")
        if product:
            return slugify_device_id(f"{vendor} {product}" if vendor else product)
        logger.warning("Could not determine device id from DMI; using '%s'", UNKNOWN_DEVICE)
        return UNKNOWN_DEVICE

    if plat == "macos":
        model = _macos_model_identifier(which)
        if model:
            return slugify_device_id(model)
        logger.warning("Could not determine device id on macOS; using '%s'", UNKNOWN_DEVICE)
        return UNKNOWN_DEVICE

    return UNKNOWN_DEVICE


def detect_sudo(*, euid: Optional[int] = None, which: Which = shutil.which) -> str:
    euid = os.geteuid() if euid is None else euid
    if euid == 0:
        return ""
    for candidate in _SUDO_CANDIDATES:
        if which(candidate):
            return candidate
    logger.warning("No sudo-like command found; operations requiring root will fail")
    return ""


def detect_host(*, device_override: Optional[str] = None) -> HostFacts:
    plat = detect_platform()
    facts = HostFacts(
        platform=plat,
        arch=normalize_arch(),
        distro=detect_distro(plat),
        device_id=detect_device_id(plat, override=device_override),
        pkg_mgr=detect_pkg_manager(plat),
        sudo=detect_sudo(),
    )
    logger.debug(
        "Host: platform=%s distro=%s arch=%s device=%s pkg_mgr=%s",
        facts.platform,
        facts.distro,
        facts.arch,
        facts.device_id,
        facts.pkg_mgr,
    )
    return facts
