from __future__ import annotations

import itertools
import sys
from pathlib import Path

import pytest

from env_installer.errors import MissingRootDirectory
from env_installer.lib.hwdetect import HostFacts
from env_installer.registry import build_registry, step_name_from_filename
from env_installer.scopes import LocalStepTree, ScopeTier, enumerate_scopes


@pytest.mark.parametrize(
    "filename,expected",
    [
        ("0010-env-info.sh", "env-info"),
        ("0040-install-docker.sh", "install-docker"),
        ("10-tool.py", "tool"),
        ("README.md", None),
        ("env-info.sh", None),
        ("0010-env-info.sh.bak", None),
        ("0000-TEMPLATE-step.txt", None),
    ],
)
def test_step_name_from_filename(filename, expected) -> None:
    assert step_name_from_filename(filename) == expected


def test_more_specific_tier_wins(memory_tree, linux_facts) -> None:
    memory_tree.add("0010-tools.sh").add("0020-docker.sh")
    memory_tree.add("linux/0010-tools.sh")
    memory_tree.add("linux/ubuntu/0015-tools.sh")
    memory_tree.add("devices/lenovo-thinkpad-x240/0030-tools.sh")

    registry = build_registry(memory_tree, enumerate_scopes(linux_facts, memory_tree))

    assert registry["tools"].rel_path == "devices/lenovo-thinkpad-x240/0030-tools.sh"
    assert registry["tools"].tier is ScopeTier.DEVICE
    assert registry["docker"].rel_path == "0020-docker.sh"
    assert registry["docker"].tier is ScopeTier.GENERIC
    assert sorted(registry) == ["docker", "tools"]


def test_precedence_holds_for_any_tier_subset(make_tree, linux_facts) -> None:
    tiers = {
        ScopeTier.GENERIC: "",
        ScopeTier.PLATFORM: "linux",
        ScopeTier.DISTRO: "linux/ubuntu",
        ScopeTier.ARCH: "linux/arch/x86_64",
        ScopeTier.DEVICE: "devices/lenovo-thinkpad-x240",
    }
    for size in range(1, len(tiers) + 1):
        for subset in itertools.combinations(tiers, size):
            tree = make_tree()
            for tier in reversed(subset):
                prefix = f"{tiers[tier]}/" if tiers[tier] else ""
                tree.add(f"{prefix}00{int(tier)}0-shared.sh")
            registry = build_registry(tree, enumerate_scopes(linux_facts, tree))
            assert registry["shared"].tier is max(subset)


def test_non_step_files_are_ignored(memory_tree, linux_facts) -> None:
    memory_tree.add("README.md").add(".0010-hidden.sh").add("notes.txt").add("0010-real.sh")
    registry = build_registry(memory_tree, enumerate_scopes(linux_facts, memory_tree))
    assert list(registry) == ["real"]


def test_duplicate_name_in_one_dir_uses_last_sorted(memory_tree, linux_facts, caplog) -> None:
    memory_tree.add("0020-dup.sh").add("0010-dup.sh")
    registry = build_registry(memory_tree, enumerate_scopes(linux_facts, memory_tree))
    assert registry["dup"].rel_path == "0020-dup.sh"
    assert "defined twice" in caplog.text


def test_missing_root_is_fatal(tmp_path: Path, linux_facts) -> None:
    tree = LocalStepTree(root=str(tmp_path / "nope"))
    with pytest.raises(MissingRootDirectory) as ei:
        build_registry(tree, enumerate_scopes(linux_facts, tree))
    assert str(tmp_path / "nope") in str(ei.value)


def test_resolved_step_argv_uses_interpreter(tmp_path: Path) -> None:
    root = tmp_path / "steps"
    (root / "macos").mkdir(parents=True)
    (root / "macos" / "0010-homebrew.sh").write_text("", encoding="utf-8")
    (root / "0020-report.py").write_text("", encoding="utf-8")

    facts = HostFacts(platform="macos", arch="aarch64", distro="macos")
    tree = LocalStepTree(root=str(root))
    registry = build_registry(tree, enumerate_scopes(facts, tree))

    assert registry["homebrew"].argv(str(root)) == ["sh", str(root / "macos" / "0010-homebrew.sh")]
    assert registry["report"].argv(str(root)) == [sys.executable, str(root / "0020-report.py")]


def test_homebrew_override_on_macos(tmp_path: Path, macos_facts) -> None:
    root = tmp_path / "steps"
    (root / "macos").mkdir(parents=True)
    (root / "010-homebrew.sh").write_text("", encoding="utf-8")
    (root / "macos" / "010-homebrew.sh").write_text("", encoding="utf-8")

    tree = LocalStepTree(root=str(root))
    registry = build_registry(tree, enumerate_scopes(macos_facts, tree))
    assert registry["homebrew"].rel_path == "macos/010-homebrew.sh"
