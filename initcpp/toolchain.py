"""
toolchain.py

Responsibility: detect the local build toolchain and install missing OS packages.

Supported package managers, probed in order: apt-get, dnf, pacman.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from typing import Callable, Sequence

from initcpp.shell import run as run_command

logger = logging.getLogger(__name__)

NINJA_GENERATOR = "Ninja"
MAKE_GENERATOR = "Unix Makefiles"

Runner = Callable[[Sequence[str]], object]


class ToolchainError(RuntimeError):
    pass


@dataclass(frozen=True)
class PackageManager:
    command: str
    label: str
    install: tuple[str, ...]
    packages: dict[str, str]
    gtest_package: str
    refresh: tuple[str, ...] = ()


PACKAGE_MANAGERS: tuple[PackageManager, ...] = (
    PackageManager(
        command="apt-get",
        label="Ubuntu/Debian",
        refresh=("apt-get", "update"),
        install=("apt-get", "install", "-y"),
        packages={"cmake": "cmake", "git": "git", "ninja": "ninja-build"},
        gtest_package="libgtest-dev",
    ),
    PackageManager(
        command="dnf",
        label="Fedora/RHEL",
        install=("dnf", "install", "-y"),
        packages={"cmake": "cmake", "git": "git", "ninja": "ninja-build"},
        gtest_package="gtest-devel",
    ),
    PackageManager(
        command="pacman",
        label="Arch Linux",
        refresh=("pacman", "-Sy"),
        install=("pacman", "-S", "--noconfirm"),
        packages={"cmake": "cmake", "git": "git", "ninja": "ninja"},
        gtest_package="gtest",
    ),
)

MANUAL_PACKAGES = ("cmake", "git", "ninja-build (or ninja)", "gtest/libgtest-dev")


def has_tool(name: str) -> bool:
    return shutil.which(name) is not None


def detect_generator() -> str:
    """Prefer Ninja; fall back to Unix Makefiles when it is not installed."""
    return NINJA_GENERATOR if has_tool("ninja") else MAKE_GENERATOR


def detect_package_manager() -> PackageManager | None:
    for manager in PACKAGE_MANAGERS:
        if has_tool(manager.command):
            return manager
    return None


def _run_verbose(cmd: Sequence[str]) -> str:
    return run_command(cmd, verbose=True)


def install_dependencies(run: Runner = _run_verbose) -> PackageManager:
    """
    Install cmake, git and ninja if they are missing, plus GoogleTest.

    Commands are run through sudo. Raises ToolchainError when no supported
    package manager is available.
    """
    manager = detect_package_manager()
    if manager is None:
        lines = "\n".join(f"- {pkg}" for pkg in MANUAL_PACKAGES)
        raise ToolchainError(
            "No supported package manager found (apt-get, dnf, pacman).\n"
            f"Please install the following packages manually:\n{lines}"
        )

    logger.info("Detected %s (%s)...", manager.command, manager.label)
    if manager.refresh:
        run(["sudo", *manager.refresh])

    for tool, package in manager.packages.items():
        if not has_tool(tool):
            logger.info("Installing %s...", package)
            run(["sudo", *manager.install, package])

    logger.info("Installing GoogleTest (%s)...", manager.gtest_package)
    run(["sudo", *manager.install, manager.gtest_package])
    return manager
