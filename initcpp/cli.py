"""
cli.py

Responsibility: CLI entrypoint for initcpp.

High-level flow:
1) Parse options -> `ProjectOptions` (defaults < user config < flags)
2) Refuse a non-empty project directory
3) Create the directory layout, `git init`, render the template
4) Commit the initial files, optionally create a GitHub remote and push
5) Print next steps and configure the build directory with CMake

`-i` short-circuits all of the above and installs the toolchain instead.

This module orchestrates behavior but keeps concerns isolated:
- Options/config: `config.py`
- Rendering: `renderer.py`
- Toolchain/packages: `toolchain.py`
- GitHub API: `github_client.py`
"""

from __future__ import annotations

import argparse
import base64
import logging
import os
import sys
from pathlib import Path
from typing import Any, NoReturn, Sequence

from initcpp import __version__
from initcpp.config import ConfigError, ProjectOptions, build_options, load_config
from initcpp.github_client import GitHubClient, GitHubError, RemoteRepo
from initcpp.renderer import RenderError, render_project, scaffold_directories
from initcpp.shell import CommandError, run
from initcpp.toolchain import ToolchainError, detect_generator, has_tool, install_dependencies

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "Initial project structure"


class CLIError(RuntimeError):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def _step(cmd: Sequence[str], *, cwd: Path, force: bool, display: Sequence[str] | None = None) -> bool:
    """
    Run one scaffolding command. With `force`, a failure is logged and the
    flow continues; otherwise it propagates.
    """
    try:
        run(cmd, cwd=cwd, display=display)
    except CommandError as e:
        if not force:
            raise
        logger.warning("%s (continuing because of --force)", e)
        return False
    return True


def _ensure_empty_dir(path: Path) -> None:
    if path.exists() and not path.is_dir():
        raise CLIError(f"'{path}' exists and is not a directory.")
    if path.is_dir() and any(path.iterdir()):
        raise CLIError(f"Directory '{path}' is not empty.")


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    # None means "not given on the command line"; config values then apply.
    return {
        "c_standard": args.c_standard,
        "cxx_standard": args.cxx_standard,
        "generator": args.generator,
        "enable_tests": False if args.no_tests else None,
        "enable_sanitizers": False if args.no_sanitizers else None,
        "ci": True if args.ci else None,
        "github": {
            "owner": args.github_owner,
            "private": args.private,
            "push": True if args.push else None,
        },
    }


def _auth_header(token: str) -> str:
    basic = base64.b64encode(f"x-access-token:{token}".encode()).decode()
    return f"http.extraheader=AUTHORIZATION: basic {basic}"


def _setup_remote(options: ProjectOptions, *, token: str | None, force: bool) -> RemoteRepo:
    owner = options.github.owner or ""
    token = token or os.environ.get("GITHUB_TOKEN") or ""
    if not token:
        raise CLIError("GitHub token is required (use --github-token or set GITHUB_TOKEN)")

    repo = GitHubClient(token).ensure_repo(
        owner=owner,
        name=options.project_name,
        private=options.github.private,
        description=f"{options.project_name} (C++/CMake)",
    )
    logger.info("GitHub repository: %s", repo.html_url)
    _step(["git", "remote", "add", "origin", repo.clone_url], cwd=options.project_dir, force=force)

    if options.github.push:
        # Pass the token per invocation so it never lands in .git/config.
        push = ["push", "-u", "origin", f"HEAD:{repo.default_branch}"]
        _step(
            ["git", "-c", _auth_header(token), *push],
            cwd=options.project_dir,
            force=force,
            display=["git", "-c", "http.extraheader=AUTHORIZATION: basic ***", *push],
        )
    return repo


def _print_summary(options: ProjectOptions, generator: str) -> None:
    name = options.project_name
    print("")
    print(f"✅ Project '{name}' initialized successfully!")
    print(f"📁 Location: {options.project_dir}")
    print(f"🏗️  Build system: CMake with {generator}")
    print(f"⚙️  C++ Standard: C++{options.cxx_standard}")
    print("")
    print("Next steps:")
    print(f"  1. cd {options.project_dir}")
    print("  2. cmake --build build        # Build the project")
    print(f"  3. ./build/{name}    # Run the executable")
    if has_tool("ctest") and (options.project_dir / "tests").is_dir():
        print("  4. cd build && ctest          # Run tests (if available)")
    print("")


def _configure_build(options: ProjectOptions, generator: str) -> int:
    print(f"Configuring build system with {generator}...")
    try:
        run(["cmake", "..", f"-G{generator}"], cwd=options.project_dir / "build", verbose=True)
    except CommandError as e:
        # Output was already streamed while cmake ran.
        logger.error("%s", e if e.returncode is None else f"cmake exited with status {e.returncode}")
        print("❌ Build configuration failed. Please check the error messages above.")
        return 1
    print("✅ Build configuration successful!")
    print("")
    print("Ready to build! Run 'cmake --build build' to compile your project.")
    return 0


def install_cmd(args: argparse.Namespace) -> int:
    install_dependencies()
    return 0


def init_cmd(args: argparse.Namespace) -> int:
    if not args.project_name:
        raise CLIError("Project name is required.")

    options, warnings = build_options(
        args.project_name,
        project_dir=args.project_dir,
        config=load_config(args.config),
        overrides=_overrides(args),
    )
    for warning in warnings:
        logger.warning(warning)

    workdir = options.project_dir
    _ensure_empty_dir(workdir)
    if options.github.push and not options.github.owner:
        logger.warning("--push has no effect without --github-owner; skipping push")
    generator = options.generator or detect_generator()
    force = bool(args.force)

    scaffold_directories(workdir)
    _step(["git", "init"], cwd=workdir, force=force)

    result = render_project(options, workdir, generator=generator)
    logger.info("Wrote %d file(s), skipped %d existing file(s)", len(result.written), len(result.skipped))

    _step(["git", "add", "."], cwd=workdir, force=force)
    try:
        run(["git", "commit", "-m", COMMIT_MESSAGE], cwd=workdir)
    except CommandError as e:
        logger.warning("Initial commit was not created: %s", e)

    if options.github.owner:
        _setup_remote(options, token=args.github_token, force=force)

    _print_summary(options, generator)

    if args.no_configure:
        return 0
    return _configure_build(options, generator)


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(prog="initcpp", description="Scaffold a new CMake-based C++ project")
    p.add_argument("project_name", nargs="?", help="Project name (letters, numbers, underscores, hyphens)")
    p.add_argument("-i", "--install-deps", action="store_true", help="Install dependencies and exit")
    p.add_argument("-f", "--force", action="store_true", help="Keep going even if a step fails")
    p.add_argument("-d", "--debug", action="store_true", help="Enable debugging (trace every command)")
    p.add_argument("-p", "--project-dir", default=None, help="Project directory (defaults to <project_name>)")
    p.add_argument("-c", "--c-standard", default=None, help="Default C standard (default: 11)")
    p.add_argument("-x", "--cxx-standard", default=None, help="Default C++ standard (default: 20)")
    p.add_argument("--config", default=None, help="YAML config file (default: ~/.config/initcpp/config.yaml)")
    p.add_argument("--generator", default=None, help="CMake generator (default: Ninja if installed, else Unix Makefiles)")
    p.add_argument("--no-configure", action="store_true", help="Do not run cmake after scaffolding")
    p.add_argument("--no-tests", action="store_true", help="Turn the ENABLE_TESTS option off")
    p.add_argument("--no-sanitizers", action="store_true", help="Turn the ENABLE_SANITIZERS option off")
    p.add_argument("--ci", action="store_true", help="Add a GitHub Actions workflow")

    p.add_argument("--github-owner", default=None, help="Create/use a GitHub repo under this user or org")
    p.add_argument("--github-token", default=None, help="GitHub token (or set env GITHUB_TOKEN)")
    p.add_argument("--private", dest="private", action="store_true", default=None, help="Create a private repo")
    p.add_argument("--public", dest="private", action="store_false", default=None, help="Create a public repo")
    p.add_argument("--push", action="store_true", help="Push the initial commit to the GitHub repo")

    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(levelname)s %(name)s: %(message)s" if debug else "%(levelname)s: %(message)s"
    logging.basicConfig(format=fmt, stream=sys.stderr)
    logging.getLogger().setLevel(level)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(args.debug))

    command = install_cmd if args.install_deps else init_cmd
    try:
        return int(command(args))
    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        if not args.project_name:
            parser.print_usage(sys.stderr)
        return 1
    except (ConfigError, RenderError, CommandError, ToolchainError, GitHubError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
