"""
config.py

Responsibility: turn command-line values and the optional YAML user config
into a validated, typed `ProjectOptions`.

Precedence, lowest to highest:
- built-in defaults
- the user config file (`~/.config/initcpp/config.yaml` or `$INITCPP_CONFIG`)
- command-line overrides

The renderer and CLI treat the returned options as the single source of truth.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "INITCPP_CONFIG"

DEFAULT_C_STANDARD = "11"
DEFAULT_CXX_STANDARD = "20"

C_STANDARDS = ("90", "99", "11", "17", "23")
CXX_STANDARDS = ("98", "11", "14", "17", "20", "23", "26")

_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")
_NAME_START_RE = re.compile(r"^[A-Za-z_]")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class GitHubOptions:
    """Optional GitHub remote for the generated repository."""

    owner: str | None = None
    private: bool = True
    push: bool = False


@dataclass(frozen=True)
class ProjectOptions:
    """Everything needed to scaffold one project."""

    project_name: str
    project_dir: Path
    c_standard: str = DEFAULT_C_STANDARD
    cxx_standard: str = DEFAULT_CXX_STANDARD
    c_extensions: bool = True
    cxx_extensions: bool = True
    enable_tests: bool = True
    enable_sanitizers: bool = True
    generator: str | None = None
    ci: bool = False
    github: GitHubOptions = field(default_factory=GitHubOptions)


# Keys a config file may set; project_name/project_dir only come from the command line.
_CONFIG_KEYS = frozenset(f.name for f in fields(ProjectOptions)) - {"project_name", "project_dir"}
_GITHUB_KEYS = frozenset(f.name for f in fields(GitHubOptions))


def validate_project_name(name: str) -> list[str]:
    """
    Raise ConfigError for a name that cannot be used as a CMake project/target name.

    Returns a list of non-fatal warnings.
    """
    if not name:
        raise ConfigError("Project name cannot be empty.")
    if " " in name:
        raise ConfigError("Project name cannot contain spaces.")
    if not _NAME_RE.fullmatch(name):
        raise ConfigError("Project name can only contain letters, numbers, underscores, and hyphens.")

    warnings: list[str] = []
    if not _NAME_START_RE.match(name):
        warnings.append("Project name should start with a letter or underscore for better C++ compatibility.")
    return warnings


def validate_standard(kind: str, value: str) -> str:
    allowed = C_STANDARDS if kind == "C" else CXX_STANDARDS
    value = str(value).strip()
    if value not in allowed:
        raise ConfigError(f"Unsupported {kind} standard: {value!r} (expected one of {', '.join(allowed)})")
    return value


def default_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "initcpp" / "config.yaml"


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """
    Load the YAML user config.

    An explicitly requested file (argument or $INITCPP_CONFIG) must exist;
    the default location is optional.
    """
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    config_path = Path(explicit) if explicit else default_config_path()

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file does not exist: {config_path}")
        return {}

    logger.debug("Loading config from %s", config_path)
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")

    unknown = sorted(set(data) - _CONFIG_KEYS, key=str)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(map(str, unknown))}")

    gh_raw = data.get("github")
    if gh_raw is None:
        gh_raw = {}
    if not isinstance(gh_raw, dict):
        raise ConfigError("`github` must be an object/mapping when provided.")
    unknown = sorted(set(gh_raw) - _GITHUB_KEYS, key=str)
    if unknown:
        raise ConfigError(f"Unknown github config keys: {', '.join(map(str, unknown))}")
    data["github"] = gh_raw

    return data


def build_options(
    project_name: str,
    *,
    project_dir: str | Path | None = None,
    config: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> tuple[ProjectOptions, list[str]]:
    """
    Merge defaults, config and overrides into ProjectOptions.

    `overrides` values of None are ignored so unset command-line flags fall
    through to the config file. Returns (options, warnings).
    """
    warnings = validate_project_name(project_name)

    merged: dict[str, Any] = {}
    github: dict[str, Any] = {}
    for source in (config or {}, overrides or {}):
        for key, value in source.items():
            if value is None:
                continue
            if key == "github":
                github.update({k: v for k, v in value.items() if v is not None})
            else:
                merged[key] = value

    c_standard = validate_standard("C", merged.pop("c_standard", DEFAULT_C_STANDARD))
    cxx_standard = validate_standard("C++", merged.pop("cxx_standard", DEFAULT_CXX_STANDARD))

    owner = github.get("owner")
    if owner is not None:
        owner = str(owner).strip() or None

    options = ProjectOptions(
        project_name=project_name,
        project_dir=Path(project_dir or project_name),
        c_standard=c_standard,
        cxx_standard=cxx_standard,
        c_extensions=bool(merged.get("c_extensions", True)),
        cxx_extensions=bool(merged.get("cxx_extensions", True)),
        enable_tests=bool(merged.get("enable_tests", True)),
        enable_sanitizers=bool(merged.get("enable_sanitizers", True)),
        generator=str(merged["generator"]) if merged.get("generator") else None,
        ci=bool(merged.get("ci", False)),
        github=GitHubOptions(
            owner=owner,
            private=bool(github.get("private", True)),
            push=bool(github.get("push", False)),
        ),
    )
    return options, warnings
