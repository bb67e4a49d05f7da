"""
renderer.py

Responsibility: write the built-in C++ project template into a project directory.

Rules:
- Walk template files in sorted order to ensure deterministic output.
- Never overwrite a file that already exists in the destination (skip-if-exists).
- For UTF-8 text files, if Jinja2 markers are present, render with the project context.
- Binary files are copied byte-for-byte; text files are written with "\n" newlines.
- Top-level template entries listed in `_DOTTED_NAMES` are written with a leading dot.

This module intentionally does NOT know about git, cmake, or CLI parsing.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from initcpp.config import ProjectOptions

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates" / "cpp"

PROJECT_DIRS = ("include", "src", "build", "tests")

# Stored without the leading dot inside the package.
_DOTTED_NAMES = frozenset({"gitignore", "github"})

SANITIZER_FLAGS = (
    "-fno-omit-frame-pointer",
    "-fsanitize=address",
    "-fsanitize=alignment",
    "-fsanitize=bool",
    "-fsanitize=bounds",
    "-fsanitize=enum",
    "-fsanitize=float-cast-overflow",
    "-fsanitize=float-divide-by-zero",
    "-fsanitize=integer-divide-by-zero",
    "-fsanitize=leak",
    "-fsanitize=nonnull-attribute",
    "-fsanitize=pointer-compare",
    "-fsanitize=pointer-overflow",
    "-fsanitize=pointer-subtract",
    "-fsanitize=return",
    "-fsanitize=returns-nonnull-attribute",
    "-fsanitize=shift",
    "-fsanitize=signed-integer-overflow",
    "-fsanitize=undefined",
    "-fsanitize=unreachable",
    "-fsanitize=vla-bound",
    "-fsanitize=vptr",
    "-g",
)

CI_WORKFLOW = Path(".github") / "workflows" / "ci.yml"


class RenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class RenderResult:
    written: tuple[Path, ...]
    skipped: tuple[Path, ...]


def _cmake_bool(value: Any) -> str:
    return "ON" if value else "OFF"


def _is_binary_file(path: Path) -> bool:
    """
    Best-effort: treat a file as binary if it cannot be decoded as UTF-8.
    """
    try:
        path.read_text(encoding="utf-8")
        return False
    except UnicodeDecodeError:
        return True


def _iter_template_files(template_dir: Path) -> list[Path]:
    """
    Return all files under template_dir, in deterministic lexicographic order
    (relative path ordering).
    """
    files: list[Path] = []
    for root, _dirs, filenames in os.walk(template_dir):
        root_path = Path(root)
        for name in filenames:
            files.append(root_path / name)
    files.sort(key=lambda p: str(p.relative_to(template_dir)).replace(os.sep, "/"))
    return files


def destination_path(rel: Path) -> Path:
    """Map a path relative to the template dir to its path in the project."""
    parts = list(rel.parts)
    if parts[0] in _DOTTED_NAMES:
        parts[0] = "." + parts[0]
    return Path(*parts)


def build_context(options: ProjectOptions, *, generator: str) -> dict[str, Any]:
    # Deterministic keys; templates should reference these.
    return {
        "project_name": options.project_name,
        "c_standard": options.c_standard,
        "cxx_standard": options.cxx_standard,
        "c_extensions": options.c_extensions,
        "cxx_extensions": options.cxx_extensions,
        "enable_tests": options.enable_tests,
        "enable_sanitizers": options.enable_sanitizers,
        "sanitizer_flags": SANITIZER_FLAGS,
        "generator": generator,
    }


def scaffold_directories(project_dir: str | Path) -> None:
    root = Path(project_dir)
    for name in PROJECT_DIRS:
        (root / name).mkdir(parents=True, exist_ok=True)


def render_project(
    options: ProjectOptions,
    destination_dir: str | Path,
    *,
    generator: str,
    template_dir: str | Path = TEMPLATE_DIR,
) -> RenderResult:
    """
    Render the project template into destination_dir.

    - Creates destination directories as needed.
    - Leaves existing files untouched and reports them as skipped.
    - Only emits the CI workflow when `options.ci` is set.
    """
    tpl_dir = Path(template_dir).resolve()
    dst_dir = Path(destination_dir).resolve()

    if not tpl_dir.is_dir():
        raise RenderError(f"Template directory not found: {tpl_dir}")

    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["cmake_bool"] = _cmake_bool
    context = build_context(options, generator=generator)

    written: list[Path] = []
    skipped: list[Path] = []

    for src_path in _iter_template_files(tpl_dir):
        rel = destination_path(src_path.relative_to(tpl_dir))
        if rel == CI_WORKFLOW and not options.ci:
            continue

        dst_path = dst_dir / rel
        if dst_path.exists():
            logger.info("Skipping existing file: %s", rel.as_posix())
            skipped.append(rel)
            continue
        dst_path.parent.mkdir(parents=True, exist_ok=True)

        if _is_binary_file(src_path):
            shutil.copyfile(src_path, dst_path)
        else:
            text = src_path.read_text(encoding="utf-8")
            if ("{{" in text) or ("{%" in text) or ("{#" in text):
                try:
                    text = env.from_string(text).render(**context)
                except TemplateError as e:
                    raise RenderError(f"Failed rendering template file: {rel.as_posix()}") from e
            # Normalize newlines for stable cross-platform output.
            dst_path.write_text(text, encoding="utf-8", newline="\n")

        logger.debug("Wrote %s", rel.as_posix())
        written.append(rel)

    return RenderResult(written=tuple(written), skipped=tuple(skipped))
