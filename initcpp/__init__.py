"""
initcpp package

This package scaffolds a new CMake-based C++ project from the command line.

Key responsibilities are split across modules:
- `config.py`: project options, name/standard validation, YAML user config
- `renderer.py`: idempotent rendering of the built-in template into a project directory
- `toolchain.py`: generator detection and OS package installation
- `shell.py`: subprocess execution with command tracing
- `github_client.py`: optional GitHub remote creation (REST API)
- `cli.py`: CLI entrypoint and orchestration (options -> render -> git -> cmake)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
