"""noxfile.py - Nox sessions for Prompt Shelf.

Updates:
  v0.2.0 - 2026-10-19 - Share pytest arguments, cover models, and keep `all` read-only.
  v0.1.0 - 2026-08-27 - Add format/lint/typecheck/test sessions over the document-store tree.

Install the project with `pip install -e .[dev]` inside `.venv` before running these sessions.
Sessions:
- format: format code with ruff
- lint: run ruff lint checks
- typecheck: run pyright in strict mode
- test: run pytest with coverage over core and models
- all: run every check without rewriting files

Sessions run in the host Python environment (no isolated venv) but invoke
tools from the project `.venv`.
"""

from __future__ import annotations

import sys
from pathlib import Path

import nox

CODE_LOCATIONS: tuple[str, ...] = (
    "main.py",
    "cli",
    "config",
    "core",
    "models",
    "tests",
)
PYTEST_ARGS: tuple[str, ...] = (
    "-n",
    "auto",
    "--cov=core",
    "--cov=models",
    "--cov-report=term-missing",
    "--cov-fail-under=80",
    "tests",
)


def _venv_executable(command: str) -> Path:
    """Return the path to *command* inside the project virtual environment."""
    bin_dir = "Scripts" if sys.platform == "win32" else "bin"
    suffix = ".exe" if sys.platform == "win32" else ""
    return Path(".venv") / bin_dir / f"{command}{suffix}"


def _require_venv_tool(session: nox.Session, command: str) -> str:
    """Return the `.venv` tool path, failing with guidance when missing."""
    candidate = _venv_executable(command)
    if candidate.exists():
        return str(candidate)
    session.error(
        f"Missing {candidate}. Create `.venv` and run `pip install -e .[dev]` inside it."
    )
    raise RuntimeError("unreachable")  # pragma: no cover


@nox.session(venv_backend="none")
def format(session: nox.Session) -> None:
    """Format code using ruff."""
    session.run(_require_venv_tool(session, "ruff"), "format", *CODE_LOCATIONS, external=True)


@nox.session(venv_backend="none")
def lint(session: nox.Session) -> None:
    """Lint code using ruff."""
    session.run(_require_venv_tool(session, "ruff"), "check", *CODE_LOCATIONS, external=True)


@nox.session(venv_backend="none")
def typecheck(session: nox.Session) -> None:
    """Run pyright with the strict settings from pyproject.toml."""
    session.run(_require_venv_tool(session, "pyright"), external=True)


@nox.session(venv_backend="none")
def test(session: nox.Session) -> None:
    """Run the test suite in parallel with coverage over core and models."""
    session.run(_require_venv_tool(session, "pytest"), *PYTEST_ARGS, external=True)


@nox.session(venv_backend="none")
def all(session: nox.Session) -> None:
    """Run every quality gate without modifying files.

    Usage: `nox -s all`
    """
    ruff = _require_venv_tool(session, "ruff")
    session.run(ruff, "check", *CODE_LOCATIONS, external=True)
    session.run(ruff, "format", "--check", *CODE_LOCATIONS, external=True)
    session.run(_require_venv_tool(session, "pyright"), external=True)
    session.run(_require_venv_tool(session, "pytest"), *PYTEST_ARGS, external=True)
