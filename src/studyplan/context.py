"""Global application context for the CLI."""

from __future__ import annotations

from pathlib import Path


class _Context:
    """Holds state set by global CLI options."""

    def __init__(self) -> None:
        self.config_path: Path | None = None


_context = _Context()


def get_config_path() -> Path | None:
    """Get the config path passed via ``--config``."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    """Set the config path passed via ``--config``."""
    _context.config_path = path
