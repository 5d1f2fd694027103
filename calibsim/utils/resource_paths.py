from __future__ import annotations

import sys
from pathlib import Path


def app_base_dir() -> Path:
    """
    Return the base directory for bundled resources.

    - In PyInstaller onefile/onedir: use sys._MEIPASS (temporary extraction dir).
    - In development: use project root (where `settings/` exists).
    """
    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        return Path(sys._MEIPASS)  # type: ignore[attr-defined]
    # calibsim/utils/resource_paths.py -> parents[2] is the project root.
    return Path(__file__).resolve().parents[2]


def settings_dir() -> Path:
    """Return the directory holding parameter files (e.g., simulation.json)."""
    return app_base_dir() / "settings"


def default_parameters_path() -> Path:
    return settings_dir() / "simulation.json"


def local_overrides_path() -> Path:
    """Optional per-machine overrides merged over the default parameters."""
    return settings_dir() / "simulation.local.json"
