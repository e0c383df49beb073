"""Centralized path management for tipscan.

A single source of truth for the packaged rule files and the project
directories that hold local configuration and debug output.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent.parent


def _get_project_root() -> Path:
    """Project root: TIPSCAN_ROOT when set, else the working directory."""
    env_root = os.environ.get("TIPSCAN_ROOT")
    if env_root:
        return Path(env_root).expanduser()
    return Path.cwd()


@dataclass
class ProjectPaths:
    """Container for all project-related paths.

    Project paths are computed relative to ``root``; packaged defaults are
    located relative to the installed ``tipscan`` package.
    """

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    # --- Packaged defaults ---
    @property
    def src(self) -> Path:
        """Installed tipscan package directory."""
        return PACKAGE_ROOT

    @property
    def default_scanner_config(self) -> Path:
        """Packaged default scanner thresholds TOML file."""
        return self.src / "receipt" / "rules" / "default_scanner.toml"

    # --- Configuration paths ---
    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def scanner_config(self) -> Path:
        """Project-level scanner threshold overrides TOML file."""
        return self.config / "scanner.toml"

    # --- Receipt paths ---
    @property
    def receipts(self) -> Path:
        """Root receipts directory."""
        return self.root / "receipts"

    @property
    def receipts_ocr_json(self) -> Path:
        """Raw OCR results (JSON), kept for debugging scans."""
        return self.receipts / "ocr_json"

    def ensure_receipt_directories(self) -> None:
        self.receipts_ocr_json.mkdir(parents=True, exist_ok=True)


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Drop the cached instance so TIPSCAN_ROOT is read again."""
    global _paths
    _paths = None
