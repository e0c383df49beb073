"""Runtime loader for receipt scanner thresholds."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from tipscan.receipt.amount_parser.common import ScannerConfig, build_scanner_config
from tipscan.runtime.logging import get_logger
from tipscan.runtime.paths import get_paths

logger = get_logger(__name__)


def _load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not path.exists():
        return {}

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


@lru_cache(maxsize=8)
def load_scanner_config(config_paths: tuple[str, ...] | None = None) -> ScannerConfig:
    """Load scanner thresholds from the packaged defaults and project overrides.

    Later files win. Pass ``config_paths`` to read an explicit set of files
    instead.
    """
    if config_paths is None:
        p = get_paths()
        files = [p.default_scanner_config, p.scanner_config]
    else:
        files = [Path(path) for path in config_paths]

    configs = tuple(_load_toml(path) for path in files)
    logger.debug("Loaded scanner config from %s", [str(path) for path in files if path.exists()])
    return build_scanner_config(*configs)
