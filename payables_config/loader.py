"""
Configuration Loader (``payables_config.loader``).

Responsibility
--------------
Reads a YAML export-configuration document and parses it into a frozen
``LedgerExportConfig``.  With no path, the packaged default
``defaults/ledger_export.yaml`` is used.

Architecture position
---------------------
**Config layer** -- infrastructure tooling consumed by
``payables_modules.vendor_ledger``.  Depends only on the kernel's
exceptions and logging.

Failure modes
-------------
* Missing or unreadable file  -> ``ConfigLoadError``.
* Malformed YAML  -> ``ConfigLoadError`` (the ``yaml.YAMLError`` is chained).
* Unknown keys or out-of-range values  -> ``InvalidConfigError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from payables_config.schema import LedgerExportConfig
from payables_kernel.exceptions import ConfigLoadError
from payables_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "ledger_export.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML document is empty).
    Raises:
        ConfigLoadError: if the file cannot be read, is not valid YAML or
            does not hold a mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigLoadError(str(path), e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(str(path), f"invalid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(str(path), "top-level YAML node must be a mapping")
    return data


def load_export_config(path: str | Path | None = None) -> LedgerExportConfig:
    """Load and validate an export configuration file."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(config_path)
    config = LedgerExportConfig.from_dict(data)
    logger.info("ledger_export_config_loaded", extra={
        "path": str(config_path),
        "checksum": config.checksum,
    })
    return config
