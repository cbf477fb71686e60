"""
payables_config -- YAML-backed configuration for the ledger exporters.

Responsibility:
    Provide ``load_export_config()``, the one way exporters obtain labels,
    PDF geometry and Tally settings.  Configuration is a frozen
    ``LedgerExportConfig``; its ``checksum`` identifies the exact settings
    an export was produced with.

Architecture position:
    Configuration -- sits above ``payables_kernel`` and below
    ``payables_modules``.  The kernel and engines never import it.
"""

from payables_config.loader import DEFAULT_CONFIG_PATH, load_export_config, load_yaml_file
from payables_config.schema import (
    LedgerExportConfig,
    LedgerLabels,
    PdfLayout,
    TallySettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LedgerExportConfig",
    "LedgerLabels",
    "PdfLayout",
    "TallySettings",
    "load_export_config",
    "load_yaml_file",
]
