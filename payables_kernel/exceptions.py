"""
Typed Exception Hierarchy for the Payables Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers catch by type, not by parsing messages. Every exception carries a
``code`` class attribute (machine-readable, API-safe) and keeps its context
as structured attributes so that the JSON log formatter can emit them as
``exc_<field>`` keys.

Most of the engine never raises at all:
  - Allocation validation returns a list of user-facing strings.
  - Obligation status derivation degrades to "no allocations".
  - The distributor treats out-of-range input as "clear all".

Exceptions are reserved for the boundaries: parsing collaborator records,
loading export configuration, and rendering exports.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayablesKernelError (base)
    |
    +-- RecordError
    |   +-- RecordParseError
    |
    +-- ConfigError
    |   +-- ConfigLoadError
    |   +-- InvalidConfigError
    |
    +-- ExportError
        +-- UnknownExportFormatError
        +-- LedgerRenderError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category  | Code                   | When Raised
----------|------------------------|------------------------------------------
Record    | RECORD_PARSE_ERROR     | Collaborator payload misses a field or
          |                        | carries a non-numeric amount
----------|------------------------|------------------------------------------
Config    | CONFIG_LOAD_ERROR      | YAML file missing or malformed
          | INVALID_CONFIG         | Parsed values violate schema constraints
----------|------------------------|------------------------------------------
Export    | UNKNOWN_EXPORT_FORMAT  | Export service asked for unknown format
          | LEDGER_RENDER_ERROR    | Renderer could not produce output
===============================================================================
"""


class PayablesKernelError(Exception):
    """
    Base exception for all payables kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYABLES_KERNEL_ERROR"


# Record-related exceptions


class RecordError(PayablesKernelError):
    """Base exception for collaborator record errors."""

    code: str = "RECORD_ERROR"


class RecordParseError(RecordError):
    """A collaborator payload could not be turned into a typed record."""

    code: str = "RECORD_PARSE_ERROR"

    def __init__(self, record_type: str, field: str, reason: str):
        self.record_type = record_type
        self.field = field
        self.reason = reason
        super().__init__(f"Cannot parse {record_type}.{field}: {reason}")


# Configuration exceptions


class ConfigError(PayablesKernelError):
    """Base exception for export configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigLoadError(ConfigError):
    """Configuration file could not be read or parsed."""

    code: str = "CONFIG_LOAD_ERROR"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load configuration from {path}: {reason}")


class InvalidConfigError(ConfigError):
    """Configuration values violate schema constraints."""

    code: str = "INVALID_CONFIG"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration for {setting}: {reason}")


# Export exceptions


class ExportError(PayablesKernelError):
    """Base exception for ledger export errors."""

    code: str = "EXPORT_ERROR"


class UnknownExportFormatError(ExportError):
    """Requested export format is not supported."""

    code: str = "UNKNOWN_EXPORT_FORMAT"

    def __init__(self, export_format: str):
        self.export_format = export_format
        super().__init__(f"Unknown ledger export format: {export_format}")


class LedgerRenderError(ExportError):
    """A renderer failed to produce its output."""

    code: str = "LEDGER_RENDER_ERROR"

    def __init__(self, export_format: str, vendor_id: str, reason: str):
        self.export_format = export_format
        self.vendor_id = vendor_id
        self.reason = reason
        super().__init__(
            f"Failed to render {export_format} ledger for vendor {vendor_id}: {reason}"
        )
