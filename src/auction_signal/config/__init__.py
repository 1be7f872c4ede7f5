"""Adapter configuration: vendor validation and the excludable field vocabulary."""

from .vendors import (
    DATA_MODES,
    PAYLOAD_FIELDS,
    AdapterConfig,
    DataMode,
    VendorConfig,
    parse_adapter_options,
)

__all__ = [
    "DATA_MODES",
    "PAYLOAD_FIELDS",
    "AdapterConfig",
    "DataMode",
    "VendorConfig",
    "parse_adapter_options",
]
