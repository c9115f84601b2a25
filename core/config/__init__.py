"""
Runtime Configuration Module

Configuration loading for the ledger gateway, codec, HTTP transport and
record storage.
"""

from .runtime import (
    CodecConfig,
    HttpConfig,
    LedgerConfig,
    RuntimeConfig,
    StorageConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "CodecConfig",
    "HttpConfig",
    "LedgerConfig",
    "RuntimeConfig",
    "StorageConfig",
    "get_default_config",
    "set_default_config",
]
