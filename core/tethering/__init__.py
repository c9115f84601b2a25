"""
Tethering

Binding of externally verified cross-chain assets to a verified DID.
"""

from .recorder import (
    REGISTRY_SERVICE_TYPE,
    TetheringRecorder,
    compute_asset_root,
    tethering_message,
)

__all__ = [
    "REGISTRY_SERVICE_TYPE",
    "TetheringRecorder",
    "compute_asset_root",
    "tethering_message",
]
