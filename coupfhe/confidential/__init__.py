"""
Confidential Module - Sealing role values per owner.

The engine talks to the ConfidentialValueStore ABC only;
KeyedConfidentialStore is the bundled backend.
"""

from .store import ConfidentialValueStore, KeyedConfidentialStore

__all__ = [
    "ConfidentialValueStore",
    "KeyedConfidentialStore",
]
