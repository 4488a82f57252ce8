"""
Blockchain services module.

Contract ABI loading, log decoding and event streaming.
"""

from .abi_loader import load_abi_from_file, validate_relay_events
from .chain_client import ChainClient
from .decoders import decode_event


__all__ = [
    "ChainClient",
    "decode_event",
    "load_abi_from_file",
    "validate_relay_events",
]
