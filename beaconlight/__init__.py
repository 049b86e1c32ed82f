"""Beacon chain light client: SSZ types, content keys, update verification, content validation and storage."""

__version__ = "0.1.0"
__all__ = ["config", "keys", "light_client", "network", "ssz", "storage", "types", "updates"]