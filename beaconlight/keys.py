"""Beacon network content types and the SSZ keys that address content."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .ssz import (
    SSZError,
    decode_uint64,
    encode_uint64,
    merkleize,
    uint64_root,
)


class ContentType(IntEnum):
    """First byte of a beacon content key."""

    LIGHT_CLIENT_BOOTSTRAP = 0x10
    LIGHT_CLIENT_UPDATE = 0x11
    LIGHT_CLIENT_FINALITY_UPDATE = 0x12
    LIGHT_CLIENT_OPTIMISTIC_UPDATE = 0x13
    HISTORICAL_SUMMARIES = 0x14


def _expect_size(data: bytes, size: int) -> bytes:
    data = bytes(data)
    if len(data) != size:
        raise SSZError(f"expected {size} bytes, got {len(data)}")
    return data


@dataclass(frozen=True)
class LightClientUpdateKey:
    """Range of sync committee periods: start period and count."""

    start_period: int
    count: int

    def encode(self) -> bytes:
        return encode_uint64(self.start_period) + encode_uint64(self.count)

    @classmethod
    def decode(cls, data: bytes) -> LightClientUpdateKey:
        data = _expect_size(data, 16)
        return cls(decode_uint64(data[:8]), decode_uint64(data[8:]))

    def hash_tree_root(self) -> bytes:
        return merkleize([uint64_root(self.start_period), uint64_root(self.count)])


@dataclass(frozen=True)
class LightClientBootstrapKey:
    """Block root of the checkpoint to bootstrap from."""

    block_hash: bytes

    def __post_init__(self) -> None:
        if len(self.block_hash) != 32:
            raise SSZError(
                f"LightClientBootstrapKey.block_hash must be 32 bytes, got {len(self.block_hash)}"
            )

    def encode(self) -> bytes:
        return bytes(self.block_hash)

    @classmethod
    def decode(cls, data: bytes) -> LightClientBootstrapKey:
        return cls(_expect_size(data, 32))

    def hash_tree_root(self) -> bytes:
        return merkleize([bytes(self.block_hash)])


@dataclass(frozen=True)
class LightClientFinalityUpdateKey:
    """Minimum finalized slot of the requested finality update."""

    finalized_slot: int

    def encode(self) -> bytes:
        return encode_uint64(self.finalized_slot)

    @classmethod
    def decode(cls, data: bytes) -> LightClientFinalityUpdateKey:
        return cls(decode_uint64(_expect_size(data, 8)))

    def hash_tree_root(self) -> bytes:
        return uint64_root(self.finalized_slot)


@dataclass(frozen=True)
class LightClientOptimisticUpdateKey:
    """Minimum signature slot of the requested optimistic update."""

    optimistic_slot: int

    def encode(self) -> bytes:
        return encode_uint64(self.optimistic_slot)

    @classmethod
    def decode(cls, data: bytes) -> LightClientOptimisticUpdateKey:
        return cls(decode_uint64(_expect_size(data, 8)))

    def hash_tree_root(self) -> bytes:
        return uint64_root(self.optimistic_slot)


@dataclass(frozen=True)
class HistoricalSummariesWithProofKey:
    """Epoch of the requested historical summaries."""

    epoch: int

    def encode(self) -> bytes:
        return encode_uint64(self.epoch)

    @classmethod
    def decode(cls, data: bytes) -> HistoricalSummariesWithProofKey:
        return cls(decode_uint64(_expect_size(data, 8)))

    def hash_tree_root(self) -> bytes:
        return uint64_root(self.epoch)


def encode_content_key(content_type: ContentType | int, key) -> bytes:
    """Prefix an encoded key (or raw key bytes) with its content type byte."""
    body = key if isinstance(key, (bytes, bytearray)) else key.encode()
    return bytes([int(content_type)]) + bytes(body)


def split_content_key(content_key: bytes) -> tuple[ContentType, bytes]:
    """Split a content key into its content type and the key body."""
    if not content_key:
        raise SSZError("empty content key")
    try:
        content_type = ContentType(content_key[0])
    except ValueError:
        raise SSZError(f"unknown content type {content_key[0]}") from None
    return content_type, bytes(content_key[1:])