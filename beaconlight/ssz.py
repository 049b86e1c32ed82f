"""Minimal SSZ primitives: integers, chunking, merkleization and offset lists."""

from __future__ import annotations

import hashlib
from itertools import pairwise
from typing import Iterable, Sequence

BYTES_PER_CHUNK = 32
OFFSET_SIZE = 4
_UINT64_MAX = 2**64 - 1


class SSZError(ValueError):
    """Raised when data cannot be encoded or decoded as SSZ."""


def encode_uint64(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as 8 little-endian bytes."""
    if not 0 <= value <= _UINT64_MAX:
        raise SSZError(f"value {value} does not fit in uint64")
    return value.to_bytes(8, "little")


def decode_uint64(data: bytes) -> int:
    """Decode exactly 8 little-endian bytes into an integer."""
    if len(data) != 8:
        raise SSZError(f"uint64 needs 8 bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def hash_pair(left: bytes, right: bytes) -> bytes:
    """SHA-256 of two concatenated 32-byte nodes."""
    return hashlib.sha256(bytes(left) + bytes(right)).digest()


def _zero_hashes(levels: int) -> list[bytes]:
    hashes = [bytes(BYTES_PER_CHUNK)]
    for _ in range(levels):
        hashes.append(hash_pair(hashes[-1], hashes[-1]))
    return hashes


_ZERO_HASHES = _zero_hashes(64)


def pack_bytes(data: bytes) -> list[bytes]:
    """Split data into 32-byte chunks, zero-padding the last one."""
    data = bytes(data)
    return [
        data[start:start + BYTES_PER_CHUNK].ljust(BYTES_PER_CHUNK, b"\x00")
        for start in range(0, len(data), BYTES_PER_CHUNK)
    ]


def merkleize(chunks: Iterable[bytes], limit: int | None = None) -> bytes:
    """Merkle root of chunks, padded with zero chunks up to the next power of two of limit."""
    layer = [bytes(chunk) for chunk in chunks]
    if any(len(chunk) != BYTES_PER_CHUNK for chunk in layer):
        raise SSZError("every chunk must be 32 bytes")
    if limit is None:
        limit = len(layer)
    if len(layer) > limit:
        raise SSZError(f"{len(layer)} chunks exceed the limit of {limit}")
    depth = max(limit - 1, 0).bit_length()
    for level in range(depth):
        if len(layer) % 2:
            layer.append(_ZERO_HASHES[level])
        nodes = iter(layer)
        layer = [hash_pair(left, right) for left, right in zip(nodes, nodes)]
    return layer[0] if layer else _ZERO_HASHES[depth]


def mix_in_length(root: bytes, length: int) -> bytes:
    """Mix a list length into a merkle root."""
    return hash_pair(root, length.to_bytes(BYTES_PER_CHUNK, "little"))


def uint64_root(value: int) -> bytes:
    """Hash tree root of a uint64: its encoding padded to one chunk."""
    return encode_uint64(value).ljust(BYTES_PER_CHUNK, b"\x00")


def verify_merkle_branch(
    leaf: bytes, branch: Sequence[bytes], depth: int, index: int, root: bytes
) -> bool:
    """Check that leaf sits at index under root, given its sibling branch."""
    if len(branch) < depth:
        raise SSZError(f"branch has {len(branch)} nodes, needs {depth}")
    value = bytes(leaf)
    for level, sibling in enumerate(branch[:depth]):
        if (index >> level) & 1:
            value = hash_pair(sibling, value)
        else:
            value = hash_pair(value, sibling)
    return value == bytes(root)


def encode_variable_list(items: Iterable[bytes]) -> bytes:
    """Encode variable-size elements as an offset table followed by the bodies."""
    bodies = [bytes(item) for item in items]
    offset = OFFSET_SIZE * len(bodies)
    table = bytearray()
    for body in bodies:
        table += offset.to_bytes(OFFSET_SIZE, "little")
        offset += len(body)
    return bytes(table) + b"".join(bodies)


def decode_variable_list(data: bytes, max_length: int | None = None) -> list[bytes]:
    """Split an offset-encoded list into the raw bytes of its elements."""
    data = bytes(data)
    if not data:
        return []
    if len(data) < OFFSET_SIZE:
        raise SSZError("list data too short for an offset")
    first = int.from_bytes(data[:OFFSET_SIZE], "little")
    if first == 0 or first % OFFSET_SIZE:
        raise SSZError(f"invalid first offset {first}")
    if first > len(data):
        raise SSZError(f"offset {first} beyond end of data")
    count = first // OFFSET_SIZE
    if max_length is not None and count > max_length:
        raise SSZError(f"list of {count} elements exceeds the limit of {max_length}")
    offsets = [
        int.from_bytes(data[pos:pos + OFFSET_SIZE], "little")
        for pos in range(0, first, OFFSET_SIZE)
    ]
    offsets.append(len(data))
    for start, end in pairwise(offsets):
        if end < start:
            raise SSZError("offsets are not in order")
    return [data[start:end] for start, end in pairwise(offsets)]