"""Light client data types for the altair, capella and deneb forks and their fork-tagged wrappers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from .ssz import (
    OFFSET_SIZE,
    SSZError,
    decode_uint64,
    decode_variable_list,
    encode_uint64,
    encode_variable_list,
    merkleize,
    mix_in_length,
    pack_bytes,
    uint64_root,
)

MAX_REQUEST_LIGHT_CLIENT_UPDATES = 128
SYNC_COMMITTEE_SIZE = 512
BLS_PUBKEY_SIZE = 48
BLS_SIGNATURE_SIZE = 96
ROOT_SIZE = 32
EXECUTION_BRANCH_DEPTH = 4
SYNC_COMMITTEE_BRANCH_DEPTH = 5
FINALITY_BRANCH_DEPTH = 6
HISTORICAL_SUMMARIES_PROOF_DEPTH = 5
HISTORICAL_ROOTS_LIMIT = 2**24
MAX_EXTRA_DATA_BYTES = 32

BEACON_BLOCK_HEADER_SIZE = 112
SYNC_COMMITTEE_BYTES = SYNC_COMMITTEE_SIZE * BLS_PUBKEY_SIZE + BLS_PUBKEY_SIZE
SYNC_AGGREGATE_SIZE = SYNC_COMMITTEE_SIZE // 8 + BLS_SIGNATURE_SIZE
_HISTORICAL_SUMMARY_SIZE = 2 * ROOT_SIZE
_FORK_DIGEST_SIZE = 4


class Fork(Enum):
    """Fork digests tagging light client content; BELLATRIX carries altair-format objects."""

    BELLATRIX = bytes(4)
    CAPELLA = bytes.fromhex("bba4da96")
    DENEB = bytes.fromhex("6a95a1a9")

    @classmethod
    def from_digest(cls, digest: bytes) -> Fork:
        try:
            return cls(bytes(digest))
        except ValueError:
            raise SSZError("unknown fork digest") from None


def _fixed(value: bytes, size: int, name: str) -> bytes:
    value = bytes(value)
    if len(value) != size:
        raise SSZError(f"{name} must be {size} bytes, got {len(value)}")
    return value


def _encode_roots(roots: Sequence[bytes], count: int, name: str) -> bytes:
    if len(roots) != count:
        raise SSZError(f"{name} must hold {count} roots, got {len(roots)}")
    return b"".join(_fixed(root, ROOT_SIZE, name) for root in roots)


def _decode_roots(data: bytes) -> tuple[bytes, ...]:
    return tuple(data[start:start + ROOT_SIZE] for start in range(0, len(data), ROOT_SIZE))


def _encode_container(fields: Iterable[tuple[bytes, bool]]) -> bytes:
    """Encode (body, is_variable) pairs as an SSZ container."""
    fields = list(fields)
    fixed_size = sum(OFFSET_SIZE if variable else len(body) for body, variable in fields)
    head = bytearray()
    tail = bytearray()
    for body, variable in fields:
        if variable:
            head += (fixed_size + len(tail)).to_bytes(OFFSET_SIZE, "little")
            tail += body
        else:
            head += body
    return bytes(head + tail)


def _decode_container(data: bytes, sizes: Sequence[int | None]) -> list[bytes]:
    """Split container bytes into field bodies; None marks a variable-size field."""
    data = bytes(data)
    fixed_size = sum(OFFSET_SIZE if size is None else size for size in sizes)
    if len(data) < fixed_size:
        raise SSZError(f"container needs at least {fixed_size} bytes, got {len(data)}")
    parts: list[bytes] = []
    offsets: list[tuple[int, int]] = []
    position = 0
    for size in sizes:
        if size is None:
            offset = int.from_bytes(data[position:position + OFFSET_SIZE], "little")
            offsets.append((len(parts), offset))
            parts.append(b"")
            position += OFFSET_SIZE
        else:
            parts.append(data[position:position + size])
            position += size
    if not offsets:
        if len(data) != fixed_size:
            raise SSZError(f"container must be {fixed_size} bytes, got {len(data)}")
        return parts
    if offsets[0][1] != fixed_size:
        raise SSZError(f"invalid first offset {offsets[0][1]}")
    ends = [offset for _, offset in offsets[1:]] + [len(data)]
    for (index, start), end in zip(offsets, ends):
        if end < start or end > len(data):
            raise SSZError("invalid container offsets")
        parts[index] = data[start:end]
    return parts


def _header_size(fork: Fork) -> int | None:
    return BEACON_BLOCK_HEADER_SIZE if fork is Fork.BELLATRIX else None


def _split_fork(data: bytes) -> tuple[Fork, bytes]:
    data = bytes(data)
    if len(data) < _FORK_DIGEST_SIZE:
        raise SSZError("data too short for a fork digest")
    return Fork.from_digest(data[:_FORK_DIGEST_SIZE]), data[_FORK_DIGEST_SIZE:]


@dataclass(frozen=True)
class BeaconBlockHeader:
    slot: int = 0
    proposer_index: int = 0
    parent_root: bytes = bytes(32)
    state_root: bytes = bytes(32)
    body_root: bytes = bytes(32)

    def encode(self) -> bytes:
        return b"".join(
            (
                encode_uint64(self.slot),
                encode_uint64(self.proposer_index),
                _fixed(self.parent_root, ROOT_SIZE, "parent_root"),
                _fixed(self.state_root, ROOT_SIZE, "state_root"),
                _fixed(self.body_root, ROOT_SIZE, "body_root"),
            )
        )

    @classmethod
    def decode(cls, data: bytes) -> BeaconBlockHeader:
        data = _fixed(data, BEACON_BLOCK_HEADER_SIZE, "BeaconBlockHeader")
        return cls(
            slot=decode_uint64(data[0:8]),
            proposer_index=decode_uint64(data[8:16]),
            parent_root=data[16:48],
            state_root=data[48:80],
            body_root=data[80:112],
        )

    def hash_tree_root(self) -> bytes:
        return merkleize(
            [
                uint64_root(self.slot),
                uint64_root(self.proposer_index),
                _fixed(self.parent_root, ROOT_SIZE, "parent_root"),
                _fixed(self.state_root, ROOT_SIZE, "state_root"),
                _fixed(self.body_root, ROOT_SIZE, "body_root"),
            ]
        )


@dataclass(frozen=True)
class SyncCommittee:
    pubkeys: tuple[bytes, ...]
    aggregate_pubkey: bytes

    def encode(self) -> bytes:
        if len(self.pubkeys) != SYNC_COMMITTEE_SIZE:
            raise SSZError(
                f"sync committee needs {SYNC_COMMITTEE_SIZE} pubkeys, got {len(self.pubkeys)}"
            )
        keys = b"".join(_fixed(key, BLS_PUBKEY_SIZE, "pubkey") for key in self.pubkeys)
        return keys + _fixed(self.aggregate_pubkey, BLS_PUBKEY_SIZE, "aggregate_pubkey")

    @classmethod
    def decode(cls, data: bytes) -> SyncCommittee:
        data = _fixed(data, SYNC_COMMITTEE_BYTES, "SyncCommittee")
        keys_end = SYNC_COMMITTEE_SIZE * BLS_PUBKEY_SIZE
        pubkeys = tuple(
            data[start:start + BLS_PUBKEY_SIZE] for start in range(0, keys_end, BLS_PUBKEY_SIZE)
        )
        return cls(pubkeys, data[keys_end:])

    def hash_tree_root(self) -> bytes:
        if len(self.pubkeys) != SYNC_COMMITTEE_SIZE:
            raise SSZError(
                f"sync committee needs {SYNC_COMMITTEE_SIZE} pubkeys, got {len(self.pubkeys)}"
            )
        key_roots = [
            merkleize(pack_bytes(_fixed(key, BLS_PUBKEY_SIZE, "pubkey"))) for key in self.pubkeys
        ]
        aggregate = _fixed(self.aggregate_pubkey, BLS_PUBKEY_SIZE, "aggregate_pubkey")
        return merkleize(
            [merkleize(key_roots, SYNC_COMMITTEE_SIZE), merkleize(pack_bytes(aggregate))]
        )


@dataclass(frozen=True)
class SyncAggregate:
    sync_committee_bits: bytes
    sync_committee_signature: bytes

    def encode(self) -> bytes:
        return _fixed(
            self.sync_committee_bits, SYNC_COMMITTEE_SIZE // 8, "sync_committee_bits"
        ) + _fixed(self.sync_committee_signature, BLS_SIGNATURE_SIZE, "sync_committee_signature")

    @classmethod
    def decode(cls, data: bytes) -> SyncAggregate:
        data = _fixed(data, SYNC_AGGREGATE_SIZE, "SyncAggregate")
        split = SYNC_COMMITTEE_SIZE // 8
        return cls(data[:split], data[split:])

    def participants(self) -> list[int]:
        """Indices of committee members whose participation bit is set."""
        bits = bytes(self.sync_committee_bits)
        return [
            index
            for index in range(min(SYNC_COMMITTEE_SIZE, len(bits) * 8))
            if (bits[index // 8] >> (index % 8)) & 1
        ]


@dataclass(frozen=True)
class ExecutionPayloadHeader:
    """Capella execution payload header; the blob gas fields are set only from deneb on."""

    parent_hash: bytes
    fee_recipient: bytes
    state_root: bytes
    receipts_root: bytes
    logs_bloom: bytes
    prev_randao: bytes
    block_number: int
    gas_limit: int
    gas_used: int
    timestamp: int
    extra_data: bytes
    base_fee_per_gas: int
    block_hash: bytes
    transactions_root: bytes
    withdrawals_root: bytes
    blob_gas_used: int | None = None
    excess_blob_gas: int | None = None

    def encode(self) -> bytes:
        if len(self.extra_data) > MAX_EXTRA_DATA_BYTES:
            raise SSZError(f"extra_data exceeds {MAX_EXTRA_DATA_BYTES} bytes")
        if not 0 <= self.base_fee_per_gas < 2**256:
            raise SSZError("base_fee_per_gas does not fit in uint256")
        fields = [
            (_fixed(self.parent_hash, 32, "parent_hash"), False),
            (_fixed(self.fee_recipient, 20, "fee_recipient"), False),
            (_fixed(self.state_root, 32, "state_root"), False),
            (_fixed(self.receipts_root, 32, "receipts_root"), False),
            (_fixed(self.logs_bloom, 256, "logs_bloom"), False),
            (_fixed(self.prev_randao, 32, "prev_randao"), False),
            (encode_uint64(self.block_number), False),
            (encode_uint64(self.gas_limit), False),
            (encode_uint64(self.gas_used), False),
            (encode_uint64(self.timestamp), False),
            (bytes(self.extra_data), True),
            (self.base_fee_per_gas.to_bytes(32, "little"), False),
            (_fixed(self.block_hash, 32, "block_hash"), False),
            (_fixed(self.transactions_root, 32, "transactions_root"), False),
            (_fixed(self.withdrawals_root, 32, "withdrawals_root"), False),
        ]
        if self.blob_gas_used is not None or self.excess_blob_gas is not None:
            fields.append((encode_uint64(self.blob_gas_used or 0), False))
            fields.append((encode_uint64(self.excess_blob_gas or 0), False))
        return _encode_container(fields)

    @classmethod
    def decode(cls, data: bytes, fork: Fork) -> ExecutionPayloadHeader:
        if fork is Fork.BELLATRIX:
            raise SSZError("no execution payload header in altair light client data")
        sizes: list[int | None] = [32, 20, 32, 32, 256, 32, 8, 8, 8, 8, None, 32, 32, 32, 32]
        if fork is Fork.DENEB:
            sizes += [8, 8]
        parts = _decode_container(data, sizes)
        if len(parts[10]) > MAX_EXTRA_DATA_BYTES:
            raise SSZError(f"extra_data exceeds {MAX_EXTRA_DATA_BYTES} bytes")
        blob_fields = (
            (decode_uint64(parts[15]), decode_uint64(parts[16]))
            if fork is Fork.DENEB
            else (None, None)
        )
        return cls(
            parent_hash=parts[0],
            fee_recipient=parts[1],
            state_root=parts[2],
            receipts_root=parts[3],
            logs_bloom=parts[4],
            prev_randao=parts[5],
            block_number=decode_uint64(parts[6]),
            gas_limit=decode_uint64(parts[7]),
            gas_used=decode_uint64(parts[8]),
            timestamp=decode_uint64(parts[9]),
            extra_data=parts[10],
            base_fee_per_gas=int.from_bytes(parts[11], "little"),
            block_hash=parts[12],
            transactions_root=parts[13],
            withdrawals_root=parts[14],
            blob_gas_used=blob_fields[0],
            excess_blob_gas=blob_fields[1],
        )


@dataclass(frozen=True)
class LightClientHeader:
    """Beacon header, with an execution header and its branch from capella on."""

    beacon: BeaconBlockHeader
    execution: ExecutionPayloadHeader | None = None
    execution_branch: tuple[bytes, ...] = ()

    @property
    def _is_variable(self) -> bool:
        return self.execution is not None

    def encode(self) -> bytes:
        if self.execution is None:
            return self.beacon.encode()
        return _encode_container(
            [
                (self.beacon.encode(), False),
                (self.execution.encode(), True),
                (
                    _encode_roots(
                        self.execution_branch, EXECUTION_BRANCH_DEPTH, "execution_branch"
                    ),
                    False,
                ),
            ]
        )

    @classmethod
    def decode(cls, data: bytes, fork: Fork) -> LightClientHeader:
        if fork is Fork.BELLATRIX:
            return cls(BeaconBlockHeader.decode(data))
        beacon, execution, branch = _decode_container(
            data, [BEACON_BLOCK_HEADER_SIZE, None, EXECUTION_BRANCH_DEPTH * ROOT_SIZE]
        )
        return cls(
            BeaconBlockHeader.decode(beacon),
            ExecutionPayloadHeader.decode(execution, fork),
            _decode_roots(branch),
        )


def _header_field(header: LightClientHeader) -> tuple[bytes, bool]:
    return header.encode(), header._is_variable


@dataclass(frozen=True)
class LightClientBootstrap:
    header: LightClientHeader
    current_sync_committee: SyncCommittee
    current_sync_committee_branch: tuple[bytes, ...]

    def encode(self) -> bytes:
        return _encode_container(
            [
                _header_field(self.header),
                (self.current_sync_committee.encode(), False),
                (
                    _encode_roots(
                        self.current_sync_committee_branch,
                        SYNC_COMMITTEE_BRANCH_DEPTH,
                        "current_sync_committee_branch",
                    ),
                    False,
                ),
            ]
        )

    @classmethod
    def decode(cls, data: bytes, fork: Fork) -> LightClientBootstrap:
        header, committee, branch = _decode_container(
            data,
            [_header_size(fork), SYNC_COMMITTEE_BYTES, SYNC_COMMITTEE_BRANCH_DEPTH * ROOT_SIZE],
        )
        return cls(
            LightClientHeader.decode(header, fork),
            SyncCommittee.decode(committee),
            _decode_roots(branch),
        )


@dataclass(frozen=True)
class LightClientUpdate:
    attested_header: LightClientHeader
    next_sync_committee: SyncCommittee
    next_sync_committee_branch: tuple[bytes, ...]
    finalized_header: LightClientHeader
    finality_branch: tuple[bytes, ...]
    sync_aggregate: SyncAggregate
    signature_slot: int

    def encode(self) -> bytes:
        return _encode_container(
            [
                _header_field(self.attested_header),
                (self.next_sync_committee.encode(), False),
                (
                    _encode_roots(
                        self.next_sync_committee_branch,
                        SYNC_COMMITTEE_BRANCH_DEPTH,
                        "next_sync_committee_branch",
                    ),
                    False,
                ),
                _header_field(self.finalized_header),
                (
                    _encode_roots(self.finality_branch, FINALITY_BRANCH_DEPTH, "finality_branch"),
                    False,
                ),
                (self.sync_aggregate.encode(), False),
                (encode_uint64(self.signature_slot), False),
            ]
        )

    @classmethod
    def decode(cls, data: bytes, fork: Fork) -> LightClientUpdate:
        header_size = _header_size(fork)
        attested, committee, committee_branch, finalized, finality, aggregate, slot = (
            _decode_container(
                data,
                [
                    header_size,
                    SYNC_COMMITTEE_BYTES,
                    SYNC_COMMITTEE_BRANCH_DEPTH * ROOT_SIZE,
                    header_size,
                    FINALITY_BRANCH_DEPTH * ROOT_SIZE,
                    SYNC_AGGREGATE_SIZE,
                    8,
                ],
            )
        )
        return cls(
            attested_header=LightClientHeader.decode(attested, fork),
            next_sync_committee=SyncCommittee.decode(committee),
            next_sync_committee_branch=_decode_roots(committee_branch),
            finalized_header=LightClientHeader.decode(finalized, fork),
            finality_branch=_decode_roots(finality),
            sync_aggregate=SyncAggregate.decode(aggregate),
            signature_slot=decode_uint64(slot),
        )


@dataclass(frozen=True)
class LightClientFinalityUpdate:
    attested_header: LightClientHeader
    finalized_header: LightClientHeader
    finality_branch: tuple[bytes, ...]
    sync_aggregate: SyncAggregate
    signature_slot: int

    def encode(self) -> bytes:
        return _encode_container(
            [
                _header_field(self.attested_header),
                _header_field(self.finalized_header),
                (
                    _encode_roots(self.finality_branch, FINALITY_BRANCH_DEPTH, "finality_branch"),
                    False,
                ),
                (self.sync_aggregate.encode(), False),
                (encode_uint64(self.signature_slot), False),
            ]
        )

    @classmethod
    def decode(cls, data: bytes, fork: Fork) -> LightClientFinalityUpdate:
        header_size = _header_size(fork)
        attested, finalized, finality, aggregate, slot = _decode_container(
            data,
            [header_size, header_size, FINALITY_BRANCH_DEPTH * ROOT_SIZE, SYNC_AGGREGATE_SIZE, 8],
        )
        return cls(
            attested_header=LightClientHeader.decode(attested, fork),
            finalized_header=LightClientHeader.decode(finalized, fork),
            finality_branch=_decode_roots(finality),
            sync_aggregate=SyncAggregate.decode(aggregate),
            signature_slot=decode_uint64(slot),
        )


@dataclass(frozen=True)
class LightClientOptimisticUpdate:
    attested_header: LightClientHeader
    sync_aggregate: SyncAggregate
    signature_slot: int

    def encode(self) -> bytes:
        return _encode_container(
            [
                _header_field(self.attested_header),
                (self.sync_aggregate.encode(), False),
                (encode_uint64(self.signature_slot), False),
            ]
        )

    @classmethod
    def decode(cls, data: bytes, fork: Fork) -> LightClientOptimisticUpdate:
        attested, aggregate, slot = _decode_container(
            data, [_header_size(fork), SYNC_AGGREGATE_SIZE, 8]
        )
        return cls(
            attested_header=LightClientHeader.decode(attested, fork),
            sync_aggregate=SyncAggregate.decode(aggregate),
            signature_slot=decode_uint64(slot),
        )


@dataclass(frozen=True)
class ForkedLightClientBootstrap:
    fork: Fork
    bootstrap: LightClientBootstrap

    def encode(self) -> bytes:
        return self.fork.value + self.bootstrap.encode()

    @classmethod
    def decode(cls, data: bytes) -> ForkedLightClientBootstrap:
        fork, body = _split_fork(data)
        return cls(fork, LightClientBootstrap.decode(body, fork))


@dataclass(frozen=True)
class ForkedLightClientUpdate:
    fork: Fork
    update: LightClientUpdate

    def encode(self) -> bytes:
        return self.fork.value + self.update.encode()

    @classmethod
    def decode(cls, data: bytes) -> ForkedLightClientUpdate:
        fork, body = _split_fork(data)
        return cls(fork, LightClientUpdate.decode(body, fork))


@dataclass(frozen=True)
class ForkedLightClientFinalityUpdate:
    fork: Fork
    update: LightClientFinalityUpdate

    def encode(self) -> bytes:
        return self.fork.value + self.update.encode()

    @classmethod
    def decode(cls, data: bytes) -> ForkedLightClientFinalityUpdate:
        fork, body = _split_fork(data)
        return cls(fork, LightClientFinalityUpdate.decode(body, fork))

    def beacon_slot(self) -> int:
        """Slot of the finalized beacon header."""
        return self.update.finalized_header.beacon.slot


@dataclass(frozen=True)
class ForkedLightClientOptimisticUpdate:
    fork: Fork
    update: LightClientOptimisticUpdate

    def encode(self) -> bytes:
        return self.fork.value + self.update.encode()

    @classmethod
    def decode(cls, data: bytes) -> ForkedLightClientOptimisticUpdate:
        fork, body = _split_fork(data)
        return cls(fork, LightClientOptimisticUpdate.decode(body, fork))

    def signature_slot(self) -> int:
        """Slot at which the sync committee signed the update."""
        return self.update.signature_slot


def encode_update_range(updates: Iterable[ForkedLightClientUpdate]) -> bytes:
    """Encode a list of fork-tagged updates."""
    updates = list(updates)
    if len(updates) > MAX_REQUEST_LIGHT_CLIENT_UPDATES:
        raise SSZError(
            f"update range of {len(updates)} exceeds {MAX_REQUEST_LIGHT_CLIENT_UPDATES}"
        )
    return encode_variable_list(update.encode() for update in updates)


def decode_update_range(data: bytes) -> list[ForkedLightClientUpdate]:
    """Decode a list of at most 128 fork-tagged updates."""
    return [
        ForkedLightClientUpdate.decode(item)
        for item in decode_variable_list(data, MAX_REQUEST_LIGHT_CLIENT_UPDATES)
    ]


@dataclass(frozen=True)
class HistoricalSummary:
    block_summary_root: bytes
    state_summary_root: bytes

    def hash_tree_root(self) -> bytes:
        return merkleize(
            [
                _fixed(self.block_summary_root, ROOT_SIZE, "block_summary_root"),
                _fixed(self.state_summary_root, ROOT_SIZE, "state_summary_root"),
            ]
        )


@dataclass(frozen=True)
class HistoricalSummariesWithProof:
    epoch: int
    historical_summaries: tuple[HistoricalSummary, ...]
    proof: tuple[bytes, ...]

    def encode(self) -> bytes:
        if len(self.historical_summaries) > HISTORICAL_ROOTS_LIMIT:
            raise SSZError("too many historical summaries")
        summaries = b"".join(
            _fixed(summary.block_summary_root, ROOT_SIZE, "block_summary_root")
            + _fixed(summary.state_summary_root, ROOT_SIZE, "state_summary_root")
            for summary in self.historical_summaries
        )
        return _encode_container(
            [
                (encode_uint64(self.epoch), False),
                (summaries, True),
                (_encode_roots(self.proof, HISTORICAL_SUMMARIES_PROOF_DEPTH, "proof"), False),
            ]
        )

    @classmethod
    def decode(cls, data: bytes) -> HistoricalSummariesWithProof:
        epoch, summaries, proof = _decode_container(
            data, [8, None, HISTORICAL_SUMMARIES_PROOF_DEPTH * ROOT_SIZE]
        )
        if len(summaries) % _HISTORICAL_SUMMARY_SIZE:
            raise SSZError("historical summaries length is not a multiple of 64")
        if len(summaries) // _HISTORICAL_SUMMARY_SIZE > HISTORICAL_ROOTS_LIMIT:
            raise SSZError("too many historical summaries")
        return cls(
            epoch=decode_uint64(epoch),
            historical_summaries=tuple(
                HistoricalSummary(
                    summaries[start:start + ROOT_SIZE],
                    summaries[start + ROOT_SIZE:start + _HISTORICAL_SUMMARY_SIZE],
                )
                for start in range(0, len(summaries), _HISTORICAL_SUMMARY_SIZE)
            ),
            proof=_decode_roots(proof),
        )

    def summaries_root(self) -> bytes:
        """Hash tree root of the historical summaries list."""
        roots = [summary.hash_tree_root() for summary in self.historical_summaries]
        return mix_in_length(merkleize(roots, HISTORICAL_ROOTS_LIMIT), len(roots))


@dataclass(frozen=True)
class ForkedHistoricalSummariesWithProof:
    """Historical summaries with proof, prefixed by an unchecked fork digest."""

    fork_digest: bytes
    summaries_with_proof: HistoricalSummariesWithProof

    def encode(self) -> bytes:
        return _fixed(self.fork_digest, _FORK_DIGEST_SIZE, "fork_digest") + (
            self.summaries_with_proof.encode()
        )

    @classmethod
    def decode(cls, data: bytes) -> ForkedHistoricalSummariesWithProof:
        data = bytes(data)
        if len(data) < _FORK_DIGEST_SIZE:
            raise SSZError("data too short for a fork digest")
        return cls(
            data[:_FORK_DIGEST_SIZE],
            HistoricalSummariesWithProof.decode(data[_FORK_DIGEST_SIZE:]),
        )