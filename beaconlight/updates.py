"""Fork-independent views of light client data and the proofs that bind them to a state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .ssz import SSZError, merkleize, verify_merkle_branch
from .types import (
    BeaconBlockHeader,
    ForkedLightClientBootstrap,
    ForkedLightClientFinalityUpdate,
    ForkedLightClientOptimisticUpdate,
    ForkedLightClientUpdate,
    LightClientBootstrap,
    LightClientFinalityUpdate,
    LightClientOptimisticUpdate,
    LightClientUpdate,
    SyncAggregate,
    SyncCommittee,
)

SLOTS_PER_EPOCH = 32
EPOCHS_PER_SYNC_COMMITTEE_PERIOD = 256

FINALITY_BRANCH_DEPTH = 6
FINALIZED_ROOT_INDEX = 41
SYNC_COMMITTEE_BRANCH_DEPTH = 5
CURRENT_SYNC_COMMITTEE_INDEX = 22
NEXT_SYNC_COMMITTEE_INDEX = 23


@dataclass
class GenericUpdate:
    """The parts of any light client update that verification and application need."""

    attested_header: BeaconBlockHeader
    sync_aggregate: SyncAggregate
    signature_slot: int
    next_sync_committee: SyncCommittee | None = None
    next_sync_committee_branch: tuple[bytes, ...] | None = None
    finalized_header: BeaconBlockHeader | None = None
    finality_branch: tuple[bytes, ...] | None = None


@dataclass
class GenericBootstrap:
    """The parts of a light client bootstrap that the client needs."""

    header: BeaconBlockHeader
    current_sync_committee: SyncCommittee
    current_sync_committee_branch: tuple[bytes, ...]


def from_bootstrap(bootstrap) -> GenericBootstrap:
    """Generic view of a bootstrap, plain or fork-tagged."""
    if isinstance(bootstrap, ForkedLightClientBootstrap):
        bootstrap = bootstrap.bootstrap
    if not isinstance(bootstrap, LightClientBootstrap):
        raise TypeError("unknown bootstrap type")
    return GenericBootstrap(
        header=bootstrap.header.beacon,
        current_sync_committee=bootstrap.current_sync_committee,
        current_sync_committee_branch=tuple(bootstrap.current_sync_committee_branch),
    )


def from_light_client_update(update) -> GenericUpdate:
    """Generic view of a full light client update, plain or fork-tagged."""
    if isinstance(update, ForkedLightClientUpdate):
        update = update.update
    if not isinstance(update, LightClientUpdate):
        raise TypeError("unknown update type")
    return GenericUpdate(
        attested_header=update.attested_header.beacon,
        sync_aggregate=update.sync_aggregate,
        signature_slot=update.signature_slot,
        next_sync_committee=update.next_sync_committee,
        next_sync_committee_branch=tuple(update.next_sync_committee_branch),
        finalized_header=update.finalized_header.beacon,
        finality_branch=tuple(update.finality_branch),
    )


def from_light_client_finality_update(update) -> GenericUpdate:
    """Generic view of a finality update, plain or fork-tagged."""
    if isinstance(update, ForkedLightClientFinalityUpdate):
        update = update.update
    if not isinstance(update, LightClientFinalityUpdate):
        raise TypeError("unknown finality update type")
    return GenericUpdate(
        attested_header=update.attested_header.beacon,
        sync_aggregate=update.sync_aggregate,
        signature_slot=update.signature_slot,
        finalized_header=update.finalized_header.beacon,
        finality_branch=tuple(update.finality_branch),
    )


def from_light_client_optimistic_update(update) -> GenericUpdate:
    """Generic view of an optimistic update, plain or fork-tagged."""
    if isinstance(update, ForkedLightClientOptimisticUpdate):
        update = update.update
    if not isinstance(update, LightClientOptimisticUpdate):
        raise TypeError("unknown optimistic update type")
    return GenericUpdate(
        attested_header=update.attested_header.beacon,
        sync_aggregate=update.sync_aggregate,
        signature_slot=update.signature_slot,
    )


def calc_sync_period(slot: int) -> int:
    """Sync committee period that contains slot."""
    epoch = slot // SLOTS_PER_EPOCH
    return epoch // EPOCHS_PER_SYNC_COMMITTEE_PERIOD


def _sized(value: bytes, size: int, name: str) -> bytes:
    value = bytes(value)
    if len(value) != size:
        raise SSZError(f"{name} must be {size} bytes, got {len(value)}")
    return value


def compute_domain(domain_type: bytes, fork_version: bytes, genesis_root: bytes) -> bytes:
    """Signature domain: the domain type followed by 28 bytes of the fork data root."""
    domain_type = _sized(domain_type, 4, "domain_type")
    fork_version = _sized(fork_version, 4, "fork_version")
    genesis_root = _sized(genesis_root, 32, "genesis_root")
    fork_data_root = merkleize([fork_version.ljust(32, b"\x00"), genesis_root])
    return domain_type + fork_data_root[:28]


def compute_signing_root(root: bytes, domain: bytes) -> bytes:
    """Hash tree root of the signing data made of an object root and a domain."""
    return merkleize([_sized(root, 32, "root"), _sized(domain, 32, "domain")])


def is_finality_proof_valid(
    attested_header: BeaconBlockHeader,
    finalized_header: BeaconBlockHeader,
    finality_branch: Sequence[bytes],
) -> bool:
    """Whether the finalized header is proven against the attested state root."""
    return verify_merkle_branch(
        finalized_header.hash_tree_root(),
        finality_branch,
        FINALITY_BRANCH_DEPTH,
        FINALIZED_ROOT_INDEX,
        attested_header.state_root,
    )


def is_next_committee_proof_valid(
    attested_header: BeaconBlockHeader,
    next_committee: SyncCommittee,
    next_committee_branch: Sequence[bytes],
) -> bool:
    """Whether the next sync committee is proven against the attested state root."""
    return verify_merkle_branch(
        next_committee.hash_tree_root(),
        next_committee_branch,
        SYNC_COMMITTEE_BRANCH_DEPTH,
        NEXT_SYNC_COMMITTEE_INDEX,
        attested_header.state_root,
    )


def is_current_committee_proof_valid(
    attested_header: BeaconBlockHeader,
    current_committee: SyncCommittee,
    current_committee_branch: Sequence[bytes],
) -> bool:
    """Whether the current sync committee is proven against the header's state root."""
    return verify_merkle_branch(
        current_committee.hash_tree_root(),
        current_committee_branch,
        SYNC_COMMITTEE_BRANCH_DEPTH,
        CURRENT_SYNC_COMMITTEE_INDEX,
        attested_header.state_root,
    )