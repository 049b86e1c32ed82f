import hashlib
from dataclasses import replace
from datetime import timedelta
from types import SimpleNamespace

import pytest

from beaconlight.config import Config, mainnet
from beaconlight.light_client import (
    ConsensusAPI,
    ConsensusLightClient,
    InsufficientParticipationError,
    InvalidFinalityProofError,
    InvalidNextSyncCommitteeProofError,
    InvalidPeriodError,
    InvalidSignatureError,
    InvalidTimestampError,
    LightClientError,
    NotRelevantError,
)
from beaconlight.ssz import hash_pair, uint64_root
from beaconlight.types import (
    BeaconBlockHeader,
    LightClientBootstrap,
    LightClientFinalityUpdate,
    LightClientHeader,
    LightClientOptimisticUpdate,
    LightClientUpdate,
    SyncAggregate,
    SyncCommittee,
)
from beaconlight.updates import (
    GenericUpdate,
    from_light_client_finality_update,
    from_light_client_optimistic_update,
    from_light_client_update,
)

BASE = mainnet()
GENESIS = BASE.chain.genesis_time
PERIOD_SLOTS = 32 * 256
BOOTSTRAP_SLOT = 3 * PERIOD_SLOTS + 32
FINALIZED_SLOT = BOOTSTRAP_SLOT + 64
ATTESTED_SLOT = BOOTSTRAP_SLOT + 100
SIGNATURE_SLOT = ATTESTED_SLOT + 1
OPTIMISTIC_SLOT = BOOTSTRAP_SLOT + 107
OPTIMISTIC_SIGNATURE_SLOT = OPTIMISTIC_SLOT + 1
CURRENT_SLOT = BOOTSTRAP_SLOT + 112
NOW = GENESIS + CURRENT_SLOT * 12 + 3
FULL_BITS = b"\xff" * 64


def _committee(tag):
    pubkeys = tuple(bytes([tag, i % 256, i // 256]).ljust(48, b"\x00") for i in range(512))
    return SyncCommittee(pubkeys, bytes([tag]).ljust(48, b"\x01"))


CURRENT_COMMITTEE = _committee(1)
NEXT_COMMITTEE = _committee(2)


def _config(strict=False, max_age=BASE.max_checkpoint_age, name="mock"):
    return Config(
        consensus_api=name,
        chain=BASE.chain,
        spec=BASE.spec,
        max_checkpoint_age=max_age,
        strict_checkpoint_age=strict,
    )


class _Verifier:
    def __init__(self):
        self.calls = []

    def __call__(self, pubkeys, signing_root, signature):
        self.calls.append(list(pubkeys))
        return signature == signing_root * 3


_SIGNER = ConsensusLightClient(None, _config(), bytes(32))


def _sign(header, slot):
    return _SIGNER.compute_committee_sign_root(header.hash_tree_root(), slot) * 3


def _levels(leaves):
    levels = [list(leaves)]
    while len(levels[-1]) > 1:
        nodes = iter(levels[-1])
        levels.append([hash_pair(left, right) for left, right in zip(nodes, nodes)])
    return levels


def _branch(levels, position):
    branch = []
    for level in levels[:-1]:
        branch.append(level[position ^ 1])
        position >>= 1
    return tuple(branch)


def _state(current=None, next_committee=None, finalized=None):
    leaves = [hashlib.sha256(b"field" + bytes([i])).digest() for i in range(32)]
    epoch_root = uint64_root(finalized.slot // 32) if finalized else bytes(32)
    if current is not None:
        leaves[22] = current.hash_tree_root()
    if next_committee is not None:
        leaves[23] = next_committee.hash_tree_root()
    if finalized is not None:
        leaves[20] = hash_pair(epoch_root, finalized.hash_tree_root())
    levels = _levels(leaves)
    branches = {
        "current": _branch(levels, 22),
        "next": _branch(levels, 23),
        "finality": (epoch_root,) + _branch(levels, 20),
    }
    return levels[-1][0], branches


def _header(slot, state_root=bytes(32)):
    return BeaconBlockHeader(
        slot=slot,
        proposer_index=7,
        parent_root=hashlib.sha256(b"parent%d" % slot).digest(),
        state_root=state_root,
        body_root=hashlib.sha256(b"body%d" % slot).digest(),
    )


@pytest.fixture(scope="module")
def scenario():
    boot_root, boot_branches = _state(current=CURRENT_COMMITTEE)
    boot_header = _header(BOOTSTRAP_SLOT, boot_root)
    bootstrap = LightClientBootstrap(
        LightClientHeader(boot_header), CURRENT_COMMITTEE, boot_branches["current"]
    )
    finalized = _header(FINALIZED_SLOT)
    attested_root, branches = _state(next_committee=NEXT_COMMITTEE, finalized=finalized)
    attested = _header(ATTESTED_SLOT, attested_root)
    aggregate = SyncAggregate(FULL_BITS, _sign(attested, SIGNATURE_SLOT))
    update = LightClientUpdate(
        attested_header=LightClientHeader(attested),
        next_sync_committee=NEXT_COMMITTEE,
        next_sync_committee_branch=branches["next"],
        finalized_header=LightClientHeader(finalized),
        finality_branch=branches["finality"],
        sync_aggregate=aggregate,
        signature_slot=SIGNATURE_SLOT,
    )
    finality = LightClientFinalityUpdate(
        attested_header=LightClientHeader(attested),
        finalized_header=LightClientHeader(finalized),
        finality_branch=branches["finality"],
        sync_aggregate=aggregate,
        signature_slot=SIGNATURE_SLOT,
    )
    optimistic_header = _header(OPTIMISTIC_SLOT, hashlib.sha256(b"optimistic").digest())
    optimistic = LightClientOptimisticUpdate(
        attested_header=LightClientHeader(optimistic_header),
        sync_aggregate=SyncAggregate(
            FULL_BITS, _sign(optimistic_header, OPTIMISTIC_SIGNATURE_SLOT)
        ),
        signature_slot=OPTIMISTIC_SIGNATURE_SLOT,
    )
    return SimpleNamespace(
        bootstrap=bootstrap,
        checkpoint=boot_header.hash_tree_root(),
        update=update,
        finality=finality,
        optimistic=optimistic,
        finalized=finalized,
    )


class MockAPI(ConsensusAPI):
    def __init__(self, scenario, name="mock", bootstrap=None):
        self.scenario = scenario
        self.name = name
        self.bootstrap_override = bootstrap
        self.update_calls = []

    def get_bootstrap(self, block_root):
        return self.bootstrap_override or self.scenario.bootstrap

    def get_updates(self, first_period, count):
        self.update_calls.append((first_period, count))
        return [self.scenario.update]

    def get_finality_update(self):
        return self.scenario.finality

    def get_optimistic_update(self):
        return self.scenario.optimistic


def _client(scenario, strict=False, max_age=BASE.max_checkpoint_age, name="mock",
            checkpoint=None, bootstrap=None, do_bootstrap=True):
    api = MockAPI(scenario, name=name, bootstrap=bootstrap)
    verifier = _Verifier()
    client = ConsensusLightClient(
        api,
        _config(strict, max_age, name),
        checkpoint or scenario.checkpoint,
        verifier=verifier,
        clock=lambda: NOW,
    )
    if do_bootstrap:
        client.bootstrap()
    return client, api, verifier


def test_verify_checkpoint_age_invalid(scenario):
    with pytest.raises(LightClientError, match="checkpoint is too old"):
        _client(scenario, strict=True, max_age=0)


def test_old_checkpoint_is_accepted_when_not_strict(scenario):
    client, _, _ = _client(scenario, strict=False, max_age=0)
    assert client.finality_header().slot == BOOTSTRAP_SLOT
    assert client.header().slot == BOOTSTRAP_SLOT
    assert client.store.current_sync_committee == CURRENT_COMMITTEE
    assert client.store.next_sync_committee is None


def test_header_is_none_before_bootstrap(scenario):
    client, _, _ = _client(scenario, do_bootstrap=False)
    assert client.header() is None
    assert client.finality_header() is None


def test_bootstrap_rejects_wrong_checkpoint(scenario):
    with pytest.raises(LightClientError, match="does not match expected hash"):
        _client(scenario, checkpoint=b"\x01" * 32)


def test_bootstrap_rejects_invalid_committee_proof(scenario):
    bad = replace(scenario.bootstrap, current_sync_committee_branch=(bytes(32),) * 5)
    with pytest.raises(LightClientError, match="committee proof is invalid"):
        _client(scenario, bootstrap=bad)


def test_verify_update(scenario):
    client, _, verifier = _client(scenario)
    client.verify_update(scenario.update)
    assert verifier.calls == [list(CURRENT_COMMITTEE.pubkeys)]

    generic = from_light_client_update(scenario.update)
    generic.next_sync_committee = replace(
        NEXT_COMMITTEE, pubkeys=(bytes(48),) + NEXT_COMMITTEE.pubkeys[1:]
    )
    with pytest.raises(InvalidNextSyncCommitteeProofError):
        client.verify_generic_update(generic)

    generic = from_light_client_update(scenario.update)
    generic.finalized_header = BeaconBlockHeader()
    with pytest.raises(InvalidFinalityProofError):
        client.verify_generic_update(generic)

    generic = from_light_client_update(scenario.update)
    signature = bytearray(generic.sync_aggregate.sync_committee_signature)
    signature[1] = 0xFE
    generic.sync_aggregate = SyncAggregate(FULL_BITS, bytes(signature))
    with pytest.raises(InvalidSignatureError):
        client.verify_generic_update(generic)
    assert len(verifier.calls) == 2


def test_verify_finality_update(scenario):
    client, _, verifier = _client(scenario)
    client.verify_finality_update(scenario.finality)
    assert len(verifier.calls) == 1

    generic = from_light_client_finality_update(scenario.finality)
    generic.finalized_header = BeaconBlockHeader()
    with pytest.raises(InvalidFinalityProofError):
        client.verify_generic_update(generic)

    generic = from_light_client_finality_update(scenario.finality)
    signature = bytearray(generic.sync_aggregate.sync_committee_signature)
    signature[1] = 0xFE
    generic.sync_aggregate = SyncAggregate(FULL_BITS, bytes(signature))
    with pytest.raises(InvalidSignatureError):
        client.verify_generic_update(generic)


def test_verify_optimistic_update(scenario):
    client, _, verifier = _client(scenario)
    client.verify_optimistic_update(scenario.optimistic)
    assert len(verifier.calls) == 1

    generic = from_light_client_optimistic_update(scenario.optimistic)
    generic.sync_aggregate = SyncAggregate(FULL_BITS, bytes(96))
    with pytest.raises(InvalidSignatureError):
        client.verify_generic_update(generic)


def test_sync(scenario):
    client, api, _ = _client(scenario, do_bootstrap=False)
    client.sync()
    assert client.header().slot == OPTIMISTIC_SLOT
    assert client.finality_header().slot == FINALIZED_SLOT
    assert client.store.next_sync_committee == NEXT_COMMITTEE
    assert client.last_checkpoint == scenario.finalized.hash_tree_root()
    assert api.update_calls == [(3, 128)]


def test_sync_portal_requests_nothing_within_current_period(scenario):
    client, api, _ = _client(scenario, name="portal", do_bootstrap=False)
    client.sync()
    assert api.update_calls == []
    assert client.finality_header().slot == FINALIZED_SLOT
    assert client.header().slot == OPTIMISTIC_SLOT


def test_insufficient_participation(scenario):
    client, _, _ = _client(scenario)
    generic = from_light_client_update(scenario.update)
    generic.sync_aggregate = SyncAggregate(bytes(64), generic.sync_aggregate.sync_committee_signature)
    with pytest.raises(InsufficientParticipationError):
        client.verify_generic_update(generic)


def test_invalid_timestamp_for_future_signature(scenario):
    client, _, _ = _client(scenario)
    generic = from_light_client_update(scenario.update)
    generic.signature_slot = CURRENT_SLOT + 1
    with pytest.raises(InvalidTimestampError):
        client.verify_generic_update(generic)


def test_invalid_period_without_next_committee(scenario):
    client, _, _ = _client(scenario)
    client.clock = lambda: GENESIS + (4 * PERIOD_SLOTS + 20) * 12
    generic = GenericUpdate(
        attested_header=_header(4 * PERIOD_SLOTS + 5),
        sync_aggregate=SyncAggregate(FULL_BITS, bytes(96)),
        signature_slot=4 * PERIOD_SLOTS + 6,
    )
    with pytest.raises(InvalidPeriodError):
        client.verify_generic_update(generic)


def test_not_relevant_update(scenario):
    client, _, _ = _client(scenario, do_bootstrap=False)
    client.sync()
    generic = GenericUpdate(
        attested_header=_header(FINALIZED_SLOT - 12),
        sync_aggregate=SyncAggregate(FULL_BITS, bytes(96)),
        signature_slot=FINALIZED_SLOT - 11,
    )
    with pytest.raises(NotRelevantError):
        client.verify_generic_update(generic)


def test_apply_without_majority_only_moves_optimistic_header(scenario):
    client, _, _ = _client(scenario)
    generic = from_light_client_finality_update(scenario.finality)
    bits = b"\xff" * 12 + bytes(52)
    generic.sync_aggregate = SyncAggregate(bits, generic.sync_aggregate.sync_committee_signature)
    client.apply_generic_update(generic)
    assert client.header().slot == ATTESTED_SLOT
    assert client.finality_header().slot == BOOTSTRAP_SLOT
    assert client.store.current_max_active_participants == 96


def test_apply_rotates_sync_committee(scenario):
    client, _, _ = _client(scenario, do_bootstrap=False)
    client.sync()
    generic = GenericUpdate(
        attested_header=_header(4 * PERIOD_SLOTS + 100),
        sync_aggregate=SyncAggregate(FULL_BITS, bytes(96)),
        signature_slot=4 * PERIOD_SLOTS + 101,
        next_sync_committee=CURRENT_COMMITTEE,
        next_sync_committee_branch=(bytes(32),) * 5,
        finalized_header=_header(4 * PERIOD_SLOTS + 64),
        finality_branch=(bytes(32),) * 6,
    )
    client.apply_generic_update(generic)
    assert client.store.current_sync_committee == NEXT_COMMITTEE
    assert client.store.next_sync_committee == CURRENT_COMMITTEE
    assert client.store.previous_max_active_participants == 512
    assert client.store.current_max_active_participants == 0
    assert client.finality_header().slot == 4 * PERIOD_SLOTS + 64
    assert client.header().slot == 4 * PERIOD_SLOTS + 100


def test_advance_fetches_missing_committee(scenario):
    client, api, _ = _client(scenario, do_bootstrap=False)
    client.sync()
    client.store.next_sync_committee = None
    client.advance()
    assert api.update_calls[-1] == (3, 1)
    assert client.store.next_sync_committee == NEXT_COMMITTEE


def test_advance_skips_updates_when_committee_known(scenario):
    client, api, _ = _client(scenario, do_bootstrap=False)
    client.sync()
    calls_before = list(api.update_calls)
    client.advance()
    assert api.update_calls == calls_before
    assert client.header().slot == OPTIMISTIC_SLOT


def test_duration_until_next_update(scenario):
    client, _, _ = _client(scenario)
    assert client.duration_until_next_update() == timedelta(seconds=9 + 8)


def test_sign_root_depends_on_fork(scenario):
    client, _, _ = _client(scenario)
    root = b"\x42" * 32
    capella_slot = 194048 * 32
    deneb_slot = 269568 * 32
    assert client.compute_committee_sign_root(root, capella_slot) == (
        client.compute_committee_sign_root(root, capella_slot + 5)
    )
    assert client.compute_committee_sign_root(root, capella_slot) != (
        client.compute_committee_sign_root(root, deneb_slot)
    )


def test_signature_check_needs_verifier(scenario):
    client = ConsensusLightClient(MockAPI(scenario), _config(), scenario.checkpoint)
    with pytest.raises(LightClientError, match="no BLS signature verifier"):
        client.verify_sync_committee_signature(
            [CURRENT_COMMITTEE.pubkeys[0]], _header(1), bytes(96), 2
        )