import pytest

from beaconlight.keys import (
    ContentType,
    HistoricalSummariesWithProofKey,
    LightClientFinalityUpdateKey,
    LightClientOptimisticUpdateKey,
    LightClientUpdateKey,
    encode_content_key,
)
from beaconlight.network import (
    GENESIS_TIME,
    SECONDS_PER_SLOT,
    ContentValidationError,
    validate_content,
    validate_historical_summaries,
    verify_state_summaries,
)
from beaconlight.ssz import hash_pair, merkleize
from beaconlight.types import (
    BeaconBlockHeader,
    ExecutionPayloadHeader,
    Fork,
    ForkedHistoricalSummariesWithProof,
    ForkedLightClientBootstrap,
    ForkedLightClientFinalityUpdate,
    ForkedLightClientOptimisticUpdate,
    ForkedLightClientUpdate,
    HistoricalSummariesWithProof,
    HistoricalSummary,
    LightClientBootstrap,
    LightClientFinalityUpdate,
    LightClientHeader,
    LightClientOptimisticUpdate,
    LightClientUpdate,
    SyncAggregate,
    SyncCommittee,
    encode_update_range,
)

CURRENT_SLOT = 10_000_000
NOW = GENESIS_TIME + CURRENT_SLOT * SECONDS_PER_SLOT


def roots(count, seed=0):
    return tuple(bytes([seed + i]) * 32 for i in range(count))


def committee():
    return SyncCommittee(tuple(bytes([i % 256]) * 48 for i in range(512)), bytes(48))


def aggregate():
    return SyncAggregate(b"\xff" * 64, bytes(96))


def execution(deneb):
    return ExecutionPayloadHeader(
        parent_hash=bytes(32),
        fee_recipient=bytes(20),
        state_root=bytes(32),
        receipts_root=bytes(32),
        logs_bloom=bytes(256),
        prev_randao=bytes(32),
        block_number=1,
        gas_limit=2,
        gas_used=3,
        timestamp=4,
        extra_data=b"extra",
        base_fee_per_gas=7,
        block_hash=bytes(32),
        transactions_root=bytes(32),
        withdrawals_root=bytes(32),
        blob_gas_used=0 if deneb else None,
        excess_blob_gas=0 if deneb else None,
    )


def lc_header(slot, fork):
    beacon = BeaconBlockHeader(slot=slot)
    if fork is Fork.BELLATRIX:
        return LightClientHeader(beacon)
    return LightClientHeader(beacon, execution(fork is Fork.DENEB), roots(4))


def bootstrap_content(slot):
    bootstrap = LightClientBootstrap(lc_header(slot, Fork.BELLATRIX), committee(), roots(5))
    return ForkedLightClientBootstrap(Fork.BELLATRIX, bootstrap).encode()


def update_range_content(count):
    update = LightClientUpdate(
        attested_header=lc_header(100, Fork.BELLATRIX),
        next_sync_committee=committee(),
        next_sync_committee_branch=roots(5),
        finalized_header=lc_header(64, Fork.BELLATRIX),
        finality_branch=roots(6),
        sync_aggregate=aggregate(),
        signature_slot=101,
    )
    return encode_update_range([ForkedLightClientUpdate(Fork.BELLATRIX, update)] * count)


def finality_content(fork, finalized_slot):
    update = LightClientFinalityUpdate(
        attested_header=lc_header(finalized_slot + 64, fork),
        finalized_header=lc_header(finalized_slot, fork),
        finality_branch=roots(6),
        sync_aggregate=aggregate(),
        signature_slot=finalized_slot + 65,
    )
    return ForkedLightClientFinalityUpdate(fork, update).encode()


def optimistic_content(fork, signature_slot):
    update = LightClientOptimisticUpdate(
        attested_header=lc_header(signature_slot - 1, fork),
        sync_aggregate=aggregate(),
        signature_slot=signature_slot,
    )
    return ForkedLightClientOptimisticUpdate(fork, update).encode()


EPOCH = 450508969718611630


def summaries_fixture(epoch=EPOCH):
    summaries = tuple(
        HistoricalSummary(bytes([i + 1]) * 32, bytes([i + 100]) * 32) for i in range(3)
    )
    placeholder = HistoricalSummariesWithProof(epoch, summaries, roots(5))
    leaves = list(roots(32))
    leaves[27] = placeholder.summaries_root()
    state_root = merkleize(leaves)
    branch = []
    layer = leaves
    index = 27
    for _ in range(5):
        branch.append(layer[index ^ 1])
        layer = [hash_pair(layer[i], layer[i + 1]) for i in range(0, len(layer), 2)]
        index //= 2
    with_proof = HistoricalSummariesWithProof(epoch, summaries, tuple(branch))
    content = ForkedHistoricalSummariesWithProof(Fork.DENEB.value, with_proof).encode()
    return content, state_root


def summaries_key(epoch=EPOCH):
    return encode_content_key(
        ContentType.HISTORICAL_SUMMARIES, HistoricalSummariesWithProofKey(epoch)
    )


def bootstrap_key():
    return bytes([ContentType.LIGHT_CLIENT_BOOTSTRAP]) + bytes(32)


def test_recent_bootstrap_is_valid():
    assert validate_content(bootstrap_key(), bootstrap_content(CURRENT_SLOT - 1000), now=NOW) is None


def test_old_bootstrap_is_rejected():
    with pytest.raises(ContentValidationError, match="too old"):
        validate_content(bootstrap_key(), bootstrap_content(1), now=NOW)


def test_update_range_count_matches_key():
    key = encode_content_key(ContentType.LIGHT_CLIENT_UPDATE, LightClientUpdateKey(0, 1))
    assert validate_content(key, update_range_content(1), now=NOW) is None


def test_update_range_count_mismatch():
    key = encode_content_key(ContentType.LIGHT_CLIENT_UPDATE, LightClientUpdateKey(0, 2))
    with pytest.raises(ContentValidationError, match="count does not match"):
        validate_content(key, update_range_content(1), now=NOW)


def test_finality_update_valid():
    key = encode_content_key(
        ContentType.LIGHT_CLIENT_FINALITY_UPDATE, LightClientFinalityUpdateKey(6400)
    )
    assert validate_content(key, finality_content(Fork.DENEB, 6400), now=NOW) is None


def test_finality_update_slot_mismatch():
    key = encode_content_key(
        ContentType.LIGHT_CLIENT_FINALITY_UPDATE, LightClientFinalityUpdateKey(6401)
    )
    with pytest.raises(ContentValidationError, match="finalized slot"):
        validate_content(key, finality_content(Fork.DENEB, 6400), now=NOW)


def test_finality_update_old_fork():
    key = encode_content_key(
        ContentType.LIGHT_CLIENT_FINALITY_UPDATE, LightClientFinalityUpdateKey(6400)
    )
    with pytest.raises(ContentValidationError, match="recent fork"):
        validate_content(key, finality_content(Fork.CAPELLA, 6400), now=NOW)


def test_optimistic_update_valid():
    key = encode_content_key(
        ContentType.LIGHT_CLIENT_OPTIMISTIC_UPDATE, LightClientOptimisticUpdateKey(7000)
    )
    assert validate_content(key, optimistic_content(Fork.DENEB, 7000), now=NOW) is None


def test_optimistic_update_slot_mismatch():
    key = encode_content_key(
        ContentType.LIGHT_CLIENT_OPTIMISTIC_UPDATE, LightClientOptimisticUpdateKey(7001)
    )
    with pytest.raises(ContentValidationError, match="signature slot"):
        validate_content(key, optimistic_content(Fork.DENEB, 7000), now=NOW)


def test_unknown_content_type():
    with pytest.raises(ContentValidationError, match="unknown content type"):
        validate_content(bytes([0x15]) + bytes(8), b"", now=NOW)


def test_malformed_content_is_rejected():
    with pytest.raises(ContentValidationError):
        validate_content(bootstrap_key(), b"\x01\x02", now=NOW)


def test_history_summaries_with_proof_validation():
    content, state_root = summaries_fixture()
    forked = validate_historical_summaries(summaries_key(), content)
    assert forked.summaries_with_proof.epoch == EPOCH
    assert verify_state_summaries(forked, state_root) is True


def test_history_summaries_wrong_root():
    content, state_root = summaries_fixture()
    forked = validate_historical_summaries(summaries_key(), content)
    assert verify_state_summaries(forked, bytes(32)) is False


def test_history_summaries_epoch_mismatch():
    content, _ = summaries_fixture()
    with pytest.raises(ContentValidationError, match="epoch does not match"):
        validate_historical_summaries(summaries_key(EPOCH + 1), content)


def test_validate_content_historical_summaries():
    content, state_root = summaries_fixture()
    assert validate_content(summaries_key(), content, finalized_state_root=state_root, now=NOW) is None
    with pytest.raises(ContentValidationError, match="merkle proof"):
        validate_content(summaries_key(), content, finalized_state_root=bytes(32), now=NOW)


def test_validate_content_historical_summaries_needs_root():
    content, _ = summaries_fixture()
    with pytest.raises(ContentValidationError, match="finalized state root"):
        validate_content(summaries_key(), content, now=NOW)