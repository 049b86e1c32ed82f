"""Validation of beacon network content before it is stored and gossiped."""

from __future__ import annotations

import time
from typing import Callable

from .keys import (
    ContentType,
    HistoricalSummariesWithProofKey,
    LightClientFinalityUpdateKey,
    LightClientOptimisticUpdateKey,
    LightClientUpdateKey,
    split_content_key,
)
from .ssz import SSZError, verify_merkle_branch
from .types import (
    Fork,
    ForkedHistoricalSummariesWithProof,
    ForkedLightClientBootstrap,
    ForkedLightClientFinalityUpdate,
    ForkedLightClientOptimisticUpdate,
    HistoricalSummariesWithProof,
    decode_update_range,
)
from .updates import (
    from_bootstrap,
    from_light_client_finality_update,
    from_light_client_optimistic_update,
)

GENESIS_TIME = 1606824023
SECONDS_PER_SLOT = 12
BOOTSTRAP_MAX_AGE_SECONDS = 4 * 30 * 24 * 3600
HISTORICAL_SUMMARIES_GINDEX = 59
HISTORICAL_SUMMARIES_PROOF_DEPTH = 5


class ContentValidationError(ValueError):
    """Raised when beacon content does not match its key or cannot be trusted."""


def _current_slot(now: float) -> int:
    timestamp = int(now)
    if timestamp < GENESIS_TIME:
        return 0
    return (timestamp - GENESIS_TIME) // SECONDS_PER_SLOT


def _validate_updates(key_body: bytes, content: bytes) -> None:
    updates = decode_update_range(content)
    key = LightClientUpdateKey.decode(key_body)
    if key.count != len(updates):
        raise ContentValidationError(
            "light client updates count does not match the content key count: "
            f"{len(updates)} != {key.count}"
        )


def _validate_bootstrap(content: bytes, now: float) -> None:
    bootstrap = from_bootstrap(ForkedLightClientBootstrap.decode(content))
    max_age_slots = BOOTSTRAP_MAX_AGE_SECONDS // SECONDS_PER_SLOT
    oldest_slot = _current_slot(now) - max_age_slots
    if bootstrap.header.slot < oldest_slot:
        raise ContentValidationError(
            f"light client bootstrap slot is too old: {bootstrap.header.slot}"
        )


def _validate_finality_update(key_body: bytes, content: bytes) -> None:
    key = LightClientFinalityUpdateKey.decode(key_body)
    forked = ForkedLightClientFinalityUpdate.decode(content)
    if forked.fork is not Fork.DENEB:
        raise ContentValidationError(
            "light client finality update is not from the recent fork. "
            f"Expected deneb, got {forked.fork.name.lower()}"
        )
    update = from_light_client_finality_update(forked)
    if key.finalized_slot != update.finalized_header.slot:
        raise ContentValidationError(
            "light client finality update finalized slot does not match the content key "
            f"finalized slot: {update.finalized_header.slot} != {key.finalized_slot}"
        )


def _validate_optimistic_update(key_body: bytes, content: bytes) -> None:
    key = LightClientOptimisticUpdateKey.decode(key_body)
    forked = ForkedLightClientOptimisticUpdate.decode(content)
    if forked.fork is not Fork.DENEB:
        raise ContentValidationError(
            "light client optimistic update is not from the recent fork. "
            f"Expected deneb, got {forked.fork.name.lower()}"
        )
    update = from_light_client_optimistic_update(forked)
    if key.optimistic_slot != update.signature_slot:
        raise ContentValidationError(
            "light client optimistic update signature slot does not match the content key "
            f"signature slot: {update.signature_slot} != {key.optimistic_slot}"
        )


def _validate_summaries(
    content_key: bytes, content: bytes, finalized_state_root: bytes | None
) -> None:
    summaries = validate_historical_summaries(content_key, content)
    if finalized_state_root is None:
        raise ContentValidationError("no finalized state root to check historical summaries")
    if not verify_state_summaries(summaries, finalized_state_root):
        raise ContentValidationError(
            "merkle proof validation failed for HistoricalSummariesProof"
        )


def validate_content(
    content_key: bytes,
    content: bytes,
    finalized_state_root: bytes | None = None,
    now: float | None = None,
) -> None:
    """Raise ContentValidationError unless content is valid for content_key.

    finalized_state_root is the latest finalized state root known to the light
    client, needed for historical summaries; now is the current Unix time.
    """
    if now is None:
        now = time.time()
    try:
        content_type, key_body = split_content_key(content_key)
        handlers: dict[ContentType, Callable[[], None]] = {
            ContentType.LIGHT_CLIENT_UPDATE: lambda: _validate_updates(key_body, content),
            ContentType.LIGHT_CLIENT_BOOTSTRAP: lambda: _validate_bootstrap(content, now),
            ContentType.LIGHT_CLIENT_FINALITY_UPDATE: lambda: _validate_finality_update(
                key_body, content
            ),
            ContentType.LIGHT_CLIENT_OPTIMISTIC_UPDATE: lambda: _validate_optimistic_update(
                key_body, content
            ),
            ContentType.HISTORICAL_SUMMARIES: lambda: _validate_summaries(
                content_key, content, finalized_state_root
            ),
        }
        handlers[content_type]()
    except SSZError as exc:
        raise ContentValidationError(str(exc)) from exc


def validate_historical_summaries(
    content_key: bytes, content: bytes
) -> ForkedHistoricalSummariesWithProof:
    """Decode historical summaries with proof and check their epoch against the key."""
    try:
        key = HistoricalSummariesWithProofKey.decode(bytes(content_key)[1:])
        forked = ForkedHistoricalSummariesWithProof.decode(content)
    except SSZError as exc:
        raise ContentValidationError(str(exc)) from exc
    epoch = forked.summaries_with_proof.epoch
    if epoch != key.epoch:
        raise ContentValidationError(
            "historical summaries with proof epoch does not match the content key epoch: "
            f"{epoch} != {key.epoch}"
        )
    return forked


def verify_state_summaries(summaries, latest_finalized_root: bytes) -> bool:
    """Whether the summaries' proof binds them to the given beacon state root."""
    if isinstance(summaries, ForkedHistoricalSummariesWithProof):
        summaries = summaries.summaries_with_proof
    if not isinstance(summaries, HistoricalSummariesWithProof):
        raise TypeError("expected historical summaries with proof")
    return verify_merkle_branch(
        summaries.summaries_root(),
        summaries.proof,
        HISTORICAL_SUMMARIES_PROOF_DEPTH,
        HISTORICAL_SUMMARIES_GINDEX,
        latest_finalized_root,
    )