"""Consensus light client that follows the beacon chain through sync committee updates."""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Sequence

from .config import Config
from .types import MAX_REQUEST_LIGHT_CLIENT_UPDATES, BeaconBlockHeader, SyncAggregate, SyncCommittee
from .updates import (
    GenericUpdate,
    calc_sync_period,
    compute_domain,
    compute_signing_root,
    from_bootstrap,
    from_light_client_finality_update,
    from_light_client_optimistic_update,
    from_light_client_update,
    is_current_committee_proof_valid,
    is_finality_proof_valid,
    is_next_committee_proof_valid,
)

SignatureVerifier = Callable[[Sequence[bytes], bytes, bytes], bool]
"""Checks an aggregate BLS signature: (pubkeys, signing_root, signature) -> valid."""

SYNC_COMMITTEE_DOMAIN_TYPE = bytes.fromhex("07000000")
_SYNC_ATTEMPTS = 10
_RETRY_DELAY_SECONDS = 10.0
_UPDATE_DELAY_SECONDS = 8
_MAJORITY_BASE = 512
_CHECKPOINT_SLOT_INTERVAL = 32


class LightClientError(Exception):
    """Base error of the light client."""

    default_message = "light client error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InsufficientParticipationError(LightClientError):
    default_message = "insufficient participation"


class InvalidTimestampError(LightClientError):
    default_message = "invalid timestamp"


class InvalidPeriodError(LightClientError):
    default_message = "invalid sync committee period"


class NotRelevantError(LightClientError):
    default_message = "update not relevant"


class InvalidFinalityProofError(LightClientError):
    default_message = "invalid finality proof"


class InvalidNextSyncCommitteeProofError(LightClientError):
    default_message = "invalid next sync committee proof"


class InvalidSignatureError(LightClientError):
    default_message = "invalid sync committee signature"


@dataclass
class LightClientStore:
    """What the light client currently trusts."""

    finalized_header: BeaconBlockHeader
    current_sync_committee: SyncCommittee
    optimistic_header: BeaconBlockHeader
    next_sync_committee: SyncCommittee | None = None
    previous_max_active_participants: int = 0
    current_max_active_participants: int = 0


class ConsensusAPI(ABC):
    """Source of light client data."""

    name: str = "consensus"
    chain_id: int = 1

    @abstractmethod
    def get_bootstrap(self, block_root: bytes):
        """Bootstrap for the block with the given root."""

    @abstractmethod
    def get_updates(self, first_period: int, count: int) -> list:
        """Light client updates for count periods starting at first_period."""

    @abstractmethod
    def get_finality_update(self):
        """Most recent finality update."""

    @abstractmethod
    def get_optimistic_update(self):
        """Most recent optimistic update."""


class ConsensusLightClient:
    """Verifies and applies light client updates starting from a trusted checkpoint."""

    def __init__(
        self,
        api: ConsensusAPI,
        config: Config,
        checkpoint: bytes,
        verifier: SignatureVerifier | None = None,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ) -> None:
        self.api = api
        self.config = config
        self.initial_checkpoint = bytes(checkpoint)
        self.last_checkpoint = bytes(32)
        self.store: LightClientStore | None = None
        self.verifier = verifier
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self._stopped = threading.Event()

    def start(self) -> None:
        """Sync, retrying a few times, then keep advancing in a background thread."""
        for _ in range(_SYNC_ATTEMPTS):
            if self._stopped.is_set():
                return
            try:
                self.sync()
            except Exception as exc:  # any failure of the data source is retried
                self.logger.warning("error syncing light client: %s", exc)
                self._stopped.wait(_RETRY_DELAY_SECONDS)
                continue
            threading.Thread(target=self._follow, daemon=True).start()
            return

    def stop(self) -> None:
        """Stop the background advance loop."""
        self._stopped.set()

    def _follow(self) -> None:
        while not self._stopped.is_set():
            try:
                self.advance()
            except Exception as exc:  # keep following the chain after a bad round
                self.logger.warning("error advancing light client: %s", exc)
            self._stopped.wait(self.duration_until_next_update().total_seconds())

    def header(self) -> BeaconBlockHeader | None:
        """Latest optimistic header, or None before bootstrap."""
        return self.store.optimistic_header if self.store else None

    def finality_header(self) -> BeaconBlockHeader | None:
        """Latest finalized header, or None before bootstrap."""
        return self.store.finalized_header if self.store else None

    def _require_store(self) -> LightClientStore:
        if self.store is None:
            raise LightClientError("light client is not bootstrapped")
        return self.store

    def bootstrap(self) -> None:
        """Fetch and check the bootstrap for the initial checkpoint and reset the store."""
        forked = self.api.get_bootstrap(self.initial_checkpoint)
        self.logger.info("bootstrapping light client from 0x%s", self.initial_checkpoint.hex())
        bootstrap = from_bootstrap(forked)

        if not self._is_valid_checkpoint(bootstrap.header.slot):
            if self.config.strict_checkpoint_age:
                raise LightClientError("checkpoint is too old")
            self.logger.warning("checkpoint is too old")

        committee_valid = is_current_committee_proof_valid(
            bootstrap.header,
            bootstrap.current_sync_committee,
            bootstrap.current_sync_committee_branch,
        )
        header_hash = bootstrap.header.hash_tree_root()
        if header_hash != self.initial_checkpoint:
            raise LightClientError(
                f"header hash 0x{header_hash.hex()} does not match expected hash "
                f"0x{self.initial_checkpoint.hex()}"
            )
        if not committee_valid:
            raise LightClientError("committee proof is invalid")

        self.store = LightClientStore(
            finalized_header=bootstrap.header,
            current_sync_committee=bootstrap.current_sync_committee,
            optimistic_header=bootstrap.header,
        )

    def sync(self) -> None:
        """Bootstrap, then catch up through periodic, finality and optimistic updates."""
        self.bootstrap()
        store = self._require_store()
        bootstrap_period = calc_sync_period(store.finalized_header.slot)

        if self.api.name == "portal":
            current_period = calc_sync_period(self._expected_current_slot())
            updates = [
                update
                for period in range(bootstrap_period, current_period)
                for update in self.api.get_updates(period, 1)
            ]
        else:
            updates = list(self.api.get_updates(bootstrap_period, MAX_REQUEST_LIGHT_CLIENT_UPDATES))

        for update in updates:
            self.verify_update(update)
            self.apply_update(update)

        self._follow_head()
        self.logger.info("light client in sync with checkpoint 0x%s", self.initial_checkpoint.hex())

    def _follow_head(self) -> None:
        finality_update = self.api.get_finality_update()
        self.verify_finality_update(finality_update)
        self.apply_finality_update(finality_update)

        optimistic_update = self.api.get_optimistic_update()
        self.verify_optimistic_update(optimistic_update)
        self.apply_optimistic_update(optimistic_update)

    def advance(self) -> None:
        """Apply the latest finality and optimistic updates, fetching the next committee if missing."""
        self._follow_head()
        store = self._require_store()
        if store.next_sync_committee is None:
            self.logger.debug("checking for sync committee update")
            current_period = calc_sync_period(store.finalized_header.slot)
            updates = list(self.api.get_updates(current_period, 1))
            if len(updates) == 1:
                update = updates[0]
                self.verify_update(update)
                self.logger.info("updating sync committee")
                self.apply_update(update)

    def _is_valid_checkpoint(self, block_slot: int) -> bool:
        try:
            current_timestamp = self._slot_timestamp(self._expected_current_slot())
            block_timestamp = self._slot_timestamp(block_slot)
        except OverflowError:
            return False
        return 0 <= current_timestamp - block_timestamp < self.config.max_checkpoint_age

    def _participants(self, aggregate: SyncAggregate) -> list[int]:
        size = self.config.spec.sync_committee_size
        return [index for index in aggregate.participants() if index < size]

    def verify_generic_update(self, update: GenericUpdate) -> None:
        """Raise the matching LightClientError if the update cannot be trusted."""
        store = self._require_store()
        participants = self._participants(update.sync_aggregate)
        if not participants:
            raise InsufficientParticipationError()

        finalized_slot = update.finalized_header.slot if update.finalized_header is not None else 0
        attested_slot = update.attested_header.slot
        if not (
            self._expected_current_slot() >= update.signature_slot > attested_slot >= finalized_slot
        ):
            raise InvalidTimestampError()

        store_period = calc_sync_period(store.finalized_header.slot)
        signature_period = calc_sync_period(update.signature_slot)
        if store.next_sync_committee is not None:
            valid_period = signature_period in (store_period, store_period + 1)
        else:
            valid_period = signature_period == store_period
        if not valid_period:
            raise InvalidPeriodError()

        attested_period = calc_sync_period(attested_slot)
        update_has_next_committee = (
            store.next_sync_committee is None
            and update.next_sync_committee is not None
            and attested_period == store_period
        )
        if attested_slot <= store.finalized_header.slot and not update_has_next_committee:
            raise NotRelevantError()

        if update.finalized_header is not None and update.finality_branch is not None:
            if not is_finality_proof_valid(
                update.attested_header, update.finalized_header, update.finality_branch
            ):
                raise InvalidFinalityProofError()

        if update.next_sync_committee is not None and update.next_sync_committee_branch is not None:
            if not is_next_committee_proof_valid(
                update.attested_header,
                update.next_sync_committee,
                update.next_sync_committee_branch,
            ):
                raise InvalidNextSyncCommitteeProofError()

        committee = (
            store.current_sync_committee
            if signature_period == store_period
            else store.next_sync_committee
        )
        pubkeys = [committee.pubkeys[index] for index in participants]
        if not self.verify_sync_committee_signature(
            pubkeys,
            update.attested_header,
            update.sync_aggregate.sync_committee_signature,
            update.signature_slot,
        ):
            raise InvalidSignatureError()

    def verify_update(self, update) -> None:
        self.verify_generic_update(from_light_client_update(update))

    def verify_finality_update(self, update) -> None:
        self.verify_generic_update(from_light_client_finality_update(update))

    def verify_optimistic_update(self, update) -> None:
        self.verify_generic_update(from_light_client_optimistic_update(update))

    def _safety_threshold(self, store: LightClientStore) -> int:
        return max(store.current_max_active_participants, store.previous_max_active_participants) // 2

    def apply_generic_update(self, update: GenericUpdate) -> None:
        """Advance the store with an update that has already been verified."""
        store = self._require_store()
        committee_bits = len(self._participants(update.sync_aggregate))

        if store.current_max_active_participants < committee_bits:
            store.current_max_active_participants = committee_bits

        if (
            committee_bits > self._safety_threshold(store)
            and update.attested_header.slot > store.optimistic_header.slot
        ):
            store.optimistic_header = update.attested_header
            self._log_update(update)

        attested_period = calc_sync_period(update.attested_header.slot)
        finalized_slot = update.finalized_header.slot if update.finalized_header is not None else 0
        finalized_period = calc_sync_period(finalized_slot)

        has_sync_update = (
            update.next_sync_committee is not None and update.next_sync_committee_branch is not None
        )
        has_finality_update = (
            update.finalized_header is not None and update.finality_branch is not None
        )
        has_finalized_next_committee = (
            store.next_sync_committee is None
            and has_sync_update
            and has_finality_update
            and finalized_period == attested_period
        )
        has_majority = committee_bits * 3 >= _MAJORITY_BASE * 2
        is_newer = finalized_slot > store.finalized_header.slot
        if not (has_majority and (is_newer or has_finalized_next_committee)):
            return

        store_period = calc_sync_period(store.finalized_header.slot)
        if store.next_sync_committee is None:
            store.next_sync_committee = update.next_sync_committee
        elif finalized_period == store_period + 1:
            self.logger.info("sync committee updated")
            store.current_sync_committee = store.next_sync_committee
            store.next_sync_committee = update.next_sync_committee
            store.previous_max_active_participants = store.current_max_active_participants
            store.current_max_active_participants = 0

        if finalized_slot > store.finalized_header.slot:
            store.finalized_header = update.finalized_header
            self._log_update(update)
            if store.finalized_header.slot % _CHECKPOINT_SLOT_INTERVAL == 0:
                self.last_checkpoint = store.finalized_header.hash_tree_root()
            if store.finalized_header.slot > store.optimistic_header.slot:
                store.optimistic_header = store.finalized_header

    def apply_update(self, update) -> None:
        self.apply_generic_update(from_light_client_update(update))

    def apply_finality_update(self, update) -> None:
        self.apply_generic_update(from_light_client_finality_update(update))

    def apply_optimistic_update(self, update) -> None:
        self.apply_generic_update(from_light_client_optimistic_update(update))

    def compute_committee_sign_root(self, header_root: bytes, slot: int) -> bytes:
        """Signing root that the sync committee signs for a header at slot."""
        fork_version = self.config.spec.fork_version(slot)
        domain = compute_domain(
            SYNC_COMMITTEE_DOMAIN_TYPE, fork_version, self.config.chain.genesis_root
        )
        return compute_signing_root(header_root, domain)

    def verify_sync_committee_signature(
        self,
        pubkeys: Sequence[bytes],
        attested_header: BeaconBlockHeader,
        signature: bytes,
        signature_slot: int,
    ) -> bool:
        """Check the aggregate signature of the participating keys over the attested header."""
        signing_root = self.compute_committee_sign_root(
            attested_header.hash_tree_root(), signature_slot
        )
        if self.verifier is None:
            raise LightClientError("no BLS signature verifier configured")
        return bool(self.verifier(list(pubkeys), signing_root, bytes(signature)))

    def _expected_current_slot(self) -> int:
        return self.config.spec.time_to_slot(int(self.clock()), self.config.chain.genesis_time)

    def _slot_timestamp(self, slot: int) -> int:
        return self.config.spec.time_at_slot(slot, self.config.chain.genesis_time)

    def _log_update(self, update: GenericUpdate) -> None:
        store = self._require_store()
        participation = len(self._participants(update.sync_aggregate)) / _MAJORITY_BASE * 100
        decimals = 1 if participation == 100.0 else 2
        slot = store.optimistic_header.slot
        try:
            age = int(self.clock()) - self._slot_timestamp(slot)
        except OverflowError as exc:
            self.logger.error("failed to get age of slot %s: %s", slot, exc)
            return
        days, rest = divmod(age, 86400)
        hours, rest = divmod(rest, 3600)
        minutes, seconds = divmod(rest, 60)
        self.logger.info(
            "update header slot=%s confidence=%s age=%d:%d:%d:%d",
            slot,
            decimals,
            days,
            hours,
            minutes,
            seconds,
        )

    def duration_until_next_update(self) -> timedelta:
        """Time to wait before the next advance: until the next slot plus a few seconds."""
        next_slot = self._expected_current_slot() + 1
        try:
            next_timestamp = self._slot_timestamp(next_slot)
        except OverflowError as exc:
            self.logger.warning("failed to get timestamp of slot %s: %s", next_slot, exc)
            return timedelta(0)
        now = int(self.clock())
        return timedelta(seconds=next_timestamp - now + _UPDATE_DELAY_SECONDS)