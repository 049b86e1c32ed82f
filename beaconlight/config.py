"""Chain parameters and light client configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

_UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class Spec:
    """Consensus parameters needed for slot timing and fork selection."""

    seconds_per_slot: int = 12
    slots_per_epoch: int = 32
    sync_committee_size: int = 512
    epochs_per_sync_committee_period: int = 256
    genesis_fork_version: bytes = bytes.fromhex("00000000")
    altair_fork_version: bytes = bytes.fromhex("01000000")
    altair_fork_epoch: int = 74240
    bellatrix_fork_version: bytes = bytes.fromhex("02000000")
    bellatrix_fork_epoch: int = 144896
    capella_fork_version: bytes = bytes.fromhex("03000000")
    capella_fork_epoch: int = 194048
    deneb_fork_version: bytes = bytes.fromhex("04000000")
    deneb_fork_epoch: int = 269568

    def time_to_slot(self, timestamp: int, genesis_time: int) -> int:
        """Slot in progress at timestamp; slot 0 before genesis."""
        if timestamp < genesis_time:
            return 0
        return (timestamp - genesis_time) // self.seconds_per_slot

    def time_at_slot(self, slot: int, genesis_time: int) -> int:
        """Start time of a slot."""
        timestamp = genesis_time + slot * self.seconds_per_slot
        if slot < 0 or timestamp > _UINT64_MAX:
            raise OverflowError(f"slot {slot} is out of range")
        return timestamp

    def fork_version(self, slot: int) -> bytes:
        """Fork version active at slot."""
        epoch = slot // self.slots_per_epoch
        schedule = (
            (self.deneb_fork_epoch, self.deneb_fork_version),
            (self.capella_fork_epoch, self.capella_fork_version),
            (self.bellatrix_fork_epoch, self.bellatrix_fork_version),
            (self.altair_fork_epoch, self.altair_fork_version),
        )
        return next(
            (version for fork_epoch, version in schedule if epoch >= fork_epoch),
            self.genesis_fork_version,
        )


MAINNET_SPEC = Spec()


@dataclass(frozen=True)
class ChainConfig:
    chain_id: int = 0
    genesis_time: int = 0
    genesis_root: bytes = bytes(32)


@dataclass(frozen=True)
class BaseConfig:
    api_port: int
    api: str
    default_checkpoint: bytes
    chain: ChainConfig
    spec: Spec
    max_checkpoint_age: int


@dataclass
class Config:
    """Settings for a consensus light client."""

    consensus_api: str = ""
    port: int = 0
    default_checkpoint: bytes = bytes(32)
    checkpoint: bytes = bytes(32)
    data_dir: str = ""
    chain: ChainConfig = field(default_factory=ChainConfig)
    spec: Spec = MAINNET_SPEC
    max_checkpoint_age: int = 0
    fallback: str = ""
    load_external_fallback: bool = False
    strict_checkpoint_age: bool = False


MAINNET_TYPE = 0


def mainnet() -> BaseConfig:
    """Base configuration for Ethereum mainnet."""
    return BaseConfig(
        api_port=8545,
        api="https://www.lightclientdata.org",
        default_checkpoint=bytes.fromhex(
            "766647f3c4e1fc91c0db9a9374032ae038778411fbff222974e11f2e3ce7dadf"
        ),
        chain=ChainConfig(
            chain_id=1,
            genesis_time=1606824023,
            genesis_root=bytes.fromhex(
                "4b363db94e286120d76eb905340fdd4e54bfe9f06bf33ff6cf5ad27f511bfe95"
            ),
        ),
        spec=MAINNET_SPEC,
        max_checkpoint_age=1_209_600,
    )


def default_config() -> Config:
    """Light client configuration built from the mainnet base configuration."""
    base = mainnet()
    return Config(
        consensus_api=base.api,
        port=base.api_port,
        default_checkpoint=base.default_checkpoint,
        chain=base.chain,
        spec=base.spec,
        max_checkpoint_age=base.max_checkpoint_age,
    )


def to_base_config(network_type: int) -> BaseConfig:
    """Base configuration for a network type."""
    if network_type == MAINNET_TYPE:
        return mainnet()
    raise ValueError("unknown network type")