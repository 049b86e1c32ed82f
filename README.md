# beaconlight

Building blocks for a beacon chain light client that gets its data from a
peer-to-peer content network. Pure Python, no dependencies outside the
standard library.

## Modules

- `beaconlight.ssz`: SSZ `uint64` encoding, chunk packing, `merkleize`,
  `mix_in_length`, offset-encoded variable lists and
  `verify_merkle_branch`. Bad input raises `SSZError` (a `ValueError`).
- `beaconlight.keys`: the `ContentType` enum (bootstrap, update, finality
  update, optimistic update, historical summaries) and the content key
  classes `LightClientUpdateKey`, `LightClientBootstrapKey`,
  `LightClientFinalityUpdateKey`, `LightClientOptimisticUpdateKey` and
  `HistoricalSummariesWithProofKey`, each with `encode`, `decode` and
  `hash_tree_root`. `encode_content_key` prefixes a key with its type byte;
  `split_content_key` splits it again.
- `beaconlight.config`: `Spec` (slot timing with `time_to_slot` and
  `time_at_slot`, and the mainnet fork schedule through `fork_version`),
  `ChainConfig`, `BaseConfig`, `Config`, and `mainnet()`,
  `default_config()` and `to_base_config()`.
- `beaconlight.types`: `BeaconBlockHeader`, `SyncCommittee`,
  `SyncAggregate`, `ExecutionPayloadHeader`, `LightClientHeader` and the
  altair, capella and deneb light client objects (bootstrap, update,
  finality update, optimistic update). `Fork` names the fork digests, and
  the `Forked...` classes wrap an object with its digest. The module also
  has `encode_update_range`/`decode_update_range` (at most 128 updates)
  and the historical summaries with proof.
- `beaconlight.updates`: `GenericUpdate` and `GenericBootstrap`, a single
  view of data from any fork, built by `from_bootstrap`,
  `from_light_client_update`, `from_light_client_finality_update` and
  `from_light_client_optimistic_update`. It also has `calc_sync_period`,
  `compute_domain`, `compute_signing_root` and the finality and sync
  committee proof checks.
- `beaconlight.light_client`: `ConsensusLightClient`, which bootstraps
  from a trusted checkpoint and then verifies and applies updates from a
  `ConsensusAPI`.
- `beaconlight.network`: `validate_content`, which checks received content
  against its content key. It also has `validate_historical_summaries` and
  `verify_state_summaries`.
- `beaconlight.storage`: `BeaconStorage`, a SQLite content store, with a
  `BeaconStorageCache` that holds the latest finality update and the
  latest optimistic update.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Building a content key:

```python
from beaconlight.keys import ContentType, LightClientUpdateKey, encode_content_key
from beaconlight.updates import calc_sync_period

key = LightClientUpdateKey(start_period=calc_sync_period(7358656), count=1)
content_key = encode_content_key(ContentType.LIGHT_CLIENT_UPDATE, key)
```

Running a light client. You supply a `ConsensusAPI` subclass that
implements `get_bootstrap`, `get_updates`, `get_finality_update` and
`get_optimistic_update`. The client has no BLS implementation of its own,
so you also pass a `verifier` callable. It takes
`(pubkeys, signing_root, signature)` and returns whether the aggregate
signature is valid. Without one, signature checks raise
`LightClientError`.

```python
from beaconlight.config import default_config
from beaconlight.light_client import ConsensusLightClient

client = ConsensusLightClient(api, default_config(), checkpoint_root, verifier=bls_verify)
client.sync()
print(client.header().slot, client.finality_header().slot)
```

`start()` runs `sync()`, trying up to ten times. After a successful sync
it calls `advance()` on a background thread, once per slot. `stop()` ends
that loop.

Storing content:

```python
from beaconlight.storage import BeaconStorage

with BeaconStorage("beacon.sqlite") as store:
    store.put(content_key, content_id, content)
    data = store.get(content_key, content_id)
```

The caller computes the content id. The store saves bootstraps and
historical summaries under their content id and saves updates by sync
period. It keeps finality and optimistic updates in memory only.

## Errors

Errors are raised as exceptions:

- A failed update check raises one of the `LightClientError` subclasses,
  such as `InvalidFinalityProofError` or `InvalidSignatureError`.
- Content that fails validation raises `ContentValidationError`.
- Asking the store for content it does not hold raises
  `ContentNotFoundError`.

## What this package does not do

The package contains no peer-to-peer networking: no node discovery, no
content lookup and no gossip. It also has no JSON-RPC server and no
command-line program. Fetching data is left to your `ConsensusAPI`
implementation. Validating historical summaries needs the finalized state
root, which you pass to `validate_content` yourself. BLS signature
verification is left to the `verifier` you supply.