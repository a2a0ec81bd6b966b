# axionvera

Building blocks for a network node and its vault contract, in plain Python with no
third-party dependencies:

- `axionvera.chain_params`: network parameters taken from a genesis document, with
  scheduled parameter upgrades that take effect at a chosen activation height. Each
  upgrade must be approved by admin keys or by a DAO.
- `axionvera.config`: node configuration read from environment variables.
- `axionvera.consensus`: an asyncio consensus engine for proposals and votes, with
  quorum finalisation and expiry.
- `axionvera.exceptions`: `NetworkError` and its subclasses `ConfigError`,
  `ValidationError` and `ServerError`.
- `axionvera.vault_errors` and `axionvera.vault_events`: error codes and event
  records for the vault contract.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Chain parameters

```python
from axionvera.chain_params import ChainParameterRegistry, NetworkParametersPatch

registry = ChainParameterRegistry.development_default()
registry.set_chain_tip_height(100)

tx_id = registry.submit_parameter_upgrade(
    NetworkParametersPatch(min_base_fee=250),
    activation_epoch_height=110,
    proposer_address="dev-admin",
    dao_voter_addresses=[],
)

registry.active_parameters().min_base_fee              # 100
registry.effective_parameters_at(110).min_base_fee     # 250
registry.pending_upgrades()                            # [ScheduledUpgradeRecord(...)]
```

The development registry has chain id `axionvera-dev`, the admin key `dev-admin` and
a minimum activation delay of 10 blocks.

A rejected upgrade raises `UpgradeError`. An upgrade is rejected when it changes
nothing, when its activation height comes before the tip plus the minimum delay, or
when the governance rules do not authorise it. Admin keys and DAO member ids are
compared after trimming and lower-casing. Several upgrades that target the same
height are merged, and the later fields win.

A genesis document is a JSON object with `chain_id`, `network_parameters` and
`parameter_upgrade_governance`. The governance object has a `mode` of `admin_keys`
(with `keys`) or `dao` (with `members` and `min_approvals`). Load one with
`ChainParameterRegistry.from_genesis_file(path)`, or build one in memory with
`GenesisDocument.from_dict(data)`. A malformed file raises `ValueError`.

## Configuration

```python
from axionvera.config import NetworkConfig

config = NetworkConfig.from_env({"BIND_ADDRESS": "127.0.0.1:9000"})
config.bind_address            # "127.0.0.1:9000"
config.cache_ttl_seconds       # 3600
```

With no argument, `from_env` reads `os.environ`. The variables it reads are
`BIND_ADDRESS`, `GRPC_BIND_ADDRESS`, `GATEWAY_BIND_ADDRESS`, `DATABASE_URL`,
`SHUTDOWN_GRACE_PERIOD`, `LOG_LEVEL`, `NODE_ID`, `BOOTSTRAP_PEER`, `TLS_CERT_PATH`,
`TLS_KEY_PATH`, `ENABLE_GATEWAY`, `ENABLE_REFLECTION`, `OTLP_ENDPOINT`,
`JAEGER_ENDPOINT`, `XRAY_ENDPOINT`, `TRACING_ENABLED`, `TRACING_EXPORTER`,
`CACHE_TTL_SECONDS` and `GENESIS_CONFIG_PATH`. If `NODE_ID` is unset, a random
`node-xxxxxxxx` id is generated. A `SHUTDOWN_GRACE_PERIOD` that is not a whole
number raises `ConfigError`.

## Consensus

```python
import asyncio
from axionvera.consensus import ConsensusEngine, VoteType

async def demo():
    engine = ConsensusEngine("node-a", required_votes=1, proposal_ttl_minutes=5)
    proposal = await engine.create_proposal(b"raise fee")
    await engine.vote(proposal.id, VoteType.APPROVE, b"sig")
    return (await engine.get_proposal(proposal.id)).status

asyncio.run(demo())   # ProposalStatus.APPROVED
```

When a proposal reaches quorum, it is approved if it has more approvals than
rejections, and rejected otherwise. Proposals and votes created locally are put on
`proposal_queue` and `vote_queue` for the caller to forward to other nodes. Votes
and proposals that arrive from other nodes go through `process_vote` and
`process_proposal`. An invalid vote raises `ValidationError`: the proposal may be
unknown, inactive or expired, or the vote a duplicate. `cleanup_expired_proposals`
marks expired proposals. `start_maintenance(interval_seconds)` returns an asyncio
task that does the same on a timer.

## Vault errors and events

```python
from axionvera.vault_errors import VaultError, ErrorCategory, BalanceError

VaultError.INSUFFICIENT_BALANCE.category()              # ErrorCategory.BALANCE
int(VaultError.INSUFFICIENT_BALANCE)                    # 5
VaultError.from_domain(BalanceError.NO_DEPOSITS)        # VaultError.NO_DEPOSITS
```

`VaultException` wraps a `VaultError` or a domain error for raising. It exposes
`code` and `category`.

`axionvera.vault_events.EventLog` records the events published by `emit_deposit`,
`emit_withdraw`, `emit_distribute`, `emit_claim` and `emit_initialize`. Each event is
stamped from the log's `clock`, which defaults to the wall clock in seconds. Use
`events_for(topic)` to read the events for one topic.

## What this package does not do

This package does not run a node. It has no HTTP or gRPC server, no networking
between peers, no database and no key management or message signing. The consensus
engine only fills its queues, and sending their contents is left to the caller. The
vault modules describe the contract's error codes and events, but they do not
implement deposits, withdrawals or reward accounting.