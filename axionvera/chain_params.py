"""Network parameters from genesis, scheduled upgrades and activation epochs.

Upgrades are announced when a parameter-upgrade transaction is accepted and
recorded against the current chain tip. They apply at their activation epoch
height, so every node processing the same blocks switches at the same height.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, replace
from os import PathLike
from typing import Any, Iterable, Mapping, Sequence, Union

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1


class UpgradeError(Exception):
    """A parameter upgrade was rejected."""


def _read_uint(data: Mapping[str, Any], key: str, limit: int) -> int:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    return _check_uint(data[key], key, limit)


def _check_uint(value: Any, key: str, limit: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= limit:
        raise ValueError(f"invalid value for `{key}`: {value!r}")
    return value


def _read_str_list(data: Mapping[str, Any], key: str) -> tuple[str, ...]:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    values = data[key]
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ValueError(f"field `{key}` must be a list of strings")
    return tuple(values)


def _normalize_id(value: str) -> str:
    return value.strip().lower()


@dataclass(frozen=True)
class NetworkParametersPatch:
    """Partial update merged at activation; unset fields keep the previous value."""

    max_block_body_bytes: int | None = None
    min_base_fee: int | None = None
    max_transactions_per_block: int | None = None

    def has_changes(self) -> bool:
        return any(
            value is not None
            for value in (
                self.max_block_body_bytes,
                self.min_base_fee,
                self.max_transactions_per_block,
            )
        )

    def merged_with(self, other: NetworkParametersPatch) -> NetworkParametersPatch:
        """Return this patch with every field set in ``other`` overriding it."""
        return NetworkParametersPatch(
            max_block_body_bytes=(
                other.max_block_body_bytes
                if other.max_block_body_bytes is not None
                else self.max_block_body_bytes
            ),
            min_base_fee=(
                other.min_base_fee if other.min_base_fee is not None else self.min_base_fee
            ),
            max_transactions_per_block=(
                other.max_transactions_per_block
                if other.max_transactions_per_block is not None
                else self.max_transactions_per_block
            ),
        )


@dataclass(frozen=True)
class NetworkParameters:
    """Live tunable network limits."""

    max_block_body_bytes: int
    min_base_fee: int
    max_transactions_per_block: int

    def apply_patch(self, patch: NetworkParametersPatch) -> NetworkParameters:
        changes = {
            name: value
            for name, value in (
                ("max_block_body_bytes", patch.max_block_body_bytes),
                ("min_base_fee", patch.min_base_fee),
                ("max_transactions_per_block", patch.max_transactions_per_block),
            )
            if value is not None
        }
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NetworkParameters:
        if not isinstance(data, Mapping):
            raise ValueError("network_parameters must be an object")
        return cls(
            max_block_body_bytes=_read_uint(data, "max_block_body_bytes", U64_MAX),
            min_base_fee=_read_uint(data, "min_base_fee", U64_MAX),
            max_transactions_per_block=_read_uint(data, "max_transactions_per_block", U32_MAX),
        )


@dataclass(frozen=True)
class AdminKeysGovernance:
    """One of the listed keys must propose; compared case-insensitively."""

    keys: tuple[str, ...]

    def _authorize(self, proposer_address: str, dao_voter_addresses: Sequence[str]) -> None:
        if any(voter for voter in dao_voter_addresses):
            raise UpgradeError("dao_voter_addresses must be empty for admin_keys governance")
        proposer = _normalize_id(proposer_address)
        if not proposer:
            raise UpgradeError("proposer_address is required for admin_keys governance")
        if not any(_normalize_id(key) == proposer for key in self.keys):
            raise UpgradeError("proposer is not an authorized admin key")


@dataclass(frozen=True)
class DaoGovernance:
    """A number of distinct DAO members must endorse the upgrade."""

    members: tuple[str, ...]
    min_approvals: int

    def _authorize(self, proposer_address: str, dao_voter_addresses: Sequence[str]) -> None:
        if self.min_approvals == 0:
            raise UpgradeError("dao min_approvals must be > 0")
        member_set = {_normalize_id(member) for member in self.members}
        seen: set[str] = set()
        for voter in dao_voter_addresses:
            normalized = _normalize_id(voter)
            if not normalized:
                continue
            if normalized not in member_set:
                raise UpgradeError(f"unknown dao voter: {voter}")
            seen.add(normalized)
        if len(seen) < self.min_approvals:
            raise UpgradeError(
                f"dao consensus requires {self.min_approvals} distinct member approvals, "
                f"got {len(seen)}"
            )


Governance = Union[AdminKeysGovernance, DaoGovernance]


def governance_from_dict(data: Mapping[str, Any]) -> Governance:
    """Build a governance config from its tagged JSON form (``mode`` key)."""
    if not isinstance(data, Mapping):
        raise ValueError("parameter_upgrade_governance must be an object")
    mode = data.get("mode")
    if mode == "admin_keys":
        return AdminKeysGovernance(keys=_read_str_list(data, "keys"))
    if mode == "dao":
        return DaoGovernance(
            members=_read_str_list(data, "members"),
            min_approvals=_read_uint(data, "min_approvals", U32_MAX),
        )
    if mode is None:
        raise ValueError("missing field `mode`")
    raise ValueError(f"unknown governance mode: {mode!r}")


@dataclass(frozen=True)
class GenesisDocument:
    """Root genesis document."""

    chain_id: str
    network_parameters: NetworkParameters
    parameter_upgrade_governance: Governance
    schema_version: int = 1
    genesis_time_rfc3339: str | None = None
    min_activation_delay_blocks: int = 100

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GenesisDocument:
        if not isinstance(data, Mapping):
            raise ValueError("genesis document must be an object")
        for key in ("chain_id", "network_parameters", "parameter_upgrade_governance"):
            if key not in data:
                raise ValueError(f"missing field `{key}`")
        chain_id = data["chain_id"]
        if not isinstance(chain_id, str):
            raise ValueError("chain_id must be a string")
        genesis_time = data.get("genesis_time_rfc3339")
        if genesis_time is not None and not isinstance(genesis_time, str):
            raise ValueError("genesis_time_rfc3339 must be a string")
        return cls(
            chain_id=chain_id,
            network_parameters=NetworkParameters.from_dict(data["network_parameters"]),
            parameter_upgrade_governance=governance_from_dict(
                data["parameter_upgrade_governance"]
            ),
            schema_version=_check_uint(data.get("schema_version", 1), "schema_version", U32_MAX),
            genesis_time_rfc3339=genesis_time,
            min_activation_delay_blocks=_check_uint(
                data.get("min_activation_delay_blocks", 100),
                "min_activation_delay_blocks",
                U64_MAX,
            ),
        )


@dataclass(frozen=True)
class ScheduledUpgradeRecord:
    """A recorded upgrade, possibly still in the future relative to the tip."""

    transaction_id: str
    announced_at_height: int
    activation_epoch_height: int
    patch: NetworkParametersPatch


@dataclass
class ChainParameterRegistry:
    """Genesis parameters plus scheduled activations keyed by block height."""

    chain_id: str
    governance: Governance
    min_activation_delay_blocks: int
    genesis_parameters: NetworkParameters
    current_height: int = 0
    _activations: dict[int, NetworkParametersPatch] = field(default_factory=dict, repr=False)
    _upgrade_history: list[ScheduledUpgradeRecord] = field(default_factory=list, repr=False)

    @classmethod
    def from_genesis_file(cls, path: Union[str, PathLike]) -> ChainParameterRegistry:
        try:
            with open(path, encoding="utf-8") as handle:
                raw = handle.read()
        except OSError as exc:
            raise ValueError(f"Failed to read genesis file {path}: {exc}") from exc
        try:
            doc = GenesisDocument.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError) as exc:
            raise ValueError(f"Invalid genesis JSON: {exc}") from exc
        return cls.from_genesis_document(doc)

    @classmethod
    def from_genesis_document(cls, doc: GenesisDocument) -> ChainParameterRegistry:
        return cls(
            chain_id=doc.chain_id,
            governance=doc.parameter_upgrade_governance,
            min_activation_delay_blocks=doc.min_activation_delay_blocks,
            genesis_parameters=doc.network_parameters,
        )

    @classmethod
    def development_default(cls) -> ChainParameterRegistry:
        """Registry for local development when no genesis file is configured."""
        doc = GenesisDocument(
            chain_id="axionvera-dev",
            network_parameters=NetworkParameters(
                max_block_body_bytes=2_097_152,
                min_base_fee=100,
                max_transactions_per_block=1000,
            ),
            parameter_upgrade_governance=AdminKeysGovernance(keys=("dev-admin",)),
            min_activation_delay_blocks=10,
        )
        return cls.from_genesis_document(doc)

    def effective_parameters_at(self, height: int) -> NetworkParameters:
        """Genesis parameters with every activation at or below ``height`` applied."""
        params = self.genesis_parameters
        for activation_height in sorted(self._activations):
            if activation_height <= height:
                params = params.apply_patch(self._activations[activation_height])
        return params

    def active_parameters(self) -> NetworkParameters:
        return self.effective_parameters_at(self.current_height)

    def pending_upgrades(self) -> list[ScheduledUpgradeRecord]:
        """Upgrades whose activation height lies strictly above the current tip."""
        return [
            record
            for record in self._upgrade_history
            if record.activation_epoch_height > self.current_height
        ]

    def set_chain_tip_height(self, height: int) -> None:
        self.current_height = height

    def submit_parameter_upgrade(
        self,
        patch: NetworkParametersPatch,
        activation_epoch_height: int,
        proposer_address: str,
        dao_voter_addresses: Iterable[str] = (),
    ) -> str:
        """Validate and schedule an upgrade; return its transaction id."""
        if not patch.has_changes():
            raise UpgradeError("parameter patch must set at least one field")

        self.governance._authorize(proposer_address, list(dao_voter_addresses))

        tip = self.current_height
        min_height = min(tip + self.min_activation_delay_blocks, U64_MAX)
        if activation_epoch_height < min_height:
            raise UpgradeError(
                f"activation_epoch_height {activation_epoch_height} must be >= {min_height} "
                f"(tip {tip} + min_delay {self.min_activation_delay_blocks})"
            )

        existing = self._activations.get(activation_epoch_height)
        self._activations[activation_epoch_height] = (
            patch if existing is None else existing.merged_with(patch)
        )

        tx_id = f"0x{uuid.uuid4().int:064x}"
        self._upgrade_history.append(
            ScheduledUpgradeRecord(
                transaction_id=tx_id,
                announced_at_height=tip,
                activation_epoch_height=activation_epoch_height,
                patch=patch,
            )
        )
        return tx_id