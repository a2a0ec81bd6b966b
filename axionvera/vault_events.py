"""Events published by the vault and an in-memory log that records them."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, Union

EVT_INIT = "init"
EVT_DEPOSIT = "deposit"
EVT_WITHDRAW = "withdraw"
EVT_DISTRIBUTE = "distrib"
EVT_CLAIM = "claim"


@dataclass(frozen=True)
class InitializeEvent:
    admin: str
    deposit_token: str
    reward_token: str
    timestamp: int


@dataclass(frozen=True)
class DepositEvent:
    user: str
    amount: int
    new_balance: int
    timestamp: int


@dataclass(frozen=True)
class WithdrawEvent:
    user: str
    amount: int
    new_balance: int
    timestamp: int


@dataclass(frozen=True)
class DistributeRewardsEvent:
    caller: str
    amount: int
    reward_index: int
    timestamp: int


@dataclass(frozen=True)
class ClaimRewardsEvent:
    user: str
    amount: int
    timestamp: int


VaultEvent = Union[
    InitializeEvent, DepositEvent, WithdrawEvent, DistributeRewardsEvent, ClaimRewardsEvent
]


def _wall_clock() -> int:
    return int(time.time())


@dataclass
class EventLog:
    """Ordered record of published events, stamped from ``clock``."""

    clock: Callable[[], int] = _wall_clock
    _entries: list[tuple[str, VaultEvent]] = field(default_factory=list, repr=False)

    def timestamp(self) -> int:
        return self.clock()

    def publish(self, topic: str, event: VaultEvent) -> None:
        self._entries.append((topic, event))

    def events_for(self, topic: str) -> list[VaultEvent]:
        """Events published under ``topic``, oldest first."""
        return [event for entry_topic, event in self._entries if entry_topic == topic]

    def __iter__(self) -> Iterator[tuple[str, VaultEvent]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def emit_initialize(log: EventLog, admin: str, deposit_token: str, reward_token: str) -> None:
    log.publish(
        EVT_INIT,
        InitializeEvent(admin, deposit_token, reward_token, log.timestamp()),
    )


def emit_deposit(log: EventLog, user: str, amount: int, new_balance: int) -> None:
    log.publish(EVT_DEPOSIT, DepositEvent(user, amount, new_balance, log.timestamp()))


def emit_withdraw(log: EventLog, user: str, amount: int, new_balance: int) -> None:
    log.publish(EVT_WITHDRAW, WithdrawEvent(user, amount, new_balance, log.timestamp()))


def emit_distribute(log: EventLog, caller: str, amount: int, reward_index: int) -> None:
    log.publish(
        EVT_DISTRIBUTE,
        DistributeRewardsEvent(caller, amount, reward_index, log.timestamp()),
    )


def emit_claim(log: EventLog, user: str, amount: int) -> None:
    log.publish(EVT_CLAIM, ClaimRewardsEvent(user, amount, log.timestamp()))