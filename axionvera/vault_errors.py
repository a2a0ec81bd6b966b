"""Vault error codes with categories and descriptive messages."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


class ErrorCategory(enum.Enum):
    AUTHORIZATION = "Authorization"
    BALANCE = "Balance"
    MATH = "Math"
    STATE = "State"
    VALIDATION = "Validation"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ErrorInfo:
    """Why a vault operation failed."""

    category: ErrorCategory
    message: str


class StateError(enum.Enum):
    ALREADY_INITIALIZED = enum.auto()
    NOT_INITIALIZED = enum.auto()


class ValidationError(enum.Enum):
    INVALID_AMOUNT = enum.auto()
    NEGATIVE_AMOUNT = enum.auto()
    INVALID_ADDRESS = enum.auto()
    INVALID_TOKEN_CONFIGURATION = enum.auto()


class BalanceError(enum.Enum):
    INSUFFICIENT_BALANCE = enum.auto()
    INSUFFICIENT_CONTRACT_BALANCE = enum.auto()
    NO_DEPOSITS = enum.auto()


class MathError(enum.Enum):
    OVERFLOW = enum.auto()
    REWARD_CALCULATION_FAILED = enum.auto()


class AuthorizationError(enum.Enum):
    UNAUTHORIZED = enum.auto()


DomainError = Union[StateError, ValidationError, BalanceError, MathError, AuthorizationError]


class VaultError(enum.IntEnum):
    """Error codes returned to vault callers."""

    ALREADY_INITIALIZED = 1
    NOT_INITIALIZED = 2
    UNAUTHORIZED = 3
    INVALID_AMOUNT = 4
    INSUFFICIENT_BALANCE = 5
    MATH_OVERFLOW = 6
    NO_DEPOSITS = 7
    INVALID_TOKEN_CONFIGURATION = 8
    INSUFFICIENT_CONTRACT_BALANCE = 9
    NEGATIVE_AMOUNT = 10
    INVALID_ADDRESS = 11
    REWARD_CALCULATION_FAILED = 12

    def info(self) -> ErrorInfo:
        return _INFO[self]

    def category(self) -> ErrorCategory:
        return self.info().category

    def message(self) -> str:
        return self.info().message

    @property
    def display_name(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))

    def __str__(self) -> str:
        return f"VaultError::{self.display_name}: {self.message()}"

    @classmethod
    def from_domain(cls, error: DomainError) -> VaultError:
        """Map a domain-specific error onto its vault error code."""
        try:
            return _FROM_DOMAIN[error]
        except (KeyError, TypeError):
            raise TypeError(f"not a vault domain error: {error!r}") from None


_INFO: dict[VaultError, ErrorInfo] = {
    VaultError.ALREADY_INITIALIZED: ErrorInfo(
        ErrorCategory.STATE, "vault has already been initialized"
    ),
    VaultError.NOT_INITIALIZED: ErrorInfo(ErrorCategory.STATE, "vault has not been initialized"),
    VaultError.UNAUTHORIZED: ErrorInfo(
        ErrorCategory.AUTHORIZATION, "caller is not authorized to perform this action"
    ),
    VaultError.INVALID_AMOUNT: ErrorInfo(
        ErrorCategory.VALIDATION, "amount must be greater than zero"
    ),
    VaultError.NEGATIVE_AMOUNT: ErrorInfo(ErrorCategory.VALIDATION, "amount must not be negative"),
    VaultError.INVALID_ADDRESS: ErrorInfo(ErrorCategory.VALIDATION, "provided address is invalid"),
    VaultError.INVALID_TOKEN_CONFIGURATION: ErrorInfo(
        ErrorCategory.VALIDATION, "deposit and reward token addresses must be different"
    ),
    VaultError.INSUFFICIENT_BALANCE: ErrorInfo(
        ErrorCategory.BALANCE, "available balance is lower than the requested amount"
    ),
    VaultError.NO_DEPOSITS: ErrorInfo(
        ErrorCategory.BALANCE, "reward distribution requires at least one active deposit"
    ),
    VaultError.INSUFFICIENT_CONTRACT_BALANCE: ErrorInfo(
        ErrorCategory.BALANCE, "vault token balance is lower than the requested amount"
    ),
    VaultError.MATH_OVERFLOW: ErrorInfo(
        ErrorCategory.MATH, "arithmetic overflow or underflow detected"
    ),
    VaultError.REWARD_CALCULATION_FAILED: ErrorInfo(
        ErrorCategory.MATH, "reward calculation failed due to arithmetic error"
    ),
}

_FROM_DOMAIN: dict[DomainError, VaultError] = {
    StateError.ALREADY_INITIALIZED: VaultError.ALREADY_INITIALIZED,
    StateError.NOT_INITIALIZED: VaultError.NOT_INITIALIZED,
    ValidationError.INVALID_AMOUNT: VaultError.INVALID_AMOUNT,
    ValidationError.NEGATIVE_AMOUNT: VaultError.NEGATIVE_AMOUNT,
    ValidationError.INVALID_ADDRESS: VaultError.INVALID_ADDRESS,
    ValidationError.INVALID_TOKEN_CONFIGURATION: VaultError.INVALID_TOKEN_CONFIGURATION,
    BalanceError.INSUFFICIENT_BALANCE: VaultError.INSUFFICIENT_BALANCE,
    BalanceError.INSUFFICIENT_CONTRACT_BALANCE: VaultError.INSUFFICIENT_CONTRACT_BALANCE,
    BalanceError.NO_DEPOSITS: VaultError.NO_DEPOSITS,
    MathError.OVERFLOW: VaultError.MATH_OVERFLOW,
    MathError.REWARD_CALCULATION_FAILED: VaultError.REWARD_CALCULATION_FAILED,
    AuthorizationError.UNAUTHORIZED: VaultError.UNAUTHORIZED,
}


class VaultException(Exception):
    """Raised when a vault operation fails with a :class:`VaultError`."""

    def __init__(self, error: Union[VaultError, DomainError]) -> None:
        if not isinstance(error, VaultError):
            error = VaultError.from_domain(error)
        self.error = error
        super().__init__(str(error))

    @property
    def code(self) -> int:
        return int(self.error)

    @property
    def category(self) -> ErrorCategory:
        return self.error.category()