"""Errors raised by the network node."""

from __future__ import annotations


class NetworkError(Exception):
    """Base class for network node errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigError(NetworkError):
    """Configuration could not be loaded or is invalid."""


class ValidationError(NetworkError):
    """A request or message failed validation."""


class ServerError(NetworkError):
    """An internal server operation failed."""