"""Network node configuration loaded from the environment."""

from __future__ import annotations

import enum
import os
import re
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Mapping

from .exceptions import ConfigError

_U64_MAX = 2**64 - 1
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")
_SIGNED = re.compile(r"[+-]?[0-9]+")


class TracingExporter(enum.Enum):
    OTLP = "Otlp"
    JAEGER = "Jaeger"
    XRAY = "XRay"
    NONE = "None"


def parse_tracing_exporter(value: str) -> TracingExporter:
    """Map an exporter name (case-insensitive) to an exporter; unknown names mean OTLP."""
    return {
        "jaeger": TracingExporter.JAEGER,
        "xray": TracingExporter.XRAY,
        "none": TracingExporter.NONE,
    }.get(value.lower(), TracingExporter.OTLP)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    return default


def _parse_i64(value: str | None) -> int | None:
    if value is None or not _SIGNED.fullmatch(value):
        return None
    number = int(value)
    return number if _I64_MIN <= number <= _I64_MAX else None


def _parse_grace_period(value: str) -> timedelta:
    if not _UNSIGNED.fullmatch(value) or int(value) > _U64_MAX:
        raise ConfigError("Invalid SHUTDOWN_GRACE_PERIOD")
    try:
        return timedelta(seconds=int(value))
    except OverflowError:
        raise ConfigError("Invalid SHUTDOWN_GRACE_PERIOD") from None


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection pool settings."""

    min_connections: int = 2
    max_connections: int = 10
    connection_timeout: timedelta = timedelta(seconds=30)
    idle_timeout: timedelta = timedelta(seconds=300)

    @classmethod
    def from_url(cls, url: str) -> DatabaseConfig:
        """Pool settings for a database URL; the URL carries none, so defaults apply."""
        return cls()


@dataclass(frozen=True)
class NetworkConfig:
    """Everything the node needs to start."""

    bind_address: str
    grpc_bind_address: str
    gateway_bind_address: str
    database_url: str
    shutdown_grace_period: timedelta
    log_level: str
    node_id: str
    database_config: DatabaseConfig = field(default_factory=DatabaseConfig)
    bootstrap_peer: str | None = None
    tls_cert_path: str | None = None
    tls_key_path: str | None = None
    enable_gateway: bool = True
    enable_reflection: bool = True
    otlp_endpoint: str | None = None
    jaeger_endpoint: str | None = None
    xray_endpoint: str | None = None
    tracing_enabled: bool = True
    tracing_exporter: TracingExporter = TracingExporter.OTLP
    signing_config: Any = None
    cache_ttl_seconds: int = 3600
    genesis_config_path: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> NetworkConfig:
        """Load configuration from ``environ`` (the process environment by default)."""
        env = os.environ if environ is None else environ

        node_id = env.get("NODE_ID")
        if node_id is None:
            node_id = f"node-{str(uuid.uuid4()).split('-')[0]}"

        cache_ttl = _parse_i64(env.get("CACHE_TTL_SECONDS"))

        return cls(
            bind_address=env.get("BIND_ADDRESS", "0.0.0.0:8080"),
            grpc_bind_address=env.get("GRPC_BIND_ADDRESS", "0.0.0.0:50051"),
            gateway_bind_address=env.get("GATEWAY_BIND_ADDRESS", "0.0.0.0:8081"),
            database_url=env.get("DATABASE_URL", "sqlite::memory:"),
            shutdown_grace_period=_parse_grace_period(env.get("SHUTDOWN_GRACE_PERIOD", "10")),
            log_level=env.get("LOG_LEVEL", "info"),
            node_id=node_id,
            database_config=DatabaseConfig(),
            bootstrap_peer=env.get("BOOTSTRAP_PEER"),
            tls_cert_path=env.get("TLS_CERT_PATH"),
            tls_key_path=env.get("TLS_KEY_PATH"),
            enable_gateway=_parse_bool(env.get("ENABLE_GATEWAY"), True),
            enable_reflection=_parse_bool(env.get("ENABLE_REFLECTION"), True),
            otlp_endpoint=env.get("OTLP_ENDPOINT"),
            jaeger_endpoint=env.get("JAEGER_ENDPOINT"),
            xray_endpoint=env.get("XRAY_ENDPOINT"),
            tracing_enabled=_parse_bool(env.get("TRACING_ENABLED"), True),
            tracing_exporter=parse_tracing_exporter(env.get("TRACING_EXPORTER", "otlp")),
            signing_config=None,
            cache_ttl_seconds=3600 if cache_ttl is None else cache_ttl,
            genesis_config_path=env.get("GENESIS_CONFIG_PATH"),
        )