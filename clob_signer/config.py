"""
Configuration management for the CLOB signing client.

Loads settings from environment variables with validation and holds the
per-chain exchange contract addresses used as EIP-712 verifying contracts.
"""

from dataclasses import dataclass
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


POLYGON = 137
AMOY = 80002


class ClobSettings(BaseSettings):
    """
    Client settings.

    Loads from environment variables with CLOB_ prefix.
    """
    model_config = SettingsConfigDict(
        env_prefix="CLOB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API
    host: str = Field(
        default="https://clob.polymarket.com",
        description="CLOB API URL"
    )

    # Chain configuration
    chain_id: int = Field(default=POLYGON, description="Polygon chain ID")

    # Timeouts
    request_timeout: float = Field(default=30.0, ge=1.0, description="Request timeout (seconds)")
    connect_timeout: float = Field(default=10.0, ge=1.0, description="Connection timeout (seconds)")

    # Connection pooling
    pool_connections: int = Field(default=10, ge=1, le=200,
                                  description="HTTP connection pool size")
    pool_maxsize: int = Field(default=20, ge=1, le=500,
                              description="Max connections per pool")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_requests: bool = Field(default=False, description="Log all HTTP requests")

    # Metrics
    enable_metrics: bool = Field(default=False, description="Enable Prometheus metrics")
    metrics_port: Optional[int] = Field(default=None, ge=1024, le=65535,
                                        description="Metrics server port (no server if unset)")

    # Market metadata cache (tick size, neg-risk flag)
    metadata_cache_ttl: float = Field(default=300.0, ge=0.0, description="Metadata cache TTL (seconds)")

    def __repr__(self) -> str:
        """Safe repr without sensitive data."""
        return (
            f"ClobSettings("
            f"host={self.host}, "
            f"chain_id={self.chain_id}"
            ")"
        )


@dataclass(frozen=True)
class ContractConfig:
    """Exchange contracts for one chain."""
    exchange: str
    collateral: str
    conditional_tokens: str


# Source: https://github.com/Polymarket/py-clob-client/blob/main/py_clob_client/config.py
CONTRACTS: dict[int, ContractConfig] = {
    POLYGON: ContractConfig(
        exchange="0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E",
        collateral="0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",
        conditional_tokens="0x4D97DCd97eC945f40cF65F87097ACe5EA0476045",
    ),
    AMOY: ContractConfig(
        exchange="0xdFE02Eb6733538f8Ea35D585af8DE5958AD99E40",
        collateral="0x9c4e1703476e875070ee25b56a58b008cfb8fa78",
        conditional_tokens="0x69308FB512518e39F9b16112fA8d994F4e2Bf8bB",
    ),
}

NEG_RISK_CONTRACTS: dict[int, ContractConfig] = {
    POLYGON: ContractConfig(
        exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a",
        collateral="0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",
        conditional_tokens="0x4D97DCd97eC945f40cF65F87097ACe5EA0476045",
    ),
    AMOY: ContractConfig(
        exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a",
        collateral="0x9c4e1703476e875070ee25b56a58b008cfb8fa78",
        conditional_tokens="0x69308FB512518e39F9b16112fA8d994F4e2Bf8bB",
    ),
}


def get_settings() -> ClobSettings:
    """
    Get client settings.

    Returns:
        Validated settings instance
    """
    return ClobSettings()


def get_contract_config(chain_id: int, neg_risk: bool = False) -> ContractConfig:
    """
    Get exchange contracts for a chain.

    Args:
        chain_id: Chain ID (137 or 80002)
        neg_risk: Use the neg-risk exchange

    Returns:
        Contract configuration

    Raises:
        ConfigurationError: If the chain is not supported
    """
    table = NEG_RISK_CONTRACTS if neg_risk else CONTRACTS
    try:
        return table[chain_id]
    except KeyError:
        raise ConfigurationError(
            f"No contract configuration for chain_id={chain_id} (neg_risk={neg_risk})"
        ) from None
