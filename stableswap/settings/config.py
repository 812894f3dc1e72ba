"""
Configuration management for the stable → native swap service.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stableswap.models.chain import (
    CHAIN_KEY_BY_ID,
    SWAP_CHAIN_CONFIGS,
    ChainConfig,
)

PROJECT_ROOT = Path(__file__).resolve().parents[2]

CHAIN_CONFIGS: dict[str, ChainConfig] = SWAP_CHAIN_CONFIGS
CHAIN_BY_ID: dict[int, str] = dict(CHAIN_KEY_BY_ID)
ETHEREUM_MAINNET: ChainConfig = CHAIN_CONFIGS["ethereum"]

V2_ROUTER_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {"internalType": "address[]", "name": "path", "type": "address[]"},
        ],
        "name": "getAmountsOut",
        "outputs": [{"internalType": "uint256[]", "name": "amounts", "type": "uint256[]"}],
        "stateMutability": "view",
        "type": "function",
    }
]

SWAP_STABLES_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "address", "name": "tokenIn", "type": "address"},
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {"internalType": "address[][]", "name": "paths", "type": "address[][]"},
            {"internalType": "uint256", "name": "amountOutMin", "type": "uint256"},
            {"internalType": "uint256", "name": "deadline", "type": "uint256"},
        ],
        "name": "swapStableToETHBest",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "uniV2",
        "outputs": [{"internalType": "contract IUniswapV2Router02", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "user", "type": "address"},
            {"indexed": True, "internalType": "address", "name": "tokenIn", "type": "address"},
            {"indexed": False, "internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {"indexed": False, "internalType": "uint256", "name": "amountOut", "type": "uint256"},
        ],
        "name": "SwapExecuted",
        "type": "event",
    },
]


def get_chain_config(chain: str | int | None) -> ChainConfig | None:
    """Return chain configuration by chain name or chain id."""
    if chain is None:
        return None
    if isinstance(chain, int):
        chain_key = CHAIN_BY_ID.get(chain)
        return CHAIN_CONFIGS.get(chain_key) if chain_key else None
    return CHAIN_CONFIGS.get(chain.strip().lower())


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        extra="ignore",
        env_ignore_empty=True,
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
    )

    app_name: str = "stableswap"
    app_version: str = "0.1.0"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")

    # Redis (price snapshots)
    redis_host: str = Field(default="localhost", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    redis_db: int = Field(default=0, validation_alias="REDIS_DB")
    price_snapshot_enabled: bool = Field(default=True, validation_alias="PRICE_SNAPSHOT_ENABLED")
    price_snapshot_prefix: str = Field(default="stableswap:price:", validation_alias="PRICE_SNAPSHOT_PREFIX")

    # Chain access
    chain: str = Field(default="ethereum", validation_alias="CHAIN")
    eth_rpc_url: str = Field(default="https://eth.llamarpc.com", validation_alias="ETH_RPC_URL")
    rpc_timeout_seconds: float = Field(default=10.0, gt=0, validation_alias="RPC_TIMEOUT_SECONDS")
    swap_contract_address: Optional[str] = Field(default=None, validation_alias="SWAP_CONTRACT_ADDRESS")

    # Price cache
    price_ttl_ms: int = Field(default=14_000, gt=0, validation_alias="PRICE_TTL_MS")
    price_poll_interval_ms: int = Field(default=15_000, gt=0, validation_alias="PRICE_POLL_INTERVAL_MS")
    price_cache_max_entries: int = Field(default=256, ge=1, validation_alias="PRICE_CACHE_MAX_ENTRIES")

    # Swap defaults
    slippage_tolerance_bps: int = Field(default=100, ge=1, lt=10_000, validation_alias="SLIPPAGE_TOLERANCE_BPS")
    deadline_offset_seconds: int = Field(default=1_200, gt=0, validation_alias="DEADLINE_OFFSET_SECONDS")
    fallback_slippage_multiplier: int = Field(default=2, ge=2, validation_alias="FALLBACK_SLIPPAGE_MULTIPLIER")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str = Field(default="logs/stableswap.log", validation_alias="LOG_FILE")

    @model_validator(mode="after")
    def _normalize_chain(self) -> "Settings":
        self.chain = (self.chain or "ethereum").strip().lower()
        if self.swap_contract_address is not None and not self.swap_contract_address.strip():
            self.swap_contract_address = None
        return self

    @property
    def chain_config(self) -> ChainConfig | None:
        """Active chain configuration with the deployed swap contract applied."""
        config = get_chain_config(self.chain)
        if config is None:
            return None
        return config.with_swap_contract(self.swap_contract_address)

    def cache_settings(self) -> Dict[str, int]:
        return {
            "ttl_ms": self.price_ttl_ms,
            "poll_interval_ms": self.price_poll_interval_ms,
            "max_entries": self.price_cache_max_entries,
        }


settings = Settings()
