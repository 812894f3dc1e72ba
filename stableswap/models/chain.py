"""Typed chain/network models and the default Uniswap V2 chain registry."""

from __future__ import annotations

import re
from typing import Final
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

ADDRESS_REGEX: Final[re.Pattern[str]] = re.compile(r"^0x[a-fA-F0-9]{40}$")
HASH_REGEX: Final[re.Pattern[str]] = re.compile(r"^0x[a-fA-F0-9]{64}$")

# Native assets that can be priced through a wrapped ERC20 without extra mapping.
ETH_LIKE_SYMBOLS: Final[frozenset[str]] = frozenset({"ETH", "SEP"})
CANONICAL_WETH: Final[str] = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


class ChainConfig(BaseModel):
    """Runtime chain configuration for stable → native swaps on Uniswap V2."""

    name: str
    chain_id: int
    native_symbol: str = "ETH"
    wrapped_native: str | None = None
    v2_factory: str | None = None
    v2_pair_init_code_hash: str | None = None
    v2_router: str | None = None
    swap_contract: str | None = None
    explorer_base_url: str | None = None
    is_testnet: bool = False

    model_config = {
        "frozen": True,
    }

    @field_validator("wrapped_native", "v2_factory", "v2_router", "swap_contract")
    @classmethod
    def validate_address(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not ADDRESS_REGEX.match(value):
            raise ValueError(f"Invalid Ethereum address: {value}")
        return value

    @field_validator("v2_pair_init_code_hash")
    @classmethod
    def validate_init_code_hash(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not HASH_REGEX.match(value):
            raise ValueError(f"Invalid init code hash: {value}")
        return value.lower()

    @field_validator("explorer_base_url")
    @classmethod
    def validate_explorer_base_url(cls, value: str | None) -> str | None:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"Invalid explorer URL: {value}")
        return value.rstrip("/")

    @property
    def has_eth_like_native(self) -> bool:
        return self.native_symbol.upper() in ETH_LIKE_SYMBOLS

    @property
    def base_asset(self) -> str | None:
        """Wrapped-native token used as the base asset in pairs and swap paths.

        ETH-like chains without an explicit mapping fall back to canonical WETH.
        """
        if self.wrapped_native:
            return self.wrapped_native
        if self.has_eth_like_native:
            return CANONICAL_WETH
        return None

    @property
    def supports_pricing(self) -> bool:
        return bool(self.base_asset and self.v2_factory and self.v2_pair_init_code_hash)

    def with_swap_contract(self, address: str | None) -> "ChainConfig":
        if not address:
            return self
        return self.model_copy(update={"swap_contract": address})

    def explorer_tx_url(self, tx_hash: str) -> str | None:
        if not self.explorer_base_url:
            return None
        return f"{self.explorer_base_url}/tx/{tx_hash}"


UNISWAP_V2_INIT_CODE_HASH: Final[str] = "0x96e8ac4277198ff8b6f785478aa9a39f403cb768dd02cbee326c3e7da348845f"


SWAP_CHAIN_CONFIGS: dict[str, ChainConfig] = {
    "ethereum": ChainConfig(
        name="ethereum",
        chain_id=1,
        native_symbol="ETH",
        wrapped_native=CANONICAL_WETH,
        v2_factory="0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f",
        v2_pair_init_code_hash=UNISWAP_V2_INIT_CODE_HASH,
        v2_router="0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
        explorer_base_url="https://etherscan.io",
    ),
    "sepolia": ChainConfig(
        name="sepolia",
        chain_id=11155111,
        native_symbol="SEP",
        wrapped_native="0xfFf9976782d46CC05630D1f6eBAb18b2324d6B14",
        v2_factory="0xF62c03E08ada871A0bEb309762E260a7a6a880E6",
        v2_pair_init_code_hash=UNISWAP_V2_INIT_CODE_HASH,
        v2_router="0xeE567Fe1712Faf6149d80dA1E6934E354124CfE3",
        explorer_base_url="https://sepolia.etherscan.io",
        is_testnet=True,
    ),
}

CHAIN_KEY_BY_ID: dict[int, str] = {config.chain_id: key for key, config in SWAP_CHAIN_CONFIGS.items()}
