"""Runtime settings and chain registry accessors."""

from stableswap.settings.config import (
    CHAIN_BY_ID,
    CHAIN_CONFIGS,
    ETHEREUM_MAINNET,
    SWAP_STABLES_ABI,
    V2_ROUTER_ABI,
    Settings,
    get_chain_config,
    settings,
)

__all__ = [
    "CHAIN_BY_ID",
    "CHAIN_CONFIGS",
    "ETHEREUM_MAINNET",
    "SWAP_STABLES_ABI",
    "V2_ROUTER_ABI",
    "Settings",
    "get_chain_config",
    "settings",
]
