"""Chain table loading and configuration management."""

from wallet_sweeper.data.loader import (
    CHAINS_FILE,
    get_all_supported_chain_ids,
    get_chain_config,
    get_chain_slug,
    load_chain_table,
    load_config,
)

__all__ = [
    "CHAINS_FILE",
    "get_all_supported_chain_ids",
    "get_chain_config",
    "get_chain_slug",
    "load_chain_table",
    "load_config",
]
