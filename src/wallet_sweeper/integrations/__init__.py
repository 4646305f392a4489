"""Clients for external asset-data APIs."""

from wallet_sweeper.integrations.moralis import MoralisAPIError, MoralisClient

__all__ = ["MoralisAPIError", "MoralisClient"]
