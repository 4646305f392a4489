"""RPC provider wrapper using Ape's network management."""

import logging
from typing import Any

from ape import networks

from wallet_sweeper.config import ChainConfig
from wallet_sweeper.errors import SweepError

logger = logging.getLogger(__name__)


class ApeRPCProvider:
    """
    JSON-RPC access through Ape's network management.

    Ape picks the provider configured for the network choice (for example
    Infura when ``WEB3_INFURA_PROJECT_ID`` is set).

    Parameters
    ----------
    network_choice : str
        Ape network choice (e.g., 'ethereum:mainnet', 'base:mainnet')

    """

    def __init__(self, network_choice: str) -> None:
        self.network_choice = network_choice
        self._network_context = None
        self._provider = None

    @classmethod
    def for_chain(cls, chain: ChainConfig) -> "ApeRPCProvider":
        """
        Build a provider for a chain table row.

        Raises
        ------
        SweepError
            If the chain has no Ape network mapping

        """
        if not chain.ape_network:
            msg = f"No Ape network configured for {chain.name} (chain {chain.chain_id})"
            raise SweepError(msg)
        return cls(chain.ape_network)

    @property
    def connected(self) -> bool:
        return self._provider is not None

    def connect(self) -> None:
        """Connect to the network using Ape's network management."""
        try:
            self._network_context = networks.parse_network_choice(self.network_choice)
            self._network_context.__enter__()
            self._provider = networks.provider
        except Exception as e:
            self._network_context = None
            error_msg = f"Failed to connect to {self.network_choice}: {e}"
            raise RuntimeError(error_msg) from e
        logger.debug("Connected to %s", self.network_choice)

    def disconnect(self) -> None:
        """Disconnect from the network."""
        if self._network_context:
            try:
                self._network_context.__exit__(None, None, None)
            except Exception as e:
                logger.debug("Error during network context cleanup: %s", e)
            self._network_context = None
        self._provider = None

    def make_request(self, method: str, params: list[Any]) -> Any:
        """
        Make a single RPC request.

        Parameters
        ----------
        method : str
            RPC method name (e.g., 'eth_call', 'wallet_sendCalls')
        params : list[Any]
            Method parameters

        Returns
        -------
        Any
            RPC response

        Raises
        ------
        RuntimeError
            If provider is not connected

        """
        if not self._provider:
            error_msg = "Provider not connected. Call connect() first."
            raise RuntimeError(error_msg)
        return self._provider.make_request(method, params)

    def __enter__(self) -> "ApeRPCProvider":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.disconnect()
