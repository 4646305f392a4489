"""Moralis API client for wallet balances, token lists, prices and NFTs."""

import logging
from decimal import Decimal
from typing import Any

import httpx

from wallet_sweeper.config import ApiCredentials
from wallet_sweeper.core.models import parse_usd
from wallet_sweeper.errors import CredentialMissingError, UpstreamRequestFailed

logger = logging.getLogger(__name__)


class MoralisAPIError(UpstreamRequestFailed):
    """Exception raised for Moralis API errors."""


class MoralisClient:
    """
    Client for the Moralis Web3 Data API.

    Every request is tried with the primary key first and retried once with
    the fallback key when the primary attempt fails.

    Parameters
    ----------
    credentials : ApiCredentials
        Primary and fallback API keys
    base_url : str
        API base URL
    timeout : float
        Request timeout in seconds
    transport : httpx.BaseTransport | None
        Custom transport (used for testing)

    """

    BASE_URL = "https://deep-index.moralis.io/api/v2.2"

    def __init__(
        self,
        credentials: ApiCredentials,
        base_url: str = BASE_URL,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"accept": "application/json"},
        )

    def request_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET a Moralis endpoint with primary/fallback key handling.

        Parameters
        ----------
        path : str
            Endpoint path relative to the base URL
        params : dict[str, Any] | None
            Query parameters

        Returns
        -------
        Any
            Decoded JSON body

        Raises
        ------
        CredentialMissingError
            If neither key is configured
        MoralisAPIError
            If every configured key fails

        """
        keys = self.credentials.keys()
        if not keys:
            msg = "No Moralis API key configured"
            raise CredentialMissingError(msg)

        url = f"{self.base_url}/{path.lstrip('/')}"
        last_error: MoralisAPIError | None = None

        for label, api_key in keys:
            try:
                response = self.client.get(url, params=params, headers={"X-API-Key": api_key})
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException as e:
                last_error = MoralisAPIError(f"Request timeout: {e}")
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                last_error = MoralisAPIError(f"HTTP error {status} for {path}", status_code=status)
            except httpx.HTTPError as e:
                last_error = MoralisAPIError(f"HTTP request failed: {e}")
            except ValueError as e:
                last_error = MoralisAPIError(f"Invalid JSON from {path}: {e}")

            logger.warning("Moralis %s key failed for %s: %s", label, path, last_error)

        raise last_error  # type: ignore[misc]

    def get_native_balance(self, address: str, chain: str) -> dict[str, Any]:
        """
        Fetch the native coin balance of a wallet.

        Parameters
        ----------
        address : str
            Wallet address
        chain : str
            Moralis chain slug

        Returns
        -------
        dict[str, Any]
            Raw response; 'balance' in wei, optional 'usd_price'/'usd_value'

        """
        data = self.request_json(f"{address}/balance", {"chain": chain})
        return data if isinstance(data, dict) else {}

    def get_native_price(self, chain: str) -> Decimal | None:
        """
        Fetch the USD price of a chain's native coin.

        Returns
        -------
        Decimal | None
            Price, or None when unknown

        """
        try:
            data = self.request_json("native/price", {"chain": chain})
        except MoralisAPIError as e:
            logger.debug("Native price unavailable on %s: %s", chain, e)
            return None
        price = parse_usd(data.get("usdPrice") if isinstance(data, dict) else None)
        return price if price > 0 else None

    def get_erc20_tokens(self, address: str, chain: str, limit: int = 100) -> list[dict[str, Any]]:
        """
        Fetch the ERC-20 token list of a wallet.

        Spam and unverified contracts are excluded server-side.

        Parameters
        ----------
        address : str
            Wallet address
        chain : str
            Moralis chain slug
        limit : int
            Page size

        Returns
        -------
        list[dict[str, Any]]
            Raw token entries

        """
        params = {
            "chain": chain,
            "limit": limit,
            "exclude_spam": "true",
            "exclude_unverified_contracts": "true",
        }
        return self._extract_items(self.request_json(f"{address}/erc20", params))

    def get_token_price(self, token_address: str, chain: str) -> Decimal | None:
        """
        Fetch the USD unit price of an ERC-20 token.

        A 404 means Moralis has no price for the token, which is normal.

        Returns
        -------
        Decimal | None
            Price, or None when unknown

        """
        try:
            data = self.request_json(f"erc20/{token_address}/price", {"chain": chain})
        except MoralisAPIError as e:
            if e.status_code != 404:
                logger.debug("Price lookup failed for %s on %s: %s", token_address, chain, e)
            return None
        price = parse_usd(data.get("usdPrice") if isinstance(data, dict) else None)
        return price if price > 0 else None

    def get_nfts(self, address: str, chain: str, limit: int = 25) -> list[dict[str, Any]]:
        """
        Fetch the NFTs held by a wallet.

        Parameters
        ----------
        address : str
            Wallet address
        chain : str
            Moralis chain slug
        limit : int
            Page size

        Returns
        -------
        list[dict[str, Any]]
            Raw NFT entries, token ids in decimal format

        """
        params = {
            "chain": chain,
            "format": "decimal",
            "limit": limit,
            "exclude_spam": "true",
        }
        return self._extract_items(self.request_json(f"{address}/nft", params))

    @staticmethod
    def _extract_items(data: Any) -> list[dict[str, Any]]:
        """Moralis list endpoints answer with a bare list, or wrap it in 'result' or 'data'."""
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            items = data.get("result") or data.get("data") or []
        else:
            items = []
        return [item for item in items if isinstance(item, dict)]

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> "MoralisClient":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: object | None,
    ) -> None:
        """Context manager exit."""
        self.close()
