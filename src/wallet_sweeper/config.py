"""Configuration models for the sweep pipeline."""

from decimal import Decimal

from pydantic import BaseModel, Field, SecretStr

from wallet_sweeper.errors import UnsupportedChainError


class ChainConfig(BaseModel):
    """
    One row of the fixed chain table.

    Attributes
    ----------
    chain_id : int
        Numeric chain id
    slug : str
        Chain identifier used by the asset-data API (e.g., 'eth', 'base')
    name : str
        Human-readable chain name
    native_symbol : str
        Symbol of the native coin
    gas_price_gwei : Decimal | None
        Static gas price for the reserve heuristic (None uses the default)
    ape_network : str | None
        Ape network choice (e.g., 'ethereum:mainnet') for RPC access

    """

    chain_id: int
    slug: str
    name: str
    native_symbol: str = "ETH"
    gas_price_gwei: Decimal | None = None
    ape_network: str | None = None


class GasUnits(BaseModel):
    """Per-operation gas unit heuristics."""

    fixed_overhead: int = 46_000
    native_transfer: int = 21_000
    safety_margin: int = 20_000
    per_erc20: int = 55_000
    per_erc721: int = 60_000
    per_erc1155: int = 60_000


class ApiCredentials(BaseModel):
    """
    Primary and fallback API keys for the asset-data provider.

    Either key may be missing; with neither configured the provider degrades
    to empty data.

    """

    primary: SecretStr | None = None
    fallback: SecretStr | None = None

    def keys(self) -> list[tuple[str, str]]:
        """
        Usable keys in retry order.

        Returns
        -------
        list[tuple[str, str]]
            (label, key) pairs, primary first, blanks skipped

        """
        pairs = []
        for label, secret in (("primary", self.primary), ("fallback", self.fallback)):
            if secret is not None and secret.get_secret_value().strip():
                pairs.append((label, secret.get_secret_value().strip()))
        return pairs

    @property
    def available(self) -> bool:
        return bool(self.keys())


class SweepConfig(BaseModel):
    """
    Explicit configuration passed to every pipeline component.

    Attributes
    ----------
    chains : dict[int, ChainConfig]
        Fixed chain table keyed by chain id
    credentials : ApiCredentials
        Asset-data API keys
    moralis_base_url : str
        Asset-data API base URL
    gas_units : GasUnits
        Gas unit heuristics
    default_gas_price_gwei : Decimal
        Gas price for chains without an explicit entry
    precheck_pool_size : int
        Maximum ERC-20 transfers entering the precheck
    max_batch_size : int
        Maximum calls in the final batch
    nft_cache_ttl_ms : int
        NFT cache entry lifetime in milliseconds
    nft_cache_prefix : str
        Key prefix for NFT cache entries
    nft_cache_eviction_batch : int
        Entries evicted per storage overflow
    unfiltered_nft_chain_ids : list[int]
        Test chains whose NFTs skip the floor-price filter
    erc20_page_limit : int
        Page size for the token-list request
    nft_page_limit : int
        Page size for the NFT-listing request
    request_timeout : float
        HTTP timeout in seconds
    fetch_timeout : float
        Upper bound in seconds for each concurrent catalog fetch
    precheck_timeout : float
        Upper bound in seconds for the whole precheck
    precheck_workers : int
        Concurrent simulations
    default_target_address : str | None
        Recipient used when a sweep does not name one

    """

    chains: dict[int, ChainConfig] = Field(default_factory=dict)
    credentials: ApiCredentials = Field(default_factory=ApiCredentials)
    moralis_base_url: str = "https://deep-index.moralis.io/api/v2.2"
    gas_units: GasUnits = Field(default_factory=GasUnits)
    default_gas_price_gwei: Decimal = Decimal("0.5")
    precheck_pool_size: int = Field(default=20, gt=0)
    max_batch_size: int = Field(default=10, gt=0)
    nft_cache_ttl_ms: int = Field(default=60 * 60 * 1000, gt=0)
    nft_cache_prefix: str = "sweep_cache_"
    nft_cache_eviction_batch: int = Field(default=10, gt=0)
    unfiltered_nft_chain_ids: list[int] = Field(default_factory=lambda: [11155111])
    erc20_page_limit: int = 100
    nft_page_limit: int = 25
    request_timeout: float = 15.0
    fetch_timeout: float = 30.0
    precheck_timeout: float = 10.0
    precheck_workers: int = Field(default=4, gt=0)
    default_target_address: str | None = None

    def get_chain(self, chain_id: int) -> ChainConfig:
        """
        Look up a chain in the fixed table.

        Parameters
        ----------
        chain_id : int
            Numeric chain id

        Returns
        -------
        ChainConfig
            Chain table row

        Raises
        ------
        UnsupportedChainError
            If the chain id is not in the table

        """
        chain = self.chains.get(chain_id)
        if chain is None:
            raise UnsupportedChainError(chain_id)
        return chain

    def is_supported(self, chain_id: int) -> bool:
        return chain_id in self.chains
