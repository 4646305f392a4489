"""Asset catalog aggregating native, ERC-20 and NFT holdings from external APIs."""

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from decimal import Decimal
from typing import Any, TypeVar

from wallet_sweeper.cache import NftCache
from wallet_sweeper.config import ChainConfig, SweepConfig
from wallet_sweeper.core.addresses import is_valid_address, normalize_address
from wallet_sweeper.core.models import (
    NATIVE_TOKEN_ADDRESS,
    UINT256_MAX,
    Asset,
    AssetKind,
    Catalog,
    parse_raw_amount,
    parse_usd,
)
from wallet_sweeper.errors import CredentialMissingError, UpstreamRequestFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Returns holdings already fetched elsewhere for (owner, chain_id), or None
PortfolioSource = Callable[[str, int], list[Asset] | None]

NFT_KINDS = {"ERC721": AssetKind.ERC721, "ERC1155": AssetKind.ERC1155}


class AssetCatalog:
    """
    Fetches and normalizes every sweepable holding of a wallet on one chain.

    The native, ERC-20 and NFT sources are independent and fetched
    concurrently. Any failure of a source degrades that source to empty data;
    only an unsupported chain or a malformed address raises.

    Parameters
    ----------
    config : SweepConfig
        Chain table, limits and timeouts
    client : Any | None
        Asset-data API client (MoralisClient). Without one, only the
        portfolio source can supply data.
    nft_cache : NftCache | None
        NFT listing cache. A memory-backed cache is created if None.
    portfolio_source : PortfolioSource | None
        Previously-populated holdings, preferred for the native balance

    """

    def __init__(
        self,
        config: SweepConfig,
        client: Any | None = None,
        nft_cache: NftCache | None = None,
        portfolio_source: PortfolioSource | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.nft_cache = nft_cache or NftCache(
            ttl_ms=config.nft_cache_ttl_ms,
            prefix=config.nft_cache_prefix,
            eviction_batch=config.nft_cache_eviction_batch,
        )
        self.portfolio_source = portfolio_source

    def fetch(self, owner_address: str, chain_id: int, force_refresh: bool = False) -> Catalog:
        """
        Build the catalog for a wallet.

        Parameters
        ----------
        owner_address : str
            Wallet address
        chain_id : int
            Numeric chain id
        force_refresh : bool
            Evict the cached NFT listing before fetching

        Returns
        -------
        Catalog
            Normalized holdings; sources that failed are empty

        Raises
        ------
        InvalidAddressError
            If the address is malformed
        UnsupportedChainError
            If the chain id is not in the chain table

        """
        owner = normalize_address(owner_address)
        chain = self.config.get_chain(chain_id)

        executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="catalog")
        try:
            native_future = executor.submit(self.get_native_asset, owner, chain)
            erc20_future = executor.submit(self.get_erc20_assets, owner, chain)
            nft_future = executor.submit(self.get_nft_assets, owner, chain, force_refresh)

            native = self._collect(native_future, "native", None)
            erc20 = self._collect(erc20_future, "erc20", [])
            nfts = self._collect(nft_future, "nft", [])
        finally:
            # Do not block on a fetch that outlived its timeout
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(
            "Cataloged %s on chain %d: native=%s erc20=%d nfts=%d",
            owner,
            chain_id,
            "yes" if native else "no",
            len(erc20),
            len(nfts),
        )
        return Catalog(chain_id=chain_id, owner_address=owner, native=native, erc20=erc20, nfts=nfts)

    def _collect(self, future: Future, source: str, default: T) -> T:
        try:
            return future.result(timeout=self.config.fetch_timeout)
        except FutureTimeoutError:
            logger.warning("%s fetch timed out after %.1fs", source, self.config.fetch_timeout)
        except Exception:
            logger.exception("%s fetch failed", source)
        return default

    # Native

    def get_native_asset(self, owner: str, chain: ChainConfig) -> Asset | None:
        """
        Resolve the native coin holding.

        The portfolio source wins when it has a positive native balance;
        otherwise the balance and price APIs are queried. The asset is kept
        even when its price is unknown.

        Parameters
        ----------
        owner : str
            Wallet address (lower-cased)
        chain : ChainConfig
            Chain table row

        Returns
        -------
        Asset | None
            Native asset, or None if no positive balance is obtainable

        """
        cached = self._native_from_portfolio(owner, chain.chain_id)
        if cached is not None:
            logger.debug("Using portfolio source for native balance on %s", chain.name)
            return cached

        if self.client is None:
            return None

        try:
            data = self.client.get_native_balance(owner, chain.slug)
        except CredentialMissingError:
            logger.warning("No API key configured, skipping native balance on %s", chain.name)
            return None
        except UpstreamRequestFailed as e:
            logger.warning("Native balance unavailable on %s: %s", chain.name, e)
            return None

        raw_balance = parse_raw_amount(data.get("balance"))
        if raw_balance <= 0:
            return None

        asset = Asset(
            kind=AssetKind.NATIVE,
            contract_address=NATIVE_TOKEN_ADDRESS,
            decimals=18,
            symbol=chain.native_symbol,
            name=chain.native_symbol,
            raw_balance=raw_balance,
        )
        value = max(parse_usd(_first_present(data, "usd_value", "usdValue")), Decimal("0"))
        price = max(parse_usd(_first_present(data, "usd_price", "usdPrice")), Decimal("0"))

        if value <= 0 and price <= 0:
            price = self.client.get_native_price(chain.slug) or Decimal("0")
        if value <= 0 and price > 0:
            value = price * asset.normalized_balance
        if price <= 0 and value > 0:
            price = value / asset.normalized_balance

        return asset.model_copy(update={"unit_price_usd": price, "total_value_usd": value})

    def _native_from_portfolio(self, owner: str, chain_id: int) -> Asset | None:
        if self.portfolio_source is None:
            return None
        try:
            holdings = self.portfolio_source(owner, chain_id) or []
        except Exception:
            logger.exception("Portfolio source failed")
            return None
        for asset in holdings:
            if asset.kind == AssetKind.NATIVE and asset.raw_balance > 0:
                return asset
        return None

    # ERC-20

    def get_erc20_assets(self, owner: str, chain: ChainConfig) -> list[Asset]:
        """
        Fetch priced ERC-20 holdings.

        Zero balances and spam-flagged entries are skipped. Value comes from
        the API's USD value, then the API unit price, then a separately
        fetched unit price; tokens still worth nothing are dropped.

        Parameters
        ----------
        owner : str
            Wallet address (lower-cased)
        chain : ChainConfig
            Chain table row

        Returns
        -------
        list[Asset]
            ERC-20 assets with positive USD value

        """
        if self.client is None:
            return []

        try:
            items = self.client.get_erc20_tokens(owner, chain.slug, limit=self.config.erc20_page_limit)
        except CredentialMissingError:
            logger.warning("No API key configured, skipping ERC-20 tokens on %s", chain.name)
            return []
        except UpstreamRequestFailed as e:
            logger.warning("ERC-20 token list unavailable on %s: %s", chain.name, e)
            return []

        holdings = [asset for asset in (self._parse_erc20(item) for item in items) if asset is not None]
        if not holdings:
            return []

        with ThreadPoolExecutor(max_workers=min(len(holdings), 4)) as executor:
            priced = list(executor.map(lambda asset: self._price_erc20(asset, chain), holdings))

        assets = [asset for asset in priced if asset.total_value_usd > 0]
        dropped = len(holdings) - len(assets)
        if dropped:
            logger.debug("Dropped %d ERC-20 tokens without USD value on %s", dropped, chain.name)
        return assets

    def _parse_erc20(self, item: dict[str, Any]) -> Asset | None:
        if item.get("possible_spam") is True or item.get("native_token") is True:
            return None

        address = item.get("token_address")
        if not is_valid_address(address):
            return None

        raw_balance = parse_raw_amount(_first_present(item, "balance", "token_balance"))
        if raw_balance <= 0:
            return None

        try:
            decimals = int(item["decimals"]) if item.get("decimals") not in (None, "") else 18
        except (TypeError, ValueError):
            decimals = 18
        if decimals < 0:
            return None

        asset = Asset(
            kind=AssetKind.ERC20,
            contract_address=address.lower(),
            decimals=decimals,
            symbol=item.get("symbol") or "UNKNOWN",
            name=item.get("name"),
            raw_balance=raw_balance,
            unit_price_usd=max(parse_usd(item.get("usd_price")), Decimal("0")),
            total_value_usd=max(parse_usd(item.get("usd_value")), Decimal("0")),
        )
        return asset

    def _price_erc20(self, asset: Asset, chain: ChainConfig) -> Asset:
        value = asset.total_value_usd
        price = asset.unit_price_usd

        if value > 0:
            if price <= 0:
                price = value / asset.normalized_balance
            return asset.model_copy(update={"unit_price_usd": price})

        if price <= 0:
            try:
                price = self.client.get_token_price(asset.contract_address, chain.slug) or Decimal("0")
            except (CredentialMissingError, UpstreamRequestFailed):
                price = Decimal("0")

        value = price * asset.normalized_balance if price > 0 else Decimal("0")
        return asset.model_copy(update={"unit_price_usd": price, "total_value_usd": value})

    # NFTs

    def get_nft_assets(self, owner: str, chain: ChainConfig, force_refresh: bool = False) -> list[Asset]:
        """
        Fetch valued ERC-721 and ERC-1155 holdings through the local cache.

        Parameters
        ----------
        owner : str
            Wallet address (lower-cased)
        chain : ChainConfig
            Chain table row
        force_refresh : bool
            Evict the cached listing and query the API

        Returns
        -------
        list[Asset]
            NFT assets

        """
        listing = self._fetch_nft_listing(owner, chain, force_refresh)
        return [asset for asset in (self._parse_nft(item) for item in listing) if asset is not None]

    def _fetch_nft_listing(self, owner: str, chain: ChainConfig, force_refresh: bool) -> list[dict[str, Any]]:
        cache = self.nft_cache
        chain_id = chain.chain_id

        with cache.lock(owner, chain_id):
            if force_refresh:
                cache.invalidate(owner, chain_id)
            else:
                cached = cache.get(owner, chain_id)
                if cached is not None:
                    logger.debug("NFT cache hit for %s on %s (%d items)", owner, chain.name, len(cached))
                    return cached

            if self.client is None:
                return []

            try:
                items = self.client.get_nfts(owner, chain.slug, limit=self.config.nft_page_limit)
            except (CredentialMissingError, UpstreamRequestFailed) as e:
                logger.warning("NFT listing unavailable on %s: %s", chain.name, e)
                return []

            if chain_id in self.config.unfiltered_nft_chain_ids:
                listing = items
            else:
                listing = [item for item in items if parse_usd(item.get("floor_price_usd")) > 0]

            cache.set(owner, chain_id, listing)
            logger.debug(
                "Fetched %d NFTs on %s, %d with floor price",
                len(items),
                chain.name,
                len(listing),
            )
            return listing

    def _parse_nft(self, item: dict[str, Any]) -> Asset | None:
        kind = NFT_KINDS.get(str(item.get("contract_type") or "").upper())
        address = item.get("token_address")
        if kind is None or not is_valid_address(address):
            return None

        try:
            token_id = int(str(item.get("token_id")))
        except ValueError:
            return None
        if not 0 <= token_id <= UINT256_MAX:
            return None

        amount = 1 if kind == AssetKind.ERC721 else parse_raw_amount(item.get("amount") or 1)
        if amount <= 0:
            return None

        floor_price = max(parse_usd(item.get("floor_price_usd")), Decimal("0"))
        metadata = item.get("normalized_metadata") or {}
        symbol = item.get("symbol") or "NFT"
        name = metadata.get("name") or item.get("name") or f"{symbol} #{token_id}"

        return Asset(
            kind=kind,
            contract_address=address.lower(),
            token_id=token_id,
            decimals=0,
            symbol=symbol,
            name=name,
            raw_balance=amount,
            unit_price_usd=floor_price,
            total_value_usd=floor_price,
        )


def _first_present(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None
