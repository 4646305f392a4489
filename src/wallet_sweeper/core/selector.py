"""Ranking and bounding of the transferable asset set."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from wallet_sweeper.config import SweepConfig
from wallet_sweeper.core.models import Asset, AssetKind, Catalog, TransferCandidate

logger = logging.getLogger(__name__)


def _candidate_rank(candidate: TransferCandidate) -> tuple[Decimal, int]:
    return (candidate.usd_value, candidate.asset.raw_balance)


def _asset_rank(asset: Asset) -> tuple[Decimal, int]:
    return (asset.total_value_usd, asset.raw_balance)


def format_amount(raw_amount: int, decimals: int) -> str:
    """Render a raw amount in whole-token units without exponent notation."""
    amount = Decimal(raw_amount) / Decimal(10**decimals)
    text = f"{amount:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class AssetSelector:
    """
    Builds, ranks and caps transfer candidates.

    Selection happens in two passes. The provisional pass ranks ERC-20
    holdings and caps them at the precheck pool size; the counts of that pool
    and of the NFTs size the gas reserve. The native coin is then admitted
    only if its balance exceeds the reserve, and the merged list is ranked by
    USD value and capped at the batch size.

    Parameters
    ----------
    config : SweepConfig
        Pool and batch limits

    """

    def __init__(self, config: SweepConfig) -> None:
        self.config = config

    def rank(self, candidates: Iterable[TransferCandidate]) -> list[TransferCandidate]:
        """
        Sort candidates by USD value, then raw balance, both descending.

        The sort is stable, so fully tied candidates keep their input order.

        """
        return sorted(candidates, key=_candidate_rank, reverse=True)

    def select_erc20_pool(self, assets: Iterable[Asset]) -> list[Asset]:
        """
        Pick the ERC-20 holdings that enter the precheck.

        Parameters
        ----------
        assets : Iterable[Asset]
            Priced ERC-20 holdings

        Returns
        -------
        list[Asset]
            At most ``precheck_pool_size`` assets, most valuable first

        """
        ranked = sorted(assets, key=_asset_rank, reverse=True)
        pool = ranked[: self.config.precheck_pool_size]
        if len(ranked) > len(pool):
            logger.debug("ERC-20 pool capped at %d of %d tokens", len(pool), len(ranked))
        return pool

    def token_candidate(self, asset: Asset, owner: str, target: str) -> TransferCandidate:
        """
        Build the candidate for an ERC-20 or NFT holding.

        Parameters
        ----------
        asset : Asset
            Non-native holding
        owner : str
            Wallet address
        target : str
            Sweep recipient

        Returns
        -------
        TransferCandidate
            Candidate without calldata

        """
        if asset.kind == AssetKind.NATIVE:
            msg = "Native assets need a reserve; use native_candidate()"
            raise ValueError(msg)

        if asset.kind == AssetKind.ERC20:
            description = f"Transfer {format_amount(asset.raw_balance, asset.decimals)} {asset.symbol}"
        elif asset.kind == AssetKind.ERC1155 and asset.raw_balance > 1:
            description = f"Transfer {asset.raw_balance}x {asset.name or asset.symbol}"
        else:
            description = f"Transfer {asset.name or f'{asset.symbol} #{asset.token_id}'}"

        return TransferCandidate(
            asset=asset,
            from_address=owner,
            to_address=target,
            value_wei=0,
            usd_value=asset.total_value_usd,
            description=description,
        )

    def native_candidate(self, asset: Asset, reserve_wei: int, owner: str, target: str) -> TransferCandidate | None:
        """
        Build the native transfer left over after the gas reserve.

        Parameters
        ----------
        asset : Asset
            Native holding
        reserve_wei : int
            Amount withheld for gas
        owner : str
            Wallet address
        target : str
            Sweep recipient

        Returns
        -------
        TransferCandidate | None
            Candidate sending ``raw_balance - reserve_wei``, or None if the
            balance does not exceed the reserve

        """
        amount = asset.raw_balance - reserve_wei
        if amount <= 0:
            logger.info(
                "Native balance %d wei does not cover gas reserve %d wei, skipping",
                asset.raw_balance,
                reserve_wei,
            )
            return None

        if asset.total_value_usd > 0:
            usd_value = asset.total_value_usd * Decimal(amount) / Decimal(asset.raw_balance)
        elif asset.unit_price_usd > 0:
            usd_value = asset.unit_price_usd * Decimal(amount) / Decimal(10**asset.decimals)
        else:
            usd_value = Decimal("0")

        return TransferCandidate(
            asset=asset,
            from_address=owner,
            to_address=target,
            value_wei=amount,
            usd_value=usd_value,
            description=f"Transfer {format_amount(amount, asset.decimals)} {asset.symbol}",
        )

    def provisional(self, catalog: Catalog, target: str) -> list[TransferCandidate]:
        """
        First pass: pooled ERC-20 candidates followed by every NFT candidate.

        Parameters
        ----------
        catalog : Catalog
            Wallet holdings
        target : str
            Sweep recipient

        Returns
        -------
        list[TransferCandidate]
            Non-native candidates that size the gas reserve

        """
        owner = catalog.owner_address
        pool = self.select_erc20_pool(catalog.erc20)
        candidates = [self.token_candidate(asset, owner, target) for asset in pool]
        candidates.extend(self.token_candidate(asset, owner, target) for asset in catalog.nfts)
        return candidates

    def finalize(self, candidates: Iterable[TransferCandidate]) -> list[TransferCandidate]:
        """
        Rank the merged list and cap it at the batch size.

        Candidates beyond the cap are dropped.

        """
        ranked = self.rank(candidates)
        final = ranked[: self.config.max_batch_size]
        if len(ranked) > len(final):
            logger.info(
                "Batch capped at %d calls, dropped %d lower-value transfers",
                len(final),
                len(ranked) - len(final),
            )
        return final


def count_kinds(candidates: Iterable[TransferCandidate]) -> tuple[int, int, int]:
    """
    Count ERC-20, ERC-721 and ERC-1155 candidates.

    Returns
    -------
    tuple[int, int, int]
        (erc20, erc721, erc1155)

    """
    counts = {AssetKind.ERC20: 0, AssetKind.ERC721: 0, AssetKind.ERC1155: 0}
    for candidate in candidates:
        if candidate.asset.kind in counts:
            counts[candidate.asset.kind] += 1
    return counts[AssetKind.ERC20], counts[AssetKind.ERC721], counts[AssetKind.ERC1155]
