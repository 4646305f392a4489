"""Static gas reserve heuristic for a sweep batch."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from wallet_sweeper.config import SweepConfig
from wallet_sweeper.core.models import GasBudget

logger = logging.getLogger(__name__)

WEI_PER_GWEI = Decimal(10**9)

# 20% buffer, applied as integer math
BUFFER_NUMERATOR = 12
BUFFER_DENOMINATOR = 10


class GasBudgetEstimator:
    """
    Computes how much native coin to hold back for the batch's own gas.

    No network access: gas units come from a fixed per-operation table and
    the gas price from the chain table, so identical inputs always produce
    identical budgets.

    Parameters
    ----------
    config : SweepConfig
        Chain table and gas unit heuristics

    """

    def __init__(self, config: SweepConfig) -> None:
        self.config = config

    def gas_price_wei(self, chain_id: int) -> int:
        """
        Buffered gas price for a chain.

        Parameters
        ----------
        chain_id : int
            Numeric chain id

        Returns
        -------
        int
            Price per gas unit in wei, at least 1

        """
        chain = self.config.chains.get(chain_id)
        gwei = chain.gas_price_gwei if chain is not None and chain.gas_price_gwei is not None else None
        if gwei is None:
            gwei = self.config.default_gas_price_gwei

        base_wei = int((Decimal(gwei) * WEI_PER_GWEI).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        base_wei = max(base_wei, 1)
        return max(base_wei * BUFFER_NUMERATOR // BUFFER_DENOMINATOR, 1)

    def estimate_units(self, erc20_count: int, erc721_count: int, erc1155_count: int) -> int:
        for label, count in (("erc20", erc20_count), ("erc721", erc721_count), ("erc1155", erc1155_count)):
            if count < 0:
                msg = f"{label}_count must be non-negative, got {count}"
                raise ValueError(msg)

        units = self.config.gas_units
        return (
            units.fixed_overhead
            + units.native_transfer
            + erc20_count * units.per_erc20
            + erc721_count * units.per_erc721
            + erc1155_count * units.per_erc1155
            + units.safety_margin
        )

    def estimate(self, chain_id: int, erc20_count: int, erc721_count: int, erc1155_count: int) -> GasBudget:
        """
        Estimate the native reserve for a batch.

        Parameters
        ----------
        chain_id : int
            Numeric chain id; unknown chains use the default gas price
        erc20_count : int
            ERC-20 transfers in the batch
        erc721_count : int
            ERC-721 transfers in the batch
        erc1155_count : int
            ERC-1155 transfers in the batch

        Returns
        -------
        GasBudget
            Units, buffered price and the resulting reserve

        Raises
        ------
        ValueError
            If any count is negative

        """
        gas_units = self.estimate_units(erc20_count, erc721_count, erc1155_count)
        price = self.gas_price_wei(chain_id)
        budget = GasBudget(
            estimated_gas_units=gas_units,
            gas_price_wei_per_unit=price,
            reserve_wei=gas_units * price,
        )
        logger.debug(
            "Gas reserve on chain %d: %d units x %d wei = %d wei",
            chain_id,
            gas_units,
            price,
            budget.reserve_wei,
        )
        return budget
