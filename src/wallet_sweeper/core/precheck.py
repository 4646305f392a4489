"""Read-only simulation of ERC-20 transfers before submission."""

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

from wallet_sweeper.config import SweepConfig
from wallet_sweeper.core.models import AssetKind, PrecheckReport, TransferCandidate
from wallet_sweeper.errors import PrecheckRejected

logger = logging.getLogger(__name__)

ABI_FALSE = "0x" + "0" * 64


class PrecheckGate:
    """
    Drops ERC-20 transfers that would revert.

    Each ERC-20 candidate is simulated with ``eth_call`` from the owner
    against the latest block, all under one deadline. A revert, RPC error,
    an unfinished simulation at the deadline, or an ABI-encoded
    ``false`` return drops that candidate only. Native and NFT candidates are
    not simulated and keep their position.

    Parameters
    ----------
    provider : Any
        Object exposing ``make_request(method, params)`` (e.g., ApeRPCProvider)
    config : SweepConfig
        Worker count and overall simulation deadline

    """

    def __init__(self, provider: Any, config: SweepConfig) -> None:
        self.provider = provider
        self.config = config

    def simulate(self, candidate: TransferCandidate) -> None:
        """
        Simulate one transfer.

        Raises
        ------
        PrecheckRejected
            If the call reverts or reports failure

        """
        if not candidate.calldata:
            msg = f"No calldata for {candidate.asset.symbol}"
            raise PrecheckRejected(msg)

        tx = {
            "from": candidate.from_address,
            "to": candidate.call_target,
            "data": candidate.calldata,
        }
        try:
            result = self.provider.make_request("eth_call", [tx, "latest"])
        except Exception as e:
            raise PrecheckRejected(f"eth_call failed for {candidate.asset.symbol}: {e}") from e

        if isinstance(result, bytes):
            result = "0x" + result.hex()
        if isinstance(result, str) and result.lower() == ABI_FALSE:
            msg = f"{candidate.asset.symbol} transfer returned false"
            raise PrecheckRejected(msg)

    def run(self, candidates: Sequence[TransferCandidate]) -> PrecheckReport:
        """
        Filter candidates, simulating only ERC-20 transfers.

        Parameters
        ----------
        candidates : Sequence[TransferCandidate]
            Encoded candidates

        Returns
        -------
        PrecheckReport
            Surviving candidates in input order, plus simulation counts

        """
        to_check = [i for i, candidate in enumerate(candidates) if candidate.asset.kind == AssetKind.ERC20]
        if not to_check:
            return PrecheckReport(passed=list(candidates), checked=0, rejected=0)

        rejected: set[int] = set()
        executor = ThreadPoolExecutor(
            max_workers=min(self.config.precheck_workers, len(to_check)),
            thread_name_prefix="precheck",
        )
        try:
            futures: dict[int, Future] = {i: executor.submit(self.simulate, candidates[i]) for i in to_check}
            done, _ = wait(futures.values(), timeout=self.config.precheck_timeout)
            for i, future in futures.items():
                if future not in done:
                    logger.debug("Precheck for %s unfinished at deadline", candidates[i].asset.symbol)
                    rejected.add(i)
                    continue
                try:
                    future.result()
                except PrecheckRejected as e:
                    logger.debug("Precheck rejected: %s", e)
                    rejected.add(i)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        passed = [candidate for i, candidate in enumerate(candidates) if i not in rejected]
        logger.info("Precheck: %d/%d ERC-20 transfers passed", len(to_check) - len(rejected), len(to_check))
        return PrecheckReport(passed=passed, checked=len(to_check), rejected=len(rejected))
