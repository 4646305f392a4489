"""Two-pass sweep pipeline: catalog, reserve, encode, precheck, rank and submit."""

import logging
from collections.abc import Callable
from typing import Any

from wallet_sweeper.config import SweepConfig
from wallet_sweeper.core.addresses import normalize_address
from wallet_sweeper.core.catalog import AssetCatalog
from wallet_sweeper.core.encoder import TransferEncoder
from wallet_sweeper.core.gas import GasBudgetEstimator
from wallet_sweeper.core.models import PrecheckReport, SubmissionResult, SweepEvent, SweepPlan
from wallet_sweeper.core.precheck import PrecheckGate
from wallet_sweeper.core.selector import AssetSelector, count_kinds
from wallet_sweeper.core.submitter import BatchSubmitter, WalletRPC
from wallet_sweeper.errors import SweepError

logger = logging.getLogger(__name__)

EventHandler = Callable[[SweepEvent], None]


class Sweeper:
    """
    Plans and executes a wallet sweep.

    Planning runs catalog, provisional ERC-20 pool, gas reserve, native
    eligibility, encoding, ERC-20 precheck and final ranking. Execution hands
    the planned calls to the wallet.

    Parameters
    ----------
    config : SweepConfig
        Pipeline configuration
    catalog : AssetCatalog
        Holdings source
    provider : Any | None
        RPC provider for the precheck. Without one, ERC-20 transfers are not
        simulated.
    wallet : WalletRPC | None
        Wallet used by ``execute``
    on_event : EventHandler | None
        Receives every event as it is emitted

    """

    def __init__(
        self,
        config: SweepConfig,
        catalog: AssetCatalog,
        provider: Any | None = None,
        wallet: WalletRPC | None = None,
        on_event: EventHandler | None = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.estimator = GasBudgetEstimator(config)
        self.selector = AssetSelector(config)
        self.encoder = TransferEncoder()
        self.precheck = PrecheckGate(provider, config) if provider is not None else None
        self.submitter = BatchSubmitter(wallet) if wallet is not None else None
        self.on_event = on_event

    def _emit(self, events: list[SweepEvent], level: str, name: str, **data: Any) -> None:
        event = SweepEvent(level=level, name=name, data=data)
        events.append(event)
        logger.log(logging.getLevelName(level.upper()), "%s %s", name, data)
        if self.on_event is not None:
            self.on_event(event)

    def resolve_target(self, target: str | None) -> str:
        target = target or self.config.default_target_address
        if not target:
            msg = "No sweep target address given and no default configured"
            raise SweepError(msg)
        return normalize_address(target)

    def plan(
        self,
        owner_address: str,
        chain_id: int,
        target: str | None = None,
        force_refresh: bool = False,
    ) -> SweepPlan:
        """
        Decide what to sweep without submitting anything.

        Parameters
        ----------
        owner_address : str
            Wallet being swept
        chain_id : int
            Numeric chain id
        target : str | None
            Recipient; defaults to ``config.default_target_address``
        force_refresh : bool
            Bypass the NFT cache

        Returns
        -------
        SweepPlan
            Ranked, capped and encoded candidates with their context

        Raises
        ------
        InvalidAddressError
            If the owner or target address is malformed
        UnsupportedChainError
            If the chain id is not in the chain table
        SweepError
            If no target is available

        """
        owner = normalize_address(owner_address)
        recipient = self.resolve_target(target)
        events: list[SweepEvent] = []

        catalog = self.catalog.fetch(owner, chain_id, force_refresh=force_refresh)
        self._emit(
            events,
            "info",
            "catalog_fetched",
            chain_id=chain_id,
            native=catalog.native is not None,
            erc20=len(catalog.erc20),
            nfts=len(catalog.nfts),
        )

        # Pass 1: the pooled ERC-20s and NFTs size the reserve
        provisional = self.selector.provisional(catalog, recipient)
        erc20_count, erc721_count, erc1155_count = count_kinds(provisional)
        budget = self.estimator.estimate(chain_id, erc20_count, erc721_count, erc1155_count)
        self._emit(
            events,
            "debug",
            "gas_reserve_estimated",
            erc20=erc20_count,
            erc721=erc721_count,
            erc1155=erc1155_count,
            gas_units=budget.estimated_gas_units,
            reserve_wei=budget.reserve_wei,
        )

        # Pass 2: native coin only if something is left after the reserve
        candidates = []
        if catalog.native is not None:
            native = self.selector.native_candidate(catalog.native, budget.reserve_wei, owner, recipient)
            if native is None:
                self._emit(
                    events,
                    "warning",
                    "native_below_reserve",
                    balance_wei=catalog.native.raw_balance,
                    reserve_wei=budget.reserve_wei,
                )
            else:
                candidates.append(native)
        candidates.extend(provisional)

        encoded = self.encoder.encode_all(candidates)

        if self.precheck is not None:
            report = self.precheck.run(encoded)
            self._emit(events, "info", "precheck_completed", checked=report.checked, rejected=report.rejected)
        else:
            report = PrecheckReport(passed=encoded)
            self._emit(events, "warning", "precheck_skipped", reason="no RPC provider")

        final = self.selector.finalize(report.passed)
        plan = SweepPlan(
            owner_address=owner,
            target_address=recipient,
            chain_id=chain_id,
            catalog=catalog,
            gas_budget=budget,
            candidates=final,
            precheck=report,
            events=events,
        )
        self._emit(
            plan.events,
            "info",
            "plan_ready",
            calls=len(final),
            dropped=len(report.passed) - len(final),
            total_usd=str(plan.total_usd_value),
        )
        return plan

    def execute(self, plan: SweepPlan) -> SubmissionResult:
        """
        Submit a plan's calls as one atomic batch.

        Raises
        ------
        SweepError
            If no wallet was configured

        """
        if self.submitter is None:
            msg = "No wallet configured for submission"
            raise SweepError(msg)

        result = self.submitter.submit(plan.chain_id, plan.candidates)
        self._emit(plan.events, "info" if result.ok else "error", "submission_finished", status=str(result.status))
        return result

    def sweep(
        self,
        owner_address: str,
        chain_id: int,
        target: str | None = None,
        force_refresh: bool = False,
    ) -> SubmissionResult:
        """Plan and execute in one step."""
        return self.execute(self.plan(owner_address, chain_id, target=target, force_refresh=force_refresh))
