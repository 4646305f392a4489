"""Sweep pipeline: catalog, gas reserve, selection, encoding, precheck and submission."""

from wallet_sweeper.core.catalog import AssetCatalog
from wallet_sweeper.core.encoder import TransferEncoder
from wallet_sweeper.core.gas import GasBudgetEstimator
from wallet_sweeper.core.models import (
    Asset,
    AssetKind,
    Call,
    Catalog,
    GasBudget,
    PrecheckReport,
    SubmissionResult,
    SubmissionStatus,
    SweepEvent,
    SweepPlan,
    TransferCandidate,
)
from wallet_sweeper.core.precheck import PrecheckGate
from wallet_sweeper.core.selector import AssetSelector
from wallet_sweeper.core.submitter import BatchSubmitter, WalletRPC
from wallet_sweeper.core.sweeper import Sweeper

__all__ = [
    "Asset",
    "AssetCatalog",
    "AssetKind",
    "AssetSelector",
    "BatchSubmitter",
    "Call",
    "Catalog",
    "GasBudget",
    "GasBudgetEstimator",
    "PrecheckGate",
    "PrecheckReport",
    "SubmissionResult",
    "SubmissionStatus",
    "SweepEvent",
    "SweepPlan",
    "Sweeper",
    "TransferCandidate",
    "TransferEncoder",
    "WalletRPC",
]
