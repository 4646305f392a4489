"""Validation and hand-off of the final call list to a wallet."""

import logging
import re
from collections.abc import Sequence
from typing import Any, Protocol

from wallet_sweeper.core.models import Call, SubmissionResult, SubmissionStatus, TransferCandidate

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
HEX_DATA_PATTERN = re.compile(r"^0x(?:[0-9a-fA-F]{2})*$")
UINT256_LIMIT = 2**256


class WalletRPC(Protocol):
    """Wallet able to sign and broadcast an atomic multi-call."""

    def send_calls(self, *, chain_id: int, calls: list[Call]) -> Any: ...


def validate_call(call: Call) -> list[str]:
    """
    Check one call's shape.

    Returns
    -------
    list[str]
        Problems found; empty if the call is well-formed

    """
    problems = []
    if not isinstance(call.to, str) or not ADDRESS_PATTERN.match(call.to):
        problems.append(f"invalid to address {call.to!r}")
    if isinstance(call.value, bool) or not isinstance(call.value, int) or not 0 <= call.value < UINT256_LIMIT:
        problems.append(f"invalid value {call.value!r}")
    if call.data is not None and not HEX_DATA_PATTERN.match(call.data):
        problems.append("data is not 0x-prefixed even-length hex")
    if call.value == 0 and call.data in (None, "0x"):
        problems.append("empty call: no value and no data")
    return problems


class BatchSubmitter:
    """
    Submits the final candidates as one atomic multi-call.

    Parameters
    ----------
    wallet : WalletRPC
        Signing wallet collaborator

    """

    def __init__(self, wallet: WalletRPC) -> None:
        self.wallet = wallet

    def submit(self, chain_id: int, candidates: Sequence[TransferCandidate]) -> SubmissionResult:
        """
        Validate every call, then send them in a single request.

        Nothing is sent unless every call validates. Wallet exceptions
        propagate.

        Parameters
        ----------
        chain_id : int
            Target chain id
        candidates : Sequence[TransferCandidate]
            Encoded candidates in final order

        Returns
        -------
        SubmissionResult
            Submitted, empty batch, or validation failure with the problems

        """
        calls = [candidate.to_call() for candidate in candidates]
        if not calls:
            logger.info("Nothing to sweep on chain %d", chain_id)
            return SubmissionResult(status=SubmissionStatus.EMPTY_BATCH, chain_id=chain_id)

        errors = []
        for index, call in enumerate(calls):
            errors.extend(f"call {index}: {problem}" for problem in validate_call(call))
        if errors:
            logger.error("Batch validation failed on chain %d: %s", chain_id, "; ".join(errors))
            return SubmissionResult(
                status=SubmissionStatus.VALIDATION_FAILED,
                chain_id=chain_id,
                calls=calls,
                errors=errors,
            )

        payload = [call.model_copy(update={"to": call.to.lower()}) for call in calls]
        logger.info("Submitting %d calls on chain %d", len(payload), chain_id)
        handle = self.wallet.send_calls(chain_id=chain_id, calls=payload)
        return SubmissionResult(status=SubmissionStatus.SUBMITTED, chain_id=chain_id, calls=payload, handle=handle)
