"""EIP-5792 wallet adapter submitting atomic call batches."""

import logging
from typing import Any

from wallet_sweeper.core.addresses import normalize_address
from wallet_sweeper.core.models import Call

logger = logging.getLogger(__name__)

EIP5792_VERSION = "2.0.0"


def build_send_calls_request(chain_id: int, sender: str, calls: list[Call]) -> dict[str, Any]:
    """
    Build the ``wallet_sendCalls`` parameter object.

    Parameters
    ----------
    chain_id : int
        Target chain id
    sender : str
        Account that signs the batch
    calls : list[Call]
        Validated calls in execution order

    Returns
    -------
    dict[str, Any]
        Request object with hex-encoded chain id and values

    """
    payload_calls = []
    for call in calls:
        entry: dict[str, Any] = {"to": call.to.lower(), "value": hex(call.value)}
        if call.data:
            entry["data"] = call.data
        payload_calls.append(entry)

    return {
        "version": EIP5792_VERSION,
        "chainId": hex(chain_id),
        "from": normalize_address(sender),
        "atomicRequired": True,
        "calls": payload_calls,
    }


class SendCallsWallet:
    """
    Wallet collaborator that forwards batches as ``wallet_sendCalls``.

    Parameters
    ----------
    provider : Any
        Object exposing ``make_request(method, params)`` connected to a
        wallet-capable endpoint
    sender : str
        Account that signs the batch

    """

    def __init__(self, provider: Any, sender: str) -> None:
        self.provider = provider
        self.sender = normalize_address(sender)

    def send_calls(self, *, chain_id: int, calls: list[Call]) -> Any:
        """
        Submit calls as one atomic batch.

        Returns
        -------
        Any
            Batch handle returned by the wallet
        """
        request = build_send_calls_request(chain_id, self.sender, calls)
        logger.debug("wallet_sendCalls with %d calls on chain %d", len(calls), chain_id)
        return self.provider.make_request("wallet_sendCalls", [request])
