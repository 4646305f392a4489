"""Chain RPC access and wallet submission adapters."""

from wallet_sweeper.rpc.provider import ApeRPCProvider
from wallet_sweeper.rpc.wallet import SendCallsWallet, build_send_calls_request

__all__ = ["ApeRPCProvider", "SendCallsWallet", "build_send_calls_request"]
