"""Pytest configuration for wallet-sweeper tests."""

from decimal import Decimal

import pytest

from wallet_sweeper.config import ApiCredentials
from wallet_sweeper.core.models import NATIVE_TOKEN_ADDRESS, Asset, AssetKind, TransferCandidate
from wallet_sweeper.data import load_config
from wallet_sweeper.errors import CredentialMissingError, UpstreamRequestFailed

OWNER = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"  # vitalik.eth
TARGET = "0x1111111111111111111111111111111111111111"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
LINK = "0x514910771af9ca656af840dff83e8264ecf986ca"
BAYC = "0xbc4ca0eda7647a8ab7c2061c2e118a18a936f13d"
PARALLEL = "0x76be3b62873462d2142405439777e971754e8e77"


def pytest_configure(config):
    """Disable ape plugin during tests."""
    # Unregister ape pytest plugin to avoid network connection issues
    config.pluginmanager.set_blocked("ape_test")


class FakeMoralisClient:
    """In-memory stand-in for MoralisClient that records every call."""

    def __init__(self, native=None, native_price=None, tokens=None, prices=None, nfts=None, fail=()):
        self.native = native if native is not None else {}
        self.native_price = native_price
        self.tokens = tokens or []
        self.prices = prices or {}
        self.nfts = nfts or []
        self.fail = dict.fromkeys(fail, UpstreamRequestFailed("upstream down", status_code=500))
        self.calls = []

    def _record(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    def get_native_balance(self, address, chain):
        self._record("native")
        return self.native

    def get_native_price(self, chain):
        self._record("native_price")
        return self.native_price

    def get_erc20_tokens(self, address, chain, limit=100):
        self._record("erc20")
        return self.tokens

    def get_token_price(self, token_address, chain):
        self._record("token_price")
        return self.prices.get(token_address)

    def get_nfts(self, address, chain, limit=25):
        self._record("nfts")
        return self.nfts

    def close(self):
        pass


class NoCredentialsClient(FakeMoralisClient):
    """Client whose every request fails for lack of API keys."""

    def _record(self, name):
        self.calls.append(name)
        raise CredentialMissingError("No Moralis API key configured")


class FakeProvider:
    """RPC provider answering eth_call from a per-contract table."""

    def __init__(self, reverting=(), returns=None):
        self.reverting = {address.lower() for address in reverting}
        self.returns = returns or {}
        self.requests = []

    def make_request(self, method, params):
        self.requests.append((method, params))
        tx = params[0]
        if tx["to"] in self.reverting:
            raise RuntimeError("execution reverted: ERC20: transfer amount exceeds balance")
        return self.returns.get(tx["to"], "0x" + "0" * 63 + "1")


class FakeWallet:
    """Wallet collaborator recording submitted batches."""

    def __init__(self, handle="0xbatch"):
        self.handle = handle
        self.batches = []

    def send_calls(self, *, chain_id, calls):
        self.batches.append((chain_id, calls))
        return self.handle


def make_native(raw_balance, usd_value="0", unit_price="0", symbol="ETH"):
    return Asset(
        kind=AssetKind.NATIVE,
        contract_address=NATIVE_TOKEN_ADDRESS,
        decimals=18,
        symbol=symbol,
        raw_balance=raw_balance,
        unit_price_usd=Decimal(unit_price),
        total_value_usd=Decimal(usd_value),
    )


def make_erc20(address, raw_balance, usd_value, symbol="TKN", decimals=18):
    return Asset(
        kind=AssetKind.ERC20,
        contract_address=address,
        decimals=decimals,
        symbol=symbol,
        raw_balance=raw_balance,
        total_value_usd=Decimal(usd_value),
    )


def make_nft(address, token_id, kind=AssetKind.ERC721, amount=1, floor="0", symbol="NFT"):
    return Asset(
        kind=kind,
        contract_address=address,
        token_id=token_id,
        decimals=0,
        symbol=symbol,
        raw_balance=amount,
        unit_price_usd=Decimal(floor),
        total_value_usd=Decimal(floor),
    )


def make_candidate(asset, value_wei=0, usd_value=None):
    return TransferCandidate(
        asset=asset,
        from_address=OWNER,
        to_address=TARGET,
        value_wei=value_wei,
        usd_value=asset.total_value_usd if usd_value is None else Decimal(usd_value),
    )


@pytest.fixture
def config():
    """Packaged configuration with test API keys."""
    return load_config(credentials=ApiCredentials(primary="primary-key", fallback="fallback-key"))
