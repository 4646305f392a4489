"""Tests for the Ape provider wrapper and the EIP-5792 wallet adapter."""

import pytest

from conftest import OWNER, TARGET, USDC
from wallet_sweeper.core.models import Call
from wallet_sweeper.errors import SweepError
from wallet_sweeper.rpc import provider as provider_module
from wallet_sweeper.rpc import ApeRPCProvider, SendCallsWallet, build_send_calls_request


class FakeNetworkContext:
    def __init__(self, log):
        self.log = log

    def __enter__(self):
        self.log.append("enter")
        return self

    def __exit__(self, *args):
        self.log.append("exit")


class FakeApeProvider:
    def make_request(self, method, params):
        return {"method": method, "params": params}


class FakeNetworks:
    def __init__(self):
        self.log = []
        self.choices = []
        self.provider = FakeApeProvider()

    def parse_network_choice(self, choice):
        self.choices.append(choice)
        return FakeNetworkContext(self.log)


@pytest.fixture
def fake_networks(monkeypatch):
    networks = FakeNetworks()
    monkeypatch.setattr(provider_module, "networks", networks)
    return networks


def test_provider_connects_by_network_choice(config, fake_networks):
    with ApeRPCProvider.for_chain(config.get_chain(8453)) as rpc:
        assert rpc.connected
        assert rpc.make_request("eth_chainId", []) == {"method": "eth_chainId", "params": []}

    assert fake_networks.choices == ["base:mainnet"]
    assert fake_networks.log == ["enter", "exit"]
    assert not rpc.connected


def test_provider_requires_connection():
    with pytest.raises(RuntimeError):
        ApeRPCProvider("ethereum:mainnet").make_request("eth_call", [])


def test_chain_without_network(config):
    with pytest.raises(SweepError):
        ApeRPCProvider.for_chain(config.get_chain(143))


def test_send_calls_request():
    calls = [
        Call(to=TARGET, value=10**17),
        Call(to=USDC, value=0, data="0xa9059cbb"),
    ]

    request = build_send_calls_request(8453, OWNER, calls)

    assert request == {
        "version": "2.0.0",
        "chainId": "0x2105",
        "from": OWNER,
        "atomicRequired": True,
        "calls": [
            {"to": TARGET, "value": hex(10**17)},
            {"to": USDC, "value": "0x0", "data": "0xa9059cbb"},
        ],
    }


def test_wallet_sends_one_request():
    class RecordingProvider:
        def __init__(self):
            self.requests = []

        def make_request(self, method, params):
            self.requests.append((method, params))
            return {"id": "0xbatch"}

    rpc = RecordingProvider()
    wallet = SendCallsWallet(rpc, OWNER)

    handle = wallet.send_calls(chain_id=1, calls=[Call(to=TARGET, value=1)])

    assert handle == {"id": "0xbatch"}
    assert len(rpc.requests) == 1
    assert rpc.requests[0][0] == "wallet_sendCalls"
    assert rpc.requests[0][1][0]["chainId"] == "0x1"
