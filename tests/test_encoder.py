"""Tests for transfer calldata encoding."""

import pytest
from eth_abi import decode

from conftest import BAYC, OWNER, PARALLEL, TARGET, USDC, make_candidate, make_erc20, make_native, make_nft
from wallet_sweeper.core.encoder import (
    ERC20_TRANSFER_SELECTOR,
    TransferEncoder,
    encode_erc20_transfer,
    encode_erc721_transfer,
    encode_erc1155_transfer,
)
from wallet_sweeper.core.models import AssetKind


@pytest.fixture
def encoder():
    return TransferEncoder()


def args_of(calldata):
    return bytes.fromhex(calldata[10:])


def test_native_call(encoder):
    call = encoder.encode(make_candidate(make_native(10**18), value_wei=999 * 10**15))

    assert call.to == TARGET
    assert call.value == 999 * 10**15
    assert call.data is None


def test_erc20_round_trip(encoder):
    """Decoding recovers the exact recipient and balance."""
    balance = 123456789 * 10**12 + 7
    call = encoder.encode(make_candidate(make_erc20(USDC, balance, "1")))

    assert call.to == USDC
    assert call.value == 0
    assert call.data.startswith("0xa9059cbb")
    recipient, amount = decode(["address", "uint256"], args_of(call.data))
    assert recipient.lower() == TARGET
    assert amount == balance


def test_erc20_layout():
    """Selector plus two 32-byte words, lower-case hex."""
    data = encode_erc20_transfer(TARGET.upper().replace("0X", "0x"), 1)

    assert data == "0x" + ERC20_TRANSFER_SELECTOR + "0" * 24 + TARGET[2:] + "0" * 63 + "1"
    assert data == data.lower()


def test_erc721_round_trip(encoder):
    call = encoder.encode(make_candidate(make_nft(BAYC, 8520)))

    assert call.to == BAYC
    assert call.data.startswith("0x42842e0e")
    sender, recipient, token_id = decode(["address", "address", "uint256"], args_of(call.data))
    assert (sender.lower(), recipient.lower(), token_id) == (OWNER, TARGET, 8520)


def test_erc1155_round_trip(encoder):
    call = encoder.encode(make_candidate(make_nft(PARALLEL, 10144, kind=AssetKind.ERC1155, amount=3)))

    assert call.data.startswith("0xf242432a")
    sender, recipient, token_id, amount, data = decode(
        ["address", "address", "uint256", "uint256", "bytes"],
        args_of(call.data),
    )
    assert (sender.lower(), recipient.lower(), token_id, amount, data) == (OWNER, TARGET, 10144, 3, b"")


def test_erc1155_empty_bytes_tail():
    """Dynamic bytes argument: offset 0xa0 followed by a zero length word."""
    data = encode_erc1155_transfer(OWNER, TARGET, 1, 1)
    words = [data[10 + i * 64 : 10 + (i + 1) * 64] for i in range((len(data) - 10) // 64)]

    assert len(words) == 6
    assert int(words[4], 16) == 0xA0
    assert int(words[5], 16) == 0


def test_uint256_bounds():
    with pytest.raises(ValueError):
        encode_erc20_transfer(TARGET, 2**256)
    with pytest.raises(ValueError):
        encode_erc721_transfer(OWNER, TARGET, -1)


def test_encode_all_attaches_calldata(encoder):
    candidates = [
        make_candidate(make_native(10**18), value_wei=10**17),
        make_candidate(make_erc20(USDC, 5, "1")),
    ]

    encoded = encoder.encode_all(candidates)

    assert encoded[0].calldata is None
    assert encoded[1].calldata.startswith("0xa9059cbb")
    assert candidates[1].calldata is None
