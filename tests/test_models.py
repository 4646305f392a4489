"""Tests for Pydantic data models and amount parsing."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import OWNER, TARGET, USDC, make_candidate, make_erc20, make_native, make_nft
from wallet_sweeper.core.models import (
    AssetKind,
    Catalog,
    GasBudget,
    SubmissionResult,
    SubmissionStatus,
    SweepPlan,
    parse_raw_amount,
    parse_usd,
)


def test_asset_normalized_balance():
    """Test whole-token balance of an asset."""
    usdc = make_erc20(USDC, 2_500_000, "2.5", symbol="USDC", decimals=6)

    assert usdc.normalized_balance == Decimal("2.5")
    assert not usdc.is_nft


def test_asset_rejects_negative_balance():
    """Raw balances are non-negative integers."""
    with pytest.raises(ValidationError):
        make_erc20(USDC, -1, "1")


def test_catalog_nft_views():
    """Test ERC-721 / ERC-1155 split of a catalog."""
    catalog = Catalog(
        chain_id=1,
        owner_address=OWNER,
        nfts=[
            make_nft("0x" + "a" * 40, 1),
            make_nft("0x" + "b" * 40, 7, kind=AssetKind.ERC1155, amount=3),
        ],
    )

    assert [nft.token_id for nft in catalog.erc721] == [1]
    assert [nft.token_id for nft in catalog.erc1155] == [7]
    assert all(nft.is_nft for nft in catalog.nfts)


def test_candidate_call_target():
    """Native transfers go to the recipient, token transfers to the contract."""
    native = make_candidate(make_native(10**18), value_wei=10**17)
    token = make_candidate(make_erc20(USDC, 1_000_000, "1"))

    assert native.call_target == TARGET
    assert token.call_target == USDC
    assert native.to_call().value == 10**17
    assert token.to_call().value == 0


def test_sweep_plan_total():
    """Test total USD value of a plan."""
    plan = SweepPlan(
        owner_address=OWNER,
        target_address=TARGET,
        chain_id=1,
        catalog=Catalog(chain_id=1, owner_address=OWNER),
        gas_budget=GasBudget(estimated_gas_units=87_000, gas_price_wei_per_unit=1, reserve_wei=87_000),
        candidates=[
            make_candidate(make_erc20(USDC, 1, "10.50")),
            make_candidate(make_erc20(USDC, 1, "4.25")),
        ],
    )

    assert plan.total_usd_value == Decimal("14.75")


def test_submission_result_ok():
    assert SubmissionResult(status=SubmissionStatus.SUBMITTED, chain_id=1).ok
    assert not SubmissionResult(status=SubmissionStatus.EMPTY_BATCH, chain_id=1).ok


@pytest.mark.parametrize(
    "value, expected",
    [
        (12345, 12345),
        ("1000000000000000000", 10**18),
        ("1.5e3", 1500),
        ("0x10", 16),
        (Decimal("42"), 42),
        (None, 0),
        ("", 0),
        ("-5", 0),
        ("not-a-number", 0),
        (True, 0),
        ("1e100", 0),
        ("0x1" + "0" * 64, 0),
        (2**256, 0),
        (2**256 - 1, 2**256 - 1),
    ],
)
def test_parse_raw_amount(value, expected):
    """Test normalization of upstream balance formats."""
    assert parse_raw_amount(value) == expected


def test_parse_raw_amount_keeps_precision():
    """Large balances are not routed through floats."""
    assert parse_raw_amount("123456789012345678901234567890") == 123456789012345678901234567890


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1.23", Decimal("1.23")),
        (2, Decimal("2")),
        (None, Decimal("0")),
        ("NaN", Decimal("0")),
        ("abc", Decimal("0")),
    ],
)
def test_parse_usd(value, expected):
    assert parse_usd(value) == expected
