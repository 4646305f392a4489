"""End-to-end tests for the sweep pipeline with fake collaborators."""

from decimal import Decimal

import pytest

from conftest import (
    BAYC,
    DAI,
    OWNER,
    TARGET,
    USDC,
    FakeMoralisClient,
    FakeProvider,
    FakeWallet,
    NoCredentialsClient,
    make_native,
)
from wallet_sweeper.core.catalog import AssetCatalog
from wallet_sweeper.core.models import AssetKind, SubmissionStatus
from wallet_sweeper.core.sweeper import Sweeper
from wallet_sweeper.errors import InvalidAddressError, SweepError


def funded_client():
    return FakeMoralisClient(
        native={"balance": str(10**18), "usd_price": "2000"},
        tokens=[
            {"token_address": USDC, "symbol": "USDC", "decimals": 6, "balance": "5000000", "usd_value": 5},
            {"token_address": DAI, "symbol": "DAI", "decimals": 18, "balance": str(4 * 10**18), "usd_value": 4},
        ],
        nfts=[
            {
                "token_address": BAYC,
                "token_id": "8520",
                "contract_type": "ERC721",
                "symbol": "BAYC",
                "floor_price_usd": "35000",
            }
        ],
    )


def make_sweeper(config, client, **kwargs):
    return Sweeper(config, AssetCatalog(config, client=client), **kwargs)


def test_plan_reserves_gas_and_ranks(config):
    sweeper = make_sweeper(config, funded_client(), provider=FakeProvider(reverting=[DAI]))

    plan = sweeper.plan(OWNER, 1, target=TARGET)

    # 2 pooled ERC-20s and 1 ERC-721 size the reserve
    assert plan.gas_budget.estimated_gas_units == 87_000 + 2 * 55_000 + 60_000
    assert plan.gas_budget.reserve_wei == 257_000 * 4_800_000_000
    assert [c.asset.kind for c in plan.candidates] == [AssetKind.ERC721, AssetKind.NATIVE, AssetKind.ERC20]
    native = plan.candidates[1]
    assert native.value_wei == 10**18 - plan.gas_budget.reserve_wei
    assert plan.candidates[2].asset.contract_address == USDC
    assert plan.precheck.checked == 2
    assert plan.precheck.rejected == 1
    assert all(c.calldata for c in plan.candidates if c.asset.kind != AssetKind.NATIVE)
    assert plan.total_usd_value > Decimal("35000")


def test_events_emitted(config):
    received = []
    sweeper = make_sweeper(config, funded_client(), provider=FakeProvider(), on_event=received.append)

    plan = sweeper.plan(OWNER, 1, target=TARGET)

    names = [event.name for event in plan.events]
    assert names == ["catalog_fetched", "gas_reserve_estimated", "precheck_completed", "plan_ready"]
    assert [event.name for event in received] == names
    assert plan.events[-1].data["calls"] == 4


def test_native_below_reserve_skipped(config):
    client = FakeMoralisClient(native={"balance": "1000", "usd_price": "2000"})
    sweeper = make_sweeper(config, client, provider=FakeProvider())

    plan = sweeper.plan(OWNER, 1, target=TARGET)

    assert plan.candidates == []
    assert "native_below_reserve" in [event.name for event in plan.events]


def test_precheck_skipped_without_provider(config):
    sweeper = make_sweeper(config, funded_client())

    plan = sweeper.plan(OWNER, 1, target=TARGET)

    assert plan.precheck.checked == 0
    assert len(plan.candidates) == 4
    assert "precheck_skipped" in [event.name for event in plan.events]


def test_oversized_token_balance_ignored(config):
    client = FakeMoralisClient(
        tokens=[
            {"token_address": USDC, "symbol": "USDC", "decimals": 6, "balance": "5000000", "usd_value": 5},
            {"token_address": DAI, "symbol": "BIG", "decimals": 18, "balance": "1e100", "usd_value": 1},
        ],
    )
    sweeper = make_sweeper(config, client, provider=FakeProvider())

    plan = sweeper.plan(OWNER, 1, target=TARGET)

    assert [c.asset.contract_address for c in plan.candidates if c.asset.kind == AssetKind.ERC20] == [USDC]
    assert [a.symbol for a in plan.catalog.erc20] == ["USDC"]


def test_batch_capped(config):
    config = config.model_copy(update={"max_batch_size": 2})
    sweeper = make_sweeper(config, funded_client(), provider=FakeProvider())

    plan = sweeper.plan(OWNER, 1, target=TARGET)

    assert [c.asset.kind for c in plan.candidates] == [AssetKind.ERC721, AssetKind.NATIVE]


def test_sweep_without_credentials(config):
    """Native from the portfolio source still gets swept when no API key exists."""
    wallet = FakeWallet()
    catalog = AssetCatalog(
        config,
        client=NoCredentialsClient(),
        portfolio_source=lambda owner, chain_id: [make_native(10**18, usd_value="2000")],
    )
    sweeper = Sweeper(config, catalog, provider=FakeProvider(), wallet=wallet)

    result = sweeper.sweep(OWNER, 8453, target=TARGET)

    assert result.status == SubmissionStatus.SUBMITTED
    assert len(result.calls) == 1
    assert result.calls[0].to == TARGET
    assert wallet.batches[0][0] == 8453


def test_default_target(config):
    config = config.model_copy(update={"default_target_address": TARGET.upper().replace("0X", "0x")})
    sweeper = make_sweeper(config, FakeMoralisClient())

    assert sweeper.plan(OWNER, 1).target_address == TARGET


def test_missing_target(config):
    with pytest.raises(SweepError):
        make_sweeper(config, FakeMoralisClient()).plan(OWNER, 1)


def test_invalid_target(config):
    with pytest.raises(InvalidAddressError):
        make_sweeper(config, FakeMoralisClient()).plan(OWNER, 1, target="0xnope")


def test_execute_requires_wallet(config):
    sweeper = make_sweeper(config, FakeMoralisClient())
    plan = sweeper.plan(OWNER, 1, target=TARGET)

    with pytest.raises(SweepError):
        sweeper.execute(plan)


def test_execute_empty_plan(config):
    wallet = FakeWallet()
    sweeper = make_sweeper(config, FakeMoralisClient(), wallet=wallet)

    result = sweeper.execute(sweeper.plan(OWNER, 1, target=TARGET))

    assert result.status == SubmissionStatus.EMPTY_BATCH
    assert wallet.batches == []
