"""Data models for assets, transfer candidates, gas budgets, and sweep outcomes."""

from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

NATIVE_TOKEN_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"

UINT256_MAX = 2**256 - 1


class AssetKind(StrEnum):
    """Token standard of a sweepable asset."""

    NATIVE = "native"
    ERC20 = "erc20"
    ERC721 = "erc721"
    ERC1155 = "erc1155"


class Asset(BaseModel):
    """
    A single sweepable holding.

    Attributes
    ----------
    kind : AssetKind
        Token standard
    contract_address : str
        Token contract address (native sentinel for the chain's coin)
    token_id : int | None
        NFT token id, None for fungible assets
    decimals : int
        Number of decimal places (0 for NFTs)
    symbol : str
        Token symbol (e.g., 'ETH', 'USDC')
    name : str, optional
        Display name
    raw_balance : int
        Balance in the token's smallest unit
    unit_price_usd : Decimal
        USD price of one whole token (floor price for NFTs)
    total_value_usd : Decimal
        USD value of the whole holding

    """

    kind: AssetKind
    contract_address: str
    token_id: int | None = None
    decimals: int = Field(default=18, ge=0)
    symbol: str = "UNKNOWN"
    name: str | None = None
    raw_balance: int = Field(ge=0)
    unit_price_usd: Decimal = Decimal("0")
    total_value_usd: Decimal = Decimal("0")

    @property
    def is_nft(self) -> bool:
        return self.kind in (AssetKind.ERC721, AssetKind.ERC1155)

    @property
    def normalized_balance(self) -> Decimal:
        """Balance in whole-token units."""
        return Decimal(self.raw_balance) / Decimal(10**self.decimals)


class Catalog(BaseModel):
    """
    Normalized holdings of one wallet on one chain.

    Attributes
    ----------
    chain_id : int
        Numeric chain id
    owner_address : str
        Wallet address (lower-cased)
    native : Asset | None
        Native coin holding, None when unavailable
    erc20 : list[Asset]
        Priced ERC-20 holdings
    nfts : list[Asset]
        ERC-721 and ERC-1155 holdings

    """

    chain_id: int
    owner_address: str
    native: Asset | None = None
    erc20: list[Asset] = Field(default_factory=list)
    nfts: list[Asset] = Field(default_factory=list)

    @property
    def erc721(self) -> list[Asset]:
        return [nft for nft in self.nfts if nft.kind == AssetKind.ERC721]

    @property
    def erc1155(self) -> list[Asset]:
        return [nft for nft in self.nfts if nft.kind == AssetKind.ERC1155]


class Call(BaseModel):
    """One entry of an atomic multi-call batch."""

    to: str
    value: int = 0
    data: str | None = None


class TransferCandidate(BaseModel):
    """
    A prospective transfer of one asset to the sweep recipient.

    Attributes
    ----------
    asset : Asset
        Asset being moved
    from_address : str
        Owner wallet address
    to_address : str
        Sweep recipient address
    value_wei : int
        Native amount attached to the call (non-zero for native transfers only)
    calldata : str | None
        Encoded contract call, filled in by the encoder
    usd_value : Decimal
        USD value used for ranking
    description : str
        Human-readable summary

    """

    asset: Asset
    from_address: str
    to_address: str
    value_wei: int = 0
    calldata: str | None = None
    usd_value: Decimal = Decimal("0")
    description: str = ""

    @property
    def call_target(self) -> str:
        """Address the call is sent to: the recipient for native, the token contract otherwise."""
        if self.asset.kind == AssetKind.NATIVE:
            return self.to_address
        return self.asset.contract_address

    def to_call(self) -> Call:
        return Call(to=self.call_target, value=self.value_wei, data=self.calldata)


class GasBudget(BaseModel):
    """
    Native-coin reserve withheld to pay for the batch.

    Attributes
    ----------
    estimated_gas_units : int
        Heuristic gas units for the whole batch
    gas_price_wei_per_unit : int
        Buffered gas price
    reserve_wei : int
        Units multiplied by price

    """

    estimated_gas_units: int
    gas_price_wei_per_unit: int
    reserve_wei: int


class PrecheckReport(BaseModel):
    """Outcome of simulating ERC-20 transfers."""

    passed: list[TransferCandidate] = Field(default_factory=list)
    checked: int = 0
    rejected: int = 0


class SubmissionStatus(StrEnum):
    """Outcome of handing a batch to the wallet."""

    SUBMITTED = "submitted"
    EMPTY_BATCH = "empty_batch"
    VALIDATION_FAILED = "validation_failed"


class SubmissionResult(BaseModel):
    """
    Structured result of a submission attempt.

    Attributes
    ----------
    status : SubmissionStatus
        What happened
    chain_id : int
        Target chain id
    calls : list[Call]
        Calls that were (or would have been) submitted
    handle : Any
        Wallet-provided submission handle, when submitted
    errors : list[str]
        Validation problems, when validation failed

    """

    status: SubmissionStatus
    chain_id: int
    calls: list[Call] = Field(default_factory=list)
    handle: Any = None
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == SubmissionStatus.SUBMITTED


class SweepEvent(BaseModel):
    """Leveled observability event emitted while planning a sweep."""

    level: str
    name: str
    data: dict = Field(default_factory=dict)


class SweepPlan(BaseModel):
    """
    Everything decided before submission.

    Attributes
    ----------
    owner_address : str
        Wallet being swept
    target_address : str
        Recipient of every transfer
    chain_id : int
        Chain id
    catalog : Catalog
        Holdings as cataloged
    gas_budget : GasBudget
        Reserve used for native eligibility
    candidates : list[TransferCandidate]
        Final ranked and capped transfers, with calldata
    precheck : PrecheckReport
        ERC-20 simulation counts
    events : list[SweepEvent]
        Events emitted while planning

    """

    owner_address: str
    target_address: str
    chain_id: int
    catalog: Catalog
    gas_budget: GasBudget
    candidates: list[TransferCandidate] = Field(default_factory=list)
    precheck: PrecheckReport = Field(default_factory=PrecheckReport)
    events: list[SweepEvent] = Field(default_factory=list)

    @property
    def total_usd_value(self) -> Decimal:
        return sum((c.usd_value for c in self.candidates), Decimal("0"))


def parse_raw_amount(value: Any) -> int:
    """
    Normalize an API balance into an integer amount of base units.

    Accepts ints, decimal strings, scientific-notation strings, hex strings,
    and Decimals. Anything unparseable, negative, or too large for a uint256
    becomes 0.

    Parameters
    ----------
    value : Any
        Raw balance as returned by an upstream API

    Returns
    -------
    int
        Balance in the range [0, 2**256 - 1]

    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return _clamp_uint256(value)

    text = str(value).strip().replace(" ", "")
    if not text:
        return 0
    if text.lower().startswith("0x"):
        try:
            return _clamp_uint256(int(text, 16))
        except ValueError:
            return 0

    try:
        amount = Decimal(text)
    except InvalidOperation:
        return 0
    if not amount.is_finite() or amount <= 0:
        return 0
    return _clamp_uint256(int(amount))


def _clamp_uint256(amount: int) -> int:
    return amount if 0 <= amount <= UINT256_MAX else 0


def parse_usd(value: Any) -> Decimal:
    """
    Parse a USD figure, mapping missing, NaN, and malformed values to zero.

    Parameters
    ----------
    value : Any
        Price or value from an upstream API

    Returns
    -------
    Decimal
        Parsed amount, or Decimal("0")

    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount
