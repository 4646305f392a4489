"""ABI calldata encoding for native, ERC-20, ERC-721 and ERC-1155 transfers."""

from collections.abc import Iterable

from eth_abi import encode

from wallet_sweeper.core.addresses import normalize_address
from wallet_sweeper.core.models import UINT256_MAX, AssetKind, Call, TransferCandidate

# transfer(address,uint256)
ERC20_TRANSFER_SELECTOR = "a9059cbb"
# safeTransferFrom(address,address,uint256)
ERC721_SAFE_TRANSFER_SELECTOR = "42842e0e"
# safeTransferFrom(address,address,uint256,uint256,bytes)
ERC1155_SAFE_TRANSFER_SELECTOR = "f242432a"


def _check_uint256(name: str, value: int | None) -> int:
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise ValueError(msg)
    if not 0 <= value <= UINT256_MAX:
        msg = f"{name} out of uint256 range: {value}"
        raise ValueError(msg)
    return value


def encode_erc20_transfer(recipient: str, amount: int) -> str:
    """
    Encode ``transfer(recipient, amount)``.

    Parameters
    ----------
    recipient : str
        Receiving address
    amount : int
        Raw token amount

    Returns
    -------
    str
        0x-prefixed lower-case calldata

    """
    args = encode(
        ["address", "uint256"],
        [normalize_address(recipient), _check_uint256("amount", amount)],
    )
    return "0x" + ERC20_TRANSFER_SELECTOR + args.hex()


def encode_erc721_transfer(sender: str, recipient: str, token_id: int) -> str:
    """Encode ``safeTransferFrom(sender, recipient, token_id)``."""
    args = encode(
        ["address", "address", "uint256"],
        [normalize_address(sender), normalize_address(recipient), _check_uint256("token_id", token_id)],
    )
    return "0x" + ERC721_SAFE_TRANSFER_SELECTOR + args.hex()


def encode_erc1155_transfer(sender: str, recipient: str, token_id: int, amount: int) -> str:
    """Encode ``safeTransferFrom(sender, recipient, token_id, amount, b"")``."""
    args = encode(
        ["address", "address", "uint256", "uint256", "bytes"],
        [
            normalize_address(sender),
            normalize_address(recipient),
            _check_uint256("token_id", token_id),
            _check_uint256("amount", amount),
            b"",
        ],
    )
    return "0x" + ERC1155_SAFE_TRANSFER_SELECTOR + args.hex()


class TransferEncoder:
    """Turns transfer candidates into raw ``{to, value, data}`` calls."""

    def calldata(self, candidate: TransferCandidate) -> str | None:
        """
        Encode the contract call for a candidate.

        Parameters
        ----------
        candidate : TransferCandidate
            Transfer to encode

        Returns
        -------
        str | None
            Calldata, or None for native transfers

        Raises
        ------
        ValueError
            If an amount or token id does not fit in uint256

        """
        asset = candidate.asset
        if asset.kind == AssetKind.NATIVE:
            _check_uint256("value", candidate.value_wei)
            return None
        if asset.kind == AssetKind.ERC20:
            return encode_erc20_transfer(candidate.to_address, asset.raw_balance)
        if asset.kind == AssetKind.ERC721:
            return encode_erc721_transfer(candidate.from_address, candidate.to_address, asset.token_id)
        if asset.kind == AssetKind.ERC1155:
            return encode_erc1155_transfer(
                candidate.from_address,
                candidate.to_address,
                asset.token_id,
                asset.raw_balance,
            )
        msg = f"Unsupported asset kind: {asset.kind}"
        raise ValueError(msg)

    def encode(self, candidate: TransferCandidate) -> Call:
        """Build the call for one candidate."""
        data = self.calldata(candidate)
        return Call(to=candidate.call_target.lower(), value=candidate.value_wei, data=data)

    def encode_all(self, candidates: Iterable[TransferCandidate]) -> list[TransferCandidate]:
        """
        Attach calldata to every candidate.

        Returns
        -------
        list[TransferCandidate]
            Copies of the input candidates with ``calldata`` set, same order

        """
        return [candidate.model_copy(update={"calldata": self.calldata(candidate)}) for candidate in candidates]
