"""Chain table and configuration loader."""

from pathlib import Path
from typing import Any

import yaml

from wallet_sweeper.config import ApiCredentials, ChainConfig, GasUnits, SweepConfig
from wallet_sweeper.errors import UnsupportedChainError

CHAINS_FILE = Path(__file__).parent / "chains.yaml"


def load_chain_table(path: Path | None = None) -> dict[str, Any]:
    """
    Load the raw chain table from chains.yaml.

    Parameters
    ----------
    path : Path | None
        Alternative YAML file. Uses the packaged table if None.

    Returns
    -------
    dict[str, Any]
        Parsed document with 'defaults' and 'chains' sections

    """
    with open(path or CHAINS_FILE, encoding="utf-8") as f:
        return yaml.safe_load(f)


def get_chain_config(chain_id: int, path: Path | None = None) -> dict[str, Any]:
    """
    Get the raw table row for a chain.

    Parameters
    ----------
    chain_id : int
        Numeric chain id

    Returns
    -------
    dict[str, Any]
        Chain row including slug, native symbol and gas price

    Raises
    ------
    UnsupportedChainError
        If the chain id is not in the table

    """
    chains = load_chain_table(path)["chains"]
    try:
        return chains[chain_id]
    except KeyError:
        raise UnsupportedChainError(chain_id) from None


def get_chain_slug(chain_id: int, path: Path | None = None) -> str:
    """
    Get the asset-data API chain slug.

    Parameters
    ----------
    chain_id : int
        Numeric chain id

    Returns
    -------
    str
        Provider chain slug (e.g., 'eth')

    """
    return get_chain_config(chain_id, path)["slug"]


def get_all_supported_chain_ids(path: Path | None = None) -> list[int]:
    """
    Get all chain ids in the table.

    Returns
    -------
    list[int]
        Chain ids in table order

    """
    return list(load_chain_table(path)["chains"].keys())


def load_config(
    path: Path | None = None,
    credentials: ApiCredentials | None = None,
    **overrides: Any,
) -> SweepConfig:
    """
    Build a SweepConfig from chains.yaml.

    Parameters
    ----------
    path : Path | None
        Alternative YAML file. Uses the packaged table if None.
    credentials : ApiCredentials | None
        Asset-data API keys
    **overrides : Any
        SweepConfig fields that take precedence over the file

    Returns
    -------
    SweepConfig
        Validated configuration

    """
    document = load_chain_table(path)
    defaults = dict(document.get("defaults") or {})

    chains = {}
    for chain_id, row in (document.get("chains") or {}).items():
        row = dict(row)
        # YAML floats go through str() so 0.02 stays exactly 0.02
        if row.get("gas_price_gwei") is not None:
            row["gas_price_gwei"] = str(row["gas_price_gwei"])
        chains[int(chain_id)] = ChainConfig(chain_id=int(chain_id), **row)

    gas_units = GasUnits(**(defaults.pop("gas_units", None) or {}))
    default_gas_price = defaults.pop("gas_price_gwei", None)

    fields: dict[str, Any] = {
        "chains": chains,
        "gas_units": gas_units,
        **defaults,
    }
    if default_gas_price is not None:
        fields["default_gas_price_gwei"] = str(default_gas_price)
    if credentials is not None:
        fields["credentials"] = credentials
    fields.update(overrides)

    return SweepConfig(**fields)
