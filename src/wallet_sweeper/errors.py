"""Exception hierarchy for sweep planning and submission."""


class SweepError(Exception):
    """Base class for all wallet-sweeper errors."""


class UnsupportedChainError(SweepError, ValueError):
    """Raised when a chain id is absent from the chain table."""

    def __init__(self, chain_id: int) -> None:
        super().__init__(f"Unsupported chain id: {chain_id}")
        self.chain_id = chain_id


class InvalidAddressError(SweepError, ValueError):
    """Raised for a malformed wallet or recipient address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid address: {address!r}")
        self.address = address


class CredentialMissingError(SweepError):
    """Raised when no API key is configured for a data source."""


class UpstreamRequestFailed(SweepError):
    """Raised when an upstream HTTP request fails after the fallback retry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PrecheckRejected(SweepError):
    """Raised when simulating a single transfer shows it would revert."""
