"""Batch-sweep a wallet's native coin, ERC-20 tokens and NFTs into one atomic multi-call."""

__version__ = "0.1.0"
