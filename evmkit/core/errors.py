"""
Exception types raised by evmkit.

Configuration and validation problems are detected before any network call.
Transport failures of a batch and decode failures of returned bytes are kept
apart so callers can tell "the chain said no" from "we could not parse what
the chain said".
"""
from typing import Optional


class EvmKitError(Exception):
    """Base exception for evmkit."""
    pass


class ConfigurationError(EvmKitError, ValueError):
    """Raised for an invalid RPC URL, private key or chain table."""
    pass


class UnsupportedChainError(ConfigurationError):
    """Raised when a chain id has no entry in the chain registry."""

    def __init__(self, chain_id: int):
        super().__init__(f"Unsupported chain ID {chain_id}: no batching contract registered")
        self.chain_id = chain_id


class ConnectionNotFoundError(EvmKitError, LookupError):
    """Raised when no read connection was registered for a chain."""

    def __init__(self, chain_id: int):
        super().__init__(f"Provider not found for chain ID {chain_id}")
        self.chain_id = chain_id


class SignerNotFoundError(EvmKitError, LookupError):
    """Raised when no signing key was supplied for a chain."""

    def __init__(self, chain_id: int):
        super().__init__(
            f"Signer not found for chain ID {chain_id}. Did you provide a private key?"
        )
        self.chain_id = chain_id


class ValidationError(EvmKitError, ValueError):
    """Raised when caller input is malformed. ``param`` names the bad input."""

    def __init__(self, message: str, param: Optional[str] = None):
        super().__init__(message)
        self.param = param


class AggregateError(EvmKitError):
    """Raised when the batching round-trip fails as a whole."""
    pass


class DecodeError(EvmKitError):
    """Raised when returned bytes cannot be decoded into the expected types."""
    pass


class TokenOperationError(EvmKitError):
    """Raised when a single-call token operation fails on the node."""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(f"Failed to {operation}: {cause}")
        self.operation = operation
