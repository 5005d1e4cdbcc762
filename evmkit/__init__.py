"""
evmkit: ERC20 operations, Multicall2 batched reads and permit helpers
on top of web3.py.
"""
from evmkit.config.chains import (
    CHAINS,
    DEFAULT_REGISTRY,
    ChainConfig,
    ChainRegistry,
    NativeCurrency,
    infer_chain_id,
    resolve_chain_id,
)
from evmkit.config.settings import DEFAULT_CHAIN_ID, PERMIT2_ADDRESS, EvmKitConfig
from evmkit.core.abi import (
    Erc20Method,
    Erc20PermitMethod,
    MethodSpec,
    Multicall2Method,
    Permit2Method,
    decode,
    decode_single,
    encode,
)
from evmkit.core.address_map import AddressMap
from evmkit.core.errors import (
    AggregateError,
    ConfigurationError,
    ConnectionNotFoundError,
    DecodeError,
    EvmKitError,
    SignerNotFoundError,
    TokenOperationError,
    UnsupportedChainError,
    ValidationError,
)
from evmkit.core.multicall import AggregateResponse, Call, CallResult, ContractRead, Multicall
from evmkit.core.provider import ProviderManager
from evmkit.erc20.permit2 import Permit2Service
from evmkit.erc20.service import Erc20Service
from evmkit.erc20.types import (
    Permit2Allowance,
    Permit2Signature,
    PermitDetails,
    PermitSignature,
    PermitSingle,
    TokenMetadata,
)
from evmkit.kit import EvmKit
from evmkit.utils.formatting import (
    format_token_amount,
    gwei_to_wei,
    parse_token_amount,
    shorten_address,
    wei_to_gwei,
)
from evmkit.utils.logger import get_logger, setup_logging
from evmkit.utils.retry import RetryPolicy
from evmkit.utils.validation import (
    is_valid_address,
    is_valid_amount,
    is_valid_private_key,
    is_valid_rpc_url,
    validate_transfer_params,
)

__version__ = "0.1.0"

__all__ = [
    "AddressMap",
    "AggregateError",
    "AggregateResponse",
    "CHAINS",
    "Call",
    "CallResult",
    "ChainConfig",
    "ChainRegistry",
    "ConfigurationError",
    "ConnectionNotFoundError",
    "ContractRead",
    "DEFAULT_CHAIN_ID",
    "DEFAULT_REGISTRY",
    "DecodeError",
    "Erc20Method",
    "Erc20PermitMethod",
    "Erc20Service",
    "EvmKit",
    "EvmKitConfig",
    "EvmKitError",
    "MethodSpec",
    "Multicall",
    "Multicall2Method",
    "NativeCurrency",
    "PERMIT2_ADDRESS",
    "Permit2Allowance",
    "Permit2Method",
    "Permit2Service",
    "Permit2Signature",
    "PermitDetails",
    "PermitSignature",
    "PermitSingle",
    "ProviderManager",
    "RetryPolicy",
    "SignerNotFoundError",
    "TokenMetadata",
    "TokenOperationError",
    "UnsupportedChainError",
    "ValidationError",
    "decode",
    "decode_single",
    "encode",
    "format_token_amount",
    "get_logger",
    "gwei_to_wei",
    "infer_chain_id",
    "is_valid_address",
    "is_valid_amount",
    "is_valid_private_key",
    "is_valid_rpc_url",
    "parse_token_amount",
    "resolve_chain_id",
    "setup_logging",
    "shorten_address",
    "validate_transfer_params",
    "wei_to_gwei",
]
