"""
Global settings for evmkit
"""
from dataclasses import dataclass
from typing import Final, Optional

# Chain used when neither an explicit chain id nor the RPC URL identifies one
DEFAULT_CHAIN_ID: Final[int] = 1

# Logging level
LOG_LEVEL: Final[str] = "INFO"

# Uniswap Permit2, deployed with CREATE2 at the same address on every chain
PERMIT2_ADDRESS: Final[str] = "0x000000000022D473030F116dDEE9F6B43aC78BA3"

MAX_UINT256: Final[int] = 2**256 - 1
MAX_UINT160: Final[int] = 2**160 - 1
MAX_UINT48: Final[int] = 2**48 - 1

# EIP-2612 domain version used when signing permits
PERMIT_DOMAIN_VERSION: Final[str] = "1"


@dataclass
class EvmKitConfig:
    """Configuration consumed by EvmKit"""
    rpc_url: str
    private_key: Optional[str] = None
    chain_id: Optional[int] = None
    timeout: Optional[float] = None  # seconds, None keeps the client default
    log_level: Optional[str] = None  # for setup_logging; never applied by the library
