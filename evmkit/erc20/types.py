"""
Token and permit data types
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class TokenMetadata:
    """On-chain token metadata"""
    address: str
    name: str
    symbol: str
    decimals: int
    chain_id: int


@dataclass(frozen=True)
class PermitSignature:
    """EIP-2612 permit signature split into its components"""
    v: int
    r: str
    s: str
    nonce: str
    deadline: int
    signature: str


@dataclass(frozen=True)
class Permit2Allowance:
    amount: str
    expiration: int
    nonce: int


@dataclass(frozen=True)
class PermitDetails:
    """Token approval details for Permit2"""
    token: str
    amount: int  # uint160
    expiration: int  # uint48 timestamp
    nonce: int  # uint48

    def as_tuple(self) -> tuple:
        return (self.token, self.amount, self.expiration, self.nonce)


@dataclass(frozen=True)
class PermitSingle:
    """Single token permit for Permit2 signature"""
    details: PermitDetails
    spender: str
    sig_deadline: int  # uint256 timestamp

    def as_tuple(self) -> tuple:
        return (self.details.as_tuple(), self.spender, self.sig_deadline)


@dataclass(frozen=True)
class Permit2Signature:
    permit: PermitSingle
    signature: str
