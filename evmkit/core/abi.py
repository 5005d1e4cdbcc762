"""
Typed ABI descriptions and call encoding/decoding.

Each contract role gets an enumeration of the methods evmkit uses, with
canonical argument and return types. Encoding prepends the 4-byte selector to
the eth_abi encoded arguments; decoding runs eth_abi over the raw return
bytes. Neither touches the network.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence, Union

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError
from web3 import Web3

from evmkit.core.errors import DecodeError, ValidationError


@dataclass(frozen=True)
class MethodSpec:
    """A contract method: name plus canonical input and output types"""
    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature)[:4])


class Erc20Method(Enum):
    NAME = MethodSpec("name", (), ("string",))
    SYMBOL = MethodSpec("symbol", (), ("string",))
    DECIMALS = MethodSpec("decimals", (), ("uint8",))
    TOTAL_SUPPLY = MethodSpec("totalSupply", (), ("uint256",))
    BALANCE_OF = MethodSpec("balanceOf", ("address",), ("uint256",))
    ALLOWANCE = MethodSpec("allowance", ("address", "address"), ("uint256",))
    TRANSFER = MethodSpec("transfer", ("address", "uint256"), ("bool",))
    APPROVE = MethodSpec("approve", ("address", "uint256"), ("bool",))
    TRANSFER_FROM = MethodSpec("transferFrom", ("address", "address", "uint256"), ("bool",))


class Erc20PermitMethod(Enum):
    """EIP-2612 extension"""
    PERMIT = MethodSpec(
        "permit",
        ("address", "address", "uint256", "uint256", "uint8", "bytes32", "bytes32"),
    )
    NONCES = MethodSpec("nonces", ("address",), ("uint256",))
    DOMAIN_SEPARATOR = MethodSpec("DOMAIN_SEPARATOR", (), ("bytes32",))


class Multicall2Method(Enum):
    AGGREGATE = MethodSpec("aggregate", ("(address,bytes)[]",), ("uint256", "bytes[]"))
    TRY_AGGREGATE = MethodSpec("tryAggregate", ("bool", "(address,bytes)[]"), ("(bool,bytes)[]",))


# PermitDetails = (address token, uint160 amount, uint48 expiration, uint48 nonce)
# PermitSingle = (PermitDetails details, address spender, uint256 sigDeadline)
PERMIT_DETAILS_TYPE = "(address,uint160,uint48,uint48)"
PERMIT_SINGLE_TYPE = f"({PERMIT_DETAILS_TYPE},address,uint256)"


class Permit2Method(Enum):
    APPROVE = MethodSpec("approve", ("address", "address", "uint160", "uint48"))
    ALLOWANCE = MethodSpec(
        "allowance", ("address", "address", "address"), ("uint160", "uint48", "uint48")
    )
    PERMIT = MethodSpec("permit", ("address", PERMIT_SINGLE_TYPE, "bytes"))
    PERMIT_TRANSFER_FROM = MethodSpec(
        "permitTransferFrom",
        ("((address,uint256),uint256,uint256)", "(address,uint256)", "address", "bytes"),
    )


Method = Union[Erc20Method, Erc20PermitMethod, Multicall2Method, Permit2Method, MethodSpec]


def method_spec(method: Method) -> MethodSpec:
    return method.value if isinstance(method, Enum) else method


def encode(method: Method, args: Sequence[Any] = ()) -> bytes:
    """Encode a call: 4-byte selector followed by the ABI-encoded arguments"""
    spec = method_spec(method)
    args = list(args)
    if len(args) != len(spec.inputs):
        raise ValidationError(
            f"{spec.signature} takes {len(spec.inputs)} arguments, got {len(args)}",
            param="args",
        )
    try:
        return spec.selector + abi_encode(list(spec.inputs), args)
    except EncodingError as e:
        raise ValidationError(f"Cannot encode arguments for {spec.signature}: {e}", param="args") from e


def decode(method: Method, data: bytes) -> tuple:
    """Decode raw return bytes of ``method`` into a tuple of Python values"""
    spec = method_spec(method)
    try:
        return tuple(abi_decode(list(spec.outputs), bytes(data)))
    except (DecodingError, UnicodeDecodeError) as e:
        raise DecodeError(f"Cannot decode return data of {spec.signature}: {e}") from e


def decode_single(method: Method, data: bytes) -> Any:
    """Decode and unwrap a single-output method; multi-output methods stay tuples"""
    decoded = decode(method, data)
    if len(decoded) == 1:
        return decoded[0]
    return decoded
