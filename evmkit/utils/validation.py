"""
Input validation run before any network call
"""
from decimal import Decimal, InvalidOperation
from urllib.parse import urlparse

from eth_account import Account
from web3 import Web3

from evmkit.core.errors import ValidationError

RPC_URL_SCHEMES = ("http", "https")


def is_valid_address(address) -> bool:
    """20-byte hex address; mixed-case input must carry a correct checksum"""
    return isinstance(address, str) and Web3.is_address(address)


def is_valid_private_key(private_key) -> bool:
    if not isinstance(private_key, str) or not private_key:
        return False
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    try:
        Account.from_key(private_key)
    except Exception:
        return False
    return True


def is_valid_amount(amount) -> bool:
    """Non-negative finite decimal number given as str or int"""
    if isinstance(amount, bool) or not isinstance(amount, (str, int)):
        return False
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        return False
    return value.is_finite() and value >= 0


def is_valid_rpc_url(url) -> bool:
    if not isinstance(url, str):
        return False
    parsed = urlparse(url)
    return parsed.scheme in RPC_URL_SCHEMES and bool(parsed.netloc)


def checksum_address(address, param: str = "address") -> str:
    """Validate ``address`` and return its checksummed form"""
    if not is_valid_address(address):
        raise ValidationError(f"Invalid {param.replace('_', ' ')}: {address!r}", param=param)
    return Web3.to_checksum_address(address)


def validate_amount(amount, param: str = "amount") -> str:
    if not is_valid_amount(amount):
        raise ValidationError(f"Invalid {param}: {amount!r}", param=param)
    return str(amount).strip()


def validate_transfer_params(token_address: str, recipient_address: str, amount) -> None:
    """
    Validates all parameters for an ERC20 transfer.

    Raises ValidationError naming the first invalid parameter.
    """
    checksum_address(token_address, "token_address")
    checksum_address(recipient_address, "recipient_address")
    validate_amount(amount)
