"""
Conversions between human-readable token amounts and base units
"""
from decimal import Decimal, InvalidOperation, localcontext

from evmkit.core.errors import ValidationError
from evmkit.utils.validation import is_valid_address

GWEI_DECIMALS = 9


def parse_token_amount(amount, decimals: int) -> int:
    """
    Convert a human-readable amount ("1.5") into integer token units.

    Raises ValidationError for negative, non-numeric or over-precise amounts.
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {amount!r}", param="amount") from e
    if not value.is_finite() or value < 0:
        raise ValidationError(f"Invalid amount: {amount!r}", param="amount")

    with localcontext() as ctx:
        ctx.prec = 200
        scaled = value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValidationError(
                f"Amount {amount!r} has more than {decimals} decimal places",
                param="amount",
            )
        return int(scaled)


def format_token_amount(amount, decimals: int) -> str:
    """Convert integer token units into a decimal string, e.g. 1500000 @ 6 -> "1.5" """
    value = int(amount)
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str or '0'}"


def shorten_address(address: str, start_length: int = 6, end_length: int = 4) -> str:
    if not is_valid_address(address):
        raise ValidationError("Invalid Ethereum address", param="address")
    return f"{address[:start_length]}...{address[-end_length:]}"


def wei_to_gwei(wei) -> str:
    return format_token_amount(wei, GWEI_DECIMALS)


def gwei_to_wei(gwei) -> int:
    return parse_token_amount(gwei, GWEI_DECIMALS)
