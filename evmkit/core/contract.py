"""
Single contract reads and signed transaction submission
"""
from contextlib import contextmanager
from typing import Any, Optional, Sequence

from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3

from evmkit.core.abi import Method, decode_single, encode
from evmkit.core.errors import EvmKitError, TokenOperationError
from evmkit.utils.formatting import gwei_to_wei
from evmkit.utils.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def operation_errors(operation: str):
    """
    Re-raise node and transport failures as TokenOperationError.
    evmkit's own errors (validation, decode, lookup) pass through untouched.
    """
    try:
        yield
    except EvmKitError:
        raise
    except Exception as e:
        logger.error(f"Failed to {operation}: {e}")
        raise TokenOperationError(operation, e) from e


async def call_contract(
    web3: AsyncWeb3,
    target: str,
    method: Method,
    args: Sequence[Any] = (),
) -> Any:
    """eth_call one method and decode its result"""
    raw = await web3.eth.call(
        {"to": Web3.to_checksum_address(target), "data": Web3.to_hex(encode(method, args))}
    )
    return decode_single(method, raw)


async def send_transaction(
    web3: AsyncWeb3,
    account: LocalAccount,
    chain_id: int,
    to: str,
    data: bytes,
    gas_price: Optional[str] = None,
    gas_limit: Optional[int] = None,
    nonce: Optional[int] = None,
) -> str:
    """
    Build, sign and broadcast a contract call. ``gas_price`` is in gwei;
    when omitted the node's gas price and gas estimate are used.

    Returns the transaction hash as a 0x-prefixed hex string.
    """
    if nonce is None:
        nonce = await web3.eth.get_transaction_count(account.address, "pending")

    tx: dict = {
        "from": account.address,
        "to": Web3.to_checksum_address(to),
        "data": Web3.to_hex(data),
        "value": 0,
        "nonce": nonce,
        "chainId": chain_id,
    }
    if gas_price is not None:
        tx["gasPrice"] = gwei_to_wei(gas_price)
    else:
        tx["gasPrice"] = await web3.eth.gas_price
    if gas_limit is not None:
        tx["gas"] = int(gas_limit)
    else:
        tx["gas"] = await web3.eth.estimate_gas(tx)

    signed_tx = account.sign_transaction(tx)
    tx_hash = Web3.to_hex(await web3.eth.send_raw_transaction(signed_tx.raw_transaction))
    logger.info(f"Submitted transaction {tx_hash} to {tx['to']} on chain {chain_id}")
    return tx_hash
