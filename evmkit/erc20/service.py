"""
ERC20 reads and writes, one contract call at a time
"""
import asyncio
from typing import Optional

from evmkit.core.abi import Erc20Method, encode
from evmkit.core.contract import call_contract, operation_errors, send_transaction
from evmkit.core.provider import ProviderManager
from evmkit.erc20.types import TokenMetadata
from evmkit.utils.formatting import format_token_amount, parse_token_amount
from evmkit.utils.logger import get_logger
from evmkit.utils.validation import checksum_address, validate_amount

logger = get_logger(__name__)


class Erc20Service:
    """
    Service for interacting with ERC20 tokens.

    Amounts passed to ``transfer`` and ``approve`` are human-readable; they
    are scaled by the token's ``decimals()``, which is read on every call.
    """

    def __init__(self, provider_manager: ProviderManager):
        self.provider_manager = provider_manager

    async def get_balance(
        self, token_address: str, owner_address: str, chain_id: Optional[int] = None
    ) -> str:
        """Balance in token base units, as a decimal string"""
        token = checksum_address(token_address, "token_address")
        owner = checksum_address(owner_address, "owner_address")
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors("get balance"):
            balance = await call_contract(web3, token, Erc20Method.BALANCE_OF, [owner])
        return str(balance)

    async def get_formatted_balance(
        self, token_address: str, owner_address: str, chain_id: Optional[int] = None
    ) -> str:
        """Balance scaled by the token decimals, e.g. "12.5" """
        balance = await self.get_balance(token_address, owner_address, chain_id)
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors("get balance"):
            decimals = await call_contract(web3, token_address, Erc20Method.DECIMALS)
        return format_token_amount(balance, decimals)

    async def get_allowance(
        self,
        token_address: str,
        owner_address: str,
        spender_address: str,
        chain_id: Optional[int] = None,
    ) -> str:
        token = checksum_address(token_address, "token_address")
        owner = checksum_address(owner_address, "owner_address")
        spender = checksum_address(spender_address, "spender_address")
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors("get allowance"):
            allowance = await call_contract(web3, token, Erc20Method.ALLOWANCE, [owner, spender])
        return str(allowance)

    async def get_token_metadata(
        self, token_address: str, chain_id: Optional[int] = None
    ) -> TokenMetadata:
        token = checksum_address(token_address, "token_address")
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors("get token metadata"):
            name, symbol, decimals = await asyncio.gather(
                call_contract(web3, token, Erc20Method.NAME),
                call_contract(web3, token, Erc20Method.SYMBOL),
                call_contract(web3, token, Erc20Method.DECIMALS),
            )
        return TokenMetadata(
            address=token,
            name=name,
            symbol=symbol,
            decimals=int(decimals),
            chain_id=self.provider_manager.resolve(chain_id),
        )

    async def _send_scaled(
        self,
        operation: str,
        method: Erc20Method,
        token: str,
        counterparty: str,
        amount: str,
        chain_id: Optional[int],
        gas_price: Optional[str],
        gas_limit: Optional[int],
    ) -> str:
        account = self.provider_manager.get_signing_identity(chain_id)
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors(operation):
            decimals = await call_contract(web3, token, Erc20Method.DECIMALS)
            amount_units = parse_token_amount(amount, decimals)
            return await send_transaction(
                web3,
                account,
                self.provider_manager.resolve(chain_id),
                token,
                encode(method, [counterparty, amount_units]),
                gas_price=gas_price,
                gas_limit=gas_limit,
            )

    async def transfer(
        self,
        token_address: str,
        recipient_address: str,
        amount: str,
        chain_id: Optional[int] = None,
        gas_price: Optional[str] = None,
        gas_limit: Optional[int] = None,
    ) -> str:
        """Transfer ``amount`` (human units) to the recipient; returns the tx hash"""
        token = checksum_address(token_address, "token_address")
        recipient = checksum_address(recipient_address, "recipient_address")
        amount = validate_amount(amount)
        if gas_price is not None:
            validate_amount(gas_price, "gas_price")

        return await self._send_scaled(
            "transfer tokens", Erc20Method.TRANSFER, token, recipient, amount,
            chain_id, gas_price, gas_limit,
        )

    async def approve(
        self,
        token_address: str,
        spender_address: str,
        amount: str,
        chain_id: Optional[int] = None,
        gas_price: Optional[str] = None,
        gas_limit: Optional[int] = None,
    ) -> str:
        """Approve the spender for ``amount`` (human units); returns the tx hash"""
        token = checksum_address(token_address, "token_address")
        spender = checksum_address(spender_address, "spender_address")
        amount = validate_amount(amount)
        if gas_price is not None:
            validate_amount(gas_price, "gas_price")

        return await self._send_scaled(
            "approve tokens", Erc20Method.APPROVE, token, spender, amount,
            chain_id, gas_price, gas_limit,
        )
