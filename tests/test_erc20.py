"""
Tests for Erc20Service: single-call reads and signed writes
"""
import pytest
from eth_abi import decode as abi_decode
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError

from evmkit.core.abi import Erc20Method
from evmkit.core.errors import (
    ConnectionNotFoundError,
    SignerNotFoundError,
    TokenOperationError,
    ValidationError,
)
from evmkit.erc20.service import Erc20Service
from evmkit.erc20.types import TokenMetadata

from conftest import OWNER, SPENDER, USDC, DAI


def sent_tx(fake_web3, index: int = -1) -> dict:
    return fake_web3.eth.estimate_gas.await_args_list[index].args[0]


def call_args(tx: dict, *types):
    data = bytes(HexBytes(tx["data"]))
    return data[:4], abi_decode(list(types), data[4:])


@pytest.fixture
def erc20(provider_manager) -> Erc20Service:
    return Erc20Service(provider_manager)


class TestReads:

    @pytest.mark.asyncio
    async def test_balance(self, erc20, contract_stub):
        contract_stub.on(USDC, Erc20Method.BALANCE_OF, 1_500_000)

        assert await erc20.get_balance(USDC, OWNER) == "1500000"

    @pytest.mark.asyncio
    async def test_formatted_balance(self, erc20, contract_stub):
        contract_stub.on(USDC, Erc20Method.BALANCE_OF, 1_500_000)
        contract_stub.on(USDC, Erc20Method.DECIMALS, 6)

        assert await erc20.get_formatted_balance(USDC, OWNER) == "1.5"

    @pytest.mark.asyncio
    async def test_allowance(self, erc20, contract_stub, fake_web3):
        contract_stub.on(DAI, Erc20Method.ALLOWANCE, 10**18)

        assert await erc20.get_allowance(DAI, OWNER, SPENDER) == str(10**18)
        tx = fake_web3.eth.call.await_args.args[0]
        _, (owner, spender) = call_args(tx, "address", "address")
        assert (owner.lower(), spender.lower()) == (OWNER, SPENDER)

    @pytest.mark.asyncio
    async def test_token_metadata(self, erc20, contract_stub):
        contract_stub.on(DAI, Erc20Method.NAME, "Dai Stablecoin")
        contract_stub.on(DAI, Erc20Method.SYMBOL, "DAI")
        contract_stub.on(DAI, Erc20Method.DECIMALS, 18)

        metadata = await erc20.get_token_metadata(DAI)

        assert metadata == TokenMetadata(
            address="0x6B175474E89094C44Da98b954EedeAC495271d0F",
            name="Dai Stablecoin",
            symbol="DAI",
            decimals=18,
            chain_id=1,
        )

    @pytest.mark.asyncio
    async def test_invalid_owner_rejected_before_rpc(self, erc20, fake_web3):
        with pytest.raises(ValidationError) as exc_info:
            await erc20.get_balance(USDC, "0xnot-an-address")

        assert exc_info.value.param == "owner_address"
        fake_web3.eth.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_node_failure_wrapped(self, erc20, fake_web3):
        revert = ContractLogicError("execution reverted")
        fake_web3.eth.call.side_effect = revert

        with pytest.raises(TokenOperationError) as exc_info:
            await erc20.get_balance(USDC, OWNER)

        assert str(exc_info.value).startswith("Failed to get balance")
        assert exc_info.value.__cause__ is revert

    @pytest.mark.asyncio
    async def test_unregistered_chain(self, erc20, fake_web3):
        with pytest.raises(ConnectionNotFoundError):
            await erc20.get_balance(USDC, OWNER, chain_id=137)


class TestWrites:

    @pytest.mark.asyncio
    async def test_transfer_scales_by_decimals(self, erc20, contract_stub, fake_web3):
        contract_stub.on(USDC, Erc20Method.DECIMALS, 6)

        tx_hash = await erc20.transfer(USDC, OWNER, "1.5")

        assert tx_hash == "0x" + "11" * 32
        tx = sent_tx(fake_web3)
        assert tx["to"].lower() == USDC
        assert tx["chainId"] == 1
        assert tx["gasPrice"] == 2 * 10**9
        selector, (recipient, amount) = call_args(tx, "address", "uint256")
        assert selector == Erc20Method.TRANSFER.value.selector
        assert recipient.lower() == OWNER
        assert amount == 1_500_000
        fake_web3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transfer_with_gas_settings(self, erc20, contract_stub, fake_web3):
        contract_stub.on(USDC, Erc20Method.DECIMALS, 6)

        await erc20.transfer(USDC, OWNER, "2", gas_price="30", gas_limit=80_000)

        fake_web3.eth.estimate_gas.assert_not_awaited()
        fake_web3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_approve(self, erc20, contract_stub, fake_web3):
        contract_stub.on(DAI, Erc20Method.DECIMALS, 18)

        await erc20.approve(DAI, SPENDER, "100")

        selector, (spender, amount) = call_args(sent_tx(fake_web3), "address", "uint256")
        assert selector == Erc20Method.APPROVE.value.selector
        assert spender.lower() == SPENDER
        assert amount == 100 * 10**18

    @pytest.mark.asyncio
    async def test_transfer_without_signer(self, read_only_manager, fake_web3):
        erc20 = Erc20Service(read_only_manager)

        with pytest.raises(SignerNotFoundError):
            await erc20.transfer(USDC, OWNER, "1")

        fake_web3.eth.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_too_many_decimals(self, erc20, contract_stub, fake_web3):
        contract_stub.on(USDC, Erc20Method.DECIMALS, 6)

        with pytest.raises(ValidationError):
            await erc20.transfer(USDC, OWNER, "0.0000001")

        fake_web3.eth.send_raw_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs,param",
        [
            ({"token_address": "bad"}, "token_address"),
            ({"recipient_address": "bad"}, "recipient_address"),
            ({"amount": "-5"}, "amount"),
            ({"gas_price": "fast"}, "gas_price"),
        ],
    )
    async def test_invalid_input(self, erc20, fake_web3, kwargs, param):
        arguments = {"token_address": USDC, "recipient_address": OWNER, "amount": "1"}
        arguments.update(kwargs)

        with pytest.raises(ValidationError) as exc_info:
            await erc20.transfer(**arguments)

        assert exc_info.value.param == param
        fake_web3.eth.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_broadcast_failure_wrapped(self, erc20, contract_stub, fake_web3):
        contract_stub.on(USDC, Erc20Method.DECIMALS, 6)
        fake_web3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds for gas")

        with pytest.raises(TokenOperationError, match="Failed to transfer tokens"):
            await erc20.transfer(USDC, OWNER, "1")
