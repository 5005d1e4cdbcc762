"""
Pytest configuration and shared fixtures for the test suite.

No test touches the network: every connection handed out by ProviderManager
is a FakeWeb3 whose ``eth`` methods are AsyncMocks.
"""
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode as abi_encode
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError

from evmkit.core.abi import method_spec
from evmkit.core.provider import ProviderManager

# Well-known throwaway key from the web3.py documentation
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

OWNER = "0x742d35cc6634c0532925a3b844bc454e4438f44e"
SPENDER = "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"

MAINNET_MULTICALL = "0x5BA1e12693Dc8F9c48aAD8770482f4739bEeD696"


def uint256(value: int) -> bytes:
    return abi_encode(["uint256"], [value])


def aggregate_response(block_number: int, return_data: list[bytes]) -> HexBytes:
    return HexBytes(abi_encode(["uint256", "bytes[]"], [block_number, return_data]))


def try_aggregate_response(results: list[tuple[bool, bytes]]) -> HexBytes:
    return HexBytes(abi_encode(["(bool,bytes)[]"], [results]))


async def _resolved(value: Any) -> Any:
    return value


class FakeEth:
    def __init__(self, chain_id: int = 1):
        self.call = AsyncMock()
        self.get_transaction_count = AsyncMock(return_value=0)
        self.estimate_gas = AsyncMock(return_value=60_000)
        self.send_raw_transaction = AsyncMock(return_value=HexBytes("0x" + "11" * 32))
        self.gas_price_wei = 2 * 10**9
        self.chain_id_value = chain_id

    # AsyncWeb3 exposes these as awaitable properties
    @property
    def gas_price(self):
        return _resolved(self.gas_price_wei)

    @property
    def chain_id(self):
        return _resolved(self.chain_id_value)


class FakeWeb3:
    def __init__(self, chain_id: int = 1):
        self.eth = FakeEth(chain_id)
        self.provider = MagicMock()
        self.provider.disconnect = AsyncMock()


class ContractStub:
    """Answers eth_call by (target, selector) with canned ABI-encoded values"""

    def __init__(self):
        self.responses: dict[tuple[str, bytes], bytes] = {}

    def on(self, target: str, method, *values):
        spec = method_spec(method)
        self.responses[(target.lower(), spec.selector)] = abi_encode(list(spec.outputs), list(values))
        return self

    async def handle(self, tx, block_identifier="latest"):
        data = bytes(HexBytes(tx["data"]))
        key = (tx["to"].lower(), data[:4])
        if key not in self.responses:
            raise ContractLogicError("execution reverted")
        return HexBytes(self.responses[key])


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fake_web3() -> FakeWeb3:
    return FakeWeb3()


@pytest.fixture
def provider_manager(fake_web3, monkeypatch) -> ProviderManager:
    """Mainnet provider with a signer; every registered chain shares fake_web3"""
    monkeypatch.setattr(ProviderManager, "_create_web3", lambda self, rpc_url: fake_web3)
    return ProviderManager("https://eth.llamarpc.com", private_key=TEST_PRIVATE_KEY, chain_id=1)


@pytest.fixture
def read_only_manager(fake_web3, monkeypatch) -> ProviderManager:
    monkeypatch.setattr(ProviderManager, "_create_web3", lambda self, rpc_url: fake_web3)
    return ProviderManager("https://eth.llamarpc.com", chain_id=1)


@pytest.fixture
def contract_stub(fake_web3) -> ContractStub:
    stub = ContractStub()
    fake_web3.eth.call.side_effect = stub.handle
    return stub
