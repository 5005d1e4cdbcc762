"""
Chain configurations and the batching-contract address book
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping
from urllib.parse import urlparse

from evmkit.config.settings import DEFAULT_CHAIN_ID
from evmkit.core.errors import ConfigurationError, UnsupportedChainError


@dataclass(frozen=True)
class NativeCurrency:
    """Native gas token of a chain"""
    name: str
    symbol: str
    decimals: int = 18


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for a blockchain"""
    chain_id: int
    name: str
    native_currency: NativeCurrency
    explorer_url: str
    multicall_address: str
    rpc_urls: tuple[str, ...] = field(default_factory=tuple)

    @property
    def currency_symbol(self) -> str:
        return self.native_currency.symbol


# Multicall2-compatible batching contracts. Base, Optimism and Arbitrum use
# Multicall3, which keeps the aggregate/tryAggregate entry points.
CHAINS: tuple[ChainConfig, ...] = (
    ChainConfig(
        chain_id=1,
        name="Ethereum Mainnet",
        native_currency=NativeCurrency(name="Ether", symbol="ETH"),
        explorer_url="https://etherscan.io",
        multicall_address="0x5BA1e12693Dc8F9c48aAD8770482f4739bEeD696",
        rpc_urls=(
            "https://mainnet.infura.io/v3",
            "https://eth-mainnet.public.blastapi.io",
            "https://eth.llamarpc.com",
        ),
    ),
    ChainConfig(
        chain_id=137,
        name="Polygon Mainnet",
        native_currency=NativeCurrency(name="MATIC", symbol="MATIC"),
        explorer_url="https://polygonscan.com",
        multicall_address="0x275617327c958bD06b5D6b871E7f491D76113dd8",
        rpc_urls=(
            "https://polygon-rpc.com",
            "https://polygon-mainnet.infura.io/v3",
        ),
    ),
    ChainConfig(
        chain_id=56,
        name="Binance Smart Chain",
        native_currency=NativeCurrency(name="BNB", symbol="BNB"),
        explorer_url="https://bscscan.com",
        multicall_address="0xa9193376D09C7f31283C54e56D013fCF370Cd9D9",
        rpc_urls=("https://bsc-dataseed.binance.org",),
    ),
    ChainConfig(
        chain_id=8453,
        name="Base Mainnet",
        native_currency=NativeCurrency(name="Ether", symbol="ETH"),
        explorer_url="https://basescan.org",
        multicall_address="0xcA11bde05977b3631167028862bE2a173976CA11",
        rpc_urls=("https://mainnet.base.org",),
    ),
    ChainConfig(
        chain_id=10,
        name="Optimism",
        native_currency=NativeCurrency(name="Ether", symbol="ETH"),
        explorer_url="https://optimistic.etherscan.io",
        multicall_address="0xcA11bde05977b3631167028862bE2a173976CA11",
        rpc_urls=("https://mainnet.optimism.io",),
    ),
    ChainConfig(
        chain_id=42161,
        name="Arbitrum One",
        native_currency=NativeCurrency(name="Ether", symbol="ETH"),
        explorer_url="https://arbiscan.io",
        multicall_address="0xcA11bde05977b3631167028862bE2a173976CA11",
        rpc_urls=("https://arb1.arbitrum.io/rpc",),
    ),
)


class ChainRegistry:
    """
    Immutable chain id -> ChainConfig table.

    Passed to the provider and the aggregator at construction time so tests
    can substitute their own tables.
    """

    def __init__(self, chains: Iterable[ChainConfig]):
        table: dict[int, ChainConfig] = {}
        for chain in chains:
            existing = table.get(chain.chain_id)
            if existing is not None and (
                existing.multicall_address.lower() != chain.multicall_address.lower()
            ):
                raise ConfigurationError(
                    f"Conflicting batching contract for chain ID {chain.chain_id}: "
                    f"{existing.multicall_address} vs {chain.multicall_address}"
                )
            if existing is None:
                table[chain.chain_id] = chain
        self._chains = MappingProxyType(table)

    @property
    def chains(self) -> Mapping[int, ChainConfig]:
        return self._chains

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._chains

    def __len__(self) -> int:
        return len(self._chains)

    def get_chain(self, chain_id: int) -> ChainConfig:
        """Get a chain by id. Raises ``UnsupportedChainError`` if not found."""
        chain = self._chains.get(chain_id)
        if chain is None:
            raise UnsupportedChainError(chain_id)
        return chain

    def get_chain_info(self, chain_id: int) -> ChainConfig | None:
        return self._chains.get(chain_id)

    def lookup_batch_address(self, chain_id: int) -> str:
        """Batching contract address for a chain"""
        return self.get_chain(chain_id).multicall_address

    def supported_chain_ids(self) -> list[int]:
        return sorted(self._chains)


DEFAULT_REGISTRY = ChainRegistry(CHAINS)


def infer_chain_id(rpc_url: str, registry: ChainRegistry = DEFAULT_REGISTRY) -> int | None:
    """
    Guess the chain id of an RPC endpoint from its host name.

    Returns None when no known public endpoint of any registered chain shares
    the host.
    """
    host = (urlparse(rpc_url).hostname or "").lower()
    if not host:
        return None

    for chain in registry.chains.values():
        for known in chain.rpc_urls:
            if (urlparse(known).hostname or "").lower() == host:
                return chain.chain_id
    return None


def resolve_chain_id(
    rpc_url: str,
    chain_id: int | None = None,
    registry: ChainRegistry = DEFAULT_REGISTRY,
) -> int:
    """Explicit chain id, else the one inferred from the URL, else DEFAULT_CHAIN_ID"""
    if chain_id is not None:
        return chain_id
    inferred = infer_chain_id(rpc_url, registry)
    return inferred if inferred is not None else DEFAULT_CHAIN_ID
