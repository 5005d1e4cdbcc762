"""
Multicall2 Implementation
Batches many contract read calls into a single eth_call against the chain's
batching contract (see evmkit.config.chains for the address book).
"""
from typing import Any, Iterable, NamedTuple, Optional, Sequence, Union

from hexbytes import HexBytes
from web3 import Web3

from evmkit.config.chains import ChainRegistry
from evmkit.core.abi import Erc20Method, Method, Multicall2Method, decode, decode_single, encode
from evmkit.core.address_map import AddressMap
from evmkit.core.errors import AggregateError, DecodeError, ValidationError
from evmkit.core.provider import ProviderManager
from evmkit.utils.logger import get_logger
from evmkit.utils.retry import NO_RETRY, RetryPolicy
from evmkit.utils.validation import checksum_address, is_valid_address

logger = get_logger(__name__)

BlockIdentifier = Union[int, str]


class Call(NamedTuple):
    target: str
    call_data: bytes


class CallResult(NamedTuple):
    success: bool
    return_data: bytes  # empty when success is False


class AggregateResponse(NamedTuple):
    block_number: int
    return_data: list[bytes]


class ContractRead(NamedTuple):
    """A typed read: encoded with ``method`` and decoded with its outputs"""
    target: str
    method: Method
    args: tuple = ()


class Multicall:
    """
    Executes many independent contract reads as one RPC round-trip.

    Results always come back in request order and with the same length as
    the request.
    """

    def __init__(
        self,
        provider_manager: ProviderManager,
        registry: Optional[ChainRegistry] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.provider_manager = provider_manager
        self.registry = registry if registry is not None else provider_manager.registry
        self.retry_policy = retry_policy or NO_RETRY

    def _prepare(
        self, calls: Iterable[Call], chain_id: Optional[int]
    ) -> tuple[int, str, list[tuple[str, bytes]]]:
        """Validate the batch and resolve the batching contract, without network access"""
        call_structs = []
        for index, call in enumerate(calls):
            if not is_valid_address(call.target):
                raise ValidationError(
                    f"Invalid target address at index {index}: {call.target!r}", param="calls"
                )
            try:
                call_data = bytes(HexBytes(call.call_data))
            except (TypeError, ValueError) as e:
                raise ValidationError(
                    f"Invalid call data at index {index}: {call.call_data!r}", param="calls"
                ) from e
            call_structs.append((Web3.to_checksum_address(call.target), call_data))

        if not call_structs:
            raise ValidationError("At least one call is required", param="calls")

        chain_id = self.provider_manager.resolve(chain_id)
        multicall_address = self.registry.lookup_batch_address(chain_id)
        return chain_id, multicall_address, call_structs

    async def _execute(
        self,
        chain_id: int,
        multicall_address: str,
        data: bytes,
        block_identifier: BlockIdentifier,
        description: str,
    ) -> bytes:
        web3 = self.provider_manager.get_read_connection(chain_id)
        tx = {"to": Web3.to_checksum_address(multicall_address), "data": data}

        try:
            return await self.retry_policy.run(
                lambda: web3.eth.call(tx, block_identifier), description
            )
        except Exception as e:
            logger.error(f"{description} failed on chain {chain_id}: {e}")
            raise AggregateError(f"Failed to {description}: {e}") from e

    @staticmethod
    def _check_length(expected: int, received: int):
        if expected != received:
            raise DecodeError(
                f"Batching contract returned {received} results for {expected} calls"
            )

    async def aggregate(
        self,
        calls: Sequence[Call],
        chain_id: Optional[int] = None,
        block_identifier: BlockIdentifier = "latest",
    ) -> AggregateResponse:
        """
        Strict mode: if any call reverts the whole batch fails with
        AggregateError and no partial result is returned.
        """
        chain_id, multicall_address, call_structs = self._prepare(calls, chain_id)
        logger.debug(f"aggregate: {len(call_structs)} calls on chain {chain_id}")

        raw = await self._execute(
            chain_id,
            multicall_address,
            encode(Multicall2Method.AGGREGATE, [call_structs]),
            block_identifier,
            "aggregate calls",
        )
        block_number, return_data = decode(Multicall2Method.AGGREGATE, raw)
        self._check_length(len(call_structs), len(return_data))
        return AggregateResponse(block_number, [bytes(item) for item in return_data])

    async def try_aggregate(
        self,
        calls: Sequence[Call],
        chain_id: Optional[int] = None,
        require_success: bool = False,
        block_identifier: BlockIdentifier = "latest",
    ) -> list[CallResult]:
        """
        Best-effort mode. With ``require_success`` the batching contract
        reverts on the first failing call, which behaves like ``aggregate``.
        Otherwise each CallResult carries its own success flag; check it
        before decoding ``return_data``.
        """
        chain_id, multicall_address, call_structs = self._prepare(calls, chain_id)
        logger.debug(
            f"tryAggregate: {len(call_structs)} calls on chain {chain_id} "
            f"(require_success={require_success})"
        )

        raw = await self._execute(
            chain_id,
            multicall_address,
            encode(Multicall2Method.TRY_AGGREGATE, [require_success, call_structs]),
            block_identifier,
            "batch calls",
        )
        (results,) = decode(Multicall2Method.TRY_AGGREGATE, raw)
        self._check_length(len(call_structs), len(results))
        return [
            CallResult(bool(success), bytes(return_data) if success else b"")
            for success, return_data in results
        ]

    async def get_erc20_batch_balances(
        self,
        owner_address: str,
        token_addresses: Sequence[str],
        chain_id: Optional[int] = None,
    ) -> AddressMap:
        """
        Batches balanceOf(owner) for every token into one aggregate call.

        Returns token address -> raw balance as a base-10 string (no decimal
        scaling). Keys are the caller's strings; the same token given twice
        in different letter case is called twice but yields one entry, the
        later spelling winning.
        """
        owner = checksum_address(owner_address, "owner_address")
        tokens = list(token_addresses)
        if not tokens:
            raise ValidationError("At least one token address is required", param="token_addresses")
        for token in tokens:
            checksum_address(token, "token_addresses")

        call_data = encode(Erc20Method.BALANCE_OF, [owner])
        response = await self.aggregate([Call(token, call_data) for token in tokens], chain_id)

        balances = AddressMap()
        for token, return_data in zip(tokens, response.return_data):
            balances[token] = str(decode_single(Erc20Method.BALANCE_OF, return_data))
        return balances

    async def read(
        self,
        requests: Sequence[ContractRead],
        chain_id: Optional[int] = None,
        allow_failure: bool = False,
    ) -> list[Any]:
        """
        Encode, batch and decode typed reads.
        Single-output methods are unwrapped. Failed calls yield None when
        ``allow_failure`` is set; otherwise any failure fails the batch.
        """
        requests = list(requests)
        calls = [Call(request.target, encode(request.method, request.args)) for request in requests]
        results = await self.try_aggregate(calls, chain_id, require_success=not allow_failure)

        decoded_results = []
        for request, result in zip(requests, results):
            if not result.success:
                decoded_results.append(None)
                continue
            decoded_results.append(decode_single(request.method, result.return_data))
        return decoded_results
