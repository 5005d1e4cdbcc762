"""
EIP-2612 permits and Uniswap Permit2 approvals.

EIP-2612 tokens accept an off-chain signature in place of an approve
transaction. Permit2 is a shared contract (same address on every chain)
holding time-bound allowances; it needs a one-time ERC20 approval, after
which allowances are set either by an on-chain approve or by a signed
PermitSingle.
"""
from typing import Optional

from eth_account.messages import encode_typed_data
from hexbytes import HexBytes
from web3 import Web3

from evmkit.config.settings import (
    MAX_UINT48,
    MAX_UINT160,
    MAX_UINT256,
    PERMIT2_ADDRESS,
    PERMIT_DOMAIN_VERSION,
)
from evmkit.core.abi import Erc20Method, Erc20PermitMethod, Permit2Method, encode
from evmkit.core.contract import call_contract, operation_errors, send_transaction
from evmkit.core.errors import ValidationError
from evmkit.core.provider import ProviderManager
from evmkit.erc20.types import (
    Permit2Allowance,
    Permit2Signature,
    PermitDetails,
    PermitSignature,
    PermitSingle,
)
from evmkit.utils.logger import get_logger
from evmkit.utils.validation import checksum_address

logger = get_logger(__name__)

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

PERMIT_TYPE = [
    {"name": "owner", "type": "address"},
    {"name": "spender", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
]

# Permit2's domain has no version field
PERMIT2_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

PERMIT_DETAILS_TYPE = [
    {"name": "token", "type": "address"},
    {"name": "amount", "type": "uint160"},
    {"name": "expiration", "type": "uint48"},
    {"name": "nonce", "type": "uint48"},
]

PERMIT_SINGLE_TYPE = [
    {"name": "details", "type": "PermitDetails"},
    {"name": "spender", "type": "address"},
    {"name": "sigDeadline", "type": "uint256"},
]


def _uint(value, param: str, maximum: int = MAX_UINT256) -> int:
    """Integer base-unit amount within [0, maximum]"""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {param}: {value!r}", param=param) from e
    if number < 0 or number > maximum:
        raise ValidationError(f"Invalid {param}: {value!r} is out of range", param=param)
    return number


def _bytes32(value, param: str) -> bytes:
    try:
        raw = bytes(HexBytes(value))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {param}: {value!r}", param=param) from e
    if len(raw) != 32:
        raise ValidationError(f"Invalid {param}: expected 32 bytes", param=param)
    return raw


def _to_bytes32_hex(value: int) -> str:
    return Web3.to_hex(value.to_bytes(32, "big"))


class Permit2Service:
    """
    Service for handling ERC20 permit and Permit2 operations.
    Values here are integer base units, not human-readable amounts.
    """

    def __init__(self, provider_manager: ProviderManager):
        self.provider_manager = provider_manager

    async def _domain_chain_id(self, web3, chain_id: Optional[int]) -> int:
        if chain_id is not None:
            return chain_id
        return await web3.eth.chain_id

    async def create_permit_signature(
        self,
        token_address: str,
        spender_address: str,
        value,
        deadline: int,
        chain_id: Optional[int] = None,
    ) -> PermitSignature:
        """
        Sign an EIP-2612 permit letting ``spender`` pull ``value`` tokens from
        the signer until ``deadline``.
        """
        token = checksum_address(token_address, "token_address")
        spender = checksum_address(spender_address, "spender_address")
        value = _uint(value, "value")
        deadline = _uint(deadline, "deadline")
        account = self.provider_manager.get_signing_identity(chain_id)
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors("create permit signature"):
            nonce = await call_contract(web3, token, Erc20PermitMethod.NONCES, [account.address])
            name = await call_contract(web3, token, Erc20Method.NAME)
            domain_separator = await call_contract(web3, token, Erc20PermitMethod.DOMAIN_SEPARATOR)
            domain_chain_id = await self._domain_chain_id(web3, chain_id)

        typed_data = {
            "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, "Permit": PERMIT_TYPE},
            "primaryType": "Permit",
            "domain": {
                "name": name,
                "version": PERMIT_DOMAIN_VERSION,
                "chainId": domain_chain_id,
                "verifyingContract": token,
            },
            "message": {
                "owner": account.address,
                "spender": spender,
                "value": value,
                "nonce": nonce,
                "deadline": deadline,
            },
        }
        signable = encode_typed_data(full_message=typed_data)
        if bytes(signable.header) != bytes(domain_separator):
            logger.warning(
                f"DOMAIN_SEPARATOR of {token} does not match name={name!r} "
                f"version={PERMIT_DOMAIN_VERSION!r}; the permit may be rejected"
            )
        signed = account.sign_message(signable)

        return PermitSignature(
            v=signed.v,
            r=_to_bytes32_hex(signed.r),
            s=_to_bytes32_hex(signed.s),
            nonce=str(nonce),
            deadline=deadline,
            signature=Web3.to_hex(signed.signature),
        )

    async def execute_permit(
        self,
        token_address: str,
        owner_address: str,
        spender_address: str,
        value,
        deadline: int,
        v: int,
        r: str,
        s: str,
        chain_id: Optional[int] = None,
    ) -> str:
        """Submit a signed EIP-2612 permit; returns the tx hash"""
        token = checksum_address(token_address, "token_address")
        owner = checksum_address(owner_address, "owner_address")
        spender = checksum_address(spender_address, "spender_address")
        args = [
            owner,
            spender,
            _uint(value, "value"),
            _uint(deadline, "deadline"),
            _uint(v, "v", 255),
            _bytes32(r, "r"),
            _bytes32(s, "s"),
        ]
        account = self.provider_manager.get_signing_identity(chain_id)
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors("execute permit"):
            return await send_transaction(
                web3,
                account,
                self.provider_manager.resolve(chain_id),
                token,
                encode(Erc20PermitMethod.PERMIT, args),
            )

    async def approve_with_permit2(
        self,
        token_address: str,
        spender_address: str,
        amount,
        expiration: int = MAX_UINT48,
        chain_id: Optional[int] = None,
    ) -> str:
        """
        Approve Permit2 for the token (unlimited), then set a Permit2
        allowance for ``spender``. Both transactions are broadcast with
        consecutive nonces; the Permit2 tx hash is returned.
        """
        token = checksum_address(token_address, "token_address")
        spender = checksum_address(spender_address, "spender_address")
        amount = _uint(amount, "amount", MAX_UINT160)
        expiration = _uint(expiration, "expiration", MAX_UINT48)
        account = self.provider_manager.get_signing_identity(chain_id)
        web3 = self.provider_manager.get_read_connection(chain_id)
        resolved_chain_id = self.provider_manager.resolve(chain_id)

        with operation_errors("approve with Permit2"):
            nonce = await web3.eth.get_transaction_count(account.address, "pending")
            await send_transaction(
                web3,
                account,
                resolved_chain_id,
                token,
                encode(Erc20Method.APPROVE, [PERMIT2_ADDRESS, MAX_UINT256]),
                nonce=nonce,
            )
            return await send_transaction(
                web3,
                account,
                resolved_chain_id,
                PERMIT2_ADDRESS,
                encode(Permit2Method.APPROVE, [token, spender, amount, expiration]),
                nonce=nonce + 1,
            )

    async def get_permit2_allowance(
        self,
        owner_address: str,
        token_address: str,
        spender_address: str,
        chain_id: Optional[int] = None,
    ) -> Permit2Allowance:
        owner = checksum_address(owner_address, "owner_address")
        token = checksum_address(token_address, "token_address")
        spender = checksum_address(spender_address, "spender_address")
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors("get Permit2 allowance"):
            amount, expiration, nonce = await call_contract(
                web3, PERMIT2_ADDRESS, Permit2Method.ALLOWANCE, [owner, token, spender]
            )
        return Permit2Allowance(amount=str(amount), expiration=int(expiration), nonce=int(nonce))

    async def create_permit2_signature(
        self,
        token_address: str,
        spender_address: str,
        amount,
        expiration: int,
        sig_deadline: int,
        chain_id: Optional[int] = None,
    ) -> Permit2Signature:
        """Sign a Permit2 PermitSingle using the signer's current Permit2 nonce"""
        token = checksum_address(token_address, "token_address")
        spender = checksum_address(spender_address, "spender_address")
        amount = _uint(amount, "amount", MAX_UINT160)
        expiration = _uint(expiration, "expiration", MAX_UINT48)
        sig_deadline = _uint(sig_deadline, "sig_deadline")
        account = self.provider_manager.get_signing_identity(chain_id)
        web3 = self.provider_manager.get_read_connection(chain_id)

        allowance = await self.get_permit2_allowance(account.address, token, spender, chain_id)
        with operation_errors("create Permit2 signature"):
            domain_chain_id = await self._domain_chain_id(web3, chain_id)

        permit = PermitSingle(
            details=PermitDetails(
                token=token, amount=amount, expiration=expiration, nonce=allowance.nonce
            ),
            spender=spender,
            sig_deadline=sig_deadline,
        )
        typed_data = {
            "types": {
                "EIP712Domain": PERMIT2_DOMAIN_TYPE,
                "PermitDetails": PERMIT_DETAILS_TYPE,
                "PermitSingle": PERMIT_SINGLE_TYPE,
            },
            "primaryType": "PermitSingle",
            "domain": {
                "name": "Permit2",
                "chainId": domain_chain_id,
                "verifyingContract": PERMIT2_ADDRESS,
            },
            "message": {
                "details": {
                    "token": token,
                    "amount": amount,
                    "expiration": expiration,
                    "nonce": allowance.nonce,
                },
                "spender": spender,
                "sigDeadline": sig_deadline,
            },
        }
        signed = account.sign_message(encode_typed_data(full_message=typed_data))
        return Permit2Signature(permit=permit, signature=Web3.to_hex(signed.signature))

    async def execute_permit2(
        self,
        owner_address: str,
        permit: PermitSingle,
        signature: str,
        chain_id: Optional[int] = None,
    ) -> str:
        """Submit a signed PermitSingle to Permit2; returns the tx hash"""
        owner = checksum_address(owner_address, "owner_address")
        try:
            signature_bytes = bytes(HexBytes(signature))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid signature: {signature!r}", param="signature") from e
        account = self.provider_manager.get_signing_identity(chain_id)
        web3 = self.provider_manager.get_read_connection(chain_id)

        with operation_errors("execute Permit2 permit"):
            return await send_transaction(
                web3,
                account,
                self.provider_manager.resolve(chain_id),
                PERMIT2_ADDRESS,
                encode(Permit2Method.PERMIT, [owner, permit.as_tuple(), signature_bytes]),
            )
