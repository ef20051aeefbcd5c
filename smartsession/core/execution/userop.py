"""
ERC-4337 v0.7 PackedUserOperation model and helpers.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from eth_utils import keccak, to_checksum_address

from smartsession.config import settings

from ..encoding.abi import encode_address, encode_bytes32, encode_uint


def _to_hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def _from_hex(value: Optional[str]) -> bytes:
    if not value:
        return b""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def pack_uint128_pair(high: int, low: int) -> bytes:
    """Pack two uint128 values into one bytes32 (``high`` first)."""
    for value in (high, low):
        if value < 0 or value >= 2**128:
            raise ValueError("Value must fit in uint128")
    return high.to_bytes(16, "big") + low.to_bytes(16, "big")


def unpack_uint128_pair(word: bytes) -> Tuple[int, int]:
    return int.from_bytes(word[:16], "big"), int.from_bytes(word[16:32], "big")


@dataclass
class PackedUserOperation:
    """
    ERC-4337 v0.7 PackedUserOperation.

    Gas limits and fees are packed as two uint128 values per bytes32:
    ``account_gas_limits = verificationGasLimit ‖ callGasLimit`` and
    ``gas_fees = maxPriorityFeePerGas ‖ maxFeePerGas``.
    """
    sender: str
    nonce: int = 0
    init_code: bytes = b""
    call_data: bytes = b""
    account_gas_limits: bytes = b"\x00" * 32
    pre_verification_gas: int = 0
    gas_fees: bytes = b"\x00" * 32
    paymaster_and_data: bytes = b""
    signature: bytes = b""

    def __post_init__(self) -> None:
        self.sender = to_checksum_address(self.sender)

    @property
    def verification_gas_limit(self) -> int:
        return unpack_uint128_pair(self.account_gas_limits)[0]

    @property
    def call_gas_limit(self) -> int:
        return unpack_uint128_pair(self.account_gas_limits)[1]

    def with_signature(self, signature: bytes) -> "PackedUserOperation":
        return replace(self, signature=signature)

    def pack(self) -> bytes:
        """ABI-encode every field except the signature, hashing dynamic ones."""
        return (
            encode_address(self.sender)
            + encode_uint(self.nonce)
            + keccak(self.init_code)
            + keccak(self.call_data)
            + encode_bytes32(self.account_gas_limits)
            + encode_uint(self.pre_verification_gas)
            + encode_bytes32(self.gas_fees)
            + keccak(self.paymaster_and_data)
        )

    def hash(self, entry_point: Optional[str] = None, chain_id: Optional[int] = None) -> bytes:
        """Compute the user operation hash signed by session signers."""
        entry_point = entry_point or settings.erc4337_entrypoint_address
        chain_id = chain_id if chain_id is not None else settings.chain_id
        return keccak(keccak(self.pack()) + encode_address(entry_point) + encode_uint(chain_id))

    def to_rpc_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "nonce": hex(self.nonce),
            "initCode": _to_hex(self.init_code),
            "callData": _to_hex(self.call_data),
            "accountGasLimits": _to_hex(self.account_gas_limits),
            "preVerificationGas": hex(self.pre_verification_gas),
            "gasFees": _to_hex(self.gas_fees),
            "paymasterAndData": _to_hex(self.paymaster_and_data),
            "signature": _to_hex(self.signature),
        }

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "PackedUserOperation":
        def parse_int(value: Optional[str]) -> int:
            if value is None:
                return 0
            return int(value, 16)

        return cls(
            sender=data["sender"],
            nonce=parse_int(data.get("nonce")),
            init_code=_from_hex(data.get("initCode")),
            call_data=_from_hex(data.get("callData")),
            account_gas_limits=_from_hex(data.get("accountGasLimits")) or b"\x00" * 32,
            pre_verification_gas=parse_int(data.get("preVerificationGas")),
            gas_fees=_from_hex(data.get("gasFees")) or b"\x00" * 32,
            paymaster_and_data=_from_hex(data.get("paymasterAndData")),
            signature=_from_hex(data.get("signature")),
        )
