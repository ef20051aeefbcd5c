"""
Session addressing.

Session ids, action ids and the enable digest are all keccak256 hashes over
fixed layouts, so the same inputs always address the same state.
"""

from typing import Optional, Sequence

from eth_utils import keccak

from ..encoding.abi import AddressLike, address_bytes, encode_address, encode_bytes32, encode_uint
from .models import ActionData, EnableSessions, PolicyData

ID_LENGTH = 32

POLICY_DATA_TYPE = "PolicyData(address policy,bytes initData)"
ACTION_DATA_TYPE = "ActionData(bytes32 actionId,PolicyData[] actionPolicies)"
ENABLE_SESSIONS_TYPE = (
    "EnableSessions(bytes32 signerId,address account,uint256 chainId,uint256 nonce,"
    "address isigner,bytes isignerInitData,"
    "PolicyData[] userOpPolicies,PolicyData[] erc1271Policies,ActionData[] actions)"
)

POLICY_DATA_TYPEHASH = keccak(text=POLICY_DATA_TYPE)
ACTION_DATA_TYPEHASH = keccak(text=ACTION_DATA_TYPE + POLICY_DATA_TYPE)
ENABLE_SESSIONS_TYPEHASH = keccak(text=ENABLE_SESSIONS_TYPE + ACTION_DATA_TYPE + POLICY_DATA_TYPE)


def _require_id(value: bytes, name: str) -> bytes:
    if len(value) != ID_LENGTH:
        raise ValueError(f"{name} must be 32 bytes, got {len(value)}")
    return bytes(value)


def session_id(signer_id: bytes, action_id: Optional[bytes] = None) -> bytes:
    """
    Derive the session id for a signer, or for a signer and one action.
    """
    signer_id = _require_id(signer_id, "Signer id")
    if action_id is None:
        return keccak(signer_id)
    return keccak(signer_id + _require_id(action_id, "Action id"))


def function_selector(call_data: bytes) -> bytes:
    """First four bytes of call data; calls without a selector map to 0x00000000."""
    if len(call_data) < 4:
        return b"\x00" * 4
    return bytes(call_data[:4])


def action_id(target: AddressLike, call_data: bytes) -> bytes:
    return keccak(address_bytes(target) + function_selector(call_data))


def hash_policy_data(policy: PolicyData) -> bytes:
    return keccak(POLICY_DATA_TYPEHASH + encode_address(policy.policy) + keccak(policy.init_data))


def hash_policy_list(policies: Sequence[PolicyData]) -> bytes:
    return keccak(b"".join(hash_policy_data(p) for p in policies))


def hash_action_data(action: ActionData) -> bytes:
    return keccak(
        ACTION_DATA_TYPEHASH
        + encode_bytes32(action.action_id)
        + hash_policy_list(action.action_policies)
    )


def enable_digest(
    signer_id: bytes,
    enable_data: EnableSessions,
    account: AddressLike,
    chain_id: int,
    nonce: int = 0,
) -> bytes:
    """
    Hash binding a signer id to the full session configuration.

    Covers the account, the chain, the account's enable nonce for the signer
    id, the signer module, its init data and all three policy lists in order.
    The nonce moves on every removal, so a signature approved before a
    session was removed cannot enable it again. The owner's enable signature
    itself is not part of the digest.
    """
    return keccak(
        ENABLE_SESSIONS_TYPEHASH
        + encode_bytes32(_require_id(signer_id, "Signer id"))
        + encode_address(account)
        + encode_uint(chain_id)
        + encode_uint(nonce)
        + encode_address(enable_data.isigner)
        + keccak(enable_data.isigner_init_data)
        + hash_policy_list(enable_data.user_op_policies)
        + hash_policy_list(enable_data.erc1271_policies)
        + keccak(b"".join(hash_action_data(a) for a in enable_data.actions))
    )
