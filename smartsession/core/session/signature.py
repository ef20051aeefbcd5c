"""
Session signature encoding.

A user operation signature starts with a one-byte mode tag:

* ``USE``: ``signerId(32) ‖ signature`` for an already enabled session.
* ``ENABLE`` / ``UNSAFE_ENABLE``: ``abi.encode(EnableSessions, bytes32
  signerId, bytes useSignature)`` where ``useSignature`` is itself a ``USE``
  payload for the operation being validated.
"""

from enum import IntEnum
from typing import List, Tuple

from ..encoding.abi import (
    AbiReader,
    encode_address,
    encode_bytes,
    encode_bytes32,
    encode_dynamic_array,
    encode_tuple,
)
from ..errors import DataTooShort, UnsupportedSessionMode
from .models import ActionData, EnableSessions, PolicyData

SIGNER_ID_LENGTH = 32


class SmartSessionMode(IntEnum):
    USE = 0x00
    ENABLE = 0x01
    UNSAFE_ENABLE = 0x02

    @property
    def is_enable(self) -> bool:
        return self in (SmartSessionMode.ENABLE, SmartSessionMode.UNSAFE_ENABLE)


def unpack_mode(signature: bytes) -> Tuple[SmartSessionMode, bytes]:
    if not signature:
        raise DataTooShort(0, 1)
    try:
        mode = SmartSessionMode(signature[0])
    except ValueError:
        raise UnsupportedSessionMode(signature[0], len(signature)) from None
    return mode, bytes(signature[1:])


def pack_mode(mode: SmartSessionMode, payload: bytes) -> bytes:
    return bytes([mode]) + bytes(payload)


def decode_use(packed: bytes) -> Tuple[bytes, bytes]:
    """Split a use payload into ``(signer_id, signature)``."""
    if len(packed) < SIGNER_ID_LENGTH:
        raise DataTooShort(len(packed), SIGNER_ID_LENGTH)
    return bytes(packed[:SIGNER_ID_LENGTH]), bytes(packed[SIGNER_ID_LENGTH:])


def encode_use(signer_id: bytes, signature: bytes) -> bytes:
    return encode_bytes32(signer_id) + bytes(signature)


# =============================================================================
# Enable payloads
# =============================================================================

def _decode_policy_list(reader: AbiReader) -> List[PolicyData]:
    count, elements = reader.read_array()
    policies = []
    for index in range(count):
        item = elements.tail(index)
        policies.append(PolicyData(policy=item.address(0), init_data=item.tail(1).read_bytes()))
    return policies


def _decode_action_list(reader: AbiReader) -> List[ActionData]:
    count, elements = reader.read_array()
    actions = []
    for index in range(count):
        item = elements.tail(index)
        actions.append(
            ActionData(
                action_id=item.bytes32(0),
                action_policies=_decode_policy_list(item.tail(1)),
            )
        )
    return actions


def decode_enable_sessions(reader: AbiReader) -> EnableSessions:
    return EnableSessions(
        isigner=reader.address(0),
        isigner_init_data=reader.tail(1).read_bytes(),
        user_op_policies=_decode_policy_list(reader.tail(2)),
        erc1271_policies=_decode_policy_list(reader.tail(3)),
        actions=_decode_action_list(reader.tail(4)),
        permission_enable_sig=reader.tail(5).read_bytes(),
    )


def decode_packed_sig_enable(packed: bytes) -> Tuple[EnableSessions, bytes, bytes]:
    """
    Decode an enable payload into ``(enable_data, signer_id, use_signature)``.

    Raises:
        DecodeError: If any offset, length or padding is out of bounds
    """
    reader = AbiReader(bytes(packed), context="enable signature")
    enable_data = decode_enable_sessions(reader.tail(0))
    signer_id = reader.bytes32(1)
    use_signature = reader.tail(2).read_bytes()
    return enable_data, signer_id, use_signature


def _encode_policy_list(policies: List[PolicyData]) -> bytes:
    return encode_dynamic_array([
        encode_tuple([(False, encode_address(p.policy)), (True, encode_bytes(p.init_data))])
        for p in policies
    ])


def encode_enable_sessions(enable_data: EnableSessions) -> bytes:
    actions = encode_dynamic_array([
        encode_tuple([
            (False, encode_bytes32(action.action_id)),
            (True, _encode_policy_list(action.action_policies)),
        ])
        for action in enable_data.actions
    ])
    return encode_tuple([
        (False, encode_address(enable_data.isigner)),
        (True, encode_bytes(enable_data.isigner_init_data)),
        (True, _encode_policy_list(enable_data.user_op_policies)),
        (True, _encode_policy_list(enable_data.erc1271_policies)),
        (True, actions),
        (True, encode_bytes(enable_data.permission_enable_sig)),
    ])


def encode_packed_sig_enable(
    enable_data: EnableSessions,
    signer_id: bytes,
    use_signature: bytes,
) -> bytes:
    return encode_tuple([
        (True, encode_enable_sessions(enable_data)),
        (False, encode_bytes32(signer_id)),
        (True, encode_bytes(use_signature)),
    ])


# =============================================================================
# Full user operation signatures
# =============================================================================

def build_use_signature(signer_id: bytes, signature: bytes) -> bytes:
    return pack_mode(SmartSessionMode.USE, encode_use(signer_id, signature))


def build_enable_signature(
    enable_data: EnableSessions,
    signer_id: bytes,
    signature: bytes,
    mode: SmartSessionMode = SmartSessionMode.ENABLE,
) -> bytes:
    """Build a signature that enables ``signer_id`` and then uses it."""
    if not mode.is_enable:
        raise ValueError("Mode must be ENABLE or UNSAFE_ENABLE")
    return pack_mode(
        mode,
        encode_packed_sig_enable(enable_data, signer_id, encode_use(signer_id, signature)),
    )
