"""
ERC-7579 UserOperation calldata builders.
"""

from __future__ import annotations

from typing import Optional, Sequence

from eth_utils import keccak

from smartsession.config import settings

from ..encoding.abi import (
    AddressLike,
    address_bytes,
    encode_address,
    encode_bytes,
    encode_dynamic_array,
    encode_tuple,
    encode_uint,
)
from .calldata import CallType, ExecType, Execution, ModeCode


def _selector_from_signature(signature: str) -> bytes:
    return keccak(text=signature)[:4]


def get_execute_selector(signature: Optional[str] = None) -> bytes:
    return _selector_from_signature(signature or settings.erc7579_execute_signature)


def get_execute_from_executor_selector(signature: Optional[str] = None) -> bytes:
    return _selector_from_signature(
        signature or settings.erc7579_execute_from_executor_signature
    )


def encode_mode(call_type: int, exec_type: int = ExecType.DEFAULT) -> bytes:
    return ModeCode(call_type=int(call_type), exec_type=int(exec_type)).encode()


def encode_single_execution(target: AddressLike, value: int, data: bytes = b"") -> bytes:
    """Pack ``target ‖ value ‖ data`` for a single call."""
    return address_bytes(target) + encode_uint(value) + bytes(data)


def encode_batch_execution(executions: Sequence[Execution]) -> bytes:
    """Encode ``abi.encode(Execution[])``."""
    items = [
        encode_tuple([
            (False, encode_address(execution.target)),
            (False, encode_uint(execution.value)),
            (True, encode_bytes(execution.call_data)),
        ])
        for execution in executions
    ]
    return encode_tuple([(True, encode_dynamic_array(items))])


def build_execute_call_data(
    mode: bytes,
    execution_calldata: bytes,
    *,
    selector: Optional[bytes] = None,
) -> bytes:
    """
    Build calldata for execute(bytes32,bytes).
    """
    if len(mode) != 32:
        raise ValueError("Mode must be 32 bytes")
    selector = selector or get_execute_selector()
    return selector + encode_tuple([(False, bytes(mode)), (True, encode_bytes(execution_calldata))])


def build_single_call(
    target: AddressLike,
    value: int,
    data: bytes = b"",
    exec_type: int = ExecType.DEFAULT,
) -> bytes:
    return build_execute_call_data(
        encode_mode(CallType.SINGLE, exec_type),
        encode_single_execution(target, value, data),
    )


def build_batch_call(
    executions: Sequence[Execution],
    exec_type: int = ExecType.DEFAULT,
) -> bytes:
    return build_execute_call_data(
        encode_mode(CallType.BATCH, exec_type),
        encode_batch_execution(executions),
    )
