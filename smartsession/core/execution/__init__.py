"""
Execution Module

ERC-4337 user operation model and ERC-7579 execution call data:
- PackedUserOperation: v0.7 user operation with hashing
- calldata: decoding of execute(bytes32,bytes) payloads
- userop_builder: selectors and call data encoders
- ExecutionHelper: the account's execution primitive
"""

from .calldata import (
    CallType,
    ExecType,
    Execution,
    ModeCode,
    decode_batch,
    decode_execution,
    decode_mode,
    decode_single,
    decode_user_op_call_data,
)
from .executor import CallDispatcher, CallResult, ExecutionHelper
from .userop import PackedUserOperation, pack_uint128_pair, unpack_uint128_pair
from .userop_builder import (
    build_batch_call,
    build_execute_call_data,
    build_single_call,
    encode_batch_execution,
    encode_mode,
    encode_single_execution,
    get_execute_from_executor_selector,
    get_execute_selector,
)

__all__ = [
    # Call data
    "CallType",
    "ExecType",
    "Execution",
    "ModeCode",
    "decode_batch",
    "decode_execution",
    "decode_mode",
    "decode_single",
    "decode_user_op_call_data",
    # Builders
    "build_batch_call",
    "build_execute_call_data",
    "build_single_call",
    "encode_batch_execution",
    "encode_mode",
    "encode_single_execution",
    "get_execute_from_executor_selector",
    "get_execute_selector",
    # User operations
    "PackedUserOperation",
    "pack_uint128_pair",
    "unpack_uint128_pair",
    # Executor
    "CallDispatcher",
    "CallResult",
    "ExecutionHelper",
]
