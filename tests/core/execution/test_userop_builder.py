"""
Tests for ERC-7579 UserOperation calldata builders.
"""

from eth_utils import keccak

from smartsession.core.encoding import encode_uint
from smartsession.core.execution import (
    CallType,
    ExecType,
    Execution,
    build_batch_call,
    build_execute_call_data,
    build_single_call,
    encode_mode,
    encode_single_execution,
    get_execute_from_executor_selector,
    get_execute_selector,
)

TARGET = "0x1111111111111111111111111111111111111111"


def test_execute_selectors() -> None:
    assert get_execute_selector() == bytes.fromhex("e9ae5c53")
    assert get_execute_from_executor_selector() == bytes.fromhex("d691c964")
    assert get_execute_selector("foo()") == keccak(text="foo()")[:4]


def test_encode_mode_sets_call_and_exec_type() -> None:
    mode = encode_mode(CallType.BATCH, ExecType.TRY)

    assert len(mode) == 32
    assert mode[0] == 0x01
    assert mode[1] == 0x01
    assert mode[2:] == b"\x00" * 30


def test_encode_single_execution_is_packed() -> None:
    packed = encode_single_execution(TARGET, 5, b"\x12\x34")

    assert packed[:20] == bytes.fromhex("11" * 20)
    assert packed[20:52] == encode_uint(5)
    assert packed[52:] == b"\x12\x34"


def test_build_execute_call_data_encodes_execute() -> None:
    selector = get_execute_selector()
    call_data = build_execute_call_data(encode_mode(CallType.SINGLE), b"\x12\x34")

    assert call_data.startswith(selector)
    # 4-byte selector + 2 head words (mode, offset) + bytes length + data padded
    assert len(call_data) == len(selector) + 32 * 4
    assert call_data[36:68] == encode_uint(64)
    assert call_data.endswith(b"\x12\x34" + b"\x00" * 30)


def test_build_single_call() -> None:
    call_data = build_single_call(TARGET, 1, b"\xab")

    assert call_data[:4] == get_execute_selector()
    assert call_data[4] == CallType.SINGLE
    # execution calldata length is 20 + 32 + 1
    assert call_data[68:100] == encode_uint(53)


def test_build_batch_call() -> None:
    call_data = build_batch_call([Execution(TARGET, 0, b""), Execution(TARGET, 2, b"\x01")])

    assert call_data[:4] == get_execute_selector()
    assert call_data[4] == CallType.BATCH
