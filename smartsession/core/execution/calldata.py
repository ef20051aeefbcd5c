"""
ERC-7579 call data decoding.

A user operation that calls the account's ``execute(bytes32 mode, bytes
executionCalldata)`` carries a mode word whose first byte is the call type and
whose second byte is the execution type. The execution calldata is packed
``target ‖ value ‖ data`` for single calls and ``abi.encode(Execution[])`` for
batches.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List

from eth_utils import to_checksum_address

from ..encoding.abi import WORD_SIZE, AbiReader
from ..errors import DataTooShort, UnsupportedCallType

SELECTOR_LENGTH = 4
MODE_CODE_LENGTH = 32
SINGLE_EXECUTION_MIN_LENGTH = 20 + WORD_SIZE


class CallType(IntEnum):
    SINGLE = 0x00
    BATCH = 0x01
    STATIC = 0xFE
    DELEGATECALL = 0xFF


class ExecType(IntEnum):
    DEFAULT = 0x00
    TRY = 0x01


@dataclass(frozen=True)
class ModeCode:
    """Decoded ERC-7579 mode word."""
    call_type: int
    exec_type: int
    mode_selector: bytes = b"\x00" * 4
    mode_payload: bytes = b"\x00" * 22

    @classmethod
    def parse(cls, word: bytes) -> "ModeCode":
        if len(word) < MODE_CODE_LENGTH:
            raise DataTooShort(len(word), MODE_CODE_LENGTH)
        return cls(
            call_type=word[0],
            exec_type=word[1],
            mode_selector=bytes(word[6:10]),
            mode_payload=bytes(word[10:32]),
        )

    def encode(self) -> bytes:
        return (
            bytes([self.call_type, self.exec_type])
            + b"\x00" * 4
            + self.mode_selector
            + self.mode_payload
        )


@dataclass(frozen=True)
class Execution:
    target: str
    value: int
    call_data: bytes = b""


def decode_mode(call_data: bytes) -> ModeCode:
    """Read the mode word that follows the ``execute`` selector."""
    required = SELECTOR_LENGTH + MODE_CODE_LENGTH
    if len(call_data) < required:
        raise DataTooShort(len(call_data), required)
    return ModeCode.parse(bytes(call_data[SELECTOR_LENGTH:required]))


def decode_user_op_call_data(call_data: bytes) -> bytes:
    """Return the ``executionCalldata`` argument of ``execute(bytes32,bytes)``."""
    if len(call_data) < SELECTOR_LENGTH + 2 * WORD_SIZE:
        raise DataTooShort(len(call_data), SELECTOR_LENGTH + 2 * WORD_SIZE)
    reader = AbiReader(bytes(call_data[SELECTOR_LENGTH:]), context="execute calldata")
    return reader.tail(1).read_bytes()


def decode_single(execution_calldata: bytes) -> Execution:
    if len(execution_calldata) < SINGLE_EXECUTION_MIN_LENGTH:
        raise DataTooShort(len(execution_calldata), SINGLE_EXECUTION_MIN_LENGTH)
    return Execution(
        target=to_checksum_address(bytes(execution_calldata[:20])),
        value=int.from_bytes(execution_calldata[20:SINGLE_EXECUTION_MIN_LENGTH], "big"),
        call_data=bytes(execution_calldata[SINGLE_EXECUTION_MIN_LENGTH:]),
    )


def decode_batch(execution_calldata: bytes) -> List[Execution]:
    reader = AbiReader(bytes(execution_calldata), context="batch execution")
    count, elements = reader.tail(0).read_array()
    executions = []
    for index in range(count):
        item = elements.tail(index)
        executions.append(
            Execution(
                target=item.address(0),
                value=item.uint(1),
                call_data=item.tail(2).read_bytes(),
            )
        )
    return executions


def decode_execution(mode: ModeCode, execution_calldata: bytes) -> List[Execution]:
    """
    Decode the executions described by ``mode``.

    Single calls decode to a one-element list. Only SINGLE and BATCH call types
    are understood; anything else is rejected rather than guessed.
    """
    if mode.call_type == CallType.SINGLE:
        return [decode_single(execution_calldata)]
    if mode.call_type == CallType.BATCH:
        return decode_batch(execution_calldata)
    raise UnsupportedCallType(mode.call_type)
