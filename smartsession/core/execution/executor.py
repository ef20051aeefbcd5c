"""
Account execution primitive.

Issues the calls described by an ERC-7579 mode and execution calldata through
a ``CallDispatcher`` (the account's raw call mechanism). With the default
execution type a failed call raises ``CallReverted`` carrying the callee's
return data unchanged; with the try execution type failures are logged and
their return data is returned alongside successful results.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Union

from ..errors import CallReverted, UnsupportedExecutionType
from .calldata import ExecType, Execution, ModeCode, decode_execution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallResult:
    success: bool
    return_data: bytes = b""


class CallDispatcher(ABC):
    """The account's low-level call mechanism."""

    @abstractmethod
    def call(self, target: str, value: int, data: bytes) -> CallResult:
        """Issue a call and capture its success flag and raw return data"""
        pass


class ExecutionHelper:
    """Executes ERC-7579 single and batch calls for an account."""

    def __init__(self, dispatcher: CallDispatcher):
        self.dispatcher = dispatcher

    def execute(self, mode: Union[ModeCode, bytes], execution_calldata: bytes) -> List[bytes]:
        """
        Execute every call encoded in ``execution_calldata``.

        Returns:
            Raw return data of each call, in order

        Raises:
            UnsupportedCallType: If the call type is not SINGLE or BATCH
            UnsupportedExecutionType: If the exec type is not DEFAULT or TRY
            CallReverted: If a call fails under the default exec type
        """
        if not isinstance(mode, ModeCode):
            mode = ModeCode.parse(mode)
        if mode.exec_type not in (ExecType.DEFAULT, ExecType.TRY):
            raise UnsupportedExecutionType(mode.exec_type)

        executions = decode_execution(mode, execution_calldata)
        if mode.exec_type == ExecType.TRY:
            return [self.try_execute(execution) for execution in executions]
        return [self.execute_single(execution) for execution in executions]

    def execute_single(self, execution: Execution) -> bytes:
        result = self.dispatcher.call(execution.target, execution.value, execution.call_data)
        if not result.success:
            raise CallReverted(execution.target, result.return_data)
        return result.return_data

    def try_execute(self, execution: Execution) -> bytes:
        result = self.dispatcher.call(execution.target, execution.value, execution.call_data)
        if not result.success:
            logger.warning(
                f"Try-execution to {execution.target} failed: 0x{result.return_data.hex()}"
            )
        return result.return_data
