"""
Error Classification

Every failure in session validation is fatal and surfaces to the caller of the
entry point as one of the exceptions below. Each carries an ``ErrorCategory``
plus the structured values needed to tell failures apart.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of validation failures."""

    MALFORMED_INPUT = "malformed_input"    # Truncated or malformed payloads
    AUTHENTICATION = "authentication"      # Signer or enable signature failures
    POLICY = "policy"                      # Policy rejections and thresholds
    UNSUPPORTED = "unsupported"            # Execution shapes this core refuses
    MODULE = "module"                      # Unknown or mistyped modules
    EXECUTION = "execution"                # Reverted account calls


def _hex(value: Optional[bytes]) -> Optional[str]:
    if value is None:
        return None
    return "0x" + bytes(value).hex()


class SmartSessionError(Exception):
    """Base exception for smart session validation errors."""

    category: ErrorCategory = ErrorCategory.POLICY

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Malformed input
# =============================================================================

class DecodeError(SmartSessionError):
    """Payload could not be decoded."""

    category = ErrorCategory.MALFORMED_INPUT

    def __init__(self, message: str, length: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, {"length": length, **(details or {})})
        self.length = length


class DataTooShort(DecodeError):
    """Payload is shorter than the minimum its layout requires."""

    def __init__(self, length: int, required: int = 52):
        super().__init__(
            f"Data too short: got {length} bytes, need at least {required}",
            length,
            {"required": required},
        )
        self.required = required


class MalformedPayload(DecodeError):
    """Payload has the right size but an invalid structure."""

    def __init__(self, reason: str, length: int):
        super().__init__(f"Malformed payload: {reason}", length, {"reason": reason})
        self.reason = reason


class UnsupportedSessionMode(DecodeError):
    """Signature mode tag is not USE, ENABLE or UNSAFE_ENABLE."""

    def __init__(self, mode: int, length: int):
        super().__init__(f"Unsupported session mode: {mode:#04x}", length, {"mode": mode})
        self.mode = mode


# =============================================================================
# Authentication
# =============================================================================

class AuthenticationError(SmartSessionError):
    """Signer or owner authorization failed."""

    category = ErrorCategory.AUTHENTICATION


class SignerNotFound(AuthenticationError):
    """No signer is registered for the signer id on this account."""

    def __init__(self, signer_id: bytes, account: str):
        super().__init__(
            f"Signer {_hex(signer_id)} not found for account {account}",
            {"signerId": _hex(signer_id), "account": account},
        )
        self.signer_id = signer_id
        self.account = account


class InvalidSessionKeySignature(AuthenticationError):
    """The session signer rejected the signature."""

    def __init__(self, signer_id: bytes, signer: str, account: str, hash: bytes):
        super().__init__(
            f"Invalid session key signature for signer {_hex(signer_id)} on {account}",
            {
                "signerId": _hex(signer_id),
                "signer": signer,
                "account": account,
                "hash": _hex(hash),
            },
        )
        self.signer_id = signer_id
        self.signer = signer
        self.account = account
        self.hash = hash


class InvalidEnableSignature(AuthenticationError):
    """The account did not approve the enable digest."""

    def __init__(self, account: str, digest: bytes):
        super().__init__(
            f"Invalid enable signature from {account} over {_hex(digest)}",
            {"account": account, "digest": _hex(digest)},
        )
        self.account = account
        self.digest = digest


class SignerIdMismatch(AuthenticationError):
    """Use payload names a different signer than the one just enabled."""

    def __init__(self, expected: bytes, actual: bytes):
        super().__init__(
            f"Signer id mismatch: enabled {_hex(expected)}, used {_hex(actual)}",
            {"expected": _hex(expected), "actual": _hex(actual)},
        )
        self.expected = expected
        self.actual = actual


# =============================================================================
# Policy
# =============================================================================

class PolicyError(SmartSessionError):
    """Policy configuration or evaluation failure."""

    category = ErrorCategory.POLICY


class PolicyViolation(PolicyError):
    """A policy returned a failing verdict."""

    def __init__(self, signer_id: bytes, policy: str):
        super().__init__(
            f"Policy {policy} rejected signer {_hex(signer_id)}",
            {"signerId": _hex(signer_id), "policy": policy},
        )
        self.signer_id = signer_id
        self.policy = policy


class NoPoliciesSet(PolicyError):
    """Fewer policies are configured than the check requires."""

    def __init__(self, signer_id: bytes, required: int, configured: int):
        super().__init__(
            f"Signer {_hex(signer_id)} has {configured} policies, at least {required} required",
            {"signerId": _hex(signer_id), "required": required, "configured": configured},
        )
        self.signer_id = signer_id
        self.required = required
        self.configured = configured


class DuplicatePolicy(PolicyError):
    """The same policy was enabled twice for one session."""

    def __init__(self, signer_id: bytes, policy: str):
        super().__init__(
            f"Policy {policy} already enabled for signer {_hex(signer_id)}",
            {"signerId": _hex(signer_id), "policy": policy},
        )
        self.signer_id = signer_id
        self.policy = policy


class TooManyPolicies(PolicyError):
    """More policies than ``max_policies_per_session``."""

    def __init__(self, signer_id: bytes, count: int, limit: int):
        super().__init__(
            f"Signer {_hex(signer_id)} would have {count} policies, limit is {limit}",
            {"signerId": _hex(signer_id), "count": count, "limit": limit},
        )
        self.signer_id = signer_id
        self.count = count
        self.limit = limit


class SessionAlreadyEnabled(PolicyError):
    """Enable data was submitted for a signer id that is already enabled."""

    def __init__(self, signer_id: bytes, account: str):
        super().__init__(
            f"Session {_hex(signer_id)} is already enabled for {account}",
            {"signerId": _hex(signer_id), "account": account},
        )
        self.signer_id = signer_id
        self.account = account


# =============================================================================
# Unsupported shapes
# =============================================================================

class UnsupportedShapeError(SmartSessionError):
    """Operation shape is not supported by session validation."""

    category = ErrorCategory.UNSUPPORTED


class UnsupportedExecutionType(UnsupportedShapeError):
    def __init__(self, exec_type: int):
        super().__init__(
            f"Unsupported execution type: {exec_type:#04x}",
            {"execType": exec_type},
        )
        self.exec_type = exec_type


class UnsupportedCallType(UnsupportedShapeError):
    def __init__(self, call_type: int):
        super().__init__(
            f"Unsupported call type: {call_type:#04x}",
            {"callType": call_type},
        )
        self.call_type = call_type


class ExecuteFromExecutorNotSupported(UnsupportedShapeError):
    def __init__(self) -> None:
        super().__init__("executeFromExecutor is not supported for session operations")


class UnsafeEnableDisabled(UnsupportedShapeError):
    def __init__(self) -> None:
        super().__init__("UNSAFE_ENABLE mode is disabled")


# =============================================================================
# Modules
# =============================================================================

class ModuleError(SmartSessionError):
    """Module lookup failure."""

    category = ErrorCategory.MODULE


class ModuleNotFound(ModuleError):
    def __init__(self, address: str):
        super().__init__(f"No module deployed at {address}", {"address": address})
        self.address = address


class ModuleTypeMismatch(ModuleError):
    def __init__(self, address: str, expected: str):
        super().__init__(
            f"Module at {address} does not implement {expected}",
            {"address": address, "expected": expected},
        )
        self.address = address
        self.expected = expected


# =============================================================================
# Execution
# =============================================================================

class CallReverted(SmartSessionError):
    """An account call failed; ``return_data`` is the callee's revert data."""

    category = ErrorCategory.EXECUTION

    def __init__(self, target: str, return_data: bytes):
        super().__init__(
            f"Call to {target} reverted",
            {"target": target, "returnData": _hex(return_data)},
        )
        self.target = target
        self.return_data = return_data
