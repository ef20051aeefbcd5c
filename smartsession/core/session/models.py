"""
Smart session models.

A session is identified by a 32-byte signer id chosen by the account owner.
Enabling a session binds that id to a signer module and three ordered policy
sets: user operation policies, ERC-1271 policies and per-action policies.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from eth_utils import to_checksum_address


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


@dataclass(frozen=True)
class PolicyData:
    """A policy module and the init data it is installed with."""
    policy: str
    init_data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "policy", to_checksum_address(self.policy))

    def to_dict(self) -> Dict[str, Any]:
        return {"policy": self.policy, "initData": _hex(self.init_data)}


@dataclass
class ActionData:
    """Policies that apply to one action id."""
    action_id: bytes
    action_policies: List[PolicyData] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actionId": _hex(self.action_id),
            "actionPolicies": [p.to_dict() for p in self.action_policies],
        }


@dataclass
class EnableSessions:
    """
    Everything needed to enable a session on first use.

    ``permission_enable_sig`` is the owner's signature over the enable digest,
    verified through the account's own ERC-1271 entry point.
    """
    isigner: str
    isigner_init_data: bytes = b""
    user_op_policies: List[PolicyData] = field(default_factory=list)
    erc1271_policies: List[PolicyData] = field(default_factory=list)
    actions: List[ActionData] = field(default_factory=list)
    permission_enable_sig: bytes = b""

    def __post_init__(self) -> None:
        self.isigner = to_checksum_address(self.isigner)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isigner": self.isigner,
            "isignerInitData": _hex(self.isigner_init_data),
            "userOpPolicies": [p.to_dict() for p in self.user_op_policies],
            "erc1271Policies": [p.to_dict() for p in self.erc1271_policies],
            "actions": [a.to_dict() for a in self.actions],
            "permissionEnableSig": _hex(self.permission_enable_sig),
        }


@dataclass(frozen=True)
class ActionCheck:
    """The call an action policy is asked to approve."""
    action_id: bytes
    account: str
    target: str
    value: int
    call_data: bytes


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot of an enabled session."""
    signer_id: bytes
    signer: str
    user_op_policies: List[str]
    erc1271_policies: List[str]
    action_policies: Dict[bytes, List[str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signerId": _hex(self.signer_id),
            "signer": self.signer,
            "userOpPolicies": list(self.user_op_policies),
            "erc1271Policies": list(self.erc1271_policies),
            "actionPolicies": {
                _hex(action_id): list(policies)
                for action_id, policies in self.action_policies.items()
            },
        }
