"""
Signer and policy registries.

Per-account tables keyed by signer id (and action id for action policies).
Policy lists keep insertion order, which is also evaluation order. Every
registry can produce an independent copy so the store can stage changes and
swap them in only when a whole update succeeds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import (
    DuplicatePolicy,
    InvalidSessionKeySignature,
    NoPoliciesSet,
    PolicyViolation,
    SignerNotFound,
    TooManyPolicies,
)
from ..execution.calldata import Execution
from ..execution.userop import PackedUserOperation
from .identifiers import action_id, session_id
from .interfaces import ISigner
from .models import ActionCheck
from .validation_data import ValidationData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignerEntry:
    address: str
    module: ISigner
    init_data: bytes = b""


@dataclass(frozen=True)
class PolicyEntry:
    address: str
    module: object
    init_data: bytes = b""


class SignerRegistry:
    """Signer id → signer module for one account."""

    def __init__(self, entries: Optional[Dict[bytes, SignerEntry]] = None):
        self._entries: Dict[bytes, SignerEntry] = dict(entries or {})

    def copy(self) -> "SignerRegistry":
        return SignerRegistry(self._entries)

    def __contains__(self, signer_id: bytes) -> bool:
        return signer_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, signer_id: bytes) -> Optional[SignerEntry]:
        return self._entries.get(signer_id)

    def set(self, signer_id: bytes, entry: SignerEntry) -> None:
        self._entries[signer_id] = entry

    def remove(self, signer_id: bytes) -> Optional[SignerEntry]:
        return self._entries.pop(signer_id, None)

    def require_valid_signer(
        self,
        hash: bytes,
        account: str,
        signer_id: bytes,
        signature: bytes,
    ) -> SignerEntry:
        """
        Prove that ``signature`` authorizes ``hash`` for the session.

        Raises:
            SignerNotFound: No signer is registered for ``signer_id``
            InvalidSessionKeySignature: The signer rejected the signature
        """
        entry = self._entries.get(signer_id)
        if entry is None:
            raise SignerNotFound(signer_id, account)

        if not entry.module.check_signature(session_id(signer_id), account, hash, signature):
            raise InvalidSessionKeySignature(signer_id, entry.address, account, hash)
        return entry


class PolicyList:
    """Ordered policy entries per signer id for one policy capability."""

    def __init__(self, entries: Optional[Dict[bytes, Dict[str, PolicyEntry]]] = None):
        self._entries: Dict[bytes, Dict[str, PolicyEntry]] = {
            signer_id: dict(policies) for signer_id, policies in (entries or {}).items()
        }

    def copy(self) -> "PolicyList":
        return type(self)(self._entries)

    def policies(self, signer_id: bytes) -> List[PolicyEntry]:
        return list(self._entries.get(signer_id, {}).values())

    def enable(
        self,
        signer_id: bytes,
        entries: Sequence[PolicyEntry],
        max_policies: int,
    ) -> None:
        """
        Append ``entries`` after any policies already set for ``signer_id``.

        Raises:
            DuplicatePolicy: A policy address is already in the list
            TooManyPolicies: The list would exceed ``max_policies``
        """
        updated = dict(self._entries.get(signer_id, {}))
        for entry in entries:
            if entry.address in updated:
                raise DuplicatePolicy(signer_id, entry.address)
            updated[entry.address] = entry
        if len(updated) > max_policies:
            raise TooManyPolicies(signer_id, len(updated), max_policies)
        if updated:
            self._entries[signer_id] = updated

    def remove(self, signer_id: bytes) -> List[PolicyEntry]:
        return list(self._entries.pop(signer_id, {}).values())

    def evaluate(
        self,
        signer_id: bytes,
        min_policies_to_enforce: int,
        verdict: Callable[[PolicyEntry], ValidationData],
    ) -> ValidationData:
        """
        Run every policy for ``signer_id`` in order and intersect the results.

        Raises:
            NoPoliciesSet: Fewer than ``min_policies_to_enforce`` are configured
            PolicyViolation: A policy returned a failing result
        """
        entries = self.policies(signer_id)
        if len(entries) < min_policies_to_enforce:
            raise NoPoliciesSet(signer_id, min_policies_to_enforce, len(entries))

        result = ValidationData.success()
        for entry in entries:
            policy_result = verdict(entry)
            if policy_result.is_failed:
                raise PolicyViolation(signer_id, entry.address)
            result = result.intersect(policy_result)
            if result.is_failed:
                raise PolicyViolation(signer_id, entry.address)

        logger.debug(f"{len(entries)} policies passed for signer 0x{signer_id.hex()}")
        return result


class UserOpPolicies(PolicyList):
    def check(
        self,
        signer_id: bytes,
        user_op: PackedUserOperation,
        min_policies_to_enforce: int = 1,
    ) -> ValidationData:
        sid = session_id(signer_id)
        return self.evaluate(
            signer_id,
            min_policies_to_enforce,
            lambda entry: entry.module.check_user_op(sid, user_op),
        )


class ERC1271Policies(PolicyList):
    def check(
        self,
        signer_id: bytes,
        account: str,
        sender: str,
        hash: bytes,
        signature: bytes,
        min_policies_to_enforce: int = 1,
    ) -> None:
        sid = session_id(signer_id)
        self.evaluate(
            signer_id,
            min_policies_to_enforce,
            lambda entry: ValidationData.from_verdict(
                entry.module.check_signed_action(sid, account, sender, hash, signature)
            ),
        )


class ActionPolicies:
    """Action id → ordered policy entries per signer id."""

    def __init__(self, lists: Optional[Dict[bytes, PolicyList]] = None):
        self._lists: Dict[bytes, PolicyList] = {
            key: policy_list.copy() for key, policy_list in (lists or {}).items()
        }

    def copy(self) -> "ActionPolicies":
        return ActionPolicies(self._lists)

    def action_ids(self, signer_id: bytes) -> List[bytes]:
        return [key for key, policy_list in self._lists.items() if policy_list.policies(signer_id)]

    def policies(self, signer_id: bytes, action: bytes) -> List[PolicyEntry]:
        policy_list = self._lists.get(action)
        return policy_list.policies(signer_id) if policy_list else []

    def enable(
        self,
        signer_id: bytes,
        action: bytes,
        entries: Sequence[PolicyEntry],
        max_policies: int,
    ) -> None:
        self._lists.setdefault(action, PolicyList()).enable(signer_id, entries, max_policies)

    def remove(self, signer_id: bytes) -> List[Tuple[bytes, PolicyEntry]]:
        """Drop every action policy of ``signer_id``; returns ``(action_id, entry)`` pairs."""
        removed: List[Tuple[bytes, PolicyEntry]] = []
        for action, policy_list in self._lists.items():
            removed.extend((action, entry) for entry in policy_list.remove(signer_id))
        return removed

    def check(
        self,
        signer_id: bytes,
        check: ActionCheck,
        min_policies_to_enforce: int = 0,
    ) -> ValidationData:
        policy_list = self._lists.get(check.action_id) or PolicyList()
        sid = session_id(signer_id, check.action_id)
        return policy_list.evaluate(
            signer_id,
            min_policies_to_enforce,
            lambda entry: entry.module.check_action(sid, check),
        )

    def check_single(
        self,
        signer_id: bytes,
        account: str,
        execution: Execution,
        min_policies_to_enforce: int = 0,
    ) -> ValidationData:
        check = ActionCheck(
            action_id=action_id(execution.target, execution.call_data),
            account=account,
            target=execution.target,
            value=execution.value,
            call_data=execution.call_data,
        )
        return self.check(signer_id, check, min_policies_to_enforce)

    def check_batch(
        self,
        signer_id: bytes,
        account: str,
        executions: Iterable[Execution],
        min_policies_to_enforce: int = 0,
    ) -> ValidationData:
        result = ValidationData.success()
        for execution in executions:
            result = result.intersect(
                self.check_single(signer_id, account, execution, min_policies_to_enforce)
            )
        return result

