"""
Per-account session state.

Each account owns one ``AccountSessions`` (signer table, three policy
registries and the enable nonce of every signer id). Validation reads the
committed state; updates work on a staged copy that replaces the committed
state only when the update completes, so a failure part-way through leaves
nothing behind.

Side effects outside the store (module installs) register an undo callback on
the staged state. The callbacks run, newest first, when the update fails.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List

from eth_utils import to_checksum_address

from .registry import ActionPolicies, ERC1271Policies, SignerRegistry, UserOpPolicies

logger = logging.getLogger(__name__)


@dataclass
class AccountSessions:
    signers: SignerRegistry = field(default_factory=SignerRegistry)
    user_op_policies: UserOpPolicies = field(default_factory=UserOpPolicies)
    erc1271_policies: ERC1271Policies = field(default_factory=ERC1271Policies)
    action_policies: ActionPolicies = field(default_factory=ActionPolicies)
    nonces: Dict[bytes, int] = field(default_factory=dict)
    undo: List[Callable[[], None]] = field(default_factory=list, repr=False, compare=False)

    def copy(self) -> "AccountSessions":
        return AccountSessions(
            signers=self.signers.copy(),
            user_op_policies=self.user_op_policies.copy(),
            erc1271_policies=self.erc1271_policies.copy(),
            action_policies=self.action_policies.copy(),
            nonces=dict(self.nonces),
        )

    def is_enabled(self, signer_id: bytes) -> bool:
        return signer_id in self.signers

    def nonce(self, signer_id: bytes) -> int:
        """Enable nonce for ``signer_id``; bumped every time the session is removed."""
        return self.nonces.get(signer_id, 0)

    def bump_nonce(self, signer_id: bytes) -> int:
        self.nonces[signer_id] = self.nonce(signer_id) + 1
        return self.nonces[signer_id]


class SessionStore:
    """Committed session state for every account."""

    def __init__(self) -> None:
        self._accounts: Dict[str, AccountSessions] = {}

    @staticmethod
    def _key(account: str) -> str:
        return to_checksum_address(account)

    def __contains__(self, account: str) -> bool:
        return self._key(account) in self._accounts

    def get(self, account: str) -> AccountSessions:
        """Committed state for ``account``; an empty state if it has none yet."""
        return self._accounts.get(self._key(account)) or AccountSessions()

    def commit(self, account: str, state: AccountSessions) -> None:
        self._accounts[self._key(account)] = state

    @contextmanager
    def transaction(self, account: str) -> Iterator[AccountSessions]:
        """
        Yield a staged copy of the account's state.

        The copy is committed when the block exits normally. If it raises, the
        copy is discarded and its undo callbacks run before the error
        propagates.
        """
        staged = self.get(account).copy()
        try:
            yield staged
        except Exception:
            if staged.undo:
                logger.info(f"Rolling back {len(staged.undo)} module installs on {account}")
            for undo in reversed(staged.undo):
                undo()
            raise
        staged.undo.clear()
        self.commit(account, staged)
