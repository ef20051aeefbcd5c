"""
Session enable flow.

On first use a session arrives with its full configuration and an owner
signature over ``enable_digest``, which binds the account, the chain and the
account's enable nonce for the signer id. The account's own ERC-1271 entry
point must approve that digest before the signer and the three policy sets are
registered.
"""

import logging
from typing import List, Optional, Tuple, Type

from smartsession.config import Settings, settings as default_settings

from ..encoding.install_data import encode_install_data
from ..errors import InvalidEnableSignature, SessionAlreadyEnabled
from .directory import ModuleDirectory
from .identifiers import enable_digest, session_id
from .interfaces import (
    ERC1271_MAGIC_VALUE,
    ActionPolicy,
    ERC1271Policy,
    ISigner,
    SessionModule,
    UserOpPolicy,
)
from .models import EnableSessions, PolicyData
from .registry import PolicyEntry, SignerEntry
from .signature import SmartSessionMode, decode_packed_sig_enable
from .store import AccountSessions

logger = logging.getLogger(__name__)


class SessionEnabler:
    """
    Registers sessions into a staged ``AccountSessions``.

    The caller owns the staging (see ``SessionStore.transaction``); nothing
    here touches committed state.
    """

    def __init__(self, directory: ModuleDirectory, config: Optional[Settings] = None):
        self.directory = directory
        self.config = config or default_settings

    def enable_from_signature(
        self,
        state: AccountSessions,
        account: str,
        packed_sig: bytes,
        mode: SmartSessionMode = SmartSessionMode.ENABLE,
    ) -> Tuple[bytes, bytes]:
        """
        Verify and apply an enable payload.

        Args:
            state: Staged account state to register into
            account: The smart account address
            packed_sig: Signature bytes following the mode tag
            mode: ENABLE or UNSAFE_ENABLE

        Returns:
            ``(signer_id, use_signature)`` for the enforcement step

        Raises:
            DecodeError: If the enable payload is malformed
            InvalidEnableSignature: If the account does not approve the digest
            SessionAlreadyEnabled: If ``signer_id`` is already enabled
        """
        enable_data, signer_id, use_signature = decode_packed_sig_enable(packed_sig)
        digest = enable_digest(
            signer_id,
            enable_data,
            account=account,
            chain_id=self.config.chain_id,
            nonce=state.nonce(signer_id),
        )

        smart_account = self.directory.account(account)
        if smart_account.is_valid_signature(digest, enable_data.permission_enable_sig) != ERC1271_MAGIC_VALUE:
            raise InvalidEnableSignature(account, digest)

        if mode == SmartSessionMode.UNSAFE_ENABLE:
            logger.warning(f"Enabling session 0x{signer_id.hex()} on {account} in UNSAFE_ENABLE mode")

        self.register(state, account, signer_id, enable_data)
        return signer_id, use_signature

    def register(
        self,
        state: AccountSessions,
        account: str,
        signer_id: bytes,
        enable_data: EnableSessions,
    ) -> None:
        """
        Register the signer and all three policy sets for ``signer_id``.

        Modules are resolved and checked for their capability, the registries
        are updated, then every module receives its install data. Each install
        registers its uninstall on ``state.undo``, so a failure anywhere in the
        caller's transaction also reverts the modules already installed.
        """
        if state.is_enabled(signer_id):
            raise SessionAlreadyEnabled(signer_id, account)

        limit = self.config.max_policies_per_session
        signer_session = session_id(signer_id)

        signer = SignerEntry(
            address=enable_data.isigner,
            module=self.directory.resolve(enable_data.isigner, ISigner),
            init_data=enable_data.isigner_init_data,
        )
        user_op_entries = self._resolve(enable_data.user_op_policies, UserOpPolicy)
        erc1271_entries = self._resolve(enable_data.erc1271_policies, ERC1271Policy)
        action_entries = [
            (action.action_id, self._resolve(action.action_policies, ActionPolicy))
            for action in enable_data.actions
        ]

        state.signers.set(signer_id, signer)
        state.user_op_policies.enable(signer_id, user_op_entries, limit)
        state.erc1271_policies.enable(signer_id, erc1271_entries, limit)
        for action, entries in action_entries:
            state.action_policies.enable(signer_id, action, entries, limit)

        self._install(state, signer.module, signer_session, account, signer.init_data)
        for entry in user_op_entries + erc1271_entries:
            self._install(state, entry.module, signer_session, account, entry.init_data)
        for action, entries in action_entries:
            action_session = session_id(signer_id, action)
            for entry in entries:
                self._install(state, entry.module, action_session, account, entry.init_data)

        logger.info(
            f"Enabled session 0x{signer_id.hex()} for {account}: "
            f"{len(user_op_entries)} user op, {len(erc1271_entries)} ERC-1271, "
            f"{sum(len(entries) for _, entries in action_entries)} action policies"
        )

    def _resolve(self, policies: List[PolicyData], capability: Type[SessionModule]) -> List[PolicyEntry]:
        return [
            PolicyEntry(
                address=policy.policy,
                module=self.directory.resolve(policy.policy, capability),
                init_data=policy.init_data,
            )
            for policy in policies
        ]

    @staticmethod
    def _install(
        state: AccountSessions,
        module: SessionModule,
        sid: bytes,
        account: str,
        init_data: bytes,
    ) -> None:
        data = encode_install_data(sid, account, init_data)
        module.on_install(data)
        state.undo.append(lambda: module.on_uninstall(data))
