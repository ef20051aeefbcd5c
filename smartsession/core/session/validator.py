"""
Smart Session Validator

Validates ERC-4337 user operations signed by session keys. Evaluation order
is fixed:

1. Decode the signature mode; enable the session first if the mode asks for it
2. Prove the session signer signed the user operation hash
3. Run the session's user operation policies (at least one required)
4. Decode the requested action and run the matching action policies

Any failure raises and aborts validation. Enable and enforcement share one
staged state update, so a session enabled by a user operation that then fails
validation is never committed.
"""

import logging
from typing import Optional

from eth_utils import to_checksum_address

from smartsession.config import Settings, settings as default_settings

from ..encoding.install_data import encode_install_data
from ..errors import (
    DataTooShort,
    ExecuteFromExecutorNotSupported,
    InvalidSessionKeySignature,
    PolicyViolation,
    SignerIdMismatch,
    SignerNotFound,
    UnsafeEnableDisabled,
    UnsupportedCallType,
    UnsupportedExecutionType,
)
from ..execution.calldata import (
    CallType,
    ExecType,
    decode_batch,
    decode_mode,
    decode_single,
    decode_user_op_call_data,
)
from ..execution.userop import PackedUserOperation
from ..execution.userop_builder import (
    get_execute_from_executor_selector,
    get_execute_selector,
)
from .directory import ModuleDirectory
from .enable import SessionEnabler
from .identifiers import action_id, session_id
from .models import ActionCheck, EnableSessions, SessionView
from .signature import SmartSessionMode, decode_use, unpack_mode
from .store import AccountSessions, SessionStore
from .validation_data import ValidationData

logger = logging.getLogger(__name__)

MIN_USER_OP_POLICIES = 1
MIN_ACTION_POLICIES = 0
MIN_ERC1271_POLICIES = 1


class SmartSessionValidator:
    """
    Session validator for ERC-7579 smart accounts.

    Owns the per-account session store and resolves signer, policy and account
    modules through a ``ModuleDirectory``.
    """

    def __init__(
        self,
        directory: ModuleDirectory,
        store: Optional[SessionStore] = None,
        config: Optional[Settings] = None,
    ):
        self.directory = directory
        self.store = store or SessionStore()
        self.config = config or default_settings
        self.enabler = SessionEnabler(directory, self.config)
        self.execute_selector = get_execute_selector(self.config.erc7579_execute_signature)
        self.execute_from_executor_selector = get_execute_from_executor_selector(
            self.config.erc7579_execute_from_executor_signature
        )

    # =========================================================================
    # ERC-4337 validation
    # =========================================================================

    def validate_user_op(
        self,
        user_op: PackedUserOperation,
        user_op_hash: bytes,
    ) -> ValidationData:
        """
        Validate a user operation signed with a session.

        Returns:
            The intersected ValidationData of the signer and every policy

        Raises:
            SmartSessionError: On any decode, authentication, policy or
                unsupported-shape failure
        """
        account = to_checksum_address(user_op.sender)
        mode, packed_sig = unpack_mode(user_op.signature)

        if mode == SmartSessionMode.USE:
            return self._enforce_policies(
                self.store.get(account), user_op_hash, user_op, packed_sig, account
            )

        if mode == SmartSessionMode.UNSAFE_ENABLE and not self.config.allow_unsafe_enable:
            raise UnsafeEnableDisabled()

        with self.store.transaction(account) as state:
            signer_id, use_sig = self.enabler.enable_from_signature(state, account, packed_sig, mode)
            expected = signer_id if self.config.require_enabled_signer_match else None
            return self._enforce_policies(
                state, user_op_hash, user_op, use_sig, account, expected_signer_id=expected
            )

    def _enforce_policies(
        self,
        state: AccountSessions,
        user_op_hash: bytes,
        user_op: PackedUserOperation,
        signature: bytes,
        account: str,
        expected_signer_id: Optional[bytes] = None,
    ) -> ValidationData:
        signer_id, signature = decode_use(signature)
        if expected_signer_id is not None and signer_id != expected_signer_id:
            raise SignerIdMismatch(expected_signer_id, signer_id)

        # Signer proof strictly precedes every policy
        state.signers.require_valid_signer(user_op_hash, account, signer_id, signature)

        vd = state.user_op_policies.check(signer_id, user_op, MIN_USER_OP_POLICIES)
        vd = vd.intersect(self._check_actions(state, signer_id, user_op, account))

        logger.debug(
            f"Validated user op 0x{user_op_hash.hex()} for {account} "
            f"with session 0x{signer_id.hex()}"
        )
        return vd

    def _check_actions(
        self,
        state: AccountSessions,
        signer_id: bytes,
        user_op: PackedUserOperation,
        account: str,
    ) -> ValidationData:
        call_data = user_op.call_data
        if len(call_data) < 4:
            raise DataTooShort(len(call_data), 4)
        selector = bytes(call_data[:4])

        if selector == self.execute_selector:
            mode = decode_mode(call_data)
            if mode.exec_type != ExecType.DEFAULT:
                raise UnsupportedExecutionType(mode.exec_type)

            if mode.call_type == CallType.BATCH:
                executions = decode_batch(decode_user_op_call_data(call_data))
                return state.action_policies.check_batch(
                    signer_id, account, executions, MIN_ACTION_POLICIES
                )
            if mode.call_type == CallType.SINGLE:
                execution = decode_single(decode_user_op_call_data(call_data))
                return state.action_policies.check_single(
                    signer_id, account, execution, MIN_ACTION_POLICIES
                )
            raise UnsupportedCallType(mode.call_type)

        if selector == self.execute_from_executor_selector:
            raise ExecuteFromExecutorNotSupported()

        return state.action_policies.check(
            signer_id, self._fallback_action_check(account, call_data), MIN_ACTION_POLICIES
        )

    @staticmethod
    def _fallback_action_check(account: str, call_data: bytes) -> ActionCheck:
        """
        Action record for a call to any other account function.

        The account is reported as both caller and target with zero value,
        keyed by the called selector on the account itself.
        """
        return ActionCheck(
            action_id=action_id(account, call_data),
            account=account,
            target=account,
            value=0,
            call_data=bytes(call_data),
        )

    # =========================================================================
    # ERC-1271
    # =========================================================================

    def is_valid_signature_with_sender(
        self,
        account: str,
        sender: str,
        hash: bytes,
        signature: bytes,
    ) -> bool:
        """
        Check a session signature over ``hash`` requested by ``sender``.

        Returns False when the signer or a policy rejects the request.

        Raises:
            DecodeError: If the signature is shorter than a signer id
            SignerNotFound: If the session is not enabled
            NoPoliciesSet: If the session has no ERC-1271 policies
        """
        account = to_checksum_address(account)
        signer_id, raw_signature = decode_use(signature)
        state = self.store.get(account)

        try:
            state.signers.require_valid_signer(hash, account, signer_id, raw_signature)
            state.erc1271_policies.check(
                signer_id,
                account,
                to_checksum_address(sender),
                hash,
                raw_signature,
                MIN_ERC1271_POLICIES,
            )
        except (InvalidSessionKeySignature, PolicyViolation) as exc:
            logger.warning(f"Rejected ERC-1271 request from {sender} on {account}: {exc}")
            return False
        return True

    # =========================================================================
    # Session administration
    # =========================================================================

    def enable_session(
        self,
        account: str,
        signer_id: bytes,
        enable_data: EnableSessions,
    ) -> None:
        """
        Enable a session on behalf of the account itself.

        The caller is the account, so no owner signature is checked.
        """
        account = to_checksum_address(account)
        with self.store.transaction(account) as state:
            self.enabler.register(state, account, signer_id, enable_data)

    def remove_session(self, account: str, signer_id: bytes) -> None:
        """
        Remove the signer and every policy of a session.

        Every module is uninstalled with the data it was installed with, and
        the enable nonce of ``signer_id`` is bumped so enable signatures
        approved before the removal no longer verify.

        Raises:
            SignerNotFound: If the session is not enabled
        """
        account = to_checksum_address(account)
        with self.store.transaction(account) as state:
            signer = state.signers.remove(signer_id)
            if signer is None:
                raise SignerNotFound(signer_id, account)

            signer_session = session_id(signer_id)
            uninstalls = [(signer.module, signer_session, signer.init_data)]
            removed = state.user_op_policies.remove(signer_id) + state.erc1271_policies.remove(signer_id)
            for entry in removed:
                uninstalls.append((entry.module, signer_session, entry.init_data))
            for action, entry in state.action_policies.remove(signer_id):
                uninstalls.append((entry.module, session_id(signer_id, action), entry.init_data))

            state.bump_nonce(signer_id)
            for module, sid, init_data in uninstalls:
                module.on_uninstall(encode_install_data(sid, account, init_data))

        logger.info(f"Removed session 0x{signer_id.hex()} from {account}")

    def is_session_enabled(self, account: str, signer_id: bytes) -> bool:
        return self.store.get(account).is_enabled(signer_id)

    def get_enable_nonce(self, account: str, signer_id: bytes) -> int:
        """Nonce the next enable signature for ``signer_id`` must be bound to."""
        return self.store.get(account).nonce(signer_id)

    def get_session(self, account: str, signer_id: bytes) -> SessionView:
        account = to_checksum_address(account)
        state = self.store.get(account)
        signer = state.signers.get(signer_id)
        if signer is None:
            raise SignerNotFound(signer_id, account)

        return SessionView(
            signer_id=signer_id,
            signer=signer.address,
            user_op_policies=[e.address for e in state.user_op_policies.policies(signer_id)],
            erc1271_policies=[e.address for e in state.erc1271_policies.policies(signer_id)],
            action_policies={
                action: [e.address for e in state.action_policies.policies(signer_id, action)]
                for action in state.action_policies.action_ids(signer_id)
            },
        )
