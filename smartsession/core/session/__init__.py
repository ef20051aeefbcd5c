"""
Smart Session Module

Session-scoped permission validation for ERC-7579 smart accounts:
- SmartSessionValidator: validate user operations and ERC-1271 requests
- SessionEnabler: owner-approved, all-or-nothing session registration
- Registries: signer table and ordered policy lists per session
- Interfaces: ISigner, UserOpPolicy, ActionPolicy, ERC1271Policy, SmartAccount

Usage:
    from smartsession.core.session import (
        ModuleDirectory,
        SmartSessionValidator,
        build_use_signature,
    )

    directory = ModuleDirectory()
    directory.register(account.address, account)
    directory.register(signer_address, signer_module)
    directory.register(policy_address, policy_module)

    validator = SmartSessionValidator(directory)

    # First use: enable and validate in one step
    user_op.signature = build_enable_signature(enable_data, signer_id, session_sig)
    validation_data = validator.validate_user_op(user_op, user_op_hash)

    # Later operations
    user_op.signature = build_use_signature(signer_id, session_sig)
    validation_data = validator.validate_user_op(user_op, user_op_hash)
"""

from .directory import ModuleDirectory
from .enable import SessionEnabler
from .identifiers import action_id, enable_digest, function_selector, session_id
from .interfaces import (
    ERC1271_MAGIC_VALUE,
    ActionPolicy,
    ERC1271Policy,
    ISigner,
    SessionModule,
    SmartAccount,
    UserOpPolicy,
)
from .models import ActionCheck, ActionData, EnableSessions, PolicyData, SessionView
from .registry import (
    ActionPolicies,
    ERC1271Policies,
    PolicyEntry,
    PolicyList,
    SignerEntry,
    SignerRegistry,
    UserOpPolicies,
)
from .signature import (
    SmartSessionMode,
    build_enable_signature,
    build_use_signature,
    decode_packed_sig_enable,
    decode_use,
    encode_packed_sig_enable,
    encode_use,
    pack_mode,
    unpack_mode,
)
from .store import AccountSessions, SessionStore
from .validation_data import SIG_VALIDATION_FAILED, SIG_VALIDATION_SUCCESS, ValidationData
from .validator import SmartSessionValidator

__all__ = [
    # Validator
    "SmartSessionValidator",
    "SessionEnabler",
    "ModuleDirectory",
    # Identifiers
    "action_id",
    "enable_digest",
    "function_selector",
    "session_id",
    # Interfaces
    "ERC1271_MAGIC_VALUE",
    "ActionPolicy",
    "ERC1271Policy",
    "ISigner",
    "SessionModule",
    "SmartAccount",
    "UserOpPolicy",
    # Models
    "ActionCheck",
    "ActionData",
    "EnableSessions",
    "PolicyData",
    "SessionView",
    "ValidationData",
    "SIG_VALIDATION_FAILED",
    "SIG_VALIDATION_SUCCESS",
    # Registries
    "AccountSessions",
    "ActionPolicies",
    "ERC1271Policies",
    "PolicyEntry",
    "PolicyList",
    "SessionStore",
    "SignerEntry",
    "SignerRegistry",
    "UserOpPolicies",
    # Signatures
    "SmartSessionMode",
    "build_enable_signature",
    "build_use_signature",
    "decode_packed_sig_enable",
    "decode_use",
    "encode_packed_sig_enable",
    "encode_use",
    "pack_mode",
    "unpack_mode",
]
