"""
Shared fixtures for smart session tests.

Fake modules record every call into a shared event list so tests can assert
evaluation order. Signatures are modelled as ``prefix + hash``.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import pytest
from eth_utils import to_checksum_address

from smartsession.config import Settings
from smartsession.core.encoding import parse_install_data
from smartsession.core.execution import PackedUserOperation, build_single_call
from smartsession.core.session import (
    ERC1271_MAGIC_VALUE,
    ActionCheck,
    ActionData,
    ActionPolicy,
    EnableSessions,
    ERC1271Policy,
    ISigner,
    ModuleDirectory,
    PolicyData,
    SmartAccount,
    SmartSessionMode,
    SmartSessionValidator,
    UserOpPolicy,
    ValidationData,
    action_id,
    build_enable_signature,
    build_use_signature,
    enable_digest,
)

ACCOUNT = to_checksum_address("0x" + "11" * 20)
SIGNER = to_checksum_address("0x" + "22" * 20)
USER_OP_POLICY = to_checksum_address("0x" + "33" * 20)
ACTION_POLICY = to_checksum_address("0x" + "44" * 20)
ERC1271_POLICY = to_checksum_address("0x" + "55" * 20)
TARGET = to_checksum_address("0x" + "66" * 20)

SIGNER_ID = b"\xaa" * 32
TRANSFER_SELECTOR = bytes.fromhex("a9059cbb")
TRANSFER_CALL = TRANSFER_SELECTOR + b"\x00" * 64


def owner_sign(digest: bytes) -> bytes:
    return b"owner:" + digest


def session_sign(hash: bytes) -> bytes:
    return b"session:" + hash


class FakeAccount(SmartAccount):
    def __init__(self, address: str, events: list):
        self.address = address
        self.events = events

    def is_valid_signature(self, hash: bytes, signature: bytes) -> bytes:
        self.events.append(("account", hash))
        if signature == owner_sign(hash):
            return ERC1271_MAGIC_VALUE
        return b"\xff\xff\xff\xff"


class _RecordingModule:
    name = "module"

    def __init__(self, events: list, fail_install: bool = False):
        self.events = events
        self.fail_install = fail_install
        self.installed: List[Tuple[bytes, str, bytes]] = []

    @staticmethod
    def _record(data: bytes) -> Tuple[bytes, str, bytes]:
        parsed = parse_install_data(data)
        return parsed.session_id, parsed.account, bytes(parsed.init_data)

    def on_install(self, data: bytes) -> None:
        if self.fail_install:
            raise RuntimeError(f"{self.name} install failed")
        self.installed.append(self._record(data))

    def on_uninstall(self, data: bytes) -> None:
        self.installed.remove(self._record(data))


class FakeSigner(_RecordingModule, ISigner):
    name = "signer"

    def check_signature(self, session_id: bytes, account: str, hash: bytes, signature: bytes) -> bool:
        self.events.append(("signer", session_id))
        return signature == session_sign(hash)


class FakeUserOpPolicy(_RecordingModule, UserOpPolicy):
    name = "user_op"

    def __init__(self, events: list, result: Optional[ValidationData] = None, **kwargs):
        super().__init__(events, **kwargs)
        self.result = result or ValidationData.success()

    def check_user_op(self, session_id: bytes, user_op: PackedUserOperation) -> ValidationData:
        self.events.append(("user_op", session_id))
        return self.result


class FakeActionPolicy(_RecordingModule, ActionPolicy):
    name = "action"

    def __init__(self, events: list, result: Optional[ValidationData] = None, **kwargs):
        super().__init__(events, **kwargs)
        self.result = result or ValidationData.success()
        self.checks: List[ActionCheck] = []

    def check_action(self, session_id: bytes, check: ActionCheck) -> ValidationData:
        self.events.append(("action", session_id))
        self.checks.append(check)
        return self.result


class FakeERC1271Policy(_RecordingModule, ERC1271Policy):
    name = "erc1271"

    def __init__(self, events: list, allowed: bool = True, **kwargs):
        super().__init__(events, **kwargs)
        self.allowed = allowed

    def check_signed_action(
        self,
        session_id: bytes,
        account: str,
        sender: str,
        hash: bytes,
        signature: bytes,
    ) -> bool:
        self.events.append(("erc1271", sender))
        return self.allowed


@dataclass
class SessionEnv:
    """A validator wired to fake modules, plus helpers to build operations."""
    validator: SmartSessionValidator
    directory: ModuleDirectory
    account: FakeAccount
    signer: FakeSigner
    user_op_policy: FakeUserOpPolicy
    action_policy: FakeActionPolicy
    erc1271_policy: FakeERC1271Policy
    events: list = field(default_factory=list)
    signer_id: bytes = SIGNER_ID

    def transfer_call(self, value: int = 0) -> bytes:
        return build_single_call(TARGET, value, TRANSFER_CALL)

    def enable_data(self, **overrides) -> EnableSessions:
        values = dict(
            isigner=SIGNER,
            isigner_init_data=b"signer-init",
            user_op_policies=[PolicyData(USER_OP_POLICY, b"\x01")],
            erc1271_policies=[PolicyData(ERC1271_POLICY, b"\x02")],
            actions=[
                ActionData(
                    action_id=action_id(TARGET, TRANSFER_CALL),
                    action_policies=[PolicyData(ACTION_POLICY, b"\x03")],
                )
            ],
        )
        values.update(overrides)
        return EnableSessions(**values)

    def digest(
        self,
        enable_data: EnableSessions,
        signer_id: Optional[bytes] = None,
        nonce: Optional[int] = None,
    ) -> bytes:
        signer_id = signer_id or self.signer_id
        if nonce is None:
            nonce = self.validator.get_enable_nonce(ACCOUNT, signer_id)
        return enable_digest(
            signer_id,
            enable_data,
            account=ACCOUNT,
            chain_id=self.validator.config.chain_id,
            nonce=nonce,
        )

    def sign_enable(self, enable_data: EnableSessions, signer_id: Optional[bytes] = None) -> EnableSessions:
        enable_data.permission_enable_sig = owner_sign(self.digest(enable_data, signer_id))
        return enable_data

    def user_op(self, call_data: Optional[bytes] = None) -> PackedUserOperation:
        return PackedUserOperation(
            sender=ACCOUNT,
            nonce=1,
            call_data=self.transfer_call() if call_data is None else call_data,
        )

    def use_op(
        self,
        call_data: Optional[bytes] = None,
        signer_id: Optional[bytes] = None,
        valid: bool = True,
    ) -> Tuple[PackedUserOperation, bytes]:
        op = self.user_op(call_data)
        op_hash = op.hash()
        signature = session_sign(op_hash) if valid else b"forged"
        op.signature = build_use_signature(signer_id or self.signer_id, signature)
        return op, op_hash

    def enable_op(
        self,
        enable_data: Optional[EnableSessions] = None,
        call_data: Optional[bytes] = None,
        mode: SmartSessionMode = SmartSessionMode.ENABLE,
        sign: bool = True,
    ) -> Tuple[PackedUserOperation, bytes]:
        enable_data = enable_data or self.enable_data()
        if sign:
            self.sign_enable(enable_data)
        op = self.user_op(call_data)
        op_hash = op.hash()
        op.signature = build_enable_signature(enable_data, self.signer_id, session_sign(op_hash), mode)
        return op, op_hash

    def enable(self, enable_data: Optional[EnableSessions] = None) -> None:
        self.validator.enable_session(ACCOUNT, self.signer_id, enable_data or self.enable_data())


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def env(settings: Settings) -> SessionEnv:
    events: list = []
    directory = ModuleDirectory()
    account = FakeAccount(ACCOUNT, events)
    signer = FakeSigner(events)
    user_op_policy = FakeUserOpPolicy(events)
    action_policy = FakeActionPolicy(events)
    erc1271_policy = FakeERC1271Policy(events)

    directory.register(ACCOUNT, account)
    directory.register(SIGNER, signer)
    directory.register(USER_OP_POLICY, user_op_policy)
    directory.register(ACTION_POLICY, action_policy)
    directory.register(ERC1271_POLICY, erc1271_policy)

    return SessionEnv(
        validator=SmartSessionValidator(directory, config=settings),
        directory=directory,
        account=account,
        signer=signer,
        user_op_policy=user_op_policy,
        action_policy=action_policy,
        erc1271_policy=erc1271_policy,
        events=events,
    )
